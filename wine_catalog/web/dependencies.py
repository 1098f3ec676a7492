"""FastAPI dependencies for the stores and the authenticated caller.

The stores are built once by ``create_app`` and kept on ``app.state``;
these dependencies hand them to route handlers.
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from wine_catalog.core.schema import User
from wine_catalog.services.catalog_service import CatalogStore
from wine_catalog.services.credential_service import CredentialGate
from wine_catalog.services.relationship_service import RelationshipStore


def get_catalog(request: Request) -> CatalogStore:
    """Dependency returning the application's catalog store."""
    return request.app.state.catalog


def get_relationships(request: Request) -> RelationshipStore:
    """Dependency returning the application's relationship store."""
    return request.app.state.relationships


def get_credentials(request: Request) -> CredentialGate:
    """Dependency returning the application's credential gate."""
    return request.app.state.credentials


def get_current_user(
    credentials: Annotated[CredentialGate, Depends(get_credentials)],
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """
    Dependency resolving the ``Authorization`` header to a user.

    The header carries the opaque token, with or without a ``Bearer``
    prefix. Raises AuthenticationError (401) if it is missing or unknown.
    """
    return credentials.resolve(authorization)


# Type aliases for dependency injection
CatalogDep = Annotated[CatalogStore, Depends(get_catalog)]
RelationshipsDep = Annotated[RelationshipStore, Depends(get_relationships)]
CredentialsDep = Annotated[CredentialGate, Depends(get_credentials)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
