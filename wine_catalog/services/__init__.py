"""Application services for the wine catalog."""

from wine_catalog.services.catalog_service import CatalogStore
from wine_catalog.services.credential_service import CredentialGate
from wine_catalog.services.relationship_service import RelationshipStore

__all__ = [
    "CatalogStore",
    "CredentialGate",
    "RelationshipStore",
]
