"""FastAPI application factory for the wine catalog.

Serve with uvicorn's factory mode, e.g.::

    uvicorn wine_catalog.web.app:create_app --factory
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker

from wine_catalog import __version__
from wine_catalog.core.config import Settings
from wine_catalog.core.errors import AuthenticationError, CatalogError
from wine_catalog.core.logging_config import setup_logging
from wine_catalog.db.engine import create_db_engine, create_session_factory, init_db
from wine_catalog.services.catalog_service import CatalogStore
from wine_catalog.services.credential_service import CredentialGate
from wine_catalog.services.relationship_service import RelationshipStore

logger = logging.getLogger(__name__)


def _error_body(kind: str, message: str) -> dict:
    return {"error": kind, "message": message}


async def handle_catalog_error(request: Request, exc: CatalogError) -> JSONResponse:
    """Map a service error to its status code."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        _error_body(exc.kind, exc.message), status_code=exc.status_code, headers=headers
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies and parameters as 400."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return JSONResponse(_error_body("validation_error", "; ".join(messages)), status_code=400)


def create_app(
    settings: Settings | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Builds the engine and the three stores once; handlers reach them via
    the dependencies in ``wine_catalog.web.dependencies``.

    Args:
        settings: Runtime settings. Read from the environment if omitted.
        session_factory: Existing session factory (tests). If omitted, an
                         engine is created from ``settings.database_url``
                         and its tables are created.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings.from_env()
    setup_logging(settings.log_level)

    if session_factory is None:
        engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
        init_db(engine)
        session_factory = create_session_factory(engine)

    app = FastAPI(
        title="Wine Catalog",
        description="Wine and producer catalog with per-user favorites and ratings",
        version=__version__,
    )

    app.state.session_factory = session_factory
    app.state.catalog = CatalogStore(session_factory)
    app.state.relationships = RelationshipStore(session_factory)
    app.state.credentials = CredentialGate(
        session_factory,
        token_bytes=settings.token_bytes,
        hash_iterations=settings.password_hash_iterations,
    )

    app.add_exception_handler(CatalogError, handle_catalog_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    # Include routers (import here to avoid circular imports)
    from wine_catalog.web.routes import producers, system, users, wines

    app.include_router(system.router)
    app.include_router(wines.router)
    app.include_router(producers.router)
    app.include_router(users.router)

    return app
