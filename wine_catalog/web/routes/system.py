"""Service routes: endpoint listing and storage health check."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from wine_catalog.db.engine import transaction

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/")
def list_endpoints(request: Request) -> JSONResponse:
    """List the API's endpoints and their methods, from the OpenAPI schema."""
    paths = request.app.openapi().get("paths", {})
    endpoints = [
        {"path": path, "methods": sorted(method.upper() for method in operations)}
        for path, operations in paths.items()
    ]
    return JSONResponse(endpoints)


@router.get("/health")
def health(request: Request) -> JSONResponse:
    """Report whether storage is reachable (503 if not)."""
    with transaction(request.app.state.session_factory) as session:
        session.execute(text("SELECT 1"))
    return JSONResponse({"status": "ok"})
