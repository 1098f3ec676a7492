"""Producer routes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from wine_catalog.web.dependencies import CatalogDep

router = APIRouter(prefix="/producers", tags=["producers"])


@router.get("")
def list_producers(request: Request, catalog: CatalogDep) -> JSONResponse:
    """
    List producers.

    Any query parameter naming a producer field (``name``, ``country``,
    ``description``, ``url``, ``image_url``) filters on that exact value.
    """
    producers = catalog.list_producers(dict(request.query_params))
    return JSONResponse([p.model_dump(mode="json") for p in producers])


@router.get("/{producer_id}")
def get_producer(producer_id: str, catalog: CatalogDep) -> JSONResponse:
    """Get a producer by ID."""
    producer = catalog.get_producer(producer_id)
    return JSONResponse(producer.model_dump(mode="json"))


@router.get("/{producer_id}/wines")
def list_producer_wines(producer_id: str, catalog: CatalogDep) -> JSONResponse:
    """List the wines of a producer (possibly none)."""
    wines = catalog.list_producer_wines(producer_id)
    return JSONResponse([w.model_dump(mode="json") for w in wines])
