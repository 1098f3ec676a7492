"""Wine routes: search and single-wine lookup."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from wine_catalog.web.dependencies import CatalogDep

router = APIRouter(prefix="/wines", tags=["wines"])


@router.get("")
def list_wines(catalog: CatalogDep, query: str = "", sort: str | None = None) -> JSONResponse:
    """
    Search wines.

    ``query`` is matched case-insensitively against name, country, origin,
    grape and type; ``sort`` is one of the SortKey values (default
    ``name_asc``). An empty result is a normal 200 response.
    """
    wines = catalog.search(query, sort)
    return JSONResponse([w.model_dump(mode="json") for w in wines])


@router.get("/{wine_id}")
def get_wine(wine_id: str, catalog: CatalogDep) -> JSONResponse:
    """Get a wine by ID."""
    wine = catalog.get_wine(wine_id)
    return JSONResponse(wine.model_dump(mode="json"))
