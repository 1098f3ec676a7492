"""Wine search with substring matching and explicit sort keys."""

import logging
from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from wine_catalog.core.enums import SortKey
from wine_catalog.core.schema import WineDetail
from wine_catalog.db.models import WineDB
from wine_catalog.db.repositories import rating_stats_subquery, to_wine_detail, wine_detail_select

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"

# Columns matched by the free-text query (any one matching is enough)
SEARCH_COLUMNS = (WineDB.name, WineDB.country, WineDB.origin, WineDB.grape, WineDB.type)


@dataclass(frozen=True)
class SortSpec:
    """Primary sort field and direction for a SortKey."""

    field: str
    descending: bool


SORT_SPECS: dict[SortKey, SortSpec] = {
    SortKey.NAME_ASC: SortSpec("name", descending=False),
    SortKey.NAME_DESC: SortSpec("name", descending=True),
    SortKey.AVERAGE_RATING_ASC: SortSpec("average_rating", descending=False),
    SortKey.AVERAGE_RATING_DESC: SortSpec("average_rating", descending=True),
    SortKey.AVERAGE_PRICE_ASC: SortSpec("average_price", descending=False),
    SortKey.AVERAGE_PRICE_DESC: SortSpec("average_price", descending=True),
}

DEFAULT_SORT = SortKey.NAME_ASC


def parse_sort_key(value: SortKey | str | None) -> SortKey:
    """
    Resolve a caller-supplied sort key.

    Absent or unrecognized keys fall back to DEFAULT_SORT.

    Args:
        value: A SortKey, its string value, or None.

    Returns:
        The matching SortKey.
    """
    if isinstance(value, SortKey):
        return value
    if not value:
        return DEFAULT_SORT
    try:
        return SortKey(value.strip().lower())
    except ValueError:
        logger.debug(f"Unknown sort key {value!r}, using {DEFAULT_SORT.value}")
        return DEFAULT_SORT


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input only ever matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


@dataclass
class SearchFilters:
    """Free-text query and ordering for a wine search."""

    query: str = ""
    sort: SortKey = DEFAULT_SORT


class SearchRepository:
    """Repository for searching wines."""

    def __init__(self, session: Session):
        self.session = session

    def search(self, filters: SearchFilters | None = None) -> list[WineDetail]:
        """
        Search wines by case-insensitive substring and sort the results.

        A wine matches if the query appears in its name, country, origin,
        grape or type. A blank query matches every wine. Ties on the sort
        field are broken by wine id so the order is fully deterministic.

        Args:
            filters: Query and sort key to apply.

        Returns:
            Matching wines in order; empty if nothing matches.
        """
        if filters is None:
            filters = SearchFilters()

        stats = rating_stats_subquery()
        stmt = wine_detail_select(stats)

        # Surrounding spaces are part of the substring; a blank query matches all
        query = (filters.query or "").lower()
        if query.strip():
            pattern = f"%{escape_like(query)}%"
            stmt = stmt.where(
                or_(
                    *(
                        func.lower(column).like(pattern, escape=LIKE_ESCAPE)
                        for column in SEARCH_COLUMNS
                    )
                )
            )

        spec = SORT_SPECS[filters.sort]
        if spec.field == "name":
            column = func.lower(WineDB.name)
        elif spec.field == "average_price":
            column = WineDB.average_price
        else:
            column = stats.c.average_rating

        primary = column.desc() if spec.descending else column.asc()
        stmt = stmt.order_by(primary.nulls_last(), WineDB.id.asc())

        rows = self.session.execute(stmt).all()
        return [to_wine_detail(wine, avg, count) for wine, avg, count in rows]
