"""Catalog service for reading and administering wines and producers.

This service provides business logic for:
- Searching and sorting the wine catalog
- Looking up single wines and producers
- Listing a producer's wines
- Administrative writes used by the seed loader
"""

import logging
from collections.abc import Mapping
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from wine_catalog.core.enums import SortKey
from wine_catalog.core.errors import NotFoundError, ValidationError
from wine_catalog.core.schema import Producer, Wine, WineDetail, parse_uuid
from wine_catalog.db.engine import transaction
from wine_catalog.db.repositories import ProducerRepository, WineRepository
from wine_catalog.db.search import SearchFilters, SearchRepository, parse_sort_key

logger = logging.getLogger(__name__)


class CatalogStore:
    """Owns Wine and Producer records and exposes filtered/sorted reads."""

    def __init__(self, session_factory: sessionmaker[Session]):
        """
        Initialize the catalog store.

        Args:
            session_factory: Factory for the per-operation sessions.
        """
        self._session_factory = session_factory

    # =========================================================================
    # Wine Operations
    # =========================================================================

    def search(self, query: str | None = None, sort: SortKey | str | None = None) -> list[WineDetail]:
        """
        Search wines by free text and sort the results.

        Args:
            query: Case-insensitive substring matched against name, country,
                   origin, grape and type. Blank or None matches everything.
            sort: Sort key; unknown or absent keys fall back to name_asc.

        Returns:
            Ordered wines, each joined with its producer. May be empty.
        """
        filters = SearchFilters(query=query or "", sort=parse_sort_key(sort))
        with transaction(self._session_factory) as session:
            return SearchRepository(session).search(filters)

    def get_wine(self, wine_id: UUID | str) -> WineDetail:
        """
        Get a single wine.

        Raises:
            NotFoundError: If no wine has this id (malformed ids included).
        """
        try:
            parsed = parse_uuid(wine_id, "wine id")
        except ValidationError:
            raise NotFoundError(f"Could not find any wine with id: {wine_id}") from None

        with transaction(self._session_factory) as session:
            wine = WineRepository(session).get_by_id(parsed)
        if wine is None:
            raise NotFoundError(f"Could not find any wine with id: {wine_id}")
        return wine

    def create_wine(self, wine: Wine) -> WineDetail:
        """
        Add a wine to the catalog.

        Raises:
            NotFoundError: If the wine references a missing producer.
        """
        with transaction(self._session_factory) as session:
            if wine.producer_id and ProducerRepository(session).get_by_id(wine.producer_id) is None:
                raise NotFoundError(f"Could not find a producer with id: {wine.producer_id}")
            created = WineRepository(session).create(wine)

        logger.info(f"Created wine: {created.name} {created.year} ({created.id})")
        return created

    # =========================================================================
    # Producer Operations
    # =========================================================================

    def list_producers(self, filters: Mapping[str, str] | None = None) -> list[Producer]:
        """List producers, optionally filtered by exact field values."""
        with transaction(self._session_factory) as session:
            return ProducerRepository(session).list_filtered(filters)

    def get_producer(self, producer_id: UUID | str) -> Producer:
        """
        Get a single producer.

        Raises:
            ValidationError: If the id is malformed.
            NotFoundError: If no producer has this id.
        """
        parsed = parse_uuid(producer_id, "producer id")
        with transaction(self._session_factory) as session:
            producer = ProducerRepository(session).get_by_id(parsed)
        if producer is None:
            raise NotFoundError(f"Could not find a producer with id: {producer_id}")
        return producer

    def list_producer_wines(self, producer_id: UUID | str) -> list[WineDetail]:
        """
        List every wine made by a producer.

        Raises:
            ValidationError: If the id is malformed.
            NotFoundError: If no producer has this id.
        """
        parsed = parse_uuid(producer_id, "producer id")
        with transaction(self._session_factory) as session:
            if ProducerRepository(session).get_by_id(parsed) is None:
                logger.warning(f"Producer not found for ID: {producer_id}")
                raise NotFoundError("Producer not found")
            return WineRepository(session).list_by_producer(parsed)

    def create_producer(self, producer: Producer) -> Producer:
        """Add a producer to the catalog."""
        with transaction(self._session_factory) as session:
            created = ProducerRepository(session).create(producer)

        logger.info(f"Created producer: {created.name} ({created.id})")
        return created

    # =========================================================================
    # Administration
    # =========================================================================

    def clear(self) -> tuple[int, int]:
        """
        Delete every wine and producer.

        Favorites and ratings that referenced deleted wines are left in
        place and skipped by readers.

        Returns:
            Tuple of (wines deleted, producers deleted).
        """
        with transaction(self._session_factory) as session:
            wines = WineRepository(session).delete_all()
            producers = ProducerRepository(session).delete_all()

        logger.info(f"Cleared catalog: {wines} wines, {producers} producers")
        return wines, producers
