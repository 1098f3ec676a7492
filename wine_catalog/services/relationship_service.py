"""Relationship service for per-user favorites and ratings.

Every operation acts on behalf of an authenticated caller and only on the
caller's own data. Consistency under concurrent requests comes from the
database: favorites are a primary-keyed set and ratings carry a
(user_id, wine_id) unique constraint, so both writes are single guarded
statements rather than read-then-write sequences.
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from wine_catalog.core.errors import AuthorizationError, NotFoundError, ValidationError
from wine_catalog.core.schema import Rating, User, WineDetail, parse_uuid
from wine_catalog.db.engine import transaction
from wine_catalog.db.repositories import FavoriteRepository, RatingRepository, WineRepository

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class RelationshipStore:
    """Owns users' favorite sets and rating records."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    @staticmethod
    def authorize(caller: User, subject_id: UUID | str) -> UUID:
        """
        Ensure the caller is the subject of the request.

        Checked before any lookup, so a mismatch is reported the same way
        whether or not the subject exists.

        Returns:
            The caller's id.

        Raises:
            AuthorizationError: If the ids differ.
        """
        if str(caller.id) != str(subject_id).strip().lower():
            raise AuthorizationError("Access denied")
        return caller.id

    # =========================================================================
    # Favorites
    # =========================================================================

    def list_favorites(self, caller: User, user_id: UUID | str) -> list[WineDetail]:
        """List the caller's favorite wines, ordered by name then id."""
        owner = self.authorize(caller, user_id)
        with transaction(self._session_factory) as session:
            return self._favorite_wines(session, owner)

    def add_favorite(self, caller: User, user_id: UUID | str, wine_id: UUID | str) -> list[WineDetail]:
        """
        Add a wine to the caller's favorites. Idempotent.

        Raises:
            ValidationError: If the wine id is malformed.
            NotFoundError: If the wine does not exist.
        """
        owner = self.authorize(caller, user_id)
        wine = parse_uuid(wine_id, "wine id")

        with transaction(self._session_factory) as session:
            if not WineRepository(session).exists(wine):
                raise NotFoundError(f"Could not find any wine with id: {wine_id}")
            added = FavoriteRepository(session).add(owner, wine)
            favorites = self._favorite_wines(session, owner)

        if added:
            logger.info(f"User {owner} added favorite wine {wine}")
        return favorites

    def remove_favorite(self, caller: User, user_id: UUID | str, wine_id: UUID | str) -> list[WineDetail]:
        """
        Remove a wine from the caller's favorites. Removing a non-member
        is a successful no-op.

        Raises:
            ValidationError: If the wine id is malformed.
        """
        owner = self.authorize(caller, user_id)
        wine = parse_uuid(wine_id, "wine id")

        with transaction(self._session_factory) as session:
            removed = FavoriteRepository(session).remove(owner, wine)
            favorites = self._favorite_wines(session, owner)

        if removed:
            logger.info(f"User {owner} removed favorite wine {wine}")
        return favorites

    def _favorite_wines(self, session: Session, owner: UUID) -> list[WineDetail]:
        wine_ids = FavoriteRepository(session).list_wine_ids(owner)
        return WineRepository(session).list_by_ids(wine_ids)

    # =========================================================================
    # Ratings
    # =========================================================================

    def rate(self, caller: User, user_id: UUID | str, wine_id: UUID | str, value: int) -> tuple[Rating, bool]:
        """
        Rate a wine, creating the rating or updating it in place.

        Args:
            caller: Authenticated user.
            user_id: Path subject; must be the caller.
            wine_id: Wine to rate.
            value: Rating value between 1 and 5.

        Returns:
            The stored rating and True if it was newly created.

        Raises:
            ValidationError: If the wine id or value is malformed.
            NotFoundError: If the wine does not exist.
        """
        owner = self.authorize(caller, user_id)
        wine = parse_uuid(wine_id, "wine id")
        if isinstance(value, bool) or not isinstance(value, int) or not MIN_RATING <= value <= MAX_RATING:
            raise ValidationError(f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}")

        with transaction(self._session_factory) as session:
            if not WineRepository(session).exists(wine):
                raise NotFoundError(f"Could not find any wine with id: {wine_id}")
            rating, created = RatingRepository(session).upsert(owner, wine, value)

        action = "created" if created else "updated"
        logger.info(f"User {owner} {action} rating for wine {wine}: {value}")
        return rating, created

    def list_ratings(self, caller: User, user_id: UUID | str) -> list[Rating]:
        """List the caller's ratings in insertion order."""
        owner = self.authorize(caller, user_id)
        with transaction(self._session_factory) as session:
            return RatingRepository(session).list_by_user(owner)
