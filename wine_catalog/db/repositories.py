"""Repository classes for database operations."""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import Select, Table, delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from wine_catalog.core.schema import Producer, Rating, User, Wine, WineDetail
from wine_catalog.db.models import ProducerDB, RatingDB, UserDB, UserFavoriteDB, WineDB


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


def _upsert_insert(session: Session, table: Table):
    """
    Build an INSERT supporting ON CONFLICT clauses for the bound dialect.

    Raises:
        NotImplementedError: If the dialect has no ON CONFLICT support.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite.insert(table)
    if dialect == "postgresql":
        return postgresql.insert(table)
    raise NotImplementedError(f"Atomic upserts are not supported on {dialect}")


# ============================================================================
# Wine Read Helpers
# ============================================================================


def rating_stats_subquery():
    """Aggregate average rating and rating count per wine."""
    return (
        select(
            RatingDB.wine_id.label("wine_id"),
            func.avg(RatingDB.value).label("average_rating"),
            func.count(RatingDB.id).label("ratings_count"),
        )
        .group_by(RatingDB.wine_id)
        .subquery("rating_stats")
    )


def wine_detail_select(stats=None) -> Select:
    """
    Select wines with their rating aggregates.

    Rows are ``(WineDB, average_rating, ratings_count)``; the producer is
    eagerly joined by the relationship.
    """
    if stats is None:
        stats = rating_stats_subquery()
    return select(WineDB, stats.c.average_rating, stats.c.ratings_count).outerjoin(
        stats, stats.c.wine_id == WineDB.id
    )


def to_wine_detail(
    db_item: WineDB, average_rating: float | None, ratings_count: int | None
) -> WineDetail:
    """Convert a wine row and its aggregates to the domain model."""
    return WineDetail(
        id=UUID(db_item.id),
        name=db_item.name,
        country=db_item.country,
        origin=db_item.origin,
        grape=db_item.grape,
        year=db_item.year,
        type=db_item.type,
        added_sulfites=db_item.added_sulfites,
        pairing_note=db_item.pairing_note,
        importer=db_item.importer,
        average_price=db_item.average_price,
        image_url=db_item.image_url,
        producer_id=UUID(db_item.producer_id) if db_item.producer_id else None,
        created_at=db_item.created_at,
        updated_at=db_item.updated_at,
        producer=ProducerRepository.to_domain(db_item.producer) if db_item.producer else None,
        average_rating=float(average_rating) if average_rating is not None else None,
        ratings_count=ratings_count or 0,
    )


# ============================================================================
# Catalog Repositories
# ============================================================================


class ProducerRepository:
    """Repository for Producer CRUD operations."""

    # Fields a producer listing can be filtered on (exact match)
    FILTER_FIELDS = ("name", "country", "description", "url", "image_url")

    def __init__(self, session: Session):
        self.session = session

    def create(self, producer: Producer) -> Producer:
        """Create a new producer."""
        db_item = ProducerDB(
            id=str(producer.id),
            name=producer.name,
            country=producer.country,
            description=producer.description,
            url=producer.url,
            image_url=producer.image_url,
            created_at=producer.created_at,
            updated_at=producer.updated_at,
        )
        self.session.add(db_item)
        self.session.flush()
        return self.to_domain(db_item)

    def get_by_id(self, producer_id: UUID | str) -> Producer | None:
        """Get a producer by ID."""
        stmt = select(ProducerDB).where(ProducerDB.id == str(producer_id))
        db_item = self.session.execute(stmt).scalar_one_or_none()
        return self.to_domain(db_item) if db_item else None

    def get_by_name(self, name: str) -> Producer | None:
        """Get the first producer with exactly this name."""
        stmt = (
            select(ProducerDB)
            .where(ProducerDB.name == name)
            .order_by(ProducerDB.id)
            .limit(1)
        )
        db_item = self.session.execute(stmt).scalar_one_or_none()
        return self.to_domain(db_item) if db_item else None

    def list_filtered(self, filters: Mapping[str, str] | None = None) -> list[Producer]:
        """
        List producers matching every given field exactly.

        Keys outside FILTER_FIELDS are ignored.

        Args:
            filters: Field name to required value.

        Returns:
            Producers ordered by name, then id.
        """
        stmt = select(ProducerDB)
        for field_name, value in (filters or {}).items():
            if field_name in self.FILTER_FIELDS:
                stmt = stmt.where(getattr(ProducerDB, field_name) == value)
        stmt = stmt.order_by(ProducerDB.name, ProducerDB.id)
        result = self.session.execute(stmt).scalars().all()
        return [self.to_domain(p) for p in result]

    def count(self) -> int:
        """Get total count of producers."""
        stmt = select(func.count()).select_from(ProducerDB)
        return self.session.execute(stmt).scalar() or 0

    def delete_all(self) -> int:
        """Delete every producer. Returns the number of rows removed."""
        result = self.session.execute(delete(ProducerDB))
        return result.rowcount

    @staticmethod
    def to_domain(db_item: ProducerDB) -> Producer:
        """Convert DB model to domain model."""
        return Producer(
            id=UUID(db_item.id),
            name=db_item.name,
            country=db_item.country,
            description=db_item.description,
            url=db_item.url,
            image_url=db_item.image_url,
            created_at=db_item.created_at,
            updated_at=db_item.updated_at,
        )


class WineRepository:
    """Repository for Wine CRUD operations."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, wine: Wine) -> WineDetail:
        """Create a new wine."""
        db_item = WineDB(
            id=str(wine.id),
            name=wine.name,
            country=wine.country,
            origin=wine.origin,
            grape=wine.grape,
            year=wine.year,
            type=wine.type.value,
            added_sulfites=wine.added_sulfites.value if wine.added_sulfites else None,
            pairing_note=wine.pairing_note,
            importer=wine.importer,
            average_price=wine.average_price,
            image_url=wine.image_url,
            producer_id=str(wine.producer_id) if wine.producer_id else None,
            created_at=wine.created_at,
            updated_at=wine.updated_at,
        )
        self.session.add(db_item)
        self.session.flush()
        return self.get_by_id(db_item.id)

    def exists(self, wine_id: UUID | str) -> bool:
        """Check whether a wine exists."""
        stmt = select(func.count()).select_from(WineDB).where(WineDB.id == str(wine_id))
        return bool(self.session.execute(stmt).scalar())

    def get_by_id(self, wine_id: UUID | str) -> WineDetail | None:
        """Get a wine with its producer and rating aggregates."""
        stmt = wine_detail_select().where(WineDB.id == str(wine_id))
        row = self.session.execute(stmt).first()
        return to_wine_detail(*row) if row else None

    def list_by_producer(self, producer_id: UUID | str) -> list[WineDetail]:
        """Get all wines for a producer, ordered by name then id."""
        stmt = (
            wine_detail_select()
            .where(WineDB.producer_id == str(producer_id))
            .order_by(func.lower(WineDB.name), WineDB.id)
        )
        return [to_wine_detail(*row) for row in self.session.execute(stmt).all()]

    def list_by_ids(self, wine_ids: Iterable[UUID | str]) -> list[WineDetail]:
        """
        Get the wines with the given ids, ordered by name then id.

        Ids with no matching wine are skipped.
        """
        ids = [str(wine_id) for wine_id in wine_ids]
        if not ids:
            return []
        stmt = (
            wine_detail_select()
            .where(WineDB.id.in_(ids))
            .order_by(func.lower(WineDB.name), WineDB.id)
        )
        return [to_wine_detail(*row) for row in self.session.execute(stmt).all()]

    def count(self) -> int:
        """Get total count of wines."""
        stmt = select(func.count()).select_from(WineDB)
        return self.session.execute(stmt).scalar() or 0

    def delete_all(self) -> int:
        """Delete every wine. Returns the number of rows removed."""
        result = self.session.execute(delete(WineDB))
        return result.rowcount


# ============================================================================
# User and Relationship Repositories
# ============================================================================


class UserRepository:
    """Repository for User persistence and token lookup."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, user: User) -> User:
        """
        Create a new user.

        Raises:
            sqlalchemy.exc.IntegrityError: If the email is already taken.
        """
        db_item = UserDB(
            id=str(user.id),
            name=user.name,
            surname=user.surname,
            email=user.email,
            password_hash=user.password_hash,
            access_token=user.access_token,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        self.session.add(db_item)
        self.session.flush()
        return self._to_domain(db_item)

    def get_by_id(self, user_id: UUID | str) -> User | None:
        """Get a user by ID."""
        stmt = select(UserDB).where(UserDB.id == str(user_id))
        db_item = self.session.execute(stmt).scalar_one_or_none()
        return self._to_domain(db_item) if db_item else None

    def get_by_email(self, email: str) -> User | None:
        """Get a user by (normalized) email."""
        stmt = select(UserDB).where(UserDB.email == email)
        db_item = self.session.execute(stmt).scalar_one_or_none()
        return self._to_domain(db_item) if db_item else None

    def get_by_token(self, token: str) -> User | None:
        """Get the user currently holding this access token."""
        stmt = select(UserDB).where(UserDB.access_token == token)
        db_item = self.session.execute(stmt).scalar_one_or_none()
        return self._to_domain(db_item) if db_item else None

    def set_access_token(self, user_id: UUID | str, token: str | None) -> bool:
        """
        Replace the user's access token (None clears it).

        Returns:
            True if the user exists.
        """
        stmt = (
            update(UserDB)
            .where(UserDB.id == str(user_id))
            .values(access_token=token, updated_at=_utc_now())
        )
        return self.session.execute(stmt).rowcount == 1

    def _to_domain(self, db_item: UserDB) -> User:
        """Convert DB model to domain model."""
        return User(
            id=UUID(db_item.id),
            name=db_item.name,
            surname=db_item.surname,
            email=db_item.email,
            password_hash=db_item.password_hash,
            access_token=db_item.access_token,
            favorite_wines={UUID(f.wine_id) for f in db_item.favorites},
            created_at=db_item.created_at,
            updated_at=db_item.updated_at,
        )


class FavoriteRepository:
    """Repository for the members of a user's favorite wine set."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, user_id: UUID | str, wine_id: UUID | str) -> bool:
        """
        Add a wine to the set. Adding an existing member changes nothing.

        Returns:
            True if the wine was not already a member.
        """
        stmt = (
            _upsert_insert(self.session, UserFavoriteDB.__table__)
            .values(user_id=str(user_id), wine_id=str(wine_id), created_at=_utc_now())
            .on_conflict_do_nothing(index_elements=["user_id", "wine_id"])
        )
        return self.session.execute(stmt).rowcount == 1

    def remove(self, user_id: UUID | str, wine_id: UUID | str) -> bool:
        """
        Remove a wine from the set. Removing a non-member changes nothing.

        Returns:
            True if the wine was a member.
        """
        stmt = delete(UserFavoriteDB.__table__).where(
            UserFavoriteDB.user_id == str(user_id),
            UserFavoriteDB.wine_id == str(wine_id),
        )
        return self.session.execute(stmt).rowcount == 1

    def list_wine_ids(self, user_id: UUID | str) -> list[str]:
        """List favorite wine ids in the order they were added."""
        stmt = (
            select(UserFavoriteDB.wine_id)
            .where(UserFavoriteDB.user_id == str(user_id))
            .order_by(UserFavoriteDB.created_at, UserFavoriteDB.wine_id)
        )
        return list(self.session.execute(stmt).scalars().all())


class RatingRepository:
    """Repository for Rating persistence."""

    def __init__(self, session: Session):
        self.session = session

    def upsert(self, user_id: UUID | str, wine_id: UUID | str, value: int) -> tuple[Rating, bool]:
        """
        Insert the rating for (user_id, wine_id), or update it in place.

        The insert is guarded by the (user_id, wine_id) unique constraint,
        so concurrent callers can never create a second row: whoever loses
        the insert falls through to the update in the same transaction.

        Args:
            user_id: Rating user.
            wine_id: Rated wine.
            value: Rating value (1-5).

        Returns:
            The stored rating and True if it was newly created.
        """
        now = _utc_now()
        key = (RatingDB.user_id == str(user_id), RatingDB.wine_id == str(wine_id))

        insert_stmt = (
            _upsert_insert(self.session, RatingDB.__table__)
            .values(
                id=str(uuid4()),
                user_id=str(user_id),
                wine_id=str(wine_id),
                value=value,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "wine_id"])
        )
        created = self.session.execute(insert_stmt).rowcount == 1

        if not created:
            self.session.execute(
                update(RatingDB.__table__).where(*key).values(value=value, updated_at=now)
            )

        stmt = select(RatingDB).where(*key).execution_options(populate_existing=True)
        db_item = self.session.execute(stmt).scalar_one()
        return self._to_domain(db_item), created

    def get(self, user_id: UUID | str, wine_id: UUID | str) -> Rating | None:
        """Get the rating for a (user, wine) pair."""
        stmt = select(RatingDB).where(
            RatingDB.user_id == str(user_id), RatingDB.wine_id == str(wine_id)
        )
        db_item = self.session.execute(stmt).scalar_one_or_none()
        return self._to_domain(db_item) if db_item else None

    def list_by_user(self, user_id: UUID | str) -> list[Rating]:
        """List a user's ratings in insertion order."""
        stmt = (
            select(RatingDB)
            .where(RatingDB.user_id == str(user_id))
            .order_by(RatingDB.created_at, RatingDB.id)
        )
        result = self.session.execute(stmt).scalars().all()
        return [self._to_domain(r) for r in result]

    def _to_domain(self, db_item: RatingDB) -> Rating:
        """Convert DB model to domain model."""
        return Rating(
            id=UUID(db_item.id),
            user_id=UUID(db_item.user_id),
            wine_id=UUID(db_item.wine_id),
            value=db_item.value,
            created_at=db_item.created_at,
            updated_at=db_item.updated_at,
        )
