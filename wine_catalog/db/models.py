"""SQLAlchemy ORM models for the wine catalog database.

These models define the tables:
- ProducerDB, WineDB (catalog entities)
- UserDB, UserFavoriteDB (users and their favorite wine set)
- RatingDB (one rating per user and wine)

Favorite and rating rows keep ``wine_id`` as a plain indexed column rather
than a foreign key: deleting a wine leaves stale references behind, which
readers skip.
"""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def _generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# ============================================================================
# Catalog Entities
# ============================================================================


class ProducerDB(Base):
    """
    Database model for wine producers.

    Represents a winery, domaine, or producer of wines.
    """

    __tablename__ = "producers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_generate_uuid)
    name: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)

    def __repr__(self) -> str:
        return f"<ProducerDB(id={self.id}, name='{self.name}')>"


class WineDB(Base):
    """
    Database model for wines.

    Rating aggregates are not stored here; they are computed from the
    ratings table whenever a wine is read.
    """

    __tablename__ = "wines"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_generate_uuid)
    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    country: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    origin: Mapped[str] = mapped_column(String(30), nullable=False)
    grape: Mapped[str] = mapped_column(String(50), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    added_sulfites: Mapped[str | None] = mapped_column(String(3), nullable=True)
    pairing_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    importer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    average_price: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    producer_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("producers.id"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)

    # Relationships
    producer: Mapped["ProducerDB | None"] = relationship("ProducerDB", lazy="joined")

    def __repr__(self) -> str:
        return f"<WineDB(id={self.id}, name='{self.name}', year={self.year})>"


# ============================================================================
# Users and Relationships
# ============================================================================


class UserDB(Base):
    """
    Database model for registered users.

    ``access_token`` holds the single active session token, or NULL when
    logged out.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_generate_uuid)
    name: Mapped[str] = mapped_column(String(20), nullable=False)
    surname: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    access_token: Mapped[str | None] = mapped_column(
        String(512), nullable=True, unique=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)

    # Relationships
    favorites: Mapped[list["UserFavoriteDB"]] = relationship(
        "UserFavoriteDB", back_populates="user", cascade="all, delete-orphan", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<UserDB(id={self.id}, email='{self.email}')>"


class UserFavoriteDB(Base):
    """
    Database model for one member of a user's favorite wine set.

    The composite primary key makes the set duplicate-free.
    """

    __tablename__ = "user_favorite_wines"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    wine_id: Mapped[str] = mapped_column(String(36), primary_key=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    # Relationships
    user: Mapped["UserDB"] = relationship("UserDB", back_populates="favorites")

    def __repr__(self) -> str:
        return f"<UserFavoriteDB(user_id={self.user_id}, wine_id={self.wine_id})>"


class RatingDB(Base):
    """
    Database model for wine ratings.

    At most one row exists per (user_id, wine_id); re-rating updates the
    value in place.
    """

    __tablename__ = "ratings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    wine_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "wine_id", name="uq_rating_user_wine"),
        CheckConstraint("value >= 1 AND value <= 5", name="ck_rating_value_range"),
    )

    def __repr__(self) -> str:
        return f"<RatingDB(user_id={self.user_id}, wine_id={self.wine_id}, value={self.value})>"
