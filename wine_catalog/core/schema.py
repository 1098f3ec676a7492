"""Pydantic v2 models for the wine catalog.

These models define the domain entities exchanged between the
repositories, the services and the web layer:
- Producer, Wine, WineDetail (catalog entities)
- User, Rating (per-user relationship entities)
- Request/response bodies for the HTTP API
"""

import re
from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from wine_catalog.core.enums import AddedSulfites, WineType
from wine_catalog.core.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def parse_uuid(value: UUID | str, what: str = "id") -> UUID:
    """
    Parse an id received from a caller.

    Args:
        value: A UUID or its string form.
        what: Name used in the error message.

    Returns:
        The parsed UUID.

    Raises:
        ValidationError: If the value is not a well-formed UUID.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid {what} format: {value}") from None


# ============================================================================
# Catalog Entities
# ============================================================================


class Producer(BaseModel):
    """
    Wine producer entity.

    Wines reference their producer; a producer never lists its wines.
    """

    id: UUID = Field(default_factory=uuid4)
    name: Annotated[str, Field(min_length=5, max_length=40)]
    country: Annotated[str, Field(min_length=1, max_length=100)]
    description: str | None = None
    url: str | None = None
    image_url: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @field_validator("name", "country", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v


class Wine(BaseModel):
    """
    Wine entity as stored in the catalog.

    Rating aggregates are not part of the stored entity; see WineDetail.
    """

    id: UUID = Field(default_factory=uuid4)
    name: Annotated[str, Field(min_length=4, max_length=50)]
    country: Annotated[str, Field(min_length=2, max_length=20)]
    origin: Annotated[str, Field(min_length=5, max_length=30)]
    grape: Annotated[str, Field(min_length=1, max_length=50)]
    year: Annotated[int, Field(ge=1000, le=9999)]
    type: WineType
    added_sulfites: AddedSulfites | None = None
    pairing_note: str | None = None
    importer: str | None = None
    average_price: Annotated[float, Field(ge=0)] | None = None
    image_url: str | None = None
    producer_id: UUID | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @field_validator("name", "country", "origin", "grape", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip().lower()
            # "rose" is accepted as an ASCII spelling of "rosé"
            if v == "rose":
                return WineType.ROSE.value
        return v


class WineDetail(Wine):
    """A wine joined with its producer and its rating aggregates."""

    producer: Producer | None = None
    average_rating: float | None = None
    ratings_count: int = 0


# ============================================================================
# User Relationship Entities
# ============================================================================


class User(BaseModel):
    """
    Registered user.

    ``favorite_wines`` is the user's set of favorited wine ids. Credential
    fields are excluded from serialization.
    """

    id: UUID = Field(default_factory=uuid4)
    name: str
    surname: str
    email: str
    password_hash: str = Field(default="", exclude=True, repr=False)
    access_token: str | None = Field(default=None, exclude=True, repr=False)
    favorite_wines: set[UUID] = Field(default_factory=set)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class Rating(BaseModel):
    """A user's rating of a wine. Unique per (user_id, wine_id)."""

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    wine_id: UUID
    value: Annotated[int, Field(ge=1, le=5)]
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


# ============================================================================
# API Request/Response Models
# ============================================================================


class RegisterRequest(BaseModel):
    """Body of a registration request."""

    name: Annotated[str, Field(min_length=2, max_length=20)]
    surname: Annotated[str, Field(min_length=2, max_length=20)]
    email: Annotated[str, Field(max_length=255)]
    password: Annotated[str, Field(min_length=5, max_length=128)]

    @field_validator("name", "surname", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def valid_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("email is not a valid address")
        return v


class LoginRequest(BaseModel):
    """Body of a login request."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class FavoriteRequest(BaseModel):
    """Body of a favorite add/remove request."""

    wine_id: str


class RateRequest(BaseModel):
    """Body of a rating request."""

    wine_id: str
    rating: Annotated[int, Field(ge=1, le=5)]


class UserSession(BaseModel):
    """Identity and token returned by registration and login."""

    id: UUID
    name: str
    surname: str
    access_token: str
