"""Database initialization and persistence layer."""

from wine_catalog.db.engine import (
    create_db_engine,
    create_session_factory,
    get_database_url,
    init_db,
    transaction,
)
from wine_catalog.db.models import (
    Base,
    ProducerDB,
    RatingDB,
    UserDB,
    UserFavoriteDB,
    WineDB,
)
from wine_catalog.db.repositories import (
    FavoriteRepository,
    ProducerRepository,
    RatingRepository,
    UserRepository,
    WineRepository,
)

__all__ = [
    # Engine
    "create_db_engine",
    "create_session_factory",
    "get_database_url",
    "init_db",
    "transaction",
    # Models
    "Base",
    "ProducerDB",
    "WineDB",
    "UserDB",
    "UserFavoriteDB",
    "RatingDB",
    # Repositories
    "ProducerRepository",
    "WineRepository",
    "UserRepository",
    "FavoriteRepository",
    "RatingRepository",
]
