"""Application settings loaded from environment variables.

A ``.env`` file in the current directory or the project root is loaded
first, so local overrides work without exporting variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PATHS = [
    Path.cwd() / ".env",
    Path(__file__).resolve().parent.parent.parent / ".env",
]


def load_env_file() -> Path | None:
    """Load the first ``.env`` file found and return its path."""
    for env_path in ENV_PATHS:
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Runtime configuration for the web app and CLI."""

    database_url: str | None = None
    log_level: str = "INFO"
    sql_echo: bool = False
    token_bytes: int = 128
    password_hash_iterations: int = 100_000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment (after loading ``.env``)."""
        load_env_file()
        return cls(
            database_url=os.environ.get("DATABASE_URL") or None,
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            sql_echo=_env_bool("SQL_ECHO"),
            token_bytes=int(os.environ.get("TOKEN_BYTES", "128")),
            password_hash_iterations=int(os.environ.get("PASSWORD_HASH_ITERATIONS", "100000")),
        )
