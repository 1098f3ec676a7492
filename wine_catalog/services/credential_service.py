"""Credential service: registration, login, logout and token resolution.

Each account has at most one active session. Logging in issues a fresh
token and overwrites the stored one, which invalidates any earlier token
for that account; logging out clears it.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from wine_catalog.core.errors import AuthenticationError, ValidationError
from wine_catalog.core.schema import LoginRequest, RegisterRequest, User, UserSession
from wine_catalog.core.security import (
    DEFAULT_ITERATIONS,
    generate_token,
    hash_password,
    verify_password,
)
from wine_catalog.db.engine import transaction
from wine_catalog.db.repositories import UserRepository

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_token(header_value: str | None) -> str | None:
    """
    Strip an optional ``Bearer`` scheme from an Authorization value.

    Returns None when no token remains, including for a bare scheme.
    """
    if header_value is None:
        return None
    token = header_value.strip()
    parts = token.split(None, 1)
    if parts and parts[0].lower() == BEARER_SCHEME:
        token = parts[1].strip() if len(parts) > 1 else ""
    return token or None


class CredentialGate:
    """Resolves opaque access tokens to users and manages sessions."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        token_bytes: int = 128,
        hash_iterations: int = DEFAULT_ITERATIONS,
    ):
        self._session_factory = session_factory
        self._token_bytes = token_bytes
        self._hash_iterations = hash_iterations

    def resolve(self, token: str | None) -> User:
        """
        Resolve an access token (or Authorization header value) to a user.

        Raises:
            AuthenticationError: If the token is missing or unknown.
        """
        token = extract_token(token)
        if token is None:
            raise AuthenticationError("no such session")

        with transaction(self._session_factory) as session:
            user = UserRepository(session).get_by_token(token)
        if user is None:
            raise AuthenticationError("no such session")
        return user

    def register(self, request: RegisterRequest) -> UserSession:
        """
        Create an account and start its first session.

        Raises:
            ValidationError: If the email is already registered.
        """
        user = User(
            name=request.name,
            surname=request.surname,
            email=request.email,
            password_hash=hash_password(request.password, self._hash_iterations),
            access_token=generate_token(self._token_bytes),
        )

        try:
            with transaction(self._session_factory) as session:
                repo = UserRepository(session)
                if repo.get_by_email(user.email) is not None:
                    raise ValidationError("Could not create user: email already registered")
                created = repo.create(user)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            raise ValidationError("Could not create user: email already registered") from None

        logger.info(f"Registered user {created.id}")
        return UserSession(
            id=created.id,
            name=created.name,
            surname=created.surname,
            access_token=user.access_token,
        )

    def login(self, request: LoginRequest) -> UserSession:
        """
        Start a new session, replacing any existing one.

        Raises:
            AuthenticationError: If the email is unknown or the password
                                 does not match.
        """
        with transaction(self._session_factory) as session:
            repo = UserRepository(session)
            user = repo.get_by_email(request.email)
            if user is None or not verify_password(request.password, user.password_hash):
                raise AuthenticationError("Invalid email or password")

            token = generate_token(self._token_bytes)
            repo.set_access_token(user.id, token)

        logger.info(f"User {user.id} logged in")
        return UserSession(id=user.id, name=user.name, surname=user.surname, access_token=token)

    def logout(self, user: User) -> None:
        """End the user's session; its token stops resolving."""
        with transaction(self._session_factory) as session:
            UserRepository(session).set_access_token(user.id, None)

        logger.info(f"User {user.id} logged out")
