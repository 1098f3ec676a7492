"""Error taxonomy for catalog and relationship operations.

Each error carries the HTTP status it maps to at the web boundary and a
short machine-readable kind. Services raise these; routes never build
status codes themselves.
"""


class CatalogError(Exception):
    """Base class for all expected operation failures."""

    status_code: int = 500
    kind: str = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Malformed id or body, or a field constraint violation."""

    status_code = 400
    kind = "validation_error"


class AuthenticationError(CatalogError):
    """Missing or unknown access token, or bad login credentials."""

    status_code = 401
    kind = "authentication_error"


class AuthorizationError(CatalogError):
    """Authenticated caller is not the subject of the request."""

    status_code = 403
    kind = "authorization_error"


class NotFoundError(CatalogError):
    """Requested resource does not exist."""

    status_code = 404
    kind = "not_found"


class StorageUnavailableError(CatalogError):
    """The storage backend could not complete the operation."""

    status_code = 503
    kind = "storage_unavailable"
