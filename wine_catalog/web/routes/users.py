"""User routes: accounts, sessions, favorites and ratings."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from wine_catalog.core.schema import FavoriteRequest, LoginRequest, RateRequest, RegisterRequest
from wine_catalog.web.dependencies import CredentialsDep, CurrentUserDep, RelationshipsDep

router = APIRouter(tags=["users"])


# ============================================================================
# Accounts and Sessions
# ============================================================================


@router.post("/users")
def register(body: RegisterRequest, credentials: CredentialsDep) -> JSONResponse:
    """Register a user and return its first access token."""
    session = credentials.register(body)
    return JSONResponse(session.model_dump(mode="json"))


@router.post("/sessions")
def login(body: LoginRequest, credentials: CredentialsDep) -> JSONResponse:
    """Log in, replacing any previous session of the account."""
    session = credentials.login(body)
    return JSONResponse(session.model_dump(mode="json"))


@router.post("/users/logout")
def logout(user: CurrentUserDep, credentials: CredentialsDep) -> JSONResponse:
    """Log out the caller."""
    credentials.logout(user)
    return JSONResponse({"message": "User is logged out"})


# ============================================================================
# Favorites
# ============================================================================


@router.get("/users/{user_id}/favorites")
def list_favorites(user_id: str, user: CurrentUserDep, relationships: RelationshipsDep) -> JSONResponse:
    """List the caller's favorite wines."""
    wines = relationships.list_favorites(user, user_id)
    return JSONResponse([w.model_dump(mode="json") for w in wines])


@router.put("/users/{user_id}/favorites")
def add_favorite(
    user_id: str, body: FavoriteRequest, user: CurrentUserDep, relationships: RelationshipsDep
) -> JSONResponse:
    """Add a wine to the caller's favorites and return the updated list."""
    wines = relationships.add_favorite(user, user_id, body.wine_id)
    return JSONResponse([w.model_dump(mode="json") for w in wines])


@router.delete("/users/{user_id}/favorites")
def remove_favorite(
    user_id: str, body: FavoriteRequest, user: CurrentUserDep, relationships: RelationshipsDep
) -> JSONResponse:
    """Remove a wine from the caller's favorites and return the updated list."""
    wines = relationships.remove_favorite(user, user_id, body.wine_id)
    return JSONResponse([w.model_dump(mode="json") for w in wines])


# ============================================================================
# Ratings
# ============================================================================


@router.get("/users/{user_id}/rated")
def list_ratings(user_id: str, user: CurrentUserDep, relationships: RelationshipsDep) -> JSONResponse:
    """List the caller's ratings."""
    ratings = relationships.list_ratings(user, user_id)
    return JSONResponse([r.model_dump(mode="json") for r in ratings])


@router.put("/users/{user_id}/rated")
def rate_wine(
    user_id: str, body: RateRequest, user: CurrentUserDep, relationships: RelationshipsDep
) -> JSONResponse:
    """Rate a wine: 201 when the rating is created, 200 when updated."""
    rating, created = relationships.rate(user, user_id, body.wine_id, body.rating)
    return JSONResponse(rating.model_dump(mode="json"), status_code=201 if created else 200)
