"""Tests for web routes."""

import tempfile
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from wine_catalog.core.config import Settings
from wine_catalog.core.enums import WineType
from wine_catalog.core.schema import Producer, Wine
from wine_catalog.db.engine import create_db_engine, create_session_factory, init_db
from wine_catalog.services.catalog_service import CatalogStore
from wine_catalog.web.app import create_app


@pytest.fixture
def temp_db_path():
    """Create a temporary database file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def session_factory(temp_db_path):
    """Create a session factory on a fresh database."""
    engine = create_db_engine(temp_db_path)
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def client(session_factory) -> TestClient:
    """Create a test client bound to the test database."""
    settings = Settings(token_bytes=32, password_hash_iterations=1_000)
    app = create_app(settings=settings, session_factory=session_factory)
    return TestClient(app)


@pytest.fixture
def catalog_data(session_factory) -> dict:
    """Seed a producer and two wines."""
    catalog = CatalogStore(session_factory)
    tempier = catalog.create_producer(Producer(name="Domaine Tempier", country="France"))
    bandol = catalog.create_wine(Wine(
        name="Bandol Rouge",
        country="France",
        origin="Provence",
        grape="Mourvedre",
        year=2019,
        type=WineType.RED,
        average_price=35.0,
        producer_id=tempier.id,
    ))
    barolo = catalog.create_wine(Wine(
        name="Barolo Riserva",
        country="Italy",
        origin="Piedmont",
        grape="Nebbiolo",
        year=2016,
        type=WineType.RED,
        average_price=90.0,
    ))
    return {"producer": tempier, "bandol": bandol, "barolo": barolo}


def register(client: TestClient, email: str = "anna@example.com") -> dict:
    """Register a user and return the session body."""
    response = client.post("/users", json={
        "name": "Anna",
        "surname": "Berg",
        "email": email,
        "password": "secret-pw",
    })
    assert response.status_code == 200
    return response.json()


def auth(session: dict) -> dict:
    return {"Authorization": f"Bearer {session['access_token']}"}


class TestSystemRoutes:
    """Tests for the root and health routes."""

    def test_root_lists_endpoints(self, client: TestClient) -> None:
        """Test that the root route lists the API endpoints."""
        response = client.get("/")

        assert response.status_code == 200
        paths = {entry["path"] for entry in response.json()}
        assert {"/wines", "/wines/{wine_id}", "/producers", "/users/{user_id}/rated"} <= paths

    def test_root_lists_methods(self, client: TestClient) -> None:
        """Test that each listed endpoint carries its HTTP methods."""
        endpoints = {entry["path"]: entry["methods"] for entry in client.get("/").json()}

        assert endpoints["/users/{user_id}/favorites"] == ["DELETE", "GET", "PUT"]
        assert endpoints["/users"] == ["POST"]

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_storage_unavailable(self, temp_db_path) -> None:
        """Test that an unreachable database yields 503."""
        missing = temp_db_path.parent / "missing" / "dir" / "test.db"
        engine = create_db_engine(f"sqlite:///{missing}")
        app = create_app(settings=Settings(), session_factory=create_session_factory(engine))
        client = TestClient(app)

        assert client.get("/health").status_code == 503
        response = client.get("/wines")
        assert response.status_code == 503
        assert response.json()["error"] == "storage_unavailable"
        engine.dispose()


class TestWineRoutes:
    """Tests for wine routes."""

    def test_search_by_country(self, client: TestClient, catalog_data) -> None:
        """Test searching wines case-insensitively."""
        response = client.get("/wines", params={"query": "france"})

        assert response.status_code == 200
        body = response.json()
        assert [w["name"] for w in body] == ["Bandol Rouge"]
        assert body[0]["producer"]["name"] == "Domaine Tempier"

    def test_search_accented_upper_case(self, client: TestClient, session_factory) -> None:
        """Test that accented upper-case names match in any case."""
        CatalogStore(session_factory).create_wine(Wine(
            name="CHÂTEAU MUSAR",
            country="Lebanon",
            origin="Bekaa Valley",
            grape="Cinsault",
            year=2015,
            type=WineType.RED,
        ))

        for query in ("château", "CHÂTEAU", "Château Musar"):
            response = client.get("/wines", params={"query": query})
            assert [w["name"] for w in response.json()] == ["CHÂTEAU MUSAR"]

    def test_search_no_match_is_empty(self, client: TestClient, catalog_data) -> None:
        response = client.get("/wines", params={"query": "zinfandel"})

        assert response.status_code == 200
        assert response.json() == []

    def test_search_sorted_by_price(self, client: TestClient, catalog_data) -> None:
        response = client.get("/wines", params={"sort": "average_price_desc"})

        assert [w["name"] for w in response.json()] == ["Barolo Riserva", "Bandol Rouge"]

    def test_unknown_sort_uses_default(self, client: TestClient, catalog_data) -> None:
        response = client.get("/wines", params={"sort": "vintage"})

        assert response.status_code == 200
        assert [w["name"] for w in response.json()] == ["Bandol Rouge", "Barolo Riserva"]

    def test_get_wine(self, client: TestClient, catalog_data) -> None:
        wine_id = str(catalog_data["bandol"].id)

        response = client.get(f"/wines/{wine_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == wine_id
        assert body["average_rating"] is None
        assert body["ratings_count"] == 0

    @pytest.mark.parametrize("wine_id", [str(uuid4()), "not-an-id"])
    def test_get_wine_not_found(self, client: TestClient, wine_id) -> None:
        """Test that unknown and malformed ids are 404."""
        response = client.get(f"/wines/{wine_id}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestProducerRoutes:
    """Tests for producer routes."""

    def test_list_producers(self, client: TestClient, catalog_data) -> None:
        response = client.get("/producers")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Domaine Tempier"]

    def test_list_producers_filtered(self, client: TestClient, catalog_data) -> None:
        """Test exact-match filters and ignored unknown parameters."""
        assert client.get("/producers", params={"country": "Italy"}).json() == []
        assert len(client.get("/producers", params={"country": "France"}).json()) == 1
        assert len(client.get("/producers", params={"vintage": "2019"}).json()) == 1

    def test_get_producer(self, client: TestClient, catalog_data) -> None:
        producer_id = str(catalog_data["producer"].id)

        response = client.get(f"/producers/{producer_id}")

        assert response.status_code == 200
        assert response.json()["name"] == "Domaine Tempier"

    def test_get_producer_malformed_id(self, client: TestClient) -> None:
        """Test that a malformed producer id is 400."""
        response = client.get("/producers/not-an-id")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_get_producer_not_found(self, client: TestClient) -> None:
        assert client.get(f"/producers/{uuid4()}").status_code == 404

    def test_list_producer_wines(self, client: TestClient, catalog_data) -> None:
        producer_id = str(catalog_data["producer"].id)

        response = client.get(f"/producers/{producer_id}/wines")

        assert response.status_code == 200
        assert [w["name"] for w in response.json()] == ["Bandol Rouge"]


class TestAccountRoutes:
    """Tests for registration and sessions."""

    def test_register(self, client: TestClient) -> None:
        body = register(client)

        assert body["name"] == "Anna"
        assert len(body["access_token"]) == 64
        assert "password" not in body
        assert "password_hash" not in body

    def test_register_returns_200_then_login_rotates(self, client: TestClient) -> None:
        """Test register and login both answer 200 with distinct tokens."""
        credentials = {"email": "a@b.com", "password": "secret1"}
        registered = client.post("/users", json={"name": "Ann", "surname": "Berg", **credentials})

        assert registered.status_code == 200
        assert registered.json()["access_token"]

        login = client.post("/sessions", json=credentials)

        assert login.status_code == 200
        assert login.json()["access_token"] != registered.json()["access_token"]

    def test_register_duplicate_email(self, client: TestClient) -> None:
        register(client)

        response = client.post("/users", json={
            "name": "Anna",
            "surname": "Berg",
            "email": "ANNA@example.com",
            "password": "secret-pw",
        })

        assert response.status_code == 400

    def test_register_invalid_body(self, client: TestClient) -> None:
        """Test that field constraint violations are 400."""
        response = client.post("/users", json={
            "name": "A",
            "surname": "Berg",
            "email": "not-an-email",
            "password": "pw",
        })

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_login_and_logout(self, client: TestClient) -> None:
        """Test that login rotates the token and logout ends the session."""
        first = register(client)

        login = client.post("/sessions", json={"email": "anna@example.com", "password": "secret-pw"})
        assert login.status_code == 200
        second = login.json()
        assert second["id"] == first["id"]

        # The earlier token no longer resolves
        assert client.get(f"/users/{first['id']}/favorites", headers=auth(first)).status_code == 401

        logout = client.post("/users/logout", headers=auth(second))
        assert logout.status_code == 200
        assert client.get(f"/users/{second['id']}/favorites", headers=auth(second)).status_code == 401

    def test_login_bad_password(self, client: TestClient) -> None:
        register(client)

        response = client.post("/sessions", json={"email": "anna@example.com", "password": "wrong-pw"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"


class TestFavoriteRoutes:
    """Tests for favorite routes."""

    def test_missing_token(self, client: TestClient, catalog_data) -> None:
        response = client.get(f"/users/{uuid4()}/favorites")

        assert response.status_code == 401
        assert response.json()["error"] == "authentication_error"

    def test_other_user_forbidden(self, client: TestClient, catalog_data) -> None:
        """Test that a user cannot touch another user's favorites."""
        anna = register(client)
        bob = register(client, "bob@example.com")
        wine_id = str(catalog_data["bandol"].id)

        get = client.get(f"/users/{bob['id']}/favorites", headers=auth(anna))
        put = client.put(f"/users/{bob['id']}/favorites", headers=auth(anna), json={"wine_id": wine_id})

        assert get.status_code == 403
        assert put.status_code == 403

    def test_add_and_remove_favorite(self, client: TestClient, catalog_data) -> None:
        """Test adding twice then removing a favorite."""
        anna = register(client)
        url = f"/users/{anna['id']}/favorites"
        wine_id = str(catalog_data["bandol"].id)

        first = client.put(url, headers=auth(anna), json={"wine_id": wine_id})
        second = client.put(url, headers=auth(anna), json={"wine_id": wine_id})

        assert first.status_code == 200
        assert [w["id"] for w in second.json()] == [wine_id]
        assert [w["id"] for w in client.get(url, headers=auth(anna)).json()] == [wine_id]

        removed = client.request("DELETE", url, headers=auth(anna), json={"wine_id": wine_id})
        assert removed.status_code == 200
        assert removed.json() == []

        again = client.request("DELETE", url, headers=auth(anna), json={"wine_id": wine_id})
        assert again.status_code == 200

    def test_favorite_unknown_wine(self, client: TestClient) -> None:
        anna = register(client)

        response = client.put(
            f"/users/{anna['id']}/favorites", headers=auth(anna), json={"wine_id": str(uuid4())}
        )

        assert response.status_code == 404

    def test_favorite_missing_body_field(self, client: TestClient) -> None:
        anna = register(client)

        response = client.put(f"/users/{anna['id']}/favorites", headers=auth(anna), json={})

        assert response.status_code == 400


class TestRatingRoutes:
    """Tests for rating routes."""

    def test_rate_then_rerate(self, client: TestClient, catalog_data) -> None:
        """Test that re-rating updates the single rating in place."""
        anna = register(client)
        url = f"/users/{anna['id']}/rated"
        wine_id = str(catalog_data["bandol"].id)

        created = client.put(url, headers=auth(anna), json={"wine_id": wine_id, "rating": 4})
        updated = client.put(url, headers=auth(anna), json={"wine_id": wine_id, "rating": 2})

        assert created.status_code == 201
        assert updated.status_code == 200
        assert updated.json()["id"] == created.json()["id"]

        ratings = client.get(url, headers=auth(anna)).json()
        assert len(ratings) == 1
        assert ratings[0]["value"] == 2

        wine = client.get(f"/wines/{wine_id}").json()
        assert wine["average_rating"] == 2
        assert wine["ratings_count"] == 1

    @pytest.mark.parametrize("rating", [0, 6, "five"])
    def test_rate_out_of_range(self, client: TestClient, catalog_data, rating) -> None:
        anna = register(client)

        response = client.put(
            f"/users/{anna['id']}/rated",
            headers=auth(anna),
            json={"wine_id": str(catalog_data["bandol"].id), "rating": rating},
        )

        assert response.status_code == 400

    def test_rate_other_user_forbidden(self, client: TestClient, catalog_data) -> None:
        anna = register(client)
        bob = register(client, "bob@example.com")

        response = client.put(
            f"/users/{bob['id']}/rated",
            headers=auth(anna),
            json={"wine_id": str(catalog_data["bandol"].id), "rating": 3},
        )

        assert response.status_code == 403

    def test_rate_unknown_wine(self, client: TestClient) -> None:
        anna = register(client)

        response = client.put(
            f"/users/{anna['id']}/rated",
            headers=auth(anna),
            json={"wine_id": str(uuid4()), "rating": 3},
        )

        assert response.status_code == 404

    def test_ratings_sort_wines(self, client: TestClient, catalog_data) -> None:
        """Test sorting search results by average rating."""
        anna = register(client)
        url = f"/users/{anna['id']}/rated"
        client.put(url, headers=auth(anna), json={"wine_id": str(catalog_data["bandol"].id), "rating": 2})
        client.put(url, headers=auth(anna), json={"wine_id": str(catalog_data["barolo"].id), "rating": 5})

        response = client.get("/wines", params={"sort": "average_rating_desc"})

        assert [w["name"] for w in response.json()] == ["Barolo Riserva", "Bandol Rouge"]
