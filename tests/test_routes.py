# ABOUTME: Tests for the HTTP API: reflections, signup, admin auth, subscribers and newsletter.
# ABOUTME: Runs the real app over a temporary JSON store with a fake mail transport.

from collections.abc import Iterator
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from daily_reflection.config import Settings
from daily_reflection.email.dispatcher import NewsletterDispatcher
from daily_reflection.email.rendering import NewsletterRenderer
from daily_reflection.services.admin_sessions import AdminSessionManager
from daily_reflection.web.app import create_app

ADMIN_PASSWORD = "correct horse battery staple"


@pytest.fixture
def transport(transport_factory):
    """Transport that fails for one known address."""
    return transport_factory(failing={"broken@example.com"})


@pytest.fixture
def app(mock_settings: Settings, transport):
    """Create the app with the fake transport wired into the dispatcher."""
    app = create_app(mock_settings)
    app.state.dispatcher = NewsletterDispatcher(
        transport, NewsletterRenderer(mock_settings), timeout=1.0
    )
    return app


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    """Create a test client that runs the app lifespan."""
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def auth(client: TestClient) -> dict[str, str]:
    """Log in and return the Authorization header."""
    response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    return {"Authorization": f"Bearer {response.json()['token']}"}


def _reflection(title: str = "Gratitud", date: str = "2026-01-10") -> dict[str, str]:
    return {"title": title, "body": "Línea uno\nLínea dos", "date": date}


class TestHealth:
    """Tests for GET /api/health."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["store_backend"] == "json"


class TestAdminAuth:
    """Tests for login, verify and logout."""

    def test_login_returns_token(self, client: TestClient) -> None:
        response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})

        assert response.status_code == 200
        assert response.json()["token"]
        assert response.json()["expires_at"]

    def test_wrong_password(self, client: TestClient) -> None:
        """Wrong password gives 401 with an error body."""
        response = client.post("/api/admin/login", json={"password": "nope"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid password"}

    def test_verify(self, client: TestClient, auth: dict[str, str]) -> None:
        response = client.get("/api/admin/verify", headers=auth)

        assert response.status_code == 200
        assert response.json() == {"valid": True}

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": "Basic abc"},
            {"Authorization": "Bearer "},
            {"Authorization": "Bearer not-a-real-token"},
        ],
    )
    def test_verify_rejects_bad_credentials(self, client: TestClient, headers) -> None:
        """Missing, malformed or unknown tokens are refused."""
        response = client.get("/api/admin/verify", headers=headers)

        assert response.status_code == 401
        assert "error" in response.json()
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_logout_revokes_token(self, client: TestClient, auth: dict[str, str]) -> None:
        """After logout the same token no longer works."""
        assert client.post("/api/admin/logout", headers=auth).status_code == 200

        assert client.get("/api/admin/verify", headers=auth).status_code == 401

    def test_expired_token_refused(self, app, client: TestClient, clock) -> None:
        """Tokens stop working once their TTL has passed."""
        app.state.sessions = AdminSessionManager(
            ADMIN_PASSWORD, ttl=timedelta(hours=1), clock=clock
        )
        token = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD}).json()["token"]
        headers = {"Authorization": f"Bearer {token}"}
        assert client.get("/api/admin/verify", headers=headers).status_code == 200

        clock.advance(timedelta(hours=1))

        assert client.get("/api/admin/verify", headers=headers).status_code == 401

    def test_login_disabled_without_password(self, mock_settings: Settings) -> None:
        """No configured password means nobody can log in."""
        settings = mock_settings.model_copy(update={"admin_password": None})
        with TestClient(create_app(settings)) as client:
            response = client.post("/api/admin/login", json={"password": ""})

        assert response.status_code == 401


class TestReflections:
    """Tests for /api/reflections."""

    def test_empty_list(self, client: TestClient) -> None:
        response = client.get("/api/reflections")

        assert response.status_code == 200
        assert response.json() == []

    def test_create_requires_auth(self, client: TestClient) -> None:
        """Writes without a token are refused and nothing is stored."""
        response = client.post("/api/reflections", json=_reflection())

        assert response.status_code == 401
        assert client.get("/api/reflections").json() == []

    def test_crud(self, client: TestClient, auth: dict[str, str]) -> None:
        """Create, read, update and delete a reflection."""
        created = client.post("/api/reflections", json=_reflection(), headers=auth)
        assert created.status_code == 200
        assert created.json()["success"] is True
        entry_id = created.json()["reflection"]["id"]

        fetched = client.get(f"/api/reflections/{entry_id}")
        assert fetched.json()["title"] == "Gratitud"

        updated = client.put(
            f"/api/reflections/{entry_id}",
            json=_reflection(title="Paciencia", date="2026-01-11"),
            headers=auth,
        )
        assert updated.json()["reflection"] == {
            "id": entry_id,
            "title": "Paciencia",
            "body": "Línea uno\nLínea dos",
            "date": "2026-01-11",
        }

        deleted = client.delete(f"/api/reflections/{entry_id}", headers=auth)
        assert deleted.json() == {"success": True}

        assert client.get(f"/api/reflections/{entry_id}").status_code == 404
        assert client.delete(f"/api/reflections/{entry_id}", headers=auth).status_code == 404

    def test_list_sorted_by_date(self, client: TestClient, auth: dict[str, str]) -> None:
        for date in ("2026-01-01", "2026-03-01", "2026-02-01"):
            client.post("/api/reflections", json=_reflection(date=date), headers=auth)

        dates = [e["date"] for e in client.get("/api/reflections").json()]

        assert dates == ["2026-03-01", "2026-02-01", "2026-01-01"]

    def test_missing_fields(self, client: TestClient, auth: dict[str, str]) -> None:
        response = client.post("/api/reflections", json={"title": "Solo"}, headers=auth)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields: body, date"}

    def test_update_unknown(self, client: TestClient, auth: dict[str, str]) -> None:
        response = client.put("/api/reflections/missing", json=_reflection(), headers=auth)

        assert response.status_code == 404

    def test_corrupt_store_is_500(self, client: TestClient, mock_settings: Settings) -> None:
        """Store failures answer with a generic 500."""
        mock_settings.data_file.write_text("{broken")

        response = client.get("/api/reflections")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


class TestSubscribe:
    """Tests for POST /api/subscribe."""

    def test_subscribe(self, client: TestClient) -> None:
        response = client.post("/api/subscribe", json={"email": " New@Example.com "})

        assert response.status_code == 201
        assert response.json()["subscriber"]["email"] == "new@example.com"
        assert response.json()["subscriber"]["selected"] is False

    def test_duplicate(self, client: TestClient) -> None:
        client.post("/api/subscribe", json={"email": "dup@example.com"})

        response = client.post("/api/subscribe", json={"email": "DUP@example.com"})

        assert response.status_code == 400
        assert "already subscribed" in response.json()["error"]

    @pytest.mark.parametrize("payload", [{}, {"email": ""}, {"email": "bad"}])
    def test_invalid(self, client: TestClient, payload) -> None:
        response = client.post("/api/subscribe", json=payload)

        assert response.status_code == 400

    def test_markup_in_address_refused(self, client: TestClient) -> None:
        """Addresses that could break out of an HTML attribute are never stored."""
        payload = {"email": "\"autofocus/onfocus=alert(document.title)//\"@a.bc"}

        response = client.post("/api/subscribe", json=payload)

        assert response.status_code == 400
        assert "Invalid email" in response.json()["error"]

    def test_malformed_body(self, client: TestClient) -> None:
        """A body that is not JSON is a 400, not a 422."""
        response = client.post(
            "/api/subscribe", content="nope", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert "error" in response.json()


class TestSubscriberAdmin:
    """Tests for /api/admin/subscribers."""

    @pytest.fixture(autouse=True)
    def subscribers(self, client: TestClient) -> None:
        for email in ("a@example.com", "b@example.com"):
            client.post("/api/subscribe", json={"email": email})

    def test_list_requires_auth(self, client: TestClient) -> None:
        assert client.get("/api/admin/subscribers").status_code == 401

    def test_list(self, client: TestClient, auth: dict[str, str]) -> None:
        emails = [s["email"] for s in client.get("/api/admin/subscribers", headers=auth).json()]

        assert emails == ["a@example.com", "b@example.com"]

    def test_select_one(self, client: TestClient, auth: dict[str, str]) -> None:
        response = client.patch(
            "/api/admin/subscribers/a@example.com", json={"selected": True}, headers=auth
        )

        assert response.status_code == 200
        assert response.json()["selected"] is True

    def test_select_requires_boolean(self, client: TestClient, auth: dict[str, str]) -> None:
        """Strings like "yes" are not accepted as a flag."""
        response = client.patch(
            "/api/admin/subscribers/a@example.com", json={"selected": "yes"}, headers=auth
        )

        assert response.status_code == 400

    def test_select_unknown(self, client: TestClient, auth: dict[str, str]) -> None:
        response = client.patch(
            "/api/admin/subscribers/ghost@example.com", json={"selected": True}, headers=auth
        )

        assert response.status_code == 404

    def test_bulk_select(self, client: TestClient, auth: dict[str, str]) -> None:
        response = client.post(
            "/api/admin/subscribers/select", json={"selected": True}, headers=auth
        )

        assert response.json() == {"success": True, "updated": 2}
        listed = client.get("/api/admin/subscribers", headers=auth).json()
        assert all(s["selected"] for s in listed)

    def test_delete(self, client: TestClient, auth: dict[str, str]) -> None:
        response = client.delete("/api/admin/subscribers/a@example.com", headers=auth)

        assert response.json() == {"success": True}
        again = client.delete("/api/admin/subscribers/a@example.com", headers=auth)
        assert again.status_code == 404


class TestNewsletter:
    """Tests for POST /api/admin/newsletter."""

    def _subscribe(self, client: TestClient, auth: dict[str, str], email: str, selected: bool):
        client.post("/api/subscribe", json={"email": email})
        if selected:
            client.patch(f"/api/admin/subscribers/{email}", json={"selected": True}, headers=auth)

    def test_sends_to_selected_only(
        self, client: TestClient, auth: dict[str, str], transport
    ) -> None:
        """Unselected subscribers get nothing."""
        self._subscribe(client, auth, "yes@example.com", selected=True)
        self._subscribe(client, auth, "no@example.com", selected=False)

        response = client.post(
            "/api/admin/newsletter", json={"subject": "Hola", "body": "Texto"}, headers=auth
        )

        assert response.status_code == 200
        assert response.json()["sent_count"] == 1
        assert response.json()["failed_count"] == 0
        assert [call[0] for call in transport.calls] == ["yes@example.com"]

    def test_partial_failure_reported(
        self, client: TestClient, auth: dict[str, str], transport
    ) -> None:
        """A failing recipient is reported without stopping the others."""
        self._subscribe(client, auth, "broken@example.com", selected=True)
        self._subscribe(client, auth, "fine@example.com", selected=True)

        body = client.post(
            "/api/admin/newsletter", json={"subject": "Hola", "body": "Texto"}, headers=auth
        ).json()

        assert body["sent_count"] == 1
        assert body["failed_count"] == 1
        failed = [r for r in body["results"] if not r["success"]]
        assert failed[0]["address"] == "broken@example.com"
        assert "Mailbox unavailable" in failed[0]["error_detail"]

    def test_no_selected_recipients(
        self, client: TestClient, auth: dict[str, str], transport
    ) -> None:
        self._subscribe(client, auth, "no@example.com", selected=False)

        response = client.post(
            "/api/admin/newsletter", json={"subject": "Hola", "body": "Texto"}, headers=auth
        )

        assert response.status_code == 400
        assert transport.calls == []

    def test_blank_subject(self, client: TestClient, auth: dict[str, str]) -> None:
        self._subscribe(client, auth, "yes@example.com", selected=True)

        response = client.post(
            "/api/admin/newsletter", json={"subject": " ", "body": "Texto"}, headers=auth
        )

        assert response.status_code == 400

    def test_requires_auth(self, client: TestClient, transport) -> None:
        response = client.post("/api/admin/newsletter", json={"subject": "Hola", "body": "Texto"})

        assert response.status_code == 401
        assert transport.calls == []


class TestPages:
    """Tests for HTML pages."""

    def test_admin_panel(self, client: TestClient) -> None:
        response = client.get("/admin")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]

    def test_admin_panel_escapes_quotes(self, client: TestClient) -> None:
        """The panel's escaping helper covers attribute quotes."""
        page = client.get("/admin").text

        assert "&quot;" in page
        assert "&#39;" in page

    def test_public_site_served_when_present(self, mock_settings: Settings) -> None:
        """The web directory is mounted at the root."""
        mock_settings.web_dir.mkdir()
        (mock_settings.web_dir / "index.html").write_text("<h1>Reflexión</h1>", encoding="utf-8")

        with TestClient(create_app(mock_settings)) as client:
            response = client.get("/")

        assert response.status_code == 200
        assert "Reflexión" in response.text
