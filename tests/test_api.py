"""HTTP API tests.

Run the FastAPI application in-process through ``TestClient`` against a
temporary database.
"""

import sqlite3
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from tests.conftest import ALLOWED_ORIGIN, make_address

MIXED = "0xABCDEF0123456789ABCDEF0123456789ABCDEF01"
LOWER = MIXED.lower()


def parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class TestScenario:

    def test_register_check_remove_cycle(self, client):
        response = client.post("/api/whitelist/register", json={"address": MIXED})
        assert response.status_code == 201
        assert response.json()["address"] == LOWER

        response = client.post("/api/whitelist/register", json={"address": LOWER})
        assert response.status_code == 409

        response = client.get(f"/api/whitelist/check/{LOWER}")
        assert response.json()["isRegistered"] is True

        response = client.delete(f"/api/whitelist/{LOWER}")
        assert response.status_code == 200

        response = client.get(f"/api/whitelist/check/{LOWER}")
        assert response.json()["isRegistered"] is False


class TestRegisterEndpoint:

    def test_success_body(self, client, clock):
        response = client.post("/api/whitelist/register", json={"address": MIXED})

        body = response.json()
        assert set(body) == {"success", "message", "address", "registeredAt"}
        assert body["success"] is True
        assert body["message"] == "Successfully registered"
        assert parse_iso(body["registeredAt"]) == clock.now

    def test_stores_ip_and_user_agent_without_returning_them(self, client, database):
        response = client.post(
            "/api/whitelist/register",
            json={"address": MIXED},
            headers={"User-Agent": "wallet-connect/1.0"},
        )

        assert "ipAddress" not in response.json()
        assert "userAgent" not in response.json()
        row = database.fetchone(
            "SELECT ip_address, user_agent FROM whitelist WHERE address = ?", (LOWER,)
        )
        assert row["user_agent"] == "wallet-connect/1.0"
        assert row["ip_address"]

    @pytest.mark.parametrize("payload", [{}, {"address": ""}, {"address": 123}, {"address": None}, [MIXED]])
    def test_missing_or_wrong_type(self, client, payload):
        response = client.post("/api/whitelist/register", json=payload)

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid wallet address"}

    def test_no_body(self, client):
        response = client.post("/api/whitelist/register")

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_malformed_json(self, client):
        response = client.post(
            "/api/whitelist/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_bad_format(self, client):
        response = client.post("/api/whitelist/register", json={"address": "0x1234"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid Ethereum address format"}

    def test_duplicate_returns_existing(self, client, clock):
        first = client.post("/api/whitelist/register", json={"address": LOWER}).json()
        clock.advance(minutes=5)

        response = client.post("/api/whitelist/register", json={"address": MIXED})

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Address already registered"
        assert body["registration"] == {"address": LOWER, "registeredAt": first["registeredAt"]}


class TestCheckEndpoint:

    def test_not_registered(self, client):
        response = client.get(f"/api/whitelist/check/{MIXED}")

        assert response.status_code == 200
        assert response.json() == {"success": True, "isRegistered": False, "registration": None}

    def test_registered(self, client):
        created = client.post("/api/whitelist/register", json={"address": MIXED}).json()

        response = client.get(f"/api/whitelist/check/{MIXED}")

        assert response.json()["registration"] == {
            "address": LOWER,
            "registeredAt": created["registeredAt"],
        }

    def test_bad_format(self, client):
        response = client.get("/api/whitelist/check/0xnothex")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid Ethereum address format"

    def test_missing_address_is_unmatched_route(self, client):
        response = client.get("/api/whitelist/check/")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Endpoint not found"}


class TestListEndpoint:

    def _register(self, client, clock, n):
        for i in range(n):
            client.post("/api/whitelist/register", json={"address": make_address(i + 1)})
            clock.advance(seconds=30)

    def test_page_shape(self, client, clock):
        self._register(client, clock, 5)

        response = client.get("/api/whitelist/list", params={"page": 2, "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        assert body["total"] == 5
        assert body["page"] == 2
        assert body["totalPages"] == 3
        assert [r["address"] for r in body["registrations"]] == [make_address(3), make_address(2)]
        assert all(set(r) == {"address", "registeredAt"} for r in body["registrations"])

    def test_non_numeric_params_use_defaults(self, client, clock):
        self._register(client, clock, 3)

        body = client.get("/api/whitelist/list", params={"page": "first", "limit": "many"}).json()

        assert body["page"] == 1
        assert body["count"] == 3
        assert body["totalPages"] == 1

    def test_zero_limit_rejected(self, client):
        response = client.get("/api/whitelist/list", params={"limit": 0})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_oversized_page_is_empty(self, client, clock):
        self._register(client, clock, 2)

        response = client.get("/api/whitelist/list", params={"page": "99999999999999999999"})

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 0
        assert body["registrations"] == []
        assert body["total"] == 2
        assert body["page"] == 99999999999999999999

    def test_oversized_limit_is_capped(self, client, clock):
        self._register(client, clock, 3)

        response = client.get("/api/whitelist/list", params={"limit": "99999999999999999999"})

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 3
        assert body["totalPages"] == 1

    def test_empty(self, client):
        body = client.get("/api/whitelist/list").json()

        assert body == {
            "success": True,
            "count": 0,
            "total": 0,
            "page": 1,
            "totalPages": 0,
            "registrations": [],
        }


class TestStatsEndpoint:

    def test_counts(self, client, clock):
        client.post("/api/whitelist/register", json={"address": make_address(1)})
        clock.advance(days=-3)
        client.post("/api/whitelist/register", json={"address": make_address(2)})
        clock.advance(days=-10)
        client.post("/api/whitelist/register", json={"address": make_address(3)})
        clock.advance(days=13)

        response = client.get("/api/whitelist/stats")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "stats": {"total": 3, "today": 1, "lastWeek": 2},
        }


class TestRemoveEndpoint:

    def test_remove(self, client):
        client.post("/api/whitelist/register", json={"address": MIXED})

        response = client.delete(f"/api/whitelist/{MIXED}")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Address removed from whitelist"}

    def test_remove_unknown(self, client):
        response = client.delete(f"/api/whitelist/{LOWER}")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Address not found"}

    def test_remove_malformed(self, client):
        response = client.delete("/api/whitelist/garbage")

        assert response.status_code == 404


class TestHealth:

    def test_ok(self, client):
        client.post("/api/whitelist/register", json={"address": MIXED})

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "connected"
        assert body["registrations"] == 1
        assert body["timestamp"].endswith("Z")

    def test_database_closed(self, client, database):
        database.close()

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "disconnected"
        assert body["registrations"] is None

    def test_count_failure(self, client, app, monkeypatch):
        async def broken_count():
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(app.state.whitelist_service, "count", broken_count)

        response = client.get("/health")

        assert response.status_code == 500
        body = response.json()
        assert body["status"] == "error"
        assert body["error"] == "disk I/O error"
        assert "timestamp" in body


class TestErrorHandling:

    def test_unknown_route(self, client):
        response = client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Endpoint not found"}

    def test_path_served_only_for_delete(self, client):
        response = client.get("/api/whitelist/foo")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Endpoint not found"}

    def test_wrong_method_on_check(self, client):
        response = client.post(f"/api/whitelist/check/{LOWER}")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Endpoint not found"}

    def test_trailing_slash_is_not_redirected(self, client):
        response = client.get("/api/whitelist/stats/", follow_redirects=False)

        assert response.status_code == 404

    def test_internal_error_is_generic(self, app, monkeypatch):
        async def broken_stats():
            raise RuntimeError("disk I/O error at /var/lib/secret.db")

        monkeypatch.setattr(app.state.whitelist_service, "stats", broken_stats)

        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/whitelist/stats")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}
        assert "secret" not in response.text


class TestCors:

    def test_allowed_origin(self, client):
        response = client.get("/api/whitelist/stats", headers={"Origin": ALLOWED_ORIGIN})

        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_disallowed_origin_gets_no_cors_headers(self, client):
        response = client.get("/api/whitelist/stats", headers={"Origin": "https://evil.example"})

        assert "access-control-allow-origin" not in response.headers

    def test_request_without_origin(self, client):
        response = client.get("/api/whitelist/stats")

        assert response.status_code == 200

    def test_preflight(self, client):
        response = client.options(
            "/api/whitelist/register",
            headers={
                "Origin": ALLOWED_ORIGIN,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        allowed = response.headers["access-control-allow-methods"]
        for method in ("GET", "POST", "PUT", "DELETE", "OPTIONS"):
            assert method in allowed
