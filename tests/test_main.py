import asyncio
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

import main
from core.database import is_unique_violation
from main import integrity_error_handler


def test_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_security_headers(client):
    r = client.get("/")
    assert r.headers["x-content-type-options"] == "nosniff"
    assert r.headers["x-frame-options"] == "DENY"
    assert r.headers["cross-origin-resource-policy"] == "cross-origin"
    # HSTS only in production
    assert "strict-transport-security" not in r.headers


def test_cors_allows_frontend_with_credentials(client):
    r = client.options(
        "/items",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
    )
    assert r.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert r.headers["access-control-allow-credentials"] == "true"


def test_unknown_route(client):
    assert client.get("/nope").status_code == 404


def _integrity_app(message):
    failing_app = FastAPI()
    failing_app.add_exception_handler(IntegrityError, integrity_error_handler)

    @failing_app.post("/save")
    async def save():
        raise IntegrityError("INSERT INTO items ...", {}, Exception(message))

    return failing_app


def test_unique_violation_maps_to_conflict():
    r = TestClient(_integrity_app("UNIQUE constraint failed: users.email")).post("/save")
    assert r.status_code == 409
    assert r.json() == {"error": "Resource already exists"}


def test_other_integrity_errors_are_server_errors():
    r = TestClient(_integrity_app("FOREIGN KEY constraint failed")).post("/save")
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}


def test_is_unique_violation_reads_postgres_codes():
    class PgError(Exception):
        def __init__(self, pgcode):
            self.pgcode = pgcode

    class Wrapped:
        def __init__(self, orig):
            self.orig = orig

    assert is_unique_violation(Wrapped(PgError("23505")))
    assert not is_unique_violation(Wrapped(PgError("23503")))
    assert not is_unique_violation(Wrapped(Exception("CHECK constraint failed")))


def test_keep_alive_loop_survives_failures(monkeypatch, caplog):
    attempts = []

    async def failing_ping():
        attempts.append(1)
        if len(attempts) == 3:
            raise asyncio.CancelledError()
        raise ValueError("bad keep-alive url")

    monkeypatch.setattr(main, "KEEP_ALIVE_INTERVAL_SEC", 0)
    monkeypatch.setattr(main, "_keep_alive_once", failing_ping)

    with caplog.at_level(logging.WARNING, logger="webar"):
        with pytest.raises(asyncio.CancelledError):
            asyncio.run(main._keep_alive_loop())

    assert len(attempts) == 3
    assert caplog.text.count("[keep-alive] Ping failed: bad keep-alive url") == 2
