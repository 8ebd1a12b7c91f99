import asyncio
import threading
import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlmodel import Session

import app.database as database
import app.routes.courses as courses_routes
from app.database import DatabaseHandle, ensure_database_configured, init_db, ping_database, preflight_check
from app.utils.failures import ConnectionRefused


# ============================================================================
# DatabaseHandle
# ============================================================================


def test_engine_is_created_once_under_concurrent_first_use():
    calls = []

    def url_factory():
        calls.append(1)
        time.sleep(0.01)
        return "sqlite://"

    handle = DatabaseHandle(url_factory)
    engines = []
    threads = [threading.Thread(target=lambda: engines.append(handle.get_engine())) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert len({id(engine) for engine in engines}) == 1


def test_acquire_release_disposes_at_zero():
    handle = DatabaseHandle(lambda: "sqlite://")
    handle.acquire()
    handle.acquire()
    handle.get_engine()

    handle.release()
    assert handle.is_initialized
    assert handle.ref_count == 1

    handle.release()
    assert not handle.is_initialized
    assert handle.ref_count == 0

    # Extra releases are ignored
    handle.release()
    assert handle.ref_count == 0


def test_missing_url_raises_connection_refused():
    handle = DatabaseHandle(lambda: None)

    with pytest.raises(ConnectionRefused):
        handle.get_engine()


def test_init_db_creates_tables():
    handle = DatabaseHandle(lambda: "sqlite://")

    init_db(handle)

    with handle.session() as session:
        assert session.execute(text("SELECT count(*) FROM users")).scalar_one() == 0


def test_missing_database_url_exits_outside_production(monkeypatch):
    monkeypatch.delenv("DATABASE_URL")
    monkeypatch.setenv("APP_ENV", "development")

    with pytest.raises(SystemExit) as exc_info:
        ensure_database_configured()

    assert exc_info.value.code == 1


def test_missing_database_url_is_tolerated_in_production(monkeypatch):
    monkeypatch.delenv("DATABASE_URL")
    monkeypatch.setenv("APP_ENV", "production")

    assert ensure_database_configured() is False


# ============================================================================
# Pre-flight check
# ============================================================================


def test_preflight_passes_against_live_database(session: Session):
    assert asyncio.run(preflight_check(session.get_bind(), timeout=1.0)) is True


def test_ping_uses_its_own_connection_and_returns_it(tmp_path):
    handle = DatabaseHandle(lambda: f"sqlite:///{tmp_path / 'ping.db'}")
    handle.acquire()
    engine = handle.get_engine()

    ping_database(engine)

    assert engine.pool.checkedout() == 0
    handle.release()


def test_preflight_fails_when_ping_raises(session: Session, monkeypatch):
    def broken_ping(_engine):
        raise ConnectionRefusedError("Connection refused")

    monkeypatch.setattr(database, "ping_database", broken_ping)

    assert asyncio.run(preflight_check(session.get_bind(), timeout=1.0)) is False


def test_preflight_times_out_on_slow_ping(session: Session, monkeypatch):
    monkeypatch.setattr(database, "ping_database", lambda _engine: time.sleep(0.5))

    started = time.monotonic()
    result = asyncio.run(preflight_check(session.get_bind(), timeout=0.05))

    assert result is False
    assert time.monotonic() - started < 0.5 + 0.4


def test_course_list_pings_an_engine_not_the_request_session(
    catalog, session: Session, client: TestClient, monkeypatch
):
    pinged = []
    monkeypatch.setattr(database, "ping_database", pinged.append)

    response = client.get("/api/courses")

    assert response.status_code == 200
    assert len(pinged) == 1
    assert isinstance(pinged[0], Engine)
    assert pinged[0] is session.get_bind()


def test_course_list_returns_503_without_running_query_when_preflight_times_out(
    catalog, client: TestClient, monkeypatch
):
    monkeypatch.setenv("PREFLIGHT_TIMEOUT_SECONDS", "0.05")
    monkeypatch.setattr(database, "ping_database", lambda _engine: time.sleep(0.3))

    def must_not_run(*args, **kwargs):
        raise AssertionError("listing query ran after a failed pre-flight check")

    monkeypatch.setattr(courses_routes, "list_published_courses", must_not_run)

    response = client.get("/api/courses")

    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Database connection error. Please try again later."
    assert body["error"] == "connection_refused"
