import asyncio
import logging
import threading
from pathlib import Path
from typing import Callable, Generator, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from app.settings import get_database_url, get_preflight_timeout, is_production, sql_echo_enabled
from app.utils.failures import ConnectionRefused

logger = logging.getLogger(__name__)


class DatabaseHandle:
    """
    Process-wide owner of the SQLAlchemy engine.

    The engine (and its connection pool) is created on first use and shared by
    every request. Creation happens under a lock, so concurrent first requests
    still end up with a single pool. acquire()/release() count the holders;
    the pool is disposed when the last holder releases it.
    """

    def __init__(self, url_factory: Callable[[], Optional[str]] = get_database_url):
        self._url_factory = url_factory
        self._lock = threading.RLock()
        self._engine: Optional[Engine] = None
        self._refs = 0

    @property
    def ref_count(self) -> int:
        return self._refs

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def get_engine(self) -> Engine:
        engine = self._engine
        if engine is not None:
            return engine
        with self._lock:
            if self._engine is None:
                self._engine = self._create_engine()
            return self._engine

    def acquire(self) -> "DatabaseHandle":
        with self._lock:
            self._refs += 1
        return self

    def release(self) -> None:
        with self._lock:
            if self._refs == 0:
                return
            self._refs -= 1
            if self._refs == 0 and self._engine is not None:
                self._engine.dispose()
                self._engine = None
                logger.info("Database pool disposed")

    def session(self) -> Session:
        return Session(self.get_engine())

    def _create_engine(self) -> Engine:
        url = self._url_factory()
        if not url:
            raise ConnectionRefused("DATABASE_URL is not configured")

        is_sqlite = url.startswith("sqlite")
        connect_args = {"check_same_thread": False} if is_sqlite else {}
        if is_sqlite and url.startswith("sqlite:///") and url != "sqlite:///:memory:":
            Path(url.replace("sqlite:///", "", 1)).parent.mkdir(parents=True, exist_ok=True)

        logger.info("Creating database engine (%s)", url.split("://", 1)[0])
        return create_engine(
            url,
            echo=sql_echo_enabled(),
            connect_args=connect_args,
            pool_pre_ping=not is_sqlite,
        )


db = DatabaseHandle()


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with db.session() as session:
        yield session


def init_db(handle: Optional[DatabaseHandle] = None) -> None:
    """Create all tables that do not exist yet"""
    # Import all models to ensure they're registered with SQLModel metadata
    import app.models  # noqa: F401

    SQLModel.metadata.create_all((handle or db).get_engine())


def ensure_database_configured() -> bool:
    """
    Startup check for DATABASE_URL.

    Outside production a missing URL stops the process with status 1. In
    production the process keeps running; requests then fail as 503.
    """
    if get_database_url():
        return True
    logger.error("DATABASE_URL is not defined in environment variables")
    if not is_production():
        raise SystemExit(1)
    return False


def ping_database(engine: Engine) -> None:
    """
    Trivial round-trip query on a connection of its own; raises if the
    database is unreachable.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


async def preflight_check(engine: Engine, timeout: Optional[float] = None) -> bool:
    """
    Race a ping query against a timer.

    Returns False when the ping fails or the timer fires first. The ping
    runs on the default executor so a hanging connection cannot block the
    event loop; wait_for cancels the timer on whichever path settles first.
    The request session is never handed to the executor thread.
    """
    if timeout is None:
        timeout = get_preflight_timeout()
    loop = asyncio.get_running_loop()
    try:
        await asyncio.wait_for(loop.run_in_executor(None, ping_database, engine), timeout)
    except asyncio.TimeoutError:
        logger.error("Database pre-flight check did not answer within %.1fs", timeout)
        return False
    except Exception:
        logger.exception("Database pre-flight check failed")
        return False
    return True
