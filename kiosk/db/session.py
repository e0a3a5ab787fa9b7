"""
kiosk/db/session.py – Engine factory + Session helper.

One engine per database URL, cached for the process lifetime.
`db_session()` is the unit of atomicity: everything inside the block
commits together or rolls back together.
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from .models import Base


# ── Engine cache (1 engine / database url) ────────────────────────────────────

_engines: dict[str, Engine] = {}
_session_factories: dict[str, sessionmaker] = {}


def _get_engine(url: str) -> Engine:
    if url not in _engines:
        parsed = make_url(url)
        is_sqlite = parsed.get_backend_name() == "sqlite"
        if is_sqlite and parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False} if is_sqlite else {},
            echo=False,
        )
        if is_sqlite:
            # WAL lets the status watchers read while a payment is writing
            @event.listens_for(engine, "connect")
            def set_wal(conn, _):
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")

        _engines[url] = engine
        _session_factories[url] = sessionmaker(bind=engine, expire_on_commit=False)
    return _engines[url]


def get_session_factory(url: str) -> sessionmaker:
    _get_engine(url)
    return _session_factories[url]


def init_schema(url: str) -> None:
    """Create missing tables (users, orders, status)."""
    Base.metadata.create_all(_get_engine(url))


@contextmanager
def db_session(url: str) -> Generator[Session, None, None]:
    """Context manager returning a Session; commits, rolls back and closes itself."""
    factory = get_session_factory(url)
    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
