"""Database session configuration.

The store handle replaces a process-wide engine: every component receives a
``PartyStore`` in its constructor and opens short sessions from it.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from party_pulse.core.settings import Settings, settings as default_settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


class PartyStore:
    """Handle on the row-oriented persistent store keyed by party id."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessionmaker = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        db = self._sessionmaker()
        try:
            yield db
            db.commit()
        except BaseException:
            db.rollback()
            raise
        finally:
            db.close()

    @contextmanager
    def read_session(self) -> Iterator[Session]:
        """Yield a session for reads; nothing is committed."""
        db = self._sessionmaker()
        try:
            yield db
        finally:
            db.close()

    def create_tables(self) -> None:
        """Create all database tables."""
        # Ensure model modules are imported so that metadata is populated.
        import party_pulse.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables."""
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def create_store(url: str | None = None, *, config: Settings | None = None) -> PartyStore:
    """Build a store handle for ``url`` (defaults to the configured database).

    In-memory SQLite shares one connection across threads; file-backed SQLite
    gets a per-connection busy timeout so concurrent writers wait instead of
    failing immediately.
    """
    cfg = config or default_settings
    url = url or cfg.database_url
    kwargs: dict[str, Any] = {"echo": cfg.sql_debug}
    if url.startswith("sqlite"):
        connect_args: dict[str, Any] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            connect_args["timeout"] = 30
        kwargs["connect_args"] = connect_args
    else:
        kwargs["pool_pre_ping"] = True
    return PartyStore(create_engine(url, **kwargs))
