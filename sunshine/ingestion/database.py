from __future__ import annotations

from typing import Any, Optional

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import create_tables

log = structlog.get_logger(__name__)


class WeatherDatabase:
    """Handle on the local forecast store.

    Open it once at startup with :meth:`open`, pass it to whoever needs the
    store, and :meth:`close` it on shutdown. The handle can also be used as a
    context manager.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine: Optional[Engine] = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def open(cls, db_url: str, **engine_kwargs: Any) -> "WeatherDatabase":
        """Create the engine for ``db_url`` and make sure the schema exists."""
        engine = create_engine(db_url, future=True, **engine_kwargs)
        create_tables(engine)
        log.info("database_opened", url=engine.url.render_as_string(hide_password=True))
        return cls(engine)

    def _check_open(self) -> None:
        if self._engine is None:
            raise RuntimeError("weather database is closed")

    @property
    def engine(self) -> Engine:
        self._check_open()
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def session(self) -> Session:
        """Return a new session; the caller owns its lifetime."""
        self._check_open()
        return self._session_factory()

    def transaction(self):
        """Return a context manager yielding a session inside one transaction.

        The transaction commits when the block exits normally and rolls back
        when it raises.
        """
        self._check_open()
        return self._session_factory.begin()

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        log.info("database_closed")

    def __enter__(self) -> "WeatherDatabase":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
