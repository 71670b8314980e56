"""SQLAlchemy engine and session management."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import DatabaseConfig
from .exceptions import PersistenceError
from .models import Base

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

# Keys stored in ``Session.info`` for the lifetime of one transaction
AUTHOR_KEY = "eventaudit.author"
REVISION_KEY = "eventaudit.revision"

# Connection execution option marking a write transaction
WRITE_OPTION = "eventaudit_write"


def _clear_revision(session: Session) -> None:
    """Forget the revision allocated by the transaction that just ended."""
    session.info.pop(REVISION_KEY, None)


class Database:
    """Explicitly constructed, explicitly closed storage handle.

    Owns the engine and the session factory. Pass it to whatever needs a
    transaction, and call ``close()`` (or use it as a context manager) when
    done.

    Usage:
        with Database("sqlite:///events.db") as db:
            db.init_schema()
            with db.transaction(author="alice") as session:
                EventStore(session).create(Event("Launch"))
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        self.url = url or DatabaseConfig.get_db_url()
        self._closed = False

        url_obj = make_url(self.url)
        engine_kwargs = {
            'echo': DatabaseConfig.is_echo_enabled() if echo is None else echo,
            'pool_pre_ping': True,
        }
        if url_obj.get_backend_name() == 'sqlite':
            engine_kwargs['connect_args'] = {"check_same_thread": False}  # SQLite specific
            if url_obj.database in (None, '', ':memory:'):
                # Every session must see the same in-memory database
                engine_kwargs['poolclass'] = StaticPool

        self.engine: Engine = create_engine(self.url, **engine_kwargs)

        if url_obj.get_backend_name() == 'sqlite':
            self._configure_sqlite(self.engine)

        self._session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False
        )
        event.listen(self._session_factory, "after_commit", _clear_revision)
        event.listen(self._session_factory, "after_rollback", _clear_revision)

        logger.debug(f"Database handle created for {url_obj.render_as_string(hide_password=True)}")

    @staticmethod
    def _configure_sqlite(engine: Engine) -> None:
        """Enable foreign keys and take the write lock when a write transaction begins.

        pysqlite's own transaction handling is switched off so that
        transactions can be started explicitly. Connections opened with the
        ``WRITE_OPTION`` execution option start with ``BEGIN IMMEDIATE``, so
        concurrent writers queue on the busy timeout instead of failing on
        lock upgrade. Everything else starts a deferred ``BEGIN`` and reads
        alongside writers under WAL.
        """

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA journal_mode=WAL")  # Better concurrency
            cursor.close()

        @event.listens_for(engine, "begin")
        def do_begin(connection):
            if connection.get_execution_options().get(WRITE_OPTION):
                connection.exec_driver_sql("BEGIN IMMEDIATE")
            else:
                connection.exec_driver_sql("BEGIN")

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise PersistenceError("Database handle is closed")

    def init_schema(self) -> None:
        """Create all tables that do not exist yet."""
        self._check_open()
        Base.metadata.create_all(self.engine)

    def drop_schema(self) -> None:
        """Drop all tables (useful for testing)."""
        self._check_open()
        Base.metadata.drop_all(self.engine)

    def migrate(self, revision: str = "head") -> None:
        """Bring the schema to ``revision`` with the bundled Alembic scripts."""
        self._check_open()
        alembic_cfg = AlembicConfig()
        alembic_cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
        # ConfigParser interpolation treats '%' specially
        alembic_cfg.set_main_option("sqlalchemy.url", self.url.replace("%", "%%"))

        with self.engine.begin() as connection:
            alembic_cfg.attributes["connection"] = connection
            command.upgrade(alembic_cfg, revision)
        logger.info(f"Database migrated to {revision}")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Get a database session with automatic cleanup.

        The caller commits. Any exception rolls back.
        """
        self._check_open()
        session = self._session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def transaction(self, author: Optional[str] = None) -> Generator[Session, None, None]:
        """Run the body as one atomic transaction.

        Commits when the body returns, rolls back and re-raises when it
        raises, and always closes the session. ``author`` is recorded on the
        revision created by this transaction, if any. On SQLite the write
        lock is taken up front.

        Usage:
            with db.transaction() as session:
                EventStore(session).update(event_id, {'title': 'Renamed'})
        """
        self._check_open()
        session = self._session_factory()
        session.info[AUTHOR_KEY] = author
        try:
            session.connection(execution_options={WRITE_OPTION: True})
            yield session
            session.commit()
        except Exception:
            logger.debug("Rolling back transaction", exc_info=True)
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Dispose the engine. The handle cannot be used afterwards."""
        if not self._closed:
            self.engine.dispose()
            self._closed = True

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def init_database(url: Optional[str] = None) -> Database:
    """Create a handle and make sure all tables exist."""
    database = Database(url)
    database.init_schema()
    return database
