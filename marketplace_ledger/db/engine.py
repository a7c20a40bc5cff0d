"""
Module: marketplace_ledger.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities, packaged as an explicit LedgerStore
    handle that callers construct once and inject into every workflow.
Architecture position: Ledger > DB.  May import from db/base.py.
    MUST NOT import from services/, selectors/, domain/, or outer layers
    (except create_tables, which imports models so their tables register).

Invariants enforced:
    - No process-wide engine: every service receives its LedgerStore (or a
      Session opened from one) explicitly.
    - PostgreSQL sessions run at READ COMMITTED, with explicit row-level
      locking (FOR UPDATE) used where stronger isolation is needed.
    - session_scope() commits on success and rolls back on ANY exception;
      no partial unit of work is ever committed.

Failure modes:
    - OperationalError when the database is unreachable or a lock wait
      times out.
    - Connection pool exhaustion if pool_size + max_overflow is exceeded.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from marketplace_ledger.logging_config import get_logger

if TYPE_CHECKING:
    from ledger_config.schema import DatabaseConfig

logger = get_logger("db.engine")


class LedgerStore:
    """
    Transactional handle over the ledger database.

    Contract:
        Owns one Engine and one sessionmaker.  Workflows open units of work
        through session_scope(); read paths may do the same.

    Guarantees:
        - Sessions are created with expire_on_commit=False so DTOs built
          after commit read loaded attributes without a new round-trip.
        - dispose() releases every pooled connection.

    Non-goals:
        - Does NOT retry.  Contention retries belong to the TransferEngine.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(
        cls,
        database_url: str,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        sqlite_busy_timeout: float = 30.0,
    ) -> LedgerStore:
        """
        Build a store from a database URL.

        Args:
            database_url: PostgreSQL or SQLite URL.
            echo: If True, log all SQL statements.
            pool_size: Connections kept in the pool (PostgreSQL only).
            max_overflow: Max connections beyond pool_size (PostgreSQL only).
            pool_pre_ping: Test connections before use.
            pool_timeout: Seconds to wait for a pooled connection.
            pool_recycle: Seconds after which a connection is recycled.
            sqlite_busy_timeout: Seconds SQLite waits on a locked database.

        Returns:
            A LedgerStore bound to the new engine.
        """
        if database_url.startswith("sqlite"):
            engine = create_engine(
                database_url,
                echo=echo,
                connect_args={
                    "timeout": sqlite_busy_timeout,
                    "check_same_thread": False,
                },
            )
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            dialect = "sqlite"
        else:
            engine = create_engine(
                database_url,
                echo=echo,
                poolclass=QueuePool,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                isolation_level="READ COMMITTED",
            )
            dialect = engine.dialect.name

        logger.info(
            "engine_initialized",
            extra={
                "dialect": dialect,
                "pool_size": pool_size if dialect != "sqlite" else None,
                "echo": echo,
            },
        )
        return cls(engine)

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> LedgerStore:
        """Build a store from the ``database`` section of the ledger config."""
        return cls.from_url(
            config.url,
            echo=config.echo,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
        )

    @property
    def is_postgres(self) -> bool:
        return self.engine.dialect.name == "postgresql"

    def session(self) -> Session:
        """Open a new session.  The caller owns commit and close."""
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Postconditions: On normal exit, session is committed and closed.
            On exception, session is rolled back and closed.  The exception
            is re-raised to the caller.

        Usage:
            with store.session_scope() as session:
                TransferService(session).transfer(1, 2, amount)
                # Commits on successful exit, rolls back on exception
        """
        session = self._session_factory()
        logger.debug("transaction_started")
        try:
            yield session
            session.commit()
            logger.debug("transaction_committed")
        except Exception as exc:
            session.rollback()
            logger.info(
                "transaction_rolled_back",
                extra={
                    "exc_type": type(exc).__name__,
                    "error_code": getattr(exc, "code", None),
                },
            )
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """
        Create all ledger tables.

        Preconditions: The database is reachable.
        Postconditions: profiles, contracts and jobs exist.
        """
        from marketplace_ledger.db.base import Base
        import marketplace_ledger.models  # noqa: F401  (registers tables)

        Base.metadata.create_all(self.engine)
        logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution - primarily for testing."""
        from marketplace_ledger.db.base import Base
        import marketplace_ledger.models  # noqa: F401

        Base.metadata.drop_all(self.engine)
        logger.info("tables_dropped")

    def dispose(self) -> None:
        """Release every pooled connection."""
        self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
