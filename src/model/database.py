"""
Engine, session handling and the versioned schema initialisation step.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.model import Base, GlobalStat, SchemaVersion, SAVINGS_COUNT_KEY
from src.utils.config import Config
from src.utils.errors import StoreError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class Database:
    """Owns the engine and hands out short-lived sessions"""

    def __init__(self, url: Optional[str] = None):
        self.url = url or Config.DATABASE_URL
        connect_args = {}
        if self.url.startswith("sqlite"):
            # Requests are served from a thread pool
            connect_args["check_same_thread"] = False
        self.engine = create_engine(self.url, connect_args=connect_args, pool_pre_ping=True)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Commit on success, roll back on error, always close.

        SQLAlchemy errors leave this block as StoreError.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise StoreError() from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def insert(self, model):
        """Dialect insert construct supporting ON CONFLICT clauses"""
        if self.engine.dialect.name == "postgresql":
            return postgresql.insert(model)
        if self.engine.dialect.name == "sqlite":
            return sqlite.insert(model)
        raise StoreError(f"Unsupported database dialect: {self.engine.dialect.name}")

    def init_schema(self, savings_baseline: Optional[int] = None) -> int:
        """Create missing tables, record the schema version and seed counters.

        Safe to run on every start.
        """
        baseline = Config.SAVINGS_COUNT_BASELINE if savings_baseline is None else savings_baseline
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Error initializing database: {e}")
            raise StoreError() from e

        with self.session_scope() as session:
            current = session.execute(
                select(SchemaVersion.version).order_by(SchemaVersion.version.desc())
            ).scalars().first()
            if current is None or current < SCHEMA_VERSION:
                session.add(SchemaVersion(version=SCHEMA_VERSION))
            session.execute(
                self.insert(GlobalStat)
                .values(key=SAVINGS_COUNT_KEY, value=baseline)
                .on_conflict_do_nothing(index_elements=["key"])
            )

        logger.info(f"Database initialized successfully (schema version {SCHEMA_VERSION})")
        return SCHEMA_VERSION

    def dispose(self):
        self.engine.dispose()
