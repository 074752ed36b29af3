# grants_matching/db.py
"""Database session, connection and schema management"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from grants_matching.models.db import Base
from grants_matching.db_config import DatabaseManager

logger = logging.getLogger(__name__)

class Database:
    """Database connection and session manager scoped to one schema"""

    def __init__(self):
        """Initialize database manager state"""
        self._engine: Optional[Engine] = None
        self._SessionLocal = None
        self.schema_name: Optional[str] = None

    def init(self, url: Optional[str] = None, schema_name: Optional[str] = None) -> None:
        """
        Create the engine and session factory.

        On PostgreSQL every statement runs against schema_name through
        SQLAlchemy's schema translation; None keeps the default schema.
        Other dialects ignore schema_name.

        Raises:
            SQLAlchemyError: If the engine cannot be created
        """
        try:
            url = url or DatabaseManager.get_connection_string()
            kwargs = {}
            if url.startswith('sqlite') and ':memory:' in url:
                # one shared connection so every session sees the same database
                kwargs = {'connect_args': {'check_same_thread': False}, 'poolclass': StaticPool}
            engine = create_engine(url, **kwargs)
            if schema_name is not None and engine.dialect.name == 'postgresql':
                engine = engine.execution_options(schema_translate_map={None: schema_name})
            self._engine = engine
            self._SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
            self.schema_name = schema_name
            logger.info("Database initialized successfully")

        except SQLAlchemyError as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._engine

    def create_schema_if_not_exists(self) -> None:
        """Create the schema (PostgreSQL only) and any missing tables"""
        engine = self.engine
        if self.schema_name is not None and engine.dialect.name == 'postgresql':
            if inspect(engine).has_schema(self.schema_name):
                logger.info(f'schema "{self.schema_name}" exists, skipping creation')
            else:
                logger.info(f'schema "{self.schema_name}" does not exist, creating schema')
                with engine.begin() as conn:
                    conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{self.schema_name}"'))

        Base.metadata.create_all(engine)

    def drop_schema_if_exists(self) -> None:
        engine = self.engine
        if self.schema_name is not None and engine.dialect.name == 'postgresql':
            with engine.begin() as conn:
                conn.execute(text(f'DROP SCHEMA IF EXISTS "{self.schema_name}" CASCADE'))
        else:
            Base.metadata.drop_all(engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of database operations.

        Usage:
            with db.session() as session:
                session.add(some_object)

        Yields:
            Session: SQLAlchemy database session, committed on success

        Raises:
            RuntimeError: If database not initialized
            SQLAlchemyError: If database operations fail
        """
        if not self._SessionLocal:
            raise RuntimeError("Database not initialized. Call init() first.")

        session = self._SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """
        Clean up database connections.
        Should be called during application shutdown.
        """
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._SessionLocal = None

# Global database instance
db = Database()
