# ============================================================================
# FILE: app/db/session.py
# Explicitly constructed database client with init/close lifecycle
# ============================================================================
from typing import Generator, Optional
import logging

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the SQLAlchemy engine and session factory for one application"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        is_sqlite = url.startswith("sqlite")
        connect_args = {"check_same_thread": False} if is_sqlite else {}

        self.engine = create_engine(
            url,
            echo=echo,
            connect_args=connect_args,
            pool_pre_ping=not is_sqlite,
        )
        if is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False
        )

    def init(self) -> None:
        """Create tables that do not exist yet"""
        from app.db.base import Base
        # Register every table on Base.metadata
        from app.db.models import user, video, comment, tweet, like, subscription, playlist  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ready")

    def close(self) -> None:
        self.engine.dispose()
        logger.info("Database connections closed")

    def session(self) -> Session:
        return self.SessionLocal()

    def ping(self) -> bool:
        """Connectivity probe used by the health check"""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    @property
    def dialect(self) -> Optional[str]:
        return self.engine.dialect.name


def get_db(request: Request) -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session from the app's Database"""
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
