"""
Database configuration and connection management.
Embedded SQLite by default; any SQLAlchemy URL (e.g. managed PostgreSQL) works.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from lead_intake.core.models import Base


class DatabaseManager:
    """Manages database connections and sessions."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = None
        self.SessionLocal = None
        self._initialize_engine(echo)

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    def _initialize_engine(self, echo: bool):
        """Initialize the database engine."""
        engine_kwargs = {"echo": echo, "future": True}

        if self.is_sqlite:
            database = make_url(self.url).database
            if database and database != ":memory:":
                Path(database).parent.mkdir(parents=True, exist_ok=True)
            # FastAPI runs sync calls in a threadpool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            engine_kwargs["pool_pre_ping"] = True

        logger.info(f"🗄️ Initializing database engine: {make_url(self.url).render_as_string(hide_password=True)}")
        self.engine = create_engine(self.url, **engine_kwargs)

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False
        )

        logger.info("✅ Database engine initialized successfully")

    def create_tables(self):
        """Create all database tables."""
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=self.engine)
        logger.info("✅ Database tables created successfully")

    def drop_tables(self):
        """Drop all database tables."""
        logger.warning("Dropping all database tables...")
        Base.metadata.drop_all(bind=self.engine)
        logger.info("✅ Database tables dropped")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session with automatic commit, rollback and cleanup."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def health_check(self) -> dict:
        """Perform a health check on the database connection."""
        try:
            with self.get_session() as session:
                row = session.execute(text("SELECT 1")).fetchone()
                return {
                    "status": "healthy",
                    "database_type": self.engine.dialect.name,
                    "connection_test": "passed" if row[0] == 1 else "failed",
                }
        except Exception as e:
            return {
                "status": "unhealthy",
                "database_type": self.engine.dialect.name,
                "error": str(e),
            }

    def dispose(self):
        """Close all pooled connections."""
        self.engine.dispose()
