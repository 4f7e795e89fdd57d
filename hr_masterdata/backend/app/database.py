"""
Database connection and session management
"""
from sqlalchemy import create_engine, pool
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import settings


def _build_engine(url: str):
    """Postgres gets a tuned QueuePool; SQLite (local runs, tests) shares one in-memory connection."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            poolclass=pool.StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.DEBUG,
        )
    return create_engine(
        url,
        poolclass=pool.QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,  # Recycle connections after 1 hour
        connect_args={
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000",
        },
        echo=settings.DEBUG,
    )


engine = _build_engine(settings.database_connection_string)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency for FastAPI to get database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create any missing tables. Schema changes beyond that belong to Supabase migrations."""
    import app.models  # noqa: F401  registers every table on Base.metadata
    Base.metadata.create_all(bind=engine)
