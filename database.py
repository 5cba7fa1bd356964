import logging
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, scoped_session, configure_mappers

from config import settings

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args,
    pool_pre_ping=True
)

# Use scoped_session for thread-local sessions
SessionLocal = scoped_session(
    sessionmaker(autocommit=False, autoflush=False, bind=engine)
)


def utcnow() -> datetime:
    """Naive UTC timestamp; every DateTime column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


Base = declarative_base()


def init_models():
    """Import all models and configure mappers."""
    # The import registers every model on Base.metadata
    import models  # noqa: F401

    try:
        configure_mappers()
    except Exception as e:
        logger.error(f"Error configuring mappers: {e}", exc_info=True)
        raise


def create_tables():
    init_models()
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
