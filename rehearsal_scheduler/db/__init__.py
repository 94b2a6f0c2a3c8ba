import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


#############################
# Database helpers
#############################


def _database_url() -> str:
    """Return the SQLAlchemy URL, building a PostgreSQL one from the
    ``DB_*`` variables when ``DATABASE_URL`` is not set."""
    url = os.environ.get("DATABASE_URL")
    if url:
        return url
    host = os.environ.get("DB_HOST")
    if not host:
        return "sqlite:///./rehearsals.db"
    port = os.environ.get("DB_PORT", "5432")
    user = os.environ.get("DB_USER", "postgres")
    password = os.environ.get("DB_PASSWORD", "")
    dbname = os.environ.get("DB_NAME", "rehearsal_scheduler")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}"


DATABASE_URL = _database_url()


def _using_sqlite() -> bool:
    return DATABASE_URL.startswith("sqlite")


def _engine_kwargs() -> dict:
    if not _using_sqlite():
        return {"pool_pre_ping": True}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    # In-memory databases only live as long as their connection
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(DATABASE_URL, echo=False, future=True, **_engine_kwargs())


if _using_sqlite():
    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()


def get_db():
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db) -> None:
    """Commit the current transaction, rolling back on failure."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def init_db() -> None:
    """Create tables if they do not already exist.  This function is
    idempotent."""
    from rehearsal_scheduler.db import models  # noqa: F401  (registers tables)

    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready (%s)", engine.url.render_as_string(hide_password=True))


def drop_db() -> None:
    """Drop every table known to the metadata."""
    from rehearsal_scheduler.db import models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
