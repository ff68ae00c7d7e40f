"""Database engine and session factory."""
import logging
from typing import Iterator

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from promptpolish.config import settings
from promptpolish.core.errors import PersistenceError

logger = logging.getLogger(__name__)


def build_engine(url: str, **kwargs):
    """Create an engine; SQLite gets thread sharing and enforced foreign keys."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(settings.DATABASE_URL)


def init_db(bind=None) -> None:
    """Create all tables that do not exist yet."""
    import promptpolish.models  # noqa: F401  registers tables on SQLModel.metadata

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables ensured")


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session


def commit(session: Session, *instances) -> None:
    """Commit and refresh, turning driver failures into PersistenceError."""
    try:
        session.commit()
        for instance in instances:
            session.refresh(instance)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Database error: {str(e)}")
        raise PersistenceError() from e
