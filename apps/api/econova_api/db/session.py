"""Database session management."""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from econova_api.settings import get_settings

settings = get_settings()


def enable_sqlite_savepoints(engine):
    """Let SQLAlchemy own BEGIN on SQLite so nested transactions roll back correctly.

    The stdlib driver otherwise defers BEGIN until the first DML statement,
    which turns a SAVEPOINT release into a commit.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


if settings.is_sqlite:
    engine = enable_sqlite_savepoints(
        create_engine(
            settings.database_url_computed,
            connect_args={"check_same_thread": False},
        )
    )
else:
    engine = create_engine(
        settings.database_url_computed,
        pool_pre_ping=True,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )

SessionLocal = sessionmaker(autoflush=False, bind=engine)


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
