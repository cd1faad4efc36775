from sqlalchemy import event
from sqlmodel import SQLModel, Session, create_engine
from .config import DATABASE_URL


def build_engine(url: str, **kwargs):
    """
    Create an engine. SQLite transactions start with BEGIN IMMEDIATE so a
    check-then-write sequence holds the write lock from its first read.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False, **kwargs)

    connect_args = kwargs.pop("connect_args", {})
    connect_args.setdefault("check_same_thread", False)
    sqlite_engine = create_engine(url, echo=False, connect_args=connect_args, **kwargs)

    @event.listens_for(sqlite_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        # Let the "begin" hook below issue BEGIN instead of pysqlite
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return sqlite_engine


engine = build_engine(DATABASE_URL)


def create_db_and_tables():
    """Create all database tables."""
    # Import models so their tables are registered on the metadata
    from . import models  # noqa: F401
    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database sessions. Rolled back on any failure."""
    with Session(engine) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
