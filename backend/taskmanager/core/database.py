from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Base class for all database models
Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """
    Create the database engine for the given connection string.

    SQLite connections are shared across FastAPI's worker threads, so the
    same-thread check is disabled. An in-memory SQLite database only lives as
    long as its connection, so it is pinned to a single pooled connection.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url)

    connect_args = {"check_same_thread": False}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url, connect_args=connect_args, poolclass=StaticPool
        )
    return create_engine(database_url, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    # autocommit=False: Changes require explicit commit
    # autoflush=False: Don't auto-flush before queries
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create tables for every model registered on Base"""
    # Import models so they register themselves on Base.metadata
    from taskmanager.models import task, user  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    """
    Dependency for getting database session.

    The session factory is built once by create_app() and kept on app.state.
    The session is closed after the request completes, even on errors.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
