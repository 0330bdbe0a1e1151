"""Database configuration and session management."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Declarative base for models."""


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine.

    In-memory SQLite databases share a single connection so every session
    sees the same schema and rows.

    Args:
        database_url: SQLAlchemy database URL
        echo: Whether to log emitted SQL

    Returns:
        Engine: Configured engine
    """
    is_sqlite = database_url.startswith("sqlite")
    is_memory = is_sqlite and (":memory:" in database_url or database_url == "sqlite://")

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=not is_sqlite,
        poolclass=StaticPool if is_memory else None,
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to the engine."""
    return sessionmaker(
        engine,
        class_=Session,
        expire_on_commit=False,
        autoflush=False,
    )


def init_db(engine: Engine) -> None:
    """Initialize the database by creating all tables."""
    # Import models so they register with the metadata
    from .. import models  # noqa: F401

    Base.metadata.create_all(engine)


def close_db(engine: Engine) -> None:
    """Close database connections."""
    engine.dispose()
