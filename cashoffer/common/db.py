"""Database bootstrap helpers shared by the claims and review services."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    pass


def build_engine(dsn: str) -> Engine:
    """Create an engine; in-memory sqlite shares one connection across threads."""

    if dsn.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if dsn in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(dsn, **kwargs)
    return create_engine(dsn, pool_pre_ping=True)


def make_session_factory(dsn: str, create_schema: bool = False) -> sessionmaker:
    """Build a session factory; `create_schema` is for sqlite/dev runs without Alembic."""

    bound = build_engine(dsn)
    if create_schema:
        Base.metadata.create_all(bind=bound)
    # `expire_on_commit=False` keeps ORM objects readable after commit in handlers.
    return sessionmaker(bind=bound, autoflush=False, autocommit=False, expire_on_commit=False)
