"""
Database Session Management

Provides the SQLAlchemy engine and session factory for the SQL index backend.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import settings
from .schema import Base


def create_index_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create an engine for the index database and make sure the schema exists.

    In-memory SQLite URLs share one connection so that every session sees
    the same database.
    """
    url = make_url(database_url or settings.database_url)

    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        engine = create_engine(
            url,
            echo=False,  # Set True for SQL debugging
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        if url.get_backend_name() == "sqlite":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            url,
            echo=False,
            pool_pre_ping=True,
        )

    Base.metadata.create_all(engine)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )
