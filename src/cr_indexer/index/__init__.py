"""
Index Package

Index client contract, entry model and the in-memory and SQL backends.
"""

from .base import IndexClient
from .models import IndexEntry
from .memory import InMemoryIndexClient
from .sql import SqlIndexClient
from .session import create_index_engine, create_session_factory

__all__ = [
    "IndexClient",
    "IndexEntry",
    "InMemoryIndexClient",
    "SqlIndexClient",
    "create_index_engine",
    "create_session_factory",
]
