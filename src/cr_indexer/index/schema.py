"""
SQLAlchemy Models

Defines the database schema of the SQL index backend:
- Index entries (one row per node variant)
- Fulltext contributions aggregated onto entries
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import JSON, Integer, String, Text, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Index Entry Model
# ---------------------------------------------------------------------

class IndexEntryRow(Base):
    """
    One indexed node variant.
    """
    __tablename__ = "index_entry"

    variant_identity: Mapped[str] = mapped_column(String(255), primary_key=True)
    node_identity: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    properties: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Workspace markers, e.g. "#live#,#user-admin#"
    membership: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


# ---------------------------------------------------------------------
# Fulltext Contribution Model
# ---------------------------------------------------------------------

class FulltextContribution(Base):
    """
    Fulltext of one bucket contributed by a source variant to a target entry.

    The target is usually a fulltext root; a node's own text is stored with
    source == target.
    """
    __tablename__ = "fulltext_contribution"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    target_identity: Mapped[str] = mapped_column(String(255), nullable=False)
    source_identity: Mapped[str] = mapped_column(String(255), nullable=False)
    bucket: Mapped[str] = mapped_column(String(64), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (
        UniqueConstraint(
            "target_identity",
            "source_identity",
            "bucket",
            name="uq_fulltext_target_source_bucket",
        ),
        Index("idx_fulltext_source", "source_identity"),
    )
