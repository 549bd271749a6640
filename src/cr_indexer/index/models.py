"""
Index Data Models

This module defines the canonical shape of one flat index entry as returned
by every index backend.

Each entry corresponds to ONE node variant (node + workspace + dimension
values) and is keyed by that variant's persistence identity.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ConfigDict


class IndexEntry(BaseModel):
    """
    A single index entry.

    ``membership`` is the raw workspace membership field as stored by the
    backend; ``None`` means the entry never carried one.
    """

    variant_identity: str = Field(
        ...,
        min_length=1,
        description="Persistence identity of the indexed node variant.",
    )

    node_identity: Optional[str] = Field(
        default=None,
        description="Cross-workspace node identifier shared by all variants.",
    )

    properties: Dict[str, Any] = Field(
        default_factory=dict,
        description="Extracted, indexable node properties.",
    )

    membership: Optional[str] = Field(
        default=None,
        description="Encoded set of workspaces this entry is visible in.",
    )

    fulltext: Dict[str, str] = Field(
        default_factory=dict,
        description="Accumulated fulltext per bucket, including descendants.",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)
