"""
API Models

This module defines all Pydantic models used for request/response validation
of the change-notification and index inspection endpoints.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ConfigDict


# ---------------------------------------------------------------------
# Shared Result Models
# ---------------------------------------------------------------------

class OperationResult(BaseModel):
    """
    Standardized mutation operation result.
    """
    status: Literal["indexed", "removed", "flushed", "ok"]
    count: Optional[int] = Field(default=None, ge=0)
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Node Models
# ---------------------------------------------------------------------

class NodeSaveRequest(BaseModel):
    """
    A node variant saved in the content repository.
    """
    identity: str = Field(..., min_length=1)
    workspace: str = Field(default="live", min_length=1)
    type_name: str = Field(..., min_length=1)
    parent_identity: Optional[str] = None
    dimensions: Dict[str, str] = Field(default_factory=dict)
    properties: Dict[str, Any] = Field(default_factory=dict)
    removed: bool = False
    persistence_id: Optional[str] = Field(
        default=None,
        description="Existing variant to update; a new one is created if omitted.",
    )

    model_config = ConfigDict(extra="forbid")


class NodeReindexRequest(BaseModel):
    """
    Request to re-materialize a node across all dimension combinations.
    """
    identity: str = Field(..., min_length=1)
    workspace: str = Field(default="live", min_length=1)

    model_config = ConfigDict(extra="forbid")


class WorkspaceCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    base_workspace: Optional[str] = "live"

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Index Models
# ---------------------------------------------------------------------

class IndexEntryResponse(BaseModel):
    """
    One index entry as stored by the backend.
    """
    variant_identity: str
    node_identity: Optional[str] = None
    workspaces: List[str] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)
    fulltext: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")
