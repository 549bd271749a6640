"""
In-Memory Content Repository

A small content repository holding versioned node data across workspaces and
dimension variants. It implements the collaborator contract the indexer
consumes:

- ``ContentRepository.resolve_context(workspace, dimensions) -> NodeView``
- ``NodeView.by_identifier(identity) -> Node | None``
- ``Node.parent()``, ``Node.is_removed()`` and friends

Resolution Rules
----------------
- A workspace sees its own node data first, then the data of its base
  workspace chain (``user-x -> live``).
- Requested dimension values are fallback chains. A node data record matches
  when, for every requested axis it carries, its value occurs in the chain;
  the record with the earliest positions wins.
- Removed node data still resolves (it shadows base data); the indexer uses
  the removed flag to delete the variant's entry.

Thread Safety
-------------
All mutations and lookups are protected by an RLock.
"""

from __future__ import annotations

import uuid
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, ConfigDict

from .dimensions import DimensionCombination, DimensionPresetSource


LIVE_WORKSPACE = "live"


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class UnknownWorkspaceError(KeyError):
    """Raised when a context is requested for a workspace that does not exist."""


# ---------------------------------------------------------------------
# Persistent Records
# ---------------------------------------------------------------------

class Workspace(BaseModel):
    name: str = Field(..., min_length=1)
    base_workspace: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class NodeData(BaseModel):
    """
    One persisted variant of a node.

    ``persistence_id`` is unique per node + workspace + dimension values and
    is what the index keys its entries by.
    """

    identity: str = Field(..., min_length=1, description="Cross-workspace node identifier.")
    workspace: str = Field(..., min_length=1)
    type_name: str = Field(..., min_length=1)
    parent_identity: Optional[str] = None
    dimensions: Dict[str, str] = Field(default_factory=dict)
    properties: Dict[str, Any] = Field(default_factory=dict)
    removed: bool = False
    persistence_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Node (contextualized view of a NodeData record)
# ---------------------------------------------------------------------

class Node:
    """
    A node as seen through a context (workspace + dimensions).
    """

    def __init__(self, data: NodeData, view: "NodeView") -> None:
        self._data = data
        self._view = view

    @property
    def identity(self) -> str:
        return self._data.identity

    @property
    def variant_identity(self) -> str:
        return self._data.persistence_id

    @property
    def type_name(self) -> str:
        return self._data.type_name

    @property
    def workspace(self) -> str:
        """Name of the workspace owning the underlying node data."""
        return self._data.workspace

    @property
    def removed(self) -> bool:
        return self._data.removed

    @property
    def properties(self) -> Dict[str, Any]:
        return dict(self._data.properties)

    @property
    def dimensions(self) -> Dict[str, str]:
        return dict(self._data.dimensions)

    @property
    def parent_identity(self) -> Optional[str]:
        return self._data.parent_identity

    def is_removed(self) -> bool:
        return self._data.removed

    def parent(self) -> Optional["Node"]:
        if self._data.parent_identity is None:
            return None
        return self._view.by_identifier(self._data.parent_identity)

    def __repr__(self) -> str:
        return (
            f"Node(identity={self.identity!r}, type={self.type_name!r}, "
            f"workspace={self.workspace!r}, variant={self.variant_identity!r})"
        )


class NodeView:
    """
    Read-only view of the repository for one workspace + dimension combination.
    """

    def __init__(
        self,
        repository: "ContentRepository",
        workspace_name: str,
        dimensions: Optional[DimensionCombination] = None,
    ) -> None:
        self._repository = repository
        self.workspace_name = workspace_name
        self.dimensions: DimensionCombination = dict(dimensions or {})

    def by_identifier(self, identity: str) -> Optional[Node]:
        data = self._repository.find_node_data(identity, self.workspace_name, self.dimensions)
        if data is None:
            return None
        return Node(data, self)


# ---------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------

class ContentRepository:
    """
    In-memory store of workspaces and node data.
    """

    def __init__(self, preset_source: Optional[DimensionPresetSource] = None) -> None:
        self._preset_source = preset_source
        self._workspaces: Dict[str, Workspace] = {
            LIVE_WORKSPACE: Workspace(name=LIVE_WORKSPACE),
        }
        self._node_data: Dict[str, NodeData] = {}
        self._lock = RLock()

    # ------------------------------------------------------------------
    # Workspaces
    # ------------------------------------------------------------------

    def add_workspace(self, name: str, base_workspace: Optional[str] = LIVE_WORKSPACE) -> Workspace:
        with self._lock:
            if base_workspace is not None and base_workspace not in self._workspaces:
                raise UnknownWorkspaceError(base_workspace)
            workspace = Workspace(name=name, base_workspace=base_workspace)
            self._workspaces[name] = workspace
            return workspace

    def workspace_chain(self, workspace_name: str) -> List[str]:
        """
        Return the workspace followed by its base workspaces, nearest first.
        """
        with self._lock:
            if workspace_name not in self._workspaces:
                raise UnknownWorkspaceError(workspace_name)

            chain: List[str] = []
            current: Optional[str] = workspace_name
            while current is not None and current not in chain:
                chain.append(current)
                current = self._workspaces[current].base_workspace
            return chain

    # ------------------------------------------------------------------
    # Node Data
    # ------------------------------------------------------------------

    def save(self, data: NodeData) -> NodeData:
        with self._lock:
            if data.workspace not in self._workspaces:
                raise UnknownWorkspaceError(data.workspace)
            self._node_data[data.persistence_id] = data
            return data

    def add_node(self, identity: str, type_name: str, **kwargs: Any) -> NodeData:
        kwargs.setdefault("workspace", LIVE_WORKSPACE)
        return self.save(NodeData(identity=identity, type_name=type_name, **kwargs))

    def get_node_data(self, persistence_id: str) -> Optional[NodeData]:
        with self._lock:
            return self._node_data.get(persistence_id)

    def node_identities(self, workspace_name: str) -> List[str]:
        """
        Identities of all nodes visible from a workspace, in insertion order.
        """
        chain = set(self.workspace_chain(workspace_name))
        with self._lock:
            seen: Dict[str, None] = {}
            for data in self._node_data.values():
                if data.workspace in chain:
                    seen.setdefault(data.identity, None)
            return list(seen)

    def find_node_data(
        self,
        identity: str,
        workspace_name: str,
        dimensions: Mapping[str, List[str]],
    ) -> Optional[NodeData]:
        for workspace in self.workspace_chain(workspace_name):
            with self._lock:
                candidates = [
                    data
                    for data in self._node_data.values()
                    if data.identity == identity and data.workspace == workspace
                ]

            best: Optional[Tuple[Tuple[int, ...], NodeData]] = None
            for data in candidates:
                rank = _dimension_rank(data, dimensions)
                if rank is not None and (best is None or rank < best[0]):
                    best = (rank, data)

            if best is not None:
                return best[1]

        return None

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------

    def resolve_context(
        self,
        workspace_name: str,
        dimensions: Optional[DimensionCombination] = None,
    ) -> NodeView:
        """
        Create a node view for a workspace and an optional dimension combination.

        Without dimensions the default presets of the preset source apply,
        if any are configured.
        """
        self.workspace_chain(workspace_name)

        if dimensions is None and self._preset_source is not None:
            dimensions = self._preset_source.get_default_dimensions()

        return NodeView(self, workspace_name, dimensions)


def _dimension_rank(
    data: NodeData,
    dimensions: Mapping[str, List[str]],
) -> Optional[Tuple[int, ...]]:
    rank: List[int] = []
    for axis, values in dimensions.items():
        value = data.dimensions.get(axis)
        if value is None:
            continue
        if value not in values:
            return None
        rank.append(values.index(value))
    return tuple(rank)
