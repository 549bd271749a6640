"""
Workspace Membership

Every index entry records the workspaces it is currently visible in. The
index stores this as one scalar text field of workspace markers::

    #live#,#user-admin#

Membership tests split the field into markers and compare whole names, so
``de`` never matches ``de-extended``.

Merge Protocol
--------------
Before a node is (re)written for workspace W, W is removed from every
existing entry of that node. Entries left without any workspace are
deleted. The entry being written then carries its previous membership
forward and gains W. Membership only grows at the written entry and only
shrinks at stale entries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple

from ..index.base import IndexClient

logger = logging.getLogger(__name__)


MARKER_DELIMITER = "#"
FIELD_SEPARATOR = ","

# System properties: workspace owning the indexed node data, and the
# dimension values of the variant
OWNER_PROPERTY = "__ownerWorkspace"
DIMENSIONS_PROPERTY = "__dimensions"


# ---------------------------------------------------------------------
# Membership Value
# ---------------------------------------------------------------------

def workspace_marker(workspace_name: str) -> str:
    return f"{MARKER_DELIMITER}{workspace_name}{MARKER_DELIMITER}"


class WorkspaceMembership:
    """
    Immutable, ordered, duplicate-free set of workspace names.
    """

    __slots__ = ("_names",)

    def __init__(self, names: Iterable[str] = ()) -> None:
        ordered: List[str] = []
        for name in names:
            if name and name not in ordered:
                ordered.append(name)
        self._names: Tuple[str, ...] = tuple(ordered)

    @classmethod
    def from_field(cls, value: Optional[str]) -> "WorkspaceMembership":
        """
        Decode a stored membership field.

        Tolerates whitespace around markers and the ``", "`` separator
        written by older indexes.
        """
        if not value:
            return cls()

        names: List[str] = []
        for token in value.split(FIELD_SEPARATOR):
            token = token.strip()
            if (
                len(token) > 2
                and token.startswith(MARKER_DELIMITER)
                and token.endswith(MARKER_DELIMITER)
            ):
                names.append(token[1:-1])
            elif token:
                logger.warning("Ignoring malformed workspace marker %r", token)
        return cls(names)

    def to_field(self) -> str:
        return FIELD_SEPARATOR.join(workspace_marker(name) for name in self._names)

    def with_workspace(self, workspace_name: str) -> "WorkspaceMembership":
        return WorkspaceMembership(self._names + (workspace_name,))

    def without_workspace(self, workspace_name: str) -> "WorkspaceMembership":
        return WorkspaceMembership(n for n in self._names if n != workspace_name)

    def is_empty(self) -> bool:
        return not self._names

    def __contains__(self, workspace_name: object) -> bool:
        return workspace_name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkspaceMembership):
            return NotImplemented
        return self._names == other._names

    def __hash__(self) -> int:
        return hash(self._names)

    def __repr__(self) -> str:
        return f"WorkspaceMembership({list(self._names)!r})"


# ---------------------------------------------------------------------
# Merger
# ---------------------------------------------------------------------

@dataclass
class ReconcilePlan:
    """Index mutations needed to detach a workspace from a node's entries."""

    to_delete: List[str] = field(default_factory=list)
    to_update: List[Tuple[str, WorkspaceMembership]] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.to_delete and not self.to_update


class MembershipMerger:
    """
    Maintains the workspace membership field of index entries.
    """

    def __init__(self, index_client: IndexClient) -> None:
        self._index_client = index_client

    def reconcile_for_workspace(
        self,
        node_identity: str,
        workspace_name: str,
        dimensions: Optional[Mapping[str, str]] = None,
    ) -> ReconcilePlan:
        """
        Compute how to remove a workspace from all entries of a node.

        Parameters
        ----------
        node_identity : str
            Cross-workspace identifier shared by all variants of the node.

        workspace_name : str
            Workspace being (re)written.

        dimensions : Optional[Mapping[str, str]]
            Dimension values of the variant being written. Only entries of
            the same dimension variant are reconciled, so indexing one
            language does not detach the workspace from the others.

        Returns
        -------
        ReconcilePlan
            Entries to delete (no workspace left) and entries to update with
            their reduced membership. Entries not carrying the workspace are
            left alone.
        """
        plan = ReconcilePlan()

        for entry in self._index_client.find_by_node_identity(node_identity):
            if (entry.properties.get(DIMENSIONS_PROPERTY) or {}) != dict(dimensions or {}):
                continue

            membership = WorkspaceMembership.from_field(entry.membership)
            if workspace_name not in membership:
                continue

            reduced = membership.without_workspace(workspace_name)
            if reduced.is_empty():
                plan.to_delete.append(entry.variant_identity)
            else:
                plan.to_update.append((entry.variant_identity, reduced))

        return plan

    def apply(self, plan: ReconcilePlan, rewrite_variant: Optional[str] = None) -> None:
        """
        Apply a reconcile plan to the index.

        ``rewrite_variant`` names the entry that is about to be written again
        in the same operation. It is not deleted when it drains, so the
        fulltext aggregated on it survives the rewrite.
        """
        for variant_identity in plan.to_delete:
            if variant_identity == rewrite_variant:
                continue
            logger.debug("Deleting orphaned index entry %s", variant_identity)
            self._index_client.delete(variant_identity)

        for variant_identity, membership in plan.to_update:
            entry = self._index_client.find_one_by_variant_identity(variant_identity)
            if entry is None:
                continue
            logger.debug(
                "Reducing membership of %s to %s", variant_identity, list(membership)
            )
            self._index_client.upsert(
                variant_identity,
                entry.properties,
                membership=membership.to_field(),
                node_identity=entry.node_identity,
            )

    def merge_for_write(
        self,
        variant_identity: str,
        workspace_name: str,
        owner_workspace: Optional[str] = None,
    ) -> WorkspaceMembership:
        """
        Membership for the entry about to be written: the existing one, if
        the entry carries a membership field, plus the target workspace.

        If the variant's node data now lives in a different workspace than
        at its last write (it was moved, e.g. by publishing), the previous
        owner workspace is not carried forward.
        """
        existing = self._index_client.find_one_by_variant_identity(variant_identity)
        if existing is None or existing.membership is None:
            return WorkspaceMembership([workspace_name])

        membership = WorkspaceMembership.from_field(existing.membership)

        previous_owner = existing.properties.get(OWNER_PROPERTY)
        if owner_workspace is not None and previous_owner not in (None, owner_workspace):
            logger.debug(
                "Variant %s moved from %s to %s", variant_identity, previous_owner, owner_workspace
            )
            membership = membership.without_workspace(previous_owner)

        return membership.with_workspace(workspace_name)
