"""
Fulltext Root Resolution

Nodes whose type is flagged as a fulltext root collect the fulltext of all
their descendants. This module finds, for a given node, the nearest strict
ancestor that is such a root.

A removed ancestor ends the walk without a root.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from ..content.node_types import FulltextRootTypes
from ..core.errors import MalformedTreeError


ParentLookup = Callable[[Any], Optional[Any]]


def _node_parent(node: Any) -> Optional[Any]:
    return node.parent()


def _is_removed(node: Any) -> bool:
    is_removed = getattr(node, "is_removed", None)
    return bool(is_removed()) if callable(is_removed) else False


class FulltextRootResolver:
    """
    Walks parent links upward to the nearest fulltext root.

    The resolver holds no tree state; the parent relation is supplied as a
    callable, by default ``node.parent()``.
    """

    def __init__(
        self,
        root_types: FulltextRootTypes,
        parent_of: ParentLookup = _node_parent,
        max_depth: int = 1000,
    ) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1.")

        self._root_types = root_types
        self._parent_of = parent_of
        self._max_depth = max_depth

    def is_fulltext_root(self, node: Any) -> bool:
        return self._root_types.is_fulltext_root(node.type_name)

    def resolve(self, node: Any) -> Optional[Any]:
        """
        Return the nearest ancestor of ``node`` whose type is a fulltext root.

        Returns None if the node is itself a fulltext root, an ancestor on
        the way is removed, or the walk reaches the top of the tree without
        finding one.

        Raises
        ------
        MalformedTreeError
            If the walk does not terminate within ``max_depth`` steps.
        """
        if self.is_fulltext_root(node):
            return None

        current = self._parent_of(node)
        steps = 0
        while current is not None:
            steps += 1
            if steps > self._max_depth:
                raise MalformedTreeError(
                    f"Ancestry of node {getattr(node, 'identity', node)!r} "
                    f"exceeds {self._max_depth} levels."
                )

            if _is_removed(current):
                return None

            if self.is_fulltext_root(current):
                return current

            current = self._parent_of(current)

        return None
