"""
Index Client Contract

Every storage backend the indexer writes to implements this protocol.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from .models import IndexEntry


# Contributions appended without a source accumulate under this key.
ANONYMOUS_SOURCE = ""


@runtime_checkable
class IndexClient(Protocol):

    def find_by_node_identity(self, node_identity: str) -> List[IndexEntry]:
        """All entries (variants) of one node, across workspaces and dimensions."""
        ...

    def find_one_by_variant_identity(self, variant_identity: str) -> Optional[IndexEntry]:
        ...

    def upsert(
        self,
        variant_identity: str,
        properties: Mapping[str, Any],
        membership: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> None:
        """
        Insert or replace the properties and membership of an entry.

        Accumulated fulltext is left untouched.
        """
        ...

    def delete(self, variant_identity: str) -> bool:
        """
        Delete an entry and every fulltext contribution made by or to it.

        Returns False if no entry existed.
        """
        ...

    def append_fulltext(
        self,
        fragments: Mapping[str, str],
        variant_identity: str,
        source: Optional[str] = None,
    ) -> None:
        """
        Add fulltext fragments (bucket -> text) to an entry's buffer.

        With a ``source`` the previous contribution of that source is
        replaced, so re-indexing a descendant does not duplicate its text.
        """
        ...

    def drop_contributions(self, source: str) -> None:
        """
        Remove every fulltext contribution made by ``source``, whatever its target.
        """
        ...


def join_fragments(contributions: List[Dict[str, str]]) -> Dict[str, str]:
    """
    Merge ordered fulltext contributions into one text per bucket.
    """
    merged: Dict[str, List[str]] = {}
    for fragments in contributions:
        for bucket, text in fragments.items():
            if text:
                merged.setdefault(bucket, []).append(text)
    return {bucket: " ".join(parts) for bucket, parts in merged.items()}
