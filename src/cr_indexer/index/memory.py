"""
In-Memory Index Backend

Dict-backed implementation of the index client contract. Used by the test
suite and for embedding the indexer in a process without a database.

Thread Safety
-------------
All operations are protected by an RLock.
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .base import ANONYMOUS_SOURCE, join_fragments
from .models import IndexEntry


class InMemoryIndexClient:
    """
    Index backend keeping all entries in process memory.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Dict[str, Any]] = {}
        # target variant -> source variant -> bucket -> text
        self._fulltext: Dict[str, Dict[str, Dict[str, str]]] = {}
        self._lock = RLock()

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    def _to_entry(self, variant_identity: str) -> IndexEntry:
        record = self._entries[variant_identity]
        contributions = self._fulltext.get(variant_identity, {})
        return IndexEntry(
            variant_identity=variant_identity,
            node_identity=record["node_identity"],
            properties=dict(record["properties"]),
            membership=record["membership"],
            fulltext=join_fragments(list(contributions.values())),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_by_node_identity(self, node_identity: str) -> List[IndexEntry]:
        with self._lock:
            return [
                self._to_entry(variant)
                for variant, record in self._entries.items()
                if record["node_identity"] == node_identity
            ]

    def find_one_by_variant_identity(self, variant_identity: str) -> Optional[IndexEntry]:
        with self._lock:
            if variant_identity not in self._entries:
                return None
            return self._to_entry(variant_identity)

    def upsert(
        self,
        variant_identity: str,
        properties: Mapping[str, Any],
        membership: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> None:
        with self._lock:
            previous = self._entries.get(variant_identity, {})
            self._entries[variant_identity] = {
                "node_identity": node_identity or previous.get("node_identity"),
                "properties": dict(properties),
                "membership": membership,
            }

    def delete(self, variant_identity: str) -> bool:
        with self._lock:
            existed = self._entries.pop(variant_identity, None) is not None
            self._fulltext.pop(variant_identity, None)
            for contributions in self._fulltext.values():
                contributions.pop(variant_identity, None)
            return existed

    def append_fulltext(
        self,
        fragments: Mapping[str, str],
        variant_identity: str,
        source: Optional[str] = None,
    ) -> None:
        with self._lock:
            contributions = self._fulltext.setdefault(variant_identity, {})

            if source is not None:
                contributions.pop(source, None)
                contributions[source] = dict(fragments)
                return

            anonymous = contributions.setdefault(ANONYMOUS_SOURCE, {})
            for bucket, text in fragments.items():
                if not text:
                    continue
                anonymous[bucket] = f"{anonymous[bucket]} {text}" if anonymous.get(bucket) else text

    def drop_contributions(self, source: str) -> None:
        with self._lock:
            for contributions in self._fulltext.values():
                contributions.pop(source, None)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def variant_identities(self) -> List[str]:
        with self._lock:
            return list(self._entries)
