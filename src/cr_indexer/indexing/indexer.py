"""
Node Indexer

This module turns content repository nodes into index mutations. It is the
entry point for change notifications (node saved / removed) and for
re-materializing a node across all dimension combinations.

Indexing one node variant
-------------------------
1. Removed nodes: delete the variant's entry, done.
2. Extract properties and fulltext, resolve the fulltext root. This happens
   before any write, so a malformed tree leaves the index untouched.
3. Detach the target workspace from all other entries of the node (same
   dimension variant); entries left without workspaces are deleted.
4. Write the entry with its carried-forward membership plus the target
   workspace. Drop everything the variant contributed earlier, then record
   its own fulltext.
5. Contribute the fulltext to the nearest fulltext root.

Concurrency
-----------
Steps 3-5 are a read-modify-write on shared membership fields. They run
under a per-node-identity lock. Different dimension combinations of one
node may be dispatched to a thread pool; they still serialize on that lock.

Resolved fulltext roots are cached only while a batch (``index_nodes``,
``reindex_across_dimensions``, ``reindex_workspace``) runs. The outermost
batch flushes when it ends; single change notifications resolve afresh.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Set

from ..config import settings
from ..content.dimensions import (
    DimensionCombination,
    DimensionPresetSource,
    calculate_dimension_combinations,
)
from ..content.node_types import FulltextRootTypes
from ..core.errors import MalformedTreeError
from ..index.base import IndexClient
from .extraction import PropertyExtractor
from .fulltext import FulltextRootResolver
from .locks import IdentityLocks
from .membership import MembershipMerger

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Collaborator Contracts
# ---------------------------------------------------------------------

class NodeViewLike(Protocol):
    def by_identifier(self, identity: str) -> Optional[Any]: ...


class ContextResolver(Protocol):
    def resolve_context(
        self,
        workspace_name: str,
        dimensions: Optional[DimensionCombination] = None,
    ) -> NodeViewLike: ...

    def node_identities(self, workspace_name: str) -> List[str]: ...


@dataclass
class IndexingReport:
    """Outcome of a batch indexing run."""

    indexed: int = 0
    removed: int = 0
    failed: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------
# Indexer
# ---------------------------------------------------------------------

class NodeIndexer:
    """
    Projects content repository nodes into a flat search index.

    All collaborators are passed in explicitly; nothing is looked up
    globally apart from defaults taken from settings.
    """

    def __init__(
        self,
        index_client: IndexClient,
        contexts: ContextResolver,
        fulltext_root_types: FulltextRootTypes,
        extractor: PropertyExtractor,
        preset_source: Optional[DimensionPresetSource] = None,
        max_tree_depth: Optional[int] = None,
        max_workers: Optional[int] = None,
        locks: Optional[IdentityLocks] = None,
    ) -> None:
        self._index_client = index_client
        self._contexts = contexts
        self._extractor = extractor
        self._preset_source = preset_source or DimensionPresetSource()
        self._max_workers = max_workers or settings.reindex_max_workers
        self._locks = locks or IdentityLocks()

        self._merger = MembershipMerger(index_client)
        self._resolver = FulltextRootResolver(
            fulltext_root_types,
            max_depth=max_tree_depth or settings.max_tree_depth,
        )

        # Batch-local state, only filled while a batch runs; cleared by flush()
        self._fulltext_roots: Dict[str, Optional[Any]] = {}
        self._indexed_variants: Set[str] = set()
        self._batch_depth = 0
        self._cache_lock = RLock()

    def get_index_client(self) -> IndexClient:
        return self._index_client

    # ------------------------------------------------------------------
    # Single Node Operations
    # ------------------------------------------------------------------

    def index_node(self, node: Any, target_workspace: Optional[str] = None) -> None:
        """
        Index one node variant, or delete its entry if the node is removed.

        Parameters
        ----------
        node : Node
            Contextualized node to index.

        target_workspace : Optional[str]
            Workspace the node is indexed for. Defaults to the workspace
            owning the node data.

        Raises
        ------
        MalformedTreeError
            If the node's ancestry cannot be walked. Nothing is written.

        IndexBackendError
            If the backend fails; no retry is attempted.
        """
        variant = node.variant_identity

        with self._locks.hold(node.identity):
            if node.is_removed():
                self._index_client.delete(variant)
                logger.debug("Removed index entry %s of removed node %s", variant, node.identity)
                return

            workspace = target_workspace or node.workspace
            properties, fulltext = self._extractor.extract(node)
            fulltext_root = self._find_fulltext_root(node) if fulltext else None

            plan = self._merger.reconcile_for_workspace(
                node.identity,
                workspace,
                dimensions=getattr(node, "dimensions", None),
            )
            self._merger.apply(plan, rewrite_variant=variant)

            membership = self._merger.merge_for_write(
                variant,
                workspace,
                owner_workspace=node.workspace,
            )
            self._index_client.upsert(
                variant,
                properties,
                membership=membership.to_field(),
                node_identity=node.identity,
            )
            self._index_client.drop_contributions(variant)
            self._index_client.append_fulltext(fulltext, variant, source=variant)

            if fulltext_root is not None:
                self._index_client.append_fulltext(
                    fulltext,
                    fulltext_root.variant_identity,
                    source=variant,
                )

            with self._cache_lock:
                if self._batch_depth > 0:
                    self._indexed_variants.add(variant)

            logger.debug(
                "Indexed %s (variant %s) in workspaces %s",
                node.identity,
                variant,
                list(membership),
            )

    def remove_node(self, node: Any) -> None:
        """
        Delete the node variant's entry regardless of its removed flag.
        """
        with self._locks.hold(node.identity):
            self._index_client.delete(node.variant_identity)
            logger.debug("Removed index entry %s", node.variant_identity)

    def flush(self) -> None:
        """
        Forget batch-local caches. Persisted index state is not affected.
        """
        with self._cache_lock:
            if self._indexed_variants:
                logger.info("Flushing indexer after %d variant(s)", len(self._indexed_variants))
            self._fulltext_roots.clear()
            self._indexed_variants.clear()

    # ------------------------------------------------------------------
    # Batch Operations
    # ------------------------------------------------------------------

    def index_nodes(
        self,
        nodes: Iterable[Any],
        target_workspace: Optional[str] = None,
    ) -> IndexingReport:
        """
        Index a batch of nodes. A malformed ancestry fails only that node.
        """
        report = IndexingReport()

        with self._batch():
            for node in nodes:
                try:
                    self.index_node(node, target_workspace)
                except MalformedTreeError as exc:
                    logger.warning("Skipping node %s: %s", node.identity, exc)
                    report.failed.append(node.identity)
                    continue

                if node.is_removed():
                    report.removed += 1
                else:
                    report.indexed += 1

        return report

    def reindex_across_dimensions(self, node_identity: str, workspace_name: str) -> int:
        """
        Index every dimension variant of a node visible in a workspace.

        Returns
        -------
        int
            Number of variants passed to ``index_node``.
        """
        combinations: List[Optional[DimensionCombination]] = list(
            calculate_dimension_combinations(self._preset_source.get_all_presets())
        )
        if not combinations:
            combinations = [None]

        with self._batch():
            if self._max_workers > 1 and len(combinations) > 1:
                with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                    results = list(
                        pool.map(
                            lambda combination: self._index_in_context(
                                node_identity, workspace_name, combination
                            ),
                            combinations,
                        )
                    )
            else:
                results = [
                    self._index_in_context(node_identity, workspace_name, combination)
                    for combination in combinations
                ]

        return sum(results)

    def reindex_workspace(self, workspace_name: str) -> int:
        """
        Rebuild the entries of every node visible in a workspace.
        """
        identities = self._contexts.node_identities(workspace_name)
        logger.info("Reindexing %d node(s) in workspace %s", len(identities), workspace_name)

        total = 0
        with self._batch():
            for identity in identities:
                total += self.reindex_across_dimensions(identity, workspace_name)

        return total

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    def _index_in_context(
        self,
        node_identity: str,
        workspace_name: str,
        dimensions: Optional[DimensionCombination],
    ) -> int:
        view = self._contexts.resolve_context(workspace_name, dimensions)
        node = view.by_identifier(node_identity)
        if node is None:
            logger.debug(
                "Node %s not found in %s with dimensions %s",
                node_identity,
                workspace_name,
                dimensions,
            )
            return 0

        try:
            self.index_node(node, workspace_name)
        except MalformedTreeError as exc:
            logger.warning("Skipping variant %s: %s", node.variant_identity, exc)
            return 0

        return 1

    @contextmanager
    def _batch(self) -> Iterator[None]:
        with self._cache_lock:
            self._batch_depth += 1
        try:
            yield
        finally:
            with self._cache_lock:
                self._batch_depth -= 1
                outermost = self._batch_depth == 0
            if outermost:
                self.flush()

    def _find_fulltext_root(self, node: Any) -> Optional[Any]:
        with self._cache_lock:
            cached = self._batch_depth > 0
            if cached and node.variant_identity in self._fulltext_roots:
                return self._fulltext_roots[node.variant_identity]

        root = self._resolver.resolve(node)

        if cached:
            with self._cache_lock:
                self._fulltext_roots[node.variant_identity] = root
        return root
