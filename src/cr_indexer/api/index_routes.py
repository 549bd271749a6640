"""
Index Routes

Inspection and maintenance endpoints for the search index.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated

from .models import IndexEntryResponse, OperationResult
from .dependencies import get_indexer
from ..indexing.indexer import NodeIndexer
from ..indexing.membership import WorkspaceMembership

router = APIRouter(prefix="/index", tags=["index"])


@router.get(
    "/entries/{variant_identity}",
    summary="Get one index entry",
    response_model=IndexEntryResponse,
)
def get_entry(
    variant_identity: str,
    indexer: Annotated[NodeIndexer, Depends(get_indexer)],
) -> IndexEntryResponse:
    entry = indexer.get_index_client().find_one_by_variant_identity(variant_identity)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No index entry for '{variant_identity}'",
        )

    return IndexEntryResponse(
        variant_identity=entry.variant_identity,
        node_identity=entry.node_identity,
        workspaces=list(WorkspaceMembership.from_field(entry.membership)),
        properties=entry.properties,
        fulltext=entry.fulltext,
    )


@router.post(
    "/flush",
    summary="Clear batch-local indexer caches",
    response_model=OperationResult,
)
def flush_index(
    indexer: Annotated[NodeIndexer, Depends(get_indexer)],
) -> OperationResult:
    # Persisted index state is unaffected
    indexer.flush()
    return OperationResult(status="flushed")
