"""
Node Routes

Change-notification endpoints: the content repository (or anything writing
to it) reports saved and deleted nodes here, and the indexer brings the
search index up to date synchronously.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated

from .models import NodeSaveRequest, NodeReindexRequest, OperationResult
from .dependencies import get_content_repository, get_indexer
from ..content.repository import ContentRepository, Node, NodeData, UnknownWorkspaceError
from ..indexing.indexer import NodeIndexer

router = APIRouter(prefix="/nodes", tags=["nodes"])


@router.put(
    "",
    summary="Save a node variant and index it",
    response_model=OperationResult,
)
def save_node(
    req: NodeSaveRequest,
    repository: Annotated[ContentRepository, Depends(get_content_repository)],
    indexer: Annotated[NodeIndexer, Depends(get_indexer)],
) -> OperationResult:
    """
    Store the node variant, then index it in its own workspace.

    Removed variants have their index entry deleted.
    """
    fields = req.model_dump(exclude_none=True)
    try:
        data = repository.save(NodeData(**fields))
        view = repository.resolve_context(
            data.workspace,
            {axis: [value] for axis, value in data.dimensions.items()},
        )
    except UnknownWorkspaceError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown workspace '{req.workspace}'",
        )

    node = Node(data, view)
    indexer.index_node(node)

    return OperationResult(
        status="removed" if node.is_removed() else "indexed",
        count=1,
        details={"variant_identity": node.variant_identity},
    )


@router.post(
    "/reindex",
    summary="Index a node across all dimension combinations",
    response_model=OperationResult,
)
def reindex_node(
    req: NodeReindexRequest,
    indexer: Annotated[NodeIndexer, Depends(get_indexer)],
) -> OperationResult:
    try:
        count = indexer.reindex_across_dimensions(req.identity, req.workspace)
    except UnknownWorkspaceError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown workspace '{req.workspace}'",
        )

    return OperationResult(status="indexed", count=count)


@router.delete(
    "/{persistence_id}",
    summary="Remove a node variant from the index",
    response_model=OperationResult,
)
def remove_node(
    persistence_id: str,
    repository: Annotated[ContentRepository, Depends(get_content_repository)],
    indexer: Annotated[NodeIndexer, Depends(get_indexer)],
) -> OperationResult:
    """
    Hard delete: the entry is removed whatever the node's removed flag says.
    """
    data = repository.get_node_data(persistence_id)
    if data is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown node variant '{persistence_id}'",
        )

    indexer.remove_node(Node(data, repository.resolve_context(data.workspace)))

    return OperationResult(status="removed", count=1)
