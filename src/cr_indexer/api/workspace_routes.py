from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated

from .models import WorkspaceCreateRequest, OperationResult
from .dependencies import get_content_repository, get_indexer
from ..content.repository import ContentRepository, UnknownWorkspaceError
from ..indexing.indexer import NodeIndexer

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.post(
    "",
    summary="Create a workspace",
    response_model=OperationResult,
    status_code=status.HTTP_201_CREATED,
)
def create_workspace(
    req: WorkspaceCreateRequest,
    repository: Annotated[ContentRepository, Depends(get_content_repository)],
) -> OperationResult:
    try:
        repository.add_workspace(req.name, req.base_workspace)
    except UnknownWorkspaceError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown base workspace '{req.base_workspace}'",
        )

    return OperationResult(status="ok", details={"workspace": req.name})


@router.post(
    "/{name}/rebuild",
    summary="Reindex every node visible in a workspace",
    response_model=OperationResult,
)
def rebuild_workspace(
    name: str,
    indexer: Annotated[NodeIndexer, Depends(get_indexer)],
) -> OperationResult:
    try:
        count = indexer.reindex_workspace(name)
    except UnknownWorkspaceError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown workspace '{name}'",
        )

    return OperationResult(status="indexed", count=count)
