"""Search routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Response

from ..deps import CurrentUser, Db, Now
from . import scope, service
from .models import SearchBootstrap, SearchResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("/workspace", response_model=SearchResponse)
async def search_workspace(
    response: Response,
    user: CurrentUser,
    db: Db,
    now: Now,
    q: str = Query("", description="Free-text query"),
    type: str | None = Query(None, description="all, board, card, comment, checklist or attachment"),
    match: str | None = Query(None, description="Facet combination: any or all"),
    members: str | None = Query(None, description="Comma-separated user ids, 'me' or 'none'"),
    labels: str | None = Query(None, description="Comma-separated label ids or 'none'"),
    due: str | None = Query(None, description="Comma-separated due-date buckets"),
    status: str | None = Query(None, description="completed and/or not-completed"),
    workspace: str | None = Query(None, description="Workspace slug to narrow the search"),
    limit: int = Query(20, ge=1, le=50),
    cursor: str | None = Query(None, max_length=400),
):
    """Search boards, cards, comments, checklists and attachments across workspaces."""
    params = {
        "q": q,
        "type": type,
        "match": match,
        "members": members,
        "labels": labels,
        "due": due,
        "status": status,
        "workspace": workspace,
    }
    try:
        result = await service.search_workspace_content(
            db,
            user["sub"],
            params,
            limit=limit,
            cursor=(cursor or "").strip() or None,
            now=now,
        )
    except Exception:
        logger.exception("Workspace search failed for user %s", user["sub"])
        raise HTTPException(status_code=500, detail="Failed to search workspace content.") from None

    response.headers["Cache-Control"] = "no-store"
    return result


@router.get("/bootstrap", response_model=SearchBootstrap)
async def search_bootstrap(user: CurrentUser, db: Db):
    """Workspaces plus member and label options for the facet pickers."""
    return await scope.load_search_bootstrap(db, user["sub"])
