"""Workspace search service - hybrid FTS5 exact + trigram fuzzy search.

Every request reads the store live: resolve the viewer's scope, fan out one
fetcher per entity type, filter card-derived hits by facets, rank, then page
with an offset cursor.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime

import aiosqlite

from .card_filters import load_card_search_context
from .fetchers import fetch_all_search_hits
from .filters import FilterState, parse_filter_state
from .models import AppliedFilters, SearchResponse
from .results import build_search_items
from .scope import load_board_scope, resolve_workspace_scope
from .text import (
    build_fts_query,
    build_fuzzy_like_value,
    decode_cursor_offset,
    dedupe_search_items,
    encode_cursor_offset,
    normalize_search_text,
    sort_search_items,
    to_query_limit,
)
from .types import CardFilterContext, FetchArgs

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_QUERY_WINDOW = 240


def resolve_query_window(offset: int, limit: int) -> int:
    """How many rows each fetch phase may return.

    Facets and board suppression discard candidates after retrieval, so the
    window grows with the page size and depth.
    """
    return min(MAX_QUERY_WINDOW, offset + limit * 6 + 40)


def build_applied_filters(state: FilterState) -> AppliedFilters:
    return AppliedFilters(
        q=state.q,
        type=state.type,
        match=state.match,
        members=state.members,
        labels=state.labels,
        due=state.due,
        status=state.status,
        workspace=state.workspace,
        boards_hidden_by_card_filters=state.has_card_filters,
    )


async def search_workspace_content(
    db: aiosqlite.Connection,
    viewer_id: str,
    params: Mapping[str, str | None],
    *,
    limit: int | str | None = None,
    cursor: str | None = None,
    now: datetime | None = None,
) -> SearchResponse:
    """Search every workspace the viewer belongs to.

    Short queries and empty scopes produce an empty response, never an error.
    Store failures propagate, except a missing normalized-text column on
    boards, which degrades to an in-process name match.
    """
    state = parse_filter_state(params)
    applied_filters = build_applied_filters(state)
    empty = SearchResponse(items=[], next_cursor=None, applied_filters=applied_filters)

    normalized_query = normalize_search_text(state.q)
    if len(normalized_query) < MIN_QUERY_LENGTH:
        return empty

    page_size = to_query_limit(20 if limit is None else limit)
    offset = decode_cursor_offset(cursor)

    scope = await resolve_workspace_scope(db, viewer_id, state.workspace or None)
    if not scope.workspace_ids:
        logger.debug("Search scope empty for viewer %s (workspace=%r)", viewer_id, state.workspace)
        return empty

    board_scope_rows = await load_board_scope(db, scope.workspace_ids)
    if not board_scope_rows:
        return empty

    fetch_args = FetchArgs(
        board_ids=[board.id for board in board_scope_rows],
        fts_query=build_fts_query(state.q),
        fuzzy_like=build_fuzzy_like_value(normalized_query),
        normalized_query=normalized_query,
        query_window=resolve_query_window(offset, page_size),
    )
    hits = await fetch_all_search_hits(db, fetch_args, board_scope_rows)
    logger.debug(
        "Search hits (window=%d): boards=%d cards=%d comments=%d checklists=%d attachments=%d",
        fetch_args.query_window,
        len(hits.boards),
        len(hits.cards),
        len(hits.comments),
        len(hits.checklists),
        len(hits.attachments),
    )

    card_context = await load_card_search_context(db, hits, state)
    filter_context = CardFilterContext(
        state=state,
        viewer_id=viewer_id,
        now=now or datetime.now(UTC),
        assignee_ids_by_card_id=card_context.assignee_ids_by_card_id,
        label_ids_by_card_id=card_context.label_ids_by_card_id,
    )

    items = build_search_items(
        state=state,
        scope=scope,
        board_scope_rows=board_scope_rows,
        card_by_id=card_context.card_by_id,
        filter_context=filter_context,
        hits=hits,
        normalized_query=normalized_query,
        boards_hidden_by_card_filters=state.has_card_filters,
    )
    sort_search_items(items)
    items = dedupe_search_items(items)

    page = items[offset : offset + page_size]
    next_offset = offset + page_size
    return SearchResponse(
        items=page,
        next_cursor=encode_cursor_offset(next_offset) if next_offset < len(items) else None,
        applied_filters=applied_filters,
    )
