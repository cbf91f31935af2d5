"""Per-entity hit fetchers: an exact FTS5 phase, then a fuzzy LIKE phase."""

from __future__ import annotations

import asyncio
import logging

import aiosqlite

from .fetchers_checklist import fetch_checklist_hits
from .scope import placeholders
from .text import is_missing_column_error, normalize_search_text
from .types import (
    SEARCH_TEXT_COLUMN,
    AttachmentHit,
    BoardHit,
    BoardScopeRow,
    CardHit,
    CommentHit,
    FetchArgs,
    HitRecord,
    SearchHitCollections,
    merge_fuzzy_rows,
)

logger = logging.getLogger(__name__)


# --- Boards ---


def _board_payload(row: aiosqlite.Row) -> BoardHit:
    return BoardHit(
        id=row["id"],
        workspace_id=row["workspace_id"],
        name=row["name"],
        description=row["description"],
        updated_at=row["updated_at"],
    )


def _board_text(row: aiosqlite.Row) -> str:
    return normalize_search_text(f"{row['name']} {row['description'] or ''}")


def _apply_board_fallback(
    hits: dict[str, HitRecord[BoardHit]], board_scope_rows: list[BoardScopeRow], normalized_query: str
) -> None:
    """Substring match on the already-scoped board names."""
    for board in board_scope_rows:
        if normalized_query not in normalize_search_text(board.name):
            continue
        existing = hits.get(board.id)
        if existing is not None:
            existing.matched_fuzzy = True
            continue
        hits[board.id] = HitRecord(
            payload=BoardHit(
                id=board.id,
                workspace_id=board.workspace_id,
                name=board.name,
                description=None,
                updated_at=board.updated_at,
            ),
            searchable_text=normalize_search_text(board.name),
            matched_fuzzy=True,
        )


async def fetch_board_hits(
    db: aiosqlite.Connection, args: FetchArgs, board_scope_rows: list[BoardScopeRow]
) -> dict[str, HitRecord[BoardHit]]:
    hits: dict[str, HitRecord[BoardHit]] = {}
    if not board_scope_rows:
        return hits

    scope_sql = placeholders(args.board_ids)
    cursor = await db.execute(
        f"""SELECT b.id, b.workspace_id, b.name, b.description, b.updated_at
            FROM boards_fts
            JOIN boards b ON b.rowid = boards_fts.rowid
            WHERE boards_fts MATCH ?
              AND b.id IN ({scope_sql}) AND b.archived_at IS NULL
            ORDER BY boards_fts.rank
            LIMIT ?""",
        (args.fts_query, *args.board_ids, args.query_window),
    )
    for row in await cursor.fetchall():
        hits[row["id"]] = HitRecord(
            payload=_board_payload(row), searchable_text=_board_text(row), matched_exact=True
        )

    try:
        cursor = await db.execute(
            f"""SELECT id, workspace_id, name, description, updated_at, {SEARCH_TEXT_COLUMN}
                FROM boards
                WHERE id IN ({scope_sql}) AND archived_at IS NULL
                  AND {SEARCH_TEXT_COLUMN} LIKE ?
                ORDER BY updated_at DESC
                LIMIT ?""",
            (*args.board_ids, args.fuzzy_like, args.query_window),
        )
        fuzzy_rows = await cursor.fetchall()
    except aiosqlite.OperationalError as exc:
        if not is_missing_column_error(exc, SEARCH_TEXT_COLUMN):
            raise
        logger.warning("boards.%s is missing; falling back to name containment", SEARCH_TEXT_COLUMN)
        _apply_board_fallback(hits, board_scope_rows, args.normalized_query)
        return hits

    merge_fuzzy_rows(hits, fuzzy_rows, lambda r: r["id"], _board_payload, _board_text)
    return hits


# --- Cards ---


def _card_payload(row: aiosqlite.Row) -> CardHit:
    return CardHit(
        card_id=row["id"],
        title=row["title"],
        description=row["description"],
        updated_at=row["updated_at"],
    )


def _card_text(row: aiosqlite.Row) -> str:
    return normalize_search_text(f"{row['title']} {row['description'] or ''}")


async def fetch_card_hits(db: aiosqlite.Connection, args: FetchArgs) -> dict[str, HitRecord[CardHit]]:
    hits: dict[str, HitRecord[CardHit]] = {}
    if not args.board_ids:
        return hits

    scope_sql = placeholders(args.board_ids)
    cursor = await db.execute(
        f"""SELECT c.id, c.title, c.description, c.updated_at
            FROM cards_fts
            JOIN cards c ON c.rowid = cards_fts.rowid
            WHERE cards_fts MATCH ?
              AND c.board_id IN ({scope_sql}) AND c.archived_at IS NULL
            ORDER BY cards_fts.rank
            LIMIT ?""",
        (args.fts_query, *args.board_ids, args.query_window),
    )
    for row in await cursor.fetchall():
        hits[row["id"]] = HitRecord(
            payload=_card_payload(row), searchable_text=_card_text(row), matched_exact=True
        )

    cursor = await db.execute(
        f"""SELECT id, title, description, updated_at, {SEARCH_TEXT_COLUMN}
            FROM cards
            WHERE board_id IN ({scope_sql}) AND archived_at IS NULL
              AND {SEARCH_TEXT_COLUMN} LIKE ?
            ORDER BY updated_at DESC
            LIMIT ?""",
        (*args.board_ids, args.fuzzy_like, args.query_window),
    )
    merge_fuzzy_rows(hits, await cursor.fetchall(), lambda r: r["id"], _card_payload, _card_text)
    return hits


# --- Comments ---


def _comment_payload(row: aiosqlite.Row) -> CommentHit:
    return CommentHit(
        comment_id=row["id"], card_id=row["card_id"], body=row["body"], updated_at=row["updated_at"]
    )


def _comment_text(row: aiosqlite.Row) -> str:
    return normalize_search_text(row["body"])


async def fetch_comment_hits(
    db: aiosqlite.Connection, args: FetchArgs
) -> dict[str, HitRecord[CommentHit]]:
    hits: dict[str, HitRecord[CommentHit]] = {}
    if not args.board_ids:
        return hits

    scope_sql = placeholders(args.board_ids)
    cursor = await db.execute(
        f"""SELECT cc.id, cc.card_id, cc.body, cc.updated_at
            FROM card_comments_fts
            JOIN card_comments cc ON cc.rowid = card_comments_fts.rowid
            JOIN cards c ON c.id = cc.card_id
            WHERE card_comments_fts MATCH ? AND c.board_id IN ({scope_sql})
            ORDER BY card_comments_fts.rank
            LIMIT ?""",
        (args.fts_query, *args.board_ids, args.query_window),
    )
    for row in await cursor.fetchall():
        hits[row["id"]] = HitRecord(
            payload=_comment_payload(row), searchable_text=_comment_text(row), matched_exact=True
        )

    cursor = await db.execute(
        f"""SELECT cc.id, cc.card_id, cc.body, cc.updated_at, cc.{SEARCH_TEXT_COLUMN}
            FROM card_comments cc
            JOIN cards c ON c.id = cc.card_id
            WHERE c.board_id IN ({scope_sql}) AND cc.{SEARCH_TEXT_COLUMN} LIKE ?
            ORDER BY cc.updated_at DESC
            LIMIT ?""",
        (*args.board_ids, args.fuzzy_like, args.query_window),
    )
    merge_fuzzy_rows(
        hits, await cursor.fetchall(), lambda r: r["id"], _comment_payload, _comment_text
    )
    return hits


# --- Attachments ---


def _attachment_payload(row: aiosqlite.Row) -> AttachmentHit:
    return AttachmentHit(
        attachment_id=row["id"],
        card_id=row["card_id"],
        file_name=row["file_name"],
        external_url=row["external_url"],
        updated_at=row["updated_at"],
    )


def _attachment_text(row: aiosqlite.Row) -> str:
    return normalize_search_text(f"{row['file_name']} {row['external_url'] or ''}")


async def fetch_attachment_hits(
    db: aiosqlite.Connection, args: FetchArgs
) -> dict[str, HitRecord[AttachmentHit]]:
    hits: dict[str, HitRecord[AttachmentHit]] = {}
    if not args.board_ids:
        return hits

    scope_sql = placeholders(args.board_ids)
    cursor = await db.execute(
        f"""SELECT a.id, a.card_id, a.file_name, a.external_url, a.updated_at
            FROM attachments_fts
            JOIN attachments a ON a.rowid = attachments_fts.rowid
            JOIN cards c ON c.id = a.card_id
            WHERE attachments_fts MATCH ? AND c.board_id IN ({scope_sql})
            ORDER BY attachments_fts.rank
            LIMIT ?""",
        (args.fts_query, *args.board_ids, args.query_window),
    )
    for row in await cursor.fetchall():
        hits[row["id"]] = HitRecord(
            payload=_attachment_payload(row),
            searchable_text=_attachment_text(row),
            matched_exact=True,
        )

    cursor = await db.execute(
        f"""SELECT a.id, a.card_id, a.file_name, a.external_url, a.updated_at,
                   a.{SEARCH_TEXT_COLUMN}
            FROM attachments a
            JOIN cards c ON c.id = a.card_id
            WHERE c.board_id IN ({scope_sql}) AND a.{SEARCH_TEXT_COLUMN} LIKE ?
            ORDER BY a.updated_at DESC
            LIMIT ?""",
        (*args.board_ids, args.fuzzy_like, args.query_window),
    )
    merge_fuzzy_rows(
        hits, await cursor.fetchall(), lambda r: r["id"], _attachment_payload, _attachment_text
    )
    return hits


async def fetch_all_search_hits(
    db: aiosqlite.Connection, args: FetchArgs, board_scope_rows: list[BoardScopeRow]
) -> SearchHitCollections:
    """Run the five fetchers concurrently. A failing fetcher fails the request."""
    boards, cards, comments, checklists, attachments = await asyncio.gather(
        fetch_board_hits(db, args, board_scope_rows),
        fetch_card_hits(db, args),
        fetch_comment_hits(db, args),
        fetch_checklist_hits(db, args),
        fetch_attachment_hits(db, args),
    )
    return SearchHitCollections(
        boards=boards,
        cards=cards,
        comments=comments,
        checklists=checklists,
        attachments=attachments,
    )
