"""Checklist hits: checklist titles and checklist item bodies in one table."""

from __future__ import annotations

from dataclasses import dataclass

import aiosqlite

from .scope import placeholders
from .text import normalize_search_text
from .types import SEARCH_TEXT_COLUMN, ChecklistHit, FetchArgs, HitRecord, merge_fuzzy_rows

DEFAULT_CHECKLIST_TITLE = "Checklist"


@dataclass
class ChecklistScope:
    card_id_by_checklist_id: dict[str, str]
    title_by_checklist_id: dict[str, str]

    @property
    def checklist_ids(self) -> list[str]:
        return list(self.card_id_by_checklist_id)


def _checklist_key(row: aiosqlite.Row) -> str:
    return f"checklist:{row['id']}"


def _checklist_payload(row: aiosqlite.Row) -> ChecklistHit:
    return ChecklistHit(
        entry_id=row["id"],
        entry_kind="checklist",
        checklist_id=row["id"],
        checklist_title=row["title"],
        card_id=row["card_id"],
        item_body=None,
        updated_at=row["updated_at"],
    )


def _checklist_text(row: aiosqlite.Row) -> str:
    return normalize_search_text(row["title"])


async def _append_checklist_title_hits(
    db: aiosqlite.Connection, args: FetchArgs, hits: dict[str, HitRecord[ChecklistHit]]
) -> None:
    scope_sql = placeholders(args.board_ids)
    cursor = await db.execute(
        f"""SELECT cl.id, cl.card_id, cl.title, cl.updated_at
            FROM card_checklists_fts
            JOIN card_checklists cl ON cl.rowid = card_checklists_fts.rowid
            JOIN cards c ON c.id = cl.card_id
            WHERE card_checklists_fts MATCH ? AND c.board_id IN ({scope_sql})
            ORDER BY card_checklists_fts.rank
            LIMIT ?""",
        (args.fts_query, *args.board_ids, args.query_window),
    )
    for row in await cursor.fetchall():
        hits[_checklist_key(row)] = HitRecord(
            payload=_checklist_payload(row), searchable_text=_checklist_text(row), matched_exact=True
        )

    cursor = await db.execute(
        f"""SELECT cl.id, cl.card_id, cl.title, cl.updated_at, cl.{SEARCH_TEXT_COLUMN}
            FROM card_checklists cl
            JOIN cards c ON c.id = cl.card_id
            WHERE c.board_id IN ({scope_sql}) AND cl.{SEARCH_TEXT_COLUMN} LIKE ?
            ORDER BY cl.updated_at DESC
            LIMIT ?""",
        (*args.board_ids, args.fuzzy_like, args.query_window),
    )
    merge_fuzzy_rows(
        hits, await cursor.fetchall(), _checklist_key, _checklist_payload, _checklist_text
    )


async def load_checklist_scope(db: aiosqlite.Connection, board_ids: list[str]) -> ChecklistScope:
    """Checklists that belong to cards on the scoped boards."""
    cursor = await db.execute(
        f"""SELECT cl.id, cl.card_id, cl.title
            FROM card_checklists cl
            JOIN cards c ON c.id = cl.card_id
            WHERE c.board_id IN ({placeholders(board_ids)})""",
        board_ids,
    )
    rows = await cursor.fetchall()
    return ChecklistScope(
        card_id_by_checklist_id={r["id"]: r["card_id"] for r in rows},
        title_by_checklist_id={r["id"]: r["title"] for r in rows},
    )


async def _append_item_hits(
    db: aiosqlite.Connection,
    args: FetchArgs,
    scope: ChecklistScope,
    hits: dict[str, HitRecord[ChecklistHit]],
) -> None:
    checklist_ids = scope.checklist_ids
    if not checklist_ids:
        return

    def item_key(row: aiosqlite.Row) -> str:
        return f"checklist-item:{row['id']}"

    def item_payload(row: aiosqlite.Row) -> ChecklistHit:
        return ChecklistHit(
            entry_id=row["id"],
            entry_kind="item",
            checklist_id=row["checklist_id"],
            checklist_title=scope.title_by_checklist_id.get(
                row["checklist_id"], DEFAULT_CHECKLIST_TITLE
            ),
            card_id=scope.card_id_by_checklist_id[row["checklist_id"]],
            item_body=row["body"],
            updated_at=row["updated_at"],
        )

    def item_text(row: aiosqlite.Row) -> str:
        return normalize_search_text(row["body"])

    scope_sql = placeholders(checklist_ids)
    cursor = await db.execute(
        f"""SELECT i.id, i.checklist_id, i.body, i.updated_at
            FROM card_checklist_items_fts
            JOIN card_checklist_items i ON i.rowid = card_checklist_items_fts.rowid
            WHERE card_checklist_items_fts MATCH ? AND i.checklist_id IN ({scope_sql})
            ORDER BY card_checklist_items_fts.rank
            LIMIT ?""",
        (args.fts_query, *checklist_ids, args.query_window),
    )
    for row in await cursor.fetchall():
        hits[item_key(row)] = HitRecord(
            payload=item_payload(row), searchable_text=item_text(row), matched_exact=True
        )

    cursor = await db.execute(
        f"""SELECT id, checklist_id, body, updated_at, {SEARCH_TEXT_COLUMN}
            FROM card_checklist_items
            WHERE checklist_id IN ({scope_sql}) AND {SEARCH_TEXT_COLUMN} LIKE ?
            ORDER BY updated_at DESC
            LIMIT ?""",
        (*checklist_ids, args.fuzzy_like, args.query_window),
    )
    merge_fuzzy_rows(hits, await cursor.fetchall(), item_key, item_payload, item_text)


async def fetch_checklist_hits(
    db: aiosqlite.Connection, args: FetchArgs
) -> dict[str, HitRecord[ChecklistHit]]:
    """Checklist title hits first, then item hits bounded by the checklist scope."""
    hits: dict[str, HitRecord[ChecklistHit]] = {}
    if not args.board_ids:
        return hits

    await _append_checklist_title_hits(db, args, hits)
    scope = await load_checklist_scope(db, args.board_ids)
    await _append_item_hits(db, args, scope, hits)
    return hits
