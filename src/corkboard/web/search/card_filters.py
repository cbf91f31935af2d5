"""Card facet context loading and the card filter predicate."""

from __future__ import annotations

import asyncio

import aiosqlite

from .filters import (
    LABEL_NO_LABEL,
    MEMBER_ASSIGNED_TO_ME,
    MEMBER_NO_MEMBER,
    CardStatus,
    FilterState,
    MatchMode,
)
from .scope import placeholders
from .text import resolve_due_bucket_matches
from .types import CardFilterContext, CardScopeRow, CardSearchContext, SearchHitCollections


def _matches_members(context: CardFilterContext, card_id: str) -> bool:
    assignee_ids = context.assignee_ids_by_card_id.get(card_id, set())
    for member in context.state.members:
        if member == MEMBER_NO_MEMBER:
            if not assignee_ids:
                return True
        elif member == MEMBER_ASSIGNED_TO_ME:
            if context.viewer_id in assignee_ids:
                return True
        elif member in assignee_ids:
            return True
    return False


def _matches_labels(context: CardFilterContext, card_id: str) -> bool:
    label_ids = context.label_ids_by_card_id.get(card_id, set())
    for label_id in context.state.labels:
        if label_id == LABEL_NO_LABEL:
            if not label_ids:
                return True
        elif label_id in label_ids:
            return True
    return False


def _matches_due(context: CardFilterContext, due_at: str | None) -> bool:
    matches = resolve_due_bucket_matches(due_at, context.now)
    return any(matches[bucket] for bucket in context.state.due)


def _matches_status(context: CardFilterContext, is_completed: bool) -> bool:
    return any(
        is_completed if status == CardStatus.COMPLETED else not is_completed
        for status in context.state.status
    )


def matches_card_filters(context: CardFilterContext, card: CardScopeRow) -> bool:
    """Evaluate the active facets for a card.

    Inactive facets never take part: in ``all`` mode every active facet must
    pass, in ``any`` mode one is enough. With no active facet the card passes.
    """
    state = context.state
    results = []
    if state.members:
        results.append(_matches_members(context, card.id))
    if state.labels:
        results.append(_matches_labels(context, card.id))
    if state.due:
        results.append(_matches_due(context, card.due_at))
    if state.status:
        results.append(_matches_status(context, card.is_completed))

    if not results:
        return True
    if state.match == MatchMode.ALL:
        return all(results)
    return any(results)


async def load_scoped_cards(db: aiosqlite.Connection, card_ids: list[str]) -> dict[str, CardScopeRow]:
    if not card_ids:
        return {}

    cursor = await db.execute(
        f"""SELECT id, board_id, title, due_at, is_completed, updated_at FROM cards
            WHERE id IN ({placeholders(card_ids)}) AND archived_at IS NULL""",
        card_ids,
    )
    return {
        r["id"]: CardScopeRow(
            id=r["id"],
            board_id=r["board_id"],
            title=r["title"],
            due_at=r["due_at"],
            is_completed=bool(r["is_completed"]),
            updated_at=r["updated_at"],
        )
        for r in await cursor.fetchall()
    }


async def _load_association(
    db: aiosqlite.Connection, table: str, column: str, card_ids: list[str]
) -> dict[str, set[str]]:
    cursor = await db.execute(
        f"SELECT card_id, {column} FROM {table} WHERE card_id IN ({placeholders(card_ids)})",
        card_ids,
    )
    grouped: dict[str, set[str]] = {}
    for row in await cursor.fetchall():
        grouped.setdefault(row["card_id"], set()).add(row[column])
    return grouped


async def list_assignees_for_cards(db: aiosqlite.Connection, card_ids: list[str]) -> dict[str, set[str]]:
    if not card_ids:
        return {}
    return await _load_association(db, "card_assignees", "user_id", card_ids)


async def list_labels_for_cards(db: aiosqlite.Connection, card_ids: list[str]) -> dict[str, set[str]]:
    if not card_ids:
        return {}
    return await _load_association(db, "card_labels", "label_id", card_ids)


async def _empty() -> dict[str, set[str]]:
    return {}


async def load_card_search_context(
    db: aiosqlite.Connection, hits: SearchHitCollections, state: FilterState
) -> CardSearchContext:
    """Load card rows for every hit, and assignees/labels only when filtered on."""
    card_ids = hits.candidate_card_ids()
    card_by_id, assignees, labels = await asyncio.gather(
        load_scoped_cards(db, card_ids),
        list_assignees_for_cards(db, card_ids) if state.members else _empty(),
        list_labels_for_cards(db, card_ids) if state.labels else _empty(),
    )
    return CardSearchContext(
        card_by_id=card_by_id,
        assignee_ids_by_card_id=assignees,
        label_ids_by_card_id=labels,
    )
