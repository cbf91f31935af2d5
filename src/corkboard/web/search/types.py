"""Request-scoped records passed between the search stages."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

from .filters import FilterState
from .models import WorkspaceOption

P = TypeVar("P")

SEARCH_TEXT_COLUMN = "search_text_normalized"


@dataclass
class HitRecord(Generic[P]):
    """A candidate match before it is shaped into a result item."""

    payload: P
    searchable_text: str
    matched_exact: bool = False
    matched_fuzzy: bool = False

    def mark_fuzzy(self, searchable_text: str | None) -> None:
        self.matched_fuzzy = True
        if searchable_text:
            self.searchable_text = searchable_text


def merge_fuzzy_rows(
    hits: dict[str, HitRecord[P]],
    rows: Sequence[Any],
    key: Callable[[Any], str],
    payload: Callable[[Any], P],
    fallback_text: Callable[[Any], str],
) -> None:
    """Fold fuzzy-phase rows into a hit table.

    Rows already found by the exact phase only gain ``matched_fuzzy`` and the
    store-computed normalized text; the rest become fuzzy-only hits.
    """
    for row in rows:
        stored_text = row[SEARCH_TEXT_COLUMN]
        existing = hits.get(key(row))
        if existing is not None:
            existing.mark_fuzzy(stored_text)
            continue
        hits[key(row)] = HitRecord(
            payload=payload(row),
            searchable_text=stored_text or fallback_text(row),
            matched_fuzzy=True,
        )


@dataclass(frozen=True)
class FetchArgs:
    """Inputs shared by every fetcher for one request."""

    board_ids: list[str]
    fts_query: str
    fuzzy_like: str
    normalized_query: str
    query_window: int


@dataclass(frozen=True)
class BoardHit:
    id: str
    workspace_id: str
    name: str
    description: str | None
    updated_at: str | None


@dataclass(frozen=True)
class CardHit:
    card_id: str
    title: str
    description: str | None
    updated_at: str | None


@dataclass(frozen=True)
class CommentHit:
    comment_id: str
    card_id: str
    body: str
    updated_at: str | None


@dataclass(frozen=True)
class ChecklistHit:
    entry_id: str
    entry_kind: Literal["checklist", "item"]
    checklist_id: str
    checklist_title: str
    card_id: str
    item_body: str | None
    updated_at: str | None


@dataclass(frozen=True)
class AttachmentHit:
    attachment_id: str
    card_id: str
    file_name: str
    external_url: str | None
    updated_at: str | None


@dataclass
class SearchHitCollections:
    boards: dict[str, HitRecord[BoardHit]] = field(default_factory=dict)
    cards: dict[str, HitRecord[CardHit]] = field(default_factory=dict)
    comments: dict[str, HitRecord[CommentHit]] = field(default_factory=dict)
    checklists: dict[str, HitRecord[ChecklistHit]] = field(default_factory=dict)
    attachments: dict[str, HitRecord[AttachmentHit]] = field(default_factory=dict)

    def candidate_card_ids(self) -> list[str]:
        """Every card referenced by a hit, directly or through a child entity."""
        card_ids: dict[str, None] = {}
        for table in (self.cards, self.comments, self.checklists, self.attachments):
            for hit in table.values():
                card_ids[hit.payload.card_id] = None
        return list(card_ids)


@dataclass(frozen=True)
class BoardScopeRow:
    id: str
    workspace_id: str
    name: str
    updated_at: str | None


@dataclass(frozen=True)
class CardScopeRow:
    id: str
    board_id: str
    title: str
    due_at: str | None
    is_completed: bool
    updated_at: str | None


@dataclass
class WorkspaceScope:
    scoped_workspaces: list[WorkspaceOption]
    workspace_by_id: dict[str, WorkspaceOption]

    @property
    def workspace_ids(self) -> list[str]:
        return [w.id for w in self.scoped_workspaces]


@dataclass
class CardSearchContext:
    card_by_id: dict[str, CardScopeRow]
    assignee_ids_by_card_id: dict[str, set[str]]
    label_ids_by_card_id: dict[str, set[str]]


@dataclass
class CardFilterContext:
    state: FilterState
    viewer_id: str
    now: datetime
    assignee_ids_by_card_id: dict[str, set[str]] = field(default_factory=dict)
    label_ids_by_card_id: dict[str, set[str]] = field(default_factory=dict)
