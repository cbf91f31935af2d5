"""Turn hit tables into ranked, navigable search result items."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from .card_filters import matches_card_filters
from .filters import EntityType, FilterState
from .models import BoardRef, CardRef, SearchResultItem, WorkspaceOption
from .text import compute_search_score, search_item_identity, to_iso_or_none, trim_snippet
from .types import (
    BoardScopeRow,
    CardFilterContext,
    CardScopeRow,
    HitRecord,
    SearchHitCollections,
    WorkspaceScope,
)


def board_href(workspace_slug: str, board_id: str) -> str:
    return f"/w/{workspace_slug}/board/{board_id}"


def card_href(workspace_slug: str, board_id: str, card_id: str) -> str:
    return f"{board_href(workspace_slug, board_id)}?c={quote(card_id, safe='')}"


def _allows(state: FilterState, entity_type: EntityType) -> bool:
    return state.type == EntityType.ALL or state.type == entity_type


@dataclass(frozen=True)
class CardRoute:
    card: CardScopeRow
    board: BoardScopeRow
    workspace: WorkspaceOption
    href: str


@dataclass
class ResultBuilder:
    """Joins hits with scope and card context for one request."""

    state: FilterState
    scope: WorkspaceScope
    board_by_id: dict[str, BoardScopeRow]
    card_by_id: dict[str, CardScopeRow]
    filter_context: CardFilterContext
    normalized_query: str
    boards_hidden_by_card_filters: bool

    def _score(self, hit: HitRecord) -> float:
        return compute_search_score(
            matched_exact=hit.matched_exact,
            query_normalized=self.normalized_query,
            searchable_text=hit.searchable_text,
        )

    def _resolve_card(self, card_id: str) -> CardRoute | None:
        """Find a card's board and workspace and apply the facets.

        ``None`` means the hit is stale (card, board or workspace gone) or the
        card was filtered out; either way it is dropped without error.
        """
        card = self.card_by_id.get(card_id)
        if card is None:
            return None
        if not matches_card_filters(self.filter_context, card):
            return None
        board = self.board_by_id.get(card.board_id)
        if board is None:
            return None
        workspace = self.scope.workspace_by_id.get(board.workspace_id)
        if workspace is None:
            return None
        return CardRoute(
            card=card,
            board=board,
            workspace=workspace,
            href=card_href(workspace.slug, board.id, card.id),
        )

    def _card_item(
        self,
        route: CardRoute,
        hit: HitRecord,
        entity_type: EntityType,
        entity_id: str,
        title: str,
        snippet: str | None,
        updated_at: str | None,
    ) -> SearchResultItem:
        return SearchResultItem(
            id=search_item_identity(entity_type, entity_id),
            entity_type=entity_type,
            entity_id=entity_id,
            title=title,
            snippet=snippet,
            href=route.href,
            workspace=route.workspace,
            board=BoardRef(id=route.board.id, name=route.board.name),
            card=CardRef(id=route.card.id, title=route.card.title),
            updated_at=to_iso_or_none(updated_at),
            score=self._score(hit),
        )

    def board_items(self, hits: SearchHitCollections) -> list[SearchResultItem]:
        if self.boards_hidden_by_card_filters or not _allows(self.state, EntityType.BOARD):
            return []

        items = []
        for hit in hits.boards.values():
            board = hit.payload
            workspace = self.scope.workspace_by_id.get(board.workspace_id)
            if workspace is None or board.id not in self.board_by_id:
                continue
            items.append(
                SearchResultItem(
                    id=search_item_identity(EntityType.BOARD, board.id),
                    entity_type=EntityType.BOARD,
                    entity_id=board.id,
                    title=board.name,
                    snippet=trim_snippet(board.description),
                    href=board_href(workspace.slug, board.id),
                    workspace=workspace,
                    board=BoardRef(id=board.id, name=board.name),
                    updated_at=to_iso_or_none(board.updated_at),
                    score=self._score(hit),
                )
            )
        return items

    def card_items(self, hits: SearchHitCollections) -> list[SearchResultItem]:
        if not _allows(self.state, EntityType.CARD):
            return []

        items = []
        for hit in hits.cards.values():
            route = self._resolve_card(hit.payload.card_id)
            if route is None:
                continue
            items.append(
                self._card_item(
                    route,
                    hit,
                    EntityType.CARD,
                    route.card.id,
                    title=route.card.title,
                    snippet=trim_snippet(hit.payload.description),
                    updated_at=hit.payload.updated_at or route.card.updated_at,
                )
            )
        return items

    def comment_items(self, hits: SearchHitCollections) -> list[SearchResultItem]:
        if not _allows(self.state, EntityType.COMMENT):
            return []

        items = []
        for hit in hits.comments.values():
            route = self._resolve_card(hit.payload.card_id)
            if route is None:
                continue
            items.append(
                self._card_item(
                    route,
                    hit,
                    EntityType.COMMENT,
                    hit.payload.comment_id,
                    title=f"Comment on {route.card.title}",
                    snippet=trim_snippet(hit.payload.body),
                    updated_at=hit.payload.updated_at,
                )
            )
        return items

    def checklist_items(self, hits: SearchHitCollections) -> list[SearchResultItem]:
        if not _allows(self.state, EntityType.CHECKLIST):
            return []

        items = []
        for hit in hits.checklists.values():
            entry = hit.payload
            route = self._resolve_card(entry.card_id)
            if route is None:
                continue
            if entry.entry_kind == "checklist":
                title, snippet = entry.checklist_title, None
            else:
                title, snippet = f"{entry.checklist_title} item", trim_snippet(entry.item_body)
            items.append(
                self._card_item(
                    route,
                    hit,
                    EntityType.CHECKLIST,
                    entry.entry_id,
                    title=title,
                    snippet=snippet,
                    updated_at=entry.updated_at,
                )
            )
        return items

    def attachment_items(self, hits: SearchHitCollections) -> list[SearchResultItem]:
        if not _allows(self.state, EntityType.ATTACHMENT):
            return []

        items = []
        for hit in hits.attachments.values():
            route = self._resolve_card(hit.payload.card_id)
            if route is None:
                continue
            items.append(
                self._card_item(
                    route,
                    hit,
                    EntityType.ATTACHMENT,
                    hit.payload.attachment_id,
                    title=hit.payload.file_name,
                    snippet=trim_snippet(hit.payload.external_url),
                    updated_at=hit.payload.updated_at,
                )
            )
        return items


def build_search_items(
    *,
    state: FilterState,
    scope: WorkspaceScope,
    board_scope_rows: list[BoardScopeRow],
    card_by_id: dict[str, CardScopeRow],
    filter_context: CardFilterContext,
    hits: SearchHitCollections,
    normalized_query: str,
    boards_hidden_by_card_filters: bool,
) -> list[SearchResultItem]:
    """Build one unsorted list of result items across all entity types."""
    builder = ResultBuilder(
        state=state,
        scope=scope,
        board_by_id={board.id: board for board in board_scope_rows},
        card_by_id=card_by_id,
        filter_context=filter_context,
        normalized_query=normalized_query,
        boards_hidden_by_card_filters=boards_hidden_by_card_filters,
    )
    return [
        *builder.board_items(hits),
        *builder.card_items(hits),
        *builder.comment_items(hits),
        *builder.checklist_items(hits),
        *builder.attachment_items(hits),
    ]
