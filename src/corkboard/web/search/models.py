"""Search Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .filters import CardStatus, DueBucket, EntityType, MatchMode


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WorkspaceOption(_CamelModel):
    id: str
    slug: str
    name: str


class BoardRef(_CamelModel):
    id: str
    name: str


class CardRef(_CamelModel):
    id: str
    title: str


class SearchResultItem(_CamelModel):
    id: str
    entity_type: EntityType
    entity_id: str
    title: str
    snippet: str | None = None
    href: str
    workspace: WorkspaceOption
    board: BoardRef | None = None
    card: CardRef | None = None
    updated_at: str | None = None
    score: float


class AppliedFilters(_CamelModel):
    q: str
    type: EntityType
    match: MatchMode
    members: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    due: list[DueBucket] = Field(default_factory=list)
    status: list[CardStatus] = Field(default_factory=list)
    workspace: str = ""
    boards_hidden_by_card_filters: bool = False


class SearchResponse(_CamelModel):
    items: list[SearchResultItem]
    next_cursor: str | None = None
    applied_filters: AppliedFilters


class MemberOption(_CamelModel):
    id: str
    display_name: str
    avatar_url: str | None = None


class LabelOption(_CamelModel):
    id: str
    name: str
    color: str


class SearchBootstrap(_CamelModel):
    viewer_id: str
    workspaces: list[WorkspaceOption]
    member_options_by_workspace_slug: dict[str, list[MemberOption]] = Field(default_factory=dict)
    label_options_by_workspace_slug: dict[str, list[LabelOption]] = Field(default_factory=dict)
