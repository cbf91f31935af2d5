"""Search filter state: parsing request parameters and writing them back."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum

MAX_QUERY_LENGTH = 120

MEMBER_NO_MEMBER = "none"
MEMBER_ASSIGNED_TO_ME = "me"
LABEL_NO_LABEL = "none"


class EntityType(StrEnum):
    ALL = "all"
    ATTACHMENT = "attachment"
    BOARD = "board"
    CARD = "card"
    CHECKLIST = "checklist"
    COMMENT = "comment"


class MatchMode(StrEnum):
    ANY = "any"
    ALL = "all"


class CardStatus(StrEnum):
    COMPLETED = "completed"
    NOT_COMPLETED = "not-completed"


class DueBucket(StrEnum):
    OVERDUE = "overdue"
    DUE_TOMORROW = "due-tomorrow"
    DUE_NEXT_7_DAYS = "due-next-7-days"
    DUE_NEXT_30_DAYS = "due-next-30-days"
    NO_DUE_DATE = "no-due-date"


_STATUS_VALUES = {s.value for s in CardStatus}
_DUE_VALUES = {b.value for b in DueBucket}


@dataclass
class FilterState:
    q: str = ""
    type: EntityType = EntityType.ALL
    match: MatchMode = MatchMode.ANY
    members: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    due: list[DueBucket] = field(default_factory=list)
    status: list[CardStatus] = field(default_factory=list)
    workspace: str = ""

    @property
    def has_card_filters(self) -> bool:
        """Any facet that only makes sense for cards (and hides boards)."""
        return bool(self.members or self.labels or self.due or self.status)


def _unique(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    output = []
    for value in values:
        normalized = value.strip()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        output.append(normalized)
    return output


def _parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return _unique(value.split(","))


def clamp_query(query: str) -> str:
    return query.strip()[:MAX_QUERY_LENGTH]


def _parse_type(value: str | None) -> EntityType:
    try:
        return EntityType(value or "all")
    except ValueError:
        return EntityType.ALL


def _parse_match(value: str | None) -> MatchMode:
    return MatchMode.ALL if value == "all" else MatchMode.ANY


def parse_filter_state(params: Mapping[str, str | None]) -> FilterState:
    """Build a FilterState from flat query parameters.

    Unknown ``type`` values fall back to ``all``; unknown due buckets and
    statuses are dropped rather than rejected.
    """
    return FilterState(
        q=clamp_query(params.get("q") or ""),
        type=_parse_type(params.get("type")),
        match=_parse_match(params.get("match")),
        members=_parse_csv(params.get("members")),
        labels=_parse_csv(params.get("labels")),
        due=[DueBucket(v) for v in _parse_csv(params.get("due")) if v in _DUE_VALUES],
        status=[CardStatus(v) for v in _parse_csv(params.get("status")) if v in _STATUS_VALUES],
        workspace=(params.get("workspace") or "").strip(),
    )


def filter_state_to_params(state: FilterState) -> dict[str, str]:
    """Inverse of parse_filter_state; defaults and empty lists are omitted."""
    params: dict[str, str] = {}
    q = clamp_query(state.q)
    if q:
        params["q"] = q
    workspace = state.workspace.strip()
    if workspace:
        params["workspace"] = workspace
    if state.type != EntityType.ALL:
        params["type"] = state.type.value
    if state.match != MatchMode.ANY:
        params["match"] = state.match.value

    csv_fields = {
        "members": _unique(state.members),
        "labels": _unique(state.labels),
        "due": _unique(b.value for b in state.due),
        "status": _unique(s.value for s in state.status),
    }
    for key, values in csv_fields.items():
        if values:
            params[key] = ",".join(values)
    return params
