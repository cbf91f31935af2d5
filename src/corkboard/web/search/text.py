"""Pure text, scoring and pagination helpers for workspace search."""

from __future__ import annotations

import base64
import binascii
import json
import math
import re
import unicodedata
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from .filters import DueBucket

if TYPE_CHECKING:
    from .models import SearchResultItem

MAX_NORMALIZED_LENGTH = 220
DEFAULT_QUERY_LIMIT = 20
MAX_QUERY_LIMIT = 50

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_WHITESPACE = re.compile(r"\s+")


def to_query_limit(limit: int | float | str | None) -> int:
    """Clamp a requested page size to [1, 50]; non-numeric input means 20."""
    try:
        value = float(limit)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_QUERY_LIMIT
    if not math.isfinite(value):
        return DEFAULT_QUERY_LIMIT
    return max(1, min(MAX_QUERY_LIMIT, math.floor(value)))


def normalize_search_text(value: str | None) -> str:
    """Decompose, strip diacritics, lowercase, trim and cap at 220 characters."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower().strip()[:MAX_NORMALIZED_LENGTH]


def build_fuzzy_like_value(query: str) -> str:
    """Turn a query into an over-inclusive LIKE pattern: ``%tok1%tok2%``."""
    tokens = [token for token in query.split() if token]
    return f"%{'%'.join(tokens)}%"


def build_fts_query(raw: str) -> str:
    """Quote every word so FTS5 treats user input as literal terms (implicit AND)."""
    words = raw.strip().split()
    if not words:
        return ""
    return " ".join('"' + word.replace('"', '""') + '"' for word in words)


def trim_snippet(value: str | None, max_length: int = 180) -> str | None:
    if not value:
        return None
    collapsed = _WHITESPACE.sub(" ", value).strip()
    if not collapsed:
        return None
    if len(collapsed) <= max_length:
        return collapsed
    return collapsed[: max(10, max_length - 1)].rstrip() + "…"


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO or SQLite ``CURRENT_TIMESTAMP`` value; naive times are UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def to_iso_or_none(value: str | datetime | None) -> str | None:
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _start_of_day(moment: datetime) -> datetime:
    return moment.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)


def resolve_due_bucket_matches(due_at: str | datetime | None, now: datetime) -> dict[DueBucket, bool]:
    """Work out which due-date buckets a card falls in, relative to ``now`` (UTC days).

    Tomorrow is ``[day+1, day+2)``, the next seven days ``[day+2, day+7]`` and
    the next thirty ``(day+7, day+30]``, so the three never overlap or leave a gap.
    """
    due = parse_timestamp(due_at)
    if due is None:
        return {
            DueBucket.OVERDUE: False,
            DueBucket.DUE_TOMORROW: False,
            DueBucket.DUE_NEXT_7_DAYS: False,
            DueBucket.DUE_NEXT_30_DAYS: False,
            DueBucket.NO_DUE_DATE: True,
        }

    today = _start_of_day(now)
    tomorrow_start = today + timedelta(days=1)
    tomorrow_end = today + timedelta(days=2)
    seven_days_ahead = today + timedelta(days=7)
    thirty_days_ahead = today + timedelta(days=30)

    return {
        DueBucket.OVERDUE: due < now,
        DueBucket.DUE_TOMORROW: tomorrow_start <= due < tomorrow_end,
        DueBucket.DUE_NEXT_7_DAYS: tomorrow_end <= due <= seven_days_ahead,
        DueBucket.DUE_NEXT_30_DAYS: seven_days_ahead < due <= thirty_days_ahead,
        DueBucket.NO_DUE_DATE: False,
    }


def _trigrams(value: str) -> set[str]:
    padded = f"  {value} "
    return {padded[i : i + 3] for i in range(len(padded) - 2)}


def trigram_similarity(left: str, right: str) -> float:
    """Dice coefficient over the *sets* of padded trigrams of both strings.

    Repeated trigrams count once. Returns 0.0 when either side is empty.
    """
    if not left or not right:
        return 0.0
    left_set = _trigrams(left)
    right_set = _trigrams(right)
    denominator = len(left_set) + len(right_set)
    if denominator < 1:
        return 0.0
    return 2 * len(left_set & right_set) / denominator


def compute_search_score(*, matched_exact: bool, query_normalized: str, searchable_text: str) -> float:
    """Blend exact and fuzzy evidence: ``0.75 * exact + 0.25 * trigram``.

    A fuzzy-only hit tops out at 0.25 and an exact hit starts at 0.75, so exact
    matches always rank first.
    """
    fuzzy_score = trigram_similarity(searchable_text, query_normalized)
    exact_score = 1.0 if matched_exact else 0.0
    return round(0.75 * exact_score + 0.25 * fuzzy_score, 6)


def is_missing_column_error(error: Exception, column_name: str) -> bool:
    """True when SQLite reports ``no such column`` for ``column_name``."""
    message = str(error).lower()
    return "no such column" in message and column_name.lower() in message


def decode_cursor_offset(cursor: str | None) -> int:
    """Read the offset out of an opaque cursor. Anything unreadable means 0."""
    if not cursor:
        return 0
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        decoded = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        return 0
    if not isinstance(decoded, dict):
        return 0
    raw = decoded.get("offset")
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        return 0
    try:
        offset = float(raw)
    except ValueError:
        return 0
    if not math.isfinite(offset) or offset < 0:
        return 0
    return math.floor(offset)


def encode_cursor_offset(offset: int) -> str:
    raw = json.dumps({"offset": offset}, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def search_item_identity(entity_type: str, entity_id: str) -> str:
    return f"{entity_type}:{entity_id}"


def _sort_key(item: SearchResultItem) -> tuple[float, float, str, str]:
    updated = parse_timestamp(item.updated_at) or _EPOCH
    return (-item.score, -updated.timestamp(), item.entity_type, item.id)


def sort_search_items(items: list[SearchResultItem]) -> None:
    """Sort in place: score desc, updated-at desc, entity type, then id."""
    items.sort(key=_sort_key)


def dedupe_search_items(items: list[SearchResultItem]) -> list[SearchResultItem]:
    """Drop repeated result ids, keeping the first (best ranked) occurrence."""
    seen: set[str] = set()
    unique = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique
