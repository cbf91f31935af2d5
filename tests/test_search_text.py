"""Tests for the pure text, scoring and cursor helpers."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from corkboard.web.search.filters import DueBucket, EntityType
from corkboard.web.search.models import SearchResultItem, WorkspaceOption
from corkboard.web.search.text import (
    build_fts_query,
    build_fuzzy_like_value,
    compute_search_score,
    decode_cursor_offset,
    dedupe_search_items,
    encode_cursor_offset,
    is_missing_column_error,
    normalize_search_text,
    resolve_due_bucket_matches,
    sort_search_items,
    to_iso_or_none,
    to_query_limit,
    trigram_similarity,
    trim_snippet,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


class TestNormalizeSearchText:
    def test_strips_diacritics_and_lowercases(self):
        assert normalize_search_text("  Café RÉSUMÉ  ") == "cafe resume"

    def test_empty_and_none(self):
        assert normalize_search_text(None) == ""
        assert normalize_search_text("   ") == ""

    def test_caps_length(self):
        assert len(normalize_search_text("x" * 500)) == 220


class TestQueryBuilders:
    def test_fuzzy_like_joins_tokens_with_wildcards(self):
        assert build_fuzzy_like_value("sprint  planning") == "%sprint%planning%"

    def test_fts_query_quotes_each_word(self):
        assert build_fts_query('sprint "plan') == '"sprint" """plan"'

    def test_fts_query_blank(self):
        assert build_fts_query("   ") == ""


class TestToQueryLimit:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(None, 20), ("abc", 20), (float("nan"), 20), (0, 1), (-5, 1), (7.9, 7), ("12", 12), (500, 50)],
    )
    def test_clamps(self, raw, expected):
        assert to_query_limit(raw) == expected


class TestTrimSnippet:
    def test_collapses_whitespace(self):
        assert trim_snippet("a\n\n  b\tc") == "a b c"

    def test_empty_is_none(self):
        assert trim_snippet("") is None
        assert trim_snippet(" \n ") is None

    def test_truncates_with_ellipsis(self):
        snippet = trim_snippet("word " * 100)
        assert snippet.endswith("…")
        assert len(snippet) <= 180


class TestTrigramSimilarity:
    def test_identical(self):
        assert trigram_similarity("sprint", "sprint") == 1.0

    def test_disjoint(self):
        assert trigram_similarity("abc", "xyz") == 0.0

    def test_empty_side(self):
        assert trigram_similarity("", "abc") == 0.0

    def test_repeated_trigrams_count_once(self):
        assert trigram_similarity("aaaa", "aaa") == 1.0

    def test_symmetric(self):
        assert trigram_similarity("sprint plan", "sprint") == trigram_similarity("sprint", "sprint plan")


class TestComputeSearchScore:
    def test_exact_floor_and_ceiling(self):
        assert compute_search_score(matched_exact=True, query_normalized="abc", searchable_text="xyz") == 0.75
        assert compute_search_score(matched_exact=True, query_normalized="abc", searchable_text="abc") == 1.0

    def test_fuzzy_only_tops_out_at_quarter(self):
        assert compute_search_score(matched_exact=False, query_normalized="abc", searchable_text="abc") == 0.25

    def test_rounded_to_six_places(self):
        score = compute_search_score(
            matched_exact=False, query_normalized="sprint", searchable_text="sprint planning notes"
        )
        assert score == round(score, 6)
        assert 0 < score < 0.25


class TestCursor:
    def test_round_trip(self):
        assert decode_cursor_offset(encode_cursor_offset(40)) == 40

    def test_padding_stripped(self):
        assert "=" not in encode_cursor_offset(1)

    @pytest.mark.parametrize("cursor", [None, "", "!!!", "bm90LWpzb24", "WzFd", "eyJvZmZzZXQiOi01fQ"])
    def test_unreadable_means_zero(self, cursor):
        # "bm90LWpzb24" is not-json, "WzFd" is [1], the last one is {"offset":-5}
        assert decode_cursor_offset(cursor) == 0

    def test_fractional_offset_floors(self):
        # {"offset":"7.8"}
        assert decode_cursor_offset("eyJvZmZzZXQiOiI3LjgifQ") == 7


class TestDueBuckets:
    def test_no_due_date(self):
        matches = resolve_due_bucket_matches(None, NOW)
        assert matches[DueBucket.NO_DUE_DATE] is True
        assert not any(v for k, v in matches.items() if k != DueBucket.NO_DUE_DATE)

    def test_overdue(self):
        assert resolve_due_bucket_matches("2026-03-09 10:00:00", NOW)[DueBucket.OVERDUE]

    def test_earlier_today_is_overdue(self):
        assert resolve_due_bucket_matches("2026-03-10T11:00:00Z", NOW)[DueBucket.OVERDUE]

    def test_tomorrow(self):
        matches = resolve_due_bucket_matches("2026-03-11 08:00:00", NOW)
        assert matches[DueBucket.DUE_TOMORROW]
        assert not matches[DueBucket.DUE_NEXT_7_DAYS]

    def test_next_seven_days(self):
        matches = resolve_due_bucket_matches("2026-03-14 10:00:00", NOW)
        assert matches[DueBucket.DUE_NEXT_7_DAYS]
        assert not matches[DueBucket.DUE_TOMORROW]
        assert not matches[DueBucket.OVERDUE]

    def test_next_thirty_days(self):
        matches = resolve_due_bucket_matches("2026-04-01 00:00:00", NOW)
        assert matches[DueBucket.DUE_NEXT_30_DAYS]
        assert not matches[DueBucket.DUE_NEXT_7_DAYS]

    def test_day_after_tomorrow_midnight_starts_next_seven_days(self):
        matches = resolve_due_bucket_matches("2026-03-12 00:00:00", NOW)
        assert matches[DueBucket.DUE_NEXT_7_DAYS]
        assert not matches[DueBucket.DUE_TOMORROW]


class TestTimestamps:
    def test_iso_with_milliseconds(self):
        assert to_iso_or_none("2026-03-09 10:00:00") == "2026-03-09T10:00:00.000Z"

    def test_invalid(self):
        assert to_iso_or_none("yesterday") is None
        assert to_iso_or_none(None) is None


def _item(item_id: str, score: float, updated_at: str | None, entity_type=EntityType.CARD):
    return SearchResultItem(
        id=item_id,
        entity_type=entity_type,
        entity_id=item_id,
        title=item_id,
        href="/w/acme/board/b1",
        workspace=WorkspaceOption(id="ws", slug="acme", name="Acme"),
        updated_at=updated_at,
        score=score,
    )


class TestSortSearchItems:
    def test_orders_by_score_then_recency_then_type_then_id(self):
        items = [
            _item("card:z", 0.8, "2026-03-01T00:00:00.000Z"),
            _item("card:b", 0.9, None),
            _item("card:a", 0.8, "2026-03-05T00:00:00.000Z"),
            _item("board:a", 0.8, "2026-03-01T00:00:00.000Z", EntityType.BOARD),
            _item("card:y", 0.8, "2026-03-01T00:00:00.000Z"),
        ]
        sort_search_items(items)
        assert [i.id for i in items] == ["card:b", "card:a", "board:a", "card:y", "card:z"]

    def test_missing_timestamp_sorts_last_within_score(self):
        items = [_item("card:a", 0.5, None), _item("card:b", 0.5, "2020-01-01T00:00:00.000Z")]
        sort_search_items(items)
        assert [i.id for i in items] == ["card:b", "card:a"]


def test_dedupe_keeps_first_occurrence():
    items = [_item("checklist:x", 0.9, None), _item("card:a", 0.5, None), _item("checklist:x", 0.3, None)]
    unique = dedupe_search_items(items)
    assert [(i.id, i.score) for i in unique] == [("checklist:x", 0.9), ("card:a", 0.5)]

def test_missing_column_error_detection():
    assert is_missing_column_error(Exception("no such column: search_text_normalized"), "search_text_normalized")
    assert not is_missing_column_error(Exception("no such table: boards"), "search_text_normalized")
