"""Tests for the merge engine."""

from __future__ import annotations

from highlight_review.merge import (
    append,
    insert_adjacent,
    load,
    replace_with_search,
    unique_by_id,
)
from highlight_review.models import UNKNOWN_BOOK_ID


def _ids(items):
    return [item.id for item in items]


class TestUniqueById:
    def test_keeps_first_occurrence(self, make_item):
        first = make_item("a", text="first")
        items = [first, make_item("b"), make_item("a", text="second")]
        result = unique_by_id(items)
        assert _ids(result) == ["a", "b"]
        assert result[0].text == "first"

    def test_exclude(self, make_items):
        assert _ids(unique_by_id(make_items("a", "b", "c"), exclude={"b"})) == ["a", "c"]


class TestLoad:
    def test_keeps_focus_when_present(self, make_items):
        result = load(make_items("a", "b", "c"), focused_id="b")
        assert _ids(result.items) == ["a", "b", "c"]
        assert result.focused_id == "b"

    def test_focus_falls_back_to_first(self, make_items):
        assert load(make_items("a", "b"), focused_id="zz").focused_id == "a"
        assert load(make_items("a", "b")).focused_id == "a"

    def test_empty_batch(self):
        result = load([], focused_id="a")
        assert result.items == []
        assert result.focused_id is None

    def test_dedups_batch(self, make_items):
        assert _ids(load(make_items("a", "b", "a")).items) == ["a", "b"]

    def test_does_not_mutate_input(self, make_items):
        batch = make_items("a", "a")
        load(batch)
        assert len(batch) == 2


class TestAppend:
    def test_focus_survives_append(self, make_items):
        result = append(make_items("A", "B", "C"), make_items("D", "E"), focused_id="B")
        assert _ids(result.items) == ["A", "B", "C", "D", "E"]
        assert result.focused_id == "B"
        assert not result.has_reached_end

    def test_filters_ids_already_present(self, make_items):
        result = append(make_items("a", "b"), make_items("b", "c", "c"), focused_id="a")
        assert _ids(result.items) == ["a", "b", "c"]

    def test_empty_batch_marks_end(self, make_items):
        current = make_items("a", "b")
        result = append(current, [], focused_id="a")
        assert result.has_reached_end
        assert not result.changed
        assert _ids(result.items) == ["a", "b"]

    def test_empty_twice_is_idempotent(self, make_items):
        first = append(make_items("a"), [], focused_id="a")
        second = append(first.items, [], focused_id=first.focused_id)
        assert _ids(second.items) == ["a"]
        assert second.has_reached_end

    def test_all_duplicates_is_unchanged_but_not_end(self, make_items):
        result = append(make_items("a"), make_items("a"), focused_id="a")
        assert not result.changed
        assert not result.has_reached_end

    def test_append_into_empty_focuses_first(self, make_items):
        assert append([], make_items("x", "y")).focused_id == "x"


class TestReplaceWithSearch:
    def test_checked_first_then_batch_order(self, make_items):
        displayed = make_items("X", "W")
        result = replace_with_search(displayed, {"X"}, make_items("Y", "X", "Z"))
        assert _ids(result.items) == ["X", "Y", "Z"]
        assert result.focused_id == "Y"

    def test_checked_items_on_screen_are_kept(self, make_items):
        displayed = make_items("P", "Q", "R")
        result = replace_with_search(displayed, {"R", "P"}, make_items("S"))
        assert _ids(result.items) == ["P", "R", "S"]
        assert result.focused_id == "S"

    def test_checked_only_in_batch_follow_preserved(self, make_items):
        result = replace_with_search(make_items("A"), {"A", "B"}, make_items("C", "B"))
        assert _ids(result.items) == ["A", "B", "C"]

    def test_focus_on_first_result_when_all_checked(self, make_items):
        result = replace_with_search(make_items("A", "B"), {"A", "B"}, make_items("B"))
        assert _ids(result.items) == ["A", "B"]
        assert result.focused_id == "A"

    def test_empty(self):
        result = replace_with_search([], set(), [])
        assert result.items == []
        assert result.focused_id is None

    def test_tail_dedup(self, make_items):
        result = replace_with_search([], set(), make_items("a", "b", "a"))
        assert _ids(result.items) == ["a", "b"]


class TestInsertAdjacent:
    def test_sentinel_book_is_resolved_and_deduped(self, make_item):
        anchor = make_item("s1", book="Search hit", book_id=UNKNOWN_BOOK_ID)
        other = make_item("o1", book="Other", book_id=5)
        batch = [make_item(f"b{i}", book="Full", book_id=77) for i in range(49)]
        batch.insert(10, make_item("s1", book="Full", book_id=77))
        assert len(batch) == 50

        result = insert_adjacent([anchor, other], batch, "s1", focused_id="s1")

        ids = _ids(result.items)
        assert ids.count("s1") == 1
        assert len(result.items) == 1 + 49 + 1
        assert result.items[0].book_id == 77
        assert ids[1:50] == [f"b{i}" for i in range(49)]
        assert ids[-1] == "o1"
        assert result.focused_id == "s1"

    def test_inserts_after_existing_run(self, make_item):
        displayed = [
            make_item("a1", book="A", book_id=1),
            make_item("a2", book="A", book_id=1),
            make_item("c1", book="C", book_id=3),
        ]
        batch = [make_item("a3", book="A", book_id=1), make_item("a2", book="A", book_id=1)]
        result = insert_adjacent(displayed, batch, "a1")
        assert _ids(result.items) == ["a1", "a2", "a3", "c1"]

    def test_missing_anchor_is_noop(self, make_items):
        displayed = make_items("a", "b")
        result = insert_adjacent(displayed, make_items("c"), "zz", focused_id="a")
        assert not result.changed
        assert _ids(result.items) == ["a", "b"]

    def test_empty_batch_keeps_sentinel(self, make_item):
        anchor = make_item("s1", book_id=UNKNOWN_BOOK_ID)
        result = insert_adjacent([anchor], [], "s1")
        assert result.items[0].book_id == UNKNOWN_BOOK_ID
        assert _ids(result.items) == ["s1"]

    def test_does_not_mutate_displayed(self, make_item):
        anchor = make_item("s1", book_id=UNKNOWN_BOOK_ID)
        displayed = [anchor]
        insert_adjacent(displayed, [make_item("x", book_id=9)], "s1")
        assert displayed[0].book_id == UNKNOWN_BOOK_ID
        assert len(displayed) == 1
