"""Tests for checked-set bookkeeping and removal plans."""

from __future__ import annotations

from highlight_review.selection import (
    plan_removal_keep_focus,
    plan_removal_skip_forward,
    resolve_targets,
    toggle_group,
    toggle_one,
)


def _ids(items):
    return [item.id for item in items]


class TestToggle:
    def test_toggle_one_flips(self):
        assert toggle_one(set(), "a") == {"a"}
        assert toggle_one({"a", "b"}, "a") == {"b"}

    def test_toggle_one_returns_copy(self):
        checked = {"a"}
        toggle_one(checked, "b")
        assert checked == {"a"}

    def test_toggle_one_none(self):
        assert toggle_one({"a"}, None) == {"a"}

    def test_toggle_group_checks_all_when_partial(self, make_items):
        items = make_items("1:A", "2:A", "3:B")
        assert toggle_group(items, {"1"}, 1) == {"1", "2"}

    def test_toggle_group_unchecks_when_all_checked(self, make_items):
        items = make_items("1:A", "2:A", "3:B")
        assert toggle_group(items, {"1", "2", "3"}, 0) == {"3"}

    def test_singleton_group_behaves_like_toggle_one(self, make_items):
        items = make_items("1:A", "2:B")
        assert toggle_group(items, set(), 1) == toggle_one(set(), "2")
        assert toggle_group(items, {"2"}, 1) == toggle_one({"2"}, "2")

    def test_toggle_group_empty_list(self):
        assert toggle_group([], {"x"}, 0) == {"x"}


class TestResolveTargets:
    def test_checked_wins_in_displayed_order(self, make_items):
        items = make_items("a", "b", "c")
        assert resolve_targets(items, {"c", "a"}, "b") == ["a", "c"]

    def test_checked_off_screen_sorted_after(self, make_items):
        items = make_items("a")
        assert resolve_targets(items, {"z", "y", "a"}, None) == ["a", "y", "z"]

    def test_focused_when_nothing_checked(self, make_items):
        assert resolve_targets(make_items("a", "b"), set(), "b") == ["b"]

    def test_empty(self, make_items):
        assert resolve_targets(make_items("a"), set(), None) == []
        assert resolve_targets(make_items("a"), set(), "stale") == []


class TestRemovalPlans:
    def test_keep_focus_when_it_survives(self, make_items):
        plan = plan_removal_keep_focus(make_items("a", "b", "c"), {"b"}, "c")
        assert _ids(plan.items) == ["a", "c"]
        assert plan.focused_id == "c"
        assert _ids(plan.removed) == ["b"]

    def test_keep_focus_recovers_before_first_removed(self, make_items):
        plan = plan_removal_keep_focus(make_items("a", "b", "c", "d"), {"b", "c"}, "c")
        assert plan.focused_id == "a"

    def test_keep_focus_recovers_forward_at_head(self, make_items):
        plan = plan_removal_keep_focus(make_items("a", "b", "c"), {"a"}, "a")
        assert plan.focused_id == "b"

    def test_keep_focus_everything_removed(self, make_items):
        plan = plan_removal_keep_focus(make_items("a"), {"a"}, "a")
        assert plan.items == []
        assert plan.focused_id is None

    def test_skip_forward_scans_forward(self, make_items):
        plan = plan_removal_skip_forward(make_items("A", "B", "C", "D"), {"B", "C"}, 1)
        assert _ids(plan.items) == ["A", "D"]
        assert plan.focused_id == "D"

    def test_skip_forward_falls_back(self, make_items):
        plan = plan_removal_skip_forward(make_items("A", "B", "C"), {"B", "C"}, 2)
        assert _ids(plan.items) == ["A"]
        assert plan.focused_id == "A"
