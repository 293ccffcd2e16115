from __future__ import annotations

import pytest

from depimage.reconcile import reconcile


def test_examples_from_cache() -> None:
    assert reconcile(["a", "b", "c"], ["c", "d", "a"]).steps == ["a", "c", "d"]
    assert reconcile([], ["x==1", "y"]).steps == ["x==1", "y"]
    assert reconcile(["a", "b"], ["b"]).steps == ["b"]


@pytest.mark.parametrize(
    "requested",
    [[], ["x"], ["b", "a", "c==2"], ["z", "y", "x", "w"]],
)
def test_empty_cache_returns_request_unchanged(requested: list[str]) -> None:
    plan = reconcile([], requested)
    assert plan.as_pair() == (requested, requested)
    assert plan.known == []
    assert plan.new == requested


def test_known_keep_cache_order_and_new_are_appended_in_request_order() -> None:
    cached = ["numpy", "pandas", "requests", "flask"]
    requested = ["zeta", "flask", "alpha", "numpy", "requests"]

    plan = reconcile(cached, requested)

    assert plan.known == ["numpy", "requests", "flask"]
    assert plan.new == ["zeta", "alpha"]
    assert plan.steps == ["numpy", "requests", "flask", "zeta", "alpha"]
    assert plan.new_order == plan.steps
    assert plan.dropped == ["pandas"]


def test_every_request_appears_exactly_once_and_nothing_else() -> None:
    cached = ["a", "b", "c", "d", "e"]
    requested = ["e", "q", "c", "r", "a"]

    steps = reconcile(cached, requested).steps

    assert sorted(steps) == sorted(requested)
    assert len(steps) == len(set(steps))


def test_reconcile_is_a_fixed_point() -> None:
    cached = ["a", "b", "c"]
    requested = ["c", "d", "a", "e"]

    first = reconcile(cached, requested)
    second = reconcile(first.new_order, requested)

    assert second.new_order == first.new_order
    assert second.new == []
    assert second.dropped == []


def test_version_change_is_a_new_token() -> None:
    plan = reconcile(["numpy==1.26.0", "pandas"], ["pandas", "numpy==1.26.4"])
    assert plan.steps == ["pandas", "numpy==1.26.4"]
    assert plan.dropped == ["numpy==1.26.0"]


def test_duplicate_requests_are_deduplicated_first_wins() -> None:
    plan = reconcile(["b"], ["a", "b", "a", "b"])
    assert plan.steps == ["b", "a"]
    assert plan.duplicates == ["a", "b"]


def test_duplicate_in_cache_uses_first_position() -> None:
    plan = reconcile(["a", "b", "a"], ["b", "a"])
    assert plan.steps == ["a", "b"]
