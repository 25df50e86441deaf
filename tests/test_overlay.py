from __future__ import annotations

import pytest

from storesync.overlay import ADD, REMOVE, OptimisticOverlay


def identity(entry):
    return entry


def test_apply_is_union_of_adds_minus_removes() -> None:
    overlay = OptimisticOverlay()
    overlay.record_pending(ADD, "d", "d")
    overlay.record_pending(REMOVE, "b")

    effective = overlay.apply(["a", "b", "c"], identity)

    assert effective == ["a", "c", "d"]


def test_pending_add_already_in_snapshot_is_not_duplicated() -> None:
    overlay = OptimisticOverlay()
    overlay.record_pending(ADD, "a", "a")

    assert overlay.apply(["a", "b"], identity) == ["a", "b"]


def test_pending_add_replaces_snapshot_entry_with_same_key() -> None:
    overlay = OptimisticOverlay()
    overlay.record_pending(ADD, "x", ("x", 5))

    effective = overlay.apply([("x", 1), ("y", 2)], lambda e: e[0])

    assert effective == [("x", 5), ("y", 2)]


def test_pending_remove_of_absent_entry_changes_nothing() -> None:
    overlay = OptimisticOverlay()
    overlay.record_pending(REMOVE, "zzz")

    assert overlay.apply(["a"], identity) == ["a"]


def test_last_operation_wins_per_key() -> None:
    overlay = OptimisticOverlay()
    overlay.record_pending(ADD, "a", "a")
    overlay.record_pending(REMOVE, "a")
    overlay.record_pending(ADD, "a", "a")

    assert overlay.pending_removes() == set()
    assert overlay.pending_adds() == ["a"]
    assert overlay.apply([], identity) == ["a"]


def test_appended_adds_keep_issue_order() -> None:
    overlay = OptimisticOverlay()
    for key in ("c", "a", "b"):
        overlay.record_pending(ADD, key, key)

    assert overlay.apply([], identity) == ["c", "a", "b"]


def test_clear_empties_overlay() -> None:
    overlay = OptimisticOverlay()
    overlay.record_pending(ADD, "a", "a")
    overlay.record_pending(REMOVE, "b")

    overlay.clear()

    assert len(overlay) == 0
    assert overlay.apply(["b"], identity) == ["b"]


def test_add_without_item_is_rejected() -> None:
    overlay = OptimisticOverlay()

    with pytest.raises(ValueError):
        overlay.record_pending(ADD, "a")


def test_unknown_op_is_rejected() -> None:
    overlay = OptimisticOverlay()

    with pytest.raises(ValueError, match="unknown overlay op"):
        overlay.record_pending("toggle", "a", "a")
