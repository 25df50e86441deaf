from __future__ import annotations

import pytest

from storesync.ids import normalize


@pytest.mark.parametrize(
    ("left", "right"),
    [
        (7, "7"),
        (7, 7.0),
        ("abc", "abc"),
        (0, "0"),
    ],
)
def test_same_resource_normalizes_equal(left, right) -> None:
    assert normalize(left) == normalize(right)


@pytest.mark.parametrize(
    ("left", "right"),
    [
        (7, "07"),
        ("abc", "ABC"),
        ("7", " 7"),
        (7.5, 7),
    ],
)
def test_distinct_resources_stay_distinct(left, right) -> None:
    assert normalize(left) != normalize(right)


def test_normalize_returns_strings() -> None:
    assert normalize(42) == "42"
    assert normalize("sku-1") == "sku-1"
    assert isinstance(normalize(3.25), str)
