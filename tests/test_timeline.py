from __future__ import annotations

import datetime

import pytz

from storesync.timeline import (
    build_timeline,
    current_event_index,
    delivery_countdown,
    estimated_delivery,
)

PLACED = datetime.datetime(2024, 1, 10, tzinfo=pytz.UTC)


def test_timeline_has_five_events_at_fixed_offsets() -> None:
    events = build_timeline(PLACED)

    assert [ev.status for ev in events] == [
        "placed", "confirmed", "shipped", "out_for_delivery", "delivered",
    ]
    assert [ev.timestamp for ev in events] == [
        PLACED,
        PLACED + datetime.timedelta(hours=2),
        PLACED + datetime.timedelta(days=1),
        PLACED + datetime.timedelta(days=4),
        PLACED + datetime.timedelta(days=5),
    ]
    assert [ev.completed for ev in events] == [True, True, False, False, False]


def test_shipped_and_delivered_dates_for_known_placement() -> None:
    events = {ev.status: ev for ev in build_timeline(PLACED)}

    assert events["shipped"].timestamp == datetime.datetime(2024, 1, 11, tzinfo=pytz.UTC)
    assert events["delivered"].timestamp == datetime.datetime(2024, 1, 15, tzinfo=pytz.UTC)
    assert estimated_delivery(PLACED) == datetime.datetime(2024, 1, 15, tzinfo=pytz.UTC)


def test_timeline_is_deterministic() -> None:
    assert build_timeline(PLACED) == build_timeline(PLACED)


def test_current_event_index_points_at_last_completed() -> None:
    events = build_timeline(PLACED)

    assert current_event_index(events) == 1
    assert current_event_index([]) is None


def test_delivery_countdown_labels() -> None:
    eta = estimated_delivery(PLACED)

    assert delivery_countdown(eta, datetime.date(2024, 1, 15)) == "Today"
    assert delivery_countdown(eta, datetime.date(2024, 1, 14)) == "Tomorrow"
    assert delivery_countdown(eta, datetime.date(2024, 1, 11)) == "In 4 days"
    assert delivery_countdown(eta, datetime.date(2024, 1, 16)) == "Delayed"
