import threading
from datetime import datetime, timezone

import pytest

from hearo.system.history import HistoryStore
from hearo.system.models import Alert, Category, Severity, Source


def make_alert(alert_id: int) -> Alert:
    return Alert(
        id=alert_id,
        label="doorbell",
        category=Category.DOORBELL,
        severity=Severity.MEDIUM,
        location="Front Door",
        confidence=0.8,
        source=Source.LOCAL,
        created_at=datetime.now(timezone.utc),
    )


def test_newest_first_and_bounded():
    history = HistoryStore(capacity=3)
    for alert_id in range(1, 6):
        history.append(make_alert(alert_id))
    assert [a.id for a in history.recent()] == [5, 4, 3]
    assert len(history) == 3


def test_recent_k():
    history = HistoryStore(capacity=5)
    for alert_id in range(1, 4):
        history.append(make_alert(alert_id))
    assert [a.id for a in history.recent(2)] == [3, 2]
    assert [a.id for a in history.recent(10)] == [3, 2, 1]
    assert history.recent(0) == []
    with pytest.raises(ValueError):
        history.recent(-1)


def test_empty_history():
    assert HistoryStore().recent() == []


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        HistoryStore(0)


def test_snapshot_is_immutable_view():
    history = HistoryStore(capacity=2)
    history.append(make_alert(1))
    before = history.snapshot()
    history.append(make_alert(2))
    assert [a.id for a in before] == [1]
    assert [a.id for a in history.snapshot()] == [2, 1]


def test_clear():
    history = HistoryStore()
    history.append(make_alert(1))
    history.clear()
    assert history.recent() == []


def test_readers_never_see_partial_state():
    history = HistoryStore(capacity=10)
    done = threading.Event()
    bad = []

    def reader():
        while not done.is_set():
            ids = [a.id for a in history.recent()]
            if len(ids) > 10 or ids != sorted(ids, reverse=True):
                bad.append(ids)

    thread = threading.Thread(target=reader)
    thread.start()
    for alert_id in range(1, 2001):
        history.append(make_alert(alert_id))
    done.set()
    thread.join()
    assert bad == []
    assert [a.id for a in history.recent(3)] == [2000, 1999, 1998]
