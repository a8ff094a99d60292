# tests/test_events.py

from __future__ import annotations

import threading

from resource_sync.tasks.events import TaskEventBus
from resource_sync.tasks.models import LogEntry, LogLevel, TaskEvent

from .fakes import EventRecorder


def _log(message: str) -> TaskEvent:
    return TaskEvent.for_log(LogEntry(level=LogLevel.INFO, message=message))


def test_publish_delivers_in_order_to_all_listeners() -> None:
    bus = TaskEventBus()
    first, second = EventRecorder(), EventRecorder()
    bus.subscribe("t1", first)
    bus.subscribe("t1", second)

    assert bus.publish("t1", _log("a")) == 2
    bus.publish("t1", _log("b"))

    assert first.messages == ["a", "b"]
    assert second.messages == ["a", "b"]


def test_publish_is_scoped_by_task_id() -> None:
    bus = TaskEventBus()
    recorder = EventRecorder()
    bus.subscribe("t1", recorder)

    assert bus.publish("t2", _log("other")) == 0
    assert recorder.events == []


def test_no_backlog_for_late_subscribers() -> None:
    bus = TaskEventBus()
    bus.publish("t1", _log("early"))

    recorder = EventRecorder()
    bus.subscribe("t1", recorder)
    bus.publish("t1", _log("late"))

    assert recorder.messages == ["late"]


def test_failing_listener_does_not_stop_others() -> None:
    bus = TaskEventBus()
    recorder = EventRecorder()

    def broken(event: TaskEvent) -> None:
        raise RuntimeError("boom")

    bus.subscribe("t1", broken)
    bus.subscribe("t1", recorder)

    assert bus.publish("t1", _log("a")) == 1
    assert recorder.messages == ["a"]


def test_unsubscribe_during_publish_applies_to_next_publish() -> None:
    bus = TaskEventBus()
    recorder = EventRecorder()

    def once(event: TaskEvent) -> None:
        bus.unsubscribe("t1", once)

    bus.subscribe("t1", once)
    bus.subscribe("t1", recorder)

    assert bus.publish("t1", _log("a")) == 2
    assert bus.listener_count("t1") == 1
    bus.publish("t1", _log("b"))
    assert recorder.messages == ["a", "b"]


def test_subscribe_during_publish_applies_to_next_publish() -> None:
    bus = TaskEventBus()
    late = EventRecorder()

    def adder(event: TaskEvent) -> None:
        if not late.events and bus.listener_count("t1") == 1:
            bus.subscribe("t1", late)

    bus.subscribe("t1", adder)
    bus.publish("t1", _log("a"))
    assert late.events == []

    bus.publish("t1", _log("b"))
    assert late.messages == ["b"]


def test_unsubscribe_is_idempotent_and_cleans_up() -> None:
    bus = TaskEventBus()
    recorder = EventRecorder()
    bus.subscribe("t1", recorder)

    bus.unsubscribe("t1", recorder)
    bus.unsubscribe("t1", recorder)
    bus.unsubscribe("unknown", recorder)

    assert bus.listener_count("t1") == 0
    assert bus.publish("t1", _log("a")) == 0
    assert recorder.events == []


def test_subscribe_churn_from_threads_while_publishing() -> None:
    bus = TaskEventBus()
    steady = EventRecorder()
    bus.subscribe("t1", steady)

    stop = threading.Event()
    errors = []

    def churn() -> None:
        try:
            while not stop.is_set():
                listener = EventRecorder()
                bus.subscribe("t1", listener)
                bus.unsubscribe("t1", listener)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=churn) for _ in range(4)]
    for thread in threads:
        thread.start()
    try:
        for n in range(500):
            bus.publish("t1", _log(str(n)))
    finally:
        stop.set()
        for thread in threads:
            thread.join(timeout=5)

    assert errors == []
    assert steady.messages == [str(n) for n in range(500)]
    assert bus.listener_count("t1") == 1
