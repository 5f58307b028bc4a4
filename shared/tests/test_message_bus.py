from dataclasses import dataclass

import pytest

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import Aggregate, DomainEvent


@dataclass
class SomethingHappened(DomainEvent):
    name: str = ""


class Thing(Aggregate):
    pass


def test_failing_handler_does_not_stop_the_others():
    bus = MessageBus()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    bus.register_event_handler(SomethingHappened, broken)
    bus.register_event_handler(SomethingHappened, seen.append)
    event = SomethingHappened(name="x")

    bus.publish_events([event])

    assert seen == [event]


def test_registering_twice_delivers_once():
    bus = MessageBus()
    seen = []
    bus.register_event_handler(SomethingHappened, seen.append)
    bus.register_event_handler(SomethingHappened, seen.append)

    bus.publish_events([SomethingHappened()])

    assert len(seen) == 1
    bus.unregister_event_handler(SomethingHappened, seen.append)
    assert bus.handlers_for(SomethingHappened) == []


def test_aggregate_collects_events():
    thing = Thing()
    thing.add_event(SomethingHappened(name="a"))
    assert [e.name for e in thing.events] == ["a"]
    thing.clear_events()
    assert thing.events == []


@pytest.mark.django_db
def test_unit_of_work_publishes_after_commit(django_capture_on_commit_callbacks, monkeypatch):
    published = []
    monkeypatch.setattr(DjangoUnitOfWork, "_publish_events", lambda self, events: published.extend(events))
    thing = Thing()
    thing.add_event(SomethingHappened(name="done"))

    with django_capture_on_commit_callbacks(execute=True):
        with DjangoUnitOfWork() as uow:
            uow.collect_events(thing)
        assert published == []

    assert [e.name for e in published] == ["done"]
    assert thing.events == []


@pytest.mark.django_db
def test_unit_of_work_discards_events_on_rollback(django_capture_on_commit_callbacks, monkeypatch):
    published = []
    monkeypatch.setattr(DjangoUnitOfWork, "_publish_events", lambda self, events: published.extend(events))
    thing = Thing()
    thing.add_event(SomethingHappened(name="lost"))

    with django_capture_on_commit_callbacks(execute=True):
        with pytest.raises(ValueError):
            with DjangoUnitOfWork() as uow:
                uow.collect_events(thing)
                raise ValueError("rollback")

    assert published == []
    assert thing.events == []
