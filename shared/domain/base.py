"""
Base Domain Classes

This module provides the foundational building blocks for Domain-Driven Design:
- ValueObject: Immutable objects compared by value
- Aggregate: Consistency boundaries that collect domain events
- DomainEvent: Events that represent something that happened
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


class Aggregate:
    """
    Mixin for aggregate roots

    Aggregates are the consistency boundaries in DDD. They collect domain
    events that will be published after a successful transaction. The mixin
    works for plain classes and Django models alike, so it keeps its state
    in a lazily created attribute instead of a dataclass field.
    """

    def _event_buffer(self) -> List['DomainEvent']:
        buffer = self.__dict__.get('_events')
        if buffer is None:
            buffer = []
            self.__dict__['_events'] = buffer
        return buffer

    def add_event(self, event: 'DomainEvent'):
        """Add a domain event to be published"""
        self._event_buffer().append(event)

    def clear_events(self):
        """Clear all collected events (called after publishing)"""
        self._event_buffer().clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Get copy of collected events"""
        return list(self._event_buffer())


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Domain events represent something that happened in the domain.
    They are used to communicate between bounded contexts.
    """
    event_id: UUID = field(default_factory=uuid4, kw_only=True)
    occurred_at: datetime = field(default_factory=datetime.now, kw_only=True)
    aggregate_id: Any = field(default=None, kw_only=True)

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization"""
        return {
            'event_id': str(self.event_id),
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': str(self.aggregate_id) if self.aggregate_id is not None else None,
        }
