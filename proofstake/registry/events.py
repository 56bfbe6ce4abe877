"""Append-only notification log for external observers.

The registry publishes a batch of notifications only after the
operation that produced them has committed. Batches are sequenced in
commit order and subscribers are called synchronously, in
registration order.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable

import bittensor as bt

from .models import Notification

Subscriber = Callable[[Notification], None]


class EventLog:
    """Ordered, append-only store of committed notifications."""

    def __init__(self) -> None:
        self._events: list[Notification] = []
        self._subscribers: list[Subscriber] = []

    def __len__(self) -> int:
        return len(self._events)

    @property
    def last_sequence(self) -> int:
        return self._events[-1].sequence if self._events else 0

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def publish(self, batch: Iterable[Notification], committed_at: datetime) -> list[Notification]:
        """Sequence and append a committed batch, then notify subscribers."""
        published: list[Notification] = []
        seq = self.last_sequence
        for event in batch:
            seq += 1
            stamped = event.model_copy(update={"sequence": seq, "committed_at": committed_at})
            self._events.append(stamped)
            published.append(stamped)

        for event in published:
            for callback in list(self._subscribers):
                try:
                    callback(event.model_copy())
                except Exception as e:
                    # Committed state is final; a broken observer cannot undo it
                    bt.logging.warning({"registry_events": {"event": "subscriber_failed", "notification": event.name, "sequence": event.sequence, "error": str(e)}})
        return [e.model_copy() for e in published]

    def events(self, since: int = 0, name: str | None = None) -> list[Notification]:
        """Notifications with sequence > since, optionally filtered by name."""
        return [
            e.model_copy() for e in self._events
            if e.sequence > since and (name is None or e.name == name)
        ]


class EventFeed:
    """Read-only view of an EventLog handed to observers.

    Only the registry that owns the log can publish to it.
    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog) -> None:
        self._log = log

    def __len__(self) -> int:
        return len(self._log)

    @property
    def last_sequence(self) -> int:
        return self._log.last_sequence

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self._log.subscribe(callback)

    def events(self, since: int = 0, name: str | None = None) -> list[Notification]:
        return self._log.events(since=since, name=name)


__all__ = ["EventFeed", "EventLog", "Subscriber"]
