"""Process-wide publish/subscribe channel for capture events.

Handlers can subscribe to every event of a given name, or to a single key
value of one payload field (``subscribe_keyed``). Keyed subscriptions are
stored in a dictionary indexed by that value, so routing a completion event
to the waiter for its request id does not visit unrelated waiters.

The registry is guarded by a lock and handlers run outside of it, which makes
``publish`` safe to call from any thread, including from inside a handler.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from .logging_utils import get_logger

Payload = Mapping[str, Optional[str]]


@dataclass(frozen=True, slots=True)
class Event:
    name: str
    payload: Payload = field(default_factory=dict)


Handler = Callable[[Event], None]


class Subscription:
    """Registration handle; ``cancel`` is idempotent."""

    __slots__ = ("_channel", "token", "name", "key_field", "key", "__weakref__")

    def __init__(
        self,
        channel: "EventChannel",
        token: int,
        name: str,
        key_field: str | None = None,
        key: str | None = None,
    ) -> None:
        self._channel = channel
        self.token = token
        self.name = name
        self.key_field = key_field
        self.key = key

    @property
    def active(self) -> bool:
        return self._channel.is_registered(self)

    def cancel(self) -> bool:
        return self._channel.unsubscribe(self)

    def __repr__(self) -> str:
        if self.key_field is None:
            return f"Subscription({self.name!r}, token={self.token})"
        return f"Subscription({self.name!r}, {self.key_field}={self.key!r}, token={self.token})"


class EventChannel:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        # name -> token -> handler
        self._broadcast: dict[str, dict[int, Handler]] = {}
        # name -> key_field -> key -> token -> handler
        self._keyed: dict[str, dict[str, dict[str, dict[int, Handler]]]] = {}
        self._log = get_logger("events")

    def subscribe(self, name: str, handler: Handler) -> Subscription:
        with self._lock:
            token = next(self._tokens)
            self._broadcast.setdefault(name, {})[token] = handler
        return Subscription(self, token, name)

    def subscribe_keyed(
        self, name: str, key_field: str, key: str, handler: Handler
    ) -> Subscription:
        """Deliver only events whose ``payload[key_field]`` equals ``key`` exactly."""

        if not isinstance(key, str):
            raise TypeError("key must be a string")
        with self._lock:
            token = next(self._tokens)
            by_field = self._keyed.setdefault(name, {})
            by_key = by_field.setdefault(key_field, {})
            by_key.setdefault(key, {})[token] = handler
        return Subscription(self, token, name, key_field, key)

    def unsubscribe(self, subscription: Subscription) -> bool:
        with self._lock:
            if subscription.key_field is None:
                handlers = self._broadcast.get(subscription.name)
                if not handlers or handlers.pop(subscription.token, None) is None:
                    return False
                if not handlers:
                    del self._broadcast[subscription.name]
                return True

            by_field = self._keyed.get(subscription.name)
            if not by_field:
                return False
            by_key = by_field.get(subscription.key_field)
            if not by_key:
                return False
            handlers = by_key.get(subscription.key)  # type: ignore[arg-type]
            if not handlers or handlers.pop(subscription.token, None) is None:
                return False
            if not handlers:
                del by_key[subscription.key]  # type: ignore[arg-type]
            if not by_key:
                del by_field[subscription.key_field]
            if not by_field:
                del self._keyed[subscription.name]
            return True

    def is_registered(self, subscription: Subscription) -> bool:
        with self._lock:
            if subscription.key_field is None:
                return subscription.token in self._broadcast.get(subscription.name, {})
            handlers = (
                self._keyed.get(subscription.name, {})
                .get(subscription.key_field, {})
                .get(subscription.key, {})  # type: ignore[arg-type]
            )
            return subscription.token in handlers

    def publish(self, name: str, payload: Payload | None = None) -> int:
        """Deliver an event to matching handlers; returns how many were called."""

        event = Event(name=name, payload=dict(payload or {}))
        with self._lock:
            targets = list(self._broadcast.get(name, {}).values())
            for key_field, by_key in self._keyed.get(name, {}).items():
                value = event.payload.get(key_field)
                if isinstance(value, str) and value in by_key:
                    targets.extend(by_key[value].values())

        for handler in targets:
            try:
                handler(event)
            except Exception:
                self._log.exception("Event handler failed for {}", name)
        return len(targets)

    def subscriber_count(self, name: str | None = None) -> int:
        with self._lock:
            names = [name] if name is not None else set(self._broadcast) | set(self._keyed)
            total = 0
            for item in names:
                total += len(self._broadcast.get(item, {}))
                for by_key in self._keyed.get(item, {}).values():
                    total += sum(len(handlers) for handlers in by_key.values())
            return total


_default_channel: EventChannel | None = None
_default_lock = threading.Lock()


def get_event_channel() -> EventChannel:
    """Return the process-wide event channel."""

    global _default_channel
    with _default_lock:
        if _default_channel is None:
            _default_channel = EventChannel()
        return _default_channel
