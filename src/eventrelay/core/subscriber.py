# src/eventrelay/core/subscriber.py
from __future__ import annotations

from typing import Any, List, Mapping, Protocol, Sequence, Tuple, Union, runtime_checkable

from eventrelay.core.errors import InvalidArgument

MethodSpec = Union[str, Sequence[str]]


@runtime_checkable
class Subscriber(Protocol):
    """Object that declares its own event -> method registrations.

    class AuditSubscriber:
        def get_subscribed_events(self):
            return {"user.created": "on_created", "user.*": ["audit", "notify"]}
    """

    def get_subscribed_events(self) -> Mapping[str, MethodSpec]:
        ...


def subscriptions(subscriber: Any) -> List[Tuple[str, str]]:
    """Flatten a subscriber's declaration into ordered (event, method) pairs.

    The whole mapping is checked before anything is returned, so a bad
    declaration never registers half of itself.
    """
    if not callable(getattr(subscriber, "get_subscribed_events", None)):
        raise InvalidArgument(
            "Subscriber must implement get_subscribed_events().", subscriber
        )
    declared = subscriber.get_subscribed_events()
    if not isinstance(declared, Mapping):
        raise InvalidArgument(
            f"get_subscribed_events() must return a mapping, got {type(declared).__name__}.",
            declared,
        )

    pairs: List[Tuple[str, str]] = []
    for event, value in declared.items():
        if not isinstance(event, str) or not event:
            raise InvalidArgument(
                f"Subscribed event name must be a non-empty string, got {event!r}.",
                event,
            )
        if isinstance(value, str):
            methods = [value]
        elif isinstance(value, (list, tuple)) and all(isinstance(m, str) for m in value):
            methods = list(value)
        else:
            raise InvalidArgument(
                f"Subscription for '{event}' must be a method name or a list of method names.",
                value,
            )
        pairs.extend((event, m) for m in methods)
    return pairs
