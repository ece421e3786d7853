# src/eventrelay/core/listeners.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, NamedTuple, Union

from eventrelay.core.errors import InvalidArgument

__all__ = [
    "DEFAULT_METHOD",
    "Direct",
    "Bound",
    "Lazy",
    "ListenerEntry",
    "Registration",
    "classify",
    "resolve",
    "matches",
    "describe",
]

# method called on a lazily built target when the pair names none
DEFAULT_METHOD = "__call__"


class Direct(NamedTuple):
    listener: Callable[..., Any]


class Bound(NamedTuple):
    target: Any
    method: str


class Lazy(NamedTuple):
    factory: Callable[[], Any]
    method: str = DEFAULT_METHOD


ListenerEntry = Union[Direct, Bound, Lazy]


@dataclass(frozen=True)
class Registration:
    """One registered listener: the descriptor as given plus its tag."""
    descriptor: Any
    entry: ListenerEntry


def classify(descriptor: Any) -> ListenerEntry:
    """Tag an untagged listener descriptor.

    - callable                        -> Direct
    - [factory] / [factory, "method"] -> Lazy (first element callable)
    - [target, "method"]              -> Bound

    Use ``Bound(...)`` explicitly for a callable target that should not be
    treated as a factory.
    """
    if isinstance(descriptor, (Direct, Bound, Lazy)):
        return descriptor
    if callable(descriptor):
        return Direct(descriptor)
    if isinstance(descriptor, (list, tuple)) and 1 <= len(descriptor) <= 2:
        head = descriptor[0]
        method = descriptor[1] if len(descriptor) == 2 else None
        if method is not None and not isinstance(method, str):
            raise InvalidArgument(f"Listener method name must be a string, got {method!r}.", descriptor)
        if callable(head):
            return Lazy(head, method or DEFAULT_METHOD)
        if method is not None:
            return Bound(head, method)
    raise InvalidArgument(
        "Listener must be a callable, a [target, method] pair or a [factory, method?] pair.",
        descriptor,
    )


def resolve(entry: ListenerEntry) -> Callable[..., Any]:
    """Turn a tagged entry into something to call. Lazy factories run every time."""
    if isinstance(entry, Direct):
        return entry.listener
    if isinstance(entry, Lazy):
        return getattr(entry.factory(), entry.method)
    return getattr(entry.target, entry.method)


def matches(registration: Registration, listener: Any) -> bool:
    """Whether ``listener`` designates ``registration`` for removal.

    Pairs match on their method name alone, so a Lazy registration can be
    removed through the Bound pair of the object its factory builds.
    """
    if registration.descriptor is listener:
        return True
    entry = registration.entry
    if isinstance(listener, Direct):
        listener = listener.listener
    if isinstance(entry, Direct):
        return entry.listener == listener
    try:
        other = classify(listener)
    except InvalidArgument:
        return False
    if isinstance(other, (Bound, Lazy)):
        return entry.method == other.method
    return False


def describe(entry: ListenerEntry) -> str:
    if isinstance(entry, Direct):
        fn = entry.listener
        return getattr(fn, "__qualname__", None) or type(fn).__name__
    if isinstance(entry, Lazy):
        factory = getattr(entry.factory, "__qualname__", None) or type(entry.factory).__name__
        return f"lazy({factory}).{entry.method}"
    return f"{type(entry.target).__name__}.{entry.method}"
