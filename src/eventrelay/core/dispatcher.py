# src/eventrelay/core/dispatcher.py
from __future__ import annotations

from contextlib import nullcontext
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from eventrelay.core import log
from eventrelay.core.cache import ResolutionCache, SlotKey
from eventrelay.core.errors import InvalidArgument
from eventrelay.core.event import Event
from eventrelay.core.listeners import Bound, Registration, classify, describe, resolve
from eventrelay.core.metrics import Timer, gauge_set, inc
from eventrelay.core.naming import normalize, wildcard_of
from eventrelay.core.registry import ListenerRegistry
from eventrelay.core.subscriber import subscriptions

Names = Union[str, Sequence[str]]


class Dispatcher:
    """Synchronous in-process event dispatcher.

    Listeners are registered under normalized event names or wildcard
    patterns (``user.*`` matches every name whose first segment is
    ``user``) and called in registration order with
    ``(payload, dispatcher)``. Not thread-safe: guard listen/unlisten/dispatch
    with one lock if several threads share an instance.

    Every dispatched name that has listeners keeps a cached snapshot, and
    with metrics on every dispatched name gets its own ``dispatch_total`` /
    ``dispatch_ms`` series. Neither is pruned, so for high-cardinality names
    (``order.<id>``) pass ``metrics=False`` and call ``clear_cache()`` now
    and then, or put the id in the payload instead of the name.
    """

    def __init__(self, name: str = "eventrelay.dispatcher", metrics: bool = True):
        self.name = name
        self.metrics = metrics
        self.l = log.get(name)
        self._registry = ListenerRegistry()
        self._cache = ResolutionCache(self._registry)

    # ---------------- registration ----------------
    def _check_names(self, names: Any) -> List[str]:
        if isinstance(names, str):
            names = [names]
        elif not isinstance(names, (list, tuple)):
            raise InvalidArgument(
                "Failed to register event. Events should be provided as string or list of strings.",
                names,
            )
        for n in names:
            if not isinstance(n, str) or not n:
                raise InvalidArgument(f"Event name must be a non-empty string, got {n!r}.", n)
        return list(names)

    def _touched(self, name: str) -> None:
        self._cache.invalidate(name)
        if self.metrics:
            gauge_set("listeners", float(self._registry.size(name)), event=name)

    def listen(self, names: Names, listener: Any) -> None:
        """Register ``listener`` for one or several event names.

        ``listener`` is a callable, ``[target, "method"]``, ``[factory]`` /
        ``[factory, "method"]``, or one of the explicit ``Direct`` / ``Bound``
        / ``Lazy`` tags.
        """
        events = self._check_names(names)
        registration = Registration(listener, classify(listener))
        for raw in events:
            event = normalize(raw)
            slot = self._registry.add(event, registration)
            self._touched(event)
            self.l.debug("listen event=%s slot=%d listener=%s", event, slot, describe(registration.entry))

    def unlisten(self, event: str, listener: Any = None) -> None:
        """Remove ``listener`` from ``event``, or every listener when omitted."""
        event = normalize(event)
        if listener is None:
            if self._registry.drop(event):
                self._touched(event)
                self.l.debug("unlisten event=%s all", event)
            return
        removed = self._registry.remove(event, listener)
        if removed:
            self._touched(event)
            self.l.debug("unlisten event=%s removed=%d", event, removed)

    def subscribe(self, subscriber: Any) -> None:
        pairs = subscriptions(subscriber)
        for event, method in pairs:
            self.listen(event, Bound(subscriber, method))
        self.l.info("subscribed %s (%d listeners)", type(subscriber).__name__, len(pairs))

    def unsubscribe(self, subscriber: Any) -> None:
        pairs = subscriptions(subscriber)
        for event, method in pairs:
            self.unlisten(event, Bound(subscriber, method))
        self.l.info("unsubscribed %s", type(subscriber).__name__)

    # ---------------- lookup ----------------
    def has_listeners(self, event: Optional[str] = None) -> bool:
        return self._registry.has(normalize(event))

    def _snapshot(self, event: str) -> Dict[SlotKey, Registration]:
        if not self._registry.exact_bucket(event) and not self._registry.wildcard_bucket(wildcard_of(event)):
            return {}
        return self._cache.get(event)

    def get_listeners(self, event: Optional[str] = None) -> Dict[Any, Any]:
        """Registered listener descriptors.

        With a name: ``{slot: descriptor}`` merged from the exact bucket and
        the matching wildcard bucket. Without: ``{name: {slot: descriptor}}``
        for every registered name and pattern.
        """
        if event is not None:
            snap = self._snapshot(normalize(event))
            return {key: reg.descriptor for key, reg in snap.items()}
        return {
            name: {key: reg.descriptor for key, reg in self._cache.get(name).items()}
            for name in self._registry.keys()
        }

    def clear_cache(self) -> None:
        """Drop every merged snapshot; they are rebuilt on the next lookup."""
        self._cache.clear()

    # ---------------- dispatch ----------------
    def _parse_event_and_payload(self, event: Any, payload: Any) -> Tuple[str, Any]:
        if isinstance(event, Event):
            name = type(event).event_name
            if type(event) is Event or payload is None:
                payload = event
        elif not isinstance(event, str) and getattr(event, "name", None) is not None:
            name = event.name
            if payload is None:
                payload = event
        else:
            name = event
        if not isinstance(name, str) or not name:
            raise InvalidArgument(f"Cannot dispatch {event!r}: no event name.", event)
        return normalize(name), payload

    def dispatch(self, event: Any, payload: Any = None) -> List[Any]:
        """Call every listener of ``event`` in order and collect their results.

        ``event`` is an event name, an ``Event`` (stoppable) or any object
        with a ``name`` attribute. A listener exception propagates and ends
        the dispatch.
        """
        stoppable = isinstance(event, Event)
        name, payload = self._parse_event_and_payload(event, payload)
        snap = self._snapshot(name)
        responses: List[Any] = []

        with Timer("dispatch_ms", event=name) if self.metrics else nullcontext():
            for key, reg in list(snap.items()):
                listener = resolve(reg.entry)
                if stoppable and event.is_propagation_stopped():
                    if self.metrics:
                        inc("propagation_stopped_total", 1, event=name)
                    self.l.debug("dispatch event=%s stopped before slot=%s", name, key)
                    break
                try:
                    responses.append(listener(payload, self))
                except Exception:
                    if self.metrics:
                        inc("listener_errors_total", 1, event=name)
                    self.l.warning("listener %s failed for event=%s", describe(reg.entry), name)
                    raise

        if self.metrics:
            inc("dispatch_total", 1, event=name)
            inc("listener_calls_total", len(responses), event=name)
        self.l.debug("dispatch event=%s listeners=%d called=%d", name, len(snap), len(responses))
        return responses

    def __repr__(self) -> str:
        return f"<Dispatcher {self.name!r} exact={len(self._registry.exact)} wildcard={len(self._registry.wildcard)}>"

