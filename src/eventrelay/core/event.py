# src/eventrelay/core/event.py
from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple, Union

from eventrelay.core.errors import ArgumentNotFound, InvalidArgument
from eventrelay.core.naming import normalize

__all__ = ["Event", "ArgumentSource"]

ArgumentSource = Union[Mapping[Any, Any], Sequence[Any]]


class Event:
    """Stoppable event envelope.

    Carries an opaque ``subject`` and a bag of arguments. Arguments are
    copied onto the instance, so ``Event(None, {"a": 1}).a == 1``.

    Subclasses are dispatched under their ``event_name``: the value the
    class declares, or the normalized class name (``UserCreated`` ->
    ``user_created``).
    """

    event_name: str = "event"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.event_name = normalize(cls.__dict__.get("event_name") or cls.__name__)

    def __init__(self, subject: Any = None, arguments: Optional[ArgumentSource] = None):
        self.subject = subject
        self._propagation_stopped = False
        self.set_arguments(arguments)

    # ---------------- propagation ----------------
    def is_propagation_stopped(self) -> bool:
        return self._propagation_stopped

    def stop_propagation(self) -> None:
        """Listeners registered after the current one will not be called."""
        self._propagation_stopped = True

    # ---------------- subject / arguments ----------------
    def get_subject(self) -> Any:
        return self.subject

    def _iter_source(self, arguments: ArgumentSource) -> Iterator[Tuple[str, Any]]:
        if isinstance(arguments, Mapping):
            for k, v in arguments.items():
                yield str(k), v
        elif isinstance(arguments, (list, tuple)):
            for i, v in enumerate(arguments):
                yield str(i), v
        else:
            raise InvalidArgument(
                f"Event arguments must be a mapping or a sequence, got {type(arguments).__name__}.",
                arguments,
            )

    def _is_reserved(self, key: str) -> bool:
        return key == "subject" or key.startswith("_") or hasattr(type(self), key)

    def set_arguments(self, arguments: Optional[ArgumentSource]) -> None:
        """Merge ``arguments`` onto the event; later values win."""
        if arguments is None:
            return
        pairs = list(self._iter_source(arguments))
        for key, _ in pairs:
            if self._is_reserved(key):
                raise InvalidArgument(f"Event argument '{key}' shadows a reserved attribute.", key)
        for key, value in pairs:
            setattr(self, key, value)

    @staticmethod
    def _is_argument(key: str) -> bool:
        return key != "subject" and not key.startswith("_")

    def has_argument(self, key: Any) -> bool:
        if key is None:
            return False
        key = str(key)
        return self._is_argument(key) and key in vars(self)

    def get_arguments(self, key: Any = None) -> Any:
        """Return one argument by key, or all of them as a dict."""
        if key is None:
            return {k: v for k, v in vars(self).items() if self._is_argument(k)}
        if not self.has_argument(key):
            raise ArgumentNotFound(key)
        return vars(self)[str(key)]

    # ---------------- serialization ----------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": type(self).event_name,
            "subject": self.subject,
            "arguments": self.get_arguments(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str, ensure_ascii=False)

    def __repr__(self) -> str:
        stopped = " stopped" if self._propagation_stopped else ""
        return f"<{type(self).__name__} {type(self).event_name!r} subject={self.subject!r}{stopped}>"
