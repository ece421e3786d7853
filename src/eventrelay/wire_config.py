# src/eventrelay/wire_config.py
from __future__ import annotations

import functools
import importlib
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from eventrelay.core import log
from eventrelay.core.dispatcher import Dispatcher
from eventrelay.core.errors import WiringError
from eventrelay.core.listeners import DEFAULT_METHOD, Lazy
from eventrelay.core.subscriber import subscriptions

l = log.get("eventrelay.wiring")


def _imp(entry: Dict[str, Any], key: str) -> Any:
    if not isinstance(entry, dict):
        raise WiringError(f"wiring entry must be a mapping, got {entry!r}")
    module = entry.get("module")
    attr = entry.get(key)
    if not module or not attr:
        raise WiringError(f"wiring entry needs 'module' and '{key}'", entry)
    try:
        mod = importlib.import_module(module)
        return getattr(mod, attr)
    except (ImportError, AttributeError) as e:
        raise WiringError(f"cannot load {module}.{attr}: {e}", entry) from e


def _events(entry: Dict[str, Any]) -> Union[str, List[str]]:
    if not isinstance(entry, dict):
        raise WiringError(f"wiring entry must be a mapping, got {entry!r}")
    events = entry.get("events")
    if isinstance(events, str) and events:
        return events
    if isinstance(events, list) and events and all(isinstance(e, str) and e for e in events):
        return events
    raise WiringError("wiring entry needs 'events' (a name or a list of names)", entry)


def _listener(entry: Dict[str, Any]) -> Any:
    """Direct listener for ``attr``; lazily built instance for ``class``."""
    if "attr" in entry:
        fn = _imp(entry, "attr")
        if not callable(fn):
            raise WiringError(f"{entry['module']}.{entry['attr']} is not callable", entry)
        return fn
    if "class" in entry:
        cls = _imp(entry, "class")
        factory = functools.partial(cls, **(entry.get("args") or {}))
        return Lazy(factory, entry.get("method") or DEFAULT_METHOD)
    raise WiringError("listener entry needs either 'attr' or 'class'", entry)


def build_from_dict(data: Optional[Dict[str, Any]], dispatcher: Optional[Dispatcher] = None) -> Dispatcher:
    """Register the ``listeners`` and ``subscribers`` sections on a dispatcher.

    Every entry is resolved before the first registration, so a broken file
    leaves the dispatcher untouched.
    """
    data = data or {}
    if not isinstance(data, dict):
        raise WiringError("wiring root must be a mapping")
    dispatcher = dispatcher or Dispatcher()

    listeners = [(_events(e), _listener(e)) for e in data.get("listeners") or []]

    subscribers = []
    for e in data.get("subscribers") or []:
        cls = _imp(e, "class")
        sub = cls(**(e.get("args") or {}))
        subscriptions(sub)
        subscribers.append(sub)

    for events, listener in listeners:
        dispatcher.listen(events, listener)
    for sub in subscribers:
        dispatcher.subscribe(sub)

    l.info("wired %d listener entries, %d subscribers", len(listeners), len(subscribers))
    return dispatcher


def build_from_yaml(yaml_path: Union[str, Path], dispatcher: Optional[Dispatcher] = None) -> Dispatcher:
    """Read a wiring YAML file and register everything it declares."""
    data = yaml.safe_load(Path(yaml_path).read_text(encoding="utf-8"))
    return build_from_dict(data, dispatcher)
