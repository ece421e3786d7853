# src/eventrelay/core/log.py
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv

ROOT = "eventrelay"
TEXT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s | %(message)s"

_configured = False


class JsonHandler(logging.StreamHandler):
    """One JSON object per record on stdout."""

    def __init__(self):
        super().__init__(stream=sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            obj = {
                "ts": record.created,
                "lvl": record.levelname,
                "name": record.name,
                "msg": record.getMessage(),
                "where": f"{record.filename}:{record.lineno}",
            }
            event = getattr(record, "event", None)
            if event is not None:
                obj["event"] = event
            if record.exc_info:
                obj["exc"] = logging.Formatter().formatException(record.exc_info)
            self.stream.write(json.dumps(obj, ensure_ascii=False, default=str) + "\n")
            self.flush()
        except Exception:  # pragma: no cover
            self.handleError(record)


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def setup(level: Optional[str] = None, json_mode: Optional[bool] = None, *, force: bool = False) -> None:
    """Configure the root logger once.

    LOG_LEVEL and LOG_JSON are read from the environment (and from a .env
    file) when the arguments are left as None.
    """
    global _configured
    if _configured and not force:
        return

    load_dotenv()

    lvl = _parse_level(level or os.getenv("LOG_LEVEL", "INFO"))
    json_flag = json_mode if json_mode is not None else (os.getenv("LOG_JSON", "0") == "1")

    root = logging.getLogger()
    # pytest re-runs setup; avoid stacking handlers
    root.handlers.clear()
    root.setLevel(lvl)

    if json_flag:
        handler: logging.Handler = JsonHandler()
    else:
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=TEXT_FORMAT))
    root.addHandler(handler)

    _configured = True


def get(name: str) -> logging.Logger:
    """Namespaced logger; bare names are placed under ``eventrelay.``."""
    if name != ROOT and not name.startswith(ROOT + ".") and "." not in name:
        name = f"{ROOT}.{name}"
    return logging.getLogger(name)


def set_level(level: str) -> None:
    logging.getLogger().setLevel(_parse_level(level))
