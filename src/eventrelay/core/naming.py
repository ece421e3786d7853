# src/eventrelay/core/naming.py
from __future__ import annotations
import re
import unicodedata
from typing import Optional

WILDCARD = ".*"

_WORD_START = re.compile(r"\s[a-z]")
_SPACES = re.compile(r"\s+")
_LEADING_UPPER = re.compile(r"^[A-Z]")
_UPPER = re.compile(r"([A-Z])")


def _fold_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(name: Optional[str]) -> Optional[str]:
    """Canonical snake_case form of an event identifier.

    ``fooEvent``, ``FooEvent``, ``foo-event`` and ``foo event`` all become
    ``foo_event``. Dots and ``*`` are left alone so ``post.*`` survives.
    ``None`` passes through.
    """
    if name is None:
        return None
    s = _fold_accents(str(name)).replace("-", " ")
    s = _WORD_START.sub(lambda m: m.group(0).upper(), s)
    s = _SPACES.sub("", s)
    s = _LEADING_UPPER.sub(lambda m: m.group(0).lower(), s)
    return _UPPER.sub(r"_\1", s).strip().lower()


def is_wildcard(name: str) -> bool:
    return WILDCARD in name


def wildcard_of(name: Optional[str]) -> Optional[str]:
    """Wildcard pattern for ``name``, cut at the first dot: "a.b" -> "a.*", "a.b.c" -> "a.*".

    A pattern is its own wildcard; a name without a dot has none.
    """
    if name is None:
        return None
    if is_wildcard(name):
        return name
    if "." not in name:
        return None
    return name[: name.index(".")] + WILDCARD
