from __future__ import annotations

import datetime as dt
import re
import threading
from typing import Callable, Generic, Optional, TypeVar

URLIZE_RE = re.compile(r"[^a-zA-Z0-9]+")

T = TypeVar("T")


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def urlize(text: Optional[str], separator: str = "-") -> str:
    text = (text or "").lower()
    return URLIZE_RE.sub(separator, text).strip(separator)


def urlize_path(path: Optional[str]) -> str:
    path = unix_path(path)
    segments = [urlize(item) for item in path.split("/") if item]
    segments = [item for item in segments if item]
    prefix = "/" if path.startswith("/") else ""
    return prefix + "/".join(segments)


def unix_path(path: Optional[str]) -> str:
    return (path or "").replace("\\", "/")


def to_datetime(value: object) -> Optional[dt.datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    if isinstance(value, str):
        text = value.strip()
        try:
            return to_datetime(dt.datetime.fromisoformat(text))
        except ValueError:
            return dt.datetime.combine(dt.date.fromisoformat(text), dt.time())
    raise ValueError(f"Not a date: {value!r}")


class SystemClock:
    def now(self) -> dt.datetime:
        return dt.datetime.now()


class FixedClock:
    def __init__(self, now: dt.datetime):
        self._now = now

    def now(self) -> dt.datetime:
        return self._now


class Memoized(Generic[T]):
    """Computes a value once on first ``get()`` and keeps it until ``reset()``."""

    def __init__(self, factory: Callable[[], T]):
        self._factory = factory
        self._lock = threading.RLock()
        self._computed = False
        self._value: Optional[T] = None

    @property
    def computed(self) -> bool:
        return self._computed

    def get(self) -> T:
        if self._computed:
            return self._value  # type: ignore[return-value]
        with self._lock:
            if not self._computed:
                self._value = self._factory()
                self._computed = True
        return self._value  # type: ignore[return-value]

    def reset(self) -> None:
        with self._lock:
            self._computed = False
            self._value = None
