"""Injizierbare Uhr und ID-Erzeugung.

Produktiv liefern SystemClock und RandomIdGenerator Wanduhrzeit und
zufällige Kennungen; Tests setzen FixedClock und SequentialIdGenerator ein.
"""

import random
import string
from datetime import datetime, timedelta
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class IdGenerator(Protocol):
    def __call__(self, prefix: str = "") -> str: ...


class SystemClock:
    """Lokale Wanduhrzeit, sekundengenau, ohne Zeitzone."""

    def now(self) -> datetime:
        return datetime.now().replace(microsecond=0)


class FixedClock:
    """Steht still, bis sie explizit verstellt wird."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        """Stellt die Uhr vor, z.B. advance(hours=2)."""
        self.current = self.current + timedelta(**kwargs)


_ALPHABET = string.ascii_lowercase + string.digits


class RandomIdGenerator:
    """Präfix + 9 zufällige Zeichen aus [a-z0-9], z.B. "bk3x9q2m7a"."""

    def __init__(self, seed: Optional[int] = None, length: int = 9):
        self._rng = random.Random(seed)
        self._length = length

    def __call__(self, prefix: str = "") -> str:
        return prefix + "".join(self._rng.choices(_ALPHABET, k=self._length))


class SequentialIdGenerator:
    """Fortlaufende Kennungen pro Präfix: b1, b2, r1, ..."""

    def __init__(self, start: int = 1):
        self._start = start
        self._counters: dict[str, int] = {}

    def __call__(self, prefix: str = "") -> str:
        n = self._counters.get(prefix, self._start)
        self._counters[prefix] = n + 1
        return f"{prefix}{n}"
