from __future__ import annotations
from typing import Protocol

from ..expiry import now_ms

class Clock(Protocol):
    def now_ms(self) -> float: ...

class SystemClock:
    def now_ms(self) -> float:
        return now_ms()
