from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union


class UnknownShiftError(ValueError):
    """Raised when a shift key is not part of the known shift set."""


@dataclass(frozen=True)
class TimeWindow:
    start: str
    end: str

    @staticmethod
    def _minutes(value: str) -> int:
        hours, minutes = value.split(":")
        return int(hours) * 60 + int(minutes)

    @property
    def start_minutes(self) -> int:
        return self._minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return self._minutes(self.end)

    def overlaps(self, start_minutes: int, end_minutes: int) -> bool:
        """True when ``[start_minutes, end_minutes)`` intersects this window."""
        return not (self.end_minutes <= start_minutes or self.start_minutes >= end_minutes)


class Shift(str, Enum):
    NOON = "noon"
    PHONE = "phone"
    MORNING = "morning"
    AFTERNOON = "afternoon"
    VERIFY1 = "verify1"
    VERIFY2 = "verify2"

    @classmethod
    def parse(cls, value: Union["Shift", str]) -> "Shift":
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        key = _LEGACY_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError as exc:
            raise UnknownShiftError(f"Unknown shift: {value!r}") from exc

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def window(self) -> TimeWindow:
        return _WINDOWS[self]

    def __str__(self) -> str:
        return self.value


# Older records use a single undifferentiated verification shift.
_LEGACY_ALIASES: Dict[str, str] = {"verify": "verify1"}

_DISPLAY_NAMES: Dict[Shift, str] = {
    Shift.NOON: "諮詢台值午",
    Shift.PHONE: "諮詢電話",
    Shift.MORNING: "上午支援",
    Shift.AFTERNOON: "下午支援",
    Shift.VERIFY1: "處方審核(主)",
    Shift.VERIFY2: "處方審核(輔)",
}

_WINDOWS: Dict[Shift, TimeWindow] = {
    Shift.NOON: TimeWindow("12:30", "13:30"),
    Shift.PHONE: TimeWindow("09:00", "18:00"),
    Shift.MORNING: TimeWindow("09:00", "12:30"),
    Shift.AFTERNOON: TimeWindow("13:30", "18:00"),
    Shift.VERIFY1: TimeWindow("09:00", "18:00"),
    Shift.VERIFY2: TimeWindow("09:00", "18:00"),
}

SHIFT_ORDER: Tuple[Shift, ...] = (
    Shift.NOON,
    Shift.PHONE,
    Shift.MORNING,
    Shift.AFTERNOON,
    Shift.VERIFY1,
    Shift.VERIFY2,
)


__all__ = ["Shift", "SHIFT_ORDER", "TimeWindow", "UnknownShiftError"]
