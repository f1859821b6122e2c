"""Fairness ordering of candidates with a reproducible tiebreak."""
from __future__ import annotations

import struct
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from ..domain.employee import Employee
from ..domain.shift import Shift

ShiftCounts = Dict[str, Dict[Shift, int]]


def new_counts() -> ShiftCounts:
    return defaultdict(lambda: defaultdict(int))


def stable_hash(text: str) -> int:
    """32-bit ``hash * 31 + unit`` string hash over UTF-16 code units, made non-negative."""
    value = 0
    for (unit,) in struct.iter_unpack("<H", text.encode("utf-16-le")):
        value = (value * 31 + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def tiebreak_seed(day: date, shift: Shift) -> str:
    return f"{day.isoformat()}-{shift.value}"


class Ranker:
    def __init__(self, current_stats: ShiftCounts, historical_stats: ShiftCounts) -> None:
        self.current_stats = current_stats
        self.historical_stats = historical_stats

    def sort_key(self, employee: Employee, shift: Shift, seed: str) -> Tuple[int, int, int, str]:
        return (
            self.current_stats[employee.id][shift],
            self.historical_stats[employee.id][shift],
            stable_hash(f"{employee.id}-{seed}"),
            employee.id,
        )

    def rank(self, candidates: Sequence[Employee], shift: Shift, day: date) -> List[Employee]:
        seed = tiebreak_seed(day, shift)
        return sorted(candidates, key=lambda employee: self.sort_key(employee, shift, seed))

    def select_best(self, candidates: Sequence[Employee], shift: Shift, day: date) -> Optional[Employee]:
        if not candidates:
            return None
        best = self.rank(candidates, shift, day)[0]
        self.record(best.id, shift)
        return best

    def record(self, employee_id: str, shift: Shift) -> None:
        self.current_stats[employee_id][shift] += 1
        self.historical_stats[employee_id][shift] += 1


__all__ = ["Ranker", "ShiftCounts", "new_counts", "stable_hash", "tiebreak_seed"]
