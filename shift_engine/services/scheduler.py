"""Day-by-day greedy assignment of employees to shifts."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from ..domain.calendar import Holiday, LeaveRecord
from ..domain.employee import Employee, PerShiftConstraints
from ..domain.schedule import DailySchedule, ScheduleBook, ShiftAssignment
from ..domain.shift import Shift
from ..infrastructure.config import CONFIG
from ..infrastructure.snapshot import constraints_from_dict
from ..rules.candidates import CandidateSelector
from ..rules.constraints import ConstraintEvaluator
from ..rules.ranking import Ranker, ShiftCounts, new_counts
from .statistics import StatsDelta

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class SchedulingError(RuntimeError):
    """Base class for misuse of the scheduler."""


class SchedulerNotLoadedError(SchedulingError):
    """Raised when the scheduler is used before ``load_data``."""


class InvalidRangeError(SchedulingError, ValueError):
    """Raised when a run's start date is after its end date."""


@dataclass
class RunState:
    """Snapshot and counters for one load + run cycle."""

    employees: List[Employee]
    holidays: List[Holiday]
    leaves: List[LeaveRecord]
    history: ScheduleBook
    selector: CandidateSelector
    ranker: Ranker
    # Picks since load_data; only a reload clears it.
    accrued_stats: ShiftCounts = field(default_factory=new_counts)

    @property
    def current_stats(self) -> ShiftCounts:
        return self.ranker.current_stats

    @property
    def historical_stats(self) -> ShiftCounts:
        return self.ranker.historical_stats


def daterange(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Scheduler:
    def __init__(self, config: Optional[Mapping] = None, *, clock: Optional[Clock] = None) -> None:
        config = config or CONFIG
        self.shift_order: List[Shift] = [Shift.parse(key) for key in config.get("shift_order", CONFIG["shift_order"])]
        self.default_constraints: PerShiftConstraints = constraints_from_dict(
            config.get("default_shift_constraints", CONFIG["default_shift_constraints"])
        )
        self.clock: Clock = clock or _utc_now
        self._state: Optional[RunState] = None

    # ------------------------------------------------------------------
    def load_data(
        self,
        employees: Iterable[Employee],
        holidays: Iterable[Holiday],
        leaves: Iterable[LeaveRecord],
        existing_schedules: Iterable[DailySchedule],
    ) -> RunState:
        """Reset the run state from a fresh snapshot.

        *leaves* must already be restricted to approved applications.
        """

        employees = list(employees)
        holidays = list(holidays)
        leaves = list(leaves)
        historical = new_counts()
        for employee in employees:
            for shift, count in employee.historical_stats.items():
                historical[employee.id][shift] = int(count)

        evaluator = ConstraintEvaluator(leaves, self.default_constraints)
        state = RunState(
            employees=employees,
            holidays=holidays,
            leaves=leaves,
            history=ScheduleBook(existing_schedules),
            selector=CandidateSelector(employees, holidays, evaluator),
            ranker=Ranker(new_counts(), historical),
        )
        self._state = state
        logger.info(
            "loaded %d employees, %d holidays, %d leave records, %d existing days",
            len(state.employees),
            len(state.holidays),
            len(state.leaves),
            len(state.history),
        )
        return state

    @property
    def state(self) -> RunState:
        if self._state is None:
            raise SchedulerNotLoadedError("load_data() must be called before scheduling")
        return self._state

    def get_candidates(
        self,
        shift: Shift | str,
        day: date,
        in_progress: Iterable[DailySchedule] = (),
        current_assignee: Optional[str] = None,
    ) -> List[Employee]:
        state = self.state
        history = ScheduleBook.layered(state.history, in_progress)
        return state.selector.get_candidates(Shift.parse(shift), day, history, current_assignee=current_assignee)

    def run(self, start: date, end: date) -> List[DailySchedule]:
        state = self.state
        if start > end:
            raise InvalidRangeError(f"start {start.isoformat()} is after end {end.isoformat()}")

        logger.info("scheduling run %s .. %s", start.isoformat(), end.isoformat())
        results: List[DailySchedule] = []
        for day in daterange(start, end):
            if state.selector.is_excluded(day):
                logger.info("skipping %s: weekend or holiday", day.isoformat())
                continue
            results.append(self._schedule_day(state, day))

        filled = sum(len(s.shifts) for s in results)
        logger.info(
            "run finished: %d days, %d assignments, %d vacancies",
            len(results),
            filled,
            len(results) * len(self.shift_order) - filled,
        )
        return results

    def _schedule_day(self, state: RunState, day: date) -> DailySchedule:
        daily = DailySchedule(date=day)
        for shift in self.shift_order:
            taken = Counter(daily.employee_ids())
            candidates = [
                c
                for c in state.selector.get_candidates(shift, day, state.history)
                if taken[c.id] < c.constraints.daily_max
            ]
            best = state.ranker.select_best(candidates, shift, day)
            if best is None:
                logger.info("%s on %s left vacant", shift.value, day.isoformat())
                continue
            state.accrued_stats[best.id][shift] += 1
            daily.assign(shift, ShiftAssignment(employee_id=best.id, assigned_at=self.clock(), is_manual=False))
            logger.debug("%s on %s assigned to %s", shift.value, day.isoformat(), best.id)
        state.history.add(daily)
        return daily

    # ------------------------------------------------------------------
    def get_current_stats(self) -> Dict[str, Dict[Shift, int]]:
        return _freeze(self.state.current_stats)

    def get_historical_stats(self) -> Dict[str, Dict[Shift, int]]:
        return _freeze(self.state.historical_stats)

    def reset_current_stats(self) -> None:
        """Forget this run's counts for fairness ranking; ``stats_delta()`` still reports them."""
        self.state.current_stats.clear()

    def stats_delta(self) -> StatsDelta:
        """Assignments accrued since the last load, to be persisted by the caller."""
        return StatsDelta.from_table(self.state.accrued_stats)


def _freeze(table: ShiftCounts) -> Dict[str, Dict[Shift, int]]:
    frozen: Dict[str, Dict[Shift, int]] = {}
    for employee_id, row in table.items():
        counts = {shift: count for shift, count in row.items() if count}
        if counts:
            frozen[employee_id] = counts
    return frozen


def schedule_range(
    employees: Sequence[Employee],
    holidays: Sequence[Holiday],
    leaves: Sequence[LeaveRecord],
    existing_schedules: Sequence[DailySchedule],
    start: date,
    end: date,
    *,
    config: Optional[Mapping] = None,
    clock: Optional[Clock] = None,
) -> tuple[List[DailySchedule], StatsDelta]:
    """Load a snapshot, run once and return the schedules with their stats delta."""
    scheduler = Scheduler(config, clock=clock)
    scheduler.load_data(employees, holidays, leaves, existing_schedules)
    schedules = scheduler.run(start, end)
    return schedules, scheduler.stats_delta()


__all__ = [
    "InvalidRangeError",
    "RunState",
    "Scheduler",
    "SchedulerNotLoadedError",
    "SchedulingError",
    "daterange",
    "schedule_range",
]
