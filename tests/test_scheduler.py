from collections import Counter
from datetime import date, datetime, timedelta, timezone

import pytest

from shift_engine.domain.calendar import Holiday, LeaveRecord
from shift_engine.domain.employee import Employee, EmployeeConstraints, PerShiftConstraints
from shift_engine.domain.schedule import DailySchedule, ShiftAssignment
from shift_engine.domain.shift import Shift
from shift_engine.services.scheduler import (
    InvalidRangeError,
    Scheduler,
    SchedulerNotLoadedError,
    daterange,
    schedule_range,
)

MONDAY = date(2025, 9, 1)
FRIDAY = MONDAY + timedelta(days=4)
FIXED = datetime(2025, 8, 31, 9, 0, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED


def make_employee(employee_id, roles, stats=None, by_shift=None, unavailable=(), active=True):
    return Employee(
        id=employee_id,
        name=employee_id,
        roles=frozenset(roles),
        constraints=EmployeeConstraints(unavailable_dates=frozenset(unavailable), by_shift=by_shift or {}),
        historical_stats=dict(stats or {}),
        is_active=active,
    )


def limits(max_weekly=5, min_interval=1, days=(1, 2, 3, 4, 5), max_consecutive=1):
    return PerShiftConstraints(
        max_weekly_shifts=max_weekly,
        min_interval=min_interval,
        available_days=frozenset(days),
        max_consecutive_days=max_consecutive,
    )


def loaded(employees, holidays=(), leaves=(), existing=()):
    scheduler = Scheduler(clock=fixed_clock)
    scheduler.load_data(employees, holidays, leaves, existing)
    return scheduler


def holders(schedules, shift):
    return [schedule.holder(shift) for schedule in schedules]


def mixed_roster():
    return [
        make_employee("E01", [Shift.NOON, Shift.PHONE, Shift.MORNING, Shift.AFTERNOON], {Shift.NOON: 3}),
        make_employee("E02", [Shift.NOON, Shift.PHONE, Shift.MORNING, Shift.VERIFY1]),
        make_employee(
            "E03",
            [Shift.MORNING, Shift.AFTERNOON, Shift.VERIFY1, Shift.VERIFY2],
            by_shift={Shift.MORNING: limits(max_weekly=2, min_interval=2)},
        ),
        make_employee("E04", list(Shift), unavailable=[MONDAY + timedelta(days=2)]),
        make_employee(
            "E05",
            [Shift.PHONE, Shift.AFTERNOON, Shift.VERIFY2],
            by_shift={Shift.PHONE: limits(max_weekly=3, days=(1, 3, 5), max_consecutive=2)},
        ),
        make_employee("E06", list(Shift), active=False),
    ]


def test_lower_history_wins_noon():
    alice = make_employee("Alice", [Shift.NOON], {Shift.NOON: 5})
    bob = make_employee("Bob", [Shift.NOON], {Shift.NOON: 2})
    scheduler = loaded([alice, bob])

    (schedule,) = scheduler.run(MONDAY, MONDAY)

    assert schedule.holder(Shift.NOON) == "Bob"
    assert schedule.vacancies() == [Shift.PHONE, Shift.MORNING, Shift.AFTERNOON, Shift.VERIFY1, Shift.VERIFY2]
    assert scheduler.get_current_stats() == {"Bob": {Shift.NOON: 1}}
    assert scheduler.get_historical_stats()["Bob"][Shift.NOON] == 3


def test_unavailable_sole_candidate_leaves_vacancy():
    carol = make_employee("Carol", [Shift.PHONE], unavailable=[MONDAY])
    scheduler = loaded([carol])

    assert scheduler.get_candidates("phone", MONDAY) == []
    (schedule,) = scheduler.run(MONDAY, MONDAY)
    assert schedule.holder(Shift.PHONE) is None


def test_min_interval_spans_existing_history():
    dave = make_employee("Dave", [Shift.MORNING], by_shift={Shift.MORNING: limits(min_interval=2, max_consecutive=5)})
    existing = DailySchedule(date=MONDAY)
    existing.assign(Shift.MORNING, ShiftAssignment("Dave", FIXED))
    scheduler = loaded([dave], existing=[existing])

    assert scheduler.get_candidates(Shift.MORNING, MONDAY + timedelta(days=1)) == []
    assert [e.id for e in scheduler.get_candidates(Shift.MORNING, MONDAY + timedelta(days=2))] == ["Dave"]


def test_default_constraints_alternate_single_candidate():
    scheduler = loaded([make_employee("E01", [Shift.NOON])])
    schedules = scheduler.run(MONDAY, FRIDAY)
    assert holders(schedules, Shift.NOON) == ["E01", None, "E01", None, "E01"]


def test_consecutive_limit_of_two():
    employee = make_employee("E01", [Shift.NOON], by_shift={Shift.NOON: limits(max_consecutive=2)})
    schedules = loaded([employee]).run(MONDAY, FRIDAY)
    assert holders(schedules, Shift.NOON) == ["E01", "E01", None, "E01", "E01"]


def test_weekly_cap_resets_next_week():
    employee = make_employee("E01", [Shift.NOON], by_shift={Shift.NOON: limits(max_weekly=2, max_consecutive=5)})
    schedules = loaded([employee]).run(MONDAY, MONDAY + timedelta(days=7))
    assert holders(schedules, Shift.NOON) == ["E01", "E01", None, None, None, "E01"]


def test_one_shift_per_employee_per_day():
    employee = make_employee("E01", [Shift.NOON, Shift.PHONE])
    (schedule,) = loaded([employee]).run(MONDAY, MONDAY)
    assert schedule.holder(Shift.NOON) == "E01"
    assert schedule.holder(Shift.PHONE) is None


def test_custom_shift_order_changes_priority():
    employee = make_employee("E01", [Shift.NOON, Shift.PHONE])
    scheduler = Scheduler({"shift_order": ["phone", "noon"]}, clock=fixed_clock)
    scheduler.load_data([employee], [], [], [])
    (schedule,) = scheduler.run(MONDAY, MONDAY)
    assert schedule.holder(Shift.PHONE) == "E01"
    assert schedule.holder(Shift.NOON) is None


def test_partial_leave_blocks_overlapping_shift_only():
    employee = make_employee("E01", [Shift.NOON, Shift.MORNING])
    leave = LeaveRecord("E01", datetime(2025, 9, 1, 13, 0), datetime(2025, 9, 1, 18, 0))
    (schedule,) = loaded([employee], leaves=[leave]).run(MONDAY, MONDAY)
    assert schedule.holder(Shift.NOON) is None
    assert schedule.holder(Shift.MORNING) == "E01"


def test_weekends_and_holidays_produce_no_entries():
    employee = make_employee("E01", [Shift.NOON])
    holiday = Holiday(date=MONDAY + timedelta(days=7), name="closed")
    schedules = loaded([employee], holidays=[holiday]).run(MONDAY, MONDAY + timedelta(days=8))
    days = [schedule.date for schedule in schedules]
    assert days == [MONDAY + timedelta(days=offset) for offset in (0, 1, 2, 3, 4, 8)]


def test_invariants_hold_over_four_weeks():
    roster = mixed_roster()
    by_id = {employee.id: employee for employee in roster}
    start, end = MONDAY, MONDAY + timedelta(days=27)
    schedules = loaded(roster).run(start, end)

    assert len(schedules) == 20
    for schedule in schedules:
        assert schedule.date.isoweekday() <= 5
        ids = schedule.employee_ids()
        assert len(ids) == len(set(ids))
        for shift, assignment in schedule.shifts.items():
            employee = by_id[assignment.employee_id]
            assert employee.is_active
            assert shift in employee.roles
            assert schedule.date not in employee.constraints.unavailable_dates
            assert assignment.assigned_at == FIXED
            assert assignment.is_manual is False

    phone_days = [s.date for s in schedules if s.holder(Shift.PHONE) == "E05"]
    assert all(day.isoweekday() in (1, 3, 5) for day in phone_days)

    morning_days = sorted(s.date for s in schedules if s.holder(Shift.MORNING) == "E03")
    for earlier, later in zip(morning_days, morning_days[1:]):
        assert (later - earlier).days >= 2
    weeks = Counter(day.isocalendar()[1] for day in morning_days)
    assert all(count <= 2 for count in weeks.values())


def test_fair_rotation_between_identical_employees():
    roster = [make_employee(f"E0{n}", [Shift.NOON]) for n in range(1, 4)]
    schedules = loaded(roster).run(MONDAY, FRIDAY)
    counts = Counter(holders(schedules, Shift.NOON))
    assert None not in counts
    assert max(counts.values()) - min(counts.values()) <= 1


def test_runs_are_deterministic():
    first = loaded(mixed_roster()).run(MONDAY, MONDAY + timedelta(days=13))
    second = loaded(mixed_roster()).run(MONDAY, MONDAY + timedelta(days=13))
    assert [s.as_dict() for s in first] == [s.as_dict() for s in second]


def test_repeated_runs_accumulate_until_reload():
    employee = make_employee("E01", [Shift.NOON])
    scheduler = loaded([employee])
    tuesday = MONDAY + timedelta(days=1)

    assert scheduler.run(MONDAY, MONDAY)[0].holder(Shift.NOON) == "E01"
    assert scheduler.run(tuesday, tuesday)[0].holder(Shift.NOON) is None
    assert scheduler.stats_delta().as_dict() == {"E01": {"noon": 1}}

    scheduler.load_data([employee], [], [], [])
    assert scheduler.get_current_stats() == {}
    assert scheduler.run(tuesday, tuesday)[0].holder(Shift.NOON) == "E01"


def test_reset_current_stats_keeps_accrued_delta():
    scheduler = loaded([make_employee("E01", [Shift.NOON])])
    scheduler.run(MONDAY, MONDAY)
    scheduler.reset_current_stats()
    assert scheduler.get_current_stats() == {}
    assert scheduler.get_historical_stats() == {"E01": {Shift.NOON: 1}}
    assert scheduler.stats_delta().as_dict() == {"E01": {"noon": 1}}

    wednesday = MONDAY + timedelta(days=2)
    scheduler.run(wednesday, wednesday)
    assert scheduler.get_current_stats() == {"E01": {Shift.NOON: 1}}
    assert scheduler.stats_delta().as_dict() == {"E01": {"noon": 2}}

    scheduler.load_data([make_employee("E01", [Shift.NOON])], [], [], [])
    assert scheduler.stats_delta().is_empty()


def test_in_progress_days_count_towards_constraints():
    scheduler = loaded([make_employee("E01", [Shift.NOON])])
    draft = DailySchedule(date=MONDAY)
    draft.assign(Shift.NOON, ShiftAssignment("E01", FIXED))
    tuesday = MONDAY + timedelta(days=1)

    assert [e.id for e in scheduler.get_candidates(Shift.NOON, tuesday)] == ["E01"]
    assert scheduler.get_candidates(Shift.NOON, tuesday, in_progress=[draft]) == []


def test_usage_errors():
    scheduler = Scheduler(clock=fixed_clock)
    with pytest.raises(SchedulerNotLoadedError):
        scheduler.run(MONDAY, MONDAY)
    with pytest.raises(SchedulerNotLoadedError):
        scheduler.get_candidates(Shift.NOON, MONDAY)

    scheduler.load_data([], [], [], [])
    with pytest.raises(InvalidRangeError):
        scheduler.run(FRIDAY, MONDAY)


def test_empty_roster_yields_full_vacancies():
    schedules = loaded([]).run(MONDAY, MONDAY)
    assert schedules[0].shifts == {}
    assert len(schedules[0].vacancies()) == 6


def test_schedule_range_returns_delta():
    roster = [make_employee("E01", [Shift.NOON]), make_employee("E02", [Shift.PHONE])]
    schedules, delta = schedule_range(roster, [], [], [], MONDAY, MONDAY, clock=fixed_clock)
    assert len(schedules) == 1
    assert delta.as_dict() == {"E01": {"noon": 1}, "E02": {"phone": 1}}


def test_daterange_is_inclusive():
    assert list(daterange(MONDAY, MONDAY + timedelta(days=2)))[-1] == MONDAY + timedelta(days=2)
    assert list(daterange(FRIDAY, MONDAY)) == []
