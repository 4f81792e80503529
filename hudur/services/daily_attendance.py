from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta

from hudur.schemas import DailyAttendance, Employee, Leave, Mission, Punch, SpecialRule
from hudur.services.audit_trace import build_audit_trace, encode_audit_trace
from hudur.services.clock import is_friday, is_saturday
from hudur.services.overtime import calculate_overtime
from hudur.services.penalties import calculate_penalties
from hudur.services.rule_engine import RuleContext, get_applicable_rules, merge_effects
from hudur.services.shifts import resolve_shift
from hudur.services.stamps import resolve_stamps, sort_punches

logger = logging.getLogger("hudur.engine")

_DayKey = tuple[str, date]


@dataclass(frozen=True)
class _SnapshotIndex:
    punches: dict[_DayKey, list[Punch]]
    missions: dict[_DayKey, list[Mission]]
    leaves: dict[str, list[Leave]]

    def punches_for(self, employee_code: str, day_date: date) -> list[Punch]:
        return self.punches.get((employee_code, day_date), [])

    def missions_for(self, employee_code: str, day_date: date) -> list[Mission]:
        return self.missions.get((employee_code, day_date), [])

    def leaves_for(self, employee_code: str, day_date: date) -> list[Leave]:
        return [leave for leave in self.leaves.get(employee_code, []) if leave.covers(day_date)]


def _index_snapshot(punches: list[Punch], missions: list[Mission], leaves: list[Leave]) -> _SnapshotIndex:
    punch_map: dict[_DayKey, list[Punch]] = defaultdict(list)
    for punch in punches:
        punch_map[(punch.employee_code, punch.timestamp.date())].append(punch)

    mission_map: dict[_DayKey, list[Mission]] = defaultdict(list)
    for mission in missions:
        mission_map[(mission.employee_code, mission.day_date)].append(mission)

    leave_map: dict[str, list[Leave]] = defaultdict(list)
    for leave in leaves:
        leave_map[leave.employee_code].append(leave)

    return _SnapshotIndex(
        punches={key: sort_punches(items) for key, items in punch_map.items()},
        missions=dict(mission_map),
        leaves=dict(leave_map),
    )


def _leave_dates(leave: Leave) -> list[date]:
    span = (leave.end_date - leave.start_date).days
    return [leave.start_date + timedelta(days=offset) for offset in range(span + 1)]


def collect_calculation_dates(
    punches: list[Punch],
    missions: list[Mission],
    leaves: list[Leave],
) -> list[date]:
    dates: set[date] = {punch.timestamp.date() for punch in punches}
    dates.update(mission.day_date for mission in missions)
    for leave in leaves:
        dates.update(_leave_dates(leave))
    return sorted(dates)


def calculate_daily_attendance(
    employee: Employee,
    day_date: date,
    *,
    punches: list[Punch],
    missions: list[Mission],
    leaves: list[Leave],
    special_rules: list[SpecialRule],
    next_day_punches: list[Punch] | None = None,
) -> DailyAttendance:
    applied_rules = get_applicable_rules(special_rules, RuleContext.for_day(employee, day_date))
    effect = merge_effects(applied_rules)

    shift = resolve_shift(employee, day_date, effect)
    stamps = resolve_stamps(punches, missions, ignore_biometric=effect.ignore_biometric)
    penalties = calculate_penalties(
        day_date=day_date,
        shift=shift,
        check_in=stamps.check_in,
        check_out=stamps.check_out,
        effect=effect,
        on_leave=bool(leaves),
    )
    next_day_sorted = sort_punches(next_day_punches or [])
    overtime = calculate_overtime(
        shift=shift,
        check_in=penalties.check_in,
        check_out=penalties.check_out,
        suppressed=penalties.suppressed,
        effect=effect,
        next_day_first_punch=next_day_sorted[0].timestamp if next_day_sorted else None,
    )
    trace = build_audit_trace(
        stamps=stamps,
        missions=missions,
        leaves=leaves,
        applied_rules=applied_rules,
        shift=shift,
        penalties=penalties,
        overtime=overtime,
    )

    return DailyAttendance(
        employee_code=employee.code,
        day_date=day_date,
        first_punch=penalties.check_in,
        last_punch=penalties.check_out,
        shift_start=shift.start,
        shift_end=shift.end,
        actual_start=penalties.check_in,
        actual_end=penalties.check_out,
        is_absent=penalties.absence_penalty > 0,
        is_mission=bool(missions),
        is_leave=bool(leaves),
        is_weekend=is_friday(day_date) or is_saturday(day_date),
        suppress_penalties=penalties.suppressed,
        late_penalty=penalties.late_penalty,
        early_penalty=penalties.early_penalty,
        missing_punch_penalty=penalties.missing_punch_penalty,
        absence_penalty=penalties.absence_penalty,
        total_deduction=penalties.total_deduction,
        early_overtime=overtime.early_overtime,
        late_overtime=overtime.late_overtime,
        total_overtime=overtime.total_overtime,
        logs=[encode_audit_trace(trace)],
    )


def calculate_attendance_records(
    employees: list[Employee],
    punches: list[Punch],
    missions: list[Mission],
    leaves: list[Leave],
    special_rules: list[SpecialRule],
    *,
    target_date: date | None = None,
) -> list[DailyAttendance]:
    """Compute one attendance record per (employee, date).

    Without ``target_date`` the run covers every date touched by a punch,
    mission or leave, and days with none of those for an employee are
    skipped. With ``target_date`` every employee gets a record for that day,
    so employees with no signal come out absent.
    """
    index = _index_snapshot(punches, missions, leaves)
    dates = [target_date] if target_date is not None else collect_calculation_dates(punches, missions, leaves)

    known_codes = {employee.code for employee in employees}
    unknown_punches = sum(1 for punch in punches if punch.employee_code not in known_codes)
    if unknown_punches:
        logger.debug("punches_for_unknown_employees_skipped", extra={"punch_count": unknown_punches})

    records: list[DailyAttendance] = []
    for employee in employees:
        for day_date in dates:
            day_punches = index.punches_for(employee.code, day_date)
            day_missions = index.missions_for(employee.code, day_date)
            day_leaves = index.leaves_for(employee.code, day_date)
            if target_date is None and not (day_punches or day_missions or day_leaves):
                continue

            records.append(
                calculate_daily_attendance(
                    employee,
                    day_date,
                    punches=day_punches,
                    missions=day_missions,
                    leaves=day_leaves,
                    special_rules=special_rules,
                    next_day_punches=index.punches_for(employee.code, day_date + timedelta(days=1)),
                )
            )

    logger.info(
        "attendance_calculation_completed",
        extra={
            "employee_count": len(employees),
            "date_count": len(dates),
            "record_count": len(records),
            "rule_count": len(special_rules),
            "target_date": target_date.isoformat() if target_date else None,
        },
    )
    return records
