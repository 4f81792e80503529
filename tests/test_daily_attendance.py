from __future__ import annotations

from datetime import date, datetime
import unittest

from hudur.schemas import Employee, Leave, Mission, Punch, SpecialRule
from hudur.services.audit_trace import find_audit_trace
from hudur.services.daily_attendance import calculate_attendance_records, collect_calculation_dates

FRIDAY = date(2024, 1, 5)
MONDAY = date(2024, 1, 8)
TUESDAY = date(2024, 1, 9)


def _employees() -> list[Employee]:
    return [
        Employee(code="E1", name="Ahmed", department="HR", branch="Cairo", job="محاسب", shift_start="08:00", shift_end="16:00"),
        Employee(code="E2", name="Mona", department="IT", branch="Giza", job="مبرمج", shift_start="08:00", shift_end="16:00"),
    ]


def _punch(code: str, ts: datetime) -> Punch:
    return Punch(employee_code=code, timestamp=ts, original_value=ts.isoformat())


def _rule(**values) -> SpecialRule:  # type: ignore[no-untyped-def]
    base = {"scopeType": "all", "dateFrom": "2024-01-01", "dateTo": "2024-01-31", "enabled": True}
    base.update(values)
    return SpecialRule.model_validate(base)


def _record(records, code: str, day_date: date):  # type: ignore[no-untyped-def]
    return next(item for item in records if item.employee_code == code and item.day_date == day_date)


class DailyAttendanceAssemblerTests(unittest.TestCase):
    def test_regular_day_with_lateness(self) -> None:
        punches = [_punch("E1", datetime(2024, 1, 8, 8, 20)), _punch("E1", datetime(2024, 1, 8, 16, 0))]
        records = calculate_attendance_records(_employees(), punches, [], [], [])

        self.assertEqual(len(records), 1)
        record = records[0]
        self.assertEqual(record.employee_code, "E1")
        self.assertEqual((record.first_punch, record.last_punch), ("08:20", "16:00"))
        self.assertEqual(record.late_penalty, 0.25)
        self.assertEqual(record.total_deduction, 0.25)
        self.assertFalse(record.is_absent)
        self.assertFalse(record.is_weekend)

        trace = find_audit_trace(record.logs)
        assert trace is not None
        self.assertEqual(trace.raw_punches, [datetime(2024, 1, 8, 8, 20), datetime(2024, 1, 8, 16, 0)])
        self.assertEqual(trace.penalties[0].type, "late")
        self.assertEqual(trace.shift_used.end, "16:00")

    def test_friday_never_deducts(self) -> None:
        punches = [_punch("E1", datetime(2024, 1, 5, 11, 0))]
        records = calculate_attendance_records(_employees(), punches, [], [], [])
        record = _record(records, "E1", FRIDAY)
        self.assertTrue(record.suppress_penalties)
        self.assertTrue(record.is_weekend)
        self.assertEqual(record.total_deduction, 0.0)

    def test_days_without_signal_are_skipped(self) -> None:
        punches = [_punch("E1", datetime(2024, 1, 8, 8, 0))]
        records = calculate_attendance_records(_employees(), punches, [], [], [])
        self.assertEqual([(item.employee_code, item.day_date) for item in records], [("E1", MONDAY)])

    def test_target_date_marks_silent_employees_absent(self) -> None:
        records = calculate_attendance_records(_employees(), [], [], [], [], target_date=MONDAY)
        self.assertEqual(len(records), 2)
        for record in records:
            self.assertTrue(record.is_absent)
            self.assertEqual(record.absence_penalty, 1.0)
            self.assertEqual(record.total_deduction, 1.0)

    def test_mission_substitutes_for_punches(self) -> None:
        missions = [Mission(employee_code="E2", day_date=MONDAY, start_time="09:00", end_time="14:00", description="Bank")]
        records = calculate_attendance_records(_employees(), [], missions, [], [])
        record = _record(records, "E2", MONDAY)
        self.assertTrue(record.is_mission)
        self.assertEqual(record.first_punch, "09:00")
        trace = find_audit_trace(record.logs)
        assert trace is not None
        self.assertEqual(trace.first_stamp_source, "mission")
        self.assertEqual(trace.applied_missions, ["09:00-14:00: Bank"])

    def test_mission_end_time_alone_carries_no_penalty(self) -> None:
        missions = [Mission(employee_code="E2", day_date=MONDAY, end_time="14:00", description="Court")]
        record = _record(calculate_attendance_records(_employees(), [], missions, [], []), "E2", MONDAY)
        self.assertIsNone(record.first_punch)
        self.assertEqual(record.last_punch, "14:00")
        self.assertFalse(record.is_absent)
        self.assertEqual(record.missing_punch_penalty, 0.0)
        self.assertEqual(record.total_deduction, 0.0)

    def test_leave_range_expands_to_every_covered_day(self) -> None:
        leaves = [Leave(employee_code="E1", start_date=MONDAY, end_date=date(2024, 1, 10), type="Sick")]
        records = calculate_attendance_records(_employees(), [], [], leaves, [])
        self.assertEqual([item.day_date.day for item in records], [8, 9, 10])
        for record in records:
            self.assertTrue(record.is_leave)
            self.assertTrue(record.suppress_penalties)
            self.assertFalse(record.is_absent)
            self.assertEqual(record.total_deduction, 0.0)

    def test_collect_calculation_dates(self) -> None:
        dates = collect_calculation_dates(
            [_punch("E1", datetime(2024, 1, 12, 8, 0))],
            [Mission(employee_code="E1", day_date=MONDAY)],
            [Leave(employee_code="E1", start_date=FRIDAY, end_date=date(2024, 1, 6), type="Annual")],
        )
        self.assertEqual(dates, [FRIDAY, date(2024, 1, 6), MONDAY, date(2024, 1, 12)])

    def test_overnight_rule_links_next_day_punch(self) -> None:
        rules = [
            _rule(id=1, name="Night desk", ruleType="CUSTOM_SHIFT", params={"shiftStart": "15:00", "shiftEnd": "23:00"}, priority=5),
            _rule(id=2, name="Overnight", ruleType="OVERTIME_OVERNIGHT", params={"allowNextDayCheckout": True, "maxOvernightHours": 2}),
        ]
        punches = [
            _punch("E1", datetime(2024, 1, 8, 15, 0)),
            _punch("E1", datetime(2024, 1, 8, 23, 0)),
            _punch("E1", datetime(2024, 1, 9, 0, 0)),
        ]
        records = calculate_attendance_records(_employees(), punches, [], [], rules)
        record = _record(records, "E1", MONDAY)
        self.assertEqual(record.late_overtime, 1.0)
        self.assertEqual(record.total_overtime, 1.0)

        trace = find_audit_trace(record.logs)
        assert trace is not None
        self.assertEqual([(item.type, item.minutes) for item in trace.overtime_details], [("overnight", 60)])
        self.assertEqual([item.rule_id for item in trace.applied_rules], [1, 2])

    def test_overnight_rule_respects_cap(self) -> None:
        rules = [
            _rule(id=1, ruleType="CUSTOM_SHIFT", params={"shiftStart": "15:00", "shiftEnd": "23:00"}),
            _rule(id=2, ruleType="OVERTIME_OVERNIGHT", params={"allowNextDayCheckout": True, "maxOvernightHours": 2}),
        ]
        punches = [
            _punch("E1", datetime(2024, 1, 8, 15, 0)),
            _punch("E1", datetime(2024, 1, 8, 23, 0)),
            _punch("E1", datetime(2024, 1, 9, 2, 0)),
        ]
        record = _record(calculate_attendance_records(_employees(), punches, [], [], rules), "E1", MONDAY)
        self.assertEqual(record.late_overtime, 0.0)
        trace = find_audit_trace(record.logs)
        assert trace is not None
        self.assertEqual(trace.overtime_details, [])

    def test_ignore_biometric_rule_makes_day_absent(self) -> None:
        rules = [_rule(id=7, name="Broken device", scopeType="branch", scopeValues=["Cairo"], ruleType="IGNORE_BIOMETRIC")]
        punches = [_punch("E1", datetime(2024, 1, 8, 8, 0)), _punch("E1", datetime(2024, 1, 8, 16, 0))]
        record = _record(calculate_attendance_records(_employees(), punches, [], [], rules), "E1", MONDAY)
        self.assertIsNone(record.first_punch)
        self.assertTrue(record.is_absent)
        trace = find_audit_trace(record.logs)
        assert trace is not None
        self.assertEqual(len(trace.raw_punches), 2)
        self.assertIn("Biometric ignored by rule", trace.notes)

    def test_punches_of_unknown_employees_are_ignored(self) -> None:
        records = calculate_attendance_records(_employees(), [_punch("X9", datetime(2024, 1, 8, 8, 0))], [], [], [])
        self.assertEqual(records, [])

    def test_rerun_is_idempotent(self) -> None:
        punches = [_punch("E1", datetime(2024, 1, 8, 7, 40)), _punch("E1", datetime(2024, 1, 8, 17, 10))]
        missions = [Mission(employee_code="E2", day_date=TUESDAY, start_time="10:00", end_time="12:00")]
        rules = [_rule(id=3, ruleType="PENALTY_OVERRIDE", params={"earlyPenalty": "IGNORE"})]
        first = calculate_attendance_records(_employees(), punches, missions, [], rules)
        second = calculate_attendance_records(_employees(), punches, missions, [], rules)
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
