from __future__ import annotations

from hudur.schemas import DailyAttendance, Employee, MonthlySummary
from hudur.services.audit_trace import find_audit_trace


def _late_minutes(record: DailyAttendance) -> int:
    trace = find_audit_trace(record.logs)
    if trace is None:
        return 0
    return sum(entry.minutes or 0 for entry in trace.penalties if entry.type == "late")


def summarize_attendance(
    employees: list[Employee],
    records: list[DailyAttendance],
    *,
    month: str | None = None,
) -> list[MonthlySummary]:
    """Per-employee totals for payroll, optionally limited to a ``YYYY-MM`` month."""
    rows_by_employee: dict[str, list[DailyAttendance]] = {employee.code: [] for employee in employees}
    for record in records:
        if month is not None and not record.day_date.isoformat().startswith(month):
            continue
        if record.employee_code in rows_by_employee:
            rows_by_employee[record.employee_code].append(record)

    summaries: list[MonthlySummary] = []
    for employee in employees:
        rows = rows_by_employee[employee.code]
        total_deductions = sum(row.total_deduction for row in rows)
        summaries.append(
            MonthlySummary(
                employee_code=employee.code,
                name=employee.name,
                department=employee.department or "",
                job=employee.job or "",
                present_days=sum(1 for row in rows if not row.is_absent),
                absence_days=sum(1 for row in rows if row.absence_penalty > 0),
                late_minutes=sum(_late_minutes(row) for row in rows),
                penalty_days=total_deductions,
                overtime_hours=sum(row.total_overtime for row in rows),
                overtime_days=sum(1 for row in rows if row.total_overtime > 0),
                total_deductions=total_deductions,
            )
        )
    return summaries
