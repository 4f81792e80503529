from __future__ import annotations

import logging
from calendar import monthrange
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from hudur.errors import HudurError
from hudur.models import DailyAttendanceRecord
from hudur.schemas import DailyAttendance

logger = logging.getLogger("hudur.records")

_RECORD_COLUMNS = (
    "first_punch",
    "last_punch",
    "shift_start",
    "shift_end",
    "actual_start",
    "actual_end",
    "is_absent",
    "is_mission",
    "is_leave",
    "is_weekend",
    "suppress_penalties",
    "late_penalty",
    "early_penalty",
    "missing_punch_penalty",
    "absence_penalty",
    "total_deduction",
    "early_overtime",
    "late_overtime",
    "total_overtime",
)


def _month_bounds(month: str) -> tuple[date, date]:
    try:
        year_str, month_str = month.split("-")
        year, month_number = int(year_str), int(month_str)
        days_in_month = monthrange(year, month_number)[1]
    except ValueError as exc:
        raise HudurError("INVALID_MONTH", f"Month must be YYYY-MM, got {month!r}") from exc
    return date(year, month_number, 1), date(year, month_number, days_in_month)


def _apply_record(row: DailyAttendanceRecord, record: DailyAttendance) -> None:
    for column in _RECORD_COLUMNS:
        setattr(row, column, getattr(record, column))
    row.logs = list(record.logs)


def _to_schema(row: DailyAttendanceRecord) -> DailyAttendance:
    values = {column: getattr(row, column) for column in _RECORD_COLUMNS}
    return DailyAttendance(
        id=row.id,
        employee_code=row.employee_code,
        day_date=row.day_date,
        logs=list(row.logs or []),
        **values,
    )


def save_daily_attendance(db: Session, records: list[DailyAttendance]) -> list[DailyAttendance]:
    """Upsert records by (employee_code, date).

    Rows that already exist keep their id so outside references stay valid.
    """
    if not records:
        return []

    codes = {record.employee_code for record in records}
    dates = {record.day_date for record in records}
    existing = {
        (row.employee_code, row.day_date): row
        for row in db.scalars(
            select(DailyAttendanceRecord).where(
                DailyAttendanceRecord.employee_code.in_(codes),
                DailyAttendanceRecord.day_date.in_(dates),
            )
        ).all()
    }

    rows: list[DailyAttendanceRecord] = []
    created = 0
    for record in records:
        key = (record.employee_code, record.day_date)
        row = existing.get(key)
        if row is None:
            row = DailyAttendanceRecord(employee_code=record.employee_code, day_date=record.day_date)
            db.add(row)
            existing[key] = row
            created += 1
        _apply_record(row, record)
        rows.append(row)

    db.commit()
    for row in rows:
        db.refresh(row)

    logger.info(
        "daily_attendance_saved",
        extra={"record_count": len(records), "created_count": created, "updated_count": len(records) - created},
    )
    return [record.model_copy(update={"id": row.id}) for record, row in zip(records, rows)]


def list_daily_attendance(db: Session, *, month: str | None = None) -> list[DailyAttendance]:
    stmt = select(DailyAttendanceRecord).order_by(
        DailyAttendanceRecord.day_date.asc(),
        DailyAttendanceRecord.employee_code.asc(),
    )
    if month is not None:
        start, end = _month_bounds(month)
        stmt = stmt.where(
            DailyAttendanceRecord.day_date >= start,
            DailyAttendanceRecord.day_date <= end,
        )
    return [_to_schema(row) for row in db.scalars(stmt).all()]
