from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Float, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from hudur.db import Base


class DailyAttendanceRecord(Base):
    __tablename__ = "daily_attendance"
    __table_args__ = (
        UniqueConstraint("employee_code", "date", name="uq_daily_attendance_employee_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    day_date: Mapped[date] = mapped_column("date", Date, nullable=False, index=True)
    first_punch: Mapped[str | None] = mapped_column(String(5), nullable=True)
    last_punch: Mapped[str | None] = mapped_column(String(5), nullable=True)
    shift_start: Mapped[str] = mapped_column(String(5), nullable=False)
    shift_end: Mapped[str] = mapped_column(String(5), nullable=False)
    actual_start: Mapped[str | None] = mapped_column(String(5), nullable=True)
    actual_end: Mapped[str | None] = mapped_column(String(5), nullable=True)
    is_absent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_mission: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_leave: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_weekend: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    suppress_penalties: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    late_penalty: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    early_penalty: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    missing_punch_penalty: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    absence_penalty: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_deduction: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    early_overtime: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    late_overtime: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_overtime: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    logs: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
    )
