from __future__ import annotations

from datetime import date

from hudur.schemas import Employee, ShiftWindow
from hudur.services.clock import is_saturday
from hudur.services.rule_engine import RuleEffect

DEFAULT_SHIFT_START = "08:00"
DEFAULT_SHIFT_END = "16:00"
SATURDAY_SHIFT_END = "14:00"
SATURDAY_AUXILIARY_SHIFT_END = "15:00"
AUXILIARY_SERVICES_JOB = "خدمات معاونة"


def default_shift(employee: Employee) -> ShiftWindow:
    return ShiftWindow(
        start=employee.shift_start or DEFAULT_SHIFT_START,
        end=employee.shift_end or DEFAULT_SHIFT_END,
    )


def resolve_shift(employee: Employee, day_date: date, effect: RuleEffect) -> ShiftWindow:
    if effect.custom_shift is not None:
        return effect.custom_shift

    shift = default_shift(employee)
    # Saturday shortening only adjusts the standard 08:00 baseline.
    if is_saturday(day_date) and shift.start == DEFAULT_SHIFT_START:
        is_auxiliary = AUXILIARY_SERVICES_JOB in (employee.job or "")
        return ShiftWindow(
            start=shift.start,
            end=SATURDAY_AUXILIARY_SHIFT_END if is_auxiliary else SATURDAY_SHIFT_END,
        )
    return shift
