from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from hudur.schemas import OvertimeEntry, ShiftWindow
from hudur.services.clock import MINUTES_PER_DAY, format_hhmm, minutes_between, parse_hhmm
from hudur.services.rule_engine import RuleEffect


@dataclass
class OvertimeOutcome:
    early_minutes: int = 0
    late_minutes: int = 0
    details: list[OvertimeEntry] = field(default_factory=list)

    @property
    def early_overtime(self) -> float:
        return self.early_minutes / 60

    @property
    def late_overtime(self) -> float:
        return self.late_minutes / 60

    @property
    def total_overtime(self) -> float:
        return self.early_overtime + self.late_overtime


def overnight_minutes(shift_end: str, next_day_punch: datetime) -> int:
    """Minutes from ``shift_end`` to a punch on the following calendar day."""
    return MINUTES_PER_DAY + parse_hhmm(format_hhmm(next_day_punch)) - parse_hhmm(shift_end)


def calculate_overtime(
    *,
    shift: ShiftWindow,
    check_in: str | None,
    check_out: str | None,
    suppressed: bool,
    effect: RuleEffect,
    next_day_first_punch: datetime | None,
) -> OvertimeOutcome:
    outcome = OvertimeOutcome()
    if check_in is None or check_out is None or check_in == check_out or suppressed:
        return outcome

    outcome.early_minutes = max(0, minutes_between(check_in, shift.start))
    if outcome.early_minutes > 0:
        outcome.details.append(
            OvertimeEntry(type="early", minutes=outcome.early_minutes, reason="Before shift start")
        )

    outcome.late_minutes = max(0, minutes_between(shift.end, check_out))

    overnight = effect.overnight_overtime
    if overnight is not None and overnight.allow_next_day_checkout and next_day_first_punch is not None:
        elapsed = overnight_minutes(shift.end, next_day_first_punch)
        if 0 < elapsed <= overnight.max_overnight_hours * 60:
            outcome.late_minutes = elapsed
            outcome.details.append(
                OvertimeEntry(
                    type="overnight",
                    minutes=elapsed,
                    reason=f"Linked to next day punch at {format_hhmm(next_day_first_punch)}",
                )
            )
            return outcome

    if outcome.late_minutes > 0:
        outcome.details.append(OvertimeEntry(type="late", minutes=outcome.late_minutes, reason="After shift end"))
    return outcome
