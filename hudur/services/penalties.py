from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from hudur.schemas import IGNORE, PenaltyEntry, ShiftWindow
from hudur.services.clock import is_friday, minutes_between
from hudur.services.rule_engine import RuleEffect

ABSENCE_PENALTY = 1.0
MISSING_STAMP_PENALTY = 0.5
EARLY_LEAVE_PENALTY = 0.5
EARLY_LEAVE_GRACE_MINUTES = 5
# (minutes late strictly above, penalty), checked top down.
LATE_PENALTY_TIERS: tuple[tuple[int, float], ...] = ((60, 1.0), (30, 0.5), (15, 0.25))

ABSENCE_REASON = "غياب بدون اذن"

_OVERRIDE_FIELDS = {
    "late": "late_penalty",
    "early": "early_penalty",
    "absence": "absence_penalty",
}


@dataclass
class PenaltyOutcome:
    check_in: str | None
    check_out: str | None
    suppressed: bool = False
    late_penalty: float = 0.0
    early_penalty: float = 0.0
    missing_punch_penalty: float = 0.0
    absence_penalty: float = 0.0
    late_minutes: int = 0
    early_minutes: int = 0
    entries: list[PenaltyEntry] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def total_deduction(self) -> float:
        return self.late_penalty + self.early_penalty + self.missing_punch_penalty + self.absence_penalty


def late_penalty_for(minutes_late: int) -> float:
    for threshold, penalty in LATE_PENALTY_TIERS:
        if minutes_late > threshold:
            return penalty
    return 0.0


def calculate_penalties(
    *,
    day_date: date,
    shift: ShiftWindow,
    check_in: str | None,
    check_out: str | None,
    effect: RuleEffect,
    on_leave: bool,
) -> PenaltyOutcome:
    outcome = PenaltyOutcome(check_in=check_in, check_out=check_out)

    exempt = effect.attendance_exempt
    if exempt is not None and exempt.count_as_present:
        outcome.check_in = outcome.check_in or shift.start
        outcome.check_out = outcome.check_out or shift.end
        outcome.notes.append("Counted as present by ATTENDANCE_EXEMPT")

    if exempt is not None and exempt.exempt_penalties:
        outcome.suppressed = True
        outcome.notes.append("Penalties suppressed: attendance exemption")
    if is_friday(day_date):
        outcome.suppressed = True
        outcome.notes.append("Penalties suppressed: Friday")
    if on_leave:
        outcome.suppressed = True
        outcome.notes.append("Penalties suppressed: on leave")

    if not outcome.suppressed:
        _apply_attendance_penalties(outcome, shift)

    if effect.penalty_override:
        _apply_penalty_override(outcome, effect.penalty_override)

    return outcome


def _apply_attendance_penalties(outcome: PenaltyOutcome, shift: ShiftWindow) -> None:
    check_in = outcome.check_in
    check_out = outcome.check_out

    if check_in is None and check_out is None:
        outcome.absence_penalty = ABSENCE_PENALTY
        outcome.entries.append(PenaltyEntry(type="absence", value=ABSENCE_PENALTY, reason=ABSENCE_REASON))
        return

    # A check-out alone carries no penalty.
    if check_in is None:
        outcome.notes.append("Check-out without check-in: no penalty assessed")
        return

    # A single punch reads as check-in == check-out.
    if check_out is None or check_out == check_in:
        outcome.missing_punch_penalty = MISSING_STAMP_PENALTY
        outcome.entries.append(
            PenaltyEntry(type="missingPunch", value=MISSING_STAMP_PENALTY, reason="Missing checkout")
        )
        return

    outcome.late_minutes = max(0, minutes_between(shift.start, check_in))
    outcome.late_penalty = late_penalty_for(outcome.late_minutes)
    if outcome.late_penalty > 0:
        outcome.entries.append(
            PenaltyEntry(
                type="late",
                value=outcome.late_penalty,
                reason=f"{outcome.late_minutes} minutes late",
                minutes=outcome.late_minutes,
            )
        )

    outcome.early_minutes = max(0, minutes_between(check_out, shift.end))
    if outcome.early_minutes > EARLY_LEAVE_GRACE_MINUTES:
        outcome.early_penalty = EARLY_LEAVE_PENALTY
        outcome.entries.append(
            PenaltyEntry(
                type="early",
                value=EARLY_LEAVE_PENALTY,
                reason=f"{outcome.early_minutes} minutes early",
                minutes=outcome.early_minutes,
            )
        )


def _apply_penalty_override(outcome: PenaltyOutcome, override: dict[str, float | str]) -> None:
    for category, attribute in _OVERRIDE_FIELDS.items():
        if category not in override:
            continue
        value = override[category]
        if value == IGNORE:
            setattr(outcome, attribute, 0.0)
            for entry in outcome.entries:
                if entry.type == category:
                    entry.suppressed = True
            outcome.notes.append(f"{category} penalty ignored by PENALTY_OVERRIDE")
        else:
            forced = float(value)
            setattr(outcome, attribute, forced)
            matched = [entry for entry in outcome.entries if entry.type == category]
            for entry in matched:
                entry.value = forced
            if not matched and forced > 0:
                outcome.entries.append(
                    PenaltyEntry(type=category, value=forced, reason="Forced by PENALTY_OVERRIDE")
                )
            outcome.notes.append(f"{category} penalty forced to {forced} by PENALTY_OVERRIDE")
