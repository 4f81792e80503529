from __future__ import annotations

from dataclasses import dataclass, field

from hudur.schemas import Mission, Punch, StampSource
from hudur.services.clock import format_hhmm, parse_hhmm


@dataclass
class ResolvedStamps:
    check_in: str | None
    check_out: str | None
    first_source: StampSource = "biometric"
    last_source: StampSource = "biometric"
    # Raw punches of the day in chronological order, even when ignored.
    punches: list[Punch] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


def sort_punches(punches: list[Punch]) -> list[Punch]:
    return sorted(punches, key=lambda punch: punch.timestamp)


def resolve_stamps(
    punches: list[Punch],
    missions: list[Mission],
    *,
    ignore_biometric: bool,
) -> ResolvedStamps:
    notes: list[str] = []
    raw_punches = sort_punches(punches)
    used_punches = raw_punches
    if ignore_biometric:
        used_punches = []
        notes.append("Biometric ignored by rule")

    check_in = format_hhmm(used_punches[0].timestamp) if used_punches else None
    check_out = format_hhmm(used_punches[-1].timestamp) if used_punches else None
    resolved = ResolvedStamps(check_in=check_in, check_out=check_out, punches=raw_punches, notes=notes)

    if not missions:
        return resolved

    # Only the first mission of the day widens the window.
    mission = missions[0]
    if mission.start_time and (
        resolved.check_in is None or parse_hhmm(mission.start_time) < parse_hhmm(resolved.check_in)
    ):
        resolved.check_in = mission.start_time
        resolved.first_source = "mission"
    if mission.end_time and (
        resolved.check_out is None or parse_hhmm(mission.end_time) > parse_hhmm(resolved.check_out)
    ):
        resolved.check_out = mission.end_time
        resolved.last_source = "mission"
    return resolved
