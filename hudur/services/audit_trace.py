from __future__ import annotations

import logging

from pydantic import ValidationError

from hudur.schemas import AuditTrace, Leave, Mission, ShiftWindow
from hudur.services.overtime import OvertimeOutcome
from hudur.services.penalties import PenaltyOutcome
from hudur.services.rule_engine import AppliedRule, build_audit_rules
from hudur.services.stamps import ResolvedStamps

AUDIT_LOG_PREFIX = "Audit: "

logger = logging.getLogger("hudur.audit")


def describe_mission(mission: Mission) -> str:
    return f"{mission.start_time or ''}-{mission.end_time or ''}: {mission.description or ''}"


def describe_leave(leave: Leave) -> str:
    return f"{leave.type}: {leave.start_date.isoformat()} - {leave.end_date.isoformat()}"


def build_audit_trace(
    *,
    stamps: ResolvedStamps,
    missions: list[Mission],
    leaves: list[Leave],
    applied_rules: list[AppliedRule],
    shift: ShiftWindow,
    penalties: PenaltyOutcome,
    overtime: OvertimeOutcome,
) -> AuditTrace:
    return AuditTrace(
        raw_punches=[punch.timestamp for punch in stamps.punches],
        applied_missions=[describe_mission(mission) for mission in missions],
        applied_leaves=[describe_leave(leave) for leave in leaves],
        applied_rules=build_audit_rules(applied_rules),
        shift_used=shift,
        first_stamp_source=stamps.first_source,
        last_stamp_source=stamps.last_source,
        penalties=list(penalties.entries),
        overtime_details=list(overtime.details),
        notes=[*stamps.notes, *penalties.notes],
    )


def encode_audit_trace(trace: AuditTrace) -> str:
    return AUDIT_LOG_PREFIX + trace.model_dump_json(by_alias=True)


def decode_audit_trace(log_line: str) -> AuditTrace | None:
    if not log_line.startswith(AUDIT_LOG_PREFIX):
        return None
    try:
        return AuditTrace.model_validate_json(log_line[len(AUDIT_LOG_PREFIX):])
    except ValidationError:
        logger.warning("audit_trace_decode_failed", extra={"log_line": log_line[:200]})
        return None


def find_audit_trace(logs: list[str]) -> AuditTrace | None:
    for line in logs:
        trace = decode_audit_trace(line)
        if trace is not None:
            return trace
    return None
