from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from hudur.schemas import (
    AppliedRuleTrace,
    AttendanceExemptParams,
    CustomShiftParams,
    Employee,
    IgnoreBiometricParams,
    OvertimeOvernightParams,
    PenaltyOverrideParams,
    PenaltyValue,
    RuleType,
    ScopeType,
    ShiftWindow,
    SpecialRule,
)
from hudur.services.clock import day_of_week

DEFAULT_RULE_SHIFT_START = "08:00"
DEFAULT_RULE_SHIFT_END = "16:00"
DEFAULT_MAX_OVERNIGHT_HOURS = 24.0


@dataclass(frozen=True)
class RuleContext:
    employee: Employee
    day_date: date
    day_of_week: int

    @classmethod
    def for_day(cls, employee: Employee, day_date: date) -> RuleContext:
        return cls(employee=employee, day_date=day_date, day_of_week=day_of_week(day_date))


@dataclass(frozen=True)
class AttendanceExemptEffect:
    count_as_present: bool
    exempt_penalties: bool


@dataclass(frozen=True)
class OvernightOvertimeEffect:
    allow_next_day_checkout: bool
    max_overnight_hours: float


@dataclass(frozen=True)
class RuleEffect:
    custom_shift: ShiftWindow | None = None
    attendance_exempt: AttendanceExemptEffect | None = None
    # Keyed by penalty category: "late", "early", "absence".
    penalty_override: dict[str, PenaltyValue] | None = None
    ignore_biometric: bool = False
    overnight_overtime: OvernightOvertimeEffect | None = None


@dataclass(frozen=True)
class AppliedRule:
    rule: SpecialRule
    effect: RuleEffect


def matches_scope(rule: SpecialRule, employee: Employee) -> bool:
    scope_values = rule.scope_values or []
    if rule.scope_type == ScopeType.ALL:
        return True
    if rule.scope_type == ScopeType.EMPLOYEE:
        return employee.code in scope_values
    if rule.scope_type == ScopeType.DEPARTMENT:
        return bool(employee.department) and employee.department in scope_values
    if rule.scope_type == ScopeType.BRANCH:
        return bool(employee.branch) and employee.branch in scope_values
    return False


def matches_date_range(rule: SpecialRule, day_date: date) -> bool:
    if rule.date_from is None or rule.date_to is None:
        return False
    return rule.date_from <= day_date <= rule.date_to


def matches_day_of_week(rule: SpecialRule, weekday: int) -> bool:
    if not rule.days_of_week:
        return True
    return weekday in rule.days_of_week


def parse_effect(rule: SpecialRule) -> RuleEffect:
    params = rule.params

    if rule.rule_type == RuleType.CUSTOM_SHIFT:
        shift_params = params if isinstance(params, CustomShiftParams) else CustomShiftParams()
        return RuleEffect(
            custom_shift=ShiftWindow(
                start=shift_params.shift_start or DEFAULT_RULE_SHIFT_START,
                end=shift_params.shift_end or DEFAULT_RULE_SHIFT_END,
            )
        )

    if rule.rule_type == RuleType.ATTENDANCE_EXEMPT:
        exempt_params = params if isinstance(params, AttendanceExemptParams) else AttendanceExemptParams()
        return RuleEffect(
            attendance_exempt=AttendanceExemptEffect(
                count_as_present=exempt_params.count_as_present,
                exempt_penalties=exempt_params.exempt_penalties,
            )
        )

    if rule.rule_type == RuleType.PENALTY_OVERRIDE:
        override_params = params if isinstance(params, PenaltyOverrideParams) else PenaltyOverrideParams()
        override = {
            category: value
            for category, value in (
                ("late", override_params.late_penalty),
                ("early", override_params.early_penalty),
                ("absence", override_params.absence_penalty),
            )
            if value is not None
        }
        return RuleEffect(penalty_override=override)

    if rule.rule_type == RuleType.IGNORE_BIOMETRIC:
        ignore_params = params if isinstance(params, IgnoreBiometricParams) else IgnoreBiometricParams()
        return RuleEffect(ignore_biometric=ignore_params.ignore)

    if rule.rule_type == RuleType.OVERTIME_OVERNIGHT:
        overnight_params = params if isinstance(params, OvertimeOvernightParams) else OvertimeOvernightParams()
        return RuleEffect(
            overnight_overtime=OvernightOvertimeEffect(
                allow_next_day_checkout=overnight_params.allow_next_day_checkout,
                max_overnight_hours=overnight_params.max_overnight_hours or DEFAULT_MAX_OVERNIGHT_HOURS,
            )
        )

    return RuleEffect()


def get_applicable_rules(rules: list[SpecialRule], ctx: RuleContext) -> list[AppliedRule]:
    """Rules matching ``ctx``, highest priority first.

    Ties keep their input order. Rules failing any predicate are skipped
    silently, including rules without a type or date range.
    """
    applicable: list[AppliedRule] = []
    for rule in rules:
        if not rule.enabled or rule.rule_type is None:
            continue
        if not matches_scope(rule, ctx.employee):
            continue
        if not matches_date_range(rule, ctx.day_date):
            continue
        if not matches_day_of_week(rule, ctx.day_of_week):
            continue
        applicable.append(AppliedRule(rule=rule, effect=parse_effect(rule)))

    applicable.sort(key=lambda item: item.rule.priority or 0, reverse=True)
    return applicable


def merge_effects(applied_rules: list[AppliedRule]) -> RuleEffect:
    """Fold matched effects into one.

    Single-value slots keep the first (highest priority) value. Penalty
    overrides are merged per category in iteration order, so a later,
    lower-priority rule overwrites an earlier one for the same category.
    """
    custom_shift: ShiftWindow | None = None
    attendance_exempt: AttendanceExemptEffect | None = None
    penalty_override: dict[str, PenaltyValue] | None = None
    ignore_biometric = False
    overnight_overtime: OvernightOvertimeEffect | None = None

    for applied in applied_rules:
        effect = applied.effect
        if effect.custom_shift is not None and custom_shift is None:
            custom_shift = effect.custom_shift
        if effect.attendance_exempt is not None and attendance_exempt is None:
            attendance_exempt = effect.attendance_exempt
        if effect.penalty_override is not None:
            penalty_override = {**(penalty_override or {}), **effect.penalty_override}
        if effect.ignore_biometric:
            ignore_biometric = True
        if effect.overnight_overtime is not None and overnight_overtime is None:
            overnight_overtime = effect.overnight_overtime

    return RuleEffect(
        custom_shift=custom_shift,
        attendance_exempt=attendance_exempt,
        penalty_override=penalty_override,
        ignore_biometric=ignore_biometric,
        overnight_overtime=overnight_overtime,
    )


def build_audit_rules(applied_rules: list[AppliedRule]) -> list[AppliedRuleTrace]:
    return [
        AppliedRuleTrace(
            rule_id=applied.rule.id,
            rule_name=applied.rule.name,
            rule_type=applied.rule.rule_type,
            priority=applied.rule.priority or 0,
        )
        for applied in applied_rules
    ]
