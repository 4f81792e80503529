import enum
from datetime import date, datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

HHMM_PATTERN = r"^\d{2}:\d{2}$"
IGNORE = "IGNORE"

StampSource = Literal["biometric", "mission"]
PenaltyType = Literal["late", "early", "missingPunch", "absence"]
OvertimeType = Literal["early", "late", "overnight"]
PenaltyValue = Union[Literal["IGNORE"], float]


class ScopeType(str, enum.Enum):
    EMPLOYEE = "employee"
    DEPARTMENT = "department"
    BRANCH = "branch"
    ALL = "all"


class RuleType(str, enum.Enum):
    CUSTOM_SHIFT = "CUSTOM_SHIFT"
    ATTENDANCE_EXEMPT = "ATTENDANCE_EXEMPT"
    PENALTY_OVERRIDE = "PENALTY_OVERRIDE"
    IGNORE_BIOMETRIC = "IGNORE_BIOMETRIC"
    OVERTIME_OVERNIGHT = "OVERTIME_OVERNIGHT"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Employee(CamelModel):
    code: str = Field(min_length=1)
    name: str = ""
    department: str | None = None
    section: str | None = None
    branch: str | None = None
    job: str | None = None
    shift_start: str | None = Field(default=None, pattern=HHMM_PATTERN)
    shift_end: str | None = Field(default=None, pattern=HHMM_PATTERN)


class Punch(CamelModel):
    employee_code: str = Field(min_length=1)
    timestamp: datetime
    original_value: str | None = None


class Mission(CamelModel):
    employee_code: str = Field(min_length=1)
    day_date: date = Field(alias="date")
    start_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    end_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    description: str | None = None


class Leave(CamelModel):
    employee_code: str = Field(min_length=1)
    start_date: date
    end_date: date
    type: str
    details: str | None = None

    def covers(self, day_date: date) -> bool:
        return self.start_date <= day_date <= self.end_date


class CustomShiftParams(CamelModel):
    shift_start: str | None = Field(default=None, pattern=HHMM_PATTERN)
    shift_end: str | None = Field(default=None, pattern=HHMM_PATTERN)


class AttendanceExemptParams(CamelModel):
    count_as_present: bool = False
    exempt_penalties: bool = True


class PenaltyOverrideParams(CamelModel):
    late_penalty: PenaltyValue | None = None
    early_penalty: PenaltyValue | None = None
    absence_penalty: PenaltyValue | None = None


class IgnoreBiometricParams(CamelModel):
    ignore: bool = True


class OvertimeOvernightParams(CamelModel):
    allow_next_day_checkout: bool = False
    max_overnight_hours: float | None = Field(default=None, ge=0)


RuleParams = Union[
    CustomShiftParams,
    AttendanceExemptParams,
    PenaltyOverrideParams,
    IgnoreBiometricParams,
    OvertimeOvernightParams,
]

_PARAMS_BY_RULE_TYPE: dict[RuleType, type[CamelModel]] = {
    RuleType.CUSTOM_SHIFT: CustomShiftParams,
    RuleType.ATTENDANCE_EXEMPT: AttendanceExemptParams,
    RuleType.PENALTY_OVERRIDE: PenaltyOverrideParams,
    RuleType.IGNORE_BIOMETRIC: IgnoreBiometricParams,
    RuleType.OVERTIME_OVERNIGHT: OvertimeOvernightParams,
}


class SpecialRule(CamelModel):
    id: int | None = None
    name: str = ""
    scope_type: ScopeType = ScopeType.ALL
    scope_values: list[str] = Field(default_factory=list)
    date_from: date | None = None
    date_to: date | None = None
    days_of_week: list[int] = Field(default_factory=list)
    rule_type: RuleType | None = None
    params: RuleParams | None = None
    enabled: bool = True
    priority: int = 0
    notes: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_params(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw_rule_type = data.get("ruleType", data.get("rule_type"))
        try:
            rule_type = RuleType(raw_rule_type) if raw_rule_type is not None else None
        except ValueError:
            # Left for field validation to report.
            return data
        params_cls = _PARAMS_BY_RULE_TYPE.get(rule_type) if rule_type is not None else None
        raw_params = data.get("params")
        if params_cls is None:
            return {**data, "params": None}
        if isinstance(raw_params, params_cls):
            return data
        if isinstance(raw_params, BaseModel):
            raw_params = raw_params.model_dump(by_alias=True, exclude_none=True)
        return {**data, "params": params_cls.model_validate(raw_params or {})}


class ShiftWindow(CamelModel):
    start: str = Field(pattern=HHMM_PATTERN)
    end: str = Field(pattern=HHMM_PATTERN)


class AppliedRuleTrace(CamelModel):
    rule_id: int | None = None
    rule_name: str
    rule_type: RuleType
    priority: int


class PenaltyEntry(CamelModel):
    type: PenaltyType
    value: float
    reason: str
    minutes: int | None = None
    suppressed: bool = False


class OvertimeEntry(CamelModel):
    type: OvertimeType
    minutes: int
    reason: str


class AuditTrace(CamelModel):
    raw_punches: list[datetime] = Field(default_factory=list)
    applied_missions: list[str] = Field(default_factory=list)
    applied_leaves: list[str] = Field(default_factory=list)
    applied_rules: list[AppliedRuleTrace] = Field(default_factory=list)
    shift_used: ShiftWindow
    first_stamp_source: StampSource = "biometric"
    last_stamp_source: StampSource = "biometric"
    penalties: list[PenaltyEntry] = Field(default_factory=list)
    overtime_details: list[OvertimeEntry] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class DailyAttendance(CamelModel):
    id: int | None = None
    employee_code: str
    day_date: date = Field(alias="date")
    first_punch: str | None = None
    last_punch: str | None = None
    shift_start: str
    shift_end: str
    actual_start: str | None = None
    actual_end: str | None = None
    is_absent: bool = False
    is_mission: bool = False
    is_leave: bool = False
    is_weekend: bool = False
    suppress_penalties: bool = False
    late_penalty: float = 0.0
    early_penalty: float = 0.0
    missing_punch_penalty: float = 0.0
    absence_penalty: float = 0.0
    total_deduction: float = 0.0
    early_overtime: float = 0.0
    late_overtime: float = 0.0
    total_overtime: float = 0.0
    logs: list[str] = Field(default_factory=list)


class AttendanceSnapshot(CamelModel):
    employees: list[Employee] = Field(default_factory=list)
    punches: list[Punch] = Field(default_factory=list)
    missions: list[Mission] = Field(default_factory=list)
    leaves: list[Leave] = Field(default_factory=list)
    special_rules: list[SpecialRule] = Field(default_factory=list)


class MonthlySummary(CamelModel):
    employee_code: str
    name: str
    department: str = ""
    job: str = ""
    present_days: int = 0
    absence_days: int = 0
    late_minutes: int = 0
    penalty_days: float = 0.0
    overtime_hours: float = 0.0
    overtime_days: int = 0
    total_deductions: float = 0.0
