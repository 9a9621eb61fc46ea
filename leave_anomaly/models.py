"""
Core data types for leave pattern analysis.

Raw leave requests arrive as loosely-typed dicts. The normalizer turns them
into ``LeaveRecord`` instances with closed enums for status, so detectors
never compare free strings. Detectors emit ``PatternMatch`` values and the
assembler packs them into a ``PatternAnalysisResult`` per employee.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class LeaveStatus(str, Enum):
    """Workflow status of a leave request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED_FOR_CORRECTION = "returned_for_correction"

    @classmethod
    def parse(cls, value: Any) -> LeaveStatus:
        """Parse a status case-insensitively ("APPROVED" == "approved")."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown leave status: {value!r}")
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown leave status: {value!r}") from None


class PatternType(str, Enum):
    """Behavioural signatures. Declaration order breaks severity ties."""

    RECURRING_WEEKDAY = "RECURRING_WEEKDAY"
    WEEKEND_ADJACENT = "WEEKEND_ADJACENT"
    SHORT_NOTICE_BURST = "SHORT_NOTICE_BURST"
    FREQUENCY_ESCALATION = "FREQUENCY_ESCALATION"

    @property
    def rank(self) -> int:
        return list(PatternType).index(self)


WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class LeaveRecord:
    """A validated leave request, reduced to the fields analysis depends on.

    ``start``/``end`` are calendar dates in the analysis timezone.
    ``duration_days`` is taken as given and is not reconciled with the range.
    """

    record_id: str
    employee_id: str
    start: date
    end: date
    duration_days: int
    status: LeaveStatus
    leave_type_id: str | None = None
    applied_on: date | None = None

    @property
    def weekday(self) -> int:
        return self.start.weekday()

    @property
    def is_single_day(self) -> bool:
        return self.duration_days == 1

    def sort_key(self) -> tuple[date, str]:
        return (self.start, self.record_id)


@dataclass(frozen=True)
class PatternMatch:
    """One detector's finding: the signature, its evidence and its weight."""

    type: PatternType
    occurrences: tuple[str, ...]
    severity_weight: int
    weekday: int | None = None
    details: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def sort_key(self) -> tuple:
        """Highest weight first, then declaration order, then weekday and evidence."""
        return (
            -self.severity_weight,
            self.type.rank,
            -1 if self.weekday is None else self.weekday,
            self.occurrences,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase shape the dashboard renders."""
        data: dict[str, Any] = {
            "type": self.type.value,
            "occurrences": list(self.occurrences),
            "severityWeight": self.severity_weight,
        }
        if self.weekday is not None:
            data["weekday"] = WEEKDAY_NAMES[self.weekday]
        if self.details:
            data["details"] = dict(self.details)
        return data


@dataclass(frozen=True)
class DetectorDiagnostic:
    """A detector that failed and was treated as producing no matches."""

    detector: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"detector": self.detector, "error": self.error}


@dataclass
class NormalizationReport:
    """Outcome of normalizing one employee's raw leave requests."""

    records: list[LeaveRecord] = field(default_factory=list)
    discarded: int = 0
    excluded: int = 0
    issues: list[str] = field(default_factory=list)


@dataclass
class PatternAnalysisResult:
    """Risk assessment for one employee."""

    employee_id: str
    employee_name: str
    overall_risk_score: int = 0
    patterns: list[PatternMatch] = field(default_factory=list)

    # Diagnostics (never affect the score)
    records_analyzed: int = 0
    records_discarded: int = 0
    records_excluded: int = 0
    skipped: dict[str, int] = field(default_factory=dict)
    detector_errors: list[DetectorDiagnostic] = field(default_factory=list)

    @property
    def pattern_types(self) -> list[PatternType]:
        return [p.type for p in self.patterns]

    def find(self, pattern_type: PatternType) -> list[PatternMatch]:
        """Return matches of one type, in result order."""
        return [p for p in self.patterns if p.type == pattern_type]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "overallRiskScore": self.overall_risk_score,
            "patterns": [p.to_dict() for p in self.patterns],
            "diagnostics": {
                "recordsAnalyzed": self.records_analyzed,
                "recordsDiscarded": self.records_discarded,
                "recordsExcluded": self.records_excluded,
                "skipped": dict(self.skipped),
                "detectorErrors": [d.to_dict() for d in self.detector_errors],
            },
        }
