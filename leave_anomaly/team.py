"""
Team analysis: the dashboard flow.

The department dashboard fetches a flat list of its team's leave requests,
groups them by employee, analyzes each employee on their own and shows
those above a risk threshold. The threshold is the caller's policy; pass
``min_risk_score=None`` to get every employee back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from leave_anomaly.engine import LeavePatternAnalyzer, RawLeave, get_analyzer
from leave_anomaly.models import LeaveRecord, PatternAnalysisResult
from leave_anomaly.observability import trace_span

logger = logging.getLogger(__name__)

UNKNOWN_EMPLOYEE_NAME = "Unknown"


@dataclass
class EmployeeLeaves:
    """One employee's share of a team request list."""

    employee_id: str
    employee_name: str = UNKNOWN_EMPLOYEE_NAME
    leaves: list[RawLeave] = field(default_factory=list)


@dataclass
class TeamAnalysis:
    """Results for a team, ordered by employee id."""

    results: list[PatternAnalysisResult] = field(default_factory=list)
    employees_analyzed: int = 0
    unattributed_records: int = 0
    min_risk_score: int | None = None

    @property
    def flagged(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "results": [r.to_dict() for r in self.results],
            "employeesAnalyzed": self.employees_analyzed,
            "flagged": self.flagged,
            "unattributedRecords": self.unattributed_records,
            "minRiskScore": self.min_risk_score,
        }


def _employee_of(request: RawLeave) -> tuple[str | None, str | None]:
    if isinstance(request, LeaveRecord):
        return request.employee_id, None
    if not isinstance(request, Mapping):
        return None, None
    employee_id = request.get("employeeId", request.get("employee_id"))
    name = request.get("employeeName", request.get("employee_name"))
    return (
        str(employee_id) if employee_id not in (None, "") else None,
        str(name) if name not in (None, "") else None,
    )


def group_by_employee(requests: Iterable[RawLeave]) -> tuple[list[EmployeeLeaves], int]:
    """
    Group a flat request list by employee.

    Returns:
        (groups sorted by employee id, number of requests without an employee id)
    """
    groups: dict[str, EmployeeLeaves] = {}
    unattributed = 0
    names: dict[str, set[str]] = {}

    for request in requests or []:
        employee_id, name = _employee_of(request)
        if employee_id is None:
            unattributed += 1
            continue
        group = groups.setdefault(employee_id, EmployeeLeaves(employee_id=employee_id))
        group.leaves.append(request)
        if name:
            names.setdefault(employee_id, set()).add(name)

    for employee_id, candidates in names.items():
        # Smallest name so grouping does not depend on request order
        groups[employee_id].employee_name = min(candidates)

    if unattributed:
        logger.warning(f"Skipping {unattributed} leave requests without an employee id")
    return [groups[k] for k in sorted(groups)], unattributed


def analyze_team(
    requests: Iterable[RawLeave],
    min_risk_score: int | None = None,
    max_workers: int = 1,
    analyzer: LeavePatternAnalyzer | None = None,
) -> TeamAnalysis:
    """
    Analyze every employee in a flat list of leave requests.

    Args:
        requests: Leave requests for any number of employees
        min_risk_score: Keep only employees scoring strictly above this
        max_workers: Employees analyzed in parallel (1 = sequential)
        analyzer: Analyzer to use; defaults to the shared settings-based one

    Returns:
        TeamAnalysis with results ordered by employee id
    """
    analyzer = analyzer or get_analyzer()
    groups, unattributed = group_by_employee(requests)

    with trace_span("analyze_team", employees=len(groups), workers=max_workers) as span:

        def run(group: EmployeeLeaves) -> PatternAnalysisResult:
            return analyzer.analyze(group.employee_id, group.employee_name, group.leaves)

        if max_workers > 1 and len(groups) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                results = list(pool.map(run, groups))
        else:
            results = [run(group) for group in groups]

        if min_risk_score is not None:
            results = [r for r in results if r.overall_risk_score > min_risk_score]
        span["flagged"] = len(results)

    return TeamAnalysis(
        results=results,
        employees_analyzed=len(groups),
        unattributed_records=unattributed,
        min_risk_score=min_risk_score,
    )
