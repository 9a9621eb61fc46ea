"""Packs aggregated risk into the per-employee result contract."""

from __future__ import annotations

from leave_anomaly.aggregator import AggregatedRisk
from leave_anomaly.models import DetectorDiagnostic, NormalizationReport, PatternAnalysisResult


def assemble_result(
    employee_id: str,
    employee_name: str,
    risk: AggregatedRisk,
    report: NormalizationReport,
    skipped: dict[str, int] | None = None,
    detector_errors: list[DetectorDiagnostic] | None = None,
) -> PatternAnalysisResult:
    """Attach the caller-supplied identity and diagnostics to the aggregate."""
    return PatternAnalysisResult(
        employee_id=employee_id,
        employee_name=employee_name,
        overall_risk_score=risk.overall_risk_score,
        patterns=list(risk.patterns),
        records_analyzed=len(report.records),
        records_discarded=report.discarded,
        records_excluded=report.excluded,
        skipped=dict(skipped or {}),
        detector_errors=list(detector_errors or []),
    )
