"""
Leave pattern analysis engine.

Pure computation: no I/O, no persistence. The caller fetches leave
requests, calls the analyzer once per employee and decides what to show.

Pipeline
--------
normalizer -> detectors (independent) -> aggregator -> assembler

Guarantees
----------
- the score is a deterministic function of the record set, not its order
- no patterns means a score of 0
- bad records and failing detectors degrade the result, never raise
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from typing import Any

from leave_anomaly.aggregator import RiskAggregator
from leave_anomaly.assembler import assemble_result
from leave_anomaly.config import DetectionConfig, settings
from leave_anomaly.detector_monitor import DetectorFailureError, DetectorMonitor
from leave_anomaly.detectors import Detector, default_detectors
from leave_anomaly.models import (
    DetectorDiagnostic,
    LeaveRecord,
    PatternAnalysisResult,
    PatternMatch,
)
from leave_anomaly.normalizer import LeaveRecordNormalizer
from leave_anomaly.observability import trace_span

logger = logging.getLogger(__name__)

RawLeave = Mapping[str, Any] | LeaveRecord


class LeavePatternAnalyzer:
    """
    Runs every detector over one employee's leave history.

    Instances are safe to share between threads: detectors hold only
    configuration and the monitors lock their counters.
    """

    def __init__(
        self,
        config: DetectionConfig | None = None,
        detectors: list[Detector] | None = None,
        warn_threshold: int = 5,
    ):
        """
        Initialize the analyzer.

        Args:
            config: Detector thresholds; defaults to the documented values
            detectors: Detector instances to run; defaults to the built-in four
            warn_threshold: Consecutive failures before a detector reports as failing
        """
        self.config = config or DetectionConfig()
        self.normalizer = LeaveRecordNormalizer(self.config)
        self.detectors = detectors if detectors is not None else default_detectors(self.config)
        self.aggregator = RiskAggregator()
        self.monitors = [DetectorMonitor(d.name, warn_threshold) for d in self.detectors]

    def analyze(
        self,
        employee_id: str,
        employee_name: str,
        leave_records: Iterable[RawLeave] | None,
    ) -> PatternAnalysisResult:
        """
        Analyze one employee's leave history.

        Args:
            employee_id: Employee the records belong to
            employee_name: Display name, passed through untouched
            leave_records: Raw leave requests or LeaveRecord instances

        Returns:
            PatternAnalysisResult with score, ordered patterns and diagnostics
        """
        with trace_span("analyze_leave_patterns", employee=employee_id) as span:
            report = self.normalizer.normalize(employee_id, leave_records or [])
            span["records"] = len(report.records)

            matches: list[PatternMatch] = []
            skipped: dict[str, int] = {}
            errors: list[DetectorDiagnostic] = []
            own_ids = frozenset(r.record_id for r in report.records)

            for detector, monitor in zip(self.detectors, self.monitors):
                try:
                    found, missing = monitor.call(
                        self._run_detector, detector, report.records, own_ids
                    )
                except DetectorFailureError as e:
                    errors.append(DetectorDiagnostic(detector=e.detector, error=str(e.cause)))
                    continue
                matches.extend(found)
                if missing:
                    skipped[detector.name] = missing

            risk = self.aggregator.aggregate(matches)
            span["score"] = risk.overall_risk_score

            return assemble_result(
                employee_id=employee_id,
                employee_name=employee_name,
                risk=risk,
                report=report,
                skipped=skipped,
                detector_errors=errors,
            )

    @staticmethod
    def _run_detector(
        detector: Detector, records: list[LeaveRecord], own_ids: frozenset[str]
    ) -> tuple[list[PatternMatch], int]:
        """Run one detector and check its matches against the employee's records."""
        found = list(detector.detect(list(records)))
        for match in found:
            if match.type != detector.pattern_type:
                raise ValueError(f"emitted {match.type.value} match")
            if not 0 <= match.severity_weight <= 100:
                raise ValueError(f"severity {match.severity_weight} outside 0-100")
            foreign = set(match.occurrences) - own_ids
            if foreign:
                raise ValueError(f"referenced unknown records {sorted(foreign)}")
        return found, detector.skipped(records)

    def get_detector_states(self) -> list[dict]:
        """Health of each detector, for monitoring."""
        return [monitor.get_state() for monitor in self.monitors]


_analyzer: LeavePatternAnalyzer | None = None
_analyzer_lock = threading.Lock()


def get_analyzer() -> LeavePatternAnalyzer:
    """Get or create the shared analyzer built from settings."""
    global _analyzer
    with _analyzer_lock:
        if _analyzer is None:
            _analyzer = LeavePatternAnalyzer(
                config=settings.detection_config(),
                warn_threshold=settings.detector_warn_threshold,
            )
            logger.info("Leave pattern analyzer initialized")
        return _analyzer


def analyze_leave_patterns(
    employee_id: str,
    employee_name: str,
    leave_records: Iterable[RawLeave] | None,
    config: DetectionConfig | None = None,
) -> PatternAnalysisResult:
    """
    Analyze one employee's leave history.

    Uses the shared settings-based analyzer unless an explicit config is given.

    Example:
        >>> result = analyze_leave_patterns("E001", "John Doe", leaves)
        >>> result.overall_risk_score
        88
    """
    analyzer = LeavePatternAnalyzer(config) if config is not None else get_analyzer()
    return analyzer.analyze(employee_id, employee_name, leave_records)
