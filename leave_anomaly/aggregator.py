"""
Risk aggregation.

Combines detector matches into one bounded score. The score is the mean
weight per contributing detector, so several weak signals average out
instead of stacking up, while one strong signal keeps its full weight.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from leave_anomaly.config import MAX_SEVERITY
from leave_anomaly.models import PatternMatch


@dataclass(frozen=True)
class AggregatedRisk:
    """Aggregator output: the score and the ordered findings."""

    overall_risk_score: int
    patterns: list[PatternMatch]


class RiskAggregator:
    """Turns a flat list of pattern matches into a score and a priority order."""

    def aggregate(self, matches: Iterable[PatternMatch]) -> AggregatedRisk:
        """
        Aggregate matches from any number of detectors.

        overall = min(100, floor(sum(weights) / contributing detectors)),
        where a detector contributes when it produced at least one match.
        Matches are ordered by weight descending, then by pattern type
        declaration order. Input order never matters.
        """
        patterns = sorted(matches, key=PatternMatch.sort_key)
        if not patterns:
            return AggregatedRisk(overall_risk_score=0, patterns=[])

        contributing = len({p.type for p in patterns})
        total = sum(p.severity_weight for p in patterns)
        score = max(0, min(MAX_SEVERITY, total // contributing))
        return AggregatedRisk(overall_risk_score=score, patterns=patterns)
