"""
Pattern detectors.

Each detector scans one employee's normalized leave records for a single
behavioural signature and returns zero or more ``PatternMatch`` values.
Detectors share no state and never mutate their input, so they can run in
any order. Adding a signature means adding a ``Detector`` subclass and
listing it in ``default_detectors``; the aggregator needs no change.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter, defaultdict

from leave_anomaly.config import (
    FREQUENCY_ESCALATION_WEIGHT,
    MAX_SEVERITY,
    SHORT_NOTICE_WEIGHT,
    WEEKDAY_RECURRENCE_WEIGHT,
    WEEKEND_ADJACENCY_WEIGHT,
    DetectionConfig,
)
from leave_anomaly.models import WEEKDAY_NAMES, LeaveRecord, LeaveStatus, PatternMatch, PatternType


def capped_weight(count: int, per_occurrence: int) -> int:
    """Linear severity in the occurrence count, capped at 100."""
    return min(MAX_SEVERITY, count * per_occurrence)


def _ids(records: list[LeaveRecord]) -> tuple[str, ...]:
    """Chronological record ids, each id once."""
    seen: dict[str, None] = {}
    for record in sorted(records, key=LeaveRecord.sort_key):
        seen.setdefault(record.record_id, None)
    return tuple(seen)


class Detector(ABC):
    """A single behavioural heuristic over one employee's leave records."""

    pattern_type: PatternType

    def __init__(self, config: DetectionConfig | None = None):
        self.config = config or DetectionConfig()

    @property
    def name(self) -> str:
        return self.pattern_type.value

    @abstractmethod
    def detect(self, records: list[LeaveRecord]) -> list[PatternMatch]:
        """Return the matches found in ``records`` (possibly empty)."""

    def skipped(self, records: list[LeaveRecord]) -> int:
        """Number of records this detector cannot evaluate."""
        return 0


class WeekdayRecurrenceDetector(Detector):
    """Habitual single-day absence on the same weekday (e.g. Monday sick leave)."""

    pattern_type = PatternType.RECURRING_WEEKDAY

    def detect(self, records: list[LeaveRecord]) -> list[PatternMatch]:
        single_day = [r for r in records if r.is_single_day]
        total = len(single_day)
        if total < self.config.min_single_day_occurrences:
            return []

        buckets: dict[int, list[LeaveRecord]] = defaultdict(list)
        for record in single_day:
            buckets[record.weekday].append(record)

        top = max(len(b) for b in buckets.values())
        matches = []
        for weekday in sorted(buckets):
            bucket = buckets[weekday]
            k = len(bucket)
            if k != top:
                continue
            ratio = k / total
            if k < self.config.min_single_day_occurrences:
                continue
            if ratio < self.config.weekday_dominance_ratio:
                continue
            matches.append(
                PatternMatch(
                    type=self.pattern_type,
                    occurrences=_ids(bucket),
                    severity_weight=capped_weight(k, WEEKDAY_RECURRENCE_WEIGHT),
                    weekday=weekday,
                    details={
                        "weekday": WEEKDAY_NAMES[weekday],
                        "count": k,
                        "singleDayLeaves": total,
                        "ratio": round(ratio, 4),
                    },
                )
            )
        return matches


class WeekendAdjacencyDetector(Detector):
    """Single-day leave right before or after the weekend."""

    pattern_type = PatternType.WEEKEND_ADJACENT

    def detect(self, records: list[LeaveRecord]) -> list[PatternMatch]:
        adjacent_days = self.config.adjacent_weekdays()
        adjacent = [r for r in records if r.is_single_day and r.weekday in adjacent_days]
        count = len(adjacent)
        if count < self.config.weekend_adjacency_min_count:
            return []

        by_day = Counter(WEEKDAY_NAMES[r.weekday] for r in adjacent)
        return [
            PatternMatch(
                type=self.pattern_type,
                occurrences=_ids(adjacent),
                severity_weight=capped_weight(count, WEEKEND_ADJACENCY_WEIGHT),
                details={"count": count, "byWeekday": dict(sorted(by_day.items()))},
            )
        ]


class ShortNoticeBurstDetector(Detector):
    """Repeated requests filed on, or the day before, the first day of leave."""

    pattern_type = PatternType.SHORT_NOTICE_BURST

    def _evaluable(self, records: list[LeaveRecord]) -> list[LeaveRecord]:
        # Missing appliedOn or a retroactive filing says nothing about notice
        return [r for r in records if r.applied_on is not None and r.applied_on <= r.start]

    def skipped(self, records: list[LeaveRecord]) -> int:
        return len(records) - len(self._evaluable(records))

    def detect(self, records: list[LeaveRecord]) -> list[PatternMatch]:
        evaluable = self._evaluable(records)
        short = [
            r
            for r in evaluable
            if (r.start - r.applied_on).days <= self.config.short_notice_lead_days
        ]
        count = len(short)
        if count < self.config.short_notice_min_count:
            return []

        return [
            PatternMatch(
                type=self.pattern_type,
                occurrences=_ids(short),
                severity_weight=capped_weight(count, SHORT_NOTICE_WEIGHT),
                details={
                    "count": count,
                    "evaluated": len(evaluable),
                    "leadDays": self.config.short_notice_lead_days,
                },
            )
        ]


class FrequencyEscalationDetector(Detector):
    """Leave frequency in the latest third of the window vs the earliest third."""

    pattern_type = PatternType.FREQUENCY_ESCALATION

    counted_statuses = (LeaveStatus.APPROVED, LeaveStatus.PENDING)

    def detect(self, records: list[LeaveRecord]) -> list[PatternMatch]:
        counted = [r for r in records if r.status in self.counted_statuses]
        if not counted:
            return []

        def month_index(record: LeaveRecord) -> int:
            return record.start.year * 12 + record.start.month - 1

        first = min(month_index(r) for r in counted)
        last = max(month_index(r) for r in counted)
        months = last - first + 1
        third = months // 3
        if third == 0:
            return []

        early = [r for r in counted if month_index(r) < first + third]
        recent = [r for r in counted if month_index(r) > last - third]
        if len(early) < 1:
            return []
        if len(recent) < self.config.escalation_multiplier * len(early):
            return []

        return [
            PatternMatch(
                type=self.pattern_type,
                occurrences=_ids(recent),
                severity_weight=capped_weight(len(recent), FREQUENCY_ESCALATION_WEIGHT),
                details={
                    "windowMonths": months,
                    "bucketMonths": third,
                    "earlyCount": len(early),
                    "recentCount": len(recent),
                },
            )
        ]


def default_detectors(config: DetectionConfig | None = None) -> list[Detector]:
    """The built-in detectors, in declaration order."""
    config = config or DetectionConfig()
    return [
        WeekdayRecurrenceDetector(config),
        WeekendAdjacencyDetector(config),
        ShortNoticeBurstDetector(config),
        FrequencyEscalationDetector(config),
    ]
