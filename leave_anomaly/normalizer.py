"""
Leave record normalizer.

Validates raw leave requests (as fetched by the leave service) and turns
them into canonical ``LeaveRecord`` instances. Bad input never raises:
malformed records are counted and skipped, rejected ones are excluded.

Accepted raw shapes
-------------------
Both the engine field names and the dashboard wire shape are accepted::

    {"_id": "...", "employeeId": "E001", "leaveTypeId": "SL",
     "dates": {"from": "2025-01-06", "to": "2025-01-06"},
     "durationDays": 1, "status": "APPROVED", "appliedOn": "2025-01-06T08:12:00Z"}

``dateRange`` may replace ``dates``. Timestamps are truncated to calendar
dates in the configured timezone so weekday computations are stable.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, tzinfo
from typing import Any

from dateutil import parser
from dateutil.parser import ParserError
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from leave_anomaly.config import DetectionConfig
from leave_anomaly.models import LeaveRecord, LeaveStatus, NormalizationReport

logger = logging.getLogger(__name__)


class RawDateRange(BaseModel):
    """Inclusive ``{from, to}`` range as sent by callers."""

    model_config = ConfigDict(extra="ignore")

    start: Any = Field(default=None, validation_alias=AliasChoices("from", "start", "from_"))
    end: Any = Field(default=None, validation_alias=AliasChoices("to", "end"))


class RawLeaveRecord(BaseModel):
    """Loose input model. Free text (reason, justification) is ignored."""

    model_config = ConfigDict(extra="ignore")

    record_id: str | None = Field(
        default=None, validation_alias=AliasChoices("_id", "id", "recordId", "record_id")
    )
    employee_id: str | None = Field(
        default=None, validation_alias=AliasChoices("employeeId", "employee_id")
    )
    leave_type_id: str | None = Field(
        default=None, validation_alias=AliasChoices("leaveTypeId", "leave_type_id")
    )
    date_range: RawDateRange | None = Field(
        default=None, validation_alias=AliasChoices("dateRange", "dates", "date_range")
    )
    duration_days: int | None = Field(
        default=None, validation_alias=AliasChoices("durationDays", "duration_days")
    )
    status: LeaveStatus = Field(validation_alias=AliasChoices("status"))
    applied_on: Any = Field(
        default=None, validation_alias=AliasChoices("appliedOn", "applied_on")
    )

    @field_validator("record_id", "employee_id", "leave_type_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        # Ids arrive as ObjectIds, ints or strings depending on the source
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> LeaveStatus:
        return LeaveStatus.parse(value)


def to_local_date(value: Any, zone: tzinfo) -> date:
    """
    Truncate a date-like value to a calendar date in ``zone``.

    Aware datetimes are converted to ``zone`` first; naive ones are taken
    as already local. Strings are parsed with dateutil.

    Raises:
        ValueError: If the value is missing or cannot be parsed.
    """
    if value is None:
        raise ValueError("missing date")
    if isinstance(value, str):
        try:
            value = parser.parse(value)
        except (ParserError, ValueError, OverflowError) as e:
            raise ValueError(f"unparseable date {value!r}") from e
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            try:
                value = value.astimezone(zone)
            except (OverflowError, ValueError) as e:
                # e.g. 0001-01-01T00:00+05:00 has no UTC equivalent
                raise ValueError(f"date out of range {value!r}") from e
        return value.date()
    if isinstance(value, date):
        return value
    raise ValueError(f"unsupported date value {value!r}")


def _derived_record_id(raw: RawLeaveRecord, start: date, end: date, applied_on: date | None) -> str:
    """Stable id for records that arrive without one."""
    parts = [
        raw.employee_id or "",
        raw.leave_type_id or "",
        start.isoformat(),
        end.isoformat(),
        str(raw.duration_days),
        raw.status.value,
        applied_on.isoformat() if applied_on else "",
    ]
    digest = hashlib.sha1("|".join(parts).encode("utf-8")).hexdigest()[:12]
    return f"auto-{digest}"


class LeaveRecordNormalizer:
    """Validates and canonicalizes one employee's leave requests."""

    def __init__(self, config: DetectionConfig | None = None):
        self.config = config or DetectionConfig()
        self._zone = self.config.zone()

    def normalize(
        self, employee_id: str, raw_records: Iterable[Mapping[str, Any] | LeaveRecord]
    ) -> NormalizationReport:
        """
        Normalize raw leave requests for ``employee_id``.

        Args:
            employee_id: Employee the records are being analysed for
            raw_records: Raw mappings or already-built LeaveRecord instances

        Returns:
            NormalizationReport with the records sorted by start date and id,
            plus discarded/excluded counts and one issue line per discard
        """
        report = NormalizationReport()
        by_id: dict[str, LeaveRecord] = {}

        for index, raw in enumerate(raw_records or []):
            try:
                record = self._coerce(employee_id, raw)
            except ValueError as e:
                self._discard(report, f"record #{index}: {e}")
                continue

            if record.status == LeaveStatus.REJECTED:
                report.excluded += 1
                continue

            existing = by_id.get(record.record_id)
            if existing is not None:
                # Keep one copy per id regardless of input order
                self._discard(report, f"record {record.record_id}: duplicate id")
                if _identity(record) < _identity(existing):
                    by_id[record.record_id] = record
                continue
            by_id[record.record_id] = record

        report.records = sorted(by_id.values(), key=LeaveRecord.sort_key)
        if report.discarded or report.excluded:
            logger.info(
                f"Normalized leave records: employee={employee_id} kept={len(report.records)} "
                f"discarded={report.discarded} excluded={report.excluded}"
            )
        return report

    def _discard(self, report: NormalizationReport, issue: str) -> None:
        report.discarded += 1
        report.issues.append(issue)
        logger.debug(f"Discarding malformed leave record: {issue}")

    def _coerce(self, employee_id: str, raw: Mapping[str, Any] | LeaveRecord) -> LeaveRecord:
        if isinstance(raw, LeaveRecord):
            if raw.employee_id != employee_id:
                raise ValueError(f"belongs to employee {raw.employee_id}")
            if raw.start > raw.end:
                raise ValueError("date range starts after it ends")
            if raw.duration_days <= 0:
                raise ValueError("non-positive duration")
            return raw

        if not isinstance(raw, Mapping):
            raise ValueError(f"not a mapping ({type(raw).__name__})")

        try:
            parsed = RawLeaveRecord.model_validate(dict(raw))
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ValueError(f"invalid fields: {fields}") from None

        if parsed.employee_id and parsed.employee_id != employee_id:
            raise ValueError(f"belongs to employee {parsed.employee_id}")
        if parsed.date_range is None:
            raise ValueError("missing date range")

        start = to_local_date(parsed.date_range.start, self._zone)
        end = to_local_date(parsed.date_range.end, self._zone)
        if start > end:
            raise ValueError("date range starts after it ends")
        if parsed.duration_days is None or parsed.duration_days <= 0:
            raise ValueError("non-positive duration")

        applied_on = None
        if parsed.applied_on is not None:
            try:
                applied_on = to_local_date(parsed.applied_on, self._zone)
            except ValueError:
                # Only the short-notice detector needs this; treat as absent
                logger.debug(f"Ignoring unparseable appliedOn: {parsed.applied_on!r}")

        return LeaveRecord(
            record_id=parsed.record_id or _derived_record_id(parsed, start, end, applied_on),
            employee_id=employee_id,
            start=start,
            end=end,
            duration_days=parsed.duration_days,
            status=parsed.status,
            leave_type_id=parsed.leave_type_id,
            applied_on=applied_on,
        )


def _identity(record: LeaveRecord) -> tuple:
    return (
        record.start,
        record.end,
        record.duration_days,
        record.status.value,
        record.leave_type_id or "",
        record.applied_on or date.min,
    )
