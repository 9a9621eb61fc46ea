"""
Tests for the leave record normalizer.
Bad input is counted and skipped, never raised.
"""

from datetime import date, datetime, timezone

import pytest

from leave_anomaly.config import DetectionConfig
from leave_anomaly.models import LeaveStatus
from leave_anomaly.normalizer import LeaveRecordNormalizer, to_local_date
from leave_builders import EMPLOYEE_ID, monday, raw_leave, record


class TestAcceptedShapes:
    """Test the raw shapes the normalizer understands."""

    def test_dashboard_shape(self):
        """The dashboard's `dates` field is accepted."""
        report = LeaveRecordNormalizer().normalize(
            EMPLOYEE_ID, [raw_leave(monday(0), record_id="LR-1", applied_on=monday(0))]
        )

        assert report.discarded == 0
        leave = report.records[0]
        assert leave.record_id == "LR-1"
        assert leave.start == date(2025, 1, 6)
        assert leave.end == date(2025, 1, 6)
        assert leave.duration_days == 1
        assert leave.status == LeaveStatus.APPROVED
        assert leave.applied_on == date(2025, 1, 6)
        assert leave.weekday == 0

    def test_date_range_alias(self):
        """`dateRange` works as well as `dates`."""
        raw = {
            "_id": "LR-2",
            "employeeId": EMPLOYEE_ID,
            "dateRange": {"from": "2025-01-07", "to": "2025-01-08"},
            "durationDays": 2,
            "status": "pending",
        }
        report = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [raw])

        assert len(report.records) == 1
        assert report.records[0].end == date(2025, 1, 8)

    def test_status_is_case_insensitive(self):
        """Upper-case statuses from the seed data parse to the same enum."""
        report = LeaveRecordNormalizer().normalize(
            EMPLOYEE_ID,
            [
                raw_leave(monday(0), status="APPROVED"),
                raw_leave(monday(1), status="Returned_For_Correction"),
            ],
        )

        assert [r.status for r in report.records] == [
            LeaveStatus.APPROVED,
            LeaveStatus.RETURNED_FOR_CORRECTION,
        ]

    def test_free_text_is_dropped(self):
        """Reason and justification never reach the canonical record."""
        report = LeaveRecordNormalizer().normalize(
            EMPLOYEE_ID, [raw_leave(monday(0), reason="flu", justification="doctor's note")]
        )

        assert not hasattr(report.records[0], "reason")

    def test_existing_records_pass_through(self):
        """Already-built LeaveRecord instances are accepted."""
        leave = record(monday(0))
        report = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [leave])

        assert report.records == [leave]

    def test_records_are_sorted(self):
        """Output is chronological regardless of input order."""
        report = LeaveRecordNormalizer().normalize(
            EMPLOYEE_ID, [raw_leave(monday(3)), raw_leave(monday(1)), raw_leave(monday(2))]
        )

        assert [r.start for r in report.records] == [monday(1), monday(2), monday(3)]


class TestExclusionsAndDiscards:
    """Test rejected and malformed records."""

    def test_rejected_records_are_excluded(self):
        """Rejected requests never happened; they are excluded, not malformed."""
        report = LeaveRecordNormalizer().normalize(
            EMPLOYEE_ID, [raw_leave(monday(0), status="rejected"), raw_leave(monday(1))]
        )

        assert len(report.records) == 1
        assert report.excluded == 1
        assert report.discarded == 0

    def test_missing_date_range(self):
        """A record without dates is discarded."""
        raw = raw_leave(monday(0))
        del raw["dates"]
        report = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [raw])

        assert report.records == []
        assert report.discarded == 1
        assert "missing date range" in report.issues[0]

    def test_inverted_date_range(self):
        """`from` after `to` is discarded."""
        raw = raw_leave(monday(0))
        raw["dates"] = {"from": "2025-01-10", "to": "2025-01-06"}
        report = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [raw])

        assert report.discarded == 1
        assert "starts after it ends" in report.issues[0]

    def test_unparseable_date(self):
        """Garbage dates are discarded."""
        raw = raw_leave(monday(0))
        raw["dates"]["from"] = "not a date"
        report = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [raw])

        assert report.discarded == 1

    def test_non_positive_duration(self):
        """Zero, negative and missing durations are discarded."""
        zero = raw_leave(monday(0), durationDays=0)
        negative = raw_leave(monday(1), durationDays=-2)
        missing = raw_leave(monday(2))
        del missing["durationDays"]
        report = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [zero, negative, missing])

        assert report.records == []
        assert report.discarded == 3

    def test_unknown_status(self):
        """Statuses outside the closed set are discarded."""
        report = LeaveRecordNormalizer().normalize(
            EMPLOYEE_ID, [raw_leave(monday(0), status="cancelled")]
        )

        assert report.discarded == 1
        assert "status" in report.issues[0]

    def test_other_employees_records(self):
        """Records of another employee never leak into this analysis."""
        report = LeaveRecordNormalizer().normalize(
            EMPLOYEE_ID, [raw_leave(monday(0), employee_id="E999")]
        )

        assert report.records == []
        assert report.discarded == 1
        assert "E999" in report.issues[0]

    def test_non_mapping_entries(self):
        """None and strings in the input are counted, not raised."""
        report = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [None, "garbage", 42])

        assert report.discarded == 3

    def test_unparseable_applied_on_is_treated_as_absent(self):
        """A bad appliedOn only drops the timestamp, not the record."""
        report = LeaveRecordNormalizer().normalize(
            EMPLOYEE_ID, [raw_leave(monday(0), applied_on="unknown")]
        )

        assert report.discarded == 0
        assert report.records[0].applied_on is None

    def test_duplicate_ids_keep_one_copy(self):
        """The same request id twice is collapsed deterministically."""
        first = raw_leave(monday(0), record_id="LR-1")
        second = raw_leave(monday(1), record_id="LR-1")

        forward = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [first, second])
        backward = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [second, first])

        assert forward.records == backward.records
        assert forward.records[0].start == monday(0)
        assert forward.discarded == 1

    def test_empty_input(self):
        """No records is not an error."""
        report = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [])

        assert report.records == []
        assert report.discarded == 0


class TestDerivedIds:
    """Test ids for records that arrive without one."""

    def test_derived_ids_are_stable(self):
        """The derived id depends on content, not position."""
        leaves = [raw_leave(monday(0)), raw_leave(monday(1))]
        forward = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, leaves)
        backward = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, list(reversed(leaves)))

        assert [r.record_id for r in forward.records] == [r.record_id for r in backward.records]
        assert all(r.record_id.startswith("auto-") for r in forward.records)
        assert forward.records[0].record_id != forward.records[1].record_id


class TestTimezones:
    """Test day truncation in the canonical timezone."""

    def test_aware_timestamp_converted_to_utc(self):
        """An evening timestamp in New York is the next day in UTC."""
        raw = raw_leave(monday(0))
        raw["dates"] = {"from": "2025-01-05T23:30:00-05:00", "to": "2025-01-05T23:30:00-05:00"}
        report = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, [raw])

        assert report.records[0].start == date(2025, 1, 6)

    def test_configured_timezone(self):
        """The same timestamp stays on Sunday when analysing in New York time."""
        raw = raw_leave(monday(0))
        raw["dates"] = {"from": "2025-01-05T23:30:00-05:00", "to": "2025-01-05T23:30:00-05:00"}
        config = DetectionConfig(timezone="America/New_York")
        report = LeaveRecordNormalizer(config).normalize(EMPLOYEE_ID, [raw])

        assert report.records[0].start == date(2025, 1, 5)

    def test_to_local_date_accepts_native_types(self):
        """date and datetime objects are accepted as-is."""
        utc = DetectionConfig().zone()

        assert to_local_date(date(2025, 1, 6), utc) == date(2025, 1, 6)
        assert to_local_date(datetime(2025, 1, 6, 10, 0), utc) == date(2025, 1, 6)
        assert to_local_date(datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc), utc) == date(
            2025, 1, 6
        )

    def test_out_of_range_timestamp_raises_value_error(self):
        """Aware timestamps with no equivalent in the analysis zone are a ValueError."""
        utc = DetectionConfig().zone()

        with pytest.raises(ValueError, match="out of range"):
            to_local_date("0001-01-01T00:00:00+05:00", utc)
        with pytest.raises(ValueError, match="out of range"):
            to_local_date("9999-12-31T23:00:00-05:00", utc)

    def test_out_of_range_date_range_is_discarded(self):
        """A range that cannot be converted is counted, not raised."""
        bad = raw_leave(monday(9))
        bad["dates"]["from"] = "0001-01-01T00:00:00+05:00"
        leaves = [raw_leave(monday(w)) for w in range(8)] + [bad]

        report = LeaveRecordNormalizer().normalize(EMPLOYEE_ID, leaves)

        assert len(report.records) == 8
        assert report.discarded == 1
        assert "out of range" in report.issues[0]

    def test_out_of_range_applied_on_is_treated_as_absent(self):
        """An unconvertible appliedOn only drops the timestamp."""
        report = LeaveRecordNormalizer().normalize(
            EMPLOYEE_ID, [raw_leave(monday(0), applied_on="9999-12-31T23:00:00-05:00")]
        )

        assert report.discarded == 0
        assert report.records[0].applied_on is None
