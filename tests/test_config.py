"""
Tests for settings and detection thresholds.
"""

import pytest
from pydantic import ValidationError

from leave_anomaly.config import DetectionConfig, Settings


class TestSettings:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch):
        """Without overrides the documented thresholds apply."""
        monkeypatch.delenv("WEEKEND_DAYS", raising=False)
        config = Settings().detection_config()

        assert config.min_single_day_occurrences == 3
        assert config.weekend_days == (5, 6)
        assert config.adjacent_weekdays() == frozenset({0, 4})

    def test_weekend_days_comma_separated(self, monkeypatch):
        """WEEKEND_DAYS=4,5 selects a Friday-Saturday weekend."""
        monkeypatch.setenv("WEEKEND_DAYS", "4,5")
        settings = Settings()

        assert settings.weekend_days == [4, 5]
        assert settings.detection_config().adjacent_weekdays() == frozenset({3, 6})

    def test_weekend_days_json_list(self, monkeypatch):
        """The JSON list form is accepted too."""
        monkeypatch.setenv("WEEKEND_DAYS", "[4, 5]")

        assert Settings().weekend_days == [4, 5]

    def test_weekend_days_garbage(self, monkeypatch):
        """Non-numeric weekend days are a validation error."""
        monkeypatch.setenv("WEEKEND_DAYS", "fri,sat")

        with pytest.raises(ValidationError):
            Settings()

    def test_threshold_override(self, monkeypatch):
        """Thresholds are read from the environment."""
        monkeypatch.setenv("SHORT_NOTICE_LEAD_DAYS", "3")

        assert Settings().detection_config().short_notice_lead_days == 3


class TestDetectionConfig:
    """Test threshold validation."""

    def test_weekend_days_normalized(self):
        """Weekend days are sorted and deduplicated."""
        assert DetectionConfig(weekend_days=(6, 5, 6)).weekend_days == (5, 6)

    def test_weekend_day_out_of_range(self):
        """Weekday numbers outside 0-6 are rejected."""
        with pytest.raises(ValidationError):
            DetectionConfig(weekend_days=(7,))

    def test_whole_week_weekend(self):
        """A weekend cannot cover every day."""
        with pytest.raises(ValidationError):
            DetectionConfig(weekend_days=tuple(range(7)))

    def test_unknown_timezone(self):
        """Timezones must be valid IANA names."""
        with pytest.raises(ValidationError):
            DetectionConfig(timezone="Mars/Olympus_Mons")

    def test_config_is_frozen(self):
        """Thresholds cannot be changed after construction."""
        config = DetectionConfig()

        with pytest.raises(ValidationError):
            config.min_single_day_occurrences = 1
