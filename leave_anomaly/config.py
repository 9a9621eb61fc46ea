"""
Configuration management using Pydantic Settings.
Reads from environment variables.
"""

from typing import Annotated, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

# Severity contributed per matched occurrence, before the 100 cap.
WEEKDAY_RECURRENCE_WEIGHT = 12
WEEKEND_ADJACENCY_WEIGHT = 10
SHORT_NOTICE_WEIGHT = 15
FREQUENCY_ESCALATION_WEIGHT = 8

MAX_SEVERITY = 100

# Monday=0 ... Sunday=6, matching date.weekday()
DEFAULT_WEEKEND_DAYS = (5, 6)


class DetectionConfig(BaseModel):
    """Tunable thresholds shared by the detectors and the aggregator."""

    model_config = ConfigDict(frozen=True)

    # Weekday recurrence
    min_single_day_occurrences: int = Field(
        default=3, ge=1, description="Single-day leaves on one weekday before it counts as habitual"
    )
    weekday_dominance_ratio: float = Field(
        default=0.5, gt=0.0, le=1.0, description="Dominant weekday share of single-day leaves"
    )

    # Weekend adjacency
    weekend_adjacency_min_count: int = Field(
        default=4, ge=1, description="Single-day leaves next to a weekend"
    )
    weekend_days: tuple[int, ...] = Field(
        default=DEFAULT_WEEKEND_DAYS, min_length=1, description="Weekend weekdays, Monday=0"
    )

    # Short notice
    short_notice_min_count: int = Field(default=3, ge=1, description="Short-notice requests")
    short_notice_lead_days: int = Field(
        default=1, ge=0, description="Lead time in days at or below which notice is short"
    )

    # Frequency escalation
    escalation_multiplier: float = Field(
        default=2, gt=0, description="Recent-third count must reach early-third count times this"
    )

    # Day granularity
    timezone: str = Field(default="UTC", description="IANA zone for truncating timestamps")

    @field_validator("weekend_days")
    @classmethod
    def _check_weekend_days(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("weekend_days must be weekday numbers between 0 and 6")
        if len(set(value)) == 7:
            raise ValueError("weekend_days cannot cover the whole week")
        return tuple(sorted(set(value)))

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def adjacent_weekdays(self) -> frozenset[int]:
        """Weekdays immediately before and after the configured weekend."""
        weekend = set(self.weekend_days)
        adjacent = set()
        for day in weekend:
            before = (day - 1) % 7
            after = (day + 1) % 7
            if before not in weekend:
                adjacent.add(before)
            if after not in weekend:
                adjacent.add(after)
        return frozenset(adjacent)


class Settings(BaseSettings):
    """Application settings."""

    model_config = ConfigDict(env_file=".env", case_sensitive=False)

    # Application Configuration
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Detector thresholds
    min_single_day_occurrences: int = Field(default=3, alias="MIN_SINGLE_DAY_OCCURRENCES")
    weekday_dominance_ratio: float = Field(default=0.5, alias="WEEKDAY_DOMINANCE_RATIO")
    weekend_adjacency_min_count: int = Field(default=4, alias="WEEKEND_ADJACENCY_MIN_COUNT")
    # Accepts "5,6" as well as "[5, 6]"
    weekend_days: Annotated[list[int], NoDecode] = Field(
        default=list(DEFAULT_WEEKEND_DAYS), alias="WEEKEND_DAYS"
    )
    short_notice_min_count: int = Field(default=3, alias="SHORT_NOTICE_MIN_COUNT")
    short_notice_lead_days: int = Field(default=1, alias="SHORT_NOTICE_LEAD_DAYS")
    escalation_multiplier: float = Field(default=2, alias="ESCALATION_MULTIPLIER")
    analysis_timezone: str = Field(default="UTC", alias="ANALYSIS_TIMEZONE")

    # Caller policy: the dashboard only surfaces employees above this score
    dashboard_risk_threshold: int = Field(default=50, alias="DASHBOARD_RISK_THRESHOLD")

    # Team analysis
    team_max_workers: int = Field(default=1, alias="TEAM_MAX_WORKERS")

    # Detector monitoring
    detector_warn_threshold: int = Field(default=5, alias="DETECTOR_WARN_THRESHOLD")

    @field_validator("weekend_days", mode="before")
    @classmethod
    def _split_weekend_days(cls, value: Any) -> Any:
        if isinstance(value, str):
            stripped = value.strip().strip("[]")
            return [int(part) for part in stripped.split(",") if part.strip()]
        return value

    def detection_config(self) -> DetectionConfig:
        """Build the engine configuration from the current settings."""
        return DetectionConfig(
            min_single_day_occurrences=self.min_single_day_occurrences,
            weekday_dominance_ratio=self.weekday_dominance_ratio,
            weekend_adjacency_min_count=self.weekend_adjacency_min_count,
            weekend_days=tuple(self.weekend_days),
            short_notice_min_count=self.short_notice_min_count,
            short_notice_lead_days=self.short_notice_lead_days,
            escalation_multiplier=self.escalation_multiplier,
            timezone=self.analysis_timezone,
        )


# Global settings instance
settings = Settings()
