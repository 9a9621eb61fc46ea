"""
Pytest configuration and fixtures.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from leave_anomaly.config import DetectionConfig
from leave_anomaly.engine import LeavePatternAnalyzer
from leave_builders import monday, raw_leave


@pytest.fixture
def config():
    """Default detection thresholds."""
    return DetectionConfig()


@pytest.fixture
def analyzer():
    """Fresh analyzer with default thresholds."""
    return LeavePatternAnalyzer()


@pytest.fixture
def monday_sick_leaves():
    """Eight approved single-day sick leaves on consecutive Mondays, booked two weeks ahead."""
    return [
        raw_leave(monday(w), record_id=f"LR-{w}", applied_on=monday(w) - timedelta(days=14))
        for w in range(8)
    ]


@pytest.fixture
def test_client():
    """Create FastAPI test client."""
    from leave_anomaly.main import app

    return TestClient(app)
