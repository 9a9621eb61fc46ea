"""
Sample leave requests for demos and tests.
In production these come from the leave-request service.

Dates are anchored to a fixed reference date so the demo is reproducible.
Each employee illustrates one behaviour the detectors look for.
"""

from datetime import date, timedelta

REFERENCE_DATE = date(2025, 6, 30)  # a Monday

LEAVE_TYPES = {
    "AL": {"name": "Annual", "days_per_year": 21},
    "SL": {"name": "Sick", "days_per_year": 10},
    "CL": {"name": "Casual", "days_per_year": 7},
}

SAMPLE_EMPLOYEES = {
    "E001": {"employee_id": "E001", "name": "John Doe", "department": "Engineering"},
    "E002": {"employee_id": "E002", "name": "Priya Sharma", "department": "Marketing"},
    "E003": {"employee_id": "E003", "name": "Alex Chen", "department": "Support"},
    "E004": {"employee_id": "E004", "name": "Maria Garcia", "department": "Finance"},
    "E005": {"employee_id": "E005", "name": "Sam Lee", "department": "Engineering"},
}


def _request(
    request_id: str,
    employee_id: str,
    leave_type: str,
    start: date,
    days: int,
    status: str,
    applied_on: date | None,
    reason: str = "",
) -> dict:
    employee = SAMPLE_EMPLOYEES[employee_id]
    request = {
        "_id": request_id,
        "employeeId": employee_id,
        "employeeName": employee["name"],
        "leaveTypeId": leave_type,
        "leaveTypeName": LEAVE_TYPES[leave_type]["name"],
        "dates": {
            "from": start.isoformat(),
            "to": (start + timedelta(days=days - 1)).isoformat(),
        },
        "durationDays": days,
        "status": status,
        "reason": reason,
    }
    if applied_on is not None:
        request["appliedOn"] = f"{applied_on.isoformat()}T08:30:00Z"
    return request


def monday_sickness_requests() -> list[dict]:
    """E001: eight approved single-day sick leaves on consecutive Mondays."""
    requests = []
    for week in range(8):
        monday = REFERENCE_DATE - timedelta(days=7 * (week + 1))
        requests.append(
            _request(f"LR-E001-{week:02d}", "E001", "SL", monday, 1, "APPROVED", monday, "Unwell")
        )
    return requests


def planned_leave_requests() -> list[dict]:
    """E002: a few multi-day annual leaves booked weeks ahead."""
    starts = [date(2025, 2, 11), date(2025, 4, 15), date(2025, 6, 10)]
    return [
        _request(f"LR-E002-{i:02d}", "E002", "AL", start, 3, "approved", start - timedelta(days=30))
        for i, start in enumerate(starts)
    ]


def short_notice_requests() -> list[dict]:
    """E003: five mid-week casual leaves filed the same day or the day before."""
    starts = [
        date(2025, 3, 4),
        date(2025, 3, 26),
        date(2025, 4, 17),
        date(2025, 5, 13),
        date(2025, 6, 5),
    ]
    leads = [0, 1, 0, 1, 0]
    return [
        _request(
            f"LR-E003-{i:02d}", "E003", "CL", start, 1, "approved", start - timedelta(days=lead)
        )
        for i, (start, lead) in enumerate(zip(starts, leads))
    ]


def escalating_requests() -> list[dict]:
    """E004: one leave in January, four in May and June."""
    starts = [
        date(2025, 1, 14),
        date(2025, 5, 6),
        date(2025, 5, 20),
        date(2025, 6, 3),
        date(2025, 6, 17),
    ]
    return [
        _request(f"LR-E004-{i:02d}", "E004", "AL", start, 2, "pending", start - timedelta(days=14))
        for i, start in enumerate(starts)
    ]


def rejected_requests() -> list[dict]:
    """E005: Monday requests that were all rejected."""
    requests = []
    for week in range(6):
        monday = REFERENCE_DATE - timedelta(days=7 * (week + 1))
        requests.append(
            _request(f"LR-E005-{week:02d}", "E005", "SL", monday, 1, "REJECTED", monday)
        )
    return requests


def get_team_requests() -> list[dict]:
    """Flat list of every sample request, as the dashboard fetches them."""
    return (
        monday_sickness_requests()
        + planned_leave_requests()
        + short_notice_requests()
        + escalating_requests()
        + rejected_requests()
    )


def get_employee_requests(employee_id: str) -> list[dict]:
    """Sample requests for one employee."""
    return [r for r in get_team_requests() if r["employeeId"] == employee_id]
