"""Mock Qase API Response Data

Realistic mock responses for testing Qase MCP tools.
Based on Qase REST API v1 response formats.
"""

from typing import Dict, Any


# Project responses

MOCK_PROJECT_1 = {
    "title": "Demo Project",
    "code": "DEMO",
    "counts": {
        "cases": 12,
        "suites": 3,
        "milestones": 1,
        "runs": {"total": 4, "active": 1},
        "defects": {"total": 2, "open": 1},
    },
}

MOCK_PROJECTS_LIST = {
    "status": True,
    "result": {
        "total": 1,
        "filtered": 1,
        "count": 1,
        "entities": [MOCK_PROJECT_1],
    },
}

MOCK_PROJECT_RESPONSE = {"status": True, "result": MOCK_PROJECT_1}


# Test case responses

MOCK_CASE_42 = {
    "id": 42,
    "title": "Login with valid credentials",
    "description": "User logs in with a known account",
    "preconditions": "Account exists",
    "postconditions": None,
    "suite_id": 3,
    "milestone_id": None,
    "severity": 2,
    "priority": 1,
    "type": 1,
    "behavior": 2,
    "automation": 0,
    "status": 0,
    "params": {"os": ["linux"]},
    "steps": [
        {"position": 1, "action": "Open login page", "expected_result": "Form is shown"},
        {"position": 2, "action": "Submit credentials", "expected_result": "Dashboard opens"},
    ],
    "tags": [],
}

MOCK_CASE_RESPONSE = {"status": True, "result": MOCK_CASE_42}

MOCK_CASES_LIST = {
    "status": True,
    "result": {"total": 1, "filtered": 1, "count": 1, "entities": [MOCK_CASE_42]},
}

MOCK_CASE_CREATED = {"status": True, "result": {"id": 43}}


# Result responses

def make_result(
    hash: str,
    case_id: int,
    status: str = "failed",
    run_id: int = 12,
    **extra: Any
) -> Dict[str, Any]:
    """Build a result entity in Qase's read shape."""
    result = {
        "hash": hash,
        "result_hash": hash,
        "comment": None,
        "stacktrace": None,
        "run_id": run_id,
        "case_id": case_id,
        "steps": None,
        "status": status,
        "is_api_result": True,
        "time_spent_ms": 1200,
        "end_time": "2024-05-01 10:00:00",
        "attachments": [],
    }
    result.update(extra)
    return result


def make_results_page(*entities: Dict[str, Any], total: int = None) -> Dict[str, Any]:
    """Wrap result entities in a paginated list response."""
    return {
        "status": True,
        "result": {
            "total": len(entities) if total is None else total,
            "filtered": len(entities),
            "count": len(entities),
            "entities": list(entities),
        },
    }


MOCK_RESULT_FAILED = make_result(
    "aaa111",
    42,
    comment="Dashboard did not load",
    stacktrace="AssertionError: expected 200, got 500",
    attachments=[
        {"filename": "screen.png", "size": 2048, "mime": "image/png", "url": "https://qase.io/a/screen.png"},
    ],
    steps=[
        {"position": 1, "status": 1, "attachments": []},
        {"position": 2, "status": 2, "attachments": []},
    ],
)

MOCK_RESULTS_LIST = make_results_page(MOCK_RESULT_FAILED)

MOCK_RESULT_UPDATED = {"status": True, "result": {"hash": "aaa111"}}


# Defect responses

MOCK_DEFECT_5 = {
    "id": 5,
    "title": "Checkout returns 500",
    "actual_result": "Server error page",
    "severity": "major",
    "status": "open",
    "milestone_id": None,
    "tags": [],
}

MOCK_DEFECT_RESPONSE = {"status": True, "result": MOCK_DEFECT_5}


# Error bodies

MOCK_NOT_FOUND_BODY = '{"status": false, "errorMessage": "Test case not found"}'

MOCK_VALIDATION_BODY = (
    '{"status": false, "errorMessage": "Data is invalid.", '
    '"errorFields": [{"field": "title", "error": "Title is required."}]}'
)
