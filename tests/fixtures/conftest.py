"""Pytest fixtures for Qase MCP Server tests.

Common fixtures for mocking the Qase client and responses.
"""

import pytest
from unittest.mock import MagicMock

from qase_mcp_server.client import QaseClient
from . import qase_responses


@pytest.fixture
def mock_qase_client():
    """Mock Qase client with common methods."""
    client = MagicMock(spec=QaseClient)

    # Configure default return values for common methods
    client.get_projects.return_value = qase_responses.MOCK_PROJECTS_LIST
    client.get_project.return_value = qase_responses.MOCK_PROJECT_RESPONSE
    client.get_cases.return_value = qase_responses.MOCK_CASES_LIST
    client.get_case.return_value = qase_responses.MOCK_CASE_RESPONSE
    client.create_case.return_value = qase_responses.MOCK_CASE_CREATED
    client.update_case.return_value = {"status": True, "result": {"id": 42}}
    client.get_results.return_value = qase_responses.MOCK_RESULTS_LIST
    client.update_result.return_value = qase_responses.MOCK_RESULT_UPDATED
    client.get_defect.return_value = qase_responses.MOCK_DEFECT_RESPONSE

    return client


@pytest.fixture
def mock_case():
    """Mock test case data."""
    return dict(qase_responses.MOCK_CASE_42)


@pytest.fixture
def mock_defect():
    """Mock defect data."""
    return dict(qase_responses.MOCK_DEFECT_5)


@pytest.fixture
def sample_case_create_data():
    """Sample data for creating a test case."""
    return {
        "title": "Logout clears the session",
        "severity": 3,
        "is_flaky": True,
        "params": {"browser": ["chrome", "firefox"]},
        "steps": [{"action": "Click logout", "expected_result": "Login page is shown"}],
    }


@pytest.fixture(autouse=True)
def reset_environment_for_tests(monkeypatch, tmp_path):
    """Reset environment variables for each test.

    This fixture automatically runs before each test to ensure
    a clean environment state.
    """
    monkeypatch.delenv("QASE_API_TOKEN", raising=False)
    monkeypatch.delenv("QASE_API_URL", raising=False)
    # Keep a real ~/.qase-mcp-server.json out of the tests
    monkeypatch.setattr(
        "qase_mcp_server.config.DEFAULT_CONFIG_PATH",
        tmp_path / "missing-config.json",
    )


@pytest.fixture
def mcp_context(mock_qase_client):
    """Mock MCP context with Qase client."""
    context = MagicMock()
    context.request_context.lifespan_context = {"qase_client": mock_qase_client}
    return context
