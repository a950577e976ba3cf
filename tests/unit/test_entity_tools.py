"""Unit tests for project, run, plan, suite and shared step tools.

Each tool is invoked by name through the dispatcher with the arguments an
MCP client sends, and the resulting Qase client call is checked exactly.
"""
import json

import pytest

from qase_mcp_server.dispatcher import dispatch
from qase_mcp_server.utils.errors import ToolValidationError


def client_of(mcp_context):
    return mcp_context.request_context.lifespan_context["qase_client"]


# ============================================================================
# Projects
# ============================================================================

@pytest.mark.asyncio
async def test_list_projects(mcp_context):
    content = await dispatch(mcp_context, "list_projects", {"limit": 10, "offset": 20})

    client_of(mcp_context).get_projects.assert_called_once_with(limit=10, offset=20)
    assert json.loads(content[0].text)["entities"][0]["code"] == "DEMO"


@pytest.mark.asyncio
async def test_get_project(mcp_context):
    await dispatch(mcp_context, "get_project", {"code": "DEMO"})

    client_of(mcp_context).get_project.assert_called_once_with("DEMO")


@pytest.mark.asyncio
async def test_create_project_omits_unset_fields(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.create_project.return_value = {"status": True, "result": {"code": "SHOP"}}

    content = await dispatch(mcp_context, "create_project", {"code": "SHOP", "title": "Web shop", "access": "all"})

    mock_client.create_project.assert_called_once_with({"code": "SHOP", "title": "Web shop", "access": "all"})
    assert json.loads(content[0].text) == {"code": "SHOP"}


@pytest.mark.asyncio
async def test_create_project_code_too_short(mcp_context):
    with pytest.raises(ToolValidationError):
        await dispatch(mcp_context, "create_project", {"code": "S", "title": "Web shop"})

    client_of(mcp_context).create_project.assert_not_called()


# ============================================================================
# Runs
# ============================================================================

@pytest.mark.asyncio
async def test_get_runs_maps_camel_case_filters(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.get_runs.return_value = {"status": True, "result": {"entities": []}}

    await dispatch(
        mcp_context,
        "get_runs",
        {"code": "DEMO", "status": "active", "fromStartTime": 1714521600, "include": "cases"},
    )

    mock_client.get_runs.assert_called_once_with(
        "DEMO",
        search=None,
        status="active",
        milestone=None,
        environment=None,
        from_start_time=1714521600,
        to_start_time=None,
        limit=None,
        offset=None,
        include="cases",
    )


@pytest.mark.asyncio
async def test_get_run(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.get_run.return_value = {"status": True, "result": {"id": 7, "title": "Nightly"}}

    content = await dispatch(mcp_context, "get_run", {"code": "DEMO", "id": 7})

    mock_client.get_run.assert_called_once_with("DEMO", 7, include=None)
    assert json.loads(content[0].text)["title"] == "Nightly"


# ============================================================================
# Plans
# ============================================================================

@pytest.mark.asyncio
async def test_get_plans(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.get_plans.return_value = {"status": True, "result": {"entities": []}}

    await dispatch(mcp_context, "get_plans", {"code": "DEMO", "limit": 5})

    mock_client.get_plans.assert_called_once_with("DEMO", limit=5, offset=None)


@pytest.mark.asyncio
async def test_create_plan(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.create_plan.return_value = {"status": True, "result": {"id": 3}}

    await dispatch(mcp_context, "create_plan", {"code": "DEMO", "title": "Regression", "cases": [42, 43]})

    mock_client.create_plan.assert_called_once_with("DEMO", {"title": "Regression", "cases": [42, 43]})


@pytest.mark.asyncio
async def test_update_plan_sends_only_given_fields(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.update_plan.return_value = {"status": True, "result": {"id": 3}}

    await dispatch(mcp_context, "update_plan", {"code": "DEMO", "id": 3, "title": "Smoke"})

    mock_client.update_plan.assert_called_once_with("DEMO", 3, {"title": "Smoke"})


# ============================================================================
# Suites
# ============================================================================

@pytest.mark.asyncio
async def test_get_suites(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.get_suites.return_value = {"status": True, "result": {"entities": []}}

    await dispatch(mcp_context, "get_suites", {"code": "DEMO", "search": "Auth"})

    mock_client.get_suites.assert_called_once_with("DEMO", search="Auth", limit=None, offset=None)


@pytest.mark.asyncio
async def test_create_suite_under_parent(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.create_suite.return_value = {"status": True, "result": {"id": 11}}

    await dispatch(mcp_context, "create_suite", {"code": "DEMO", "title": "Checkout", "parent_id": 2})

    mock_client.create_suite.assert_called_once_with("DEMO", {"title": "Checkout", "parent_id": 2})


@pytest.mark.asyncio
async def test_update_suite_sends_only_given_fields(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.update_suite.return_value = {"status": True, "result": {"id": 11}}

    await dispatch(mcp_context, "update_suite", {"code": "DEMO", "id": 11, "preconditions": "Logged in"})

    mock_client.update_suite.assert_called_once_with("DEMO", 11, {"preconditions": "Logged in"})


# ============================================================================
# Shared steps
# ============================================================================

@pytest.mark.asyncio
async def test_get_shared_steps(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.get_shared_steps.return_value = {"status": True, "result": {"entities": []}}

    await dispatch(mcp_context, "get_shared_steps", {"code": "DEMO", "search": "login"})

    mock_client.get_shared_steps.assert_called_once_with("DEMO", search="login", limit=None, offset=None)


@pytest.mark.asyncio
async def test_get_shared_step(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.get_shared_step.return_value = {"status": True, "result": {"hash": "abc123"}}

    await dispatch(mcp_context, "get_shared_step", {"code": "DEMO", "hash": "abc123"})

    mock_client.get_shared_step.assert_called_once_with("DEMO", "abc123")


@pytest.mark.asyncio
async def test_create_shared_step_with_steps(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.create_shared_step.return_value = {"status": True, "result": {"hash": "abc123"}}

    await dispatch(
        mcp_context,
        "create_shared_step",
        {
            "code": "DEMO",
            "title": "Log in",
            "steps": [
                {"action": "Open login page"},
                {"action": "Submit credentials", "expected_result": "Dashboard is shown"},
            ],
        },
    )

    mock_client.create_shared_step.assert_called_once_with(
        "DEMO",
        {
            "title": "Log in",
            "steps": [
                {"action": "Open login page"},
                {"action": "Submit credentials", "expected_result": "Dashboard is shown"},
            ],
        },
    )


@pytest.mark.asyncio
async def test_update_shared_step_step_data(mcp_context):
    mock_client = client_of(mcp_context)
    mock_client.update_shared_step.return_value = {"status": True, "result": {"hash": "abc123"}}

    await dispatch(
        mcp_context,
        "update_shared_step",
        {"code": "DEMO", "hash": "abc123", "stepData": {"title": "Log in again", "data": None}},
    )

    mock_client.update_shared_step.assert_called_once_with("DEMO", "abc123", {"title": "Log in again"})


@pytest.mark.asyncio
async def test_update_shared_step_requires_step_data(mcp_context):
    with pytest.raises(ToolValidationError) as exc_info:
        await dispatch(mcp_context, "update_shared_step", {"code": "DEMO", "hash": "abc123"})

    assert "stepData" in str(exc_info.value)
    client_of(mcp_context).update_shared_step.assert_not_called()
