"""Unit tests for Qase test case tools.

Tests parameter merging on update, flaky flag encoding and error short-circuiting.
"""
import pytest

from qase_mcp_server.tools.cases import (
    create_case,
    create_case_bulk,
    encode_flaky,
    get_cases,
    merge_parameters,
    update_case,
)
from qase_mcp_server.utils.errors import NotFoundError
from qase_mcp_server.utils.result import Err, Ok


@pytest.mark.asyncio
async def test_update_case_merges_params(mcp_context):
    """New params are merged over the existing ones."""
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]

    result = await update_case(mcp_context, code="DEMO", case_id=42, params={"browser": ["chrome"]})

    assert isinstance(result, Ok)
    mock_client.get_case.assert_called_once_with("DEMO", 42)
    mock_client.update_case.assert_called_once()
    code, case_id, data = mock_client.update_case.call_args.args
    assert (code, case_id) == ("DEMO", 42)
    assert data["params"] == {"os": ["linux"], "browser": ["chrome"]}


@pytest.mark.asyncio
async def test_update_case_new_params_win(mcp_context):
    """A key present in both keeps the new value."""
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]

    await update_case(mcp_context, code="DEMO", case_id=42, params={"os": ["windows", "macos"]})

    data = mock_client.update_case.call_args.args[2]
    assert data["params"] == {"os": ["windows", "macos"]}


@pytest.mark.asyncio
async def test_update_case_with_case_without_params(mcp_context):
    """Qase reports a case without params as an empty list."""
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]
    mock_client.get_case.return_value = {"status": True, "result": {"id": 42, "params": []}}

    await update_case(mcp_context, code="DEMO", case_id=42, params={"browser": ["chrome"]})

    data = mock_client.update_case.call_args.args[2]
    assert data["params"] == {"browser": ["chrome"]}


@pytest.mark.asyncio
async def test_update_case_without_params_skips_lookup(mcp_context):
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]

    result = await update_case(mcp_context, code="DEMO", case_id=42, title="Renamed", description=None)

    assert result.is_ok()
    mock_client.get_case.assert_not_called()
    mock_client.update_case.assert_called_once_with("DEMO", 42, {"title": "Renamed"})


@pytest.mark.asyncio
async def test_update_case_lookup_failure_short_circuits(mcp_context):
    """If the current case can't be fetched, no update is sent."""
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]
    mock_client.get_case.side_effect = NotFoundError("HTTP 404: Test case not found")

    result = await update_case(mcp_context, code="DEMO", case_id=999, params={"browser": ["chrome"]})

    assert isinstance(result, Err)
    assert result.error == "HTTP 404: Test case not found"
    mock_client.update_case.assert_not_called()


@pytest.mark.asyncio
async def test_update_case_encodes_flaky(mcp_context):
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]

    await update_case(mcp_context, code="DEMO", case_id=42, is_flaky=False)

    mock_client.update_case.assert_called_once_with("DEMO", 42, {"is_flaky": 0})


@pytest.mark.asyncio
async def test_create_case_encodes_flaky(mcp_context, sample_case_create_data):
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]

    result = await create_case(mcp_context, code="DEMO", test_case=sample_case_create_data)

    assert result.unwrap() == {"status": True, "result": {"id": 43}}
    data = mock_client.create_case.call_args.args[1]
    assert data["is_flaky"] == 1
    assert data["params"] == {"browser": ["chrome", "firefox"]}


@pytest.mark.asyncio
async def test_create_case_without_flaky_omits_field(mcp_context):
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]

    await create_case(mcp_context, code="DEMO", test_case={"title": "Plain", "is_flaky": None})

    mock_client.create_case.assert_called_once_with("DEMO", {"title": "Plain"})


@pytest.mark.asyncio
async def test_create_case_bulk_sends_each_case(mcp_context):
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]
    mock_client.create_case_bulk.return_value = {"status": True, "result": {"ids": [44, 45]}}

    cases = [{"title": "First", "is_flaky": True}, {"title": "Second", "severity": None}]
    result = await create_case_bulk(mcp_context, code="DEMO", cases=cases)

    assert result.unwrap()["result"] == {"ids": [44, 45]}
    mock_client.create_case_bulk.assert_called_once_with(
        "DEMO", [{"title": "First", "is_flaky": 1}, {"title": "Second"}]
    )


@pytest.mark.asyncio
async def test_get_cases_passes_filters(mcp_context):
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]

    await get_cases(mcp_context, code="DEMO", suite_id=3, external_issues_type="jira-cloud",
                    external_issues_ids=["PROJ-1"], limit=10)

    kwargs = mock_client.get_cases.call_args.kwargs
    assert kwargs["suite_id"] == 3
    assert kwargs["external_issues_type"] == "jira-cloud"
    assert kwargs["external_issues_ids"] == ["PROJ-1"]
    assert kwargs["limit"] == 10


def test_merge_parameters():
    assert merge_parameters({"os": ["linux"]}, {"browser": ["chrome"]}) == {
        "os": ["linux"],
        "browser": ["chrome"],
    }
    assert merge_parameters({}, {"browser": ["chrome"]}) == {"browser": ["chrome"]}
    assert merge_parameters({"os": ["linux"]}, None) == {"os": ["linux"]}


def test_encode_flaky():
    assert encode_flaky(True) == 1
    assert encode_flaky(False) == 0
    assert encode_flaky(None) is None


@pytest.mark.asyncio
async def test_update_case_keeps_non_string_param_values(mcp_context):
    """Existing params may hold numbers; they survive the merge untouched."""
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]
    mock_client.get_case.return_value = {"status": True, "result": {"id": 42, "params": {"port": [8080]}}}

    result = await update_case(mcp_context, code="DEMO", case_id=42, params={"browser": ["chrome"]})

    assert result.is_ok()
    data = mock_client.update_case.call_args.args[2]
    assert data["params"] == {"port": [8080], "browser": ["chrome"]}


@pytest.mark.asyncio
async def test_update_case_malformed_existing_case_is_err(mcp_context):
    """An existing case that doesn't parse is reported as an error, not raised."""
    mock_client = mcp_context.request_context.lifespan_context["qase_client"]
    mock_client.get_case.return_value = {"status": True, "result": {"id": 42, "params": {"os": "linux"}}}

    result = await update_case(mcp_context, code="DEMO", case_id=42, params={"browser": ["chrome"]})

    assert isinstance(result, Err)
    assert "TestCase" in result.error
    assert "params.os" in result.error
    mock_client.update_case.assert_not_called()
