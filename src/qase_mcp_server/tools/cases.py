"""Qase MCP Server - Test Case Tools

This module contains MCP tools for Qase test cases:
- Listing and retrieval with filters
- Creation (single and bulk)
- Partial update with parameter merging
"""
from typing import Optional, Dict, Any, List, Literal
import logging

from mcp.server.lowlevel import Server
from pydantic import BaseModel, Field

from ..models.case import TestCase
from ..utils.result import Result, parse_response, to_result
from ..utils.validation import ToolSchema, drop_none

logger = logging.getLogger(__name__)

ExternalIssuesType = Literal[
    "asana",
    "azure-devops",
    "clickup-app",
    "github-app",
    "gitlab-app",
    "jira-cloud",
    "jira-server",
    "linear",
    "monday",
    "redmine-app",
    "trello-app",
    "youtrack-app",
]


# ============================================================================
# Schemas
# ============================================================================

class CustomFieldValue(BaseModel):
    id: int = Field(description="Custom field ID")
    value: str = Field(description="Custom field value")


class CreateCaseStep(BaseModel):
    action: str
    expected_result: Optional[str] = None
    data: Optional[str] = None
    shared_step_hash: Optional[str] = None
    shared_step_nested_hash: Optional[str] = None


class UpdateCaseStep(BaseModel):
    action: str
    expected_result: Optional[str] = None
    data: Optional[str] = None
    position: Optional[int] = None


class CaseParameter(BaseModel):
    title: str
    value: str


class CaseFields(BaseModel):
    """Fields shared by case create and update payloads."""

    description: Optional[str] = None
    preconditions: Optional[str] = None
    postconditions: Optional[str] = None
    severity: Optional[int] = None
    priority: Optional[int] = None
    type: Optional[int] = None
    behavior: Optional[int] = None
    automation: Optional[int] = None
    status: Optional[int] = None
    suite_id: Optional[int] = None
    milestone_id: Optional[int] = None
    layer: Optional[int] = None
    is_flaky: Optional[bool] = None
    tags: Optional[List[str]] = None
    custom_fields: Optional[List[CustomFieldValue]] = None


class TestCaseCreate(CaseFields):
    __test__ = False

    title: str
    params: Optional[Dict[str, List[str]]] = Field(
        default=None,
        description='Parameter name to list of values, e.g. {"browser": ["chrome", "firefox"]}'
    )
    steps: Optional[List[CreateCaseStep]] = None


class BulkTestCase(CaseFields):
    title: str
    params: Optional[List[CaseParameter]] = None
    steps: Optional[List[UpdateCaseStep]] = None


class GetCasesSchema(ToolSchema):
    code: str = Field(description="Project code")
    search: Optional[str] = None
    milestone_id: Optional[int] = Field(default=None, alias="milestoneId")
    suite_id: Optional[int] = Field(default=None, alias="suiteId")
    severity: Optional[str] = None
    priority: Optional[str] = None
    type: Optional[str] = None
    behavior: Optional[str] = None
    automation: Optional[str] = None
    status: Optional[str] = None
    external_issues_type: Optional[ExternalIssuesType] = Field(default=None, alias="externalIssuesType")
    external_issues_ids: Optional[List[str]] = Field(default=None, alias="externalIssuesIds")
    include: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


class GetCaseSchema(ToolSchema):
    code: str = Field(description="Project code")
    case_id: int = Field(alias="id", description="Test case ID")


class CreateCaseSchema(ToolSchema):
    code: str = Field(description="Project code")
    test_case: TestCaseCreate = Field(alias="testCase")


class CreateCaseBulkSchema(ToolSchema):
    code: str = Field(description="Project code")
    cases: List[BulkTestCase]


class UpdateCaseSchema(CaseFields, ToolSchema):
    code: str = Field(description="Project code")
    case_id: int = Field(alias="id", description="Test case ID")
    title: Optional[str] = None
    params: Optional[Dict[str, List[str]]] = Field(
        default=None,
        description="Parameters to add or replace; parameters not mentioned are kept"
    )
    steps: Optional[List[UpdateCaseStep]] = None


# ============================================================================
# Helpers
# ============================================================================

def encode_flaky(is_flaky: Optional[bool]) -> Optional[int]:
    """Qase stores the flaky flag as 1/0; absence stays absent."""
    if is_flaky is None:
        return None
    return 1 if is_flaky else 0


def merge_parameters(
    existing: Optional[Dict[str, List[Any]]],
    new: Optional[Dict[str, List[str]]]
) -> Optional[Dict[str, List[Any]]]:
    """Merge new case parameters over existing ones, key by key.

    New values win for keys present in both; keys only in ``existing`` survive.
    """
    if new is None:
        return existing
    if not existing:
        return dict(new)
    return {**existing, **new}


def _case_payload(fields: Dict[str, Any]) -> Dict[str, Any]:
    data = drop_none(fields)
    if "is_flaky" in data:
        data["is_flaky"] = encode_flaky(data["is_flaky"])
    return data


# ============================================================================
# Operations
# ============================================================================

async def get_cases(
    ctx: Server,
    code: str,
    search: Optional[str] = None,
    milestone_id: Optional[int] = None,
    suite_id: Optional[int] = None,
    severity: Optional[str] = None,
    priority: Optional[str] = None,
    type: Optional[str] = None,
    behavior: Optional[str] = None,
    automation: Optional[str] = None,
    status: Optional[str] = None,
    external_issues_type: Optional[str] = None,
    external_issues_ids: Optional[List[str]] = None,
    include: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None
) -> Result:
    """Get test cases in a project, optionally filtered."""
    logger.info(f"Getting test cases: code={code}, search={search}, suite_id={suite_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(
        qase_client.get_cases,
        code,
        search=search,
        milestone_id=milestone_id,
        suite_id=suite_id,
        severity=severity,
        priority=priority,
        type=type,
        behavior=behavior,
        automation=automation,
        status=status,
        external_issues_type=external_issues_type,
        external_issues_ids=external_issues_ids,
        include=include,
        limit=limit,
        offset=offset,
    )


async def get_case(ctx: Server, code: str, case_id: int) -> Result:
    """Get a specific test case including steps and parameters."""
    logger.info(f"Getting test case: code={code}, case_id={case_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_case, code, case_id)


async def create_case(ctx: Server, code: str, test_case: Dict[str, Any]) -> Result:
    """Create a test case.

    Args:
        ctx: MCP server with Qase client in its lifespan context
        code: Project code
        test_case: Case fields; ``is_flaky`` is sent as 1/0

    Returns:
        Result wrapping ``{"status": true, "result": {"id": ...}}``
    """
    logger.info(f"Creating test case: code={code}, title='{test_case.get('title')}'")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.create_case, code, _case_payload(test_case))


async def create_case_bulk(ctx: Server, code: str, cases: List[Dict[str, Any]]) -> Result:
    """Create several test cases in one request."""
    logger.info(f"Creating {len(cases)} test cases in bulk: code={code}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.create_case_bulk, code, [_case_payload(case) for case in cases])


async def update_case(ctx: Server, code: str, case_id: int, **case_data) -> Result:
    """Update an existing test case.

    When ``params`` is supplied the current case is fetched first and the new
    parameters are merged over the existing ones, so parameters the caller
    didn't mention are kept. Without ``params`` the update is sent as is.

    Args:
        ctx: MCP server with Qase client in its lifespan context
        code: Project code
        case_id: Test case ID
        **case_data: Case fields to update

    Returns:
        Result of the update call (or of the lookup, if that failed)

    Example:
        await update_case(ctx, "DEMO", 42, params={"browser": ["chrome"]})
    """
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    data = _case_payload(case_data)
    logger.info(f"Updating test case: code={code}, case_id={case_id}, fields={list(data.keys())}")

    new_params = data.get("params")
    if new_params is None:
        return to_result(qase_client.update_case, code, case_id, data)

    def submit_merged(existing_case: TestCase) -> Result:
        merged = merge_parameters(existing_case.params, new_params)
        logger.debug(f"Merged params for case {case_id}: {sorted(merged)}")
        return to_result(qase_client.update_case, code, case_id, {**data, "params": merged})

    return (
        to_result(qase_client.get_case, code, case_id)
        .and_then(lambda response: parse_response(TestCase, response))
        .and_then(submit_merged)
    )
