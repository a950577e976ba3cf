"""Qase MCP Server - Tool Dispatcher

Fixed catalog of tools. ``dispatch`` looks a tool up by exact name,
validates the arguments against its schema, runs the operation and
renders the payload as a single text block.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type
import json
import logging

from mcp import types
from mcp.server.lowlevel import Server
from pydantic import BaseModel

from .tools import (
    cases,
    defects,
    failed_results,
    jira_links,
    plans,
    projects,
    results,
    runs,
    search,
    shared_steps,
    suites,
)
from .utils.errors import OperationError, UnknownToolError
from .utils.result import Err, Result
from .utils.validation import tool_input_schema, validate_arguments

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    schema: Type[BaseModel]
    handler: Callable[..., Awaitable[Result]]


TOOL_DEFINITIONS: List[ToolDefinition] = [
    # Projects
    ToolDefinition("list_projects", "Get all projects", projects.ListProjectsSchema, projects.list_projects),
    ToolDefinition("get_project", "Get project by code", projects.GetProjectSchema, projects.get_project),
    ToolDefinition("create_project", "Create new project", projects.CreateProjectSchema, projects.create_project),
    # Results
    ToolDefinition(
        "get_results", "Get all test run results for a project",
        results.GetResultsSchema, results.get_results,
    ),
    ToolDefinition(
        "get_result", "Get test run result by code and hash",
        results.GetResultSchema, results.get_result,
    ),
    ToolDefinition("create_result", "Create test run result", results.CreateResultSchema, results.create_result),
    ToolDefinition(
        "create_result_bulk", "Create multiple test run results in bulk",
        results.CreateResultBulkSchema, results.create_result_bulk,
    ),
    ToolDefinition(
        "update_result", "Update an existing test run result",
        results.UpdateResultSchema, results.update_result,
    ),
    ToolDefinition(
        "get_results_by_status",
        "Get test results filtered by status (failed, passed, skipped, blocked, invalid) for a specific "
        "test run; set unique to keep only the latest result per test case",
        results.GetResultsByStatusSchema, results.get_results_by_status,
    ),
    # Cases
    ToolDefinition("get_cases", "Get all test cases in a project", cases.GetCasesSchema, cases.get_cases),
    ToolDefinition("get_case", "Get a specific test case", cases.GetCaseSchema, cases.get_case),
    ToolDefinition("create_case", "Create a new test case", cases.CreateCaseSchema, cases.create_case),
    ToolDefinition(
        "create_case_bulk", "Create multiple test cases in bulk",
        cases.CreateCaseBulkSchema, cases.create_case_bulk,
    ),
    ToolDefinition(
        "update_case",
        "Update an existing test case; new params are merged with the existing ones",
        cases.UpdateCaseSchema, cases.update_case,
    ),
    # Runs
    ToolDefinition("get_runs", "Get all test runs in a project", runs.GetRunsSchema, runs.get_runs),
    ToolDefinition("get_run", "Get a specific test run", runs.GetRunSchema, runs.get_run),
    # Plans
    ToolDefinition("get_plans", "Get all test plans in a project", plans.GetPlansSchema, plans.get_plans),
    ToolDefinition("get_plan", "Get a specific test plan", plans.GetPlanSchema, plans.get_plan),
    ToolDefinition("create_plan", "Create a new test plan", plans.CreatePlanSchema, plans.create_plan),
    ToolDefinition("update_plan", "Update an existing test plan", plans.UpdatePlanSchema, plans.update_plan),
    # Suites
    ToolDefinition("get_suites", "Get all test suites in a project", suites.GetSuitesSchema, suites.get_suites),
    ToolDefinition("get_suite", "Get a specific test suite", suites.GetSuiteSchema, suites.get_suite),
    ToolDefinition("create_suite", "Create a new test suite", suites.CreateSuiteSchema, suites.create_suite),
    ToolDefinition("update_suite", "Update an existing test suite", suites.UpdateSuiteSchema, suites.update_suite),
    # Shared steps
    ToolDefinition(
        "get_shared_steps", "Get all shared steps in a project",
        shared_steps.GetSharedStepsSchema, shared_steps.get_shared_steps,
    ),
    ToolDefinition(
        "get_shared_step", "Get a specific shared step",
        shared_steps.GetSharedStepSchema, shared_steps.get_shared_step,
    ),
    ToolDefinition(
        "create_shared_step", "Create a new shared step",
        shared_steps.CreateSharedStepSchema, shared_steps.create_shared_step,
    ),
    ToolDefinition(
        "update_shared_step", "Update an existing shared step",
        shared_steps.UpdateSharedStepSchema, shared_steps.update_shared_step,
    ),
    # Jira
    ToolDefinition(
        "link_test_case_to_jira", "Link a test case to a Jira issue",
        jira_links.LinkTestCaseToJiraSchema, jira_links.link_test_case_to_jira,
    ),
    ToolDefinition(
        "get_test_cases_linked_to_jira", "Get test cases linked to a specific Jira issue",
        jira_links.GetTestCasesLinkedToJiraSchema, jira_links.get_test_cases_linked_to_jira,
    ),
    # Defects
    ToolDefinition("get_defects", "Get all defects in a project", defects.GetDefectsSchema, defects.get_defects),
    ToolDefinition("get_defect", "Get a specific defect by ID", defects.GetDefectSchema, defects.get_defect),
    ToolDefinition("create_defect", "Create a new defect", defects.CreateDefectSchema, defects.create_defect),
    ToolDefinition("update_defect", "Update an existing defect", defects.UpdateDefectSchema, defects.update_defect),
    ToolDefinition("delete_defect", "Delete a defect", defects.DeleteDefectSchema, defects.delete_defect),
    ToolDefinition("resolve_defect", "Resolve a specific defect", defects.ResolveDefectSchema, defects.resolve_defect),
    ToolDefinition(
        "update_defect_status", "Update the status of a defect",
        defects.UpdateDefectStatusSchema, defects.update_defect_status,
    ),
    ToolDefinition(
        "link_failed_tests_to_defect",
        "Link the failed test results of a run (latest result per case) to an existing defect",
        defects.LinkFailedTestsToDefectSchema, defects.link_failed_tests_to_defect,
    ),
    # Search
    ToolDefinition(
        "qql_search", "Search Qase entities with a Qase Query Language (QQL) expression",
        search.QQLSearchSchema, search.qql_search,
    ),
    # Failure analysis
    ToolDefinition(
        "get_failed_results", "Get failed test results from a project, optionally for one run",
        failed_results.GetFailedResultsSchema, failed_results.get_failed_results,
    ),
    ToolDefinition(
        "get_failed_results_detailed", "Get failed test results with test case details",
        failed_results.GetFailedResultsDetailedSchema, failed_results.get_failed_results_detailed,
    ),
    ToolDefinition(
        "analyze_run_failures", "Analyze the failures of a test run, optionally categorized by stacktrace",
        failed_results.AnalyzeRunFailuresSchema, failed_results.analyze_run_failures,
    ),
]

TOOLS: Dict[str, ToolDefinition] = {definition.name: definition for definition in TOOL_DEFINITIONS}


def list_tools() -> List[types.Tool]:
    """Describe every tool in the catalog with its JSON input schema."""
    return [
        types.Tool(
            name=definition.name,
            description=definition.description,
            inputSchema=tool_input_schema(definition.schema),
        )
        for definition in TOOL_DEFINITIONS
    ]


def unwrap_payload(payload: Any) -> Any:
    """Prefer the ``result`` field of a response body over the whole body."""
    if isinstance(payload, dict) and "result" in payload:
        return payload["result"]
    return payload


def render_payload(payload: Any) -> str:
    return json.dumps(unwrap_payload(payload), indent=2, ensure_ascii=False)


async def dispatch(
    ctx: Server,
    name: str,
    arguments: Optional[Dict[str, Any]]
) -> List[types.TextContent]:
    """Run one tool invocation to completion.

    Args:
        ctx: MCP server with Qase client in its lifespan context
        name: Tool name
        arguments: Raw tool arguments

    Returns:
        Single text block with the JSON-rendered payload

    Raises:
        UnknownToolError: If the name is not in the catalog
        ToolValidationError: If the arguments don't match the tool schema
        OperationError: If the Qase API call failed
    """
    definition = TOOLS.get(name)
    if definition is None:
        logger.error(f"Unknown tool requested: {name}")
        raise UnknownToolError(name)

    params = validate_arguments(name, definition.schema, arguments)
    logger.info(f"Executing tool {name}")

    outcome = await definition.handler(ctx, **params.model_dump())
    if isinstance(outcome, Err):
        logger.error(f"Tool {name} failed: {outcome.error}")
        raise OperationError(outcome.error)

    return [types.TextContent(type="text", text=render_payload(outcome.unwrap()))]
