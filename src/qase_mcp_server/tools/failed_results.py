"""Qase MCP Server - Failed Result Analysis Tools

This module contains MCP tools for investigating failures:
- Failed results of a project or run, reshaped for triage
- Failed results enriched with their test case details
- Per-run failure statistics and stacktrace categorization
"""
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
import logging

from mcp.server.lowlevel import Server
from pydantic import Field

from ..client import QaseClient
from ..models.case import TestCase
from ..models.result import ResultEntity, ResultPage
from ..utils.result import Result, parse_response, to_result
from ..utils.validation import ToolSchema

logger = logging.getLogger(__name__)

DEFAULT_FAILED_LIMIT = 50
ANALYSIS_FETCH_LIMIT = 100

# Failure categories, checked in order; first match wins
FAILURE_CATEGORIES = [
    ("assertionErrors", ("assertion", "assert")),
    ("timeoutErrors", ("timeout",)),
    ("networkErrors", ("connection", "network")),
    ("nullPointerErrors", ("null", "undefined")),
]
OTHER_ERRORS = "otherErrors"
NO_STACKTRACE_ERRORS = "noStacktraceErrors"


# ============================================================================
# Schemas
# ============================================================================

class GetFailedResultsSchema(ToolSchema):
    code: str = Field(description="Project code")
    run_id: Optional[int] = Field(default=None, alias="runId", description="Specific run ID to filter by")
    limit: Optional[int] = Field(default=None, ge=1, le=100, description="Number of results to return (1-100)")
    offset: Optional[int] = Field(default=None, ge=0, description="Number of results to skip")
    from_end_time: Optional[str] = Field(
        default=None, alias="fromEndTime", description="From end time in format Y-m-d H:i:s"
    )
    to_end_time: Optional[str] = Field(
        default=None, alias="toEndTime", description="To end time in format Y-m-d H:i:s"
    )


class GetFailedResultsDetailedSchema(GetFailedResultsSchema):
    include_steps: bool = Field(default=False, alias="includeSteps", description="Include test case steps")
    include_attachments: bool = Field(
        default=False, alias="includeAttachments", description="Include result attachment details"
    )


class AnalyzeRunFailuresSchema(ToolSchema):
    code: str = Field(description="Project code")
    run_id: int = Field(alias="runId", description="Run ID to analyze")
    include_stacktraces: bool = Field(
        default=False, alias="includeStacktraces", description="Include stacktrace details"
    )
    categorize_failures: bool = Field(
        default=False, alias="categorizeFailures", description="Categorize failures by type"
    )


# ============================================================================
# Helpers
# ============================================================================

def categorize_failure(stacktrace: Optional[str]) -> str:
    """Bucket a failure by keywords in its (lower-cased) stacktrace."""
    if not stacktrace:
        return NO_STACKTRACE_ERRORS
    text = stacktrace.lower()
    for category, keywords in FAILURE_CATEGORIES:
        if any(keyword in text for keyword in keywords):
            return category
    return OTHER_ERRORS


def count_failure_categories(results: List[ResultEntity]) -> Dict[str, int]:
    categories: Dict[str, int] = {}
    for result in results:
        category = categorize_failure(result.stacktrace)
        categories[category] = categories.get(category, 0) + 1
    return categories


def summarize_failed_result(entity: ResultEntity) -> Dict[str, Any]:
    return {
        "hash": entity.hash,
        "runId": entity.run_id,
        "caseId": entity.case_id,
        "status": entity.status,
        "comment": entity.comment,
        "stacktrace": entity.stacktrace,
        "timeSpentMs": entity.time_spent_ms,
        "endTime": entity.end_time,
        "attachments": [
            {
                "filename": attachment.get("filename"),
                "size": attachment.get("size"),
                "mime": attachment.get("mime"),
                "url": attachment.get("url"),
            }
            for attachment in entity.attachments
        ],
        "failedSteps": [
            {
                "position": step.get("position"),
                "status": step.get("status"),
                "attachments": step.get("attachments") or [],
            }
            for step in entity.failed_steps()
        ],
    }


def summarize_test_case(test_case: TestCase, include_steps: bool) -> Dict[str, Any]:
    summary = {
        "id": test_case.id,
        "title": test_case.title,
        "description": test_case.description,
        "suiteId": test_case.suite_id,
        "severity": test_case.severity,
        "priority": test_case.priority,
        "type": test_case.type,
        "behavior": test_case.behavior,
        "automation": test_case.automation,
    }
    if include_steps:
        summary["steps"] = test_case.steps
    return summary


def fetch_failed_results(
    qase_client: QaseClient,
    code: str,
    run_id: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    from_end_time: Optional[str] = None,
    to_end_time: Optional[str] = None
) -> Result:
    """Fetch failed results and reshape each one for triage."""

    def reshape(page: ResultPage) -> Dict[str, Any]:
        failed = [summarize_failed_result(entity) for entity in page.entities if entity.status == "failed"]
        return {
            "status": True,
            "result": {
                "total": page.total,
                "filtered": page.filtered,
                "count": len(failed),
                "failedResults": failed,
            },
        }

    return to_result(
        qase_client.get_results,
        code,
        status="failed",
        run=None if run_id is None else str(run_id),
        from_end_time=from_end_time,
        to_end_time=to_end_time,
        limit=limit if limit is not None else DEFAULT_FAILED_LIMIT,
        offset=offset if offset is not None else 0,
    ).and_then(lambda response: parse_response(ResultPage, response)).map(reshape)


# ============================================================================
# Operations
# ============================================================================

async def get_failed_results(
    ctx: Server,
    code: str,
    run_id: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    from_end_time: Optional[str] = None,
    to_end_time: Optional[str] = None
) -> Result:
    """Get failed test results from a project, optionally for one run."""
    logger.info(f"Getting failed results: code={code}, run_id={run_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return fetch_failed_results(qase_client, code, run_id, limit, offset, from_end_time, to_end_time)


async def get_failed_results_detailed(
    ctx: Server,
    code: str,
    run_id: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    from_end_time: Optional[str] = None,
    to_end_time: Optional[str] = None,
    include_steps: bool = False,
    include_attachments: bool = False
) -> Result:
    """Get failed test results together with their test case details.

    Test cases are fetched one at a time. A case that cannot be fetched gets
    a placeholder summary carrying the error instead of failing the request.
    """
    logger.info(f"Getting detailed failed results: code={code}, run_id={run_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]

    def add_case_details(response: Dict[str, Any]) -> Dict[str, Any]:
        summary = response["result"]
        detailed = []
        for failed_result in summary["failedResults"]:
            case_lookup = to_result(qase_client.get_case, code, failed_result["caseId"]).and_then(
                lambda case_response: parse_response(TestCase, case_response)
            )
            if case_lookup.is_ok():
                case_summary = summarize_test_case(case_lookup.value, include_steps)
            else:
                case_summary = {
                    "id": failed_result["caseId"],
                    "title": "Unable to fetch test case details",
                    "description": None,
                    "error": case_lookup.error,
                }
            entry = {**failed_result, "testCase": case_summary}
            if not include_attachments:
                entry.pop("attachments", None)
            detailed.append(entry)

        return {
            "status": True,
            "result": {
                "total": summary["total"],
                "filtered": summary["filtered"],
                "count": len(detailed),
                "failedResultsDetailed": detailed,
            },
        }

    return fetch_failed_results(
        qase_client, code, run_id, limit, offset, from_end_time, to_end_time
    ).map(add_case_details)


async def analyze_run_failures(
    ctx: Server,
    code: str,
    run_id: int,
    include_stacktraces: bool = False,
    categorize_failures: bool = False
) -> Result:
    """Summarize the results of a run and break down its failures.

    Args:
        ctx: MCP server with Qase client in its lifespan context
        code: Project code
        run_id: Run ID
        include_stacktraces: Return full stacktraces instead of availability markers
        categorize_failures: Count failures per stacktrace category

    Returns:
        Result wrapping run statistics, optional categories and per-failure details
    """
    logger.info(f"Analyzing run failures: code={code}, run_id={run_id}, categorize={categorize_failures}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]

    def analyze(page: ResultPage) -> Dict[str, Any]:
        results = page.entities
        by_status = {
            status: [result for result in results if result.status == status]
            for status in ("passed", "failed", "skipped", "blocked")
        }
        total = len(results)
        statistics = {
            "total": total,
            "passed": len(by_status["passed"]),
            "failed": len(by_status["failed"]),
            "skipped": len(by_status["skipped"]),
            "blocked": len(by_status["blocked"]),
            "passRate": f"{len(by_status['passed']) / total * 100:.2f}" if total else "0.00",
        }

        failures = []
        for result in by_status["failed"]:
            if include_stacktraces:
                stacktrace = result.stacktrace
            else:
                stacktrace = "Available" if result.stacktrace else "Not available"
            failures.append({
                "hash": result.hash,
                "caseId": result.case_id,
                "comment": result.comment,
                "stacktrace": stacktrace,
                "timeSpentMs": result.time_spent_ms,
                "endTime": result.end_time,
                "hasAttachments": bool(result.attachments),
                "failedStepsCount": len(result.failed_steps()),
            })

        analysis = {
            "runId": run_id,
            "statistics": statistics,
            "failures": failures,
            "analysisTimestamp": datetime.now(timezone.utc).isoformat(),
        }
        if categorize_failures:
            analysis["failureCategories"] = count_failure_categories(by_status["failed"])
        return {"status": True, "result": analysis}

    return to_result(
        qase_client.get_results,
        code,
        run=str(run_id),
        limit=ANALYSIS_FETCH_LIMIT,
        offset=0,
    ).and_then(lambda response: parse_response(ResultPage, response)).map(analyze)
