"""Qase MCP Server - Test Result Tools

This module contains MCP tools for Qase test run results:
- Listing and retrieval
- Creation (single and bulk) and update
- Status filtering with per-case deduplication
"""
from typing import Optional, Dict, Any, List, Literal
import logging

from mcp.server.lowlevel import Server
from pydantic import Field

from ..client import QaseClient
from ..models.result import ResultEntity, ResultPage
from ..utils.result import Result, parse_response, to_result
from ..utils.validation import ToolSchema

logger = logging.getLogger(__name__)

# Page size fetched before deduplicating; caller limit/offset apply afterwards
UNIQUE_FETCH_LIMIT = 100

ResultStatus = Literal["passed", "failed", "blocked", "skipped", "invalid", "in_progress"]


# ============================================================================
# Schemas
# ============================================================================

class GetResultsSchema(ToolSchema):
    code: str = Field(description="Project code")
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    offset: Optional[int] = Field(default=None, ge=0)
    status: Optional[ResultStatus] = None
    run: Optional[int] = Field(default=None, description="Run ID")
    case_id: Optional[int] = Field(default=None, alias="caseId")
    from_: Optional[str] = Field(default=None, alias="from", description="From end time, Y-m-d H:i:s")
    to: Optional[str] = Field(default=None, description="To end time, Y-m-d H:i:s")


class GetResultSchema(ToolSchema):
    code: str = Field(description="Project code")
    hash: str = Field(description="Result hash")


class CreateResultSchema(ToolSchema):
    code: str = Field(description="Project code")
    run_id: int = Field(alias="id", description="Run ID")
    result: Dict[str, Any] = Field(description="Result fields, e.g. case_id, status, comment, stacktrace")


class CreateResultBulkSchema(ToolSchema):
    code: str = Field(description="Project code")
    run_id: int = Field(alias="id", description="Run ID")
    results: Dict[str, Any] = Field(description='Bulk payload, e.g. {"results": [...]}')


class UpdateResultSchema(ToolSchema):
    code: str = Field(description="Project code")
    run_id: int = Field(alias="id", description="Run ID")
    hash: str = Field(description="Result hash")
    result: Dict[str, Any] = Field(description="Result fields to update")


class GetResultsByStatusSchema(ToolSchema):
    code: str = Field(description="Project code")
    run_id: int = Field(alias="runId", description="Run ID")
    status: ResultStatus = Field(default="failed")
    unique: bool = Field(
        default=False,
        description="Keep only the latest result per test case"
    )
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    offset: Optional[int] = Field(default=None, ge=0)
    from_: Optional[str] = Field(default=None, alias="from", description="From end time, Y-m-d H:i:s")
    to: Optional[str] = Field(default=None, description="To end time, Y-m-d H:i:s")


# ============================================================================
# Deduplication
# ============================================================================

def unique_by_case(entities: List[ResultEntity]) -> List[ResultEntity]:
    """Keep one result per case ID: the one appearing last in API order.

    Scans from last to first so the most recent result for each case wins,
    then restores the original relative order of the kept results. Results
    without a case ID can't be matched to each other and are all kept.
    """
    seen = set()
    kept = []
    for entity in reversed(entities):
        if entity.case_id is not None:
            if entity.case_id in seen:
                continue
            seen.add(entity.case_id)
        kept.append(entity)
    kept.reverse()
    return kept


def fetch_results_by_status(
    qase_client: QaseClient,
    code: str,
    run_id: int,
    status: str = "failed",
    unique: bool = False,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    from_: Optional[str] = None,
    to: Optional[str] = None
) -> Result:
    """Fetch results of a run with the given status.

    Without ``unique`` the caller's limit/offset go straight to the API. With
    ``unique`` a fixed page of 100 results is fetched from offset 0,
    deduplicated by case ID, and limit/offset are applied to the
    deduplicated list. ``filtered`` then reports the number of unique results.
    """
    fetch = to_result(
        qase_client.get_results,
        code,
        status=status,
        run=str(run_id),
        from_end_time=from_,
        to_end_time=to,
        limit=UNIQUE_FETCH_LIMIT if unique else limit,
        offset=0 if unique else offset,
    )
    if not unique:
        return fetch

    def deduplicate(page: ResultPage) -> Dict[str, Any]:
        unique_results = unique_by_case(page.entities)
        start = offset or 0
        end = start + limit if limit is not None else None
        selected = unique_results[start:end]
        logger.debug(
            f"Deduplicated {len(page.entities)} {status} results in run {run_id} "
            f"to {len(unique_results)}, returning {len(selected)}"
        )
        return {
            "status": True,
            "result": {
                "total": page.total,
                "filtered": len(unique_results),
                "count": len(selected),
                "entities": [
                    entity.model_dump(mode="json", exclude_unset=True) for entity in selected
                ],
            },
        }

    return fetch.and_then(lambda response: parse_response(ResultPage, response)).map(deduplicate)


# ============================================================================
# Operations
# ============================================================================

async def get_results(
    ctx: Server,
    code: str,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    status: Optional[str] = None,
    run: Optional[int] = None,
    case_id: Optional[int] = None,
    from_: Optional[str] = None,
    to: Optional[str] = None
) -> Result:
    """Get test run results for a project."""
    logger.info(f"Getting results: code={code}, status={status}, run={run}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(
        qase_client.get_results,
        code,
        status=status,
        run=None if run is None else str(run),
        case_id=None if case_id is None else str(case_id),
        from_end_time=from_,
        to_end_time=to,
        limit=limit,
        offset=offset,
    )


async def get_result(ctx: Server, code: str, hash: str) -> Result:
    """Get a test run result by hash."""
    logger.info(f"Getting result: code={code}, hash={hash}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_result, code, hash)


async def create_result(ctx: Server, code: str, run_id: int, result: Dict[str, Any]) -> Result:
    """Create a result in a run."""
    logger.info(f"Creating result: code={code}, run_id={run_id}, case_id={result.get('case_id')}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.create_result, code, run_id, result)


async def create_result_bulk(ctx: Server, code: str, run_id: int, results: Dict[str, Any]) -> Result:
    """Create several results in a run."""
    logger.info(f"Creating results in bulk: code={code}, run_id={run_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.create_result_bulk, code, run_id, results)


async def update_result(
    ctx: Server,
    code: str,
    run_id: int,
    hash: str,
    result: Dict[str, Any]
) -> Result:
    """Update an existing result."""
    logger.info(f"Updating result: code={code}, run_id={run_id}, hash={hash}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.update_result, code, run_id, hash, result)


async def get_results_by_status(
    ctx: Server,
    code: str,
    run_id: int,
    status: str = "failed",
    unique: bool = False,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    from_: Optional[str] = None,
    to: Optional[str] = None
) -> Result:
    """Get results of a run filtered by status, optionally one per test case."""
    logger.info(f"Getting {status} results: code={code}, run_id={run_id}, unique={unique}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return fetch_results_by_status(
        qase_client,
        code,
        run_id,
        status=status,
        unique=unique,
        limit=limit,
        offset=offset,
        from_=from_,
        to=to,
    )
