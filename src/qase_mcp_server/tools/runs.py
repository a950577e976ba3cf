"""Qase MCP Server - Test Run Tools"""
from typing import Optional
import logging

from mcp.server.lowlevel import Server
from pydantic import Field

from ..utils.result import Result, to_result
from ..utils.validation import ToolSchema

logger = logging.getLogger(__name__)


class GetRunsSchema(ToolSchema):
    code: str = Field(description="Project code")
    search: Optional[str] = None
    status: Optional[str] = Field(default=None, description="active, complete, abort")
    milestone: Optional[int] = Field(default=None, description="Milestone ID")
    environment: Optional[int] = Field(default=None, description="Environment ID")
    from_start_time: Optional[int] = Field(default=None, alias="fromStartTime", description="Unix timestamp")
    to_start_time: Optional[int] = Field(default=None, alias="toStartTime", description="Unix timestamp")
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    offset: Optional[int] = Field(default=None, ge=0)
    include: Optional[str] = Field(default=None, description="Extra data to include, e.g. 'cases'")


class GetRunSchema(ToolSchema):
    code: str = Field(description="Project code")
    run_id: int = Field(alias="id", description="Run ID")
    include: Optional[str] = Field(default=None, description="Extra data to include, e.g. 'cases'")


async def get_runs(
    ctx: Server,
    code: str,
    search: Optional[str] = None,
    status: Optional[str] = None,
    milestone: Optional[int] = None,
    environment: Optional[int] = None,
    from_start_time: Optional[int] = None,
    to_start_time: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    include: Optional[str] = None
) -> Result:
    """Get test runs in a project."""
    logger.info(f"Getting runs: code={code}, status={status}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(
        qase_client.get_runs,
        code,
        search=search,
        status=status,
        milestone=milestone,
        environment=environment,
        from_start_time=from_start_time,
        to_start_time=to_start_time,
        limit=limit,
        offset=offset,
        include=include,
    )


async def get_run(ctx: Server, code: str, run_id: int, include: Optional[str] = None) -> Result:
    """Get a specific test run."""
    logger.info(f"Getting run: code={code}, run_id={run_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_run, code, run_id, include=include)
