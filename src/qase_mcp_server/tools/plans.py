"""Qase MCP Server - Test Plan Tools"""
from typing import Optional, List
import logging

from mcp.server.lowlevel import Server
from pydantic import Field

from ..utils.result import Result, to_result
from ..utils.validation import ToolSchema, drop_none

logger = logging.getLogger(__name__)


class GetPlansSchema(ToolSchema):
    code: str = Field(description="Project code")
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    offset: Optional[int] = Field(default=None, ge=0)


class GetPlanSchema(ToolSchema):
    code: str = Field(description="Project code")
    plan_id: int = Field(alias="id", description="Plan ID")


class CreatePlanSchema(ToolSchema):
    code: str = Field(description="Project code")
    title: str
    description: Optional[str] = None
    cases: List[int] = Field(description="Test case IDs in the plan")


class UpdatePlanSchema(ToolSchema):
    code: str = Field(description="Project code")
    plan_id: int = Field(alias="id", description="Plan ID")
    title: Optional[str] = None
    description: Optional[str] = None
    cases: Optional[List[int]] = Field(default=None, description="Replaces the plan's case list")


async def get_plans(
    ctx: Server,
    code: str,
    limit: Optional[int] = None,
    offset: Optional[int] = None
) -> Result:
    """Get test plans in a project."""
    logger.info(f"Getting plans: code={code}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_plans, code, limit=limit, offset=offset)


async def get_plan(ctx: Server, code: str, plan_id: int) -> Result:
    """Get a specific test plan."""
    logger.info(f"Getting plan: code={code}, plan_id={plan_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_plan, code, plan_id)


async def create_plan(
    ctx: Server,
    code: str,
    title: str,
    cases: List[int],
    description: Optional[str] = None
) -> Result:
    """Create a test plan."""
    logger.info(f"Creating plan: code={code}, title='{title}', cases={len(cases)}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    data = drop_none({"title": title, "description": description, "cases": cases})
    return to_result(qase_client.create_plan, code, data)


async def update_plan(ctx: Server, code: str, plan_id: int, **plan_data) -> Result:
    """Update a test plan."""
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    data = drop_none(plan_data)
    logger.info(f"Updating plan: code={code}, plan_id={plan_id}, fields={list(data.keys())}")
    return to_result(qase_client.update_plan, code, plan_id, data)
