"""Qase MCP Server - Shared Step Tools

Shared steps are reusable step sequences referenced from test cases by hash.
"""
from typing import Optional, Dict, Any, List
import logging

from mcp.server.lowlevel import Server
from pydantic import BaseModel, Field

from ..utils.result import Result, to_result
from ..utils.validation import ToolSchema, drop_none

logger = logging.getLogger(__name__)


class SharedStepItem(BaseModel):
    action: str
    expected_result: Optional[str] = None
    data: Optional[str] = None


class SharedStepData(BaseModel):
    title: Optional[str] = None
    action: Optional[str] = None
    expected_result: Optional[str] = None
    data: Optional[str] = None
    steps: Optional[List[SharedStepItem]] = None


class GetSharedStepsSchema(ToolSchema):
    code: str = Field(description="Project code")
    search: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    offset: Optional[int] = Field(default=None, ge=0)


class GetSharedStepSchema(ToolSchema):
    code: str = Field(description="Project code")
    hash: str = Field(description="Shared step hash")


class CreateSharedStepSchema(ToolSchema):
    code: str = Field(description="Project code")
    title: str
    action: Optional[str] = Field(default=None, description="Single-step action (when steps is omitted)")
    expected_result: Optional[str] = None
    data: Optional[str] = None
    steps: Optional[List[SharedStepItem]] = None


class UpdateSharedStepSchema(ToolSchema):
    code: str = Field(description="Project code")
    hash: str = Field(description="Shared step hash")
    step_data: SharedStepData = Field(alias="stepData")


async def get_shared_steps(
    ctx: Server,
    code: str,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None
) -> Result:
    """Get shared steps in a project."""
    logger.info(f"Getting shared steps: code={code}, search={search}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_shared_steps, code, search=search, limit=limit, offset=offset)


async def get_shared_step(ctx: Server, code: str, hash: str) -> Result:
    """Get a shared step by hash."""
    logger.info(f"Getting shared step: code={code}, hash={hash}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_shared_step, code, hash)


async def create_shared_step(ctx: Server, code: str, **step_data) -> Result:
    """Create a shared step."""
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    data = drop_none(step_data)
    logger.info(f"Creating shared step: code={code}, title='{data.get('title')}'")
    return to_result(qase_client.create_shared_step, code, data)


async def update_shared_step(ctx: Server, code: str, hash: str, step_data: Dict[str, Any]) -> Result:
    """Update a shared step."""
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    data = drop_none(step_data)
    logger.info(f"Updating shared step: code={code}, hash={hash}, fields={list(data.keys())}")
    return to_result(qase_client.update_shared_step, code, hash, data)
