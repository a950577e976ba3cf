"""Qase MCP Server - Test Suite Tools"""
from typing import Optional
import logging

from mcp.server.lowlevel import Server
from pydantic import Field

from ..utils.result import Result, to_result
from ..utils.validation import ToolSchema, drop_none

logger = logging.getLogger(__name__)


class GetSuitesSchema(ToolSchema):
    code: str = Field(description="Project code")
    search: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    offset: Optional[int] = Field(default=None, ge=0)


class GetSuiteSchema(ToolSchema):
    code: str = Field(description="Project code")
    suite_id: int = Field(alias="id", description="Suite ID")


class CreateSuiteSchema(ToolSchema):
    code: str = Field(description="Project code")
    title: str
    description: Optional[str] = None
    preconditions: Optional[str] = None
    parent_id: Optional[int] = Field(default=None, description="Parent suite ID")


class UpdateSuiteSchema(ToolSchema):
    code: str = Field(description="Project code")
    suite_id: int = Field(alias="id", description="Suite ID")
    title: Optional[str] = None
    description: Optional[str] = None
    preconditions: Optional[str] = None
    parent_id: Optional[int] = Field(default=None, description="Parent suite ID")


async def get_suites(
    ctx: Server,
    code: str,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None
) -> Result:
    """Get test suites in a project."""
    logger.info(f"Getting suites: code={code}, search={search}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_suites, code, search=search, limit=limit, offset=offset)


async def get_suite(ctx: Server, code: str, suite_id: int) -> Result:
    """Get a specific test suite."""
    logger.info(f"Getting suite: code={code}, suite_id={suite_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_suite, code, suite_id)


async def create_suite(ctx: Server, code: str, **suite_data) -> Result:
    """Create a test suite, optionally nested under a parent suite."""
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    data = drop_none(suite_data)
    logger.info(f"Creating suite: code={code}, title='{data.get('title')}', parent_id={data.get('parent_id')}")
    return to_result(qase_client.create_suite, code, data)


async def update_suite(ctx: Server, code: str, suite_id: int, **suite_data) -> Result:
    """Update a test suite."""
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    data = drop_none(suite_data)
    logger.info(f"Updating suite: code={code}, suite_id={suite_id}, fields={list(data.keys())}")
    return to_result(qase_client.update_suite, code, suite_id, data)
