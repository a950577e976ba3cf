"""Qase MCP Server - Project Tools

List, fetch and create Qase projects.
"""
from typing import Optional, Literal
import logging

from mcp.server.lowlevel import Server
from pydantic import Field

from ..utils.result import Result, to_result
from ..utils.validation import ToolSchema, drop_none

logger = logging.getLogger(__name__)


class ListProjectsSchema(ToolSchema):
    limit: Optional[int] = Field(default=None, ge=1, le=100, description="Number of projects to return")
    offset: Optional[int] = Field(default=None, ge=0, description="Number of projects to skip")


class GetProjectSchema(ToolSchema):
    code: str = Field(description="Project code, e.g. DEMO")


class CreateProjectSchema(ToolSchema):
    code: str = Field(min_length=2, max_length=10, description="Project code (2-10 latin letters)")
    title: str = Field(description="Project title")
    description: Optional[str] = Field(default=None, description="Project description")
    access: Optional[Literal["all", "group", "none"]] = Field(
        default=None,
        description="Who can see the project"
    )
    group: Optional[str] = Field(default=None, description="Member group hash when access is 'group'")


async def list_projects(
    ctx: Server,
    limit: Optional[int] = None,
    offset: Optional[int] = None
) -> Result:
    """Get all projects visible to the API token."""
    logger.info(f"Listing projects: limit={limit}, offset={offset}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_projects, limit=limit, offset=offset)


async def get_project(ctx: Server, code: str) -> Result:
    """Get a project by its code."""
    logger.info(f"Getting project: code={code}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_project, code)


async def create_project(
    ctx: Server,
    code: str,
    title: str,
    description: Optional[str] = None,
    access: Optional[str] = None,
    group: Optional[str] = None
) -> Result:
    """Create a new project."""
    logger.info(f"Creating project: code={code}, title='{title}'")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    data = drop_none({
        "code": code,
        "title": title,
        "description": description,
        "access": access,
        "group": group,
    })
    return to_result(qase_client.create_project, data)
