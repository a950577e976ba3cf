"""Qase MCP Server - QQL Search Tool

Qase Query Language examples:
    entity = "defect" and status = "open"
    entity = "case" and project = "DEMO" and title ~ "auth" order by id desc
    entity = "result" and status = "failed" and timeSpent > 5000
"""
import logging

from mcp.server.lowlevel import Server
from pydantic import Field

from ..utils.result import Result, to_result
from ..utils.validation import ToolSchema

logger = logging.getLogger(__name__)


class QQLSearchSchema(ToolSchema):
    query: str = Field(min_length=1, max_length=1000, description="Expression in Qase Query Language")
    limit: int = Field(default=10, ge=1, le=100, description="Number of entities in result set")
    offset: int = Field(default=0, ge=0, le=100000, description="Number of entities to skip")


async def qql_search(ctx: Server, query: str, limit: int = 10, offset: int = 0) -> Result:
    """Search across Qase entities with a QQL expression."""
    logger.info(f"QQL search: query='{query}', limit={limit}, offset={offset}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.search, query, limit=limit, offset=offset)
