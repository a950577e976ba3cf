"""Qase MCP Server - Defect Tools

This module contains MCP tools for Qase defects:
- CRUD and status changes
- Linking failed test results of a run to a defect
"""
from typing import Optional, Dict, Any, List, Literal
import logging

from mcp.server.lowlevel import Server
from pydantic import BaseModel, Field

from ..client import QaseClient
from ..models.defect import Defect
from ..models.result import ResultPage
from ..utils.result import Result, parse_model, parse_response, response_body, to_result
from ..utils.validation import ToolSchema, drop_none
from .results import fetch_results_by_status

logger = logging.getLogger(__name__)

LinkType = Literal["related", "blocks", "caused_by"]


# ============================================================================
# Schemas
# ============================================================================

class DefectCreate(BaseModel):
    title: str
    actual_result: str
    severity: int
    milestone_id: Optional[int] = None
    attachments: Optional[List[str]] = Field(default=None, description="Attachment hashes")
    custom_field: Optional[Dict[str, str]] = Field(default=None, description="Custom field ID to value")
    tags: Optional[List[str]] = None


class GetDefectsSchema(ToolSchema):
    code: str = Field(description="Project code")
    status: Optional[Literal["open", "resolved", "in_progress", "invalid"]] = None
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    offset: Optional[int] = Field(default=None, ge=0)


class GetDefectSchema(ToolSchema):
    code: str = Field(description="Project code")
    defect_id: int = Field(alias="id", description="Defect ID")


class CreateDefectSchema(ToolSchema):
    code: str = Field(description="Project code")
    defect: DefectCreate


class UpdateDefectSchema(ToolSchema):
    code: str = Field(description="Project code")
    defect_id: int = Field(alias="id", description="Defect ID")
    title: Optional[str] = None
    actual_result: Optional[str] = None
    severity: Optional[int] = None
    milestone_id: Optional[int] = None
    attachments: Optional[List[str]] = None
    custom_field: Optional[Dict[str, str]] = None
    tags: Optional[List[str]] = None


class DeleteDefectSchema(ToolSchema):
    code: str = Field(description="Project code")
    defect_id: int = Field(alias="id", description="Defect ID")


class ResolveDefectSchema(ToolSchema):
    code: str = Field(description="Project code")
    defect_id: int = Field(alias="id", description="Defect ID")


class UpdateDefectStatusSchema(ToolSchema):
    code: str = Field(description="Project code")
    defect_id: int = Field(alias="id", description="Defect ID")
    status: Literal["in_progress", "resolved", "invalid"]


class LinkFailedTestsToDefectSchema(ToolSchema):
    code: str = Field(description="Project code")
    defect_id: int = Field(alias="defectId", description="Defect to link the failures to")
    run_id: int = Field(alias="runId", description="Run whose failed results are linked")
    case_ids: Optional[List[int]] = Field(
        default=None,
        alias="caseIds",
        description="Only link failed results of these test cases"
    )
    link_type: LinkType = Field(default="related", alias="linkType")


# ============================================================================
# CRUD operations
# ============================================================================

async def get_defects(
    ctx: Server,
    code: str,
    status: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None
) -> Result:
    """Get defects in a project."""
    logger.info(f"Getting defects: code={code}, status={status}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_defects, code, status=status, limit=limit, offset=offset)


async def get_defect(ctx: Server, code: str, defect_id: int) -> Result:
    """Get a specific defect."""
    logger.info(f"Getting defect: code={code}, defect_id={defect_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.get_defect, code, defect_id)


async def create_defect(ctx: Server, code: str, defect: Dict[str, Any]) -> Result:
    """Create a defect."""
    logger.info(f"Creating defect: code={code}, title='{defect.get('title')}'")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.create_defect, code, drop_none(defect))


async def update_defect(ctx: Server, code: str, defect_id: int, **defect_data) -> Result:
    """Update a defect."""
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    data = drop_none(defect_data)
    logger.info(f"Updating defect: code={code}, defect_id={defect_id}, fields={list(data.keys())}")
    return to_result(qase_client.update_defect, code, defect_id, data)


async def delete_defect(ctx: Server, code: str, defect_id: int) -> Result:
    """Delete a defect."""
    logger.info(f"Deleting defect: code={code}, defect_id={defect_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.delete_defect, code, defect_id)


async def resolve_defect(ctx: Server, code: str, defect_id: int) -> Result:
    """Mark a defect as resolved."""
    logger.info(f"Resolving defect: code={code}, defect_id={defect_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.resolve_defect, code, defect_id)


async def update_defect_status(ctx: Server, code: str, defect_id: int, status: str) -> Result:
    """Set the status of a defect."""
    logger.info(f"Updating defect status: code={code}, defect_id={defect_id}, status={status}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(qase_client.update_defect_status, code, defect_id, status)


# ============================================================================
# Linking failed results to a defect
# ============================================================================

def defect_link_note(defect: Defect, link_type: str) -> str:
    note = f"Linked to defect #{defect.id}"
    if defect.title:
        note += f": {defect.title}"
    return f"{note} ({link_type})"


def _link_results(
    qase_client: QaseClient,
    code: str,
    run_id: int,
    defect: Defect,
    page: ResultPage,
    case_ids: Optional[List[int]],
    link_type: str
) -> Dict[str, Any]:
    """Mark each failed result as a defect, one at a time.

    A failed update is recorded and the batch continues.
    """
    entities = page.entities
    if case_ids:
        wanted = set(case_ids)
        entities = [entity for entity in entities if entity.case_id in wanted]

    summary = {
        "defectId": defect.id,
        "defectTitle": defect.title,
        "runId": run_id,
        "linkType": link_type,
    }

    if not entities:
        scope = " for the requested case IDs" if case_ids else ""
        message = f"No failed test results found in run {run_id}{scope}; nothing linked to defect #{defect.id}"
        logger.info(message)
        return {
            "status": True,
            "result": {
                **summary,
                "linkedTestsCount": 0,
                "failedLinksCount": 0,
                "linkedTests": [],
                "failedLinks": [],
                "message": message,
            },
        }

    note = defect_link_note(defect, link_type)
    linked = []
    failed = []
    for entity in entities:
        comment = f"{entity.comment}\n\n{note}" if entity.comment else note
        outcome = to_result(
            qase_client.update_result,
            code,
            run_id,
            entity.hash,
            {"defect": True, "comment": comment},
        )
        if outcome.is_ok():
            linked.append({"hash": entity.hash, "caseId": entity.case_id})
        else:
            logger.warning(f"Could not link result {entity.hash} to defect #{defect.id}: {outcome.error}")
            failed.append({"hash": entity.hash, "caseId": entity.case_id, "error": outcome.error})

    message = f"Linked {len(linked)} of {len(entities)} failed test results in run {run_id} to defect #{defect.id}"
    if failed:
        message += f"; {len(failed)} failed"
    logger.info(message)

    return {
        "status": True,
        "result": {
            **summary,
            "linkedTestsCount": len(linked),
            "failedLinksCount": len(failed),
            "linkedTests": linked,
            "failedLinks": failed,
            "message": message,
        },
    }


async def link_failed_tests_to_defect(
    ctx: Server,
    code: str,
    defect_id: int,
    run_id: int,
    case_ids: Optional[List[int]] = None,
    link_type: str = "related"
) -> Result:
    """Link the failed results of a run to an existing defect.

    Fetches the defect, then the latest failed result per test case in the
    run (optionally limited to ``case_ids``), and flags each result as a
    defect with a note appended to its comment.

    Args:
        ctx: MCP server with Qase client in its lifespan context
        code: Project code
        defect_id: Defect ID
        run_id: Run ID
        case_ids: Optional test case IDs to restrict linking to
        link_type: Relationship recorded in the note

    Returns:
        Ok with linked/failed counts as long as the defect and run lookups
        succeed; Err if either lookup fails
    """
    logger.info(f"Linking failed tests to defect: code={code}, defect_id={defect_id}, run_id={run_id}")
    qase_client = ctx.request_context.lifespan_context["qase_client"]

    def parse_defect(defect_response: Dict[str, Any]) -> Result:
        body = response_body(defect_response)
        if isinstance(body, dict):
            body = {"id": defect_id, **body}
        return parse_model(Defect, body)

    def link_run_failures(defect: Defect) -> Result:
        return (
            fetch_results_by_status(qase_client, code, run_id, status="failed", unique=True)
            .and_then(lambda results_response: parse_response(ResultPage, results_response))
            .map(lambda page: _link_results(qase_client, code, run_id, defect, page, case_ids, link_type))
        )

    return (
        to_result(qase_client.get_defect, code, defect_id)
        .and_then(parse_defect)
        .and_then(link_run_failures)
    )
