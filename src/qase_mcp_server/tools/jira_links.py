"""Qase MCP Server - Jira Link Tools

Link Qase test cases to Jira issues through Qase's external-issue
integration, and look up the cases linked to an issue.
"""
from typing import Optional, Literal
import logging

from mcp.server.lowlevel import Server
from pydantic import Field

from ..utils.result import Result, to_result
from ..utils.validation import ToolSchema

logger = logging.getLogger(__name__)

JiraType = Literal["jira-cloud", "jira-server"]


class LinkTestCaseToJiraSchema(ToolSchema):
    code: str = Field(description="Qase project code")
    case_id: int = Field(alias="caseId", description="Qase test case ID")
    jira_issue_key: str = Field(alias="jiraIssueKey", description="Jira issue key (e.g., PROJ-123)")
    jira_type: JiraType = Field(default="jira-cloud", alias="jiraType", description="Jira integration type")


class GetTestCasesLinkedToJiraSchema(ToolSchema):
    code: str = Field(description="Qase project code")
    jira_issue_key: str = Field(alias="jiraIssueKey", description="Jira issue key (e.g., PROJ-123)")
    jira_type: JiraType = Field(default="jira-cloud", alias="jiraType", description="Jira integration type")
    limit: Optional[int] = Field(default=None, description="Number of results per page")
    offset: Optional[int] = Field(default=None, description="Offset for pagination")


async def link_test_case_to_jira(
    ctx: Server,
    code: str,
    case_id: int,
    jira_issue_key: str,
    jira_type: str = "jira-cloud"
) -> Result:
    """Attach a Jira issue to a test case."""
    logger.info(f"Linking test case to Jira: code={code}, case_id={case_id}, issue={jira_issue_key} ({jira_type})")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    data = {
        "type": jira_type,
        "links": [
            {
                "case_id": case_id,
                "external_issues": [jira_issue_key],
            }
        ],
    }
    return to_result(qase_client.case_attach_external_issue, code, data)


async def get_test_cases_linked_to_jira(
    ctx: Server,
    code: str,
    jira_issue_key: str,
    jira_type: str = "jira-cloud",
    limit: Optional[int] = None,
    offset: Optional[int] = None
) -> Result:
    """Get test cases linked to a Jira issue."""
    logger.info(f"Getting test cases linked to Jira: code={code}, issue={jira_issue_key} ({jira_type})")
    qase_client = ctx.request_context.lifespan_context["qase_client"]
    return to_result(
        qase_client.get_cases,
        code,
        external_issues_type=jira_type,
        external_issues_ids=[jira_issue_key],
        limit=limit,
        offset=offset,
    )
