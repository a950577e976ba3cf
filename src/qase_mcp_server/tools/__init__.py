"""Qase MCP Server Tools

This package contains all MCP tool implementations for Qase integration.
"""

__all__ = [
    "projects",
    "cases",
    "results",
    "runs",
    "plans",
    "suites",
    "shared_steps",
    "defects",
    "jira_links",
    "search",
    "failed_results",
]
