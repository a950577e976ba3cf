"""Qase MCP Server Data Models

This package contains Pydantic models for the Qase payloads the server
inspects (test cases, results, defects).
"""

__all__ = [
    "case",
    "result",
    "defect",
]
