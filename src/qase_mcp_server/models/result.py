"""Qase Test Result Data Model

Pydantic models for test run results and the paginated result lists
returned by ``GET /result/{code}``.
"""

from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Step status reported by Qase for a failed step
FAILED_STEP_STATUS = 2


class ResultEntity(BaseModel):
    """A single test run result, identified by its hash within a run."""

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "hash": "2898ba7f3b4d857cec8bee4a852cdc85f8b33132",
                "run_id": 12,
                "case_id": 7,
                "status": "failed",
                "stacktrace": "AssertionError: expected 200, got 500",
                "time_spent_ms": 1520,
            }
        },
    )

    hash: str = Field(description="Result hash")
    case_id: Optional[int] = Field(default=None, description="Test case ID")
    run_id: Optional[int] = Field(default=None, description="Test run ID")
    status: Optional[str] = Field(default=None, description="passed, failed, skipped, blocked, invalid, ...")
    comment: Optional[str] = Field(default=None, description="Result comment")
    stacktrace: Optional[str] = Field(default=None, description="Failure stack trace")
    time_spent_ms: Optional[int] = Field(default=None, description="Execution time in milliseconds")
    end_time: Optional[str] = Field(default=None, description="Completion timestamp")
    attachments: List[Dict[str, Any]] = Field(default_factory=list)
    steps: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("attachments", "steps", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or []

    def failed_steps(self) -> List[Dict[str, Any]]:
        """Steps reported with the failed step status."""
        return [step for step in self.steps if step.get("status") == FAILED_STEP_STATUS]


class ResultPage(BaseModel):
    """Paginated list of results."""

    model_config = ConfigDict(extra="allow")

    total: int = Field(default=0, description="Total results matching the query")
    filtered: int = Field(default=0, description="Results remaining after filters")
    count: int = Field(default=0, description="Results in this page")
    entities: List[ResultEntity] = Field(default_factory=list)

    @field_validator("entities", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or []
