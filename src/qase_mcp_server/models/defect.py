"""Qase Defect Data Model

Pydantic model for defects as returned by ``GET /defect/{code}/{id}``.
"""

from typing import Optional, List, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Defect(BaseModel):
    """Qase defect (read shape)."""

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "id": 5,
                "title": "Checkout returns 500 for saved cards",
                "actual_result": "Server error page",
                "severity": "major",
                "status": "open",
            }
        },
    )

    id: int = Field(description="Defect ID")
    title: Optional[str] = Field(default=None, description="Defect title")
    actual_result: Optional[str] = Field(default=None, description="Observed behaviour")
    # Qase returns severity as a label on read and takes an integer on write
    severity: Optional[Any] = Field(default=None, description="Severity")
    status: Optional[str] = Field(default=None, description="open, in_progress, resolved, invalid")
    milestone_id: Optional[int] = Field(default=None, description="Milestone ID")
    tags: List[Any] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or []
