"""Qase Test Case Data Model

Pydantic model for Qase test cases as returned by ``GET /case/{code}/{id}``.
"""

from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field, field_validator


class TestCase(BaseModel):
    """Qase test case (read shape)."""

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "id": 42,
                "title": "Login with valid credentials",
                "suite_id": 3,
                "severity": 2,
                "params": {"browser": ["chrome", "firefox"]},
            }
        },
    )

    __test__ = False  # not a pytest test class

    id: Optional[int] = Field(default=None, description="Case ID, unique within the project")
    title: Optional[str] = Field(default=None, description="Case title")
    description: Optional[str] = Field(default=None, description="Case description")
    preconditions: Optional[str] = Field(default=None, description="Preconditions")
    postconditions: Optional[str] = Field(default=None, description="Postconditions")

    suite_id: Optional[int] = Field(default=None, description="Parent suite ID")
    milestone_id: Optional[int] = Field(default=None, description="Milestone ID")

    severity: Optional[int] = Field(default=None, description="Severity enumeration value")
    priority: Optional[int] = Field(default=None, description="Priority enumeration value")
    type: Optional[int] = Field(default=None, description="Type enumeration value")
    behavior: Optional[int] = Field(default=None, description="Behavior enumeration value")
    automation: Optional[int] = Field(default=None, description="Automation enumeration value")
    status: Optional[int] = Field(default=None, description="Status enumeration value")

    params: Dict[str, List[Any]] = Field(
        default_factory=dict,
        description="Parameter name to ordered list of values"
    )
    steps: List[Dict[str, Any]] = Field(default_factory=list, description="Ordered steps")

    @field_validator("params", mode="before")
    @classmethod
    def normalize_params(cls, v: Any) -> Any:
        """Qase reports a case without parameters as ``[]`` or ``null``."""
        if not v:
            return {}
        return v

    @field_validator("steps", mode="before")
    @classmethod
    def normalize_steps(cls, v: Any) -> Any:
        return v or []
