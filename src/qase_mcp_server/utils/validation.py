"""Qase Tool Argument Validation Utilities

Tool schemas are plain pydantic models. This module holds the two consumers
of those models: the argument validator used before dispatch, and the JSON
schema exporter used to advertise the tool catalog.
"""
import logging
from typing import Dict, Any, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from .errors import ToolValidationError

logger = logging.getLogger(__name__)


class ToolSchema(BaseModel):
    """Base for tool input schemas.

    Fields are declared in snake_case; camelCase aliases are the argument
    names advertised to MCP clients. Either spelling is accepted.
    """

    model_config = ConfigDict(populate_by_name=True)


def drop_none(value: Any) -> Any:
    """Recursively remove None entries so absent fields stay absent upstream."""
    if isinstance(value, dict):
        return {key: drop_none(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [drop_none(item) for item in value]
    return value


def format_validation_errors(error: PydanticValidationError) -> List[Tuple[str, str]]:
    """Flatten pydantic errors into (field path, reason) pairs.

    Field paths use the argument names clients send (aliases), joined with
    dots; list indices appear as path segments, e.g. ``testCase.steps.0.action``.
    """
    pairs = []
    for err in error.errors():
        path = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        pairs.append((path, err.get("msg", "Invalid value")))
    return pairs


def validate_arguments(
    tool_name: str,
    schema: Type[BaseModel],
    arguments: Optional[Dict[str, Any]]
) -> BaseModel:
    """Validate a tool argument bag against its schema.

    Args:
        tool_name: Tool being invoked (used in the error message)
        schema: Pydantic model describing the tool input
        arguments: Raw arguments from the MCP request (may be None)

    Returns:
        Validated schema instance with defaults applied

    Raises:
        ToolValidationError: If any field is missing or invalid
    """
    try:
        return schema.model_validate(arguments or {})
    except PydanticValidationError as e:
        errors = format_validation_errors(e)
        logger.warning(f"Validation failed for {tool_name}: {errors}")
        raise ToolValidationError(tool_name, errors) from e


def tool_input_schema(schema: Type[BaseModel]) -> Dict[str, Any]:
    """Export a tool schema as JSON Schema using client-facing argument names."""
    json_schema = schema.model_json_schema(by_alias=True)
    json_schema.pop("title", None)
    return json_schema
