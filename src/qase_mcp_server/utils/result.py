"""Result Envelope

Uniform success/error outcome for every Qase API call. Operations compose
client calls with ``map``/``and_then``; an ``Err`` short-circuits the chain
without invoking any further step.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Type, TypeVar, Union

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import QaseError, OperationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNKNOWN_ERROR = "Unknown error"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying the upstream payload."""

    value: T

    def is_ok(self) -> bool:
        return True

    def map(self, func: Callable[[T], Any]) -> "Result":
        return Ok(func(self.value))

    def and_then(self, func: Callable[[T], "Result"]) -> "Result":
        return func(self.value)

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying the error message."""

    error: str

    def is_ok(self) -> bool:
        return False

    def map(self, func: Callable[[Any], Any]) -> "Err":
        return self

    def and_then(self, func: Callable[[Any], "Result"]) -> "Err":
        return self

    def unwrap(self) -> Any:
        raise OperationError(self.error)


Result = Union[Ok[Any], Err]


def error_message(error: BaseException) -> str:
    """Describe an error, falling back to UNKNOWN_ERROR when it carries no text."""
    if isinstance(error, QaseError):
        message = error.message
    else:
        message = str(error)
    return message or UNKNOWN_ERROR


def to_result(func: Callable[..., Any], *args, **kwargs) -> Result:
    """Call a client method and capture its outcome.

    Args:
        func: Bound QaseClient method
        *args: Positional arguments for the method
        **kwargs: Keyword arguments for the method

    Returns:
        Ok(response body) on success, Err(message) when the API call fails
    """
    try:
        return Ok(func(*args, **kwargs))
    except (QaseError, requests.exceptions.RequestException) as e:
        logger.error(f"Qase API call {getattr(func, '__name__', func)} failed: {e}")
        return Err(error_message(e))


def response_body(response: Any) -> Any:
    """The ``result`` field of a Qase response, or an empty record."""
    if isinstance(response, dict):
        return response.get("result") or {}
    return {}


def parse_model(model: Type[BaseModel], payload: Any) -> Result:
    """Validate an upstream payload against a read model.

    A payload that doesn't fit the model becomes ``Err`` naming the invalid
    fields instead of escaping as a pydantic exception.
    """
    try:
        return Ok(model.model_validate(payload))
    except PydanticValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in err.get("loc", ())) or "<root>"
            for err in e.errors()
        )
        logger.error(f"Unexpected {model.__name__} payload from Qase: {e}")
        return Err(f"Unexpected {model.__name__} payload from Qase (invalid fields: {fields})")


def parse_response(model: Type[BaseModel], response: Any) -> Result:
    """Validate the ``result`` field of a Qase response against a read model."""
    return parse_model(model, response_body(response))
