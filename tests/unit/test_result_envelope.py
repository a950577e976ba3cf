"""Unit tests for the result envelope and HTTP error mapping."""
from unittest.mock import Mock

import pytest
import requests

from qase_mcp_server.utils.errors import (
    ConflictError,
    OperationError,
    PermissionError,
    QaseError,
    RateLimitError,
    ServerError,
    ValidationError,
    handle_http_error,
)
from qase_mcp_server.models.defect import Defect
from qase_mcp_server.utils.result import UNKNOWN_ERROR, Err, Ok, parse_model, parse_response, to_result


def test_to_result_success():
    result = to_result(lambda code: {"status": True, "result": code}, "DEMO")

    assert result == Ok({"status": True, "result": "DEMO"})
    assert result.is_ok()


def test_to_result_captures_qase_error():
    failing = Mock(side_effect=ConflictError("HTTP 409: Project code already exists"))

    result = to_result(failing)

    assert result == Err("HTTP 409: Project code already exists")


def test_to_result_captures_network_error():
    failing = Mock(side_effect=requests.exceptions.ConnectionError("Connection refused"))

    assert to_result(failing) == Err("Connection refused")


def test_to_result_fallback_message():
    failing = Mock(side_effect=QaseError(""))

    assert to_result(failing) == Err(UNKNOWN_ERROR)


def test_to_result_propagates_programming_errors():
    failing = Mock(side_effect=KeyError("status"))

    with pytest.raises(KeyError):
        to_result(failing)


def test_err_short_circuits():
    step = Mock()

    result = Err("boom").map(step).and_then(step)

    assert result == Err("boom")
    step.assert_not_called()
    with pytest.raises(OperationError):
        result.unwrap()


def test_ok_chains():
    result = Ok(2).map(lambda x: x + 1).and_then(lambda x: Ok(x * 10))

    assert result.unwrap() == 30
    assert Ok(1).and_then(lambda x: Err("stop")).map(lambda x: x + 1) == Err("stop")


@pytest.mark.parametrize("status_code,error_class", [
    (400, ValidationError),
    (403, PermissionError),
    (409, ConflictError),
    (422, ValidationError),
    (429, RateLimitError),
    (502, ServerError),
])
def test_handle_http_error(status_code, error_class):
    error = handle_http_error(status_code, '{"status": false, "errorMessage": "Nope"}')

    assert type(error) is error_class
    assert "Nope" in error.message
    assert error.details["status_code"] == status_code


def test_handle_http_error_unexpected_status():
    error = handle_http_error(418, "I'm a teapot")

    assert type(error) is QaseError
    assert error.message == "HTTP 418: Unexpected error - I'm a teapot"


def test_parse_model_ok():
    result = parse_model(Defect, {"id": 5, "title": "Broken", "tags": None})

    assert isinstance(result, Ok)
    assert result.value.tags == []


def test_parse_model_mismatch_is_err():
    result = parse_model(Defect, {"title": "No id", "milestone_id": "soon"})

    assert isinstance(result, Err)
    assert result.error.startswith("Unexpected Defect payload from Qase")
    assert "id" in result.error
    assert "milestone_id" in result.error


def test_parse_response_without_result_field():
    result = parse_response(Defect, {"status": True})

    assert isinstance(result, Err)
    assert "invalid fields: id" in result.error
