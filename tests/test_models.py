# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

import pytest
from pydantic import ValidationError

from coreason_runner.models import ExecutionOutcome, ExecutionRequest, OutcomeKind


def test_execution_request_creation() -> None:
    request = ExecutionRequest.model_validate({"code": "print(1)", "language": "python"})
    assert request.input is None

    request = ExecutionRequest(code="x", language="c", input="stdin text")
    assert request.input == "stdin text"


def test_execution_request_validation_failures() -> None:
    with pytest.raises(ValidationError) as excinfo:
        ExecutionRequest.model_validate({"code": "print(1)"})
    assert "language" in str(excinfo.value)


def test_response_shape() -> None:
    outcome = ExecutionOutcome(
        stdout="hello",
        stderr="",
        exit_code=0,
        execution_time_ms=42,
        kind=OutcomeKind.SUCCESS,
    )
    assert outcome.to_response() == {"stdout": "hello", "stderr": "", "executionTime": 42, "exitCode": 0}


def test_response_carries_engine_error() -> None:
    outcome = ExecutionOutcome(
        exit_code=-1,
        execution_time_ms=3,
        error="Could not start sandbox",
        kind=OutcomeKind.ENGINE_FAULT,
    )
    response = outcome.to_response()

    assert response["error"] == "Could not start sandbox"
    assert response["stdout"] == ""
    assert "kind" not in response


def test_edge_case_values() -> None:
    # Negative exit code (e.g., terminated by signal)
    outcome = ExecutionOutcome(stderr="Killed", exit_code=-9, execution_time_ms=5, kind=OutcomeKind.RUNTIME_ERROR)
    assert outcome.exit_code == -9

    with pytest.raises(ValidationError):
        ExecutionOutcome(exit_code="not-an-int", execution_time_ms=1, kind=OutcomeKind.SUCCESS)  # type: ignore[arg-type]
