# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

"""Data models for execution requests and outcomes."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

TIMEOUT_EXIT_CODE = 124
ENGINE_FAULT_EXIT_CODE = -1

Phase = Literal["compile", "run"]


class OutcomeKind(str, Enum):
    """Classification of a finished phase or request."""

    SUCCESS = "success"
    COMPILE_ERROR = "compile_error"
    RUNTIME_ERROR = "runtime_error"
    TIMEOUT = "timeout"
    OUTPUT_LIMIT_EXCEEDED = "output_limit_exceeded"
    ENGINE_FAULT = "engine_fault"


class ExecutionRequest(BaseModel):
    """A request to compile (if needed) and run untrusted code.

    Attributes:
        code: The source text to execute.
        language: Identifier of the target language (see LanguageRegistry).
        input: Optional text fed to the program's stdin.
    """

    code: str
    language: str
    input: str | None = None


class OutputChunk(BaseModel):
    """One piece of output as it arrived from the sandbox."""

    stream: Literal["stdout", "stderr"]
    data: bytes


class PhaseResult(BaseModel):
    """Outcome of a single compile or run phase."""

    kind: OutcomeKind
    stdout: str
    stderr: str
    exit_code: int
    elapsed_ms: int


class ExecutionOutcome(BaseModel):
    """Represents the final outcome of an execution request.

    Attributes:
        stdout: Trimmed standard output of the program.
        stderr: Trimmed standard error; compile failures carry a "Compilation Error:" prefix.
        exit_code: Process exit code. 124 denotes a timeout.
        execution_time_ms: Wall-clock time spent on the request in milliseconds.
        error: Engine-level failure, distinct from program failure.
        kind: Classification of the outcome.
    """

    model_config = ConfigDict(populate_by_name=True)

    stdout: str = ""
    stderr: str = ""
    exit_code: int = Field(serialization_alias="exitCode")
    execution_time_ms: int = Field(serialization_alias="executionTime")
    error: str | None = None
    kind: OutcomeKind

    def to_response(self) -> dict[str, Any]:
        """Wire shape consumed by the request/response boundary."""
        return self.model_dump(by_alias=True, exclude={"kind"}, exclude_none=True)
