# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

import hashlib
import re

from pydantic import BaseModel, Field

from coreason_runner.config import RunnerConfig
from coreason_runner.exceptions import (
    CodeTooLargeError,
    EmptyCodeError,
    RequestValidationError,
    UnknownLanguageError,
)
from coreason_runner.languages import LanguageRegistry
from coreason_runner.models import ExecutionRequest
from coreason_runner.utils.logger import logger

# Telemetry only. Isolation is enforced by the container, not by these.
DANGEROUS_PATTERNS: dict[str, re.Pattern[str]] = {
    "eval": re.compile(r"eval\s*\(", re.IGNORECASE),
    "exec": re.compile(r"exec\s*\(", re.IGNORECASE),
    "system": re.compile(r"system\s*\(", re.IGNORECASE),
    "import_os": re.compile(r"__import__\s*\(\s*['\"]os['\"]\s*\)", re.IGNORECASE),
    "subprocess": re.compile(r"subprocess", re.IGNORECASE),
}

_ERRORS: dict[str, type[RequestValidationError]] = {
    EmptyCodeError.kind: EmptyCodeError,
    CodeTooLargeError.kind: CodeTooLargeError,
    UnknownLanguageError.kind: UnknownLanguageError,
}


class ValidationResult(BaseModel):
    """Outcome of validating an ExecutionRequest.

    Attributes:
        error: The failure kind (EmptyCode, CodeTooLarge, UnknownLanguage), or None.
        message: Client-facing description of the failure.
        code_hash: SHA-256 of the submitted code, for audit logging.
        flags: Names of conspicuous patterns found in the code. Never blocking.
    """

    error: str | None = None
    message: str | None = None
    code_hash: str = ""
    flags: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        """Raise the matching RequestValidationError if validation failed."""
        if self.error is not None:
            raise _ERRORS[self.error](self.message or self.error)


class RequestValidator:
    """
    Cheap shape checks run before any sandbox process exists.
    """

    def __init__(self, registry: LanguageRegistry, config: RunnerConfig | None = None):
        self.registry = registry
        self.config = config or RunnerConfig()

    def validate(self, request: ExecutionRequest) -> ValidationResult:
        code = request.code
        code_hash = hashlib.sha256(code.encode("utf-8")).hexdigest()

        if not code.strip():
            return ValidationResult(error=EmptyCodeError.kind, message="Code must be a non-empty string")

        size = len(code.encode("utf-8"))
        if size > self.config.max_code_size:
            return ValidationResult(
                error=CodeTooLargeError.kind,
                message=f"Code size exceeds maximum limit of {self.config.max_code_size} bytes",
                code_hash=code_hash,
            )

        if request.language not in self.registry:
            return ValidationResult(
                error=UnknownLanguageError.kind,
                message=(
                    f"Invalid language: {request.language}. "
                    f"Supported languages: {', '.join(self.registry.languages())}"
                ),
                code_hash=code_hash,
            )

        flags = scan_dangerous_patterns(code)
        for flag in flags:
            logger.warning(f"Potentially dangerous code pattern detected: {flag}")

        logger.info(
            "Validated execution request",
            language=request.language,
            code_hash=code_hash,
            code_length=size,
        )
        return ValidationResult(code_hash=code_hash, flags=flags)


def scan_dangerous_patterns(code: str) -> list[str]:
    """Return the names of conspicuous patterns present in `code`."""
    return [name for name, pattern in DANGEROUS_PATTERNS.items() if pattern.search(code)]
