# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

import time

from coreason_runner.models import ENGINE_FAULT_EXIT_CODE, ExecutionOutcome, OutcomeKind, PhaseResult

COMPILE_ERROR_PREFIX = "Compilation Error:\n"
SANDBOX_PLACEHOLDER = "<sandbox>"


class ResultAssembler:
    """Turns phase results into the single outcome returned for a request.

    One assembler lives for one request. Host paths and invocation identifiers
    registered with `redact` never reach the caller.
    """

    def __init__(self) -> None:
        self.started_at = time.perf_counter()
        self._redactions: dict[str, str] = {}

    def redact(self, secret: str, replacement: str = SANDBOX_PLACEHOLDER) -> None:
        self._redactions[secret] = replacement

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started_at) * 1000)

    def _clean(self, text: str) -> str:
        # Longest first so a path never gets partially replaced by a shorter prefix
        for secret in sorted(self._redactions, key=len, reverse=True):
            text = text.replace(secret, self._redactions[secret])
        return text.strip()

    def compile_failure(self, phase: PhaseResult) -> ExecutionOutcome:
        kind = OutcomeKind.COMPILE_ERROR
        if phase.kind in (OutcomeKind.TIMEOUT, OutcomeKind.OUTPUT_LIMIT_EXCEEDED):
            kind = phase.kind
        return ExecutionOutcome(
            stdout=self._clean(phase.stdout),
            stderr=COMPILE_ERROR_PREFIX + self._clean(phase.stderr),
            exit_code=phase.exit_code,
            execution_time_ms=self.elapsed_ms(),
            kind=kind,
        )

    def from_run_phase(self, phase: PhaseResult, compile_elapsed_ms: int = 0) -> ExecutionOutcome:
        if phase.kind is OutcomeKind.ENGINE_FAULT:
            return self.engine_fault(f"Sandbox runtime failed: {phase.stderr}")

        if phase.kind is OutcomeKind.TIMEOUT:
            execution_time_ms = compile_elapsed_ms + phase.elapsed_ms
        else:
            execution_time_ms = self.elapsed_ms()

        return ExecutionOutcome(
            stdout=self._clean(phase.stdout),
            stderr=self._clean(phase.stderr),
            exit_code=phase.exit_code,
            execution_time_ms=execution_time_ms,
            kind=phase.kind,
        )

    def engine_fault(self, message: str) -> ExecutionOutcome:
        return ExecutionOutcome(
            exit_code=ENGINE_FAULT_EXIT_CODE,
            execution_time_ms=self.elapsed_ms(),
            error=self._clean(message),
            kind=OutcomeKind.ENGINE_FAULT,
        )
