# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

import asyncio
import time

from coreason_runner.capture import StreamCapture
from coreason_runner.config import RunnerConfig
from coreason_runner.languages import LanguageProfile
from coreason_runner.launcher import SandboxInvocation, SandboxLauncher
from coreason_runner.models import TIMEOUT_EXIT_CODE, OutcomeKind, PhaseResult
from coreason_runner.utils.logger import logger

# `docker run` exits 125 when the daemon itself fails
DOCKER_FAILURE_EXIT_CODE = 125


def is_docker_failure(stderr: str) -> bool:
    """Whether stderr carries the docker CLI's own error line.

    The CLI may print progress first, e.g. `Unable to find image ... locally`
    before `docker: Error response from daemon: ...`.
    """
    return any(line.startswith("docker:") for line in stderr.splitlines())


def compile_budget_ms(profile: LanguageProfile) -> int:
    """Compilation gets half of the language's timeout; the run phase gets all of it."""
    return profile.timeout_ms // 2


class TimeoutSupervisor:
    """
    Races a sandboxed process against its time budget.
    """

    def __init__(self, launcher: SandboxLauncher, config: RunnerConfig | None = None):
        self.launcher = launcher
        self.config = config or RunnerConfig()

    async def supervise(self, invocation: SandboxInvocation, stdin: str | None, budget_ms: int) -> PhaseResult:
        """Capture the invocation's output until it exits or the budget expires.

        Args:
            invocation: The running sandbox.
            stdin: Text to feed the program, if any.
            budget_ms: Time budget for this phase in milliseconds.

        Returns:
            PhaseResult: The classified phase outcome. Output is not yet trimmed.
        """
        capture = StreamCapture(
            invocation.process,
            self.config.max_output_bytes,
            on_limit=lambda: self.launcher.kill(invocation),
        )
        budget = budget_ms / 1000
        start = time.perf_counter()

        try:
            exit_code = await asyncio.wait_for(self._lifetime(invocation, capture, stdin), timeout=budget)
        except asyncio.TimeoutError:
            logger.warning(f"Sandbox {invocation.invocation_id} exceeded {budget:g}s. Killing.")
            await self.launcher.kill(invocation)
            await self._reap(invocation)
            return PhaseResult(
                kind=OutcomeKind.TIMEOUT,
                stdout=capture.stdout,
                stderr=f"Execution timeout exceeded ({budget:g} seconds)",
                exit_code=TIMEOUT_EXIT_CODE,
                elapsed_ms=budget_ms,
            )

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        stdout, stderr = capture.stdout, capture.stderr

        if capture.limit_exceeded:
            kind = OutcomeKind.OUTPUT_LIMIT_EXCEEDED
            stderr = f"{stderr}\nOutput limit exceeded"
        elif exit_code == DOCKER_FAILURE_EXIT_CODE and is_docker_failure(stderr):
            kind = OutcomeKind.ENGINE_FAULT
        elif exit_code == 0:
            kind = OutcomeKind.SUCCESS
        else:
            kind = OutcomeKind.RUNTIME_ERROR

        logger.info(
            f"Sandbox {invocation.invocation_id} finished {invocation.phase} phase: "
            f"{kind.value} (exit {exit_code}, {elapsed_ms}ms)"
        )
        return PhaseResult(kind=kind, stdout=stdout, stderr=stderr, exit_code=exit_code, elapsed_ms=elapsed_ms)

    async def _lifetime(self, invocation: SandboxInvocation, capture: StreamCapture, stdin: str | None) -> int:
        await capture.run(stdin)
        return await invocation.process.wait()

    async def _reap(self, invocation: SandboxInvocation) -> None:
        try:
            await asyncio.wait_for(invocation.process.wait(), timeout=self.config.teardown_grace)
        except asyncio.TimeoutError:
            logger.error(
                f"Sandbox {invocation.invocation_id} did not exit within {self.config.teardown_grace}s of being killed"
            )
