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
import contextlib
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator

import anyio

from coreason_runner.assembler import ResultAssembler
from coreason_runner.config import RunnerConfig
from coreason_runner.exceptions import SandboxLaunchError
from coreason_runner.languages import WORKSPACE, LanguageProfile, LanguageRegistry
from coreason_runner.launcher import SandboxLauncher
from coreason_runner.models import ExecutionOutcome, ExecutionRequest, OutcomeKind, Phase, PhaseResult
from coreason_runner.supervisor import TimeoutSupervisor, compile_budget_ms
from coreason_runner.utils.logger import logger
from coreason_runner.validation import RequestValidator


class ExecutionEngineAsync:
    """Async-native execution engine (The Core).

    Runs one request through Validating -> Compiling (optional) -> Running -> Done.
    Holds no mutable state shared between requests besides the optional
    concurrency limiter.
    """

    def __init__(
        self,
        config: RunnerConfig | None = None,
        registry: LanguageRegistry | None = None,
        launcher: SandboxLauncher | None = None,
    ):
        """Initializes the engine.

        Args:
            config: Configuration for the engine. Defaults are read from the environment.
            registry: Language table. Defaults to the nine built-in languages.
            launcher: Sandbox launcher. Defaults to the Docker launcher.
        """
        self.config = config or RunnerConfig()
        self.registry = registry or LanguageRegistry.default(self.config)
        self.validator = RequestValidator(self.registry, self.config)
        self.launcher = launcher or SandboxLauncher(self.config)
        self.supervisor = TimeoutSupervisor(self.launcher, self.config)
        self._limiter: asyncio.Semaphore | None = None
        self._limiter_loop: asyncio.AbstractEventLoop | None = None

    async def __aenter__(self) -> "ExecutionEngineAsync":
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Releases the Docker client."""
        self.launcher.close()

    def languages(self) -> list[str]:
        return self.registry.languages()

    async def execute(self, request: ExecutionRequest) -> ExecutionOutcome:
        """Compiles (if needed) and runs the request's code in a sandbox.

        Args:
            request: The execution request.

        Returns:
            ExecutionOutcome: Program output and classification. Engine faults are
            reported through `error`, never raised.

        Raises:
            RequestValidationError: If the request is rejected before any sandbox work.
        """
        validation = self.validator.validate(request)
        if not validation.ok:
            logger.info(f"Rejected execution request: {validation.error}")
            validation.raise_for_error()

        profile = self.registry.profile_for(request.language)
        assembler = ResultAssembler()

        try:
            async with self._slot():
                return await self._run(profile, request, assembler)
        except SandboxLaunchError as e:
            logger.error(f"Engine fault while executing {request.language} code: {e}")
            return assembler.engine_fault(str(e))
        except OSError as e:
            logger.error(f"Could not prepare sandbox workspace: {e}")
            return assembler.engine_fault("Could not prepare sandbox workspace")

    async def _run(
        self, profile: LanguageProfile, request: ExecutionRequest, assembler: ResultAssembler
    ) -> ExecutionOutcome:
        # Files written by the sandbox user may not be removable by us
        with tempfile.TemporaryDirectory(
            prefix="code-exec-", dir=self.config.workspace_root, ignore_cleanup_errors=True
        ) as tmp:
            workspace = Path(tmp)
            assembler.redact(str(workspace), WORKSPACE)
            self.launcher.materialize_source(workspace, profile, request.code)

            compile_elapsed_ms = 0
            if profile.compile_command is not None:
                logger.info(f"Compiling {request.language} code")
                phase = await self._phase(profile, "compile", workspace, None, compile_budget_ms(profile), assembler)
                if phase.kind is OutcomeKind.ENGINE_FAULT:
                    return assembler.engine_fault(f"Sandbox runtime failed: {phase.stderr}")
                if phase.kind is not OutcomeKind.SUCCESS:
                    logger.info(f"Compilation of {request.language} code failed with exit code {phase.exit_code}")
                    return assembler.compile_failure(phase)
                compile_elapsed_ms = phase.elapsed_ms

            logger.info(f"Running {request.language} code")
            phase = await self._phase(profile, "run", workspace, request.input, profile.timeout_ms, assembler)
            return assembler.from_run_phase(phase, compile_elapsed_ms)

    async def _phase(
        self,
        profile: LanguageProfile,
        phase: Phase,
        workspace: Path,
        stdin: str | None,
        budget_ms: int,
        assembler: ResultAssembler,
    ) -> PhaseResult:
        invocation = await self.launcher.launch(profile, phase, workspace)
        assembler.redact(invocation.invocation_id)
        try:
            return await self.supervisor.supervise(invocation, stdin, budget_ms)
        except asyncio.CancelledError:
            # The caller went away; the sandbox must not outlive it
            await asyncio.shield(self.launcher.kill(invocation))
            raise

    @contextlib.asynccontextmanager
    async def _slot(self) -> AsyncIterator[None]:
        if not self.config.max_concurrent_executions:
            yield
            return
        loop = asyncio.get_running_loop()
        if self._limiter is None or self._limiter_loop is not loop:
            self._limiter = asyncio.Semaphore(self.config.max_concurrent_executions)
            self._limiter_loop = loop
        async with self._limiter:
            yield

    async def health(self) -> dict[str, Any]:
        runtime_ok = await asyncio.to_thread(self.launcher.ping)
        return {
            "status": "ok" if runtime_ok else "degraded",
            "service": "code-execution",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "container_runtime": runtime_ok,
        }


class ExecutionEngine:
    """Sync Facade for ExecutionEngineAsync (The Facade).

    Wraps ExecutionEngineAsync and executes methods via anyio.run.
    """

    def __init__(
        self,
        config: RunnerConfig | None = None,
        registry: LanguageRegistry | None = None,
        launcher: SandboxLauncher | None = None,
    ):
        self._async = ExecutionEngineAsync(config, registry, launcher)

    def __enter__(self) -> "ExecutionEngine":
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        anyio.run(self._async.__aexit__, exc_type, exc_val, exc_tb)

    def languages(self) -> list[str]:
        return self._async.languages()

    def execute(self, request: ExecutionRequest) -> ExecutionOutcome:
        """Executes a request synchronously.

        Args:
            request: The execution request.

        Returns:
            ExecutionOutcome: The outcome of the execution.
        """
        return anyio.run(self._async.execute, request)

    def health(self) -> dict[str, Any]:
        return anyio.run(self._async.health)
