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
import secrets
import time
from dataclasses import dataclass, field
from pathlib import Path

import docker
from docker.errors import APIError, DockerException, NotFound

from coreason_runner.config import RunnerConfig
from coreason_runner.exceptions import SandboxLaunchError
from coreason_runner.languages import WORKSPACE, LanguageProfile
from coreason_runner.models import Phase
from coreason_runner.utils.logger import logger


@dataclass
class SandboxInvocation:
    """One running sandbox for one phase of one request. Never reused."""

    invocation_id: str
    phase: Phase
    process: asyncio.subprocess.Process
    started_at: float = field(default_factory=time.perf_counter)


def generate_invocation_id() -> str:
    return f"code-exec-{secrets.token_hex(8)}"


class SandboxLauncher:
    """
    Starts toolchain commands inside locked-down Docker containers.

    The container is driven through the docker CLI as a child process we own
    (so stdin/stdout/stderr stream through pipes), while kill-by-name and
    health checks go through the Docker SDK.
    """

    def __init__(self, config: RunnerConfig | None = None, client: docker.DockerClient | None = None):
        self.config = config or RunnerConfig()
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    def materialize_source(self, workspace: Path, profile: LanguageProfile, code: str) -> Path:
        """Write the source under its language-mandated file name.

        Args:
            workspace: Host scratch directory mounted into the sandbox.
            profile: The language profile naming the source file.
            code: The untrusted source text.

        Returns:
            Path: The host path of the written file.
        """
        path = workspace / profile.source_file_name
        path.write_text(code, encoding="utf-8")
        # Only the service user (and the sandbox running as it) may touch the workspace
        workspace.chmod(0o700)
        path.chmod(0o644)
        return path

    def build_command(
        self, profile: LanguageProfile, phase: Phase, workspace: Path, invocation_id: str
    ) -> list[str]:
        """Build the argument vector that runs one phase in a fresh sandbox.

        The workspace is only writable while compiling; the run phase sees it read-only.

        Raises:
            ValueError: If the profile has no command for the phase.
        """
        command = profile.compile_command if phase == "compile" else profile.run_command
        if not command:
            raise ValueError(f"Profile for image {profile.image} has no {phase} command")

        mount = f"type=bind,source={workspace},target={WORKSPACE}"
        if phase == "run":
            mount += ",readonly"

        args = [
            self.config.docker_binary,
            "run",
            "--rm",
            "--name",
            invocation_id,
            "-i",
            f"--memory={profile.memory_limit}",
            f"--memory-swap={profile.memory_limit}",
            *self.config.security_options(),
            "--mount",
            mount,
            "--workdir",
            WORKSPACE,
        ]
        for key, value in sorted(profile.environment.items()):
            args.extend(["-e", f"{key}={value}"])
        if self.config.sandbox_user:
            args.extend(["--user", self.config.sandbox_user])
        args.append(profile.image)
        args.extend(command)
        return args

    async def launch(self, profile: LanguageProfile, phase: Phase, workspace: Path) -> SandboxInvocation:
        """Start a sandbox for `phase` without waiting on its output.

        Returns:
            SandboxInvocation: Handle to the running sandbox.

        Raises:
            SandboxLaunchError: If the container runtime cannot be started.
        """
        invocation_id = generate_invocation_id()
        argv = self.build_command(profile, phase, workspace, invocation_id)

        logger.info(f"Starting {phase} sandbox {invocation_id} with image {profile.image}")
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"Failed to start sandbox {invocation_id}: {e}")
            raise SandboxLaunchError(f"Could not start sandbox: {e.strerror or type(e).__name__}") from e

        return SandboxInvocation(invocation_id=invocation_id, phase=phase, process=process)

    async def kill(self, invocation: SandboxInvocation) -> None:
        """
        Kill the owning process, then the sandbox container. Safe to call repeatedly.

        The daemon gets at most `teardown_grace` seconds to answer, so a hung
        daemon cannot hold up the caller.
        """
        if invocation.process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                invocation.process.kill()

        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._kill_container, invocation.invocation_id),
                timeout=self.config.teardown_grace,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Docker did not kill sandbox {invocation.invocation_id} within {self.config.teardown_grace}s"
            )

    def _kill_container(self, invocation_id: str) -> None:
        # Runs in a worker thread; resolving the client may block on the daemon
        try:
            self.client.containers.get(invocation_id).kill()
            logger.info(f"Killed sandbox {invocation_id}")
        except NotFound:
            logger.debug(f"Sandbox {invocation_id} already gone")
        except APIError as e:
            if e.status_code == 409:  # not running
                logger.debug(f"Sandbox {invocation_id} already stopped")
            else:
                logger.warning(f"Error killing sandbox {invocation_id}: {e}")
        except DockerException as e:
            logger.warning(f"Error killing sandbox {invocation_id}: {e}")

    def ping(self) -> bool:
        """Whether the Docker daemon answers."""
        try:
            return bool(self.client.ping())
        except DockerException as e:
            logger.warning(f"Docker daemon unavailable: {e}")
            return False

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
