import contextlib
import sys
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from coreason_runner.config import RunnerConfig
from coreason_runner.languages import WORKSPACE, LanguageProfile, LanguageRegistry
from coreason_runner.launcher import SandboxInvocation, SandboxLauncher
from coreason_runner.models import Phase

PY = sys.executable


class LocalLauncher(SandboxLauncher):
    """Runs phase commands as plain host processes instead of containers."""

    def __init__(self, config: RunnerConfig | None = None):
        super().__init__(config)
        self.launches: list[tuple[Phase, str]] = []
        self.killed: list[str] = []

    def build_command(
        self, profile: LanguageProfile, phase: Phase, workspace: Path, invocation_id: str
    ) -> list[str]:
        self.launches.append((phase, invocation_id))
        command = profile.compile_command if phase == "compile" else profile.run_command
        assert command is not None
        return [arg.replace(WORKSPACE, str(workspace)) for arg in command]

    async def kill(self, invocation: SandboxInvocation) -> None:
        self.killed.append(invocation.invocation_id)
        if invocation.process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                invocation.process.kill()


def make_profile(
    run: tuple[str, ...], compile_: tuple[str, ...] | None = None, timeout_ms: int = 5000
) -> LanguageProfile:
    return LanguageProfile(
        image="local",
        source_file_name="code.py",
        compile_command=compile_,
        run_command=run,
        timeout_ms=timeout_ms,
        memory_limit="256m",
    )


@pytest.fixture
def config(tmp_path: Path) -> RunnerConfig:
    return RunnerConfig(workspace_root=str(tmp_path), teardown_grace=5.0)


@pytest.fixture
def local_launcher(config: RunnerConfig) -> LocalLauncher:
    return LocalLauncher(config)


@pytest.fixture
def local_registry() -> LanguageRegistry:
    return LanguageRegistry(
        {
            "python": make_profile(run=(PY, f"{WORKSPACE}/code.py")),
            "pycompiled": make_profile(
                run=(PY, f"{WORKSPACE}/code.py"),
                compile_=(PY, "-m", "py_compile", f"{WORKSPACE}/code.py"),
            ),
            "slowcompile": make_profile(
                run=(PY, f"{WORKSPACE}/code.py"),
                compile_=(PY, "-c", "import time; time.sleep(10)"),
                timeout_ms=400,
            ),
            "quickpython": make_profile(run=(PY, f"{WORKSPACE}/code.py"), timeout_ms=500),
        }
    )


@pytest.fixture
def mock_docker_client() -> Any:
    client = MagicMock()
    client.ping.return_value = True
    return client
