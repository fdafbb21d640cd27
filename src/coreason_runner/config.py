# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def host_user() -> str | None:
    """`uid:gid` of the service, so sandbox-written files stay removable by it."""
    if not hasattr(os, "getuid"):
        return None
    return f"{os.getuid()}:{os.getgid()}"


class RunnerConfig(BaseSettings):
    """
    Configuration for the code execution engine.
    Read once at process start; never consulted per request for mutation.
    """

    # Per-language defaults
    execution_timeout_ms: int = Field(default=5000, gt=0)
    memory_limit: str = "256m"
    image_prefix: str = "code-executor"

    # Request / output ceilings
    max_code_size: int = Field(default=50_000, gt=0)
    max_output_bytes: int = Field(default=1_000_000, gt=0)

    # Sandbox security flags
    tmpfs_size: str = "64m"
    pids_limit: int = Field(default=50, gt=0)
    cpu_shares: int = Field(default=512, gt=0)
    sandbox_user: str | None = Field(default_factory=host_user)  # empty disables --user

    # Host side
    docker_binary: str = "docker"
    workspace_root: str | None = None
    teardown_grace: float = 2.0  # seconds allowed for a killed sandbox to exit
    max_concurrent_executions: int = Field(default=0, ge=0)  # 0 = unbounded

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="COREASON_RUNNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def security_options(self) -> list[str]:
        """Docker flags applied to every sandbox, regardless of language."""
        return [
            "--network=none",
            "--read-only",
            f"--tmpfs=/tmp:rw,noexec,nosuid,size={self.tmpfs_size}",
            "--cap-drop=ALL",
            "--security-opt=no-new-privileges",
            f"--pids-limit={self.pids_limit}",
            f"--cpu-shares={self.cpu_shares}",
        ]
