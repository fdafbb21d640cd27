# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

"""
coreason-runner
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import RunnerConfig
from .engine import ExecutionEngine, ExecutionEngineAsync
from .exceptions import (
    CodeTooLargeError,
    EmptyCodeError,
    RequestValidationError,
    RunnerError,
    SandboxLaunchError,
    UnknownLanguageError,
)
from .languages import Language, LanguageProfile, LanguageRegistry
from .models import ExecutionOutcome, ExecutionRequest, OutcomeKind

__all__ = [
    "RunnerConfig",
    "ExecutionEngine",
    "ExecutionEngineAsync",
    "ExecutionRequest",
    "ExecutionOutcome",
    "OutcomeKind",
    "Language",
    "LanguageProfile",
    "LanguageRegistry",
    "RunnerError",
    "RequestValidationError",
    "EmptyCodeError",
    "CodeTooLargeError",
    "UnknownLanguageError",
    "SandboxLaunchError",
]
