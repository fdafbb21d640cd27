# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox


class RunnerError(Exception):
    """Base class for errors raised by the execution engine."""


class RequestValidationError(RunnerError, ValueError):
    """The request was rejected before any sandbox work (client fault)."""

    kind = "InvalidRequest"


class EmptyCodeError(RequestValidationError):
    kind = "EmptyCode"


class CodeTooLargeError(RequestValidationError):
    kind = "CodeTooLarge"


class UnknownLanguageError(RequestValidationError):
    kind = "UnknownLanguage"


class SandboxLaunchError(RunnerError, RuntimeError):
    """The container runtime could not start a sandbox (infrastructure fault)."""
