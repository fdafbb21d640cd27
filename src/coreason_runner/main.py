# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

from typing import Any

from mcp.server.fastmcp import FastMCP

from coreason_runner.engine import ExecutionEngineAsync
from coreason_runner.exceptions import RequestValidationError
from coreason_runner.models import ExecutionRequest
from coreason_runner.utils.logger import logger

# Initialize Engine
engine = ExecutionEngineAsync()

# Initialize MCP Server
mcp = FastMCP("coreason-runner")


@mcp.tool()  # type: ignore[misc]
async def execute_code(code: str, language: str, input: str | None = None) -> dict[str, Any]:
    """
    Compile (if needed) and run code in an isolated sandbox.
    Returns stdout, stderr, exitCode (124 on timeout) and executionTime in ms.
    """
    request = ExecutionRequest(code=code, language=language, input=input)
    try:
        outcome = await engine.execute(request)
    except RequestValidationError as e:
        return {"error": str(e)}
    except Exception as e:
        logger.exception(f"Unexpected failure executing {language} code")
        return {"error": f"Error executing code: {e!s}"}

    return outcome.to_response()


@mcp.tool()  # type: ignore[misc]
async def list_languages() -> list[str]:
    """
    List the supported language identifiers.
    """
    return engine.languages()


@mcp.tool()  # type: ignore[misc]
async def health() -> dict[str, Any]:
    """
    Report whether the container runtime is reachable.
    """
    return await engine.health()


def main() -> None:
    """Entry point for the MCP server."""
    mcp.run()


if __name__ == "__main__":  # pragma: no cover
    main()
