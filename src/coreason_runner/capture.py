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
from typing import Awaitable, Callable, Literal

from coreason_runner.models import OutputChunk
from coreason_runner.utils.logger import logger

StreamName = Literal["stdout", "stderr"]
KillCallback = Callable[[], Awaitable[None]]

CHUNK_SIZE = 4096


class StreamCapture:
    """Feeds stdin to a sandboxed process and accumulates its output.

    Each stream is bounded by `max_bytes`. The first chunk that would cross the
    ceiling is truncated, the process is killed through `on_limit`, and whatever
    was captured so far is kept.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        max_bytes: int,
        on_limit: KillCallback,
        chunk_size: int = CHUNK_SIZE,
    ):
        self.process = process
        self.max_bytes = max_bytes
        self.on_limit = on_limit
        self.chunk_size = chunk_size
        self.chunks: list[OutputChunk] = []
        self.limit_exceeded = False
        self._buffers: dict[StreamName, bytearray] = {"stdout": bytearray(), "stderr": bytearray()}

    @property
    def stdout(self) -> str:
        return self._buffers["stdout"].decode("utf-8", errors="replace")

    @property
    def stderr(self) -> str:
        return self._buffers["stderr"].decode("utf-8", errors="replace")

    async def run(self, stdin: str | None = None) -> None:
        """Pump all three pipes until both output streams reach EOF."""
        await asyncio.gather(
            self._feed(stdin),
            self._pump(self.process.stdout, "stdout"),
            self._pump(self.process.stderr, "stderr"),
        )

    async def _feed(self, data: str | None) -> None:
        pipe = self.process.stdin
        if pipe is None:
            return
        try:
            if data:
                pipe.write(data.encode("utf-8"))
                await pipe.drain()
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("Sandbox exited before consuming its input")
        finally:
            # EOF even without input, so reads inside the sandbox never block
            pipe.close()

    async def _pump(self, stream: asyncio.StreamReader | None, name: StreamName) -> None:
        if stream is None:
            return
        buffer = self._buffers[name]
        while True:
            data = await stream.read(self.chunk_size)
            if not data:
                break
            if self.limit_exceeded:
                # Drain until the killed process closes its pipes
                continue

            room = self.max_bytes - len(buffer)
            if len(data) > room:
                data = data[:room]
                self.limit_exceeded = True

            if data:
                buffer.extend(data)
                self.chunks.append(OutputChunk(stream=name, data=data))

            if self.limit_exceeded:
                logger.warning(f"{name} exceeded {self.max_bytes} bytes. Killing sandbox.")
                await self.on_limit()
