"""Line transports for the MCP serve loop.

The protocol engine reads one JSON-RPC message per line and writes one
response per line. Transports hide where those lines come from, so the
sequential stdio loop can be swapped for another transport without touching
the protocol contract.
"""

from __future__ import annotations

import asyncio
import io
import sys
from typing import Protocol, runtime_checkable

from hostbill_mcp.observability import get_logger

logger = get_logger(__name__)


@runtime_checkable
class LineTransport(Protocol):
    """Source of request lines and sink of response lines."""

    async def readline(self) -> str | bytes | None:
        """Return the next line without its terminator, or None at end of stream.

        Byte lines are decoded by the engine, which answers undecodable input
        with a parse error.
        """
        ...

    async def write_line(self, line: str) -> None:
        """Write one complete response line."""
        ...


class StdioTransport:
    """Line transport over text streams (stdin/stdout by default).

    Reads happen in a worker thread so a blocking ``readline`` never stalls
    the event loop; writes are flushed immediately so clients see each
    response as soon as it is produced. A text stream backed by a byte
    buffer (sys.stdin) is read through the buffer, so invalid UTF-8 reaches
    the engine as bytes instead of failing inside the stream decoder.
    """

    def __init__(
        self,
        stdin: io.TextIOBase | None = None,
        stdout: io.TextIOBase | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            stdin: Optional input stream (default: sys.stdin).
            stdout: Optional output stream (default: sys.stdout).
        """
        stream = stdin if stdin is not None else sys.stdin
        buffer = getattr(stream, "buffer", None)
        self._stdin = buffer if buffer is not None else stream
        self._stdout = stdout if stdout is not None else sys.stdout

    def _read_blocking(self) -> str | bytes | None:
        try:
            line = self._stdin.readline()
        except (EOFError, OSError) as e:
            logger.debug("mcp.transport.closed", reason=str(e))
            return None
        if not line:
            return None
        if isinstance(line, bytes):
            return line.rstrip(b"\r\n")
        return line.rstrip("\r\n")

    async def readline(self) -> str | bytes | None:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_blocking)

    async def write_line(self, line: str) -> None:
        self._stdout.write(line + "\n")
        self._stdout.flush()
