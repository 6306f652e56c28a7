"""Server-side transports — newline-delimited JSON over byte or text streams."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, BinaryIO, Protocol, TextIO, runtime_checkable


@runtime_checkable
class ServerTransport(Protocol):
    """Line-framed input with message-framed output."""

    async def read_line(self) -> str | None: ...
    async def write_message(self, data: dict[str, Any]) -> None: ...


class StdioTransport:
    """Reads request lines from *reader* and writes one JSON line per response.

    Defaults to the raw stdin buffer and stdout. Byte input is decoded per
    line with replacement characters, so invalid UTF-8 reaches the server as
    an unparseable line instead of aborting the read. Reads run in a worker
    thread so a blocking ``readline`` never stalls the event loop.
    """

    def __init__(
        self,
        reader: BinaryIO | TextIO | None = None,
        writer: TextIO | None = None,
    ) -> None:
        self._reader = reader if reader is not None else sys.stdin.buffer
        self._writer = writer if writer is not None else sys.stdout

    async def read_line(self) -> str | None:
        """Return the next line without its terminator, or ``None`` at end of input."""
        raw: bytes | str = await asyncio.to_thread(self._reader.readline)
        if not raw:
            return None
        line = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        return line.rstrip("\r\n")

    async def write_message(self, data: dict[str, Any]) -> None:
        """Serialise *data* as a single compact JSON line and flush it."""
        line = json.dumps(data, separators=(",", ":")) + "\n"
        self._writer.write(line)
        self._writer.flush()
