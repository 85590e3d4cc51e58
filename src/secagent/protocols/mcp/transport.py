"""MCP stdio transport — newline-delimited JSON records.

:class:`RecordReader` yields raw byte records from an
:class:`asyncio.StreamReader`; :class:`RecordWriter` serialises one response
per record to a binary stream and flushes it immediately.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import IO, TYPE_CHECKING, Any

from secagent.protocols.errors import RecordTooLargeError, TransportError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from secagent.protocols.mcp.models import JsonRpcResponse


logger = logging.getLogger(__name__)

DEFAULT_MAX_RECORD_SIZE = 1024 * 1024
_READ_CHUNK = 64 * 1024


def stream_reader(max_record_size: int = DEFAULT_MAX_RECORD_SIZE) -> asyncio.StreamReader:
    """Create a StreamReader whose buffer limit admits one full record plus its terminator."""
    return asyncio.StreamReader(limit=max_record_size + 1)


class RecordReader:
    """Async iterator over newline-delimited records.

    Blank records are skipped.  End of stream ends the iteration.  A record
    longer than ``max_record_size`` raises :class:`RecordTooLargeError`,
    which is fatal to the server loop.
    """

    def __init__(
        self,
        stream: asyncio.StreamReader,
        *,
        max_record_size: int = DEFAULT_MAX_RECORD_SIZE,
    ) -> None:
        self._stream = stream
        self._max_record_size = max_record_size

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._records()

    async def _records(self) -> AsyncIterator[bytes]:
        while True:
            record = await self.read_record()
            if record is None:
                return
            yield record

    async def read_record(self) -> bytes | None:
        """Return the next non-blank record, or ``None`` at end of stream."""
        while True:
            try:
                line = await self._stream.readline()
            except ValueError as exc:
                # StreamReader reports a limit overrun as ValueError.
                raise RecordTooLargeError(self._max_record_size) from exc
            except OSError as exc:
                raise TransportError(str(exc)) from exc

            if not line:
                return None

            record = line.rstrip(b"\n").rstrip(b"\r")
            if len(record) > self._max_record_size:
                raise RecordTooLargeError(self._max_record_size)
            if not record.strip():
                continue
            return record


class RecordWriter:
    """Writes one JSON record per response and flushes before returning."""

    def __init__(self, stream: IO[bytes]) -> None:
        self._stream = stream

    def write(self, response: JsonRpcResponse | None) -> None:
        """Write *response*; notifications (``None``) produce no output."""
        if response is None:
            return
        data = response.to_json().encode("utf-8") + b"\n"
        try:
            self._stream.write(data)
            self._stream.flush()
        except OSError as exc:
            raise TransportError(str(exc)) from exc


async def open_stdio(
    *,
    max_record_size: int = DEFAULT_MAX_RECORD_SIZE,
    stdin: Any = None,
    stdout: IO[bytes] | None = None,
) -> tuple[RecordReader, RecordWriter]:
    """Bind a reader to the process stdin and a writer to binary stdout.

    Pipes and sockets are read through the event loop.  Anything else (stdin
    redirected from a regular file) is read in a worker thread.
    """
    loop = asyncio.get_running_loop()
    source = stdin or sys.stdin
    stream = stream_reader(max_record_size)
    protocol = asyncio.StreamReaderProtocol(stream)
    try:
        await loop.connect_read_pipe(lambda: protocol, source)
    except ValueError:
        logger.debug("stdin is not a pipe, reading it in a worker thread")
        task = loop.create_task(_feed_from_file(stream, getattr(source, "buffer", source)))
        _feeders.add(task)
        task.add_done_callback(_feeders.discard)
    except OSError as exc:
        raise TransportError(f"cannot read stdin: {exc}") from exc
    return (
        RecordReader(stream, max_record_size=max_record_size),
        RecordWriter(stdout or sys.stdout.buffer),
    )


_feeders: set[asyncio.Task[None]] = set()


async def _feed_from_file(stream: asyncio.StreamReader, source: IO[bytes]) -> None:
    loop = asyncio.get_running_loop()
    try:
        while True:
            chunk = await loop.run_in_executor(None, source.read, _READ_CHUNK)
            if not chunk:
                break
            stream.feed_data(chunk)
    except (OSError, ValueError) as exc:
        stream.set_exception(TransportError(str(exc)))
        return
    stream.feed_eof()
