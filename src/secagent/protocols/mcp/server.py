"""MCP stdio server — the read, dispatch, write loop.

Requests are handled strictly one at a time, so responses leave in the
order their requests arrived.  Undecodable records are dropped without a
reply; an oversized record or a broken stream ends the loop.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from secagent.protocols.mcp.dispatcher import MethodDispatcher
from secagent.protocols.mcp.models import decode_request
from secagent.protocols.mcp.transport import open_stdio
from secagent.scanner.engine import ScalibrEngine
from secagent.tools.registry import build_registry

if TYPE_CHECKING:
    from secagent.config import ServerConfig
    from secagent.protocols.mcp.transport import RecordReader, RecordWriter
    from secagent.scanner.engine import ScanEngine

logger = logging.getLogger(__name__)


async def serve(dispatcher: MethodDispatcher, reader: RecordReader, writer: RecordWriter) -> None:
    """Serve requests from *reader* until end of stream.

    Raises:
        TransportError: On an oversized record or an unrecoverable stream failure.
        asyncio.CancelledError: When the surrounding task is cancelled.
    """
    async for record in reader:
        request = decode_request(record)
        if request is None:
            continue
        logger.debug("Handling %s (id=%r)", request.method, request.id)
        writer.write(await dispatcher.handle(request))
    logger.info("Input closed, shutting down")


def build_dispatcher(config: ServerConfig, engine: ScanEngine | None = None) -> MethodDispatcher:
    """Wire the scanner engine, tool registry and method table for *config*."""
    if engine is None:
        engine = ScalibrEngine(config.scanner)
    return MethodDispatcher.from_config(build_registry(engine, config), config)


async def run_stdio(config: ServerConfig, engine: ScanEngine | None = None) -> None:
    """Serve MCP over the process's stdin and stdout."""
    dispatcher = build_dispatcher(config, engine)
    reader, writer = await open_stdio(max_record_size=config.max_record_size)
    await serve(dispatcher, reader, writer)
