"""
Local stand-in for the block Worker + Durable Object, served with aiohttp.web.

Routes, keyed by the first path segment and the location hint header:
    PUT    /{key}/{start},{end}  store chunks start..end (inclusive) from the body
    PUT    /{key}/{index}        store the whole body as one chunk
    GET    /{key}/{index}        return one chunk
    DELETE /{key}/...            drop everything stored under the key

Useful for dry runs of the sweep and as the endpoint in tests.
"""

import asyncio
import logging
from typing import Dict, Optional, Tuple

from aiohttp import web

from configuration import (
    DEFAULT_SERVER_LOCATION_HINT,
    HTTP_BAD_REQUEST_STATUS,
    HTTP_ERROR_STATUS,
    HTTP_NOT_FOUND_STATUS,
    LOCATION_HINT_HEADER,
    MAX_CHUNK_SIZE_BYTES,
)

logger = logging.getLogger(__name__)


def parse_indexes(segment: str) -> Tuple[int, int]:
    """Parse ``"a,b"`` or ``"a"`` into an inclusive ``(start, end)`` pair.

    An empty segment means chunk 0.

    Raises:
        ValueError: If either index is not an integer
    """
    if segment.strip() == "":
        return 0, 0
    parts = segment.split(",")
    if len(parts) == 1:
        index = int(segment)
        return index, index
    return int(parts[0]), int(parts[1])


class BlockStore:
    """In-memory chunk storage of one block."""

    def __init__(self):
        self.chunks: Dict[int, bytes] = {}

    def put(self, index: int, data: bytes) -> None:
        self.chunks[index] = data

    def get(self, index: int) -> Optional[bytes]:
        return self.chunks.get(index)

    def free(self) -> None:
        self.chunks.clear()


class BlockServer:
    """aiohttp application emulating the block API.

    Attributes:
        faults: Maps an inclusive ``(start, end)`` PUT range to a forced
            ``(status, body)`` response
        delay_seconds: Artificial latency added to every PUT
        max_concurrent_puts: Highest number of PUTs seen in progress at once
    """

    def __init__(self, chunk_size: int = MAX_CHUNK_SIZE_BYTES, delay_seconds: float = 0.0):
        self.chunk_size = chunk_size
        self.delay_seconds = delay_seconds
        self.faults: Dict[Tuple[int, int], Tuple[int, str]] = {}
        self.blocks: Dict[Tuple[str, str], BlockStore] = {}

        self.put_count = 0
        self.bytes_received = 0
        self._puts_in_progress = 0
        self.max_concurrent_puts = 0

    def add_fault(self, start: int, end: int, status: int, body: str) -> None:
        """Answer PUTs of exactly ``start..end`` with ``status`` and ``body``."""
        self.faults[(start, end)] = (status, body)

    def block(self, key: str, location_hint: str) -> BlockStore:
        store = self.blocks.get((key, location_hint))
        if store is None:
            store = BlockStore()
            self.blocks[(key, location_hint)] = store
        return store

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self.handle)
        return app

    async def handle(self, request: web.Request) -> web.Response:
        try:
            segments = [s for s in request.path.split("/") if s]
            key = segments[0] if segments else "/"
            last = segments[-1] if len(segments) > 1 else ""
            location_hint = request.headers.get(LOCATION_HINT_HEADER, DEFAULT_SERVER_LOCATION_HINT)
            store = self.block(key, location_hint)

            if request.method == "DELETE":
                store.free()
                return web.Response()
            elif request.method == "PUT":
                return await self._put(request, store, last)
            elif request.method == "GET":
                return self._get(store, last)

            return web.Response(text="I_DONT_UNDERSTAND", status=HTTP_NOT_FOUND_STATUS)
        except Exception as e:
            logger.error(f"Block server error: {e}", exc_info=True)
            return web.Response(text=f"ERROR: {e}", status=HTTP_ERROR_STATUS)

    async def _put(self, request: web.Request, store: BlockStore, segment: str) -> web.Response:
        try:
            start, end = parse_indexes(segment)
        except ValueError:
            return web.Response(text="INDEX_QUERY_MALFORMED", status=HTTP_BAD_REQUEST_STATUS)

        self._puts_in_progress += 1
        self.max_concurrent_puts = max(self.max_concurrent_puts, self._puts_in_progress)
        try:
            body = await request.read()
            if self.delay_seconds:
                await asyncio.sleep(self.delay_seconds)

            self.put_count += 1
            self.bytes_received += len(body)

            if (start, end) in self.faults:
                status, text = self.faults[(start, end)]
                return web.Response(text=text, status=status)

            if not body:
                return web.Response(text="NEEDS_BODY", status=HTTP_BAD_REQUEST_STATUS)

            if start == end:
                store.put(start, body)
                return web.Response(text="ok")

            if request.content_length is None:
                return web.Response(text="NO_CONTENT_LEN", status=HTTP_BAD_REQUEST_STATUS)

            for offset, index in enumerate(range(start, end + 1)):
                store.put(index, body[offset * self.chunk_size:(offset + 1) * self.chunk_size])
            return web.Response(text="OK")
        finally:
            self._puts_in_progress -= 1

    def _get(self, store: BlockStore, segment: str) -> web.Response:
        try:
            index = int(segment) if segment.strip() else 0
        except ValueError:
            return web.Response(text="INDEX_QUERY_MALFORMED", status=HTTP_BAD_REQUEST_STATUS)

        chunk = store.get(index)
        if chunk is None:
            return web.Response(text="BLOCK_CHUNK_NOT_FOUND", status=HTTP_NOT_FOUND_STATUS)
        return web.Response(body=chunk)


def run_server(host: str, port: int, chunk_size: int = MAX_CHUNK_SIZE_BYTES,
               delay_seconds: float = 0.0) -> None:
    """Serve the block API until interrupted."""
    server = BlockServer(chunk_size=chunk_size, delay_seconds=delay_seconds)
    logger.info(f"Serving local block API on http://{host}:{port} (chunk size {chunk_size})")
    web.run_app(server.make_app(), host=host, port=port, print=None, access_log=None)
