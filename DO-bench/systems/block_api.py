"""
Async client for the block Durable Object API.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import aiohttp
from yarl import URL

from common.errors import RequestConstructionError
from configuration import (
    HTTP_SUCCESS_STATUS,
    LOCATION_HINT_HEADER,
    MS_PER_SECOND,
)

logger = logging.getLogger(__name__)


def build_location_url(base_url: str, location_hint: str) -> URL:
    """Return ``base_url/{location_hint}-location``.

    Raises:
        RequestConstructionError: If the base URL or hint cannot form a valid URL
    """
    try:
        base = URL(base_url)
    except (TypeError, ValueError) as e:
        raise RequestConstructionError(f"Malformed base URL {base_url!r}: {e}") from e

    if base.scheme not in ("http", "https") or not base.host:
        raise RequestConstructionError(f"Base URL must be an absolute http(s) URL, got {base_url!r}")
    if not location_hint or "/" in location_hint:
        raise RequestConstructionError(f"Invalid location hint {location_hint!r}")

    return base / f"{location_hint}-location"


def build_push_url(base_url: str, location_hint: str, start: int, end_inclusive: int) -> URL:
    """Return the PUT target for chunk indexes ``start..end_inclusive``."""
    if start < 0 or end_inclusive < start:
        raise RequestConstructionError(f"Invalid chunk range {start},{end_inclusive}")
    return build_location_url(base_url, location_hint) / f"{start},{end_inclusive}"


class PushResult:
    """Outcome of one PUT. ``error`` is None on success."""

    def __init__(self, http_status: int, latency_ms: float, error: Optional[str] = None):
        self.http_status = http_status
        self.latency_ms = latency_ms
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None


class BlockApiClient:
    """aiohttp based client for pushing chunk ranges to the block API."""

    def __init__(
        self,
        base_url: str,
        location_hint: str,
        request_timeout_seconds: float = 0,
        max_connections: int = 0,
    ):
        self.base_url = base_url
        self.location_hint = location_hint
        self.request_timeout_seconds = request_timeout_seconds
        self.max_connections = max_connections

        # Fail fast on a bad endpoint, before any sweep starts
        self.location_url = build_location_url(base_url, location_hint)

        self.session: Optional[aiohttp.ClientSession] = None

        self._metrics = {
            'total_pushes': 0,
            'successful_pushes': 0,
            'failed_pushes': 0,
            'total_bytes': 0,
            'total_latency_ms': 0.0,
        }

        logger.info(f"Initialized block API client for {self.location_url}")

    async def __aenter__(self):
        """Async context manager entry."""
        timeout = aiohttp.ClientTimeout(total=self.request_timeout_seconds or None)
        connector = aiohttp.TCPConnector(limit=self.max_connections)
        self.session = aiohttp.ClientSession(timeout=timeout, connector=connector)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.session:
            await self.session.close()
            self.session = None

    async def push_chunks(self, start: int, end: int, payload: bytes) -> PushResult:
        """PUT ``payload`` as chunks ``start..end-1``.

        Latency runs from just before the request is sent until the response
        headers have been received.

        Args:
            start: First chunk index
            end: Exclusive end chunk index
            payload: Request body

        Returns:
            PushResult; transport errors and non-200 responses are reported in
            ``error`` rather than raised
        """
        if not self.session:
            raise RuntimeError("Block API client not initialized. Use async context manager.")

        url = build_push_url(self.base_url, self.location_hint, start, end - 1)
        headers = {LOCATION_HINT_HEADER: self.location_hint}

        start_time = time.perf_counter()
        try:
            async with self.session.put(url, data=payload, headers=headers) as response:
                latency_ms = (time.perf_counter() - start_time) * MS_PER_SECOND

                if response.status != HTTP_SUCCESS_STATUS:
                    try:
                        body = await response.text(errors="replace")
                    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                        body = f"<couldnt read body>: {e}"
                    self._count(False)
                    return PushResult(
                        response.status,
                        latency_ms,
                        f"status code is not {HTTP_SUCCESS_STATUS} ({response.status}) "
                        f"for chunks {start}-{end - 1}: {body}",
                    )

            self._count(True, len(payload), latency_ms)
            return PushResult(HTTP_SUCCESS_STATUS, latency_ms)

        except asyncio.TimeoutError:
            self._count(False)
            return PushResult(
                0, 0.0,
                f"timeout after {self.request_timeout_seconds}s pushing chunks {start}-{end - 1}",
            )
        except aiohttp.ClientError as e:
            self._count(False)
            return PushResult(
                0, 0.0,
                f"transport error pushing chunks {start}-{end - 1}: {type(e).__name__}: {e}",
            )

    async def free(self) -> int:
        """Ask the block to delete everything it stores. Returns the HTTP status."""
        if not self.session:
            raise RuntimeError("Block API client not initialized. Use async context manager.")

        url = self.location_url / "0"
        async with self.session.delete(url, headers={LOCATION_HINT_HEADER: self.location_hint}) as response:
            logger.info(f"Freed block at {self.location_url}: HTTP {response.status}")
            return response.status

    def _count(self, success: bool, nbytes: int = 0, latency_ms: float = 0.0) -> None:
        # Single event loop, no lock needed
        self._metrics['total_pushes'] += 1
        if success:
            self._metrics['successful_pushes'] += 1
            self._metrics['total_bytes'] += nbytes
            self._metrics['total_latency_ms'] += latency_ms
        else:
            self._metrics['failed_pushes'] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Get lifetime push metrics of this client."""
        metrics = self._metrics.copy()
        if metrics['successful_pushes'] > 0:
            metrics['avg_latency_ms'] = (
                metrics['total_latency_ms'] / metrics['successful_pushes']
            )
            metrics['success_rate'] = (
                metrics['successful_pushes'] / metrics['total_pushes']
            )
        else:
            metrics['avg_latency_ms'] = 0
            metrics['success_rate'] = 0
        return metrics
