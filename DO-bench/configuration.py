"""
Configuration constants for the Durable Object block benchmark.

This module contains all configuration parameters including:
- Block API endpoint and routing hint
- Test parameters (chunk sizes, totals, concurrency)
- The chunks-per-call sweep
- File size constants and conversion factors

The constants below are the documented defaults. load_env() applies the
DO_BENCH_* environment overrides on top of them; the CLI flags win over both.
"""

import os
from typing import List, Mapping, Optional

from common.errors import ConfigurationError


def parse_sweep(value: str) -> List[int]:
    """Parse a comma separated chunks-per-call sweep, e.g. '1,10,20'."""
    return [int(part) for part in value.split(",") if part.strip()]


# =============================================================================
# BLOCK API CONFIGURATION
# =============================================================================

# Base URL of the Worker fronting the block Durable Object
BASE_URL: str = "http://127.0.0.1:8787"

# Durable Object placement hint (wnam, enam, weur, eeur, apac, oc, ...)
LOCATION_HINT: str = "wnam"
LOCATION_HINT_HEADER: str = "X-Location-Hint"
DEFAULT_SERVER_LOCATION_HINT: str = "enam"  # What the Worker assumes without the header

# =============================================================================
# FILE SIZE CONSTANTS
# =============================================================================

BYTES_PER_KB: int = 1024
BYTES_PER_MB: int = 1024 * 1024
BITS_PER_BYTE: int = 8
GIGABITS_PER_GB: int = 1_000_000_000  # 1 Gigabit = 1,000,000,000 bits
MS_PER_SECOND: int = 1000

# =============================================================================
# TEST PARAMETERS
# =============================================================================

# Must match the chunk size the Durable Object was built with
MAX_CHUNK_SIZE_BYTES: int = 128 * BYTES_PER_KB
CHUNK_SIZE_BYTES: int = MAX_CHUNK_SIZE_BYTES

# Data sent per sweep is TOTAL_CHUNKS * CHUNK_SIZE_BYTES
TOTAL_CHUNKS: int = 200

# Size of the token pool bounding in-flight pushes
MAX_CONCURRENT_CHUNK_PUSHES: int = 5

# Chunks sent in a single call, one sweep per value
CHUNKS_PER_CALL_SWEEP: List[int] = [1, 10, 20, 30, 40, 50]

# 0 disables the per-request timeout
REQUEST_TIMEOUT_SECONDS: float = 0.0

# =============================================================================
# ENVIRONMENT OVERRIDES
# =============================================================================

ENV_URL: str = "DO_BENCH_URL"
ENV_LOCATION_HINT: str = "DO_BENCH_LOCATION_HINT"
ENV_TOTAL_CHUNKS: str = "DO_BENCH_TOTAL_CHUNKS"
ENV_CHUNK_SIZE_BYTES: str = "DO_BENCH_CHUNK_SIZE_BYTES"
ENV_MAX_CONCURRENCY: str = "DO_BENCH_MAX_CONCURRENCY"
ENV_CHUNKS_PER_CALL: str = "DO_BENCH_CHUNKS_PER_CALL"
ENV_REQUEST_TIMEOUT: str = "DO_BENCH_REQUEST_TIMEOUT"

# =============================================================================
# HTTP STATUS CODES
# =============================================================================

HTTP_SUCCESS_STATUS: int = 200
HTTP_BAD_REQUEST_STATUS: int = 400
HTTP_NOT_FOUND_STATUS: int = 404
HTTP_ERROR_STATUS: int = 500

# =============================================================================
# LOCAL BLOCK SERVER
# =============================================================================

SERVER_HOST: str = "127.0.0.1"
SERVER_PORT: int = 8787

# =============================================================================
# CLI DEFAULTS
# =============================================================================

DEFAULT_OUTPUT_DIR: str = "results"
DEFAULT_PLOTS_DIR: str = "plots"
REPORT_JSON_INDENT: int = 2


class BenchmarkConfig:
    """Everything a sweep run needs, resolved once at startup."""

    def __init__(
        self,
        base_url: str = BASE_URL,
        location_hint: str = LOCATION_HINT,
        total_chunks: int = TOTAL_CHUNKS,
        chunk_size_bytes: int = CHUNK_SIZE_BYTES,
        max_concurrency: int = MAX_CONCURRENT_CHUNK_PUSHES,
        chunks_per_call_sweep: Optional[List[int]] = None,
        request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
        record_pushes: bool = False,
    ):
        self.base_url = base_url
        self.location_hint = location_hint
        self.total_chunks = total_chunks
        self.chunk_size_bytes = chunk_size_bytes
        self.max_concurrency = max_concurrency
        self.chunks_per_call_sweep = list(
            CHUNKS_PER_CALL_SWEEP if chunks_per_call_sweep is None else chunks_per_call_sweep
        )
        self.request_timeout_seconds = request_timeout_seconds
        self.record_pushes = record_pushes

    def validate(self) -> None:
        """Raise ConfigurationError when the run could not be meaningful."""
        if not self.base_url:
            raise ConfigurationError("base URL is empty (set --url or DO_BENCH_URL)")
        if not self.location_hint:
            raise ConfigurationError("location hint is empty")
        if self.total_chunks <= 0:
            raise ConfigurationError(f"total chunks must be positive, got {self.total_chunks}")
        if not 0 < self.chunk_size_bytes <= MAX_CHUNK_SIZE_BYTES:
            raise ConfigurationError(
                f"chunk size must be in (0, {MAX_CHUNK_SIZE_BYTES}] bytes, got {self.chunk_size_bytes}"
            )
        if self.max_concurrency <= 0:
            raise ConfigurationError(f"max concurrency must be positive, got {self.max_concurrency}")
        if not self.chunks_per_call_sweep:
            raise ConfigurationError("chunks-per-call sweep is empty")
        bad = [n for n in self.chunks_per_call_sweep if n <= 0]
        if bad:
            raise ConfigurationError(f"chunks per call must be positive, got {bad}")
        if self.request_timeout_seconds < 0:
            raise ConfigurationError("request timeout cannot be negative")

    def __repr__(self) -> str:
        return (
            f"BenchmarkConfig(url={self.base_url!r}, hint={self.location_hint!r}, "
            f"total_chunks={self.total_chunks}, chunk_size={self.chunk_size_bytes}, "
            f"max_concurrency={self.max_concurrency}, sweep={self.chunks_per_call_sweep})"
        )


def _env_value(environ: Mapping[str, str], name: str, parse, default):
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw)
    except ValueError:
        raise ConfigurationError(f"{name} is malformed: {raw!r}")


def load_env(environ: Optional[Mapping[str, str]] = None) -> BenchmarkConfig:
    """Build a BenchmarkConfig from the documented defaults and DO_BENCH_* overrides.

    Raises:
        ConfigurationError: If an override cannot be parsed
    """
    if environ is None:
        environ = os.environ

    return BenchmarkConfig(
        base_url=environ.get(ENV_URL, BASE_URL),
        location_hint=environ.get(ENV_LOCATION_HINT, LOCATION_HINT),
        total_chunks=_env_value(environ, ENV_TOTAL_CHUNKS, int, TOTAL_CHUNKS),
        chunk_size_bytes=_env_value(environ, ENV_CHUNK_SIZE_BYTES, int, CHUNK_SIZE_BYTES),
        max_concurrency=_env_value(environ, ENV_MAX_CONCURRENCY, int, MAX_CONCURRENT_CHUNK_PUSHES),
        chunks_per_call_sweep=_env_value(environ, ENV_CHUNKS_PER_CALL, parse_sweep, CHUNKS_PER_CALL_SWEEP),
        request_timeout_seconds=_env_value(environ, ENV_REQUEST_TIMEOUT, float, REQUEST_TIMEOUT_SECONDS),
    )
