"""
Basic data structures for the block benchmark.
"""

import time
from typing import Any, Dict, Optional


class RunConfig:
    """Parameters of a single sweep."""

    def __init__(self, chunk_size_bytes: int, chunks_per_call: int):
        self._chunk_size_bytes = chunk_size_bytes
        self._chunks_per_call = chunks_per_call

    @property
    def chunk_size_bytes(self) -> int:
        return self._chunk_size_bytes

    @property
    def chunks_per_call(self) -> int:
        return self._chunks_per_call

    def bytes_per_call(self) -> int:
        return self.chunk_size_bytes * self.chunks_per_call

    def to_dict(self) -> Dict[str, int]:
        return {
            "chunk_size_bytes": self.chunk_size_bytes,
            "chunks_per_call": self.chunks_per_call,
        }

    def __eq__(self, other):
        if not isinstance(other, RunConfig):
            return NotImplemented
        return (self.chunk_size_bytes, self.chunks_per_call) == (
            other.chunk_size_bytes,
            other.chunks_per_call,
        )

    def __hash__(self):
        return hash((self.chunk_size_bytes, self.chunks_per_call))

    def __repr__(self) -> str:
        return f"RunConfig(chunk_size_bytes={self.chunk_size_bytes}, chunks_per_call={self.chunks_per_call})"


class ResultRecord:
    """One entry of the sweep report: either a per-push error or a sweep summary."""

    def __init__(
        self,
        error: Optional[str] = None,
        avg_time_per_push_ms: float = 0.0,
        total_time_push_ms: float = 0.0,
        total_data_transferred_bytes: int = 0,
        concurrent_jobs: int = 0,
        config_used: Optional[RunConfig] = None,
        pushes_dispatched: int = 0,
        pushes_succeeded: int = 0,
        throughput_gbps: float = 0.0,
    ):
        self.error = error
        self.avg_time_per_push_ms = avg_time_per_push_ms
        self.total_time_push_ms = total_time_push_ms
        self.total_data_transferred_bytes = total_data_transferred_bytes
        self.concurrent_jobs = concurrent_jobs
        self.config_used = config_used
        self.pushes_dispatched = pushes_dispatched
        self.pushes_succeeded = pushes_succeeded
        self.throughput_gbps = throughput_gbps

    @classmethod
    def failure(cls, error: str, config_used: Optional[RunConfig] = None) -> "ResultRecord":
        return cls(error=error, config_used=config_used)

    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "avg_time_per_push_ms": self.avg_time_per_push_ms,
            "total_time_push_ms": self.total_time_push_ms,
            "total_data_transferred_bytes": self.total_data_transferred_bytes,
            "concurrent_jobs": self.concurrent_jobs,
            "config_used": self.config_used.to_dict() if self.config_used else None,
            "pushes_dispatched": self.pushes_dispatched,
            "pushes_succeeded": self.pushes_succeeded,
            "throughput_gbps": self.throughput_gbps,
        }


class PushRecord:
    """Raw measurement of a single chunk push."""

    def __init__(self, chunks_per_call, range_start, range_end, bytes_sent,
                 latency_ms, http_status, error: Optional[str] = None,
                 start_ts: float = None, end_ts: float = None):
        self.chunks_per_call = chunks_per_call
        self.range_start = range_start
        self.range_end = range_end  # exclusive
        self.bytes = bytes_sent
        self.latency_ms = latency_ms
        self.http_status = http_status
        self.error = error
        self.start_ts = start_ts or time.time()
        self.end_ts = end_ts or time.time()
