"""
Bounded concurrent dispatcher: one task per chunk sub-range, gated by a token pool.
"""

import asyncio
import logging
import os
import time
from typing import List, Optional

from common.errors import RandomGenerationError
from common.metrics_utils import bytes_to_mb, calculate_average, calculate_throughput_gbps
from common.partition import count_sub_ranges, iter_sub_ranges
from common.token_pool import TokenPool
from configuration import MS_PER_SECOND
from persistence.parquet import ParquetPersistence
from persistence.record import PushRecord, ResultRecord, RunConfig

logger = logging.getLogger(__name__)


def generate_payload(nbytes: int) -> bytes:
    """Random payload from the OS entropy source.

    Raises:
        RandomGenerationError: If no entropy source is available
    """
    try:
        return os.urandom(nbytes)
    except (NotImplementedError, OSError) as e:
        raise RandomGenerationError(f"Could not generate {nbytes} random bytes: {e}") from e


class ResultCollector:
    """Single consumer draining the results queue into an ordered list.

    Producers only ever ``put`` onto the queue; the list is appended to by the
    collector task alone.
    """

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.records: List[ResultRecord] = []
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._collect())

    async def _collect(self) -> None:
        while True:
            record = await self.queue.get()
            if record is None:  # Shutdown signal
                self.queue.task_done()
                break
            self.records.append(record)
            self.queue.task_done()

    async def put(self, record: ResultRecord) -> None:
        await self.queue.put(record)

    async def flush(self) -> None:
        """Wait until every record put so far has been appended."""
        await self.queue.join()

    async def stop(self) -> List[ResultRecord]:
        """Drain the queue, stop the collector and return the records."""
        if self._task is not None:
            await self.queue.put(None)
            await self._task
            self._task = None
        return self.records


class BoundedDispatcher:
    """Pushes every sub-range of ``[0, total_chunks)`` with at most
    ``token_pool.capacity()`` requests in flight."""

    def __init__(
        self,
        client,
        collector: ResultCollector,
        total_chunks: int,
        token_pool: TokenPool,
        persistence: Optional[ParquetPersistence] = None,
        log_pushes: bool = False,
    ):
        """Initialize the dispatcher.

        Args:
            client: Block API client (anything with an async ``push_chunks``)
            collector: Receives per-push error records
            total_chunks: Size of the logical chunk index space
            token_pool: Bounds concurrent pushes, shared across sweeps
            persistence: Optional sink for raw push records
            log_pushes: Log every successful push at INFO instead of DEBUG
        """
        self.client = client
        self.collector = collector
        self.total_chunks = total_chunks
        self.token_pool = token_pool
        self.persistence = persistence
        self.log_pushes = log_pushes

    async def dispatch(self, start: int, end: int, run_config: RunConfig) -> Optional[float]:
        """Push chunks ``start..end-1`` while holding one token.

        Returns:
            The push latency in ms, or None if the push failed (an error
            record is sent to the collector instead)

        Raises:
            BenchmarkSetupError: On payload or request construction failures
        """
        async with self.token_pool:
            payload = generate_payload(run_config.chunk_size_bytes * (end - start))

            start_ts = time.time()
            result = await self.client.push_chunks(start, end, payload)
            end_ts = time.time()

            if self.persistence is not None:
                self.persistence.store_record(PushRecord(
                    chunks_per_call=run_config.chunks_per_call,
                    range_start=start,
                    range_end=end,
                    bytes_sent=len(payload),
                    latency_ms=result.latency_ms,
                    http_status=result.http_status,
                    error=result.error,
                    start_ts=start_ts,
                    end_ts=end_ts,
                ))

            if not result.ok:
                logger.warning(result.error)
                await self.collector.put(ResultRecord.failure(result.error, run_config))
                return None

            log = logger.info if self.log_pushes else logger.debug
            log(f"Uploading bytes took {result.latency_ms:.2f} ms of chunk {start} - {end - 1}")
            return result.latency_ms

    async def run_sweep(self, run_config: RunConfig, on_dispatched=None) -> ResultRecord:
        """Dispatch every sub-range for ``run_config`` and wait for all of them.

        Args:
            run_config: Chunk size and chunks per call for this sweep
            on_dispatched: Optional callback invoked once all tasks are created

        Returns:
            The summary record for the sweep (not yet sent to the collector)

        Raises:
            BenchmarkSetupError: A fatal error in any unit

        Whatever a unit raises, the remaining units are cancelled and awaited
        before the error propagates.
        """
        expected = count_sub_ranges(self.total_chunks, run_config.chunks_per_call)
        logger.info(
            f"Dispatching {expected} pushes of up to {run_config.chunks_per_call} chunks "
            f"({run_config.bytes_per_call()} bytes) with {self.token_pool.capacity()} concurrent jobs"
        )

        sweep_start = time.perf_counter()
        tasks = [
            asyncio.create_task(self.dispatch(start, end, run_config))
            for start, end in iter_sub_ranges(self.total_chunks, run_config.chunks_per_call)
        ]
        if on_dispatched is not None:
            on_dispatched()

        try:
            latencies = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        total_time_ms = (time.perf_counter() - sweep_start) * MS_PER_SECOND
        successful = [latency for latency in latencies if latency is not None]
        total_bytes = self.total_chunks * run_config.chunk_size_bytes
        acknowledged_bytes = sum(
            run_config.chunk_size_bytes * (end - start)
            for (start, end), latency in zip(
                iter_sub_ranges(self.total_chunks, run_config.chunks_per_call), latencies
            )
            if latency is not None
        )

        summary = ResultRecord(
            avg_time_per_push_ms=calculate_average(successful),
            total_time_push_ms=total_time_ms,
            total_data_transferred_bytes=total_bytes,
            concurrent_jobs=self.token_pool.capacity(),
            config_used=run_config,
            pushes_dispatched=len(tasks),
            pushes_succeeded=len(successful),
            throughput_gbps=calculate_throughput_gbps(acknowledged_bytes, total_time_ms / MS_PER_SECOND),
        )

        logger.info(f"OK, entire operation took {total_time_ms:.2f} ms")
        logger.info(
            f"Sent {total_bytes} bytes ({bytes_to_mb(total_bytes):.1f} MiB) in {run_config.bytes_per_call()} bytes sent per call "
            f"({len(successful)}/{len(tasks)} pushes succeeded)"
        )
        return summary
