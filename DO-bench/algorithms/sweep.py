"""
Chunks-per-call sweep: runs the bounded dispatcher once per configuration.
"""

import logging
from typing import List, Optional

from common.dispatcher import BoundedDispatcher, ResultCollector
from common.phase_manager import DRAINING, IDLE, SUMMARIZED, PhaseManager
from common.token_pool import TokenPool
from configuration import BenchmarkConfig
from persistence.parquet import ParquetPersistence
from persistence.record import ResultRecord, RunConfig
from persistence.report import emit_report
from systems.block_api import BlockApiClient

logger = logging.getLogger(__name__)


class ChunkSweep:
    """Drive every chunks-per-call configuration sequentially and report on them."""

    def __init__(
        self,
        config: BenchmarkConfig,
        output_dir: Optional[str] = None,
        client: Optional[BlockApiClient] = None,
        cleanup: bool = False,
    ):
        """Initialize the sweep.

        Args:
            config: Benchmark parameters, validated before anything is sent
            output_dir: Where to write the JSON report and push records (None = log only)
            client: Pre-built client; a BlockApiClient is created from ``config`` otherwise
            cleanup: Ask the block to free its storage after the last sweep
        """
        config.validate()

        self.config = config
        self.output_dir = output_dir
        self.cleanup = cleanup
        self.client = client or BlockApiClient(
            config.base_url,
            config.location_hint,
            request_timeout_seconds=config.request_timeout_seconds,
            max_connections=config.max_concurrency,
        )
        self.token_pool = TokenPool(config.max_concurrency)
        self.phase_manager = PhaseManager()
        self.persistence = (
            ParquetPersistence(output_dir) if config.record_pushes and output_dir else None
        )
        self.report_path: Optional[str] = None
        self.pushes_path: Optional[str] = None

        logger.info(f"Initialized chunk sweep: {config}")

    def run_configs(self) -> List[RunConfig]:
        return [
            RunConfig(self.config.chunk_size_bytes, chunks_per_call)
            for chunks_per_call in self.config.chunks_per_call_sweep
        ]

    async def execute(self) -> List[ResultRecord]:
        """Run all sweeps, emit the report and return the records in report order."""
        collector = ResultCollector()
        collector.start()

        async with self.client:
            dispatcher = BoundedDispatcher(
                self.client,
                collector,
                self.config.total_chunks,
                self.token_pool,
                persistence=self.persistence,
                log_pushes=self.config.record_pushes,
            )

            try:
                for run_config in self.run_configs():
                    await self._run_one(dispatcher, collector, run_config)
            finally:
                records = await collector.stop()

            if self.cleanup:
                await self.client.free()

            metrics = self.client.get_metrics()
            logger.info(
                f"Client totals: {metrics['successful_pushes']}/{metrics['total_pushes']} pushes ok, "
                f"{metrics['total_bytes']} bytes acknowledged, avg {metrics['avg_latency_ms']:.2f} ms"
            )

        self.phase_manager.finish()
        logger.info(f"All {self.phase_manager.sweeps_completed} sweeps done")

        self.report_path = emit_report(records, self.output_dir)
        if self.persistence is not None:
            self.pushes_path = self.persistence.save_to_file()
            if self.pushes_path:
                logger.info(f"Push records written to {self.pushes_path}")

        return records

    async def _run_one(self, dispatcher: BoundedDispatcher, collector: ResultCollector,
                       run_config: RunConfig) -> None:
        self.token_pool.reset_high_water()
        self.phase_manager.begin_sweep(f"cpc_{run_config.chunks_per_call}")

        summary = await dispatcher.run_sweep(
            run_config, on_dispatched=lambda: self.phase_manager.transition(DRAINING)
        )
        await collector.put(summary)
        await collector.flush()

        self.phase_manager.transition(SUMMARIZED)
        logger.info(
            f"Sweep cpc_{run_config.chunks_per_call}: avg {summary.avg_time_per_push_ms:.2f} ms/push, "
            f"total {summary.total_time_push_ms:.2f} ms, {summary.throughput_gbps:.3f} Gbps, "
            f"max in flight {self.token_pool.max_in_flight()}/{self.token_pool.capacity()}"
        )
        self.phase_manager.transition(IDLE)
