"""
Chunks-per-call benchmark against the block API.
"""

import logging
from typing import List, Optional

from algorithms.sweep import ChunkSweep
from configuration import BenchmarkConfig
from persistence.record import ResultRecord

logger = logging.getLogger(__name__)


class BenchmarkRunner:
    """Benchmark runner: one sweep per chunks-per-call value with a fixed token pool."""

    def __init__(
        self,
        config: BenchmarkConfig,
        output_dir: Optional[str] = None,
        cleanup: bool = False,
    ):
        self.config = config
        self.output_dir = output_dir
        self.sweep = ChunkSweep(config, output_dir=output_dir, cleanup=cleanup)

        logger.info(
            f"Initialized benchmark runner: {config.base_url} ({config.location_hint}) "
            f"with {config.max_concurrency} concurrent pushes"
        )

    async def run_benchmark(self) -> List[ResultRecord]:
        """Execute every sweep and return the report records."""
        logger.info("Starting benchmark")
        logger.info(
            f"Sending {self.config.total_chunks} chunks of {self.config.chunk_size_bytes} bytes "
            f"per sweep, chunks per call: {self.config.chunks_per_call_sweep}"
        )

        records = await self.sweep.execute()

        errors = sum(1 for record in records if record.is_error())
        if errors:
            logger.warning(f"{errors} pushes failed, see the report for details")
        return records
