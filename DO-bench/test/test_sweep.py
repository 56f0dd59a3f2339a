"""
End-to-end sweep tests against the local block server.
"""

import json
import os
import sys
import tempfile
import unittest

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd
from aiohttp import test_utils

from algorithms.sweep import ChunkSweep
from common.errors import ConfigurationError
from configuration import BenchmarkConfig
from persistence.record import RunConfig
from systems.block_server import BlockServer

CHUNK = 1024
POOL_SIZE = 3


class TestChunkSweep(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.block_server = BlockServer(chunk_size=CHUNK, delay_seconds=0.002)
        self.server = test_utils.TestServer(self.block_server.make_app())
        await self.server.start_server()
        self.base_url = str(self.server.make_url("/"))

    async def asyncTearDown(self):
        await self.server.close()

    def make_config(self, total_chunks=10, sweep=(1,), **kwargs):
        return BenchmarkConfig(
            base_url=self.base_url,
            location_hint="wnam",
            total_chunks=total_chunks,
            chunk_size_bytes=CHUNK,
            max_concurrency=POOL_SIZE,
            chunks_per_call_sweep=list(sweep),
            **kwargs,
        )

    async def test_all_pushes_succeed(self):
        records = await ChunkSweep(self.make_config()).execute()

        self.assertEqual(len(records), 1)
        summary = records[0]
        self.assertIsNone(summary.error)
        self.assertEqual(summary.pushes_dispatched, 10)
        self.assertEqual(summary.pushes_succeeded, 10)
        self.assertEqual(summary.concurrent_jobs, POOL_SIZE)
        self.assertEqual(summary.total_data_transferred_bytes, 10 * CHUNK)
        self.assertEqual(summary.config_used, RunConfig(CHUNK, 1))
        self.assertEqual(self.block_server.put_count, 10)
        self.assertLessEqual(self.block_server.max_concurrent_puts, POOL_SIZE)

    async def test_rejected_range_is_recorded(self):
        self.block_server.add_fault(3, 3, 500, "boom")

        records = await ChunkSweep(self.make_config()).execute()

        errors = [r for r in records if r.is_error()]
        summaries = [r for r in records if not r.is_error()]
        self.assertEqual(len(errors), 1)
        self.assertIn("boom", errors[0].error)
        self.assertEqual(errors[0].config_used, RunConfig(CHUNK, 1))
        self.assertEqual(errors[0].avg_time_per_push_ms, 0.0)
        self.assertEqual(len(summaries), 1)
        self.assertEqual(summaries[0].pushes_dispatched, 10)
        # Average covers the 9 successful samples only
        self.assertEqual(summaries[0].pushes_succeeded, 9)
        self.assertIs(records[-1], summaries[0])

    async def test_summaries_follow_configuration_order(self):
        sweep = ChunkSweep(self.make_config(total_chunks=20, sweep=(1, 10, 20, 3)))
        records = await sweep.execute()

        self.assertEqual([r.config_used.chunks_per_call for r in records], [1, 10, 20, 3])
        self.assertEqual([r.pushes_dispatched for r in records], [20, 2, 1, 7])
        self.assertTrue(sweep.phase_manager.is_done())
        self.assertEqual(sweep.phase_manager.sweeps_completed, 4)
        self.assertEqual(sweep.token_pool.available(), POOL_SIZE)

    async def test_errors_precede_their_summary(self):
        self.block_server.add_fault(0, 4, 503, "busy")

        records = await ChunkSweep(self.make_config(sweep=(1, 5))).execute()

        self.assertEqual(len(records), 3)
        self.assertEqual(records[0].config_used.chunks_per_call, 1)
        self.assertIsNone(records[0].error)
        self.assertIn("busy", records[1].error)
        self.assertEqual(records[1].config_used.chunks_per_call, 5)
        self.assertEqual(records[2].pushes_succeeded, 1)

    async def test_writes_report_and_push_records(self):
        with tempfile.TemporaryDirectory() as tmp:
            sweep = ChunkSweep(self.make_config(sweep=(1, 5), record_pushes=True), output_dir=tmp)
            records = await sweep.execute()

            with open(sweep.report_path) as f:
                report = json.load(f)
            self.assertEqual(len(report), len(records))
            self.assertEqual(report[0]["config_used"], {"chunk_size_bytes": CHUNK, "chunks_per_call": 1})
            self.assertEqual(report[1]["total_data_transferred_bytes"], 10 * CHUNK)

            pushes = pd.read_parquet(sweep.pushes_path)
            self.assertEqual(len(pushes), 10 + 2)
            self.assertTrue((pushes["http_status"] == 200).all())
            self.assertEqual(sorted(pushes["chunks_per_call"].unique()), [1, 5])

    async def test_sweep_without_cleanup_keeps_chunks(self):
        await ChunkSweep(self.make_config()).execute()

        store = self.block_server.blocks[("wnam-location", "wnam")]
        self.assertEqual(sorted(store.chunks), list(range(10)))

    async def test_cleanup_frees_block(self):
        await ChunkSweep(self.make_config(), cleanup=True).execute()

        self.assertEqual(list(self.block_server.blocks), [("wnam-location", "wnam")])
        self.assertEqual(self.block_server.blocks[("wnam-location", "wnam")].chunks, {})

    async def test_recorded_pushes_logged_without_output_dir(self):
        sweep = ChunkSweep(self.make_config(total_chunks=4, record_pushes=True))

        with self.assertLogs("common.dispatcher", level="INFO") as logs:
            await sweep.execute()

        self.assertIsNone(sweep.persistence)
        timings = [line for line in logs.output if "Uploading bytes took" in line]
        self.assertEqual(len(timings), 4)

    async def test_unreachable_endpoint_records_errors(self):
        await self.server.close()

        records = await ChunkSweep(self.make_config(total_chunks=4)).execute()

        self.assertEqual(len([r for r in records if r.is_error()]), 4)
        self.assertEqual(records[-1].pushes_succeeded, 0)
        self.assertEqual(records[-1].avg_time_per_push_ms, 0.0)

    def test_invalid_configuration_is_rejected(self):
        config = BenchmarkConfig(base_url="http://localhost", chunk_size_bytes=0,
                                 chunks_per_call_sweep=[1])
        with self.assertRaises(ConfigurationError):
            ChunkSweep(config)


if __name__ == '__main__':
    unittest.main()
