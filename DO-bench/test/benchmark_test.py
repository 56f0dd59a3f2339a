"""
Basic tests for the block benchmark components.
"""

import unittest
import tempfile
import json
import os
import sys
from unittest.mock import patch

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from configuration import (
    CHUNK_SIZE_BYTES,
    MAX_CHUNK_SIZE_BYTES,
    TOTAL_CHUNKS,
    BenchmarkConfig,
    load_env,
    parse_sweep,
)
from common.errors import BenchmarkSetupError, ConfigurationError
from common.metrics_utils import calculate_average, calculate_throughput_gbps
from common.phase_manager import DISPATCHING, DRAINING, IDLE, SUMMARIZED, PhaseManager
from persistence.parquet import ParquetPersistence
from persistence.record import PushRecord, ResultRecord, RunConfig
from persistence.report import emit_report, load_report, render_report


class TestBenchmarkComponents(unittest.TestCase):
    """Test basic benchmark components."""

    def test_configuration(self):
        """Test configuration constants."""
        self.assertIsInstance(TOTAL_CHUNKS, int)
        self.assertGreater(TOTAL_CHUNKS, 0)
        self.assertLessEqual(CHUNK_SIZE_BYTES, MAX_CHUNK_SIZE_BYTES)
        self.assertEqual(parse_sweep("1, 10,20"), [1, 10, 20])

    def test_default_config_is_valid(self):
        BenchmarkConfig().validate()

    def test_config_validation(self):
        bad_configs = [
            BenchmarkConfig(base_url=""),
            BenchmarkConfig(total_chunks=0),
            BenchmarkConfig(chunk_size_bytes=MAX_CHUNK_SIZE_BYTES + 1),
            BenchmarkConfig(max_concurrency=0),
            BenchmarkConfig(chunks_per_call_sweep=[]),
            BenchmarkConfig(chunks_per_call_sweep=[1, 0]),
            BenchmarkConfig(request_timeout_seconds=-1),
        ]
        for config in bad_configs:
            with self.assertRaises(ConfigurationError, msg=repr(config)):
                config.validate()
        self.assertTrue(issubclass(ConfigurationError, BenchmarkSetupError))

    def test_load_env_defaults(self):
        config = load_env({})
        self.assertEqual(config.total_chunks, TOTAL_CHUNKS)
        self.assertEqual(config.chunks_per_call_sweep, [1, 10, 20, 30, 40, 50])
        config.validate()

    def test_load_env_overrides(self):
        config = load_env({
            "DO_BENCH_URL": "https://block.test",
            "DO_BENCH_TOTAL_CHUNKS": "64",
            "DO_BENCH_CHUNKS_PER_CALL": "4,8",
            "DO_BENCH_REQUEST_TIMEOUT": "2.5",
        })
        self.assertEqual(config.base_url, "https://block.test")
        self.assertEqual(config.total_chunks, 64)
        self.assertEqual(config.chunks_per_call_sweep, [4, 8])
        self.assertEqual(config.request_timeout_seconds, 2.5)

    def test_load_env_malformed(self):
        bad_values = [
            {"DO_BENCH_TOTAL_CHUNKS": "abc"},
            {"DO_BENCH_CHUNK_SIZE_BYTES": "1.5"},
            {"DO_BENCH_CHUNKS_PER_CALL": "1,x"},
            {"DO_BENCH_REQUEST_TIMEOUT": "soon"},
        ]
        for environ in bad_values:
            with self.assertRaises(ConfigurationError, msg=repr(environ)) as ctx:
                load_env(environ)
            self.assertIn(next(iter(environ)), str(ctx.exception))

    def test_run_config(self):
        """Test RunConfig equality and immutability."""
        config = RunConfig(1024, 10)
        self.assertEqual(config.bytes_per_call(), 10240)
        self.assertEqual(config, RunConfig(1024, 10))
        self.assertNotEqual(config, RunConfig(1024, 20))
        with self.assertRaises(AttributeError):
            config.chunks_per_call = 5

    def test_result_record(self):
        """Test ResultRecord serialization."""
        summary = ResultRecord(
            avg_time_per_push_ms=12.5,
            total_time_push_ms=250.0,
            total_data_transferred_bytes=2048,
            concurrent_jobs=5,
            config_used=RunConfig(1024, 1),
            pushes_dispatched=2,
            pushes_succeeded=2,
        )
        data = summary.to_dict()
        self.assertIsNone(data["error"])
        self.assertEqual(data["concurrent_jobs"], 5)
        self.assertEqual(data["config_used"], {"chunk_size_bytes": 1024, "chunks_per_call": 1})
        self.assertFalse(summary.is_error())

        failure = ResultRecord.failure("status code is not 200: boom")
        self.assertTrue(failure.is_error())
        self.assertIsNone(failure.to_dict()["config_used"])

    def test_metrics(self):
        self.assertEqual(calculate_average([]), 0.0)
        self.assertEqual(calculate_average([1.0, 2.0, 3.0]), 2.0)
        self.assertEqual(calculate_throughput_gbps(1_000_000_000, 8), 1.0)
        self.assertEqual(calculate_throughput_gbps(100, 0), 0.0)


class TestReport(unittest.TestCase):

    def test_render_keeps_order(self):
        records = [ResultRecord.failure("first"), ResultRecord(concurrent_jobs=3)]
        rendered = json.loads(render_report(records))
        self.assertEqual(rendered[0]["error"], "first")
        self.assertEqual(rendered[1]["concurrent_jobs"], 3)

    def test_emit_without_output_dir(self):
        with self.assertLogs("persistence.report", level="INFO"):
            self.assertIsNone(emit_report([ResultRecord()]))

    def test_emit_and_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = emit_report([ResultRecord(concurrent_jobs=5, config_used=RunConfig(8, 2))], tmp)
            self.assertTrue(os.path.exists(path))
            report = load_report(path)
            self.assertEqual(report[0]["config_used"]["chunks_per_call"], 2)


class TestParquetPersistence(unittest.TestCase):

    def test_save_records(self):
        with tempfile.TemporaryDirectory() as tmp:
            persistence = ParquetPersistence(tmp)
            self.assertIsNone(persistence.save_to_file())

            persistence.store_record(PushRecord(1, 0, 1, 1024, 3.2, 200))
            persistence.store_record(PushRecord(1, 1, 2, 1024, 0.0, 500, error="boom"))
            path = persistence.save_to_file()

            self.assertTrue(path.endswith(".parquet"))
            df = persistence.to_dataframe()
            self.assertEqual(len(df), 2)
            self.assertEqual(list(df["http_status"]), [200, 500])


class TestPhaseManager(unittest.TestCase):

    def test_sweep_lifecycle(self):
        manager = PhaseManager()
        self.assertEqual(manager.phase, IDLE)

        manager.begin_sweep("cpc_1")
        self.assertEqual(manager.phase, DISPATCHING)
        manager.transition(DRAINING)
        manager.transition(SUMMARIZED)
        manager.transition(IDLE)
        self.assertEqual(manager.sweeps_completed, 1)

        manager.finish()
        self.assertTrue(manager.is_done())

    def test_sweep_duration_logged_on_summary(self):
        manager = PhaseManager()
        with patch("common.phase_manager.time") as mock_time:
            mock_time.time.side_effect = [100.0, 100.0, 101.0, 102.5, 102.5]
            with self.assertLogs("common.phase_manager", level="INFO") as logs:
                manager.begin_sweep("cpc_1")
                manager.transition(DRAINING)
                manager.transition(SUMMARIZED)

        self.assertIn("Sweep cpc_1 summarized after 2.500s", logs.output[-1])
        self.assertEqual(manager.phase_start_ts, 102.5)

    def test_invalid_transition(self):
        manager = PhaseManager()
        with self.assertRaises(RuntimeError):
            manager.transition(SUMMARIZED)


if __name__ == '__main__':
    unittest.main()
