"""
Visualization orchestrator for block benchmark results.

Builds plots from a saved sweep report (JSON) and, optionally, the raw push
records (Parquet).
"""

import logging
import os
from typing import List, Optional

import pandas as pd

from common.metrics_utils import calculate_latency_stats
from persistence.report import load_report
from visualizations.sweep_plots import PushLatencyPlotter, SweepPlotter, summaries_to_dataframe

logger = logging.getLogger(__name__)


class BenchmarkVisualizer:
    """Simple visualizer for sweep reports using the modular plot classes."""

    def __init__(self, report_file: str, output_dir: str = "plots", parquet_file: Optional[str] = None):
        self.report_file = report_file
        self.parquet_file = parquet_file
        self.output_dir = output_dir

        os.makedirs(output_dir, exist_ok=True)

        summaries = summaries_to_dataframe(load_report(report_file))
        logger.info(f"Loaded {len(summaries)} sweep summaries from {report_file}")
        self.sweep_plotter = SweepPlotter(summaries, output_dir)

        self.push_plotter = None
        if parquet_file:
            pushes = pd.read_parquet(parquet_file)
            logger.info(f"Loaded {len(pushes)} push records from {parquet_file}")
            for chunks_per_call, group in pushes.groupby('chunks_per_call'):
                stats = calculate_latency_stats(group)
                logger.info(
                    f"cpc_{chunks_per_call}: avg {stats['avg']:.2f} ms, p50 {stats['p50']:.2f} ms, "
                    f"p95 {stats['p95']:.2f} ms, p99 {stats['p99']:.2f} ms"
                )
            self.push_plotter = PushLatencyPlotter(pushes, output_dir)

    def create_all_plots(self) -> List[str]:
        """Create every available plot and return the written paths."""
        plots = [
            self.sweep_plotter.create_latency_vs_chunks_per_call(),
            self.sweep_plotter.create_throughput_vs_chunks_per_call(),
        ]
        if self.push_plotter is not None:
            plots.append(self.push_plotter.create_latency_boxplot())

        return [plot for plot in plots if plot]
