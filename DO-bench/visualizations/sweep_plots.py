"""
Plots of sweep summaries and raw push latencies against chunks per call.
"""

import logging
import os
from typing import List

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from .base import BasePlotter

logger = logging.getLogger(__name__)


def summaries_to_dataframe(report: List[dict]) -> pd.DataFrame:
    """Flatten the summary entries of a sweep report, dropping per-push errors."""
    rows = []
    for entry in report:
        if entry.get("error") is not None or not entry.get("config_used"):
            continue
        rows.append({
            "chunks_per_call": entry["config_used"]["chunks_per_call"],
            "chunk_size_bytes": entry["config_used"]["chunk_size_bytes"],
            "avg_time_per_push_ms": entry["avg_time_per_push_ms"],
            "total_time_push_ms": entry["total_time_push_ms"],
            "throughput_gbps": entry.get("throughput_gbps", 0.0),
            "pushes_dispatched": entry.get("pushes_dispatched", 0),
            "pushes_succeeded": entry.get("pushes_succeeded", 0),
            "concurrent_jobs": entry["concurrent_jobs"],
        })
    return pd.DataFrame(rows)


class SweepPlotter(BasePlotter):
    """Plotter for per-configuration sweep summaries."""

    def create_latency_vs_chunks_per_call(self):
        """Average push latency and total sweep time against chunks per call."""
        if not self.has_data():
            logger.warning("No summaries available for latency plot")
            return None

        try:
            data = self.data.sort_values("chunks_per_call")
            fig, ax1 = plt.subplots(figsize=(12, 7))

            ax1.plot(data["chunks_per_call"], data["avg_time_per_push_ms"],
                     marker="o", linewidth=2, color="tab:blue", label="Avg time per push")
            ax1.set_xlabel("Chunks per call", fontsize=12)
            ax1.set_ylabel("Avg time per push (ms)", fontsize=12, color="tab:blue")
            ax1.grid(True, alpha=0.3)

            ax2 = ax1.twinx()
            ax2.plot(data["chunks_per_call"], data["total_time_push_ms"],
                     marker="s", linestyle="--", linewidth=2, color="tab:red", label="Total sweep time")
            ax2.set_ylabel("Total sweep time (ms)", fontsize=12, color="tab:red")

            fig.suptitle("Push Latency vs Chunks per Call", fontsize=14)
            fig.tight_layout()

            output_file = os.path.join(self.output_dir, "latency_vs_chunks_per_call.png")
            plt.savefig(output_file, dpi=150, bbox_inches="tight")
            plt.close(fig)

            logger.info(f"Created latency plot: {output_file}")
            return output_file

        except Exception as e:
            logger.error(f"Failed to create latency plot: {e}")
            return None

    def create_throughput_vs_chunks_per_call(self):
        """Throughput of acknowledged bytes against chunks per call."""
        if not self.has_data():
            logger.warning("No summaries available for throughput plot")
            return None

        try:
            data = self.data.sort_values("chunks_per_call")
            plt.figure(figsize=(12, 7))
            plt.bar(data["chunks_per_call"].astype(str), data["throughput_gbps"],
                    color="skyblue", edgecolor="black", alpha=0.8)
            plt.title("Throughput vs Chunks per Call", fontsize=14)
            plt.xlabel("Chunks per call", fontsize=12)
            plt.ylabel("Throughput (Gbps)", fontsize=12)
            plt.grid(True, axis="y", alpha=0.3)
            plt.tight_layout()

            output_file = os.path.join(self.output_dir, "throughput_vs_chunks_per_call.png")
            plt.savefig(output_file, dpi=150, bbox_inches="tight")
            plt.close()

            logger.info(f"Created throughput plot: {output_file}")
            return output_file

        except Exception as e:
            logger.error(f"Failed to create throughput plot: {e}")
            return None


class PushLatencyPlotter(BasePlotter):
    """Plotter for raw push records."""

    def create_latency_boxplot(self):
        """Distribution of successful push latencies per chunks-per-call value."""
        successful = self.filter_successful_requests()
        if successful is None or len(successful) == 0:
            logger.warning("No successful pushes for latency boxplot")
            return None

        try:
            groups = sorted(successful["chunks_per_call"].unique())
            samples = [successful[successful["chunks_per_call"] == g]["latency_ms"] for g in groups]

            plt.figure(figsize=(12, 7))
            plt.boxplot(samples)
            plt.xticks(range(1, len(groups) + 1), [str(g) for g in groups])
            plt.title("Push Latency Distribution by Chunks per Call", fontsize=14)
            plt.xlabel("Chunks per call", fontsize=12)
            plt.ylabel("Latency (ms)", fontsize=12)
            plt.grid(True, alpha=0.3)
            plt.tight_layout()

            output_file = os.path.join(self.output_dir, "push_latency_boxplot.png")
            plt.savefig(output_file, dpi=150, bbox_inches="tight")
            plt.close()

            logger.info(f"Created push latency boxplot: {output_file}")
            return output_file

        except Exception as e:
            logger.error(f"Failed to create push latency boxplot: {e}")
            return None
