"""
Shared utilities for benchmark metrics calculations: throughput, latency and averages.
"""

import logging
from typing import Sequence

import pandas as pd

from configuration import (
    BITS_PER_BYTE,
    BYTES_PER_MB,
    GIGABITS_PER_GB,
)

logger = logging.getLogger(__name__)


def calculate_throughput_gbps(total_bytes: float, duration_seconds: float) -> float:
    """
    Calculate throughput in gigabits per second (Gbps) from bytes and duration.

    Args:
        total_bytes: Total bytes transferred
        duration_seconds: Duration in seconds

    Returns:
        Throughput in gigabits per second (Gbps)
    """
    if duration_seconds <= 0:
        return 0.0
    return (total_bytes * BITS_PER_BYTE) / (duration_seconds * GIGABITS_PER_GB)


def calculate_average(samples: Sequence[float]) -> float:
    """
    Mean of the latency samples, 0.0 when there are none.

    Only successful pushes produce a sample, so failed pushes do not drag the
    average down.
    """
    if not samples:
        return 0.0
    return sum(samples) / len(samples)


def calculate_latency_stats(data: pd.DataFrame, latency_col: str = 'latency_ms') -> dict:
    """
    Calculate latency statistics (mean and percentiles) from a DataFrame of push records.

    Args:
        data: DataFrame with latency data (must have http_status column)
        latency_col: Column name for latency values (default: 'latency_ms')

    Returns:
        Dictionary with avg, p50, p95, p99 latency statistics
    """
    if len(data) == 0 or latency_col not in data.columns:
        return {'avg': 0.0, 'p50': 0.0, 'p95': 0.0, 'p99': 0.0}

    successful_data = data[data['http_status'] == 200]

    if len(successful_data) == 0:
        return {'avg': 0.0, 'p50': 0.0, 'p95': 0.0, 'p99': 0.0}

    latencies = successful_data[latency_col]

    return {
        'avg': latencies.mean(),
        'p50': latencies.quantile(0.5),
        'p95': latencies.quantile(0.95),
        'p99': latencies.quantile(0.99)
    }


def bytes_to_mb(total_bytes: float) -> float:
    """Convert bytes to mebibytes."""
    return total_bytes / BYTES_PER_MB
