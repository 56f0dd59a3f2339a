"""
Parquet persistence for raw chunk push records.
"""

import os
import logging
from typing import List, Optional
from datetime import datetime

import pandas as pd

from persistence.record import PushRecord

logger = logging.getLogger(__name__)


class ParquetPersistence:
    """Parquet file persistence for push records.

    Records are kept in memory during the sweeps and written once at the end.

    Attributes:
        output_dir: Directory where Parquet files will be saved
        records: List of push records accumulated during the benchmark
    """

    def __init__(self, output_dir: str = "results"):
        """Initialize Parquet persistence.

        Args:
            output_dir: Directory for saving Parquet files (default: 'results')
        """
        self.output_dir: str = output_dir
        self.records: List[PushRecord] = []

        os.makedirs(output_dir, exist_ok=True)

    def store_record(self, record: PushRecord) -> None:
        """Store a push record in memory.

        Args:
            record: Push record to store
        """
        self.records.append(record)

    def to_dataframe(self) -> pd.DataFrame:
        data = []
        for record in self.records:
            data.append({
                'chunks_per_call': record.chunks_per_call,
                'range_start': record.range_start,
                'range_end': record.range_end,
                'bytes': record.bytes,
                'latency_ms': record.latency_ms,
                'http_status': record.http_status,
                'error': record.error,
                'start_ts': record.start_ts,
                'end_ts': record.end_ts,
            })
        return pd.DataFrame(data)

    def save_to_file(self, filename_prefix: str = "pushes") -> Optional[str]:
        """Save all records to a Parquet file.

        Args:
            filename_prefix: Prefix for the generated filename (default: 'pushes')

        Returns:
            Path to the saved file, or None if no records to save
        """
        if not self.records:
            return None

        logger.info(f"Saving {len(self.records)} push records to file")
        df = self.to_dataframe()

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{filename_prefix}_{timestamp}.parquet"
        filepath = os.path.join(self.output_dir, filename)

        df.to_parquet(filepath, index=False)

        return filepath
