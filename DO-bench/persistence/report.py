"""
JSON report of a complete sweep run.
"""

import json
import logging
import os
from datetime import datetime
from typing import List, Optional

from configuration import REPORT_JSON_INDENT
from persistence.record import ResultRecord

logger = logging.getLogger(__name__)


def render_report(records: List[ResultRecord]) -> str:
    """Serialize the records, in order, as an indented JSON array."""
    return json.dumps([record.to_dict() for record in records], indent=REPORT_JSON_INDENT)


def emit_report(records: List[ResultRecord], output_dir: Optional[str] = None) -> Optional[str]:
    """Log the report and optionally write it to ``output_dir``.

    Returns:
        Path of the written file, or None when only logged
    """
    rendered = render_report(records)
    logger.info(f"Sweep report:\n{rendered}")

    if not output_dir:
        return None

    os.makedirs(output_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = os.path.join(output_dir, f"sweep_{timestamp}.json")
    with open(filepath, "w") as f:
        f.write(rendered)
    logger.info(f"Report written to {filepath}")
    return filepath


def load_report(path: str) -> List[dict]:
    """Read a report written by emit_report."""
    with open(path) as f:
        return json.load(f)
