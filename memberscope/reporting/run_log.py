"""
Run Log
=======

Appends one CSV line per executed report, so a series of runs against the
directory leaves an audit trail next to the exports.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from ..model.schemas import ReportResult


RUN_LOG_COLUMNS = ["timestamp", "operation", "subjects", "rows", "output"]


class RunLog:
    """CSV run log.

    Usage:
        log = RunLog("output/memberscope_runs.csv")
        log.record(result)
        history = log.read()
    """

    def __init__(self, path, delimiter: str = ",", encoding: str = "utf-8"):
        self.path = Path(path)
        self.delimiter = delimiter
        self.encoding = encoding

    def record(self, result: ReportResult, timestamp: Optional[datetime] = None) -> None:
        """Append a line for a finished report."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        row = {
            "timestamp": (timestamp or datetime.now()).isoformat(timespec="seconds"),
            "operation": result.operation,
            "subjects": " | ".join(str(s) for s in result.subjects),
            "rows": result.row_count,
            "output": result.report_path or "",
        }
        pd.DataFrame([row], columns=RUN_LOG_COLUMNS).to_csv(
            self.path,
            mode="a",
            header=not self.path.exists(),
            sep=self.delimiter,
            index=False,
            encoding=self.encoding
        )

    def read(self) -> pd.DataFrame:
        """Load the log; an absent log reads as an empty frame."""
        if not self.path.exists():
            return pd.DataFrame(columns=RUN_LOG_COLUMNS)
        return pd.read_csv(
            self.path,
            sep=self.delimiter,
            encoding=self.encoding,
            keep_default_na=False
        )
