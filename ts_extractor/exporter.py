"""Tabular export of decoded time-series records."""

from pathlib import Path
from typing import Sequence

import pandas as pd

from .decoder import TIMESTAMP_FORMAT, TimeSeriesRecord


class RecordExporter:
    """Handles exporting records to a DataFrame, dict or CSV."""

    def __init__(
        self,
        records: Sequence[TimeSeriesRecord],
        time_label: str = "timestamp",
        value_label: str = "value"
    ):
        """Initialize exporter.

        Args:
            records: Decoded records, in extraction order
            time_label: Label for time column
            value_label: Label for value column
        """
        self.records = list(records)
        self.time_label = time_label
        self.value_label = value_label
        self._df = None

    @property
    def dataframe(self) -> pd.DataFrame:
        """Get records as a pandas DataFrame (rows keep extraction order)."""
        if self._df is None:
            self._df = pd.DataFrame({
                self.time_label: pd.to_datetime(
                    [r.timestamp for r in self.records], utc=True
                ),
                self.value_label: pd.Series([r.value for r in self.records], dtype="float64"),
            })
        return self._df

    def to_dict(self) -> dict:
        """Export records as a dictionary of column lists.

        Timestamps are written back in their canonical string form.
        """
        return {
            self.time_label: [r.timestamp.strftime(TIMESTAMP_FORMAT) for r in self.records],
            self.value_label: [r.value for r in self.records],
        }

    def to_csv(self, filepath: str | Path, include_header: bool = True) -> Path:
        """Export records to a CSV file.

        Args:
            filepath: Output file path
            include_header: Include column headers

        Returns:
            Path to created file
        """
        filepath = Path(filepath)
        pd.DataFrame(self.to_dict()).to_csv(filepath, index=False, header=include_header)
        return filepath
