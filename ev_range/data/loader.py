"""
Data loader module for reading vehicle specification tables.

Provides utilities for:
- Reading CSV files from disk
- Parsing raw CSV text into records
- Opportunistic numeric coercion of cell values
"""

import csv
import logging
import math
from pathlib import Path
from typing import Any, List, Optional, Union

import pandas as pd

from ..exceptions import FormatError

logger = logging.getLogger(__name__)


def coerce_value(value: str) -> Any:
    """
    Convert a raw cell to a float when it parses as a number.

    Empty cells (and literal NaN) become None; anything else that
    does not parse as a number is kept as stripped text.
    """
    value = value.strip()
    if value == '':
        return None

    try:
        number = float(value)
    except ValueError:
        return value

    if math.isnan(number):
        return None
    return number


class DataLoader:
    """
    CSV ingestion for vehicle specification data.

    Rows are returned as a DataFrame of ``object`` dtype so that each
    cell keeps the type it was coerced to (float, str or None).
    """

    def __init__(self, config=None):
        """
        Initialize data loader.

        Args:
            config: Optional configuration object
        """
        self.config = config
        self.dropped_rows = 0

    def load_csv(self, filepath: Optional[Union[str, Path]] = None) -> pd.DataFrame:
        """
        Load and parse a CSV file.

        Args:
            filepath: Path to CSV file (default: configured data path)

        Returns:
            DataFrame of raw records
        """
        if filepath is None:
            if self.config is None:
                raise ValueError("No file path given and no configuration available")
            filepath = self.config.data_path

        filepath = Path(filepath)

        try:
            text = filepath.read_text(encoding='utf-8')
        except OSError as e:
            raise FormatError(f"CSV loading failed: {e}") from e

        df = self.parse_csv(text)
        logger.info(f"Loaded {len(df)} samples from {filepath}")

        return df

    def parse_csv(self, text: str) -> pd.DataFrame:
        """
        Parse CSV text into a DataFrame of raw records.

        Args:
            text: Raw CSV text including a header row

        Returns:
            DataFrame with one row per well-formed data line
        """
        lines = text.strip().splitlines()
        if len(lines) < 2:
            raise FormatError("CSV file must contain header and at least one data row")

        try:
            rows = list(csv.reader(lines))
        except csv.Error as e:
            raise FormatError(f"CSV parsing failed: {e}") from e

        headers = [h.strip() for h in rows[0]]

        records: List[List[Any]] = []
        dropped = 0
        for values in rows[1:]:
            # Rows with a mismatched field count are skipped, not fatal
            if len(values) != len(headers):
                dropped += 1
                continue
            records.append([coerce_value(v) for v in values])

        self.dropped_rows = dropped
        if dropped:
            logger.warning(f"Skipped {dropped} rows with mismatched column count")

        return pd.DataFrame(records, columns=headers, dtype=object)
