"""
CSV Data Extraction

Reads a delimited source file into raw rows where every value is a string.
No type inference happens here; that is the transform stage's job.
"""

import logging
import os
from typing import Dict, List, Optional, Sequence

import pandas as pd

logger = logging.getLogger(__name__)


class CsvExtractor:
    """
    Extracts raw rows from a CSV file.

    Every cell is read as text: empty cells stay "" and tokens such as
    "None" or "NaN" are not converted.
    """

    def __init__(self, delimiter: str = ",", encoding: str = "utf-8"):
        self.delimiter = delimiter
        self.encoding = encoding

    def extract(self, file_path: str, expected_columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """
        Read a CSV file into a DataFrame of strings.

        Args:
            file_path: Path to the CSV file
            expected_columns: Columns the dataset should carry; missing ones
                are reported but not fatal (their values read as absent)

        Returns:
            pandas DataFrame with one string column per header

        Raises:
            FileNotFoundError: If the file does not exist
        """
        if not os.path.exists(file_path):
            logger.error(f"File not found: {file_path}")
            raise FileNotFoundError(f"File not found: {file_path}")

        try:
            df = pd.read_csv(
                file_path,
                sep=self.delimiter,
                encoding=self.encoding,
                dtype=str,
                keep_default_na=False,
                na_filter=False,
                skip_blank_lines=True,
            )
        except pd.errors.EmptyDataError:
            logger.warning(f"No data found in {file_path}")
            return pd.DataFrame()
        except Exception as e:
            logger.error(f"Error reading {file_path}: {e}")
            raise

        df = self._normalize_columns(df)

        if expected_columns:
            missing = [column for column in expected_columns if column not in df.columns]
            if missing:
                logger.warning(f"{file_path} is missing columns: {', '.join(missing)}")

        logger.info(f"Finished reading {file_path}. Total rows: {len(df)}")
        logger.debug(f"Columns: {list(df.columns)}")

        return df

    def _normalize_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Normalize column names to lowercase with surrounding whitespace removed.

        Args:
            df: DataFrame with raw column names

        Returns:
            DataFrame with normalized column names
        """
        df.columns = df.columns.str.strip().str.lower()
        return df


def dataframe_to_rows(df: pd.DataFrame) -> List[Dict[str, Optional[str]]]:
    """
    Convert a string DataFrame into a list of row dictionaries, in file order.

    Cells missing from short rows come back from pandas as NaN; they are
    returned as None (absent).
    """
    if df.empty:
        return []
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def read_csv_rows(file_path: str, expected_columns: Optional[Sequence[str]] = None) -> List[Dict[str, Optional[str]]]:
    """
    Convenience function to read a CSV file into raw rows.

    Args:
        file_path: Path to the CSV file
        expected_columns: Columns the dataset should carry

    Returns:
        List of row dictionaries keyed by column name
    """
    extractor = CsvExtractor()
    return dataframe_to_rows(extractor.extract(file_path, expected_columns))
