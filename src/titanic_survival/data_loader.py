import logging
import os

import pandas as pd

from .exceptions import DataParseError

logger = logging.getLogger(__name__)


def _check_field_counts(file_path):
    """Reject rows with fewer fields than the header; pandas raises on rows with more."""
    raw = pd.read_csv(file_path, header=None, dtype=str, keep_default_na=False)
    # with keep_default_na off, empty cells read as '' and only padded fields are NaN
    short_rows = raw.index[raw.isna().any(axis=1)]
    if len(short_rows) > 0:
        lines = [int(i) + 1 for i in short_rows[:5]]
        raise DataParseError(
            f"{file_path}: expected {raw.shape[1]} fields, found fewer on line(s) {lines}"
        )


def load_data(file_path, index_col=None):
    """
    Load a passenger CSV into a DataFrame

    Empty cells are read as missing values (NaN).

    Parameters:
    -----------
    file_path : str
        Path to the CSV file
    index_col : str, optional
        Column to use as the row index (e.g. the passenger identifier)

    Returns:
    --------
    pandas.DataFrame
        The loaded table
    """
    if not os.path.isfile(file_path):
        logger.error(f"Data file not found: {file_path}")
        raise FileNotFoundError(f"Data file not found: {file_path}")

    logger.info(f"Loading data from {file_path}")

    try:
        _check_field_counts(file_path)
        df = pd.read_csv(file_path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"Error parsing {file_path}: {e}")
        raise DataParseError(f"Could not parse {file_path}: {e}") from e

    if index_col is not None:
        if index_col not in df.columns:
            raise DataParseError(f"Index column {index_col!r} not found in {file_path}")
        df = df.set_index(index_col)

    logger.info(f"Data shape: {df.shape}")
    logger.info(f"Columns: {', '.join(df.columns.tolist())}")

    missing_values = df.isnull().sum()
    missing_values = missing_values[missing_values > 0]
    if len(missing_values) > 0:
        logger.warning(f"Missing values detected:\n{missing_values}")

    return df
