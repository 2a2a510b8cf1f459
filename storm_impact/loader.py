"""
Dataset loader (compressed CSV -> DataFrame)
============================================

This module reads the NOAA Storm Events export used by the Coursera
Reproducible Research course (`repdata_data_StormData.csv.bz2`) and returns a
DataFrame restricted to the columns the report needs, under canonical names.

Key ideas:
- Column names are resolved case/punctuation-insensitively, so "EVTYPE",
  "evtype" and "Ev Type" all match.
- Compression is inferred from the file extension (.bz2, .gz, .zip, or none).
- Only type coercion is applied: numbers that fail to parse become 0 and
  magnitude codes become upper-case strings. Rows are never dropped here.
"""

from __future__ import annotations
from typing import Dict, List, Optional
import logging
import re

import pandas as pd

from .models import (
    BGN_DATE, CODE_COLUMNS, EVTYPE, NUMERIC_COLUMNS, REQUIRED_COLUMNS, YEAR,
)

logger = logging.getLogger(__name__)

DEFAULT_CSV = "repdata_data_StormData.csv.bz2"

# BGN_DATE looks like "4/18/1950 0:00:00"
_DATE_FORMAT = "%m/%d/%Y %H:%M:%S"


class MissingColumnError(KeyError):
    """Raised when a required column cannot be found in the CSV header."""

    def __init__(self, tried, available):
        self.tried = tuple(tried)
        self.available = list(available)
        super().__init__(f"Missing required column. Tried={self.tried}. Available={self.available}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())


def _col(columns: List[str], *names: str) -> str:
    for n in names:
        if n in columns:
            return n
    norm_map = {_norm(c): c for c in columns}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    raise MissingColumnError(names, columns)


def _optional_col(columns: List[str], *names: str) -> Optional[str]:
    try:
        return _col(columns, *names)
    except MissingColumnError:
        return None


def resolve_columns(columns: List[str]) -> Dict[str, str]:
    """Map canonical column names to the names used in the file header.

    Returns:
        dict of file column -> canonical column, ready for `DataFrame.rename`.
    """
    columns = [str(c).strip() for c in columns]
    mapping: Dict[str, str] = {}
    for canonical in REQUIRED_COLUMNS:
        mapping[_col(columns, canonical)] = canonical
    date_col = _optional_col(columns, BGN_DATE, "Begin Date")
    if date_col:
        mapping[date_col] = BGN_DATE
    return mapping


def normalize_event_type(s: pd.Series) -> pd.Series:
    """Upper-case labels and collapse internal whitespace ("Tstm  Wind" -> "TSTM WIND")."""
    return s.str.upper().str.replace(r"\s+", " ", regex=True).str.strip()


def coerce(df: pd.DataFrame, *, normalize_event_types: bool = False) -> pd.DataFrame:
    """Apply the type coercion rules to a frame that already uses canonical names."""
    out = df.copy()
    out[EVTYPE] = out[EVTYPE].fillna("").astype(str).str.strip()
    if normalize_event_types:
        out[EVTYPE] = normalize_event_type(out[EVTYPE])
    for c in NUMERIC_COLUMNS:
        out[c] = pd.to_numeric(out[c], errors="coerce").fillna(0.0).astype(float)
    for c in CODE_COLUMNS:
        out[c] = out[c].fillna("").astype(str).str.strip().str.upper()
    if BGN_DATE in out.columns:
        dates = pd.to_datetime(out[BGN_DATE], format=_DATE_FORMAT, errors="coerce")
        out[YEAR] = dates.dt.year.astype("Int64")
    return out


def load_storm_csv(path: str = DEFAULT_CSV, *, normalize_event_types: bool = False) -> pd.DataFrame:
    """
    Load the storm dataset and return a coerced DataFrame.

    Only the report columns (plus BGN_DATE when present) are read, which keeps
    memory low for the ~900k-row export.
    """
    logger.info("Reading %s", path)
    header = pd.read_csv(path, nrows=0, compression="infer")
    mapping = resolve_columns(list(header.columns))
    # header names may carry stray whitespace; usecols must see the raw names
    raw_by_stripped = {str(c).strip(): c for c in header.columns}
    usecols = [raw_by_stripped[c] for c in mapping]

    df = pd.read_csv(
        path,
        usecols=usecols,
        dtype={raw_by_stripped[c]: str for c in mapping if mapping[c] in CODE_COLUMNS + (EVTYPE, BGN_DATE)},
        compression="infer",
        low_memory=False,
    )
    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    df.rename(columns=mapping, inplace=True)
    logger.debug("Read %d rows, columns=%s", len(df), list(df.columns))
    return coerce(df, normalize_event_types=normalize_event_types)
