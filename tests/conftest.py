"""Shared pytest fixtures for storm_impact tests."""

import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

from storm_impact.loader import coerce


RAW_ROWS = [
    # EVTYPE, BGN_DATE, FATALITIES, INJURIES, PROPDMG, PROPDMGEXP, CROPDMG, CROPDMGEXP
    ("TORNADO", "4/18/1950 0:00:00", 5, 10, 25.0, "K", 0.0, ""),
    ("TORNADO", "6/1/1995 0:00:00", 1, 20, 2.5, "M", 1.0, "K"),
    ("FLOOD", "1/5/2000 0:00:00", 0, 2, 1.0, "B", 5.0, "M"),
    ("HEAT", "7/1/2005 0:00:00", 10, 3, 0.0, "", 0.0, ""),
    ("HAIL", "5/3/2010 0:00:00", 0, 0, 5.0, "h", 2.0, "m"),
    ("FLOOD", "3/3/2011 0:00:00", 2, 0, 3.0, "5", 0.0, "?"),
]

COLUMNS = ["EVTYPE", "BGN_DATE", "FATALITIES", "INJURIES", "PROPDMG", "PROPDMGEXP", "CROPDMG", "CROPDMGEXP"]


@pytest.fixture
def raw_frame():
    """Storm rows as they appear in the CSV, plus a column the report ignores."""
    df = pd.DataFrame(RAW_ROWS, columns=COLUMNS)
    df.insert(1, "STATE", ["AL", "TX", "MO", "IL", "KS", "MO"])
    return df


@pytest.fixture
def storm_frame(raw_frame):
    """Coerced frame with canonical columns (what load_storm_csv returns)."""
    return coerce(raw_frame.drop(columns=["STATE"]))


@pytest.fixture
def storm_csv(tmp_path, raw_frame):
    """bz2-compressed CSV written like the published export."""
    path = tmp_path / "repdata_data_StormData.csv.bz2"
    raw_frame.to_csv(path, index=False)
    return str(path)
