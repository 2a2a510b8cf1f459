"""Tests for the dataset loader."""

import pandas as pd
import pytest

from storm_impact.loader import (
    MissingColumnError,
    coerce,
    load_storm_csv,
    normalize_event_type,
    resolve_columns,
)
from storm_impact.models import REQUIRED_COLUMNS, YEAR


class TestResolveColumns:
    """Tests for header resolution."""

    def test_exact_names(self):
        """Canonical names map to themselves."""
        mapping = resolve_columns(list(REQUIRED_COLUMNS))
        assert mapping == {c: c for c in REQUIRED_COLUMNS}

    def test_case_and_punctuation_insensitive(self):
        """'ev type' and 'propdmg_exp' still resolve."""
        header = ["ev type", "Fatalities", "injuries", "PropDmg", "propdmg_exp", "cropdmg", "CROP-DMG-EXP"]
        mapping = resolve_columns(header)
        assert mapping["ev type"] == "EVTYPE"
        assert mapping["propdmg_exp"] == "PROPDMGEXP"
        assert mapping["CROP-DMG-EXP"] == "CROPDMGEXP"

    def test_begin_date_is_optional(self):
        """BGN_DATE is only mapped when present."""
        assert "BGN_DATE" not in resolve_columns(list(REQUIRED_COLUMNS)).values()
        assert resolve_columns(list(REQUIRED_COLUMNS) + ["BGN_DATE"])["BGN_DATE"] == "BGN_DATE"

    def test_missing_column_raises(self):
        """A missing required column names what was tried."""
        header = [c for c in REQUIRED_COLUMNS if c != "CROPDMG"]
        with pytest.raises(MissingColumnError) as exc:
            resolve_columns(header)
        assert "CROPDMG" in str(exc.value)
        assert isinstance(exc.value, KeyError)


class TestCoerce:
    """Tests for type coercion."""

    def test_non_numeric_becomes_zero(self, raw_frame):
        """Unparseable numbers become 0 instead of failing."""
        raw_frame["FATALITIES"] = raw_frame["FATALITIES"].astype(object)
        raw_frame.loc[0, "FATALITIES"] = "n/a"
        raw_frame.loc[1, "INJURIES"] = None
        df = coerce(raw_frame)
        assert df.loc[0, "FATALITIES"] == 0.0
        assert df.loc[1, "INJURIES"] == 0.0
        assert df["FATALITIES"].dtype == float

    def test_codes_upper_cased(self, raw_frame):
        """Magnitude codes are stripped and upper-cased; NaN becomes ''."""
        raw_frame.loc[3, "PROPDMGEXP"] = None
        raw_frame.loc[4, "CROPDMGEXP"] = " m "
        df = coerce(raw_frame)
        assert df.loc[3, "PROPDMGEXP"] == ""
        assert df.loc[4, "CROPDMGEXP"] == "M"
        assert df.loc[4, "PROPDMGEXP"] == "H"

    def test_year_from_begin_date(self, storm_frame):
        """YEAR is derived from BGN_DATE."""
        assert list(storm_frame[YEAR]) == [1950, 1995, 2000, 2005, 2010, 2011]

    def test_unparseable_date_gives_missing_year(self, raw_frame):
        raw_frame.loc[0, "BGN_DATE"] = "sometime"
        df = coerce(raw_frame)
        assert pd.isna(df.loc[0, YEAR])
        assert df.loc[1, YEAR] == 1995

    def test_event_types_kept_verbatim_by_default(self, raw_frame):
        """Only surrounding whitespace is removed unless normalization is asked for."""
        raw_frame.loc[0, "EVTYPE"] = "  Tstm  Wind "
        assert coerce(raw_frame).loc[0, "EVTYPE"] == "Tstm  Wind"
        assert coerce(raw_frame, normalize_event_types=True).loc[0, "EVTYPE"] == "TSTM WIND"


def test_normalize_event_type():
    s = pd.Series(["tstm wind", "TSTM   WIND", " Flash Flood"])
    assert list(normalize_event_type(s)) == ["TSTM WIND", "TSTM WIND", "FLASH FLOOD"]


class TestLoadStormCsv:
    """Tests for reading the compressed export."""

    def test_reads_bz2(self, storm_csv):
        """The bz2 export loads with canonical columns only."""
        df = load_storm_csv(storm_csv)
        assert len(df) == 6
        assert "STATE" not in df.columns
        for c in REQUIRED_COLUMNS:
            assert c in df.columns
        assert YEAR in df.columns

    def test_codes_survive_as_strings(self, storm_csv):
        """Digit codes stay strings and blank codes become ''."""
        df = load_storm_csv(storm_csv)
        assert df.loc[5, "PROPDMGEXP"] == "5"
        assert df.loc[3, "PROPDMGEXP"] == ""
        assert df.loc[4, "PROPDMGEXP"] == "H"

    def test_plain_csv_without_dates(self, tmp_path, raw_frame):
        """Uncompressed files and files without BGN_DATE load too."""
        path = tmp_path / "storm.csv"
        raw_frame.drop(columns=["BGN_DATE"]).to_csv(path, index=False)
        df = load_storm_csv(str(path))
        assert len(df) == 6
        assert YEAR not in df.columns

    def test_header_whitespace(self, tmp_path, raw_frame):
        """Header names padded with spaces still resolve."""
        path = tmp_path / "storm.csv"
        raw_frame.rename(columns={"EVTYPE": " EVTYPE "}).to_csv(path, index=False)
        df = load_storm_csv(str(path))
        assert df.loc[0, "EVTYPE"] == "TORNADO"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_storm_csv(str(tmp_path / "nope.csv.bz2"))

    def test_missing_column(self, tmp_path, raw_frame):
        path = tmp_path / "storm.csv"
        raw_frame.drop(columns=["INJURIES"]).to_csv(path, index=False)
        with pytest.raises(MissingColumnError):
            load_storm_csv(str(path))
