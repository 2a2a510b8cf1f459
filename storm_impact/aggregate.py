"""
Aggregation and ranking
=======================

This is the heart of the report. Every table is produced the same way:

1) group the rows by EVTYPE and sum one measure
2) rank the sums in non-increasing order (ties broken by event type, A-Z)
3) optionally keep only the top N

Two tables are combined rankings:
- health: fatalities + injuries per event type
- economic: property damage merged with crop damage (outer merge on EVTYPE,
  a side missing from one table counts as 0), ranked by the total

`StormAnalysis` wraps a loaded DataFrame and keeps the settings of a run
(exponent policy, year bounds) next to the data, so the CLI and the report
read everything from one place.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging

import pandas as pd

from .damage import scale_damage
from .models import (
    CROPDMG_USD, EVTYPE, FATALITIES, HEALTH_TOTAL, INJURIES, PROPDMG_USD, RANK,
    TOTAL_USD, YEAR, EconomicImpact, HealthImpact, RankedRow,
)

logger = logging.getLogger(__name__)


def _check_top_n(top_n: Optional[int]) -> None:
    if top_n is not None and top_n <= 0:
        raise ValueError(f"top_n must be a positive integer, got {top_n}")


def rank_frame(table: pd.DataFrame, by: str, top_n: Optional[int] = None) -> pd.DataFrame:
    """Sort a per-event-type table by `by` (descending), then EVTYPE (ascending).

    A 1-based RANK column is inserted first.
    """
    _check_top_n(top_n)
    out = table.sort_values([by, EVTYPE], ascending=[False, True]).reset_index(drop=True)
    if top_n is not None:
        out = out.head(top_n).copy()
    out.insert(0, RANK, range(1, len(out) + 1))
    return out


def rank(values: pd.Series, top_n: Optional[int] = None) -> pd.DataFrame:
    """Rank a Series indexed by event type.

    Returns:
        DataFrame with columns RANK, EVTYPE and the series name.
    """
    name = values.name or "VALUE"
    table = values.rename(name).rename_axis(EVTYPE).reset_index()
    return rank_frame(table, name, top_n)


def sum_by_event(df: pd.DataFrame, column: str) -> pd.Series:
    """Sum one measure per EVTYPE."""
    return df.groupby(EVTYPE)[column].sum()


def filter_years(df: pd.DataFrame, y1: Optional[int] = None, y2: Optional[int] = None) -> pd.DataFrame:
    """Keep rows whose YEAR lies in [y1, y2]; a None bound is open."""
    if y1 is None and y2 is None:
        return df
    if YEAR not in df.columns:
        raise ValueError("Year filter needs a BGN_DATE column, which this dataset does not have.")
    if y1 is not None and y2 is not None and y1 > y2:
        raise ValueError(f"Year range is empty: {y1} > {y2}")
    mask = df[YEAR].notna()
    if y1 is not None:
        mask &= df[YEAR] >= y1
    if y2 is not None:
        mask &= df[YEAR] <= y2
    out = df[mask.fillna(False).astype(bool)]
    if out.empty:
        start = y1 if y1 is not None else "start"
        end = y2 if y2 is not None else "end"
        raise ValueError(f"No events between {start} and {end}.")
    logger.info("Year filter %s-%s kept %d of %d rows", y1, y2, len(out), len(df))
    return out


def combine_health(fatalities: pd.DataFrame, injuries: pd.DataFrame, top_n: Optional[int] = None) -> pd.DataFrame:
    """Outer-merge ranked fatality and injury tables and rank by their sum."""
    merged = fatalities[[EVTYPE, FATALITIES]].merge(injuries[[EVTYPE, INJURIES]], on=EVTYPE, how="outer")
    merged[[FATALITIES, INJURIES]] = merged[[FATALITIES, INJURIES]].fillna(0)
    merged[HEALTH_TOTAL] = merged[FATALITIES] + merged[INJURIES]
    return rank_frame(merged, HEALTH_TOTAL, top_n)


def combine_damage(prop: pd.DataFrame, crop: pd.DataFrame, top_n: Optional[int] = None) -> pd.DataFrame:
    """Outer-merge property and crop damage tables and rank by TOTAL_USD."""
    merged = prop[[EVTYPE, PROPDMG_USD]].merge(crop[[EVTYPE, CROPDMG_USD]], on=EVTYPE, how="outer")
    merged[[PROPDMG_USD, CROPDMG_USD]] = merged[[PROPDMG_USD, CROPDMG_USD]].fillna(0.0)
    merged[TOTAL_USD] = merged[PROPDMG_USD] + merged[CROPDMG_USD]
    return rank_frame(merged, TOTAL_USD, top_n)


def health_impact(df: pd.DataFrame, top_n: Optional[int] = None) -> HealthImpact:
    fatalities = rank(sum_by_event(df, FATALITIES))
    injuries = rank(sum_by_event(df, INJURIES))
    combined = combine_health(fatalities, injuries, top_n)
    if top_n is not None:
        fatalities, injuries = fatalities.head(top_n), injuries.head(top_n)
    return HealthImpact(fatalities=fatalities, injuries=injuries, combined=combined)


def economic_impact(df: pd.DataFrame, top_n: Optional[int] = None) -> EconomicImpact:
    """Rank property, crop and total damage. `df` must already be scaled."""
    prop = rank(sum_by_event(df, PROPDMG_USD))
    crop = rank(sum_by_event(df, CROPDMG_USD))
    combined = combine_damage(prop, crop, top_n)
    if top_n is not None:
        prop, crop = prop.head(top_n), crop.head(top_n)
    return EconomicImpact(property=prop, crop=crop, combined=combined)


def top_rows(table: pd.DataFrame, column: str, parts: Tuple[str, ...] = ()) -> List[RankedRow]:
    """Convert a ranked table into RankedRow records (for printing and the DOCX report)."""
    out: List[RankedRow] = []
    for row in table.itertuples(index=False):
        r = row._asdict()
        out.append(RankedRow(
            rank=int(r[RANK]),
            event_type=str(r[EVTYPE]),
            value=float(r[column]),
            parts=tuple(float(r[p]) for p in parts) if parts else None,
        ))
    return out


@dataclass
class StormAnalysis:
    """One report run: the loaded data plus the settings that shaped it.

    `data` is scaled on construction; filters replace it with a subset.
    """
    data: pd.DataFrame
    policy: str = "standard"
    dataset_path: Optional[str] = None
    year_range: Tuple[Optional[int], Optional[int]] = (None, None)
    rows_loaded: int = field(init=False)

    def __post_init__(self) -> None:
        self.rows_loaded = len(self.data)
        self.data = scale_damage(self.data, self.policy)

    def filter_years(self, y1: Optional[int] = None, y2: Optional[int] = None) -> None:
        self.data = filter_years(self.data, y1, y2)
        self.year_range = (y1, y2)

    def health(self, top_n: Optional[int] = None) -> HealthImpact:
        return health_impact(self.data, top_n)

    def economic(self, top_n: Optional[int] = None) -> EconomicImpact:
        return economic_impact(self.data, top_n)

    def summary(self) -> Dict[str, object]:
        """Headline numbers for the console and the DOCX report."""
        d = self.data
        info: Dict[str, object] = {
            "dataset": self.dataset_path,
            "year_filter": self.year_range,
            "rows_loaded": self.rows_loaded,
            "rows_in_scope": len(d),
            "event_types": int(d[EVTYPE].nunique()),
            "fatalities": float(d[FATALITIES].sum()),
            "injuries": float(d[INJURIES].sum()),
            "property_usd": float(d[PROPDMG_USD].sum()),
            "crop_usd": float(d[CROPDMG_USD].sum()),
            "year_min": None,
            "year_max": None,
        }
        if YEAR in d.columns and d[YEAR].notna().any():
            info["year_min"] = int(d[YEAR].min())
            info["year_max"] = int(d[YEAR].max())
        return info
