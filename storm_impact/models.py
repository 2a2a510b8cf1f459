"""
Data model (canonical columns and result records)
=================================================

The dataset itself stays a pandas DataFrame for the whole run; this module
only fixes the canonical column names used across the package and the small
immutable records handed to the presentation layer.

Result records are `frozen=True` so a ranking cannot be edited after it has
been computed; the report only reads them.
"""

from dataclasses import dataclass
from typing import Optional

import pandas as pd

EVTYPE = "EVTYPE"
FATALITIES = "FATALITIES"
INJURIES = "INJURIES"
PROPDMG = "PROPDMG"
PROPDMGEXP = "PROPDMGEXP"
CROPDMG = "CROPDMG"
CROPDMGEXP = "CROPDMGEXP"
BGN_DATE = "BGN_DATE"
YEAR = "YEAR"

# derived by damage.scale_damage
PROPDMG_USD = "PROPDMG_USD"
CROPDMG_USD = "CROPDMG_USD"

# derived by aggregate
TOTAL_USD = "TOTAL_USD"
HEALTH_TOTAL = "HEALTH_TOTAL"
RANK = "RANK"

NUMERIC_COLUMNS = (FATALITIES, INJURIES, PROPDMG, CROPDMG)
CODE_COLUMNS = (PROPDMGEXP, CROPDMGEXP)
REQUIRED_COLUMNS = (EVTYPE,) + NUMERIC_COLUMNS + CODE_COLUMNS


@dataclass(frozen=True)
class RankedRow:
    """One line of a ranked table: an event type and its aggregated value."""
    rank: int
    event_type: str
    value: float
    # only set for combined tables (e.g. property + crop)
    parts: Optional[tuple] = None


@dataclass(frozen=True)
class HealthImpact:
    """Ranked population-health tables."""
    fatalities: pd.DataFrame
    injuries: pd.DataFrame
    # fatalities + injuries per event type, ranked by the sum
    combined: pd.DataFrame


@dataclass(frozen=True)
class EconomicImpact:
    """Ranked economic-damage tables (values in US$)."""
    property: pd.DataFrame
    crop: pd.DataFrame
    # outer merge of property and crop, ranked by TOTAL_USD
    combined: pd.DataFrame

    def grand_total(self) -> float:
        """Total damage over every event type in the combined table."""
        return float(self.combined[TOTAL_USD].sum())
