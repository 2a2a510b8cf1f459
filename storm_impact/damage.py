"""
Damage normalization
====================

PROPDMG and CROPDMG hold three significant digits; the matching
PROPDMGEXP/CROPDMGEXP code says what to multiply them by:

    K -> thousands, M -> millions, B -> billions

The export also contains codes the documentation never defines (H, digits,
"+", "-", "?", blank). Two policies decide what happens to them:

- "standard": only K/M/B count; any other code contributes 0 US$.
- "extended": also H -> 1e2, digit d -> 10**d and blank -> 1;
  "+", "-" and "?" still contribute 0.
"""

from __future__ import annotations
from typing import Dict

import pandas as pd

from .models import CROPDMG, CROPDMG_USD, CROPDMGEXP, PROPDMG, PROPDMG_USD, PROPDMGEXP

MULTIPLIERS: Dict[str, float] = {"K": 1e3, "M": 1e6, "B": 1e9}

EXTENDED_MULTIPLIERS: Dict[str, float] = {
    **MULTIPLIERS,
    "H": 1e2,
    "": 1.0,
    **{str(d): 10.0 ** d for d in range(10)},
}

POLICIES = ("standard", "extended")

# (raw column, code column, scaled column)
DAMAGE_COLUMNS = (
    (PROPDMG, PROPDMGEXP, PROPDMG_USD),
    (CROPDMG, CROPDMGEXP, CROPDMG_USD),
)


def _table(policy: str) -> Dict[str, float]:
    if policy == "standard":
        return MULTIPLIERS
    if policy == "extended":
        return EXTENDED_MULTIPLIERS
    raise ValueError(f"exponent policy must be one of {POLICIES}, got {policy!r}")


def multiplier(code, policy: str = "standard") -> float:
    """Return the factor for one magnitude code (0.0 when the code is not recognized)."""
    table = _table(policy)
    if code is None or (not isinstance(code, str) and pd.isna(code)):
        code = ""
    return table.get(str(code).strip().upper(), 0.0)


def scale_damage(df: pd.DataFrame, policy: str = "standard") -> pd.DataFrame:
    """Return a copy of `df` with PROPDMG_USD and CROPDMG_USD added.

    scaled = raw amount * multiplier(code)
    """
    table = _table(policy)
    out = df.copy()
    for raw, code, scaled in DAMAGE_COLUMNS:
        codes = out[code].fillna("").astype(str).str.strip().str.upper()
        factor = codes.map(table).fillna(0.0).astype(float)
        out[scaled] = out[raw].astype(float) * factor
    return out


def code_breakdown(df: pd.DataFrame, policy: str = "standard") -> pd.DataFrame:
    """Count recognized vs unrecognized magnitude codes per damage column.

    Only rows with a non-zero raw amount are counted: a zero amount with an
    odd code does not lose any damage.

    Returns:
        DataFrame indexed by raw column name with columns
        `recognized`, `unrecognized` and `unrecognized_raw_sum`.
    """
    table = _table(policy)
    rows = []
    for raw, code, _ in DAMAGE_COLUMNS:
        has_amount = df[raw] != 0
        codes = df.loc[has_amount, code].fillna("").astype(str).str.strip().str.upper()
        known = codes.isin(list(table))
        amounts = df.loc[has_amount, raw]
        rows.append({
            "column": raw,
            "recognized": int(known.sum()),
            "unrecognized": int((~known).sum()),
            "unrecognized_raw_sum": float(amounts[~known].sum()),
        })
    return pd.DataFrame(rows).set_index("column")
