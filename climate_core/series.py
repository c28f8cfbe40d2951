# climate_core/series.py

import math
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union
import numpy as np
import pandas as pd
from climate_core.countries import normalize

COUNTRY_COL = "name"
TIME_COL = "year"
VALUE_COL = "value"
DATASET_COLUMNS = [COUNTRY_COL, TIME_COL, VALUE_COL]

_YEAR_ONLY = re.compile(r"^\s*-?\d{1,4}\s*$")


@dataclass(frozen=True)
class ClimateSample:
    country: str
    timestamp: Union[int, str, None]
    value: Optional[float]


@dataclass(frozen=True)
class YearlySeries:
    labels: List[int] = field(default_factory=list)
    values: List[Optional[float]] = field(default_factory=list)

    def __post_init__(self):
        if len(self.labels) != len(self.values):
            raise ValueError(f"labels/values length mismatch: {len(self.labels)} != {len(self.values)}")

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def is_empty(self) -> bool:
        return not self.labels

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"year": self.labels, "value": self.values})


EMPTY_SERIES = YearlySeries()


def clean_value(v) -> Optional[float]:
    if v is None:
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def year_of(ts) -> Optional[int]:
    """Year from a bare year (1990, "1990") or a date-like value ("1990-05-01")."""
    if ts is None or isinstance(ts, bool):
        return None
    if isinstance(ts, (int, np.integer)):
        return int(ts)
    if isinstance(ts, (float, np.floating)):
        return int(ts) if math.isfinite(ts) and float(ts).is_integer() else None
    if isinstance(ts, str):
        if _YEAR_ONLY.match(ts):
            return int(ts)
        parsed = pd.to_datetime(ts, errors="coerce")
        return None if pd.isna(parsed) else int(parsed.year)
    if hasattr(ts, "year"):
        try:
            return int(ts.year)
        except (TypeError, ValueError):
            return None
    return None


def samples_to_frame(samples: Iterable[ClimateSample]) -> pd.DataFrame:
    rows = [(s.country, s.timestamp, s.value) for s in samples]
    df = pd.DataFrame(rows, columns=DATASET_COLUMNS)
    df[VALUE_COL] = pd.to_numeric(df[VALUE_COL], errors="coerce")
    return df


def _sort_key(ts):
    y = year_of(ts)
    if isinstance(ts, str) and not _YEAR_ONLY.match(ts):
        parsed = pd.to_datetime(ts, errors="coerce")
        if not pd.isna(parsed):
            return (y, parsed.month, parsed.day)
    return (y if y is not None else math.inf, 0, 0)


def series_for_country(dataset: pd.DataFrame, country_name) -> YearlySeries:
    """Time-ordered series of one country; empty series means "not found"."""
    key = normalize(country_name)
    if not key or dataset is None or dataset.empty:
        return EMPTY_SERIES

    rows = dataset[dataset[COUNTRY_COL].map(normalize) == key]
    if rows.empty:
        return EMPTY_SERIES

    order = [_sort_key(ts) for ts in rows[TIME_COL]]
    rows = rows.assign(
        _y=[k[0] for k in order],
        _m=[k[1] for k in order],
        _d=[k[2] for k in order],
    )
    rows = rows[rows["_y"] != math.inf].sort_values(["_y", "_m", "_d"], kind="stable")

    labels = [int(y) for y in rows["_y"]]
    values = [clean_value(v) for v in rows[VALUE_COL]]
    return YearlySeries(labels=labels, values=values)


def global_series(dataset: pd.DataFrame) -> YearlySeries:
    """Per-year mean over every country, rounded to 2 decimals.

    Years without a single valid value are left out instead of zero-filled.
    """
    if dataset is None or dataset.empty:
        return EMPTY_SERIES

    df = pd.DataFrame({
        "_y": dataset[TIME_COL].map(year_of),
        VALUE_COL: pd.to_numeric(dataset[VALUE_COL], errors="coerce").astype(float),
    })
    df[VALUE_COL] = df[VALUE_COL].where(np.isfinite(df[VALUE_COL]))
    means = df.dropna(subset=["_y", VALUE_COL]).groupby("_y")[VALUE_COL].mean().round(2).sort_index()

    return YearlySeries(labels=[int(y) for y in means.index], values=[float(v) for v in means])


def country_names(dataset: pd.DataFrame) -> List[str]:
    if dataset is None or dataset.empty:
        return []
    names = dataset[COUNTRY_COL].dropna().astype(str).str.strip()
    return sorted(set(n for n in names if n))
