# climate_api/datasets.py

import io
import json
import logging
import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path
from typing import Callable, Dict, Optional
import numpy as np
import pandas as pd
import requests
import streamlit as st
from climate_core.aggregate import MONTHS_PER_YEAR, to_yearly_means
from climate_core.dashboard import PRECIPITATION, TEMPERATURE
from climate_core.errors import CollaboratorUnavailable
from climate_core.series import COUNTRY_COL, DATASET_COLUMNS, VALUE_COL

logger = logging.getLogger(__name__)

METRICS = [TEMPERATURE, PRECIPITATION]

# monthly JSON arrays start in January of this year
MONTHLY_START_YEAR = 1901
MONTHLY_KEYS = {TEMPERATURE: "tas", PRECIPITATION: "pr"}


def _is_url(source: str) -> bool:
    return str(source).startswith(("http://", "https://"))


def _fetch_text(source: str, timeout: float) -> str:
    try:
        if _is_url(source):
            r = requests.get(source, headers={"User-Agent": "Climate-Risk-Explorer/1.0"}, timeout=timeout)
            r.raise_for_status()
            return r.text
        return Path(source).read_text(encoding="utf-8")
    except (requests.RequestException, OSError) as e:
        raise CollaboratorUnavailable("dataset", f"{source}: {e}") from e


def _pick_column(df: pd.DataFrame, pattern: str, exclude=()) -> Optional[str]:
    for c in df.columns:
        if c in exclude:
            continue
        if re.fullmatch(pattern, str(c).strip(), re.I):
            return c
    return None


def tidy_dataset(raw: pd.DataFrame) -> pd.DataFrame:
    """Bring a country/year/value table into the name/year/value shape.

    Blank names are dropped; missing values stay missing.
    """
    df = raw.copy()
    df.columns = [str(c).strip() for c in df.columns]

    name_col = _pick_column(df, r"name|country|country[ _]?name|entity|area")
    year_col = _pick_column(df, r"year|date|time", exclude=(name_col,))
    val_col = _pick_column(df, r"value|val", exclude=(name_col, year_col))
    if val_col is None:
        numeric = [c for c in df.columns if c not in (name_col, year_col)
                   and pd.api.types.is_numeric_dtype(df[c])]
        val_col = numeric[-1] if numeric else None

    if name_col is None or year_col is None or val_col is None:
        raise CollaboratorUnavailable("dataset", f"unrecognised columns {list(df.columns)}")

    out = df[[name_col, year_col, val_col]].copy()
    out.columns = DATASET_COLUMNS
    out[COUNTRY_COL] = out[COUNTRY_COL].astype("string").str.strip()
    out = out[out[COUNTRY_COL].notna() & (out[COUNTRY_COL] != "")]
    out[COUNTRY_COL] = out[COUNTRY_COL].astype(str)
    out[VALUE_COL] = pd.to_numeric(out[VALUE_COL], errors="coerce")
    return out.reset_index(drop=True)


def load_csv_dataset(source: str, timeout: float = 20) -> pd.DataFrame:
    text = _fetch_text(source, timeout)
    try:
        raw = pd.read_csv(io.StringIO(text))
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise CollaboratorUnavailable("dataset", f"{source}: {e}") from e
    df = tidy_dataset(raw)
    logger.info("Loaded %d rows (%d countries) from %s", len(df), df[COUNTRY_COL].nunique(), source)
    return df


def monthly_payload_to_frame(payload, metric: str, start_year: int = MONTHLY_START_YEAR) -> pd.DataFrame:
    """Turn ``[{country, tas: [...], pr: [...]}, ...]`` into yearly rows for one metric."""
    key = MONTHLY_KEYS.get(metric, metric)
    if isinstance(payload, dict):
        payload = payload.get("data", payload.get("countries", []))
    if not isinstance(payload, list):
        raise CollaboratorUnavailable("dataset", "monthly payload is not a list of countries")

    rows = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        country = entry.get("country")
        monthly = entry.get(key)
        if not isinstance(country, str) or not country.strip() or not isinstance(monthly, list):
            continue
        for i, mean in enumerate(to_yearly_means(monthly, MONTHS_PER_YEAR)):
            rows.append((country.strip(), start_year + i, np.nan if mean is None else mean))

    return pd.DataFrame(rows, columns=DATASET_COLUMNS)


def load_monthly_dataset(source: str, metric: str, timeout: float = 20) -> pd.DataFrame:
    text = _fetch_text(source, timeout)
    try:
        payload = json.loads(text)
    except ValueError as e:
        raise CollaboratorUnavailable("dataset", f"{source}: {e}") from e
    df = monthly_payload_to_frame(payload, metric)
    logger.info("Loaded %d yearly %s rows from %s", len(df), metric, source)
    return df


class DatasetCache:
    """Write-once-per-metric store of loaded datasets.

    ``load`` hands back a Future right away; the loader runs once per metric
    until ``reload`` drops the entry. Metrics load independently.
    """

    def __init__(self, loaders: Dict[str, Callable[[], pd.DataFrame]], max_workers: int = 2):
        self._loaders = dict(loaders)
        self._futures: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dataset")

    def load(self, metric: str) -> Future:
        if metric not in self._loaders:
            raise KeyError(f"No loader registered for metric '{metric}'")
        with self._lock:
            fut = self._futures.get(metric)
            if fut is None:
                logger.debug("Submitting %s dataset load", metric)
                fut = self._pool.submit(self._loaders[metric])
                self._futures[metric] = fut
            return fut

    def load_all(self) -> Dict[str, Future]:
        return {m: self.load(m) for m in self._loaders}

    def reload(self, metric: Optional[str] = None) -> None:
        with self._lock:
            if metric is None:
                self._futures.clear()
            else:
                self._futures.pop(metric, None)

    def get(self, metric: str, timeout: Optional[float] = None) -> pd.DataFrame:
        fut = self.load(metric)
        try:
            return fut.result(timeout=timeout)
        except FutureTimeout as e:
            raise CollaboratorUnavailable("dataset", f"{metric} load timed out") from e
        except CollaboratorUnavailable:
            self._forget(metric, fut)
            raise
        except (ValueError, KeyError, TypeError, OSError) as e:
            self._forget(metric, fut)
            raise CollaboratorUnavailable("dataset", f"{metric}: {e}") from e

    def _forget(self, metric: str, fut: Future) -> None:
        # a failed load is not cached, the next get retries
        with self._lock:
            if self._futures.get(metric) is fut:
                del self._futures[metric]

    def failed(self, metric: str) -> bool:
        fut = self._futures.get(metric)
        return fut is not None and fut.done() and not fut.cancelled() and fut.exception() is not None

    def peek(self, metric: str) -> Optional[pd.DataFrame]:
        fut = self._futures.get(metric)
        if fut is None or not fut.done() or fut.cancelled() or fut.exception() is not None:
            return None
        return fut.result()


def dataset_loaders(settings) -> Dict[str, Callable[[], pd.DataFrame]]:
    timeout = settings.http_timeout
    if settings.monthly_data_url:
        url = settings.monthly_data_url
        return {m: (lambda m=m: load_monthly_dataset(url, m, timeout)) for m in METRICS}
    return {
        TEMPERATURE: lambda: load_csv_dataset(settings.temperature_data_url, timeout),
        PRECIPITATION: lambda: load_csv_dataset(settings.precipitation_data_url, timeout),
    }


def build_dataset_cache(settings) -> DatasetCache:
    return DatasetCache(dataset_loaders(settings))


# one cache per data source set, shared by every page and session;
# keyed by the Settings field values
@st.cache_resource(show_spinner=False)
def get_dataset_cache(settings) -> DatasetCache:
    cache = build_dataset_cache(settings)
    cache.load_all()
    return cache
