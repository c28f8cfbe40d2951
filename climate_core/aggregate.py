# climate_core/aggregate.py

from typing import List, Mapping, Optional, Sequence
import numpy as np
from climate_core.series import YearlySeries, clean_value

MONTHS_PER_YEAR = 12


def _sample_value(sample) -> Optional[float]:
    if isinstance(sample, Mapping):
        return clean_value(sample.get("value"))
    return clean_value(getattr(sample, "value", sample))


def _mean_or_none(values: Sequence[Optional[float]]) -> Optional[float]:
    valid = np.array([v for v in values if v is not None], dtype=float)
    if valid.size == 0:
        return None
    return float(valid.mean())


def to_yearly_means(samples: Sequence, samples_per_year: int = MONTHS_PER_YEAR) -> List[Optional[float]]:
    """Fold fixed-size chunks of sub-annual samples into one mean each.

    Samples may be plain numbers, mappings with a "value" key, or objects
    with a ``value`` attribute. A chunk without any valid sample yields None,
    and a trailing partial chunk is still averaged.
    """
    if int(samples_per_year) < 1:
        raise ValueError(f"samples_per_year must be >= 1, got {samples_per_year}")
    step = int(samples_per_year)

    values = [_sample_value(s) for s in samples]
    return [_mean_or_none(values[i:i + step]) for i in range(0, len(values), step)]


def collapse_to_years(series: YearlySeries) -> YearlySeries:
    """Merge repeated year labels (e.g. monthly rows) into yearly means.

    Input labels must already be in ascending order.
    """
    if len(set(series.labels)) == len(series.labels):
        return series

    labels: List[int] = []
    buckets: List[List[Optional[float]]] = []
    for year, value in zip(series.labels, series.values):
        if labels and labels[-1] == year:
            buckets[-1].append(value)
        else:
            labels.append(year)
            buckets.append([value])
    return YearlySeries(labels=labels, values=[_mean_or_none(b) for b in buckets])
