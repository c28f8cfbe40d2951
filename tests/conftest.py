"""
Shared fixtures for the climate pipeline tests.

Nothing here touches the network: geocoder, datasets and narrative are
small in-memory fakes that follow the same call contracts as the real
collaborators.
"""

from typing import Dict, List, Optional

import pandas as pd
import pytest

from climate_api.geocoding import Place
from climate_core.errors import CollaboratorUnavailable

START_YEAR = 1961
N_YEARS = 40


def yearly_rows(country: str, baseline: float, recent: float, years: int = N_YEARS, start: int = START_YEAR):
    """Flat baseline for the first 30 years, flat `recent` for the last 5, linear in between."""
    rows = []
    for i in range(years):
        if i < 30:
            v = baseline
        elif i >= years - 5:
            v = recent
        else:
            v = (baseline + recent) / 2
        rows.append((country, start + i, v))
    return rows


@pytest.fixture
def temperature_df():
    rows = (
        yearly_rows("France", 11.0, 12.7)
        + yearly_rows("Kenya", 24.0, 24.2)
        + yearly_rows("Congo (Kinshasa)", 25.0, 25.5)
        + yearly_rows("Tiny Island", 27.0, 27.5, years=20)
    )
    return pd.DataFrame(rows, columns=["name", "year", "value"])


@pytest.fixture
def precipitation_df():
    rows = (
        yearly_rows("France", 800.0, 810.0)
        + yearly_rows("Kenya", 100.0, 80.0)
        + yearly_rows("Congo (Kinshasa)", 1500.0, 1500.0)
        + yearly_rows("Tiny Island", 2000.0, 2100.0, years=20)
    )
    return pd.DataFrame(rows, columns=["name", "year", "value"])


class FakeSurface:
    """Records every rendering call as (method, args)."""

    def __init__(self):
        self.calls: List[tuple] = []

    def _record(self, name, *args):
        self.calls.append((name,) + args)

    def update_series(self, chart, labels, values, series_label):
        self._record("update_series", chart, list(labels), list(values), series_label)

    def set_marker(self, lat, lon, popup_metrics, risk_color):
        self._record("set_marker", lat, lon, popup_metrics, risk_color)

    def fit_bounds(self, bounding_box):
        self._record("fit_bounds", bounding_box)

    def set_view(self, lat, lon, zoom):
        self._record("set_view", lat, lon, zoom)

    def highlight_region(self, polygon):
        self._record("highlight_region", polygon)

    def show_message(self, panel, message, level="info"):
        self._record("show_message", panel, message, level)

    def show_narrative(self, text):
        self._record("show_narrative", text)

    def named(self, name):
        return [c for c in self.calls if c[0] == name]


class FakeDatasets:
    def __init__(self, frames: Dict[str, Optional[pd.DataFrame]], failing=()):
        self.frames = frames
        self.failing = set(failing)
        self.retried: List[str] = []

    def get(self, metric, timeout=None):
        if metric in self.failing or self.frames.get(metric) is None:
            raise CollaboratorUnavailable("dataset", f"{metric} broken")
        return self.frames[metric]

    def peek(self, metric):
        if metric in self.failing:
            return None
        return self.frames.get(metric)

    def failed(self, metric):
        return metric in self.failing

    def reload(self, metric=None):
        self.retried.append(metric)

    def load(self, metric):
        return None


class FakeGeocoder:
    def __init__(self, places: Optional[Dict[str, Place]] = None, reverse: Optional[Place] = None):
        self.places = places or {}
        self.reverse = reverse
        self.queries: List[str] = []

    def resolve_by_name(self, query):
        self.queries.append(query)
        return self.places.get(query)

    def resolve_by_coordinate(self, lat, lon):
        return self.reverse


class FakeNarrator:
    def __init__(self, text="Summary text.", error=False):
        self.text = text
        self.error = error
        self.prompts: List[str] = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise CollaboratorUnavailable("narrative", "rate limited")
        return self.text


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def datasets(temperature_df, precipitation_df):
    return FakeDatasets({"temperature": temperature_df, "precipitation": precipitation_df})


@pytest.fixture
def paris():
    return Place(
        lat=48.8589,
        lon=2.3200,
        display_name="Paris, Île-de-France, France métropolitaine, France",
        country_name="France",
        bounding_box=(48.8156, 48.9022, 2.2242, 2.4699),
    )


@pytest.fixture
def nairobi():
    return Place(lat=-1.2864, lon=36.8172, display_name="Nairobi, Kenya", country_name="Kenya")


@pytest.fixture
def polygons():
    return [
        {"type": "Feature", "properties": {"name": "Kenya"}, "geometry": {"type": "Polygon", "coordinates": []}},
        {"type": "Feature", "properties": {"name": "France"}, "geometry": {"type": "Polygon", "coordinates": []}},
    ]


@pytest.fixture
def make_dashboard(surface, datasets, polygons):
    from climate_api.boundaries import find_boundary
    from climate_api.narrative import build_climate_prompt
    from climate_core.dashboard import Dashboard

    def _make(places=None, reverse=None, narrator=None, data=None, boundaries=True):
        return Dashboard(
            geocoder=FakeGeocoder(places, reverse),
            datasets=data or datasets,
            surface=surface,
            boundaries=(lambda: polygons) if boundaries else None,
            find_boundary=find_boundary,
            narrator=narrator,
            build_prompt=build_climate_prompt,
            default_zoom=5,
        )

    return _make
