# climate_core/dashboard.py
"""Runs a place search or map click through the pipeline and onto a RenderingSurface."""

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple
from climate_core.aggregate import collapse_to_years
from climate_core.countries import suggest_countries
from climate_core.errors import CollaboratorUnavailable
from climate_core.risk import RiskAssessment, assess_risk, risk_color
from climate_core.series import EMPTY_SERIES, YearlySeries, country_names, global_series, series_for_country

logger = logging.getLogger(__name__)

TEMPERATURE = "temperature"
PRECIPITATION = "precipitation"

SERIES_LABELS = {
    TEMPERATURE: "Mean annual temperature (°C)",
    PRECIPITATION: "Annual precipitation (mm)",
}

DEFAULT_ZOOM = 5


class ActionState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    FOUND = "found"
    EXTRACTING = "extracting"
    ASSESSING = "assessing"
    READY = "ready"
    NOT_FOUND = "not_found"
    STALE = "stale"


class RenderingSurface(Protocol):
    def update_series(self, chart: str, labels: Sequence[int], values: Sequence[Optional[float]], series_label: str) -> None: ...

    def set_marker(self, lat: float, lon: float, popup_metrics: Dict[str, str], risk_color: str) -> None: ...

    def fit_bounds(self, bounding_box: Tuple[float, float, float, float]) -> None: ...

    def set_view(self, lat: float, lon: float, zoom: int) -> None: ...

    def highlight_region(self, polygon: Dict) -> None: ...

    def show_message(self, panel: str, message: str, level: str = "info") -> None: ...

    def show_narrative(self, text: str) -> None: ...


@dataclass
class DashboardResult:
    state: ActionState
    request_id: int
    query: str = ""
    coordinate: Optional[Tuple[float, float]] = None
    bounding_box: Optional[Tuple[float, float, float, float]] = None
    country_name: str = ""
    display_name: str = ""
    temperature_series: YearlySeries = EMPTY_SERIES
    precipitation_series: YearlySeries = EMPTY_SERIES
    risk_assessment: Optional[RiskAssessment] = None
    boundary: Optional[Dict] = None
    narrative: Optional[str] = None
    messages: List[str] = field(default_factory=list)


class Dashboard:
    """Wires resolver, datasets, boundaries and narrative to a rendering surface.

    `datasets` is a `DatasetCache` or anything with the same ``get``,
    ``peek``, ``failed``, ``reload`` and ``load`` methods. `boundaries` is a
    callable returning the polygon list; `find_boundary` does the lookup.
    """

    def __init__(
        self,
        geocoder,
        datasets,
        surface: RenderingSurface,
        boundaries: Optional[Callable[[], List[Dict]]] = None,
        find_boundary: Optional[Callable[[str, List[Dict]], Optional[Dict]]] = None,
        narrator=None,
        build_prompt: Optional[Callable] = None,
        default_zoom: int = DEFAULT_ZOOM,
        dataset_timeout: Optional[float] = 60,
    ):
        self.geocoder = geocoder
        self.datasets = datasets
        self.surface = surface
        self.boundaries = boundaries
        self.find_boundary = find_boundary
        self.narrator = narrator
        self.build_prompt = build_prompt
        self.default_zoom = default_zoom
        self.dataset_timeout = dataset_timeout
        self.state = ActionState.IDLE
        self._seq = itertools.count(1)
        self._latest = 0

    # ---- sequencing ----
    def _issue(self) -> int:
        self._latest = next(self._seq)
        return self._latest

    def is_current(self, request_id: int) -> bool:
        return request_id == self._latest

    def _enter(self, request_id: int, state: ActionState) -> None:
        if self.is_current(request_id):
            self.state = state

    # ---- global view ----
    def show_global(self) -> List[str]:
        """Draw the all-country average of every dataset that is already loaded.

        A dataset whose load failed gets an inline error and is queued again.
        """
        shown = []
        for metric in (TEMPERATURE, PRECIPITATION):
            if self.datasets.failed(metric):
                logger.warning("%s dataset failed to load, retrying", metric)
                self.surface.show_message(metric, f"{metric.title()} data could not be loaded.", "error")
                self.datasets.reload(metric)
                self.datasets.load(metric)
                continue
            df = self.datasets.peek(metric)
            if df is None:
                continue
            s = global_series(df)
            self.surface.update_series(metric, s.labels, s.values, f"Global average — {SERIES_LABELS[metric]}")
            shown.append(metric)
        return shown

    # ---- actions ----
    def search(self, query: str) -> DashboardResult:
        request_id = self._issue()
        self.state = ActionState.RESOLVING
        place = self.geocoder.resolve_by_name(query)
        if place is None:
            return self._not_found(request_id, query)
        return self._run(request_id, place, query=query, from_click=False)

    def map_click(self, lat: float, lon: float) -> DashboardResult:
        request_id = self._issue()
        self.state = ActionState.RESOLVING
        place = self.geocoder.resolve_by_coordinate(lat, lon)
        if place is None:
            return self._not_found(request_id, f"{lat:.4f}, {lon:.4f}", suggest=False)
        return self._run(request_id, place, query="", from_click=True)

    def _not_found(self, request_id: int, query: str, suggest: bool = True) -> DashboardResult:
        result = DashboardResult(ActionState.NOT_FOUND, request_id, query=query)
        if not self.is_current(request_id):
            result.state = ActionState.STALE
            return result
        self.state = ActionState.NOT_FOUND

        msg = f"No such location: {query}" if query else "No such location."
        hints = self._suggestions(query) if suggest else []
        if hints:
            msg += " Did you mean: " + ", ".join(hints) + "?"
        result.messages.append(msg)
        self.surface.show_message("search", msg, "warning")
        self.show_global()
        return result

    def _suggestions(self, query: str) -> List[str]:
        names = set()
        for metric in (TEMPERATURE, PRECIPITATION):
            df = self.datasets.peek(metric)
            if df is not None:
                names.update(country_names(df))
        return [nm for nm, _ in suggest_countries(query, names)]

    def _series(self, metric: str, country: str, result: DashboardResult) -> YearlySeries:
        try:
            df = self.datasets.get(metric, timeout=self.dataset_timeout)
        except CollaboratorUnavailable as e:
            logger.warning("%s dataset unavailable: %s", metric, e)
            result.messages.append(f"{metric.title()} data unavailable.")
            self.surface.show_message(metric, f"{metric.title()} data could not be loaded.", "error")
            return EMPTY_SERIES
        return collapse_to_years(series_for_country(df, country))

    def _run(self, request_id: int, place, query: str, from_click: bool) -> DashboardResult:
        self._enter(request_id, ActionState.FOUND)
        result = DashboardResult(
            ActionState.FOUND,
            request_id,
            query=query,
            coordinate=(place.lat, place.lon),
            bounding_box=None if from_click else place.bounding_box,
            country_name=place.country_name,
            display_name=place.display_name,
        )

        self._enter(request_id, ActionState.EXTRACTING)
        result.temperature_series = self._series(TEMPERATURE, place.country_name, result)
        result.precipitation_series = self._series(PRECIPITATION, place.country_name, result)

        self._enter(request_id, ActionState.ASSESSING)
        result.risk_assessment = assess_risk(result.temperature_series, result.precipitation_series)

        if self.boundaries is not None and self.find_boundary is not None:
            try:
                result.boundary = self.find_boundary(place.country_name, self.boundaries())
            except CollaboratorUnavailable as e:
                logger.warning("Boundary set unavailable: %s", e)

        if not self.is_current(request_id):
            logger.debug("Dropping stale result #%d (latest #%d)", request_id, self._latest)
            result.state = ActionState.STALE
            return result

        self._publish(result)
        self._narrate(request_id, result)
        self.state = ActionState.READY
        result.state = ActionState.READY
        return result

    def _publish(self, result: DashboardResult) -> None:
        label = result.country_name or result.display_name
        for metric, series in ((TEMPERATURE, result.temperature_series), (PRECIPITATION, result.precipitation_series)):
            self.surface.update_series(metric, series.labels, series.values, f"{label} — {SERIES_LABELS[metric]}")
            if series.is_empty:
                self.surface.show_message(metric, f"No {metric} records for {label}.", "info")

        lat, lon = result.coordinate
        if result.bounding_box:
            self.surface.fit_bounds(result.bounding_box)
        else:
            self.surface.set_view(lat, lon, self.default_zoom)

        if result.boundary is not None:
            self.surface.highlight_region(result.boundary)

        popup = {"Location": result.display_name, "Country": result.country_name}
        popup.update(result.risk_assessment.as_metrics())
        self.surface.set_marker(lat, lon, popup, risk_color(result.risk_assessment))

    def _narrate(self, request_id: int, result: DashboardResult) -> None:
        if self.narrator is None or self.build_prompt is None:
            return
        lat, lon = result.coordinate
        prompt = self.build_prompt(result.display_name or result.country_name, lat, lon, result.risk_assessment)
        try:
            text = self.narrator.generate(prompt)
        except CollaboratorUnavailable as e:
            logger.warning("Narrative generation failed: %s", e)
            result.messages.append("AI analysis unavailable.")
            self.surface.show_message("narrative", "Could not generate the AI analysis right now.", "error")
            return
        if not self.is_current(request_id):
            return
        if text is None:
            self.surface.show_message("narrative", "AI analysis is switched off.", "info")
            return
        result.narrative = text
        self.surface.show_narrative(text)
