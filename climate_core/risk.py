# climate_core/risk.py
"""Baseline-vs-recent climate risk classification for one country.

Scores use full precision; returned numbers are rounded for display.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Union
from climate_core.series import YearlySeries, clean_value

logger = logging.getLogger(__name__)

BASELINE_POINTS = 30
RECENT_POINTS = 5
MIN_POINTS = BASELINE_POINTS + RECENT_POINTS
# below this the percent change is meaningless
MIN_BASELINE_PRECIP = 1e-6


class PrimaryRisk(str, Enum):
    TEMPERATURE_WARMING = "Temperature Warming"
    PRECIPITATION_DROUGHT = "Precipitation Drought"
    PRECIPITATION_FLOOD = "Precipitation Flood"
    BOTH_SIGNIFICANT = "Both Significant"
    MONITOR = "Monitor"
    INSUFFICIENT_DATA = "Insufficient Data"


class Magnitude(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    NOT_APPLICABLE = "N/A"


@dataclass(frozen=True)
class RiskAssessment:
    primary_risk: PrimaryRisk
    magnitude: Magnitude
    temperature_anomaly: Optional[float] = None
    precipitation_change_percent: Optional[float] = None
    baseline_temperature: Optional[float] = None
    recent_temperature: Optional[float] = None
    baseline_precipitation: Optional[float] = None
    recent_precipitation: Optional[float] = None

    @property
    def is_insufficient(self) -> bool:
        return self.primary_risk is PrimaryRisk.INSUFFICIENT_DATA

    def as_metrics(self) -> dict:
        return {
            "Primary risk": self.primary_risk.value,
            "Magnitude": self.magnitude.value,
            "Temperature anomaly (°C)": _fmt(self.temperature_anomaly, "{:+.2f}"),
            "Precipitation change (%)": _fmt(self.precipitation_change_percent, "{:+.1f}"),
        }


INSUFFICIENT = RiskAssessment(PrimaryRisk.INSUFFICIENT_DATA, Magnitude.NOT_APPLICABLE)

RISK_COLORS = {
    Magnitude.HIGH: "#FF0000",
    Magnitude.MEDIUM: "#E6C200",
    Magnitude.LOW: "#228B22",
    Magnitude.NOT_APPLICABLE: "#BBBBBB",
}


def _fmt(value: Optional[float], pattern: str) -> str:
    return "N/A" if value is None else pattern.format(value)


def _points(series: Union[YearlySeries, Sequence, None]) -> List[float]:
    if series is None:
        return []
    values = series.values if isinstance(series, YearlySeries) else series
    return [f for f in (clean_value(v) for v in values) if f is not None]


def _mean(xs: Sequence[float]) -> float:
    return math.fsum(xs) / len(xs)


def temperature_score(anomaly: float) -> int:
    if anomaly >= 1.5:
        return 3
    if anomaly >= 1.0:
        return 2
    if anomaly > 0:
        return 1
    return 0


def precipitation_score(change_percent: Optional[float]) -> float:
    # decreases weigh more than increases of the same size
    if change_percent is None:
        return 0
    if change_percent < -10:
        return 3
    if abs(change_percent) >= 15:
        return 2.5
    if abs(change_percent) >= 5:
        return 2
    if abs(change_percent) > 0:
        return 1
    return 0


def magnitude_for(score: float) -> Magnitude:
    if score >= 3:
        return Magnitude.HIGH
    if score >= 2:
        return Magnitude.MEDIUM
    return Magnitude.LOW


def percent_change(baseline: float, recent: float) -> Optional[float]:
    if not math.isfinite(baseline) or abs(baseline) < MIN_BASELINE_PRECIP:
        return None
    change = (recent - baseline) / baseline * 100
    return change if math.isfinite(change) else None


def assess_risk(temperature_series, precipitation_series) -> RiskAssessment:
    """Classify the dominant climate risk for one country.

    Both arguments may be YearlySeries or plain sequences of yearly values in
    chronological order; missing values are skipped. Fewer than 35 valid points
    in either series gives an "Insufficient Data" assessment.
    """
    temps = _points(temperature_series)
    precs = _points(precipitation_series)
    if len(temps) < MIN_POINTS or len(precs) < MIN_POINTS:
        return INSUFFICIENT

    base_t = _mean(temps[:BASELINE_POINTS])
    recent_t = _mean(temps[-RECENT_POINTS:])
    base_p = _mean(precs[:BASELINE_POINTS])
    recent_p = _mean(precs[-RECENT_POINTS:])

    anomaly = recent_t - base_t
    change = percent_change(base_p, recent_p)
    if change is None:
        logger.warning("Degenerate precipitation baseline %.6g; percent change left undefined", base_p)

    t_score = temperature_score(anomaly)
    p_score = precipitation_score(change)

    if t_score > p_score:
        primary, magnitude = PrimaryRisk.TEMPERATURE_WARMING, magnitude_for(t_score)
    elif p_score > t_score:
        primary = PrimaryRisk.PRECIPITATION_DROUGHT if change < 0 else PrimaryRisk.PRECIPITATION_FLOOD
        magnitude = magnitude_for(p_score)
    elif t_score > 0:
        # tie: only the temperature score decides High vs Medium
        primary = PrimaryRisk.BOTH_SIGNIFICANT
        magnitude = Magnitude.HIGH if t_score == 3 else Magnitude.MEDIUM
    else:
        primary, magnitude = PrimaryRisk.MONITOR, Magnitude.LOW

    return RiskAssessment(
        primary_risk=primary,
        magnitude=magnitude,
        temperature_anomaly=round(anomaly, 2),
        precipitation_change_percent=None if change is None else round(change, 1),
        baseline_temperature=round(base_t, 2),
        recent_temperature=round(recent_t, 2),
        baseline_precipitation=round(base_p, 2),
        recent_precipitation=round(recent_p, 2),
    )


def risk_color(assessment: Optional[RiskAssessment]) -> str:
    if assessment is None:
        return RISK_COLORS[Magnitude.NOT_APPLICABLE]
    if assessment.primary_risk is PrimaryRisk.MONITOR:
        return "#66BB66"
    return RISK_COLORS[assessment.magnitude]
