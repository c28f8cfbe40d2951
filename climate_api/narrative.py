# climate_api/narrative.py
"""Prompt building and OpenRouter calls for the AI climate summary."""

import logging
from typing import Optional
import requests
from climate_api.config import DEFAULT_MODEL, OPENROUTER_URL
from climate_core.errors import CollaboratorUnavailable
from climate_core.risk import RiskAssessment

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful and concise climate data interpreter. "
    "Only provide the summary text based on the user's prompt."
)


def _num(value: Optional[float], pattern: str) -> str:
    return "not available" if value is None else pattern.format(value)


def build_climate_prompt(location: str, lat: float, lon: float, assessment: RiskAssessment) -> str:
    lines = [
        "You are a climate change communication expert. Your task is to provide a concise, engaging,",
        f'and impactful summary of the climate change situation for the location "{location}" '
        f"(Latitude: {lat:.4f}, Longitude: {lon:.4f}).",
        "",
        "Use the following data points to inform your summary:",
        f"- Primary climate risk: {assessment.primary_risk.value}",
        f"- Risk magnitude: {assessment.magnitude.value}",
        f"- Recent average annual temperature (last 5 years): {_num(assessment.recent_temperature, '{:.2f}°C')}",
        f"- Temperature anomaly vs. 30-year baseline: {_num(assessment.temperature_anomaly, '{:+.2f}°C')}",
        f"- Recent average annual precipitation (last 5 years): {_num(assessment.recent_precipitation, '{:.2f} mm')}",
        f"- Precipitation change vs. 30-year baseline: {_num(assessment.precipitation_change_percent, '{:+.1f}%')}",
        "",
        "Write a 3-paragraph summary that includes:",
        "1. A strong, current assessment of the primary climate risks (e.g., heatwaves, drought, flooding).",
        "2. A brief comparison of the current situation to global averages.",
        "3. A concluding positive statement about adaptation or mitigation efforts.",
        "Format the response using Markdown paragraphs.",
    ]
    if assessment.is_insufficient:
        lines.insert(
            len(lines) - 6,
            "Note: the historical record is too short for a trend assessment; say so plainly.",
        )
    return "\n".join(lines)


class NarrativeClient:
    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        endpoint: str = OPENROUTER_URL,
        enabled: bool = False,
        timeout: float = 60,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint
        self.enabled = bool(enabled and api_key)
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings) -> "NarrativeClient":
        return cls(
            api_key=settings.openrouter_api_key,
            model=settings.openrouter_model,
            enabled=settings.narrative_enabled,
        )

    def generate(self, prompt: str) -> Optional[str]:
        """Generated text, or None when narrative generation is switched off."""
        if not self.enabled:
            return None

        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.5,
            "max_tokens": 500,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "Climate Risk Explorer",
        }
        logger.debug("Requesting narrative from %s", self.model)
        try:
            r = self.session.post(self.endpoint, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise CollaboratorUnavailable("narrative", str(e)) from e

        if not r.ok:
            try:
                detail = r.json().get("error", {}).get("message") or r.reason
            except (ValueError, AttributeError):
                detail = r.reason
            raise CollaboratorUnavailable("narrative", f"{r.status_code} - {detail}")

        try:
            text = r.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CollaboratorUnavailable("narrative", f"malformed response: {e}") from e
        if not isinstance(text, str):
            raise CollaboratorUnavailable("narrative", "malformed response: no text content")
        return text.strip()
