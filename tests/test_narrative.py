"""Tests for narrative prompt building and the OpenRouter client."""

from unittest.mock import MagicMock

import pytest
import requests

from climate_api.config import Settings
from climate_api.narrative import NarrativeClient, build_climate_prompt
from climate_core.errors import CollaboratorUnavailable
from climate_core.risk import INSUFFICIENT, Magnitude, PrimaryRisk, RiskAssessment

ASSESSMENT = RiskAssessment(
    primary_risk=PrimaryRisk.PRECIPITATION_DROUGHT,
    magnitude=Magnitude.HIGH,
    temperature_anomaly=0.2,
    precipitation_change_percent=-20.0,
    baseline_temperature=24.0,
    recent_temperature=24.2,
    baseline_precipitation=100.0,
    recent_precipitation=80.0,
)


def client_with(response=None, exc=None, enabled=True):
    session = MagicMock(spec=requests.Session)
    if exc is not None:
        session.post.side_effect = exc
    else:
        session.post.return_value = response
    return NarrativeClient(api_key="sk-test", enabled=enabled, session=session), session


def response(status=200, payload=None, reason="OK"):
    r = MagicMock()
    r.ok = status < 400
    r.status_code = status
    r.reason = reason
    r.json.return_value = payload
    return r


class TestBuildPrompt:
    def test_contains_metrics(self):
        prompt = build_climate_prompt("Nairobi, Kenya", -1.2864, 36.8172, ASSESSMENT)
        assert '"Nairobi, Kenya"' in prompt
        assert "Latitude: -1.2864, Longitude: 36.8172" in prompt
        assert "Precipitation Drought" in prompt
        assert "High" in prompt
        assert "+0.20°C" in prompt
        assert "-20.0%" in prompt
        assert "24.20°C" in prompt

    def test_deterministic(self):
        a = build_climate_prompt("Kenya", 0.0, 37.0, ASSESSMENT)
        b = build_climate_prompt("Kenya", 0.0, 37.0, ASSESSMENT)
        assert a == b

    def test_insufficient_data(self):
        prompt = build_climate_prompt("Tiny Island", 1.0, 2.0, INSUFFICIENT)
        assert "not available" in prompt
        assert "too short" in prompt


class TestNarrativeClient:
    def test_generate(self):
        client, session = client_with(response(payload={"choices": [{"message": {"content": "  Hot and dry.\n"}}]}))
        assert client.generate("prompt") == "Hot and dry."

        kwargs = session.post.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert kwargs["json"]["messages"][1] == {"role": "user", "content": "prompt"}
        assert kwargs["json"]["model"] == client.model

    def test_disabled_never_calls_out(self):
        client, session = client_with(enabled=False)
        assert client.generate("prompt") is None
        session.post.assert_not_called()

    def test_enabled_without_key_is_disabled(self):
        assert not NarrativeClient(api_key="", enabled=True).enabled

    def test_http_error(self):
        client, _ = client_with(response(429, {"error": {"message": "Rate limit exceeded"}}, "Too Many Requests"))
        with pytest.raises(CollaboratorUnavailable, match="429 - Rate limit exceeded"):
            client.generate("prompt")

    def test_http_error_without_json(self):
        r = response(500, reason="Server Error")
        r.json.side_effect = ValueError("no json")
        client, _ = client_with(r)
        with pytest.raises(CollaboratorUnavailable, match="Server Error"):
            client.generate("prompt")

    def test_network_error(self):
        client, _ = client_with(exc=requests.ConnectionError("down"))
        with pytest.raises(CollaboratorUnavailable):
            client.generate("prompt")

    @pytest.mark.parametrize("payload", [{}, {"choices": []}, {"choices": [{"message": {"content": None}}]}])
    def test_malformed(self, payload):
        client, _ = client_with(response(payload=payload))
        with pytest.raises(CollaboratorUnavailable):
            client.generate("prompt")

    def test_from_settings(self):
        s = Settings(openrouter_api_key="k", narrative_enabled=True, openrouter_model="m")
        client = NarrativeClient.from_settings(s)
        assert client.enabled and client.model == "m"
