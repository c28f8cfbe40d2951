# climate_api/config.py

import logging
import os
from dataclasses import dataclass
from typing import Mapping, MutableMapping, Optional
import streamlit as st
from dotenv import load_dotenv
from streamlit.errors import StreamlitAPIException

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org"
OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "moonshotai/kimi-k2:free"
USER_AGENT = "Climate-Risk-Explorer/1.0"

SECRET_KEYS = [
    "OPENROUTER_API_KEY",
    "OPENROUTER_MODEL",
    "NARRATIVE_ENABLED",
    "TEMPERATURE_DATA_URL",
    "PRECIPITATION_DATA_URL",
    "MONTHLY_DATA_URL",
    "BOUNDARIES_URL",
]


def _as_bool(raw: Optional[str], default: bool = False) -> bool:
    if raw is None or str(raw).strip() == "":
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


def _as_float(raw: Optional[str], default: float) -> float:
    try:
        return float(raw) if raw not in (None, "") else default
    except ValueError:
        return default


def _as_int(raw: Optional[str], default: int) -> int:
    try:
        return int(raw) if raw not in (None, "") else default
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    temperature_data_url: str = "data/temperature.csv"
    precipitation_data_url: str = "data/precipitation.csv"
    monthly_data_url: str = ""
    boundaries_url: str = "data/countries.geojson"
    nominatim_url: str = NOMINATIM_URL
    user_agent: str = USER_AGENT
    http_timeout: float = 15.0
    openrouter_api_key: str = ""
    openrouter_model: str = DEFAULT_MODEL
    narrative_enabled: bool = False
    default_zoom: int = 5
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        if env is None:
            load_dotenv()
            env = os.environ
        d = cls()
        api_key = env.get("OPENROUTER_API_KEY", "").strip()
        return cls(
            temperature_data_url=env.get("TEMPERATURE_DATA_URL", d.temperature_data_url),
            precipitation_data_url=env.get("PRECIPITATION_DATA_URL", d.precipitation_data_url),
            monthly_data_url=env.get("MONTHLY_DATA_URL", d.monthly_data_url),
            boundaries_url=env.get("BOUNDARIES_URL", d.boundaries_url),
            nominatim_url=env.get("NOMINATIM_URL", d.nominatim_url).rstrip("/"),
            user_agent=env.get("GEOCODER_USER_AGENT", d.user_agent),
            http_timeout=_as_float(env.get("HTTP_TIMEOUT"), d.http_timeout),
            openrouter_api_key=api_key,
            openrouter_model=env.get("OPENROUTER_MODEL", d.openrouter_model),
            # no key, no narrative
            narrative_enabled=_as_bool(env.get("NARRATIVE_ENABLED")) and bool(api_key),
            default_zoom=_as_int(env.get("DEFAULT_ZOOM"), d.default_zoom),
            log_level=env.get("LOG_LEVEL", d.log_level).upper(),
        )


def seed_env_from_secrets(secrets=None, environ: Optional[MutableMapping[str, str]] = None) -> None:
    """Copy known keys from Streamlit secrets into the environment; variables already set win."""
    secrets = st.secrets if secrets is None else secrets
    environ = os.environ if environ is None else environ
    try:
        for k in SECRET_KEYS:
            if k in secrets and secrets[k] and not environ.get(k):
                environ[k] = str(secrets[k])
    except (FileNotFoundError, StreamlitAPIException) as e:
        logger.debug("No Streamlit secrets: %s", e)


def load_settings() -> Settings:
    seed_env_from_secrets()
    return Settings.from_env()
