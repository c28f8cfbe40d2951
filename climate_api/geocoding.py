# climate_api/geocoding.py

import logging
from dataclasses import dataclass
from typing import Optional, Tuple
import requests
from climate_api.config import NOMINATIM_URL, USER_AGENT

logger = logging.getLogger(__name__)

# (south, north, west, east), same order Nominatim sends it
BoundingBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Place:
    lat: float
    lon: float
    display_name: str
    country_name: str
    bounding_box: Optional[BoundingBox] = None


def country_from_display_name(display_name: str) -> str:
    """Last comma-separated segment of an address, e.g. "Lyon, ..., France" -> "France".

    Fragile: breaks on addresses that end in a postal code or lack the
    country. Only used when the structured address has no country field.
    """
    if not isinstance(display_name, str):
        return ""
    parts = [p.strip() for p in display_name.split(",") if p.strip()]
    return parts[-1] if parts else ""


def _country_of(item: dict) -> str:
    address = item.get("address")
    if isinstance(address, dict):
        country = address.get("country")
        if isinstance(country, str) and country.strip():
            return country.strip()
    return country_from_display_name(item.get("display_name", ""))


def _bounding_box(raw) -> Optional[BoundingBox]:
    if not isinstance(raw, (list, tuple)) or len(raw) != 4:
        return None
    south, north, west, east = (float(v) for v in raw)
    return south, north, west, east


class NominatimGeocoder:
    """Forward and reverse place lookup against a Nominatim server.

    Every failure (network, HTTP status, unexpected JSON) is logged and
    reported as ``None``, the same as "no result".
    """

    def __init__(
        self,
        base_url: str = NOMINATIM_URL,
        user_agent: str = USER_AGENT,
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"User-Agent": user_agent}

    def _get(self, path: str, params: dict):
        r = self.session.get(
            f"{self.base_url}/{path}",
            params=params,
            headers=self.headers,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json()

    def resolve_by_name(self, query: str) -> Optional[Place]:
        q = (query or "").strip()
        if not q:
            return None
        try:
            js = self._get("search", {"q": q, "format": "json", "limit": 1, "addressdetails": 1})
            if not js:
                logger.info("Geocoding: no result for %r", q)
                return None
            first = js[0]
            display = str(first.get("display_name", ""))
            return Place(
                lat=float(first["lat"]),
                lon=float(first["lon"]),
                display_name=display,
                country_name=_country_of(first),
                bounding_box=_bounding_box(first.get("boundingbox")),
            )
        except (requests.RequestException, ValueError, KeyError, TypeError, IndexError, AttributeError) as e:
            logger.warning("Forward geocoding failed for %r: %s", q, e)
            return None

    def resolve_by_coordinate(self, lat: float, lon: float) -> Optional[Place]:
        try:
            js = self._get(
                "reverse",
                {"lat": lat, "lon": lon, "format": "json", "zoom": 10, "addressdetails": 1},
            )
            if not isinstance(js, dict) or "error" in js:
                logger.info("Reverse geocoding: nothing at (%s, %s)", lat, lon)
                return None
            country = _country_of(js)
            if not country:
                return None
            return Place(
                lat=float(lat),
                lon=float(lon),
                display_name=str(js.get("display_name", country)),
                country_name=country,
            )
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Reverse geocoding failed for (%s, %s): %s", lat, lon, e)
            return None
