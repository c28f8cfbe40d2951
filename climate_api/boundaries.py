# climate_api/boundaries.py

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional
import requests
from climate_core.countries import normalize
from climate_core.errors import CollaboratorUnavailable

logger = logging.getLogger(__name__)

NAME_PROPERTIES = ["name", "NAME", "ADMIN", "name_long"]


def _is_url(source: str) -> bool:
    return str(source).startswith(("http://", "https://"))


def load_boundaries(source: str, timeout: float = 20) -> List[Dict]:
    """Country polygons as a list of GeoJSON features."""
    try:
        if _is_url(source):
            r = requests.get(source, timeout=timeout)
            r.raise_for_status()
            payload = r.json()
        else:
            payload = json.loads(Path(source).read_text(encoding="utf-8"))
    except (requests.RequestException, OSError, ValueError) as e:
        raise CollaboratorUnavailable("boundaries", str(e)) from e

    if isinstance(payload, dict) and isinstance(payload.get("features"), list):
        feats = payload["features"]
    elif isinstance(payload, list):
        feats = payload
    else:
        raise CollaboratorUnavailable("boundaries", "expected a GeoJSON FeatureCollection")

    feats = [f for f in feats if isinstance(f, dict)]
    logger.info("Loaded %d boundary features from %s", len(feats), source)
    return feats


def feature_name(feature: Dict) -> str:
    props = feature.get("properties")
    if not isinstance(props, dict):
        return ""
    for k in NAME_PROPERTIES:
        v = props.get(k)
        if isinstance(v, str) and v.strip():
            return v
    return ""


def find_boundary(country_name: str, polygon_set: Optional[List[Dict]]) -> Optional[Dict]:
    """First feature whose normalized name matches, else None (use the bbox instead)."""
    key = normalize(country_name)
    if not key or not polygon_set:
        return None
    for feat in polygon_set:
        if normalize(feature_name(feat)) == key:
            return feat
    return None
