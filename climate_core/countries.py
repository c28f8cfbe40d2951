# climate_core/countries.py

import re
import unicodedata
from typing import Iterable, List, Tuple
from rapidfuzz import fuzz

_PARENTHETICAL = re.compile(r"\([^)]*\)")


def normalize(name) -> str:
    """Join key for country names coming from the geocoder, CSVs and polygons.

    "Congo (Kinshasa)" -> "congo". Anything that is not a non-empty string
    gives "", which callers must treat as unmatchable.
    """
    if not isinstance(name, str) or not name:
        return ""
    s = _PARENTHETICAL.sub(" ", name)
    s = unicodedata.normalize("NFKD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    return " ".join(s.split()).lower()


def suggest_countries(query: str, names: Iterable[str], limit: int = 3, threshold: int = 70) -> List[Tuple[str, int]]:
    q = normalize(query)
    if not q:
        return []

    best = {}
    for nm in names:
        key = normalize(nm)
        if not key:
            continue
        score = int(fuzz.token_sort_ratio(q, key))
        if score >= threshold and score > best.get(key, ("", -1))[1]:
            best[key] = (nm.strip(), score)

    scored = sorted(best.values(), key=lambda x: (-x[1], x[0]))
    return scored[:limit]
