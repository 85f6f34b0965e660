"""Static gazetteer of Jordanian place names."""
from __future__ import annotations

from typing import Dict, Optional

from .models import Coordinates

_AMMAN: Coordinates = (35.9106, 31.9539)

# Keys are normalized names, values are (lon, lat).
JORDAN_LOCATIONS: Dict[str, Coordinates] = {
    "amman": _AMMAN,
    "jerash": (35.8998, 32.2811),
    "ajloun": (35.7519, 32.3326),
    "ajlun": (35.7519, 32.3326),
    "petra": (35.4444, 30.3285),
    "wadi rum": (35.4155, 29.5324),
    "aqaba": (35.005, 29.5262),
    "dead sea": (35.5883, 31.559),
    "mer morte": (35.5883, 31.559),
    "madaba": (35.7933, 31.7169),
    "mount nebo": (35.7269, 31.7687),
    "mont nebo": (35.7269, 31.7687),
    "karak": (35.7058, 31.1804),
    "irbid": (35.85, 32.5556),
    "zarqa": (36.0882, 32.0722),
    "salt": (35.7278, 32.0389),
    "mafraq": (36.2076, 32.3434),
    "tafilah": (35.6044, 30.8373),
    "bethany": (35.6714, 31.8269),
    "bethabara": (35.6714, 31.8269),
    # country names fall back to the capital
    "jordanie": _AMMAN,
    "jordan": _AMMAN,
    # vague regional phrasing
    "amman et environ": _AMMAN,
    "environ amman": _AMMAN,
    "région d'amman": _AMMAN,
    "région de amman": _AMMAN,
    "secteur amman": _AMMAN,
    "périphérie amman": _AMMAN,
    "alentours amman": _AMMAN,
    "zone amman": _AMMAN,
}


def normalize_place_name(name: str) -> str:
    return name.lower().strip()


def lookup(name: str) -> Optional[Coordinates]:
    """Return gazetteer coordinates for ``name`` or None."""
    return JORDAN_LOCATIONS.get(normalize_place_name(name))
