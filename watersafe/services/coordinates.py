"""
Coordinate normalizer shared by report intake and the map/export path.

Accepts the ways people actually type a position:
    "25.2, 89.3"          plain signed decimal pair
    "25.2°N, 89.3°E"      cardinal letters, degree sign optional
    "25.2S, 89.3W"        letter straight after the number
and turns it into the canonical "lat,lng" decimal string. Anything else,
including out-of-range values, yields None. Nothing here raises.
"""
import re
from dataclasses import dataclass
from typing import Optional, Tuple

_SIGNED = re.compile(r"^([+-]?)([0-9]+)(?:\.([0-9]+))?\s*°?$")
_CARDINAL = re.compile(r"^([0-9]+)(?:\.([0-9]+))?\s*°?\s*([NSEW])$", re.IGNORECASE)

# Latitude part takes N/S, longitude part takes E/W
_AXES = (
    ("NS", "S", 90),
    ("EW", "W", 180),
)


@dataclass(frozen=True)
class Coordinates:
    """A parsed position in decimal degrees."""
    latitude: float
    longitude: float
    canonical: str

    def as_pair(self) -> Tuple[float, float]:
        return self.latitude, self.longitude

    def __str__(self) -> str:
        return self.canonical


def _canonical_number(negative: bool, whole: str, fraction: Optional[str]) -> str:
    """Render digits without redundant zeros or signs, keeping their exact value."""
    whole = whole.lstrip("0") or "0"
    fraction = (fraction or "").rstrip("0")
    text = f"{whole}.{fraction}" if fraction else whole
    if negative and text != "0":
        text = "-" + text
    return text


def _parse_part(part: str, axis: int) -> Optional[Tuple[float, str]]:
    letters, negative_letter, limit = _AXES[axis]

    match = _SIGNED.match(part)
    if match:
        sign, whole, fraction = match.groups()
        text = _canonical_number(sign == "-", whole, fraction)
    else:
        match = _CARDINAL.match(part)
        if not match:
            return None
        whole, fraction, letter = match.groups()
        letter = letter.upper()
        if letter not in letters:
            return None
        text = _canonical_number(letter == negative_letter, whole, fraction)

    value = float(text)
    if value < -limit or value > limit:
        return None
    return value, text


def parse_coordinates(raw: Optional[str]) -> Optional[Coordinates]:
    """Parse a human-entered coordinate string, or return None if it is unusable."""
    if not raw or not isinstance(raw, str):
        return None

    parts = [p.strip() for p in raw.strip().split(",")]
    if len(parts) != 2:
        return None

    lat = _parse_part(parts[0], 0)
    lng = _parse_part(parts[1], 1)
    if lat is None or lng is None:
        return None

    return Coordinates(
        latitude=lat[0],
        longitude=lng[0],
        canonical=f"{lat[1]},{lng[1]}"
    )


def normalize_coordinates(raw: Optional[str]) -> Optional[str]:
    """
    Return the canonical "lat,lng" form of raw, or None.

    Idempotent: normalizing an already normalized string returns it unchanged.
    """
    coords = parse_coordinates(raw)
    return coords.canonical if coords else None
