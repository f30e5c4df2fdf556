"""
Stable colors for categories and events.

The category id picks the base hue, the event id picks a small hue offset and
a lightness tier, so every event of a category reads as the same family.
Dark mode only changes saturation/lightness.
"""

from __future__ import annotations

import colorsys
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

FNV_OFFSET = 0x811C9DC5
FNV_PRIME = 0x01000193

HUE_BAND = 18
HUE_OFFSETS = (0, -16, 16, -8, 8, -12, 12, -4)  # indexed by the low 3 hash bits
TIERS = 3

# (saturation, lightness) per tier
_LIGHT_FILL = ((0.75, 0.90), (0.70, 0.84), (0.65, 0.78))
_LIGHT_ACCENT = ((0.70, 0.45), (0.65, 0.38), (0.60, 0.31))
_DARK_FILL = ((0.55, 0.22), (0.50, 0.28), (0.45, 0.34))
_DARK_ACCENT = ((0.75, 0.62), (0.70, 0.70), (0.65, 0.78))


@dataclass(frozen=True)
class Swatch:
    fill: str
    accent: str
    hue: float
    tier: int


def fnv1a_32(text: str) -> int:
    h = FNV_OFFSET
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def unit_hash(text: str) -> float:
    """Stable value in [0, 1)."""
    return fnv1a_32(text) / 2**32


def category_hue(category_id: str) -> float:
    return float(int(unit_hash(category_id) * 360) % 360)


def _hex(hue: float, sat: float, light: float) -> str:
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0, light, sat)
    return f"#{round(r * 255):02x}{round(g * 255):02x}{round(b * 255):02x}"


@lru_cache(maxsize=1024)
def color_for(category_id: str, event_id: Optional[str] = None, dark: bool = False) -> Swatch:
    base = category_hue(category_id)
    if event_id:
        h = fnv1a_32(event_id)
        # ids differing only in their last character always differ in the low bits
        offset = HUE_OFFSETS[h & 0x7]
        tier = (h >> 3) % TIERS
    else:
        offset, tier = 0, 0

    hue = (base + offset) % 360
    fill_sl = (_DARK_FILL if dark else _LIGHT_FILL)[tier]
    accent_sl = (_DARK_ACCENT if dark else _LIGHT_ACCENT)[tier]
    return Swatch(
        fill=_hex(hue, *fill_sl),
        accent=_hex(hue, *accent_sl),
        hue=hue,
        tier=tier,
    )


def hue_distance(a: float, b: float) -> float:
    d = abs(a - b) % 360
    return min(d, 360 - d)
