# src/weekplan/grid/colors.py

"""
Per-client card colors.

Default colors are a pure function of the client name: a djb2 hash of the
normalized name picks a hue, rendered as a pale HSL background. Border and text
colors are derived from the background. User overrides are kept per normalized
name and persisted as JSON.
"""

from __future__ import annotations

import colorsys
import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path

from ..storage.json_repo import read_json, write_json_atomic

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^#([0-9a-f]{6})$", re.IGNORECASE)
FALLBACK_HEX = "#e6f7ef"


def normalize_client(name: str) -> str:
    return name.strip().lower()


def _to_int32(x: int) -> int:
    x &= 0xFFFFFFFF
    return x - 0x100000000 if x >= 0x80000000 else x


def hash_string(s: str) -> int:
    """djb2 over UTF-16 code units with 32-bit shift semantics."""
    h = 5381
    data = s.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = _to_int32(_to_int32(h) << 5) + h + unit
    return abs(h)


def _round(x: float) -> int:
    return int(math.floor(x + 0.5))


def hsl_to_hex(h: float, s: float, l: float) -> str:
    """h in degrees, s and l in percent."""
    r, g, b = colorsys.hls_to_rgb((h % 360) / 360.0, l / 100.0, s / 100.0)
    return "#" + "".join(f"{_round(255 * c):02x}" for c in (r, g, b))


def default_color_for(name: str) -> str:
    base = normalize_client(name or "client")
    return hsl_to_hex(hash_string(base) % 360, 70, 90)


def is_hex_color(value: str) -> bool:
    return bool(_HEX_RE.match(value or ""))


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    m = _HEX_RE.match(value or "")
    if not m:
        return (255, 255, 255)
    raw = m.group(1)
    return (int(raw[0:2], 16), int(raw[2:4], 16), int(raw[4:6], 16))


def pick_text_color(value: str) -> str:
    """YIQ contrast: dark text on light backgrounds."""
    r, g, b = hex_to_rgb(value)
    yiq = (r * 299 + g * 587 + b * 114) / 1000
    return "#000000" if yiq >= 150 else "#ffffff"


def darken_hex(value: str, amount: float = 0.15) -> str:
    r, g, b = hex_to_rgb(value)
    return "#" + "".join(f"{max(0, min(255, _round(c * (1 - amount)))):02x}" for c in (r, g, b))


@dataclass(frozen=True, slots=True)
class CardColors:
    background: str
    border: str
    text: str


def derive_colors(value: str) -> CardColors:
    safe = value if is_hex_color(value) else FALLBACK_HEX
    return CardColors(background=safe, border=darken_hex(safe, 0.25), text=pick_text_color(safe))


class ClientPalette:
    """ColorProvider with a user override map (optionally persisted)."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._overrides: dict[str, str] = {}
        if self._path is not None:
            self._overrides = self._load(self._path)

    @staticmethod
    def sanitize(raw: object) -> dict[str, str]:
        """Keep only {name: {"hex": "#rrggbb"}} entries, keyed by normalized name."""
        out: dict[str, str] = {}
        if not isinstance(raw, dict):
            return out
        for key, value in raw.items():
            hex_value = value.get("hex") if isinstance(value, dict) else None
            if isinstance(key, str) and isinstance(hex_value, str) and is_hex_color(hex_value):
                out[normalize_client(key)] = hex_value.lower()
        return out

    def _load(self, path: Path) -> dict[str, str]:
        overrides = self.sanitize(read_json(path))
        logger.debug("Loaded %d client color override(s) from %s", len(overrides), path)
        return overrides

    def _save(self) -> None:
        if self._path is None:
            return
        try:
            write_json_atomic(self._path, self.export())
        except Exception:
            logger.exception("Failed to save client colors to %s", self._path)

    def color_for(self, client: str) -> str | None:
        key = normalize_client(client or "")
        if not key:
            return None
        return self._overrides.get(key) or default_color_for(client)

    def colors_for(self, client: str) -> CardColors | None:
        value = self.color_for(client)
        return derive_colors(value) if value else None

    def set_color(self, client: str, value: str) -> None:
        key = normalize_client(client or "")
        if not key:
            return
        if not is_hex_color(value):
            raise ValueError(f"not a #rrggbb color: {value!r}")
        self._overrides[key] = value.lower()
        self._save()

    def reset_color(self, client: str) -> None:
        if self._overrides.pop(normalize_client(client or ""), None) is not None:
            self._save()

    def export(self) -> dict[str, dict[str, str]]:
        return {k: {"hex": v} for k, v in sorted(self._overrides.items())}

    def replace_all(self, raw: object) -> int:
        self._overrides = self.sanitize(raw)
        self._save()
        return len(self._overrides)
