"""Tone mapping of float RGBA pixels to 8-bit values and RGB clipping."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

FLT_MAX = 3.4028234663852886e38
"""Largest finite single-precision value, the default clipping bound."""


def to_byte(f: float, gamma: float) -> int:
    """Gamma-correct ``f`` with ``1 / gamma`` and map [0, 1] to [0, 255]."""
    if gamma == 0:
        raise ValueError("gamma must not be zero")
    if math.isnan(f) or f < 0.0:
        return 0
    try:
        corrected = f ** (1.0 / gamma)
    except ZeroDivisionError:
        corrected = math.inf
    scaled = 255.0 * corrected
    if math.isnan(scaled) or scaled <= 0.0:
        return 0
    if scaled >= 255.0:
        return 255
    return int(scaled)


def _check_length(values: Sequence[float], width: int, height: int) -> int:
    if width < 0 or height < 0:
        raise ValueError("image dimensions must not be negative")
    pixels = width * height
    if len(values) < pixels * 4:
        raise ValueError(f"expected {pixels * 4} RGBA values, got {len(values)}")
    return pixels


def to_ldr(
    rgba: Sequence[float],
    width: int,
    height: int,
    scale: float = 1.0,
    gamma: float = 2.2,
    ignore_alpha: bool = False,
) -> bytes:
    """Convert float RGBA pixels to 8-bit RGBA.

    Every channel, alpha included, is multiplied by ``scale`` before gamma
    correction. With ``ignore_alpha`` the output alpha is always 255.
    """
    pixels = _check_length(rgba, width, height)
    out = bytearray()
    for i in range(pixels):
        px = rgba[4 * i:4 * i + 4]
        out.extend(to_byte(c * scale, gamma) for c in px[:3])
        out.append(255 if ignore_alpha else to_byte(px[3] * scale, gamma))
    return bytes(out)


@dataclass
class ClipResult:
    """Clipped RGB values with the per-channel extremes after clipping."""

    rgb: list[float]
    v_min: tuple[float, float, float]
    v_max: tuple[float, float, float]


def _clamp(value: float, lo: float, hi: float) -> float:
    upper = value if value < hi else hi
    return upper if lo < upper else lo


def clip_rgb(
    rgba: Sequence[float],
    width: int,
    height: int,
    rgb_min: Optional[Sequence[float]] = None,
    rgb_max: Optional[Sequence[float]] = None,
) -> ClipResult:
    """Clip the RGB channels of float RGBA pixels, dropping alpha."""
    pixels = _check_length(rgba, width, height)
    lows = tuple(rgb_min) if rgb_min is not None else (-FLT_MAX,) * 3
    highs = tuple(rgb_max) if rgb_max is not None else (FLT_MAX,) * 3
    if len(lows) != 3 or len(highs) != 3:
        raise ValueError("clipping bounds need exactly 3 values")

    v_min = [FLT_MAX] * 3
    v_max = [-FLT_MAX] * 3
    rgb: list[float] = []
    for i in range(pixels):
        for c in range(3):
            value = _clamp(rgba[4 * i + c], lows[c], highs[c])
            rgb.append(value)
            if v_max[c] < value:
                v_max[c] = value
            if value < v_min[c]:
                v_min[c] = value
    return ClipResult(rgb, tuple(v_min), tuple(v_max))