"""Cube map helpers: RGBM encoding, face lookup, bilinear sampling and
conversion of six cube faces into a longitude/latitude panorama."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

_PI = 3.141592

Color = tuple[float, ...]


@dataclass
class Image:
    """Interleaved floating-point image, ``channels`` values per pixel."""

    width: int
    height: int
    data: list[float] = field(default_factory=list)
    channels: int = 3

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("image dimensions must not be negative")
        if self.channels < 1:
            raise ValueError("an image needs at least one channel")
        expected = self.width * self.height * self.channels
        if not self.data:
            self.data = [0.0] * expected
        elif len(self.data) != expected:
            raise ValueError(
                f"expected {expected} values for a {self.width}x{self.height} "
                f"image with {self.channels} channels, got {len(self.data)}"
            )

    def pixel(self, x: int, y: int) -> Color:
        """Return the channel values of the pixel at ``(x, y)``."""
        start = self.channels * (y * self.width + x)
        return tuple(self.data[start:start + self.channels])


def rgbm_to_linear(rgbm: Sequence[float]) -> tuple[float, float, float]:
    """Decode an RGBM value (components in [0, 1]) to linear RGB."""
    m = rgbm[3] * 16.0
    r, g, b = (c * m for c in rgbm[:3])
    return (r * r, g * g, b * b)


def linear_to_rgbm(linear: Sequence[float]) -> tuple[float, float, float, float]:
    """Encode linear RGB as RGBM with every component in [0, 1]."""
    r, g, b = ((c * c) / 16.0 for c in linear[:3])
    max_component = max(r, g, b, 1e-6)
    m = max(1.0 / 16.0, min(max_component, 1.0))
    m = math.ceil(m * 255.0) / 255.0

    def saturate(c: float) -> float:
        return max(0.0, min(1.0, c / m))

    return (saturate(r), saturate(g), saturate(b), m)


def file_extension(filename: str) -> str:
    """Return the text after the last dot of ``filename``, or ``""``."""
    dot = filename.rfind(".")
    return filename[dot + 1:] if dot >= 0 else ""


def convert_xyz_to_cube_uv(x: float, y: float, z: float) -> tuple[int, float, float]:
    """Map a direction to ``(face_index, u, v)`` with ``u, v`` in [0, 1].

    Faces are ordered +X, -X, +Y, -Y, +Z, -Z. Where a direction lies on an
    edge between faces, the later face in that order wins.
    """
    ax, ay, az = abs(x), abs(y), abs(z)
    selected = None

    if ax >= ay and ax >= az:
        selected = (0, ax, -z, y) if x > 0.0 else (1, ax, z, y)
    if ay >= ax and ay >= az:
        selected = (2, ay, x, -z) if y > 0.0 else (3, ay, x, z)
    if az >= ax and az >= ay:
        selected = (4, az, x, y) if z > 0.0 else (5, az, -x, y)

    index, max_axis, uc, vc = selected
    if max_axis == 0.0:
        raise ValueError("direction must not be the zero vector")
    u = 0.5 * (uc / max_axis + 1.0)
    v = 0.5 * (vc / max_axis + 1.0)
    return index, u, v


def sample_texture(image: Image, u: float, v: float) -> Color:
    """Bilinearly sample ``image`` at ``(u, v)`` with repeat wrapping."""
    uu = min(max(u - math.floor(u), 0.0), 1.0)
    vv = min(max(v - math.floor(v), 0.0), 1.0)

    w, h = image.width, image.height
    px = (w - 1) * uu
    py = (h - 1) * vv

    x0 = max(0, min(int(px), w - 1))
    y0 = max(0, min(int(py), h - 1))
    x1 = max(0, min(x0 + 1, w - 1))
    y1 = max(0, min(y0 + 1, h - 1))

    dx = px - x0
    dy = py - y0
    w00 = (1.0 - dx) * (1.0 - dy)
    w10 = (1.0 - dx) * dy
    w01 = dx * (1.0 - dy)
    w11 = dx * dy

    p00 = image.pixel(x0, y0)
    p01 = image.pixel(x1, y0)
    p10 = image.pixel(x0, y1)
    p11 = image.pixel(x1, y1)
    return tuple(
        w00 * a + w10 * b + w01 * c + w11 * d
        for a, b, c, d in zip(p00, p10, p01, p11)
    )


def sample_cubemap(faces: Sequence[Image], n: Sequence[float]) -> Color:
    """Sample the cube map ``faces`` in direction ``n``."""
    if len(faces) != 6:
        raise ValueError("a cube map needs exactly 6 faces")
    face, u, v = convert_xyz_to_cube_uv(n[0], n[1], n[2])
    return sample_texture(faces[face], u, 1.0 - v)


def cubemap_to_longlat(
    faces: Sequence[Image], width: int, phi_offset: float = 0.0
) -> Image:
    """Render a ``width`` x ``width // 2`` longitude/latitude RGB image.

    ``phi_offset`` rotates the panorama around the vertical axis, in degrees.
    """
    if width < 1:
        raise ValueError("output width must be positive")
    height = width // 2
    offset = phi_offset * _PI / 180.0
    data: list[float] = []
    for y in range(height):
        theta = ((y + 0.5) / height) * _PI
        sin_t, cos_t = math.sin(theta), math.cos(theta)
        for x in range(width):
            phi = ((x + 0.5) / width) * 2.0 * _PI + offset
            n = (sin_t * math.cos(phi), cos_t, -sin_t * math.sin(phi))
            data.extend(sample_cubemap(faces, n)[:3])
    return Image(width, height, data, 3)


def float_to_byte(f: float) -> int:
    """Scale ``f`` from [0, 1] to an 8-bit value, truncating and clamping."""
    if math.isnan(f):
        return 0
    scaled = f * 255.0
    if scaled >= 255.0:
        return 255
    if scaled <= 0.0:
        return 0
    return int(scaled)