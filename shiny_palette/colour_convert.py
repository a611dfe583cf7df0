# shiny_palette/colour_convert.py
from __future__ import annotations

"""
Colour conversions and metrics (D65, sRGB gamma).

Exports:
  rgb_to_linear(srgb)
  linear_to_rgb(linear)
  rgb_to_lab(rgb)
  lab_to_rgb(lab)
  rgb_to_lab_threaded(rgb, workers)
  delta_e(lab1, lab2)
  lab_hue(lab)
  lab_chroma(lab)
  hue_distance(h1, h2)

Scalar helpers:
  rgb_to_lab_pixel(r, g, b) -> (L, a, b)
  lab_to_rgb_pixel(L, a, b) -> (r, g, b)
  lab_to_hex(lab)
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray

from .core_types import Lab, LabTuple, RGBTuple, HexStr, rgb_to_hex

# Reference white (D65)
XN, YN, ZN = 0.95047, 1.00000, 1.08883
_E = 216.0 / 24389.0
_K = 24389.0 / 27.0

_RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float64,
)
_XYZ_TO_RGB = np.array(
    [
        [3.2404542, -1.5371385, -0.4985314],
        [-0.9692660, 1.8760108, 0.0415560],
        [0.0556434, -0.2040259, 1.0572252],
    ],
    dtype=np.float64,
)

ArrayLike = Union[Sequence[float], NDArray[np.generic]]


# sRGB <-> linear


def rgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB (non-linear 0..1) to linear RGB (0..1). Vectorised.
    Returns float64 with shape preserved.
    """
    srgb_f = np.asarray(srgb, dtype=np.float64)
    return np.where(
        srgb_f <= 0.04045, srgb_f / 12.92, ((srgb_f + 0.055) / 1.055) ** 2.4
    )


def linear_to_rgb(linear: np.ndarray) -> np.ndarray:
    """Linear RGB to sRGB (0..1), clipping to the displayable range first."""
    lin = np.clip(np.asarray(linear, dtype=np.float64), 0.0, 1.0)
    return np.where(
        lin <= 0.0031308, lin * 12.92, 1.055 * np.power(lin, 1.0 / 2.4) - 0.055
    )


# sRGB <-> Lab


def rgb_to_lab(rgb: np.ndarray) -> Lab:
    """
    sRGB [0..255] to CIE Lab (D65). Accepts uint8 or float input of shape (...,3).
    Returns float64 with shape preserved.
    """
    rgb_f = np.asarray(rgb, dtype=np.float64)[..., :3] / 255.0
    linear = rgb_to_linear(rgb_f)
    xyz = linear @ _RGB_TO_XYZ.T

    x = xyz[..., 0] / XN
    y = xyz[..., 1] / YN
    z = xyz[..., 2] / ZN

    def f(t: np.ndarray) -> np.ndarray:
        return np.where(t > _E, np.cbrt(t), (_K * t + 16.0) / 116.0)

    fx, fy, fz = f(x), f(y), f(z)
    out = np.empty(rgb_f.shape[:-1] + (3,), dtype=np.float64)
    out[..., 0] = 116.0 * fy - 16.0
    out[..., 1] = 500.0 * (fx - fy)
    out[..., 2] = 200.0 * (fy - fz)
    return out


def lab_to_rgb(lab: np.ndarray) -> np.ndarray:
    """
    CIE Lab (D65) to sRGB uint8 [0..255], rounding half up. Shape (...,3) preserved.
    Out-of-gamut values are clipped in linear space.
    """
    lab_f = np.asarray(lab, dtype=np.float64)
    fy = (lab_f[..., 0] + 16.0) / 116.0
    fx = fy + lab_f[..., 1] / 500.0
    fz = fy - lab_f[..., 2] / 200.0

    def inv_f(t: np.ndarray) -> np.ndarray:
        t3 = t * t * t
        return np.where(t3 > _E, t3, (116.0 * t - 16.0) / _K)

    xyz = np.stack([XN * inv_f(fx), YN * inv_f(fy), ZN * inv_f(fz)], axis=-1)
    srgb = linear_to_rgb(xyz @ _XYZ_TO_RGB.T)
    return np.floor(srgb * 255.0 + 0.5).clip(0, 255).astype(np.uint8)


def _split_rows(height: int, parts: int) -> list[tuple[int, int]]:
    """Partition height into ~parts contiguous [start, end) row spans."""
    parts = max(1, int(parts))
    step = (height + parts - 1) // parts
    return [(i, min(i + step, height)) for i in range(0, height, step)]


def rgb_to_lab_threaded(rgb: np.ndarray, workers: int) -> Lab:
    """
    Threaded RGB->Lab conversion by splitting rows.

    Args:
      rgb: uint8 array [H,W,3+]
      workers: number of threads; if <=1 or H<256, runs single-threaded
    Returns:
      Lab float64 array [H,W,3]
    """
    height = int(rgb.shape[0])
    if workers <= 1 or height < 256:
        return rgb_to_lab(rgb)

    chunks = _split_rows(height, workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(rgb_to_lab, rgb[s:e]) for s, e in chunks]
        parts = [f.result() for f in futures]
    return np.vstack(parts)


# Lab metrics


def delta_e(lab1: ArrayLike, lab2: ArrayLike) -> np.ndarray:
    """Euclidean Lab distance (CIE76), broadcast over leading axes."""
    diff = np.asarray(lab1, dtype=np.float64) - np.asarray(lab2, dtype=np.float64)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def lab_hue(lab: ArrayLike) -> np.ndarray:
    """Hue angle atan2(b, a) in degrees (-180..180]; 0 for achromatic colours."""
    lab_f = np.asarray(lab, dtype=np.float64)
    a = lab_f[..., 1]
    b = lab_f[..., 2]
    hue = np.degrees(np.arctan2(b, a))
    return np.where((a == 0.0) & (b == 0.0), 0.0, hue)


def lab_chroma(lab: ArrayLike) -> np.ndarray:
    """Chroma sqrt(a^2 + b^2)."""
    lab_f = np.asarray(lab, dtype=np.float64)
    return np.hypot(lab_f[..., 1], lab_f[..., 2])


def hue_distance(hue_a: ArrayLike, hue_b: ArrayLike) -> np.ndarray:
    """Circular hue distance: min(|d|, 360 - |d|)."""
    d = np.abs(np.asarray(hue_a, dtype=np.float64) - np.asarray(hue_b, dtype=np.float64))
    return np.minimum(d, 360.0 - d)


# Scalar helpers


def rgb_to_lab_pixel(r: int, g: int, b: int) -> LabTuple:
    lab = rgb_to_lab(np.array([r, g, b], dtype=np.float64))
    return (float(lab[0]), float(lab[1]), float(lab[2]))


def lab_to_rgb_pixel(L: float, a: float, b: float) -> RGBTuple:
    rgb = lab_to_rgb(np.array([L, a, b], dtype=np.float64))
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]))


def lab_to_hex(lab: ArrayLike) -> HexStr:
    return rgb_to_hex(lab_to_rgb_pixel(float(lab[0]), float(lab[1]), float(lab[2])))


__all__ = [
    "rgb_to_linear",
    "linear_to_rgb",
    "rgb_to_lab",
    "lab_to_rgb",
    "rgb_to_lab_threaded",
    "delta_e",
    "lab_hue",
    "lab_chroma",
    "hue_distance",
    "rgb_to_lab_pixel",
    "lab_to_rgb_pixel",
    "lab_to_hex",
]
