# shiny_palette/smoothing.py
from __future__ import annotations

"""
Post-recolour smoothing.

Two passes, both pure functions of (output buffer, guide buffer):
  joint_bilateral_lab : window average in Lab, range weights from the guide's
                        original lightness so true material edges stay sharp
  feather_outline     : pull pixels on / next to ink in the guide towards the
                        guide colour to hide recolour halos around line art

smooth_output() maps the radius and blend sliders onto both passes and is a
no-op when both are zero.
"""

import numpy as np

from .colour_convert import lab_to_rgb, rgb_to_lab
from .constants import (
    BILATERAL_AMOUNT_BASE,
    BILATERAL_AMOUNT_GAIN,
    BILATERAL_MIX_C,
    BILATERAL_MIX_L,
    BILATERAL_SIGMA_R_BASE,
    BILATERAL_SIGMA_R_GAIN,
    BILATERAL_SIGMA_S_BASE,
    BILATERAL_SIGMA_S_PER_RADIUS,
    FEATHER_BASE,
    FEATHER_GAIN,
    FEATHER_RING_FACTOR,
)
from .core_types import U8Image, assert_same_shape
from .sprite import ink_pixels


def joint_bilateral_lab(
    out_rgba: U8Image,
    guide_rgba: U8Image,
    radius: int = 1,
    sigma_s: float = 1.1,
    sigma_r: float = 6.0,
    amount: float = 0.4,
    mix_l: float = 0.75,
    mix_c: float = 0.3,
) -> U8Image:
    """
    Joint bilateral filter over opaque output pixels.

    Neighbours outside the image are clamped to the border; transparent
    neighbours do not contribute. The filtered Lab is mixed back with
    fractions amount*mix_l (lightness) and amount*mix_c (a, b).
    """
    assert_same_shape(out_rgba, guide_rgba)
    height, width = out_rgba.shape[:2]
    r = max(0, int(radius))
    opaque = out_rgba[..., 3] != 0
    result = out_rgba.copy()
    if not np.any(opaque):
        return result

    lab = rgb_to_lab(out_rgba[..., :3])
    guide_l = rgb_to_lab(guide_rgba[..., :3])[..., 0]

    lab_p = np.pad(lab, ((r, r), (r, r), (0, 0)), mode="edge")
    guide_p = np.pad(guide_l, r, mode="edge")
    opaque_p = np.pad(opaque, r, mode="edge")

    acc = np.zeros_like(lab)
    wsum = np.zeros((height, width), dtype=np.float64)
    two_ss = 2.0 * sigma_s * sigma_s
    two_sr = 2.0 * sigma_r * sigma_r
    for j in range(-r, r + 1):
        for i in range(-r, r + 1):
            rows = slice(r + j, r + j + height)
            cols = slice(r + i, r + i + width)
            d_l = guide_p[rows, cols] - guide_l
            weight = np.exp(-(i * i + j * j) / two_ss) * np.exp(-(d_l * d_l) / two_sr)
            weight = weight * opaque_p[rows, cols]
            acc += lab_p[rows, cols] * weight[..., None]
            wsum += weight

    with np.errstate(invalid="ignore", divide="ignore"):
        filtered = np.where(wsum[..., None] > 0, acc / wsum[..., None], lab)

    f_l = amount * mix_l
    f_c = amount * mix_c
    mixed = np.empty_like(lab)
    mixed[..., 0] = lab[..., 0] * (1.0 - f_l) + filtered[..., 0] * f_l
    mixed[..., 1:] = lab[..., 1:] * (1.0 - f_c) + filtered[..., 1:] * f_c

    result[opaque, :3] = lab_to_rgb(mixed[opaque])
    return result


def feather_outline(
    out_rgba: U8Image, guide_rgba: U8Image, ink_threshold: int, feather: float = 0.3
) -> U8Image:
    """
    Blend towards the guide: weight `feather` on guide ink pixels, half of it on
    their 4-neighbours. Transparent output pixels are left alone.
    """
    assert_same_shape(out_rgba, guide_rgba)
    ink = ink_pixels(guide_rgba, ink_threshold)
    padded = np.pad(ink, 1, mode="constant", constant_values=False)
    ring = padded[:-2, 1:-1] | padded[2:, 1:-1] | padded[1:-1, :-2] | padded[1:-1, 2:]

    weight = np.where(ink, feather, np.where(ring, feather * FEATHER_RING_FACTOR, 0.0))
    weight = np.where(out_rgba[..., 3] != 0, weight, 0.0)

    result = out_rgba.copy()
    touched = weight > 0
    if not np.any(touched):
        return result
    w = weight[touched][:, None]
    blended = out_rgba[touched, :3] * (1.0 - w) + guide_rgba[touched, :3] * w
    result[touched, :3] = np.floor(blended + 0.5).clip(0, 255).astype(np.uint8)
    return result


def smooth_output(
    rendered: U8Image,
    guide: U8Image,
    radius: int,
    blend_percent: float,
    ink_threshold: int,
) -> U8Image:
    """
    Bilateral + feather passes driven by the smoothing sliders.
    radius == 0 and blend == 0 returns an unchanged copy.
    """
    radius = max(0, int(radius))
    blend = max(0.0, float(blend_percent)) / 100.0
    if radius <= 0 and blend <= 0.0:
        return rendered.copy()

    amount = BILATERAL_AMOUNT_BASE + BILATERAL_AMOUNT_GAIN * blend
    sigma_r = BILATERAL_SIGMA_R_BASE + BILATERAL_SIGMA_R_GAIN * blend
    sigma_s = BILATERAL_SIGMA_S_BASE + BILATERAL_SIGMA_S_PER_RADIUS * radius
    smoothed = joint_bilateral_lab(
        rendered,
        guide,
        radius,
        sigma_s,
        sigma_r,
        amount,
        BILATERAL_MIX_L,
        BILATERAL_MIX_C,
    )
    feather = FEATHER_BASE + FEATHER_GAIN * blend
    return feather_outline(smoothed, guide, ink_threshold, feather)


__all__ = ["joint_bilateral_lab", "feather_outline", "smooth_output"]
