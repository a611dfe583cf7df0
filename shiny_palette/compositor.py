# shiny_palette/compositor.py
from __future__ import annotations

"""
Recolour compositor.

Per pixel:
  transparent           -> alpha forced to 0, RGB untouched
  protected (ink)       -> unchanged, unless it belongs to the active region
                           and protected editing is unlocked
  region missing/deleted/keep -> original pixel
  otherwise             -> Lab(base.L + (pixel.L - centroid.L) + darkness, base.a, base.b)
                           with lightness re-centred through the contrast curve
                           50 + (L - 50) * contrast and clamped to [0, 100]

The base colour is the region's own override when it is unlinked and has one,
else the family's shared shiny colour.
"""

from typing import Optional

import numpy as np

from .colour_convert import lab_to_rgb
from .constants import CONTRAST_PIVOT_L
from .core_types import (
    PIXEL_PROTECTED,
    PIXEL_RECOLOURABLE,
    PIXEL_TRANSPARENT,
    IndexMap,
    Lab,
    RegionArena,
    U8Image,
)
from .sprite import SpriteBuffers


def apply_contrast(lightness: np.ndarray, contrast: float) -> np.ndarray:
    """Contrast about mid-grey, clamped to [0, 100]."""
    if contrast != 1.0:
        lightness = CONTRAST_PIVOT_L + (lightness - CONTRAST_PIVOT_L) * contrast
    return np.clip(lightness, 0.0, 100.0)


def recolour_mask(
    sprite: SpriteBuffers,
    region_ids: IndexMap,
    active_region: Optional[int],
    unlock_protected: bool,
) -> np.ndarray:
    """Boolean (H,W) of pixels eligible for recolouring before region checks."""
    eligible = sprite.mask == PIXEL_RECOLOURABLE
    if unlock_protected and active_region is not None and active_region >= 0:
        eligible = eligible | (
            (sprite.mask == PIXEL_PROTECTED) & (region_ids == active_region)
        )
    return eligible


def kept_mask(region_ids: IndexMap, regions: RegionArena) -> np.ndarray:
    """Boolean (H,W) of pixels whose live region has keep set."""
    keep = np.array([r.keep and not r.deleted for r in regions] + [False], dtype=bool)
    idx = np.where((region_ids >= 0) & (region_ids < len(regions)), region_ids, len(regions))
    return keep[idx]


def apply_shiny(
    sprite: SpriteBuffers,
    family_map: IndexMap,
    region_ids: IndexMap,
    regions: RegionArena,
    centroids: Lab,
    family_shiny: Lab,
    contrast: float,
    *,
    active_region: Optional[int] = None,
    unlock_protected: bool = False,
) -> U8Image:
    """
    Render the recoloured RGBA buffer. Inputs are read-only; the result is new.

    Args:
      family_map: int32 [H,W], -1 where unassigned
      region_ids: int32 [H,W], -1 where unassigned
      regions: region arena indexed by id
      centroids: float64 [K,3] family centroid Lab
      family_shiny: float64 [K,3] family shared shiny Lab
    """
    out = np.array(sprite.rgba, dtype=np.uint8, copy=True)
    out[sprite.mask == PIXEL_TRANSPARENT, 3] = 0
    if not regions or centroids.shape[0] == 0:
        return out

    n = len(regions)
    live = np.array([not (r.deleted or r.keep) for r in regions], dtype=bool)
    has_override = np.array([(not r.linked) and r.lab is not None for r in regions], dtype=bool)
    override = np.array(
        [r.lab if r.lab is not None else (0.0, 0.0, 0.0) for r in regions], dtype=np.float64
    ).reshape(n, 3)
    darkness = np.array([r.darkness for r in regions], dtype=np.float64)

    sel = recolour_mask(sprite, region_ids, active_region, unlock_protected)
    sel &= (family_map >= 0) & (region_ids >= 0) & (region_ids < n)
    ys, xs = np.nonzero(sel)
    rid = region_ids[ys, xs]
    keep_live = live[rid]
    ys, xs, rid = ys[keep_live], xs[keep_live], rid[keep_live]
    if rid.size == 0:
        return out

    fam = family_map[ys, xs]
    base = np.where(has_override[rid][:, None], override[rid], family_shiny[fam])
    lightness = base[:, 0] + (sprite.lab[ys, xs, 0] - centroids[fam, 0]) + darkness[rid]
    lab = np.stack([apply_contrast(lightness, contrast), base[:, 1], base[:, 2]], axis=1)
    out[ys, xs, :3] = lab_to_rgb(lab)
    return out


__all__ = ["apply_contrast", "recolour_mask", "kept_mask", "apply_shiny"]
