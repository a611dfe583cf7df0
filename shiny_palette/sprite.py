# shiny_palette/sprite.py
from __future__ import annotations

"""
Sprite buffers: pixel classification mask and Lab cache.

The mask and the Lab cache are always built together from one RGBA buffer
and replaced as a unit, so their shapes can never disagree.

Exports:
  classify_pixels(rgba, ink_threshold) -> U8Mask
  SpriteBuffers
  build_sprite_buffers(rgba, ink_threshold, workers=1) -> SpriteBuffers
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .colour_convert import rgb_to_lab_threaded
from .constants import ALPHA_TRANSPARENT_BELOW
from .core_types import (
    PIXEL_PROTECTED,
    PIXEL_RECOLOURABLE,
    PIXEL_TRANSPARENT,
    Lab,
    U8Image,
    U8Mask,
    assert_u8_rgba,
)


def classify_pixels(rgba: U8Image, ink_threshold: int) -> U8Mask:
    """
    Tag each pixel as transparent (alpha below threshold), protected
    (opaque and max(R,G,B) <= ink_threshold) or recolourable.
    """
    alpha = rgba[..., 3]
    peak = rgba[..., :3].max(axis=-1)
    mask = np.full(alpha.shape, PIXEL_RECOLOURABLE, dtype=np.uint8)
    mask[peak <= ink_threshold] = PIXEL_PROTECTED
    mask[alpha < ALPHA_TRANSPARENT_BELOW] = PIXEL_TRANSPARENT
    return mask


def ink_pixels(rgba: U8Image, ink_threshold: int) -> np.ndarray:
    """Boolean (H,W): visible pixels dark enough to count as line art."""
    return (rgba[..., 3] > 0) & (rgba[..., :3].max(axis=-1) <= ink_threshold)


@dataclass(frozen=True)
class SpriteBuffers:
    """Immutable per-sprite state: original pixels, classification and Lab cache."""

    rgba: U8Image
    mask: U8Mask
    lab: Lab
    ink_threshold: int

    @property
    def width(self) -> int:
        return int(self.rgba.shape[1])

    @property
    def height(self) -> int:
        return int(self.rgba.shape[0])

    def counts(self) -> Tuple[int, int, int]:
        """(recolourable, protected, transparent) pixel counts."""
        return (
            int(np.count_nonzero(self.mask == PIXEL_RECOLOURABLE)),
            int(np.count_nonzero(self.mask == PIXEL_PROTECTED)),
            int(np.count_nonzero(self.mask == PIXEL_TRANSPARENT)),
        )

    def participating(self, include_protected: bool) -> np.ndarray:
        """Boolean (H,W) of pixels that take part in clustering."""
        if include_protected:
            return (self.mask == PIXEL_RECOLOURABLE) | (self.mask == PIXEL_PROTECTED)
        return self.mask == PIXEL_RECOLOURABLE

    def with_ink_threshold(self, ink_threshold: int) -> "SpriteBuffers":
        """Rebuild the mask for a new threshold; Lab cache is reused."""
        return SpriteBuffers(
            rgba=self.rgba,
            mask=classify_pixels(self.rgba, ink_threshold),
            lab=self.lab,
            ink_threshold=int(ink_threshold),
        )


def build_sprite_buffers(
    rgba: U8Image, ink_threshold: int, workers: int = 1
) -> SpriteBuffers:
    """
    Validate and classify a sprite. Raises TypeError for anything that is not a
    non-empty uint8 (H,W,4) buffer.
    """
    rgba = assert_u8_rgba(np.ascontiguousarray(rgba))
    rgba = rgba.copy()
    rgba.setflags(write=False)
    lab = rgb_to_lab_threaded(rgba[..., :3], workers)
    lab.setflags(write=False)
    mask = classify_pixels(rgba, ink_threshold)
    return SpriteBuffers(rgba=rgba, mask=mask, lab=lab, ink_threshold=int(ink_threshold))


__all__ = ["classify_pixels", "ink_pixels", "SpriteBuffers", "build_sprite_buffers"]
