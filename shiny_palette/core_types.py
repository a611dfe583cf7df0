# shiny_palette/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, and lightweight helpers.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBTuple = Tuple[int, int, int]
LabTuple = Tuple[float, float, float]
HexStr = str

U8Image = NDArray[np.uint8]  # (H, W, 4) RGBA
U8Mask = NDArray[np.uint8]  # (H, W)
Lab = NDArray[np.float64]  # (..., 3) CIE Lab
IndexMap = NDArray[np.int32]  # (H, W), -1 where unassigned

# Pixel classification tags

PIXEL_TRANSPARENT = 0
PIXEL_RECOLOURABLE = 1
PIXEL_PROTECTED = 2

# Value objects


@dataclass
class Region:
    """
    Region arena record.

    Regions are addressed by id (their index in the arena). Pixel regions keep
    the family and region they were carved from so they can be merged back.
    """

    id: int
    family: int
    linked: bool = True
    keep: bool = False
    lock: bool = False
    lab: Optional[LabTuple] = None
    darkness: int = 0
    deleted: bool = False
    is_pixel_region: bool = False
    parent_family: Optional[int] = None
    parent_region: Optional[int] = None

    def base_lab(self, family_lab: Sequence[float]) -> LabTuple:
        """Effective base colour: own override when unlinked, else the family's."""
        if not self.linked and self.lab is not None:
            return self.lab
        return (float(family_lab[0]), float(family_lab[1]), float(family_lab[2]))


@dataclass(frozen=True)
class ReferenceEntry:
    """One bucket of the reference table."""

    normal_lab: LabTuple
    shiny_lab: LabTuple
    weight: int
    source_key: str
    position: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class RegionInfo:
    """Descriptive region state for external UI."""

    id: int
    family: int
    linked: bool
    keep: bool
    lock: bool
    darkness: int
    is_pixel_region: bool
    colour_hex: HexStr
    pixel_count: int


@dataclass(frozen=True)
class FamilyInfo:
    """Descriptive family state for external UI."""

    id: int
    centroid_lab: LabTuple
    shiny_lab: LabTuple
    auto_lab: LabTuple
    colour_hex: HexStr
    region_ids: Tuple[int, ...]
    edited: bool


# Small helpers


def clamp_value(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def clamp_int(value: Union[int, float], lo: int, hi: int) -> int:
    """Round towards zero and clamp to [lo, hi]."""
    return int(clamp_value(int(value), lo, hi))


def rgb_to_hex(rgb: Sequence[int]) -> HexStr:
    """RGB triple to lowercase hex string '#rrggbb'."""
    return f"#{int(rgb[0]):02x}{int(rgb[1]):02x}{int(rgb[2]):02x}"


def as_lab_tuple(value: Union[Sequence[float], NDArray[np.generic]]) -> LabTuple:
    """Coerce a 3-length sequence or array row to a (float, float, float) tuple."""
    if len(value) < 3:
        raise ValueError("sequence too small for Lab")
    return (float(value[0]), float(value[1]), float(value[2]))


def assert_u8_rgba(image: np.ndarray) -> U8Image:
    """Validate a non-empty uint8 (H,W,4) image and return it typed as U8Image."""
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[-1] != 4:
        raise TypeError("expected uint8 (H,W,4) image")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise TypeError("expected a non-empty image")
    return image  # type: ignore[return-value]


def assert_same_shape(first: np.ndarray, second: np.ndarray) -> None:
    """Raise TypeError unless both arrays share one shape."""
    if first.shape != second.shape:
        raise TypeError(f"shape mismatch {first.shape} vs {second.shape}")


RegionArena = List[Region]

__all__ = [
    # aliases / types
    "RGBTuple",
    "LabTuple",
    "HexStr",
    "U8Image",
    "U8Mask",
    "Lab",
    "IndexMap",
    "RegionArena",
    # tags
    "PIXEL_TRANSPARENT",
    "PIXEL_RECOLOURABLE",
    "PIXEL_PROTECTED",
    # value objects
    "Region",
    "ReferenceEntry",
    "RegionInfo",
    "FamilyInfo",
    # helpers
    "clamp_value",
    "clamp_int",
    "rgb_to_hex",
    "as_lab_tuple",
    "assert_u8_rgba",
    "assert_same_shape",
]
