# shiny_palette/edits.py
from __future__ import annotations

"""
Region edit state machine.

States per region:
  auto-linked : uses the family colour (initial)
  custom      : own override Lab (linked=False)
Flags keep (bypass recolour) and lock (reject edits) toggle independently in
any state. A pixel region is a single-pixel custom region carved out of a
region; re-linking it (directly or through revert) retires it and hands its
pixel back to the parent region.

Every edit returns whether it was applied; rejected edits change nothing.
Edits touch only the region book, never clustering.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .colour_convert import rgb_to_lab_pixel
from .constants import DARKNESS_MAX, DARKNESS_MIN
from .core_types import (
    IndexMap,
    Lab,
    LabTuple,
    Region,
    RegionArena,
    U8Image,
    as_lab_tuple,
    clamp_int,
)


@dataclass
class RegionBook:
    """
    Mutable edit state for one clustering pass.

    region_ids   : int32 [H,W] pixel -> region id
    regions      : region arena
    family_shiny : float64 [K,3] current family colours
    family_auto  : float64 [K,3] matcher suggestions, used by revert
    """

    region_ids: IndexMap
    regions: RegionArena
    family_shiny: Lab
    family_auto: Lab

    def get(self, region_id: Optional[int]) -> Optional[Region]:
        """Live region by id, or None."""
        if region_id is None or region_id < 0 or region_id >= len(self.regions):
            return None
        region = self.regions[region_id]
        return None if region.deleted else region

    def live_ids(self) -> list[int]:
        return [r.id for r in self.regions if not r.deleted]

    def region_at(self, x: int, y: int) -> int:
        height, width = self.region_ids.shape
        if x < 0 or y < 0 or x >= width or y >= height:
            return -1
        return int(self.region_ids[y, x])

    def current_lab(self, region_id: int) -> Optional[LabTuple]:
        region = self.get(region_id)
        if region is None:
            return None
        return region.base_lab(self.family_shiny[region.family])


def _editable(book: RegionBook, region_id: int, *, allow_keep: bool = True) -> Optional[Region]:
    region = book.get(region_id)
    if region is None or region.lock:
        return None
    if region.keep and not allow_keep:
        return None
    return region


def set_override(book: RegionBook, region_id: int, lab: Sequence[float]) -> bool:
    """Give a region its own colour (custom state)."""
    region = _editable(book, region_id)
    if region is None:
        return False
    region.lab = as_lab_tuple(lab)
    region.linked = False
    return True


def set_override_rgb(book: RegionBook, region_id: int, rgb: Sequence[int]) -> bool:
    return set_override(book, region_id, rgb_to_lab_pixel(int(rgb[0]), int(rgb[1]), int(rgb[2])))


def apply_picked_colour(book: RegionBook, region_id: int, lab: Sequence[float]) -> bool:
    """
    Picker edit: a linked region recolours its whole family, an unlinked one
    only itself. Kept regions are skipped.
    """
    region = _editable(book, region_id, allow_keep=False)
    if region is None:
        return False
    if region.linked:
        book.family_shiny[region.family] = np.asarray(lab, dtype=np.float64)
    else:
        region.lab = as_lab_tuple(lab)
    return True


def set_keep(book: RegionBook, region_id: int, keep: bool) -> bool:
    """Toggle keep. Pixel regions are always recoloured and refuse it."""
    region = book.get(region_id)
    if region is None or (keep and region.is_pixel_region):
        return False
    region.keep = bool(keep)
    return True


def set_lock(book: RegionBook, region_id: int, lock: bool) -> bool:
    region = book.get(region_id)
    if region is None:
        return False
    region.lock = bool(lock)
    return True


def _parent_region_id(book: RegionBook, region: Region) -> int:
    parent = book.get(region.parent_region)
    if parent is not None and not parent.is_pixel_region:
        return parent.id
    family = region.parent_family if region.parent_family is not None else region.family
    for candidate in book.regions:
        if candidate.family == family and not candidate.is_pixel_region and not candidate.deleted:
            return candidate.id
    return -1


def set_linked(book: RegionBook, region_id: int, linked: bool) -> int:
    """
    Toggle linking. Linking clears the override; a linked pixel region is
    merged back into its parent region.

    Returns the id that now represents the edited pixels (the parent id after
    a merge), or -1 when the edit was rejected.
    """
    region = _editable(book, region_id)
    if region is None:
        return -1
    region.linked = bool(linked)
    if not region.linked:
        return region.id
    region.lab = None
    if region.is_pixel_region:
        parent_id = _parent_region_id(book, region)
        if parent_id >= 0:
            book.region_ids[book.region_ids == region.id] = parent_id
            region.deleted = True
            return parent_id
    return region.id


def revert(book: RegionBook, region_id: int) -> int:
    """
    Back to auto: a linked region restores its family's auto colour, a custom
    region drops its override and re-links. Kept regions are not reverted.
    Returns the affected region id, or -1 when rejected.
    """
    region = _editable(book, region_id, allow_keep=False)
    if region is None:
        return -1
    if region.linked:
        book.family_shiny[region.family] = book.family_auto[region.family]
        return region.id
    return set_linked(book, region_id, True)


def set_darkness(book: RegionBook, region_id: int, value: int) -> bool:
    region = _editable(book, region_id)
    if region is None:
        return False
    region.darkness = clamp_int(value, DARKNESS_MIN, DARKNESS_MAX)
    return True


def bump_darkness(book: RegionBook, region_id: int, delta: int) -> bool:
    region = book.get(region_id)
    if region is None:
        return False
    return set_darkness(book, region_id, region.darkness + int(delta))


def carve_pixel_region(book: RegionBook, x: int, y: int, lab: Sequence[float]) -> int:
    """
    Split pixel (x, y) into its own custom region with colour `lab`.
    Returns the new region id, or -1 when the pixel has no editable region.
    A pixel that is already a pixel region just takes the new colour.
    """
    source_id = book.region_at(x, y)
    source = _editable(book, source_id, allow_keep=False)
    if source is None:
        return -1
    if source.is_pixel_region:
        return source.id if set_override(book, source.id, lab) else -1

    new_id = len(book.regions)
    book.regions.append(
        Region(
            id=new_id,
            family=source.family,
            linked=False,
            lab=as_lab_tuple(lab),
            is_pixel_region=True,
            parent_family=source.family,
            parent_region=source.id,
        )
    )
    book.region_ids[y, x] = new_id
    return new_id


def pick_colour(rgba: U8Image, x: int, y: int) -> Optional[LabTuple]:
    """Lab of pixel (x, y) in any RGBA buffer; None when off-image or transparent."""
    height, width = rgba.shape[:2]
    if x < 0 or y < 0 or x >= width or y >= height:
        return None
    r, g, b, a = (int(v) for v in rgba[y, x])
    if a == 0:
        return None
    return rgb_to_lab_pixel(r, g, b)


__all__ = [
    "RegionBook",
    "set_override",
    "set_override_rgb",
    "apply_picked_colour",
    "set_keep",
    "set_lock",
    "set_linked",
    "revert",
    "set_darkness",
    "bump_darkness",
    "carve_pixel_region",
    "pick_colour",
]
