# shiny_palette/regions.py
from __future__ import annotations

"""
Region segmentation and region arena helpers.

A region is a maximal 4-connected set of participating pixels sharing one
family id. Regions live in a flat arena (list indexed by id); carved pixel
regions are appended and retired by flag, never removed.

Exports:
  segment_regions(family_map, participating) -> (region_ids, regions)
  family_region_index(regions) -> {family: [region ids]}
  region_pixel_counts(region_ids, n_regions) -> int64 [R]
  region_outline(region_ids, region_id) -> bool [H,W]
"""

from collections import deque
from typing import Dict, List, Tuple

import numpy as np

from .core_types import IndexMap, Region, RegionArena

_NEIGHBOURS_4 = ((1, 0), (-1, 0), (0, 1), (0, -1))


def segment_regions(
    family_map: IndexMap, participating: np.ndarray
) -> Tuple[IndexMap, RegionArena]:
    """
    Raster-scan flood fill (BFS, 4-connectivity) of same-family pixels.

    Returns:
      region_ids: int32 [H,W], -1 outside any region
      regions: list[Region], region.id == index, default edit state
    """
    height, width = family_map.shape
    region_ids = np.full((height, width), -1, dtype=np.int32)
    regions: RegionArena = []
    fam = family_map.tolist()
    part = participating.tolist()
    rid_rows = [[-1] * width for _ in range(height)]

    for y in range(height):
        for x in range(width):
            if not part[y][x] or rid_rows[y][x] != -1:
                continue
            family = fam[y][x]
            if family < 0:
                continue
            rid = len(regions)
            rid_rows[y][x] = rid
            queue = deque([(x, y)])
            while queue:
                cx, cy = queue.popleft()
                for dx, dy in _NEIGHBOURS_4:
                    nx, ny = cx + dx, cy + dy
                    if nx < 0 or ny < 0 or nx >= width or ny >= height:
                        continue
                    if not part[ny][nx] or rid_rows[ny][nx] != -1:
                        continue
                    if fam[ny][nx] != family:
                        continue
                    rid_rows[ny][nx] = rid
                    queue.append((nx, ny))
            regions.append(Region(id=rid, family=int(family)))

    if height and width:
        region_ids[:, :] = np.array(rid_rows, dtype=np.int32)
    return region_ids, regions


def family_region_index(regions: RegionArena) -> Dict[int, List[int]]:
    """Live region ids per family, ascending."""
    index: Dict[int, List[int]] = {}
    for region in regions:
        if region.deleted:
            continue
        index.setdefault(region.family, []).append(region.id)
    return index


def region_pixel_counts(region_ids: IndexMap, n_regions: int) -> np.ndarray:
    flat = region_ids.reshape(-1)
    return np.bincount(flat[flat >= 0], minlength=n_regions).astype(np.int64)


def region_outline(region_ids: IndexMap, region_id: int) -> np.ndarray:
    """Pixels of a region with at least one 4-neighbour outside it (or off-image)."""
    inside = region_ids == region_id
    padded = np.pad(inside, 1, mode="constant", constant_values=False)
    interior = (
        padded[:-2, 1:-1] & padded[2:, 1:-1] & padded[1:-1, :-2] & padded[1:-1, 2:]
    )
    return inside & ~interior


__all__ = [
    "segment_regions",
    "family_region_index",
    "region_pixel_counts",
    "region_outline",
]
