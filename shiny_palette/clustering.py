# shiny_palette/clustering.py
from __future__ import annotations

"""
Family clustering: Lloyd's k-means over (L, a, b, w*x, w*y).

Initial centres are points drawn with the seeded stream, iterations are fixed,
and a centre that loses all of its points keeps its previous value. With the
same seed, K and input the assignment is bit-identical.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .constants import KMEANS_CHUNK_POINTS, KMEANS_ITERATIONS
from .core_types import IndexMap, Lab
from .rng import SeededRandom
from .sprite import SpriteBuffers
from .utils import debug_log, warn


@dataclass(frozen=True)
class FamilyClustering:
    """
    labels    : int32 [N], family per input point
    centroids : float64 [K,3], Lab part of the converged centres
    positions : float64 [K,2], mean (x, y) of member pixels, NaN for empty families
    counts    : int64 [K]
    """

    labels: np.ndarray
    centroids: Lab
    positions: np.ndarray
    counts: np.ndarray

    @property
    def k(self) -> int:
        return int(self.centroids.shape[0])

    @classmethod
    def empty(cls) -> "FamilyClustering":
        return cls(
            labels=np.zeros((0,), dtype=np.int32),
            centroids=np.zeros((0, 3), dtype=np.float64),
            positions=np.zeros((0, 2), dtype=np.float64),
            counts=np.zeros((0,), dtype=np.int64),
        )


def _nearest_centres(points: np.ndarray, centres: np.ndarray) -> np.ndarray:
    """Index of the nearest centre per point (squared Euclidean, first wins ties)."""
    out = np.empty((points.shape[0],), dtype=np.int32)
    for start in range(0, points.shape[0], KMEANS_CHUNK_POINTS):
        block = points[start : start + KMEANS_CHUNK_POINTS]
        diff = block[:, None, :] - centres[None, :, :]
        dist2 = np.sum(diff * diff, axis=2)
        out[start : start + block.shape[0]] = np.argmin(dist2, axis=1)
    return out


def kmeans_spatial(
    lab: Lab,
    coords: np.ndarray,
    k: int,
    spatial_weight: float,
    rng: SeededRandom,
    iterations: int = KMEANS_ITERATIONS,
) -> FamilyClustering:
    """
    Cluster N points.

    Args:
      lab: float64 [N,3]
      coords: [N,2] pixel (x, y)
      k: requested family count, clamped to [1, N]
      spatial_weight: multiplier for (x, y) in the joint space
      rng: seeded stream used for the initial centres
    """
    n = int(lab.shape[0])
    if n == 0:
        return FamilyClustering.empty()
    k = max(1, min(int(k), n))

    points = np.empty((n, 5), dtype=np.float64)
    points[:, :3] = lab
    points[:, 3:] = spatial_weight * np.asarray(coords, dtype=np.float64)

    centres = np.stack([points[rng.randbelow(n)].copy() for _ in range(k)])
    labels = np.zeros((n,), dtype=np.int32)
    for _ in range(iterations):
        labels = _nearest_centres(points, centres)
        counts = np.bincount(labels, minlength=k)
        sums = np.stack(
            [np.bincount(labels, weights=points[:, c], minlength=k) for c in range(5)],
            axis=1,
        )
        filled = counts > 0
        centres[filled] = sums[filled] / counts[filled, None]

    counts = np.bincount(labels, minlength=k).astype(np.int64)
    positions = np.full((k, 2), np.nan, dtype=np.float64)
    filled = counts > 0
    coords_f = np.asarray(coords, dtype=np.float64)
    for c in range(2):
        totals = np.bincount(labels, weights=coords_f[:, c], minlength=k)
        positions[filled, c] = totals[filled] / counts[filled]

    return FamilyClustering(
        labels=labels,
        centroids=centres[:, :3].copy(),
        positions=positions,
        counts=counts,
    )


def cluster_sprite(
    sprite: SpriteBuffers,
    participating: np.ndarray,
    k: int,
    spatial_weight: float,
    rng: SeededRandom,
    *,
    debug: bool = False,
) -> Tuple[IndexMap, FamilyClustering]:
    """
    Cluster the participating pixels of a sprite.

    Returns:
      family_map: int32 [H,W], -1 for pixels that did not take part
      clustering: FamilyClustering over the participating pixels in raster order
    """
    family_map = np.full(participating.shape, -1, dtype=np.int32)
    ys, xs = np.nonzero(participating)
    if ys.size == 0:
        warn("no recolourable pixels; clustering skipped")
        return family_map, FamilyClustering.empty()

    coords = np.stack([xs, ys], axis=1)
    result = kmeans_spatial(sprite.lab[ys, xs], coords, k, spatial_weight, rng)
    family_map[ys, xs] = result.labels
    if debug:
        debug_log(
            f"clustering: points={ys.size:,} K={result.k} "
            f"empty={int(np.count_nonzero(result.counts == 0))}"
        )
    return family_map, result


__all__ = ["FamilyClustering", "kmeans_spatial", "cluster_sprite"]
