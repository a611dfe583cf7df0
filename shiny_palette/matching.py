# shiny_palette/matching.py
from __future__ import annotations

"""
Colour matching: suggest a shiny Lab for a family centroid.

Modes:
  nearest   : breadth 1 with no spatial/tolerance weighting. Minimum Lab dE
              over the table, first entry wins ties.
  consensus : every entry within an adaptive dE threshold is scored
                score = log(weight + 1) + 10 / (distance + 1)
              times a colour-harmony multiplier; the top-N are boosted by
              texture diversity and blended by score.

Fallbacks when no entry is within the threshold:
  tolerance > 0 : hue rotation by a seeded choice of fixed offsets plus a
                  bounded seeded lightness jitter
  tolerance = 0 : globally nearest entry
An empty table returns the query unchanged.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .colour_convert import delta_e, hue_distance, lab_chroma, lab_hue
from .constants import (
    DIVERSITY_BONUS,
    FALLBACK_HUE_OFFSETS,
    FALLBACK_L_JITTER,
    HARMONY_ANALOGOUS_BONUS,
    HARMONY_ANALOGOUS_MAX,
    HARMONY_CHROMA_FLOOR,
    HARMONY_COMPLEMENTARY_BONUS,
    HARMONY_COMPLEMENTARY_MAX,
    HARMONY_COMPLEMENTARY_MIN,
    MATCH_BASE_DISTANCE,
    MATCH_DISTANCE_PER_CANDIDATE,
    MATCH_TOLERANCE_GAIN,
    SCORE_DISTANCE_NUMERATOR,
    SPATIAL_DISTANCE_SCALE,
)
from .core_types import LabTuple, as_lab_tuple, clamp_value
from .reference_map import ReferenceTable
from .rng import SeededRandom
from .utils import debug_log


@dataclass(frozen=True)
class MatchOptions:
    consensus: int = 1
    spatial_weight: float = 0.0
    tolerance: float = 0.0
    debug: bool = False

    @property
    def uses_consensus(self) -> bool:
        return self.consensus > 1 or self.spatial_weight > 0.0 or self.tolerance > 0.0

    @property
    def max_distance(self) -> float:
        """Candidate dE cut-off; widens with breadth and with tolerance."""
        base = MATCH_BASE_DISTANCE + MATCH_DISTANCE_PER_CANDIDATE * self.consensus
        return base * (1.0 + MATCH_TOLERANCE_GAIN * self.tolerance)


def nearest_entry_index(query_lab: Sequence[float], table: ReferenceTable) -> int:
    """Index of the entry whose normal Lab is closest to the query (first on ties)."""
    return int(np.argmin(delta_e(table.normal_lab, np.asarray(query_lab, dtype=np.float64))))


def harmony_multiplier(query_lab: np.ndarray, candidate_lab: np.ndarray) -> np.ndarray:
    """
    Complementary-hue bonus, analogous-hue bonus and chroma-ratio preservation,
    multiplied together. candidate_lab: [N,3]; returns [N].
    """
    hd = hue_distance(lab_hue(query_lab), lab_hue(candidate_lab))
    complementary = np.where(
        (hd > HARMONY_COMPLEMENTARY_MIN) & (hd < HARMONY_COMPLEMENTARY_MAX),
        HARMONY_COMPLEMENTARY_BONUS,
        1.0,
    )
    analogous = np.where(hd < HARMONY_ANALOGOUS_MAX, HARMONY_ANALOGOUS_BONUS, 1.0)

    c1 = float(lab_chroma(query_lab))
    c2 = lab_chroma(candidate_lab)
    if c1 > 0.0:
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = np.where(c2 > 0.0, np.minimum(c2 / c1, c1 / c2), 0.0)
    else:
        ratio = np.ones_like(c2)
    chroma = HARMONY_CHROMA_FLOOR + (1.0 - HARMONY_CHROMA_FLOOR) * ratio
    return complementary * analogous * chroma


def heuristic_shift(
    query_lab: np.ndarray, tolerance: float, rng: SeededRandom
) -> LabTuple:
    """Rotate hue by a seeded offset and jitter lightness within +-tolerance*8."""
    L = float(query_lab[0])
    chroma = float(lab_chroma(query_lab))
    hue = float(np.degrees(np.arctan2(query_lab[2], query_lab[1])))
    hue += rng.choice(FALLBACK_HUE_OFFSETS)
    L += rng.uniform(-1.0, 1.0) * FALLBACK_L_JITTER * tolerance
    rad = np.radians(hue)
    return (
        clamp_value(L, 0.0, 100.0),
        float(chroma * np.cos(rad)),
        float(chroma * np.sin(rad)),
    )


def _combined_distance(
    colour_distance: np.ndarray,
    table: ReferenceTable,
    indices: np.ndarray,
    spatial_weight: float,
    query_pos: Optional[Tuple[float, float]],
) -> np.ndarray:
    if spatial_weight <= 0.0 or query_pos is None:
        return colour_distance
    pos = table.position[indices]
    known = ~np.isnan(pos).any(axis=1)
    diff = np.nan_to_num(pos) - np.asarray(query_pos, dtype=np.float64)
    spatial = np.hypot(diff[:, 0], diff[:, 1]) * SPATIAL_DISTANCE_SCALE
    blended = (1.0 - spatial_weight) * colour_distance + spatial_weight * spatial
    return np.where(known, blended, colour_distance)


def suggest(
    query_lab: Sequence[float],
    table: ReferenceTable,
    options: MatchOptions,
    rng: SeededRandom,
    query_pos: Optional[Tuple[float, float]] = None,
) -> LabTuple:
    """
    Suggested shiny Lab for a query Lab (and optional normalised position).
    Never raises for an empty table.
    """
    q = np.asarray(query_lab, dtype=np.float64)
    if len(table) == 0:
        return as_lab_tuple(q)

    distance = delta_e(table.normal_lab, q)
    if not options.uses_consensus:
        return as_lab_tuple(table.shiny_lab[int(np.argmin(distance))])

    idx = np.nonzero(distance <= options.max_distance)[0]
    if idx.size == 0:
        if options.tolerance > 0.0:
            shifted = heuristic_shift(q, options.tolerance, rng)
            if options.debug:
                debug_log(f"fallback: no candidates for {_fmt(q)}, hue shift -> {_fmt(shifted)}")
            return shifted
        best = int(np.argmin(distance))
        if options.debug:
            debug_log(
                f"fallback: no candidates for {_fmt(q)}, nearest at dE {distance[best]:.2f}"
            )
        return as_lab_tuple(table.shiny_lab[best])

    combined = _combined_distance(
        distance[idx], table, idx, options.spatial_weight, query_pos
    )
    scores = np.log(table.weight[idx].astype(np.float64) + 1.0)
    scores = scores + SCORE_DISTANCE_NUMERATOR / (combined + 1.0)
    scores = scores * harmony_multiplier(q, table.shiny_lab[idx])

    order = np.argsort(-scores, kind="stable")[: options.consensus]
    top = idx[order]
    top_scores = scores[order].copy()

    usage = Counter(table.source_keys[i] for i in top)
    if len(usage) > 1:
        for j, i in enumerate(top):
            top_scores[j] *= 1.0 + DIVERSITY_BONUS / usage[table.source_keys[i]]
        resort = np.argsort(-top_scores, kind="stable")
        top = top[resort]
        top_scores = top_scores[resort]

    total = float(top_scores.sum())
    if total <= 0.0:
        return as_lab_tuple(table.shiny_lab[top[0]])
    blended = (table.shiny_lab[top] * top_scores[:, None]).sum(axis=0) / total

    if options.debug:
        debug_log(
            f"consensus: {idx.size} candidates for {_fmt(q)}, using top {top.size} "
            f"from {len(usage)} textures -> {_fmt(blended)}"
        )
    return as_lab_tuple(blended)


def _fmt(lab: Sequence[float]) -> str:
    return "[" + ", ".join(f"{float(v):.1f}" for v in lab) + "]"


__all__ = [
    "MatchOptions",
    "nearest_entry_index",
    "harmony_multiplier",
    "heuristic_shift",
    "suggest",
]
