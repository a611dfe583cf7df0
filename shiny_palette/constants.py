# shiny_palette/constants.py
"""
Tunables used across the project.

- Pixel classification thresholds
- Clustering (K, spatial weight, iterations)
- Reference table quantisation
- Consensus matching coefficients (harmony, diversity, fallback)
- Recolour and smoothing curves
- Configuration bounds
"""
from __future__ import annotations

from typing import Tuple

# ======================
# Pixel classification
# ======================
ALPHA_TRANSPARENT_BELOW: int = 5
INK_THRESHOLD_DEFAULT: int = 8
INK_THRESHOLD_MIN: int = 0
INK_THRESHOLD_MAX: int = 50

# ============
# Clustering
# ============
FAMILY_COUNT_DEFAULT: int = 32
FAMILY_COUNT_MIN: int = 1
SPATIAL_WEIGHT_DEFAULT: float = 0.6
KMEANS_ITERATIONS: int = 8
KMEANS_CHUNK_POINTS: int = 65_536

# =================
# Reference table
# =================
REF_ALPHA_MIN: int = 16
REF_QUANT_SHIFT: int = 4

# ====================
# Consensus matching
# ====================
CONSENSUS_DEFAULT: int = 1
CONSENSUS_MIN: int = 1
MATCH_BASE_DISTANCE: float = 20.0
MATCH_DISTANCE_PER_CANDIDATE: float = 5.0
MATCH_TOLERANCE_GAIN: float = 1.0
SPATIAL_DISTANCE_SCALE: float = 100.0
SCORE_DISTANCE_NUMERATOR: float = 10.0

HARMONY_COMPLEMENTARY_MIN: float = 150.0
HARMONY_COMPLEMENTARY_MAX: float = 210.0
HARMONY_COMPLEMENTARY_BONUS: float = 1.2
HARMONY_ANALOGOUS_MAX: float = 30.0
HARMONY_ANALOGOUS_BONUS: float = 1.1
HARMONY_CHROMA_FLOOR: float = 0.5

DIVERSITY_BONUS: float = 0.3

FALLBACK_HUE_OFFSETS: Tuple[float, ...] = (-120.0, -60.0, -30.0, 30.0, 60.0, 120.0, 180.0)
FALLBACK_L_JITTER: float = 8.0

# ===================
# Recolour / render
# ===================
CONTRAST_DEFAULT: float = 1.1
CONTRAST_MIN: float = 0.5
CONTRAST_MAX: float = 1.7
CONTRAST_PIVOT_L: float = 50.0
DARKNESS_MIN: int = -40
DARKNESS_MAX: int = 40

# ===========
# Smoothing
# ===========
SMOOTH_RADIUS_DEFAULT: int = 1
SMOOTH_BLEND_DEFAULT: int = 45
SMOOTH_BLEND_MAX: int = 100

# mix amount 0.25..1.0
BILATERAL_AMOUNT_BASE: float = 0.25
BILATERAL_AMOUNT_GAIN: float = 0.75
BILATERAL_SIGMA_R_BASE: float = 6.0
BILATERAL_SIGMA_R_GAIN: float = 14.0
BILATERAL_SIGMA_S_BASE: float = 1.1
BILATERAL_SIGMA_S_PER_RADIUS: float = 0.2
BILATERAL_MIX_L: float = 0.65
BILATERAL_MIX_C: float = 0.45

# feather 0.2..0.8
FEATHER_BASE: float = 0.2
FEATHER_GAIN: float = 0.6
FEATHER_RING_FACTOR: float = 0.5

__all__ = [
    "ALPHA_TRANSPARENT_BELOW",
    "INK_THRESHOLD_DEFAULT",
    "INK_THRESHOLD_MIN",
    "INK_THRESHOLD_MAX",
    "FAMILY_COUNT_DEFAULT",
    "FAMILY_COUNT_MIN",
    "SPATIAL_WEIGHT_DEFAULT",
    "KMEANS_ITERATIONS",
    "KMEANS_CHUNK_POINTS",
    "REF_ALPHA_MIN",
    "REF_QUANT_SHIFT",
    "CONSENSUS_DEFAULT",
    "CONSENSUS_MIN",
    "MATCH_BASE_DISTANCE",
    "MATCH_DISTANCE_PER_CANDIDATE",
    "MATCH_TOLERANCE_GAIN",
    "SPATIAL_DISTANCE_SCALE",
    "SCORE_DISTANCE_NUMERATOR",
    "HARMONY_COMPLEMENTARY_MIN",
    "HARMONY_COMPLEMENTARY_MAX",
    "HARMONY_COMPLEMENTARY_BONUS",
    "HARMONY_ANALOGOUS_MAX",
    "HARMONY_ANALOGOUS_BONUS",
    "HARMONY_CHROMA_FLOOR",
    "DIVERSITY_BONUS",
    "FALLBACK_HUE_OFFSETS",
    "FALLBACK_L_JITTER",
    "CONTRAST_DEFAULT",
    "CONTRAST_MIN",
    "CONTRAST_MAX",
    "CONTRAST_PIVOT_L",
    "DARKNESS_MIN",
    "DARKNESS_MAX",
    "SMOOTH_RADIUS_DEFAULT",
    "SMOOTH_BLEND_DEFAULT",
    "SMOOTH_BLEND_MAX",
    "BILATERAL_AMOUNT_BASE",
    "BILATERAL_AMOUNT_GAIN",
    "BILATERAL_SIGMA_R_BASE",
    "BILATERAL_SIGMA_R_GAIN",
    "BILATERAL_SIGMA_S_BASE",
    "BILATERAL_SIGMA_S_PER_RADIUS",
    "BILATERAL_MIX_L",
    "BILATERAL_MIX_C",
    "FEATHER_BASE",
    "FEATHER_GAIN",
    "FEATHER_RING_FACTOR",
]
