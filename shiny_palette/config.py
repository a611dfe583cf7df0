# shiny_palette/config.py
from __future__ import annotations

"""
User-facing configuration.

ShinyConfig holds every numeric knob of the pipeline. Out-of-range values are
clamped, never rejected; the family count is further clamped to the number of
recolourable pixels when clustering runs.
"""

import math
from dataclasses import dataclass, fields, replace
from typing import Any, List, Tuple

from .constants import (
    CONSENSUS_DEFAULT,
    CONSENSUS_MIN,
    CONTRAST_DEFAULT,
    CONTRAST_MAX,
    CONTRAST_MIN,
    FAMILY_COUNT_DEFAULT,
    FAMILY_COUNT_MIN,
    INK_THRESHOLD_DEFAULT,
    INK_THRESHOLD_MAX,
    INK_THRESHOLD_MIN,
    SMOOTH_BLEND_DEFAULT,
    SMOOTH_BLEND_MAX,
    SMOOTH_RADIUS_DEFAULT,
    SPATIAL_WEIGHT_DEFAULT,
)
from .core_types import clamp_value


def _finite(value: Any, default: float) -> float:
    """float(value), or the default when it is NaN or infinite."""
    number = float(value)
    return number if math.isfinite(number) else float(default)


@dataclass(frozen=True)
class ShinyConfig:
    ink_threshold: int = INK_THRESHOLD_DEFAULT
    families: int = FAMILY_COUNT_DEFAULT
    spatial_weight: float = SPATIAL_WEIGHT_DEFAULT
    consensus: int = CONSENSUS_DEFAULT
    match_spatial_weight: float = 0.0
    tolerance: float = 0.0
    contrast: float = CONTRAST_DEFAULT
    smooth_radius: int = SMOOTH_RADIUS_DEFAULT
    smooth_blend: int = SMOOTH_BLEND_DEFAULT
    unlock_protected: bool = False

    def clamped(self) -> "ShinyConfig":
        """Copy with every field coerced to its type and range; NaN or infinite values take the default."""
        return ShinyConfig(
            ink_threshold=int(clamp_value(int(_finite(self.ink_threshold, INK_THRESHOLD_DEFAULT)), INK_THRESHOLD_MIN, INK_THRESHOLD_MAX)),
            families=max(FAMILY_COUNT_MIN, int(_finite(self.families, FAMILY_COUNT_DEFAULT))),
            spatial_weight=float(clamp_value(_finite(self.spatial_weight, SPATIAL_WEIGHT_DEFAULT), 0.0, 1.0)),
            consensus=max(CONSENSUS_MIN, int(_finite(self.consensus, CONSENSUS_DEFAULT))),
            match_spatial_weight=float(clamp_value(_finite(self.match_spatial_weight, 0.0), 0.0, 1.0)),
            tolerance=float(clamp_value(_finite(self.tolerance, 0.0), 0.0, 1.0)),
            contrast=float(clamp_value(_finite(self.contrast, CONTRAST_DEFAULT), CONTRAST_MIN, CONTRAST_MAX)),
            smooth_radius=max(0, int(_finite(self.smooth_radius, SMOOTH_RADIUS_DEFAULT))),
            smooth_blend=int(clamp_value(int(_finite(self.smooth_blend, SMOOTH_BLEND_DEFAULT)), 0, SMOOTH_BLEND_MAX)),
            unlock_protected=bool(self.unlock_protected),
        )

    def summary_pairs(self) -> List[Tuple[str, Any]]:
        """(label, value) pairs for print_config_line."""
        return [
            ("Families", self.families),
            ("Spatial", self.spatial_weight),
            ("Ink", self.ink_threshold),
            ("Consensus", self.consensus),
            ("Match spatial", self.match_spatial_weight),
            ("Tolerance", self.tolerance),
            ("Contrast", self.contrast),
            ("Smooth px", self.smooth_radius),
            ("Smooth %", self.smooth_blend),
            ("Edit ink", self.unlock_protected),
        ]


def replace_config(config: ShinyConfig, **changes: Any) -> ShinyConfig:
    """dataclasses.replace followed by clamping."""
    return replace(config, **changes).clamped()


CONFIG_FIELDS = tuple(f.name for f in fields(ShinyConfig))

__all__ = ["ShinyConfig", "replace_config", "CONFIG_FIELDS"]
