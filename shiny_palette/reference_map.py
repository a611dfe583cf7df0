# shiny_palette/reference_map.py
from __future__ import annotations

"""
Reference colour table built from paired (normal, shiny) textures.

For every aligned pixel pair where both alphas are visible, the normal RGB is
quantised to 4 bits per channel and the pair is accumulated into that bucket.
Each bucket becomes one table entry holding the averaged normal Lab, averaged
shiny Lab, occurrence count and (optionally) the averaged normalised position.

Buckets are per texture key: pairs that share a key feed the same buckets,
different keys never merge. Table order is texture order, then bucket
first-seen (raster) order; nearest matching breaks ties on that order.

Exports:
  ReferencePair
  ReferenceTable
  quantise_codes(rgb) -> int array
  build_reference_table(pairs, *, spatial=True, debug=False) -> ReferenceTable
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .colour_convert import rgb_to_lab
from .constants import REF_ALPHA_MIN, REF_QUANT_SHIFT
from .core_types import (
    Lab,
    ReferenceEntry,
    U8Image,
    assert_same_shape,
    assert_u8_rgba,
)
from .utils import debug_log, warn


@dataclass(frozen=True)
class ReferencePair:
    """One decoded (normal, shiny) texture pair; both uint8 (H,W,4)."""

    key: str
    normal: U8Image
    shiny: U8Image


@dataclass
class ReferenceTable:
    """
    Column-oriented table of reference entries.

    normal_lab : float64 [N,3]
    shiny_lab  : float64 [N,3]
    weight     : int64 [N]
    source_keys: list[str] (len N)
    position   : float64 [N,2], NaN where unknown
    """

    normal_lab: Lab = field(default_factory=lambda: np.zeros((0, 3), dtype=np.float64))
    shiny_lab: Lab = field(default_factory=lambda: np.zeros((0, 3), dtype=np.float64))
    weight: np.ndarray = field(default_factory=lambda: np.zeros((0,), dtype=np.int64))
    source_keys: List[str] = field(default_factory=list)
    position: np.ndarray = field(
        default_factory=lambda: np.full((0, 2), np.nan, dtype=np.float64)
    )

    def __len__(self) -> int:
        return int(self.normal_lab.shape[0])

    @property
    def texture_keys(self) -> List[str]:
        """Distinct source keys in table order."""
        return list(dict.fromkeys(self.source_keys))

    def has_position(self) -> np.ndarray:
        return ~np.isnan(self.position).any(axis=1)

    def entry(self, index: int) -> ReferenceEntry:
        pos = self.position[index]
        return ReferenceEntry(
            normal_lab=tuple(float(v) for v in self.normal_lab[index]),  # type: ignore[arg-type]
            shiny_lab=tuple(float(v) for v in self.shiny_lab[index]),  # type: ignore[arg-type]
            weight=int(self.weight[index]),
            source_key=self.source_keys[index],
            position=None if np.isnan(pos).any() else (float(pos[0]), float(pos[1])),
        )

    def entries(self) -> List[ReferenceEntry]:
        return [self.entry(i) for i in range(len(self))]

    @classmethod
    def from_entries(cls, entries: Sequence[ReferenceEntry]) -> "ReferenceTable":
        """Build a table from explicit entries, keeping their order."""
        if not entries:
            return cls()
        return cls(
            normal_lab=np.array([e.normal_lab for e in entries], dtype=np.float64),
            shiny_lab=np.array([e.shiny_lab for e in entries], dtype=np.float64),
            weight=np.array([e.weight for e in entries], dtype=np.int64),
            source_keys=[e.source_key for e in entries],
            position=np.array(
                [e.position if e.position is not None else (np.nan, np.nan) for e in entries],
                dtype=np.float64,
            ),
        )

    @classmethod
    def concatenate(cls, tables: Sequence["ReferenceTable"]) -> "ReferenceTable":
        parts = [t for t in tables if len(t)]
        if not parts:
            return cls()
        return cls(
            normal_lab=np.vstack([t.normal_lab for t in parts]),
            shiny_lab=np.vstack([t.shiny_lab for t in parts]),
            weight=np.concatenate([t.weight for t in parts]),
            source_keys=[k for t in parts for k in t.source_keys],
            position=np.vstack([t.position for t in parts]),
        )


def quantise_codes(rgb: np.ndarray) -> np.ndarray:
    """12-bit bucket code from the top 4 bits of each channel. rgb: uint8 [...,3]."""
    q = rgb.astype(np.int32) >> REF_QUANT_SHIFT
    return (q[..., 0] << 8) | (q[..., 1] << 4) | q[..., 2]


def _pair_samples(
    pair: ReferencePair, spatial: bool
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, Optional[np.ndarray]]:
    """Visible aligned samples of one pair: (codes, normal_rgb, shiny_rgb, positions)."""
    normal = assert_u8_rgba(np.asarray(pair.normal))
    shiny = assert_u8_rgba(np.asarray(pair.shiny))
    assert_same_shape(normal, shiny)

    visible = (normal[..., 3] >= REF_ALPHA_MIN) & (shiny[..., 3] >= REF_ALPHA_MIN)
    normal_rgb = normal[..., :3][visible]
    shiny_rgb = shiny[..., :3][visible]
    positions: Optional[np.ndarray] = None
    if spatial:
        height, width = visible.shape
        ys, xs = np.nonzero(visible)
        positions = np.stack(
            [xs / float(max(width - 1, 1)), ys / float(max(height - 1, 1))], axis=1
        )
    return quantise_codes(normal_rgb), normal_rgb, shiny_rgb, positions


def _bucket_texture(
    key: str, pairs: Sequence[ReferencePair], spatial: bool
) -> ReferenceTable:
    codes_parts: List[np.ndarray] = []
    normal_parts: List[np.ndarray] = []
    shiny_parts: List[np.ndarray] = []
    pos_parts: List[np.ndarray] = []
    for pair in pairs:
        try:
            codes, normal_rgb, shiny_rgb, positions = _pair_samples(pair, spatial)
        except TypeError as exc:
            warn(f"reference pair '{key}' skipped: {exc}")
            continue
        codes_parts.append(codes)
        normal_parts.append(normal_rgb)
        shiny_parts.append(shiny_rgb)
        if positions is not None:
            pos_parts.append(positions)

    if not codes_parts:
        return ReferenceTable()
    codes = np.concatenate(codes_parts)
    if codes.size == 0:
        return ReferenceTable()

    normal_lab = rgb_to_lab(np.concatenate(normal_parts))
    shiny_lab = rgb_to_lab(np.concatenate(shiny_parts))

    uniq, first_idx, inverse = np.unique(codes, return_index=True, return_inverse=True)
    # Renumber buckets into first-seen order.
    order = np.argsort(first_idx, kind="stable")
    rank = np.empty_like(order)
    rank[order] = np.arange(order.size)
    bucket = rank[inverse.reshape(-1)]
    n_buckets = int(uniq.size)

    counts = np.bincount(bucket, minlength=n_buckets).astype(np.int64)

    def _mean(values: np.ndarray) -> np.ndarray:
        cols = [
            np.bincount(bucket, weights=values[:, c], minlength=n_buckets)
            for c in range(values.shape[1])
        ]
        return np.stack(cols, axis=1) / counts[:, None]

    position = (
        _mean(np.concatenate(pos_parts))
        if spatial and pos_parts
        else np.full((n_buckets, 2), np.nan, dtype=np.float64)
    )
    return ReferenceTable(
        normal_lab=_mean(normal_lab),
        shiny_lab=_mean(shiny_lab),
        weight=counts,
        source_keys=[key] * n_buckets,
        position=position,
    )


def build_reference_table(
    pairs: Sequence[ReferencePair], *, spatial: bool = True, debug: bool = False
) -> ReferenceTable:
    """
    Union of per-texture bucket tables. Malformed pairs (wrong dtype/shape,
    mismatched dimensions) are skipped with a warning; the rest still count.
    """
    grouped: Dict[str, List[ReferencePair]] = {}
    for pair in pairs:
        grouped.setdefault(pair.key, []).append(pair)

    tables = [_bucket_texture(key, group, spatial) for key, group in grouped.items()]
    table = ReferenceTable.concatenate(tables)
    if debug:
        debug_log(
            f"reference table: {len(table)} entries from {len(table.texture_keys)} textures"
        )
    return table


__all__ = [
    "ReferencePair",
    "ReferenceTable",
    "quantise_codes",
    "build_reference_table",
]
