# shiny_palette/session.py
from __future__ import annotations

"""
Explicit pipeline context for one sprite.

ShinySession owns every piece of mutable state (sprite buffers, reference
table, family assignment, region book, selection) and drives the pipeline:

  load_sprite -> recluster (cluster, match, segment) -> edits -> render

A new sprite or a clustering pass builds its whole state first and commits it
in one assignment, so mask, Lab cache, family map and region arrays always
describe the same image. Colour edits never trigger clustering.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from .clustering import FamilyClustering, cluster_sprite
from .colour_convert import lab_to_hex, rgb_to_lab_pixel
from .compositor import apply_shiny, kept_mask
from .config import ShinyConfig, replace_config
from .core_types import (
    FamilyInfo,
    IndexMap,
    Lab,
    RegionInfo,
    U8Image,
    as_lab_tuple,
)
from .edits import (
    RegionBook,
    apply_picked_colour,
    bump_darkness,
    carve_pixel_region,
    pick_colour,
    revert,
    set_darkness,
    set_keep,
    set_linked,
    set_lock,
    set_override,
)
from .matching import MatchOptions, suggest
from .reference_map import ReferencePair, ReferenceTable, build_reference_table
from .regions import family_region_index, region_outline, region_pixel_counts, segment_regions
from .rng import SeededRandom, SeedLike
from .seed_codec import parse_extended_seed, serialize_extended_seed
from .smoothing import smooth_output
from .sprite import SpriteBuffers, build_sprite_buffers
from .utils import debug_log, print_config_line, warn

# Fields whose change invalidates the family assignment.
_CLUSTER_FIELDS = (
    "ink_threshold",
    "families",
    "spatial_weight",
    "consensus",
    "match_spatial_weight",
    "tolerance",
    "unlock_protected",
)


@dataclass
class _ClusterPass:
    family_map: IndexMap
    clustering: FamilyClustering
    book: RegionBook


class ShinySession:
    """
    Stateful shiny generator.

    Args:
      config: initial configuration (clamped on entry)
      seed: int, numeric string, any text, or None for a random seed
      workers: threads for the Lab conversion of large sprites
      debug: route diagnostic lines to debug_log
    """

    def __init__(
        self,
        config: Optional[ShinyConfig] = None,
        seed: SeedLike = None,
        *,
        workers: int = 1,
        debug: bool = False,
    ) -> None:
        self.config = (config or ShinyConfig()).clamped()
        self.rng = SeededRandom(seed)
        self.workers = max(1, int(workers))
        self.debug = bool(debug)
        self.sprite: Optional[SpriteBuffers] = None
        self.reference = ReferenceTable()
        self._pass: Optional[_ClusterPass] = None
        self.selected_region: Optional[int] = None

    # State access

    @property
    def seed(self) -> int:
        return self.rng.seed

    @property
    def book(self) -> Optional[RegionBook]:
        return self._pass.book if self._pass is not None else None

    @property
    def family_map(self) -> Optional[IndexMap]:
        return self._pass.family_map if self._pass is not None else None

    @property
    def clustering(self) -> Optional[FamilyClustering]:
        return self._pass.clustering if self._pass is not None else None

    def match_options(self) -> MatchOptions:
        cfg = self.config
        return MatchOptions(
            consensus=cfg.consensus,
            spatial_weight=cfg.match_spatial_weight,
            tolerance=cfg.tolerance,
            debug=self.debug,
        )

    # Inputs

    def load_sprite(self, rgba: np.ndarray) -> bool:
        """
        Replace the sprite and recluster. A malformed buffer is rejected with a
        warning and the previous state is kept.
        """
        try:
            sprite = build_sprite_buffers(rgba, self.config.ink_threshold, self.workers)
        except TypeError as exc:
            warn(f"sprite rejected: {exc}")
            return False
        new_pass = self._cluster(sprite)
        self.sprite, self._pass = sprite, new_pass
        self.selected_region = None
        if self.debug:
            recolourable, protected, transparent = sprite.counts()
            print_config_line(
                "sprite",
                [
                    ("Size", f"{sprite.width}x{sprite.height}"),
                    ("Recolourable", recolourable),
                    ("Protected", protected),
                    ("Transparent", transparent),
                ],
                debug=True,
            )
        return True

    def set_reference_pairs(self, pairs: Sequence[ReferencePair]) -> int:
        """Rebuild the reference table and re-match. Returns the entry count."""
        self.reference = build_reference_table(pairs, spatial=True, debug=self.debug)
        if self.sprite is not None:
            self.recluster()
        return len(self.reference)

    def set_config(self, config: Optional[ShinyConfig] = None, **changes: Any) -> bool:
        """
        Install a new configuration (clamped). Returns True when the change
        forced a new clustering pass; render-only settings never do.
        """
        new = replace_config(config or self.config, **changes)
        old, self.config = self.config, new
        if self.sprite is None:
            return False
        if new.ink_threshold != old.ink_threshold:
            self.sprite = self.sprite.with_ink_threshold(new.ink_threshold)
        if any(getattr(new, f) != getattr(old, f) for f in _CLUSTER_FIELDS):
            self.recluster()
            return True
        return False

    # Clustering

    def _cluster(self, sprite: SpriteBuffers) -> _ClusterPass:
        cfg = self.config
        self.rng.set_seed(self.rng.seed)
        participating = sprite.participating(cfg.unlock_protected)
        family_map, clustering = cluster_sprite(
            sprite,
            participating,
            cfg.families,
            cfg.spatial_weight,
            self.rng,
            debug=self.debug,
        )

        options = self.match_options()
        norm = np.array(
            [max(sprite.width - 1, 1), max(sprite.height - 1, 1)], dtype=np.float64
        )
        auto = np.zeros((clustering.k, 3), dtype=np.float64)
        for family in range(clustering.k):
            pos = clustering.positions[family]
            query_pos: Optional[Tuple[float, float]] = None
            if not np.isnan(pos).any():
                query_pos = (float(pos[0] / norm[0]), float(pos[1] / norm[1]))
            auto[family] = suggest(
                clustering.centroids[family], self.reference, options, self.rng, query_pos
            )

        region_ids, regions = segment_regions(family_map, participating)
        if self.debug:
            debug_log(f"segmentation: {len(regions)} regions over {clustering.k} families")
        book = RegionBook(
            region_ids=region_ids,
            regions=regions,
            family_shiny=auto.copy(),
            family_auto=auto,
        )
        return _ClusterPass(family_map=family_map, clustering=clustering, book=book)

    def recluster(self, seed: SeedLike = None) -> bool:
        """
        Run clustering, matching and segmentation again. With seed=None the
        current seed is reused, so the result is reproducible. Region edits
        are discarded.
        """
        if seed is not None:
            self.rng.set_seed(seed)
        if self.sprite is None:
            return False
        self._pass = self._cluster(self.sprite)
        self.selected_region = None
        return True

    def reroll(self) -> int:
        """Fresh random seed followed by a recluster; returns the new seed."""
        self.rng.set_seed(None)
        self.recluster()
        return self.seed

    # Extended seed

    def extended_seed(self) -> str:
        return serialize_extended_seed(self.seed, self.config)

    def apply_extended_seed(self, text: str) -> bool:
        """Install the seed and configuration carried by an extended seed."""
        seed, config = parse_extended_seed(text, self.config)
        self.rng.set_seed(seed)
        old_ink = self.config.ink_threshold
        self.config = config
        if self.sprite is None:
            return False
        if config.ink_threshold != old_ink:
            self.sprite = self.sprite.with_ink_threshold(config.ink_threshold)
        return self.recluster()

    # Rendering

    def render(self) -> Optional[U8Image]:
        """Recoloured and smoothed RGBA (kept regions stay original), or None when no sprite is loaded."""
        if self.sprite is None or self._pass is None:
            return None
        cfg = self.config
        book = self._pass.book
        out = apply_shiny(
            self.sprite,
            self._pass.family_map,
            book.region_ids,
            book.regions,
            self._pass.clustering.centroids,
            book.family_shiny,
            cfg.contrast,
            active_region=self.selected_region,
            unlock_protected=cfg.unlock_protected,
        )
        smoothed = smooth_output(
            out, self.sprite.rgba, cfg.smooth_radius, cfg.smooth_blend, cfg.ink_threshold
        )
        kept = kept_mask(book.region_ids, book.regions)
        smoothed[kept] = out[kept]
        return smoothed

    # Selection

    def region_at(self, x: int, y: int) -> int:
        book = self.book
        if book is None:
            return -1
        rid = book.region_at(x, y)
        return rid if book.get(rid) is not None else -1

    def select_region(self, region_id: Optional[int]) -> bool:
        book = self.book
        if region_id is None:
            self.selected_region = None
            return True
        if book is None or book.get(region_id) is None:
            return False
        self.selected_region = int(region_id)
        return True

    def step_region(self, direction: int = 1) -> Optional[int]:
        """Select the next (or previous) live region, wrapping around."""
        book = self.book
        ids = book.live_ids() if book is not None else []
        if not ids:
            self.selected_region = None
            return None
        if self.selected_region not in ids:
            self.selected_region = ids[0] if direction >= 0 else ids[-1]
        else:
            pos = ids.index(self.selected_region)
            self.selected_region = ids[(pos + (1 if direction >= 0 else -1)) % len(ids)]
        return self.selected_region

    def _target(self, region_id: Optional[int]) -> int:
        if region_id is not None:
            return int(region_id)
        return self.selected_region if self.selected_region is not None else -1

    # Edits

    def set_region_colour(
        self, rgb: Sequence[int], region_id: Optional[int] = None
    ) -> bool:
        book = self.book
        if book is None:
            return False
        lab = rgb_to_lab_pixel(int(rgb[0]), int(rgb[1]), int(rgb[2]))
        return set_override(book, self._target(region_id), lab)

    def set_region_lab(
        self, lab: Sequence[float], region_id: Optional[int] = None
    ) -> bool:
        book = self.book
        if book is None:
            return False
        return set_override(book, self._target(region_id), as_lab_tuple(lab))

    def set_keep(self, keep: bool, region_id: Optional[int] = None) -> bool:
        book = self.book
        return book is not None and set_keep(book, self._target(region_id), keep)

    def set_lock(self, lock: bool, region_id: Optional[int] = None) -> bool:
        book = self.book
        return book is not None and set_lock(book, self._target(region_id), lock)

    def set_linked(self, linked: bool, region_id: Optional[int] = None) -> int:
        book = self.book
        if book is None:
            return -1
        target = self._target(region_id)
        result = set_linked(book, target, linked)
        if result >= 0 and self.selected_region == target:
            self.selected_region = result
        return result

    def revert(self, region_id: Optional[int] = None) -> int:
        book = self.book
        if book is None:
            return -1
        target = self._target(region_id)
        result = revert(book, target)
        if result >= 0 and self.selected_region == target:
            self.selected_region = result
        return result

    def set_darkness(self, value: int, region_id: Optional[int] = None) -> bool:
        book = self.book
        return book is not None and set_darkness(book, self._target(region_id), value)

    def bump_darkness(self, delta: int, region_id: Optional[int] = None) -> bool:
        book = self.book
        return book is not None and bump_darkness(book, self._target(region_id), delta)

    def carve_pixel(self, x: int, y: int, rgb: Sequence[int]) -> int:
        """Give sprite pixel (x, y) its own colour. Returns the pixel region id or -1."""
        book = self.book
        if book is None:
            return -1
        lab = rgb_to_lab_pixel(int(rgb[0]), int(rgb[1]), int(rgb[2]))
        return carve_pixel_region(book, x, y, lab)

    def pick_and_apply(
        self,
        source: U8Image,
        x: int,
        y: int,
        *,
        region_id: Optional[int] = None,
        pixel: Optional[Tuple[int, int]] = None,
    ) -> int:
        """
        Pick the colour at (x, y) of `source` and apply it to a region, or with
        `pixel=(px, py)` carve that sprite pixel into its own region.
        Returns the affected region id, or -1 when nothing changed.
        """
        book = self.book
        if book is None:
            return -1
        lab = pick_colour(source, x, y)
        if lab is None:
            return -1
        if pixel is not None:
            return carve_pixel_region(book, int(pixel[0]), int(pixel[1]), lab)
        target = self._target(region_id)
        return target if apply_picked_colour(book, target, lab) else -1

    # Descriptors

    def sprite_counts(self) -> Tuple[int, int, int]:
        """(recolourable, protected, transparent); zeros before a sprite is loaded."""
        return self.sprite.counts() if self.sprite is not None else (0, 0, 0)

    def region_outline(self, region_id: Optional[int] = None) -> Optional[np.ndarray]:
        book = self.book
        target = self._target(region_id)
        if book is None or book.get(target) is None:
            return None
        return region_outline(book.region_ids, target)

    def describe_regions(self) -> List[RegionInfo]:
        book = self.book
        if book is None:
            return []
        counts = region_pixel_counts(book.region_ids, len(book.regions))
        infos: List[RegionInfo] = []
        for region in book.regions:
            if region.deleted:
                continue
            infos.append(
                RegionInfo(
                    id=region.id,
                    family=region.family,
                    linked=region.linked,
                    keep=region.keep,
                    lock=region.lock,
                    darkness=region.darkness,
                    is_pixel_region=region.is_pixel_region,
                    colour_hex=lab_to_hex(region.base_lab(book.family_shiny[region.family])),
                    pixel_count=int(counts[region.id]),
                )
            )
        return infos

    def describe_families(self) -> List[FamilyInfo]:
        if self._pass is None:
            return []
        book = self._pass.book
        centroids: Lab = self._pass.clustering.centroids
        index = family_region_index(book.regions)
        infos: List[FamilyInfo] = []
        for family in range(centroids.shape[0]):
            shiny = book.family_shiny[family]
            auto = book.family_auto[family]
            infos.append(
                FamilyInfo(
                    id=family,
                    centroid_lab=as_lab_tuple(centroids[family]),
                    shiny_lab=as_lab_tuple(shiny),
                    auto_lab=as_lab_tuple(auto),
                    colour_hex=lab_to_hex(shiny),
                    region_ids=tuple(index.get(family, [])),
                    edited=not np.array_equal(shiny, auto),
                )
            )
        return infos


__all__ = ["ShinySession"]
