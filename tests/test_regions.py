from __future__ import annotations

import numpy as np

from shiny_palette.core_types import Region
from shiny_palette.regions import (
    family_region_index,
    region_outline,
    region_pixel_counts,
    segment_regions,
)


def _segment(family_rows, participating=None):
    family_map = np.array(family_rows, dtype=np.int32)
    if participating is None:
        participating = family_map >= 0
    return segment_regions(family_map, np.asarray(participating, dtype=bool))


class TestSegmentRegions:
    """4-connected flood fill of same-family pixels."""

    def test_disjoint_patches_of_one_family_are_separate(self):
        region_ids, regions = _segment([[0, 0, 1, 0, 0]])
        assert region_ids.tolist() == [[0, 0, 1, 2, 2]]
        assert [r.family for r in regions] == [0, 1, 0]

    def test_diagonal_neighbours_are_not_connected(self):
        region_ids, regions = _segment([[0, 1], [1, 0]])
        assert len(regions) == 4
        assert sorted(region_ids.ravel().tolist()) == [0, 1, 2, 3]

    def test_regions_never_mix_families(self):
        gen = np.random.default_rng(2)
        family_map = gen.integers(0, 3, size=(12, 12)).astype(np.int32)
        region_ids, regions = segment_regions(family_map, np.ones((12, 12), dtype=bool))
        for region in regions:
            assert set(family_map[region_ids == region.id].tolist()) == {region.family}

    def test_non_participating_pixels_stay_unassigned(self):
        region_ids, regions = _segment([[0, 0, 0]], participating=[[True, False, True]])
        assert region_ids.tolist() == [[0, -1, 1]]
        assert len(regions) == 2

    def test_default_region_state(self):
        _, regions = _segment([[2, 2]])
        region = regions[0]
        assert (region.linked, region.keep, region.lock, region.lab, region.darkness) == (
            True,
            False,
            False,
            None,
            0,
        )
        assert not region.deleted and not region.is_pixel_region

    def test_u_shape_is_one_region(self):
        region_ids, regions = _segment([[0, 1, 0], [0, 1, 0], [0, 0, 0]])
        assert len(regions) == 2
        assert region_ids[0, 0] == region_ids[0, 2]


class TestRegionHelpers:
    def test_family_index_skips_deleted(self):
        regions = [Region(0, 0), Region(1, 1), Region(2, 0), Region(3, 0, deleted=True)]
        assert family_region_index(regions) == {0: [0, 2], 1: [1]}

    def test_pixel_counts(self):
        region_ids = np.array([[0, 0, -1], [1, 0, 2]], dtype=np.int32)
        assert region_pixel_counts(region_ids, 4).tolist() == [3, 1, 1, 0]

    def test_outline_excludes_interior(self):
        region_ids = np.zeros((3, 3), dtype=np.int32)
        outline = region_outline(region_ids, 0)
        assert outline.sum() == 8
        assert not outline[1, 1]

    def test_outline_of_missing_region_is_empty(self):
        assert not region_outline(np.zeros((2, 2), dtype=np.int32), 5).any()
