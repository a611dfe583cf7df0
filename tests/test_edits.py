from __future__ import annotations

import numpy as np
import pytest

from shiny_palette.core_types import Region
from shiny_palette.edits import (
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
    set_override_rgb,
)

from conftest import make_rgba

RED = (53.0, 80.0, 67.0)
BLUE = (32.0, 79.0, -108.0)


@pytest.fixture
def book() -> RegionBook:
    """1x4 strip: region 0 (family 0) on the left, region 1 (family 1) on the right."""
    auto = np.array([[60.0, 10.0, 10.0], [30.0, -20.0, 5.0]])
    return RegionBook(
        region_ids=np.array([[0, 0, 1, 1]], dtype=np.int32),
        regions=[Region(0, 0), Region(1, 1)],
        family_shiny=auto.copy(),
        family_auto=auto,
    )


class TestCustomColour:
    """Auto-linked <-> custom transitions."""

    def test_override_makes_region_custom(self, book):
        assert set_override(book, 0, RED)
        region = book.regions[0]
        assert not region.linked and region.lab == RED
        assert book.current_lab(0) == RED
        assert book.current_lab(1) == (30.0, -20.0, 5.0)

    def test_override_rgb(self, book):
        assert set_override_rgb(book, 1, (0, 0, 255))
        assert book.regions[1].lab is not None

    def test_revert_custom_relinks(self, book):
        set_override(book, 0, RED)
        assert revert(book, 0) == 0
        region = book.regions[0]
        assert region.linked and region.lab is None

    def test_relink_clears_override(self, book):
        set_override(book, 1, BLUE)
        assert set_linked(book, 1, True) == 1
        assert book.regions[1].lab is None

    def test_unlink_keeps_family_colour_until_edited(self, book):
        assert set_linked(book, 0, False) == 0
        assert book.current_lab(0) == (60.0, 10.0, 10.0)

    def test_unknown_region_is_rejected(self, book):
        assert not set_override(book, 7, RED)
        assert not set_keep(book, -1, True)
        assert revert(book, 5) == -1


class TestFamilyEdits:
    def test_picker_on_linked_region_recolours_family(self, book):
        assert apply_picked_colour(book, 0, RED)
        np.testing.assert_array_equal(book.family_shiny[0], RED)
        assert book.regions[0].linked

    def test_picker_on_custom_region_stays_local(self, book):
        set_linked(book, 0, False)
        assert apply_picked_colour(book, 0, BLUE)
        assert book.regions[0].lab == BLUE
        np.testing.assert_array_equal(book.family_shiny[0], book.family_auto[0])

    def test_revert_linked_restores_auto(self, book):
        apply_picked_colour(book, 0, RED)
        assert revert(book, 0) == 0
        np.testing.assert_array_equal(book.family_shiny[0], [60.0, 10.0, 10.0])


class TestFlags:
    def test_lock_rejects_edits(self, book):
        assert set_lock(book, 0, True)
        assert not set_override(book, 0, RED)
        assert not set_darkness(book, 0, 5)
        assert set_linked(book, 0, False) == -1
        assert revert(book, 0) == -1
        assert not apply_picked_colour(book, 0, RED)
        assert carve_pixel_region(book, 0, 0, RED) == -1
        assert book.regions[0] == Region(0, 0, lock=True)

    def test_flags_toggle_while_locked(self, book):
        set_lock(book, 0, True)
        assert set_keep(book, 0, True)
        assert set_lock(book, 0, False)
        assert book.regions[0].keep

    def test_keep_blocks_picker_and_revert(self, book):
        set_keep(book, 1, True)
        assert not apply_picked_colour(book, 1, RED)
        assert revert(book, 1) == -1
        assert set_override(book, 1, RED)


class TestDarkness:
    def test_clamped(self, book):
        assert set_darkness(book, 0, 100)
        assert book.regions[0].darkness == 40
        assert set_darkness(book, 0, -100)
        assert book.regions[0].darkness == -40

    def test_bump(self, book):
        bump_darkness(book, 1, 15)
        bump_darkness(book, 1, 15)
        assert book.regions[1].darkness == 30
        bump_darkness(book, 1, 15)
        assert book.regions[1].darkness == 40
        bump_darkness(book, 1, -100)
        assert book.regions[1].darkness == -40


class TestPixelRegions:
    """Single-pixel carve-out and merge-back."""

    def test_carve_creates_custom_pixel_region(self, book):
        rid = carve_pixel_region(book, 1, 0, RED)
        assert rid == 2
        region = book.regions[2]
        assert region.is_pixel_region and not region.linked and region.lab == RED
        assert (region.family, region.parent_family, region.parent_region) == (0, 0, 0)
        assert book.region_ids.tolist() == [[0, 2, 1, 1]]

    def test_carving_a_pixel_region_again_recolours_it(self, book):
        rid = carve_pixel_region(book, 1, 0, RED)
        assert carve_pixel_region(book, 1, 0, BLUE) == rid
        assert len(book.regions) == 3
        assert book.regions[rid].lab == BLUE

    def test_relink_merges_back(self, book):
        rid = carve_pixel_region(book, 1, 0, RED)
        assert set_linked(book, rid, True) == 0
        assert book.regions[rid].deleted
        assert book.region_ids.tolist() == [[0, 0, 1, 1]]
        assert book.live_ids() == [0, 1]
        assert book.get(rid) is None

    def test_revert_merges_back(self, book):
        rid = carve_pixel_region(book, 3, 0, BLUE)
        assert book.regions[rid].parent_region == 1
        assert revert(book, rid) == 1
        assert book.region_ids.tolist() == [[0, 0, 1, 1]]

    def test_merge_falls_back_to_family_region(self, book):
        rid = carve_pixel_region(book, 0, 0, RED)
        book.regions[0].deleted = True
        book.regions.append(Region(3, 0))
        assert set_linked(book, rid, True) == 3
        assert book.region_ids[0, 0] == 3

    def test_carve_outside_sprite(self, book):
        assert carve_pixel_region(book, 9, 0, RED) == -1
        assert carve_pixel_region(book, 0, 3, RED) == -1

    def test_carve_on_kept_region_is_rejected(self, book):
        set_keep(book, 0, True)
        assert carve_pixel_region(book, 0, 0, RED) == -1

    def test_pixel_region_refuses_keep(self, book):
        rid = carve_pixel_region(book, 1, 0, RED)
        assert not set_keep(book, rid, True)
        assert set_keep(book, rid, False)
        assert not book.regions[rid].keep


class TestPickColour:
    def test_pick(self):
        rgba = make_rgba([[(255, 255, 255), (0, 0, 0, 0)]])
        lab = pick_colour(rgba, 0, 0)
        assert lab is not None and lab[0] == pytest.approx(100.0, abs=0.01)

    def test_transparent_and_out_of_bounds(self):
        rgba = make_rgba([[(255, 255, 255), (9, 9, 9, 0)]])
        assert pick_colour(rgba, 1, 0) is None
        assert pick_colour(rgba, 2, 0) is None
        assert pick_colour(rgba, 0, -1) is None
