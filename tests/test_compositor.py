from __future__ import annotations

import numpy as np
import pytest

from shiny_palette.colour_convert import lab_to_rgb_pixel, rgb_to_lab_pixel
from shiny_palette.compositor import apply_contrast, apply_shiny, kept_mask, recolour_mask
from shiny_palette.core_types import Region
from shiny_palette.sprite import build_sprite_buffers

from conftest import make_rgba, solid


def _uniform_setup(rgb=(200, 100, 50), base_rgb=(30, 120, 200)):
    sprite = build_sprite_buffers(solid(2, 2, rgb), 8)
    family_map = np.zeros((2, 2), dtype=np.int32)
    region_ids = np.zeros((2, 2), dtype=np.int32)
    regions = [Region(0, 0)]
    centroids = sprite.lab[0, 0][None, :].copy()
    family_shiny = np.array([rgb_to_lab_pixel(*base_rgb)], dtype=np.float64)
    return sprite, family_map, region_ids, regions, centroids, family_shiny


class TestApplyShiny:
    """Per-pixel recolouring rules."""

    def test_uniform_family_takes_base_colour_exactly(self):
        sprite, fmap, rids, regions, centroids, shiny = _uniform_setup()
        out = apply_shiny(sprite, fmap, rids, regions, centroids, shiny, 1.0)
        expected = lab_to_rgb_pixel(*shiny[0])
        assert {tuple(px) for px in out[..., :3].reshape(-1, 3).tolist()} == {expected}
        assert (out[..., 3] == 255).all()

    def test_keep_reproduces_original(self):
        sprite, fmap, rids, regions, centroids, shiny = _uniform_setup()
        regions[0].keep = True
        out = apply_shiny(sprite, fmap, rids, regions, centroids, shiny, 1.4)
        np.testing.assert_array_equal(out, sprite.rgba)

    def test_deleted_region_passes_through(self):
        sprite, fmap, rids, regions, centroids, shiny = _uniform_setup()
        regions[0].deleted = True
        out = apply_shiny(sprite, fmap, rids, regions, centroids, shiny, 1.0)
        np.testing.assert_array_equal(out, sprite.rgba)

    def test_unlinked_override_wins(self):
        sprite, fmap, rids, regions, centroids, shiny = _uniform_setup()
        override = rgb_to_lab_pixel(10, 200, 10)
        regions[0].linked = False
        regions[0].lab = override
        out = apply_shiny(sprite, fmap, rids, regions, centroids, shiny, 1.0)
        assert tuple(out[0, 0, :3].tolist()) == lab_to_rgb_pixel(*override)

    def test_linked_region_ignores_stale_override(self):
        sprite, fmap, rids, regions, centroids, shiny = _uniform_setup()
        regions[0].lab = rgb_to_lab_pixel(10, 200, 10)
        out = apply_shiny(sprite, fmap, rids, regions, centroids, shiny, 1.0)
        assert tuple(out[0, 0, :3].tolist()) == lab_to_rgb_pixel(*shiny[0])

    def test_darkness_shifts_lightness(self):
        sprite, fmap, rids, regions, centroids, shiny = _uniform_setup()
        regions[0].darkness = -10
        out = apply_shiny(sprite, fmap, rids, regions, centroids, shiny, 1.0)
        L, a, b = shiny[0]
        assert tuple(out[1, 1, :3].tolist()) == lab_to_rgb_pixel(L - 10.0, a, b)

    def test_shading_relative_to_centroid_is_kept(self):
        sprite = build_sprite_buffers(make_rgba([[(120, 120, 120), (160, 160, 160)]]), 8)
        fmap = np.zeros((1, 2), dtype=np.int32)
        rids = np.zeros((1, 2), dtype=np.int32)
        centroids = sprite.lab.reshape(-1, 3).mean(axis=0)[None, :]
        shiny = np.array([[60.0, 20.0, -20.0]])
        out = apply_shiny(sprite, fmap, rids, [Region(0, 0)], centroids, shiny, 1.0)
        spread = sprite.lab[0, 1, 0] - sprite.lab[0, 0, 0]
        left = lab_to_rgb_pixel(60.0 - spread / 2, 20.0, -20.0)
        right = lab_to_rgb_pixel(60.0 + spread / 2, 20.0, -20.0)
        assert np.abs(out[0, 0, :3].astype(int) - left).max() <= 1
        assert np.abs(out[0, 1, :3].astype(int) - right).max() <= 1

    def test_transparent_alpha_forced_to_zero(self):
        rgba = make_rgba([[(200, 10, 10, 4), (200, 10, 10, 255)]])
        sprite = build_sprite_buffers(rgba, 8)
        fmap = np.array([[-1, 0]], dtype=np.int32)
        rids = np.array([[-1, 0]], dtype=np.int32)
        shiny = np.array([rgb_to_lab_pixel(0, 0, 255)])
        out = apply_shiny(sprite, fmap, rids, [Region(0, 0)], sprite.lab[0, 1][None, :], shiny, 1.0)
        assert out[0, 0].tolist() == [200, 10, 10, 0]
        assert out[0, 1, 3] == 255

    def test_protected_needs_unlock_and_active_region(self):
        rgba = make_rgba([[(3, 3, 3), (4, 4, 4)]])
        sprite = build_sprite_buffers(rgba, 8)
        fmap = np.zeros((1, 2), dtype=np.int32)
        rids = np.zeros((1, 2), dtype=np.int32)
        centroids = sprite.lab.reshape(-1, 3).mean(axis=0)[None, :]
        shiny = np.array([rgb_to_lab_pixel(90, 0, 90)])
        args = (sprite, fmap, rids, [Region(0, 0)], centroids, shiny, 1.0)

        np.testing.assert_array_equal(apply_shiny(*args), rgba)
        np.testing.assert_array_equal(apply_shiny(*args, unlock_protected=True), rgba)
        np.testing.assert_array_equal(apply_shiny(*args, active_region=0), rgba)
        unlocked = apply_shiny(*args, active_region=0, unlock_protected=True)
        assert not np.array_equal(unlocked, rgba)

    def test_no_families_is_pass_through(self):
        sprite = build_sprite_buffers(solid(2, 2, (0, 0, 0)), 8)
        fmap = np.full((2, 2), -1, dtype=np.int32)
        out = apply_shiny(sprite, fmap, fmap.copy(), [], np.zeros((0, 3)), np.zeros((0, 3)), 1.1)
        np.testing.assert_array_equal(out, sprite.rgba)

    def test_inputs_are_not_modified(self):
        sprite, fmap, rids, regions, centroids, shiny = _uniform_setup()
        before = sprite.rgba.copy()
        apply_shiny(sprite, fmap, rids, regions, centroids, shiny, 1.2)
        np.testing.assert_array_equal(sprite.rgba, before)


class TestContrast:
    def test_identity(self):
        values = np.array([0.0, 33.3, 100.0])
        np.testing.assert_array_equal(apply_contrast(values, 1.0), values)

    def test_pivot_and_clamp(self):
        np.testing.assert_allclose(apply_contrast(np.array([25.0, 50.0, 75.0]), 2.0), [0.0, 50.0, 100.0])
        assert float(apply_contrast(np.array([60.0]), 1.1)[0]) == pytest.approx(61.0)

    def test_recolour_mask(self):
        sprite = build_sprite_buffers(make_rgba([[(3, 3, 3), (200, 200, 200)]]), 8)
        rids = np.array([[0, 1]], dtype=np.int32)
        assert recolour_mask(sprite, rids, None, True).tolist() == [[False, True]]
        assert recolour_mask(sprite, rids, 0, True).tolist() == [[True, True]]
        assert recolour_mask(sprite, rids, 0, False).tolist() == [[False, True]]

    def test_kept_mask(self):
        rids = np.array([[0, 1, -1, 2]], dtype=np.int32)
        regions = [Region(0, 0, keep=True), Region(1, 0), Region(2, 1, keep=True, deleted=True)]
        assert kept_mask(rids, regions).tolist() == [[True, False, False, False]]
