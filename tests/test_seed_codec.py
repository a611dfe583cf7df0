from __future__ import annotations

import pytest

from shiny_palette.config import CONFIG_FIELDS, ShinyConfig, replace_config
from shiny_palette.rng import hash_seed_text
from shiny_palette.seed_codec import (
    is_extended_seed,
    parse_extended_seed,
    serialize_extended_seed,
)

CONFIGS = [
    ShinyConfig(),
    ShinyConfig(
        ink_threshold=0,
        families=1,
        spatial_weight=0.0,
        consensus=7,
        match_spatial_weight=0.1,
        tolerance=1.0,
        contrast=0.5,
        smooth_radius=0,
        smooth_blend=0,
        unlock_protected=True,
    ),
    ShinyConfig(
        ink_threshold=50,
        families=64,
        spatial_weight=1 / 3,
        consensus=3,
        match_spatial_weight=0.7,
        tolerance=0.35,
        contrast=1.37,
        smooth_radius=4,
        smooth_blend=100,
    ),
]


class TestRoundTrip:
    """parse(serialize(seed, config)) == (seed, config)."""

    @pytest.mark.parametrize("config", CONFIGS)
    @pytest.mark.parametrize("seed", [1, 42, 2147483646])
    def test_round_trip(self, seed, config):
        text = serialize_extended_seed(seed, config)
        assert is_extended_seed(text)
        assert parse_extended_seed(text) == (seed, config)

    def test_layout(self):
        text = serialize_extended_seed(42, ShinyConfig())
        assert text.startswith("42~k32~i8~")
        assert text.endswith("~u0")

    def test_out_of_range_values_are_clamped_before_encoding(self):
        text = serialize_extended_seed(5, ShinyConfig(contrast=9.0, families=0))
        _, config = parse_extended_seed(text)
        assert config.contrast == 1.7
        assert config.families == 1


class TestParse:
    def test_plain_numeric_seed_keeps_base(self):
        base = ShinyConfig(families=5)
        assert parse_extended_seed("123", base) == (123, base)

    def test_plain_text_seed_is_hashed(self):
        assert parse_extended_seed("pikachu") == (hash_seed_text("pikachu"), ShinyConfig())

    def test_missing_tags_keep_base_values(self):
        base = ShinyConfig(contrast=1.3)
        seed, config = parse_extended_seed("9~k3", base)
        assert seed == 9
        assert config.families == 3
        assert config.contrast == 1.3

    def test_values_are_clamped(self):
        _, config = parse_extended_seed("9~k0~x9~i99~b500")
        assert (config.families, config.contrast, config.ink_threshold, config.smooth_blend) == (1, 1.7, 50, 100)

    @pytest.mark.parametrize("text", ["12~k", "12~zfoo", "abc~k3", "12~u7", "12~x1.2.3", "12~xnan", "12~winf", "12~t-nan"])
    def test_malformed_falls_back_to_hash(self, text):
        base = ShinyConfig(families=9)
        assert parse_extended_seed(text, base) == (hash_seed_text(text), base)


class TestConfig:
    def test_clamped_ranges(self):
        config = ShinyConfig(
            ink_threshold=-3,
            families=-1,
            spatial_weight=2.0,
            consensus=0,
            match_spatial_weight=-1.0,
            tolerance=5.0,
            contrast=0.1,
            smooth_radius=-2,
            smooth_blend=150,
        ).clamped()
        assert config == ShinyConfig(
            ink_threshold=0,
            families=1,
            spatial_weight=1.0,
            consensus=1,
            match_spatial_weight=0.0,
            tolerance=1.0,
            contrast=0.5,
            smooth_radius=0,
            smooth_blend=100,
        )

    def test_non_finite_values_take_defaults(self):
        nan, inf = float("nan"), float("inf")
        config = ShinyConfig(
            ink_threshold=nan,
            spatial_weight=nan,
            match_spatial_weight=inf,
            tolerance=-inf,
            contrast=nan,
            smooth_blend=inf,
        ).clamped()
        assert config == ShinyConfig()

    def test_replace_config_clamps(self):
        assert replace_config(ShinyConfig(), contrast=3.0).contrast == 1.7

    def test_summary_covers_every_field(self):
        assert len(ShinyConfig().summary_pairs()) == len(CONFIG_FIELDS)
