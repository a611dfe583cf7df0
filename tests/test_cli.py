from __future__ import annotations

import numpy as np

import shiny_recolour
from shiny_palette.image_io import load_image_rgba, save_image_rgba

from conftest import make_rgba, solid


def _write_inputs(tmp_path):
    sprite = save_image_rgba(
        tmp_path / "mon.png",
        make_rgba([[(255, 255, 255), (255, 255, 255)], [(0, 0, 0), (0, 0, 0)]]),
    )
    normal = save_image_rgba(tmp_path / "body.png", solid(4, 4, (255, 255, 255)))
    shiny = save_image_rgba(tmp_path / "body_s.png", solid(4, 4, (255, 0, 0)))
    return sprite, normal, shiny


class TestCli:
    def test_default_output_name(self, tmp_path, capsys):
        sprite, normal, shiny = _write_inputs(tmp_path)
        argv = [str(sprite), "--ref", str(normal), str(shiny), "--seed", "5", "--contrast", "1.0",
                "--smooth-radius", "0", "--smooth-blend", "0", "--families", "2", "--workers", "1"]
        assert shiny_recolour.main(argv) == 0
        out_path = tmp_path / "mon_shiny.png"
        out = load_image_rgba(out_path)
        assert np.abs(out[0, 0, :3].astype(int) - (255, 0, 0)).max() <= 1
        assert out[1, 0].tolist() == [0, 0, 0, 255]
        text = capsys.readouterr().out
        assert "Extended seed: 5~k2~" in text
        assert "Wrote mon_shiny.png" in text

    def test_extended_seed_overrides_flags(self, tmp_path, capsys):
        sprite, normal, shiny = _write_inputs(tmp_path)
        target = tmp_path / "custom.png"
        argv = [str(sprite), str(target), "--ref", str(normal), str(shiny),
                "--families", "9", "--extended-seed", "77~k1~x1.0", "--workers", "1"]
        assert shiny_recolour.main(argv) == 0
        assert target.exists()
        assert "Extended seed: 77~k1~" in capsys.readouterr().out

    def test_folder_input(self, tmp_path):
        _write_inputs(tmp_path)
        assert shiny_recolour.main([str(tmp_path), "--workers", "1"]) == 0
        assert (tmp_path / "mon_shiny.png").exists()
        assert not (tmp_path / "mon_shiny_shiny.png").exists()

    def test_missing_inputs_exit_2(self, tmp_path):
        assert shiny_recolour.main([str(tmp_path / "nope.png")]) == 2
        sprite, normal, _ = _write_inputs(tmp_path)
        assert shiny_recolour.main([str(sprite), "--ref", str(normal), str(tmp_path / "gone.png")]) == 2

    def test_config_from_args_clamps(self):
        args = shiny_recolour.parse_cli_args(["x.png", "--contrast", "5", "--ink", "99"])
        config = shiny_recolour.config_from_args(args)
        assert config.contrast == 1.7 and config.ink_threshold == 50

    def test_unreadable_sprite_in_folder_fails_softly(self, tmp_path, capsys):
        good = save_image_rgba(tmp_path / "a.png", solid(2, 2, (120, 80, 200)))
        (tmp_path / "b.png").write_bytes(b"not a png")
        assert shiny_recolour.main([str(tmp_path), "--workers", "1"]) == 1
        assert (tmp_path / "a_shiny.png").exists()
        assert not (tmp_path / "b_shiny.png").exists()
        assert good.exists()
        assert "[warn] skipped b.png" in capsys.readouterr().out
