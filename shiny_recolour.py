#!/usr/bin/env python3
"""
shiny_recolour.py
Generate shiny colour variants of RGBA sprites from paired reference textures.

Usage:
  python shiny_recolour.py SPRITE [OUTPUT] --ref NORMAL SHINY [--ref NORMAL SHINY ...]
      [--seed S | --extended-seed E] [--families K] [--spatial W] [--ink T]
      [--consensus N] [--match-spatial W] [--tolerance T] [--contrast C]
      [--smooth-radius R] [--smooth-blend B] [--unlock-protected] [--debug]

Input:
  Any Pillow-readable sprite, or a folder of them. Alpha is preserved; pixels
  with alpha below 5 are written fully transparent.

Output:
  PNG. If OUTPUT is omitted, writes <stem>_shiny.png next to SPRITE.

Notes:
  Each --ref pair is keyed by the normal texture's file stem; pairs that share
  a stem feed the same reference buckets.
  The printed extended seed reproduces the run when passed to --extended-seed.
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
from PIL import UnidentifiedImageError

from shiny_palette.config import ShinyConfig
from shiny_palette.constants import (
    CONSENSUS_DEFAULT,
    CONTRAST_DEFAULT,
    FAMILY_COUNT_DEFAULT,
    INK_THRESHOLD_DEFAULT,
    SMOOTH_BLEND_DEFAULT,
    SMOOTH_RADIUS_DEFAULT,
    SPATIAL_WEIGHT_DEFAULT,
)
from shiny_palette.image_io import (
    IMAGE_SUFFIXES,
    load_image_rgba,
    load_reference_pairs,
    save_image_rgba,
)
from shiny_palette.session import ShinySession
from shiny_palette.utils import (
    colour_usage_report,
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_seconds_compact,
    format_total_duration_compact,
    key_value_pairs_to_string,
    log,
    print_banner,
    print_config_line,
    warn,
)

OUTPUT_SUFFIX = "_shiny"

# CLI args & small helpers


def _default_workers() -> int:
    """Leave a few cores free for the system; returns a sensible worker count."""
    n = os.cpu_count() or 4
    reserve = 1 if n <= 6 else 2 if n <= 12 else 3 if n <= 18 else 4
    return max(1, n - reserve)


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments for shiny recolouring.

    Returns:
      argparse.Namespace with:
        src: sprite image or folder
        output: optional output path (single sprite only)
        ref: list of [normal, shiny] path pairs
        seed / extended_seed: seed text
        families, spatial, ink, consensus, match_spatial, tolerance, contrast,
        smooth_radius, smooth_blend, unlock_protected: ShinyConfig fields
        workers: threads for Lab conversion
        debug: bool for verbose pipeline details
    """
    parser = argparse.ArgumentParser(
        prog="shiny_recolour",
        description="Recolour sprite(s) into a shiny variant learned from reference textures.",
    )
    parser.add_argument("src", type=Path, help="Sprite image or folder")
    parser.add_argument("output", type=Path, nargs="?", default=None, help="Output PNG (optional)")
    parser.add_argument(
        "--ref",
        nargs=2,
        action="append",
        type=Path,
        default=[],
        metavar=("NORMAL", "SHINY"),
        help="Reference texture pair; repeatable",
    )
    parser.add_argument("--seed", default=None, help="Seed (integer or any text)")
    parser.add_argument(
        "--extended-seed",
        default=None,
        help="Extended seed; overrides --seed and every numeric option",
    )
    parser.add_argument("--families", type=int, default=FAMILY_COUNT_DEFAULT, help="Colour families (K)")
    parser.add_argument("--spatial", type=float, default=SPATIAL_WEIGHT_DEFAULT, help="Clustering spatial weight 0..1")
    parser.add_argument("--ink", type=int, default=INK_THRESHOLD_DEFAULT, help="Ink protection threshold 0..50")
    parser.add_argument("--consensus", type=int, default=CONSENSUS_DEFAULT, help="Consensus breadth (1 = nearest)")
    parser.add_argument("--match-spatial", type=float, default=0.0, help="Spatial weight in matching 0..1")
    parser.add_argument("--tolerance", type=float, default=0.0, help="Colour tolerance 0..1")
    parser.add_argument("--contrast", type=float, default=CONTRAST_DEFAULT, help="Global contrast 0.5..1.7")
    parser.add_argument("--smooth-radius", type=int, default=SMOOTH_RADIUS_DEFAULT, help="Smoothing radius in pixels")
    parser.add_argument("--smooth-blend", type=int, default=SMOOTH_BLEND_DEFAULT, help="Smoothing blend 0..100")
    parser.add_argument("--unlock-protected", action="store_true", help="Let ink pixels join clustering")
    parser.add_argument("--workers", type=int, default=_default_workers(), help="Internal workers")
    parser.add_argument("--debug", action="store_true", help="Verbose pipeline details")
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> ShinyConfig:
    return ShinyConfig(
        ink_threshold=args.ink,
        families=args.families,
        spatial_weight=args.spatial,
        consensus=args.consensus,
        match_spatial_weight=args.match_spatial,
        tolerance=args.tolerance,
        contrast=args.contrast,
        smooth_radius=args.smooth_radius,
        smooth_blend=args.smooth_blend,
        unlock_protected=args.unlock_protected,
    ).clamped()


def _collect_sprites(src: Path) -> List[Path]:
    if not src.is_dir():
        return [src]
    files = [
        p
        for p in src.iterdir()
        if p.is_file()
        and p.suffix.lower() in IMAGE_SUFFIXES
        and not p.stem.endswith(OUTPUT_SUFFIX)
    ]
    files.sort(key=lambda p: p.name.lower())
    return files


# Per-file processing


def _process_single_sprite(
    session: ShinySession, src_path: Path, out_path: Optional[Path], debug: bool
) -> bool:
    """
    Process one sprite end-to-end:
      load -> cluster/match -> render -> save -> report.
    """
    t_start = time.perf_counter()
    if out_path is None:
        out_path = src_path.with_name(f"{src_path.stem}{OUTPUT_SUFFIX}.png")

    print_banner(src_path.name)
    try:
        rgba = load_image_rgba(src_path)
    except (UnidentifiedImageError, OSError) as exc:
        warn(f"skipped {src_path.name}: {exc}")
        return False
    if not session.load_sprite(rgba):
        return False
    t_loaded = time.perf_counter()

    recolourable, protected, transparent = session.sprite_counts()
    log(
        key_value_pairs_to_string(
            [
                ("Size", f"{rgba.shape[1]}x{rgba.shape[0]}"),
                ("Recolourable", recolourable),
                ("Protected", protected),
                ("Transparent", transparent),
            ]
        )
    )

    rendered = session.render()
    if rendered is None:
        return False
    t_rendered = time.perf_counter()
    out_path = save_image_rgba(out_path, rendered)
    t_saved = time.perf_counter()

    families = session.describe_families()
    regions = session.describe_regions()
    log(f"Wrote {out_path.name} | families={len(families)} | regions={len(regions)}")
    log(f"Extended seed: {session.extended_seed()}")
    if debug:
        for fam in families:
            debug_log(
                f"  family {fam.id}: {fam.colour_hex}  regions={len(fam.region_ids)}"
            )
    log("Colours used:")
    for hex_code, count in colour_usage_report(rendered, top_k=16):
        log(f"  {hex_code}: {count:,}")

    visible = int(np.count_nonzero(rendered[..., 3] > 0))
    log(f"Total pixels: {visible:,}")
    if debug:
        debug_log(
            f"Total {format_total_duration_compact(t_saved - t_start)}  "
            f"(load+cluster={format_seconds_compact(t_loaded - t_start)}, "
            f"render={format_seconds_compact(t_rendered - t_loaded)}, "
            f"save={format_seconds_compact(t_saved - t_rendered)})"
        )
    else:
        log(f"Total time {format_total_duration_compact(t_saved - t_start)}")
    return True


# Entry point


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Handles a single sprite or a folder of sprites. All sprites share the
    reference table, seed and configuration.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    src: Path = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2
    missing = [p for pair in args.ref for p in pair if not p.exists()]
    if missing:
        error(f"not found: {', '.join(str(p) for p in missing)}")
        return 2

    session = ShinySession(
        config_from_args(args), args.seed, workers=args.workers, debug=args.debug
    )
    if args.extended_seed:
        session.apply_extended_seed(args.extended_seed)
    print_config_line("run", [("Seed", session.seed), ("Workers", args.workers)], debug=False)
    print_config_line("shiny", session.config.summary_pairs(), debug=args.debug)

    ref_paths: List[Tuple[Path, Path]] = [(Path(n), Path(s)) for n, s in args.ref]
    entries = session.set_reference_pairs(load_reference_pairs(ref_paths))
    if entries == 0:
        warn("empty reference table; family colours are left unchanged")
    elif args.debug:
        debug_log(f"reference entries: {entries:,}")

    sprites = _collect_sprites(src)
    if args.output is not None and len(sprites) > 1:
        warn("OUTPUT is ignored for folder input")
    failed = 0
    for path in sprites:
        out = args.output if len(sprites) == 1 else None
        if not _process_single_sprite(session, path, out, args.debug):
            failed += 1
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
