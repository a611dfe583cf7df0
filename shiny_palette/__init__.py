# shiny_palette/__init__.py
"""
shiny_palette package.

Purpose:
  Generate "shiny" colour variants of RGBA sprites from paired reference
  textures. See shiny_recolour.py for the CLI.

Public API:
  ShinySession   : pipeline context (load, recluster, edit, render).
  ShinyConfig    : clamped configuration dataclass.
  ReferencePair  : one decoded (normal, shiny) texture pair.
  colour_convert : sRGB <-> CIELAB transforms and Lab metrics.
  core_types     : shared aliases and value objects (Region, RegionInfo, ...).
  seed_codec     : extended seed serialise / parse.
  utils          : logging and formatting helpers.

Quick start:
  from shiny_palette import ShinySession, ReferencePair
  session = ShinySession(seed="pikachu")
  session.set_reference_pairs([ReferencePair("body", normal_rgba, shiny_rgba)])
  session.load_sprite(sprite_rgba)
  out = session.render()
"""

__version__ = "0.1.0"

# Re-export namespaces for convenience.
from . import colour_convert
from . import core_types
from . import seed_codec
from . import utils

from .config import ShinyConfig
from .reference_map import ReferencePair, ReferenceTable, build_reference_table
from .rng import SeededRandom
from .session import ShinySession

__all__ = [
    "__version__",
    "colour_convert",
    "core_types",
    "seed_codec",
    "utils",
    "ShinyConfig",
    "ReferencePair",
    "ReferenceTable",
    "build_reference_table",
    "SeededRandom",
    "ShinySession",
]
