# shiny_palette/seed_codec.py
from __future__ import annotations

"""
Extended seed: one shareable string holding the PRNG seed and the numeric
configuration.

Format (fields separated by '~', each tagged by one letter):
  <seed>~k<families>~i<ink>~w<spatial>~c<consensus>~m<match spatial>
        ~t<tolerance>~x<contrast>~r<smooth radius>~b<smooth blend>~u<0|1>

Floats are written with repr() so parse(serialize(...)) is exact. Missing
tags keep the base configuration's value. Text that is not an extended seed
(no '~') is read as a plain seed; a malformed extended seed falls back to a
hash of the whole string with the base configuration. Parsing never raises.
"""

import math
from dataclasses import replace
from typing import Callable, Dict, Tuple

from .config import ShinyConfig
from .rng import hash_seed_text, resolve_seed

SEPARATOR = "~"


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"non-finite value {text!r}")
    return value


# tag -> (field name, parser, formatter)
_FIELDS: Dict[str, Tuple[str, Callable[[str], object], Callable[[object], str]]] = {
    "k": ("families", int, str),
    "i": ("ink_threshold", int, str),
    "w": ("spatial_weight", _finite_float, repr),
    "c": ("consensus", int, str),
    "m": ("match_spatial_weight", _finite_float, repr),
    "t": ("tolerance", _finite_float, repr),
    "x": ("contrast", _finite_float, repr),
    "r": ("smooth_radius", int, str),
    "b": ("smooth_blend", int, str),
    "u": ("unlock_protected", lambda s: {"0": False, "1": True}[s], lambda v: "1" if v else "0"),
}


def serialize_extended_seed(seed: int, config: ShinyConfig) -> str:
    """Encode seed + clamped configuration."""
    cfg = config.clamped()
    parts = [str(resolve_seed(int(seed)))]
    for tag, (name, _parse, fmt) in _FIELDS.items():
        parts.append(f"{tag}{fmt(getattr(cfg, name))}")
    return SEPARATOR.join(parts)


def is_extended_seed(text: str) -> bool:
    return SEPARATOR in text


def parse_extended_seed(
    text: str, base: ShinyConfig = ShinyConfig()
) -> Tuple[int, ShinyConfig]:
    """Decode an extended (or plain) seed. Never raises."""
    raw = str(text).strip()
    if not is_extended_seed(raw):
        return resolve_seed(raw if raw else None), base

    head, *tokens = raw.split(SEPARATOR)
    try:
        seed = int(head)
        changes: Dict[str, object] = {}
        for token in tokens:
            tag, value = token[:1], token[1:]
            name, parse, _fmt = _FIELDS[tag]
            changes[name] = parse(value)
    except (KeyError, ValueError):
        return hash_seed_text(raw), base
    return resolve_seed(seed), replace(base, **changes).clamped()


__all__ = [
    "SEPARATOR",
    "serialize_extended_seed",
    "is_extended_seed",
    "parse_extended_seed",
]
