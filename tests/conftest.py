from __future__ import annotations

from typing import Sequence

import numpy as np
import pytest

from shiny_palette.reference_map import ReferencePair


def make_rgba(rows: Sequence[Sequence[Sequence[int]]]) -> np.ndarray:
    """Build a uint8 (H,W,4) buffer from nested RGB or RGBA tuples (alpha defaults to 255)."""
    out = []
    for row in rows:
        out.append([tuple(px) + ((255,) if len(px) == 3 else ()) for px in row])
    return np.array(out, dtype=np.uint8)


def solid(width: int, height: int, rgb: Sequence[int], alpha: int = 255) -> np.ndarray:
    img = np.zeros((height, width, 4), dtype=np.uint8)
    img[..., :3] = rgb
    img[..., 3] = alpha
    return img


@pytest.fixture
def white_black_sprite() -> np.ndarray:
    """2x2: white top row, black bottom row."""
    return make_rgba([[(255, 255, 255), (255, 255, 255)], [(0, 0, 0), (0, 0, 0)]])


@pytest.fixture
def white_to_red_pair() -> ReferencePair:
    """Ten white pixels that become red in the shiny texture."""
    return ReferencePair(key="body", normal=solid(10, 1, (255, 255, 255)), shiny=solid(10, 1, (255, 0, 0)))
