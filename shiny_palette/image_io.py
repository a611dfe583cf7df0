# shiny_palette/image_io.py
from __future__ import annotations

import io
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageCms, ImageOps, UnidentifiedImageError

from .reference_map import ReferencePair
from .utils import warn

"""
Image I/O helpers: sRGB RGBA decode/encode for sprites and reference pairs.
"""

IMAGE_SUFFIXES = {".png", ".gif", ".webp", ".bmp", ".tga"}


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            im2 = ImageCms.profileToProfile(
                im.convert("RGBA"),
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if im2 is None:
                return im.convert("RGBA")
            return im2
        except (ImageCms.PyCMSError, OSError, ValueError):
            return im.convert("RGBA")

    return im.convert("RGBA")


def load_image_rgba(path: Path) -> np.ndarray:
    """Decode any Pillow-readable image to a uint8 (H,W,4) sRGB buffer."""
    with Image.open(path) as im0:
        im = _convert_to_srgb_rgba(im0)
    return np.array(im, dtype=np.uint8)


def save_image_rgba(path: Path, rgba: np.ndarray) -> Path:
    """Write an RGBA buffer as PNG; a non-PNG suffix is replaced."""
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8)).save(path)
    return path


def load_reference_pair(
    normal_path: Path, shiny_path: Path, key: Optional[str] = None
) -> Optional[ReferencePair]:
    """
    Decode a (normal, shiny) texture pair. The key defaults to the normal
    file's stem. Unreadable files are reported and give None.
    """
    try:
        normal = load_image_rgba(normal_path)
        shiny = load_image_rgba(shiny_path)
    except (UnidentifiedImageError, OSError) as exc:
        warn(f"reference pair {normal_path.name} / {shiny_path.name} skipped: {exc}")
        return None
    return ReferencePair(key=key or normal_path.stem, normal=normal, shiny=shiny)


def load_reference_pairs(
    paths: Sequence[Tuple[Path, Path]],
) -> List[ReferencePair]:
    pairs: List[ReferencePair] = []
    for normal_path, shiny_path in paths:
        pair = load_reference_pair(normal_path, shiny_path)
        if pair is not None:
            pairs.append(pair)
    return pairs


def is_image_file(path: Path) -> bool:
    try:
        with Image.open(path) as im:
            im.seek(0)
            im.load()
        return True
    except (UnidentifiedImageError, OSError):
        return False


__all__ = [
    "IMAGE_SUFFIXES",
    "load_image_rgba",
    "save_image_rgba",
    "load_reference_pair",
    "load_reference_pairs",
    "is_image_file",
]
