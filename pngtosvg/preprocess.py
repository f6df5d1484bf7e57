"""
Bitmap preprocessing applied before tracing.

Images are kept as PIL images in ``LA`` mode (grey + alpha) once greyscaled,
so the alpha channel survives the round trip through the temporary PNG that is
handed to the tracer.
"""

import io
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .exceptions import ImageLoadError

# Rec. 709 luma weights
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])

DEFAULT_CONTRAST = 0.3

# 16-bit greyscale PNGs open in one of these modes
WIDE_GREY_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")


def load_image(source: Union[str, Path, bytes]) -> Image.Image:
    """Open a path or an in-memory PNG as an RGBA image."""
    try:
        if isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(source)
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ImageLoadError(f"Could not read image: {e}") from e
    if image.mode in WIDE_GREY_MODES:
        # convert() clips 16-bit samples to 255 instead of rescaling them
        wide = np.asarray(image).astype(np.int64)
        image = Image.fromarray(np.clip(wide >> 8, 0, 255).astype(np.uint8))
    return image.convert("RGBA")


def _split(image: Image.Image):
    if image.mode != "LA":
        image = greyscale(image)
    arr = np.asarray(image, dtype=np.float64)
    return arr[:, :, 0], arr[:, :, 1]


def _merge(grey: np.ndarray, alpha: np.ndarray) -> Image.Image:
    grey = np.clip(np.rint(grey), 0, 255).astype(np.uint8)
    alpha = np.clip(np.rint(alpha), 0, 255).astype(np.uint8)
    return Image.fromarray(np.dstack([grey, alpha]))


def greyscale(image: Image.Image) -> Image.Image:
    """Luminance of the RGB channels; alpha is preserved."""
    rgba = np.asarray(image.convert("RGBA"), dtype=np.float64)
    grey = rgba[:, :, :3] @ LUMA_WEIGHTS
    return _merge(grey, rgba[:, :, 3])


def contrast(image: Image.Image, amount: float) -> Image.Image:
    """
    Adjust contrast around mid-grey.

    Args:
        image: Source image
        amount: -1 (flat grey) to +1 (maximum contrast)
    """
    if not -1 <= amount <= 1:
        raise ValueError("contrast amount must be between -1 and +1")
    grey, alpha = _split(image)
    factor = (amount + 1) / (1 - amount) if amount < 1 else np.inf
    with np.errstate(invalid="ignore"):
        grey = ((grey / 255 - 0.5) * factor + 0.5) * 255
    return _merge(np.nan_to_num(grey, nan=127.5, posinf=255, neginf=0), alpha)


def normalize(image: Image.Image) -> Image.Image:
    """Stretch the grey channel so it spans 0..255."""
    grey, alpha = _split(image)
    lo, hi = grey.min(), grey.max()
    if hi == lo:
        return _merge(grey, alpha)
    return _merge((grey - lo) * 255 / (hi - lo), alpha)


def threshold(image: Image.Image, maximum: int, replace: int = 255) -> Image.Image:
    """Keep values below ``maximum``; everything else becomes ``replace``."""
    grey, alpha = _split(image)
    maximum = int(np.clip(maximum, 0, 255))
    return _merge(np.where(grey < maximum, grey, replace), alpha)


def preprocess(
    image: Image.Image,
    contrast_amount: Optional[float] = DEFAULT_CONTRAST,
    threshold_max: Optional[int] = None,
) -> Image.Image:
    """
    Greyscale, contrast, normalize and optionally threshold an image.

    ``contrast_amount=None`` skips the contrast step.
    """
    processed = greyscale(image)
    if contrast_amount is not None:
        processed = contrast(processed, contrast_amount)
    processed = normalize(processed)
    if threshold_max is not None:
        processed = threshold(processed, threshold_max)
    return processed
