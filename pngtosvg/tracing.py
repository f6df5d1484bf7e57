"""
Tracing adapter around potrace.

The tracer reads the preprocessed bitmap from a PNG on disk, binarizes it
according to the conversion options and returns SVG text. Curve fitting itself
is done entirely by potrace.
"""

import logging
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np
import potrace
import svgwrite
from PIL import Image

from .exceptions import ImageLoadError, TraceError
from .options import TURN_POLICY_CODES, ConversionOptions

logger = logging.getLogger(__name__)

DEFAULT_POSTERIZE_STEPS = 4


def load_luminance(path: Union[str, Path]) -> np.ndarray:
    """Read a PNG as a float luminance array, transparent pixels composited over white."""
    try:
        with Image.open(path) as img:
            rgba = np.asarray(img.convert("RGBA"), dtype=np.float64)
    except OSError as e:
        raise ImageLoadError(f"Could not read bitmap {path}: {e}") from e
    opacity = rgba[:, :, 3:4] / 255.0
    rgb = 255 + (rgba[:, :, :3] - 255) * opacity
    return rgb @ np.array([0.2126, 0.7152, 0.0722])


def ink_levels(luminance: np.ndarray, black_on_white: bool) -> np.ndarray:
    """Map luminance to "ink": higher means more likely to be traced."""
    return 255 - luminance if black_on_white else luminance


def ink_cut(threshold: int, black_on_white: bool) -> float:
    return 255 - threshold if black_on_white else threshold


def fill_color(black_on_white: bool) -> str:
    return "black" if black_on_white else "white"


def trace_mask(mask: np.ndarray, options: ConversionOptions):
    """
    Trace a boolean mask where True marks the shapes to outline.

    Returns:
        potrace path (iterable of curves)
    """
    opts = options.merged_with_defaults()
    # potrace treats dark pixels as foreground
    bitmap = Image.fromarray(np.where(mask, 0, 255).astype(np.uint8))
    try:
        return potrace.Bitmap(bitmap).trace(
            turdsize=int(opts.turd_size),
            turnpolicy=TURN_POLICY_CODES[opts.turn_policy],
            alphamax=float(opts.alpha_max),
            opticurve=bool(opts.opt_curve),
            opttolerance=float(opts.opt_tolerance),
        )
    except Exception as e:
        raise TraceError(f"potrace failed: {e}") from e


def _fmt(value: float) -> str:
    return f"{value:.3f}"


def _point(p) -> str:
    # potracer yields point objects, pypotrace yields (x, y) tuples
    x, y = (p.x, p.y) if hasattr(p, "x") else (p[0], p[1])
    return f"{_fmt(x)} {_fmt(y)}"


def path_data(path) -> str:
    """Convert a potrace path into SVG path data."""
    d = []
    for curve in path:
        d.append(f"M {_point(curve.start_point)}")
        for segment in curve:
            end = _point(segment.end_point)
            if segment.is_corner:
                d.append(f"L {_point(segment.c)} L {end}")
            else:
                d.append(f"C {_point(segment.c1)} {_point(segment.c2)} {end}")
        d.append("Z")
    return " ".join(d)


def render_svg(layers: List[Tuple[str, str, float]], size: Tuple[int, int]) -> str:
    """
    Render traced layers as an SVG document.

    Args:
        layers: (path data, fill color, fill opacity) tuples, bottom layer first
        size: (width, height) of the bitmap
    """
    width, height = size
    dwg = svgwrite.Drawing(size=(width, height), profile="full")
    dwg.viewbox(0, 0, width, height)
    for d, color, opacity in layers:
        if not d:
            continue
        extra = {} if opacity >= 1 else {"fill_opacity": round(opacity, 3)}
        dwg.add(dwg.path(d=d, fill=color, stroke="none", fill_rule="evenodd", **extra))
    return dwg.tostring()


def trace(bitmap_path: Union[str, Path], options: ConversionOptions) -> str:
    """
    Trace the bitmap stored at ``bitmap_path`` into a single-path SVG.

    Args:
        bitmap_path: PNG produced by the preprocessor
        options: Conversion options (unset fields take the defaults)

    Returns:
        SVG document text
    """
    opts = options.merged_with_defaults()
    luminance = load_luminance(bitmap_path)
    height, width = luminance.shape
    ink = ink_levels(luminance, opts.black_on_white)
    mask = ink > ink_cut(opts.threshold, opts.black_on_white)

    logger.debug("Tracing %dx%d bitmap (%d foreground pixels)", width, height, int(mask.sum()))
    d = path_data(trace_mask(mask, opts)) if mask.any() else ""
    return render_svg([(d, fill_color(opts.black_on_white), 1.0)], (width, height))


def posterize_levels(threshold: int, black_on_white: bool, steps: int) -> List[float]:
    """Evenly spaced ink cut-offs, from the configured threshold towards full ink."""
    base = ink_cut(threshold, black_on_white)
    return [base + (255 - base) * i / steps for i in range(steps)]


def posterize(bitmap_path: Union[str, Path], options: ConversionOptions,
              steps: int = DEFAULT_POSTERIZE_STEPS) -> str:
    """
    Trace several threshold levels of the same bitmap and stack them.

    Each layer covers every pixel with at least its level of ink. Layers are
    drawn lightest first; opacities are chosen so the stacked layers reproduce
    the mid tone of each band.
    """
    if steps < 1:
        raise ValueError("steps must be at least 1")
    opts = options.merged_with_defaults()
    luminance = load_luminance(bitmap_path)
    height, width = luminance.shape
    ink = ink_levels(luminance, opts.black_on_white)
    cuts = posterize_levels(opts.threshold, opts.black_on_white, steps)
    bounds = cuts + [255.0]
    color = fill_color(opts.black_on_white)

    layers = []
    covered = 0.0
    for i, cut in enumerate(cuts):
        target = (bounds[i] + bounds[i + 1]) / 2 / 255
        # alpha that lifts the accumulated coverage to this band's tone
        opacity = 1 - (1 - target) / (1 - covered) if covered < 1 else 0.0
        opacity = min(max(opacity, 0.0), 1.0)
        covered = 1 - (1 - covered) * (1 - opacity)

        mask = ink > cut
        if not mask.any():
            continue
        logger.debug("Posterize layer %d/%d: cut %.1f, opacity %.3f", i + 1, steps, cut, opacity)
        layers.append((path_data(trace_mask(mask, opts)), color, opacity))

    return render_svg(layers, (width, height))
