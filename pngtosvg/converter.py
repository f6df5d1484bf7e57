"""
pngtosvg Converter - PNG to SVG conversion facade.

Sequences preprocessing, the temporary bitmap hand-off and the tracer for
file paths and in-memory buffers.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from . import tracing
from .options import ConversionOptions, get_preset_options
from .preprocess import DEFAULT_CONTRAST, load_image, preprocess
from .tempfiles import temporary_png

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PngToSvgConverter:
    """Convert PNG images to SVG through preprocessing and potrace."""

    def __init__(self, temp_dir: Optional[PathLike] = None):
        # Buffer conversions write their temporary bitmap here (system temp dir when None)
        self.temp_dir = temp_dir

    def convert_file(
        self,
        input_path: PathLike,
        output_path: PathLike,
        options: Optional[ConversionOptions] = None,
    ) -> str:
        """
        Convert a PNG file to an SVG file.

        The temporary bitmap is created next to the input and is always removed;
        the output file is only written when tracing succeeds.

        Returns:
            The SVG text that was written
        """
        input_path = Path(input_path)
        output_path = Path(output_path)
        opts = (options or ConversionOptions()).merged_with_defaults()
        logger.info("Converting %s to SVG...", input_path)

        try:
            image = load_image(input_path)
            processed = preprocess(image, DEFAULT_CONTRAST, opts.threshold)
            with temporary_png(input_path.parent, prefix=f"{input_path.stem}.temp_") as temp_path:
                svg = self._trace_image(processed, temp_path, opts)
            output_path.write_text(svg, encoding="utf-8")
        except Exception as e:
            logger.error("Conversion failed: %s (%s)", input_path, e)
            raise

        logger.info("Successfully converted to %s", output_path)
        return svg

    def convert_buffer(self, png_bytes: bytes, options: Optional[ConversionOptions] = None) -> str:
        """
        Convert an in-memory PNG to SVG text.

        Failure to remove the temporary bitmap is logged, not raised.
        """
        opts = (options or ConversionOptions()).merged_with_defaults()
        try:
            image = load_image(png_bytes)
            processed = preprocess(image, DEFAULT_CONTRAST, opts.threshold)
            with temporary_png(self.temp_dir, prefix="temp_", strict=False) as temp_path:
                return self._trace_image(processed, temp_path, opts)
        except Exception as e:
            logger.error("Buffer conversion failed: %s", e)
            raise

    def convert_to_posterized(
        self,
        input_path: PathLike,
        output_path: PathLike,
        steps: int = tracing.DEFAULT_POSTERIZE_STEPS,
        options: Optional[ConversionOptions] = None,
    ) -> str:
        """
        Create a posterized SVG with ``steps`` stacked tone levels.

        Preprocessing skips the contrast step, and the threshold step only runs
        when the caller sets one explicitly.
        """
        input_path = Path(input_path)
        output_path = Path(output_path)
        options = options or ConversionOptions()
        logger.info("Creating posterized SVG with %d steps...", steps)

        try:
            image = load_image(input_path)
            processed = preprocess(image, None, options.threshold)
            with temporary_png(input_path.parent, prefix=f"{input_path.stem}.temp-posterize_") as temp_path:
                svg = self._posterize_image(processed, temp_path, steps, options)
            output_path.write_text(svg, encoding="utf-8")
        except Exception as e:
            logger.error("Posterized conversion failed: %s (%s)", input_path, e)
            raise

        logger.info("Posterized SVG created: %s", output_path)
        return svg

    def convert_buffer_to_posterized(
        self,
        png_bytes: bytes,
        steps: int = tracing.DEFAULT_POSTERIZE_STEPS,
        options: Optional[ConversionOptions] = None,
    ) -> str:
        """In-memory variant of ``convert_to_posterized``."""
        options = options or ConversionOptions()
        try:
            image = load_image(png_bytes)
            processed = preprocess(image, None, options.threshold)
            with temporary_png(self.temp_dir, prefix="temp-posterize_", strict=False) as temp_path:
                return self._posterize_image(processed, temp_path, steps, options)
        except Exception as e:
            logger.error("Posterized buffer conversion failed: %s", e)
            raise

    @staticmethod
    def get_preset_options(name: Optional[str]) -> ConversionOptions:
        """Options for a named preset; empty options for an unknown name."""
        return get_preset_options(name)

    def _trace_image(self, processed: Image.Image, temp_path: Path, opts: ConversionOptions) -> str:
        processed.save(temp_path, format="PNG")
        logger.info("Image dimensions: %dx%d", processed.width, processed.height)
        return tracing.trace(temp_path, opts)

    def _posterize_image(self, processed: Image.Image, temp_path: Path, steps: int,
                         opts: ConversionOptions) -> str:
        processed.save(temp_path, format="PNG")
        logger.info("Image dimensions: %dx%d", processed.width, processed.height)
        return tracing.posterize(temp_path, opts, steps)
