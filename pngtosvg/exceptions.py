"""
Exception types raised by pngtosvg.
"""


class PngToSvgError(Exception):
    """Base class for all pngtosvg errors."""


class ConversionError(PngToSvgError):
    """A PNG could not be turned into SVG."""


class ImageLoadError(ConversionError):
    """The source image could not be read or decoded."""


class TraceError(ConversionError):
    """The tracer failed on a preprocessed bitmap."""


class InputNotFoundError(PngToSvgError):
    """An input file or directory does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Input not found: {path}")


class UnknownPresetError(PngToSvgError):
    """A preset name is not one of the known bundles."""

    def __init__(self, name, known=()):
        self.name = name
        self.known = tuple(known)
        message = f"Unknown preset: {name!r}"
        if self.known:
            message += f" (expected one of: {', '.join(self.known)})"
        super().__init__(message)


class TempFileCleanupError(PngToSvgError):
    """A temporary file handed to the tracer could not be removed."""

    def __init__(self, path, cause):
        self.path = path
        super().__init__(f"Could not remove temporary file {path}: {cause}")
