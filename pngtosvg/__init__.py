"""
pngtosvg - PNG to SVG conversion with potrace.

Converts PNG images into SVG vector paths by greyscaling, contrasting,
normalizing and thresholding the bitmap, then tracing it with potrace.
Available as a Python API, a command-line tool and a REST service.
"""

from .bulk import (
    BulkConversionOptions,
    BulkConverter,
    ConversionStats,
    FileResult,
    FileStatus,
)
from .converter import PngToSvgConverter
from .exceptions import (
    ConversionError,
    ImageLoadError,
    InputNotFoundError,
    PngToSvgError,
    TempFileCleanupError,
    TraceError,
    UnknownPresetError,
)
from .options import (
    DEFAULT_OPTIONS,
    PRESETS,
    ConversionOptions,
    Preset,
    TurnPolicy,
    get_preset_options,
    list_presets,
)

__version__ = "1.0.0"

__all__ = [
    # Conversion
    'PngToSvgConverter',
    'ConversionOptions',
    'TurnPolicy',
    'DEFAULT_OPTIONS',
    # Presets
    'Preset',
    'PRESETS',
    'get_preset_options',
    'list_presets',
    # Bulk
    'BulkConverter',
    'BulkConversionOptions',
    'ConversionStats',
    'FileResult',
    'FileStatus',
    # Errors
    'PngToSvgError',
    'ConversionError',
    'ImageLoadError',
    'TraceError',
    'InputNotFoundError',
    'UnknownPresetError',
    'TempFileCleanupError',
]
