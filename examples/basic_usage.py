#!/usr/bin/env python3
"""
Example: converting PNGs with pngtosvg.

Run ``python create_test_image.py`` from the repository root first to
produce ``examples/test-input.png``.
"""

import sys
from pathlib import Path

# Add parent to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from pngtosvg import PngToSvgConverter, get_preset_options


def main():
    here = Path(__file__).parent
    input_path = here / "test-input.png"

    if not input_path.exists():
        print(f"Error: Image not found at {input_path}")
        return 1

    converter = PngToSvgConverter()

    print("🔄 Basic conversion...")
    converter.convert_file(input_path, here / "test-output-basic.svg")

    print("🔄 Logo preset...")
    converter.convert_file(input_path, here / "test-output-logo.svg", get_preset_options("logo"))

    print("🔄 Posterized, 3 steps...")
    converter.convert_to_posterized(input_path, here / "test-output-posterized.svg", steps=3)

    print("🔄 In-memory buffer...")
    svg = converter.convert_buffer(input_path.read_bytes())
    print(f"  {len(svg)} characters of SVG")

    print("✅ All conversions done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
