"""
Shared fixtures: small PNG images generated on the fly.
"""

import io
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pytest
from PIL import Image, ImageDraw


def to_png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def black_square(size: int = 10) -> Image.Image:
    return Image.new("RGB", (size, size), (0, 0, 0))


def shapes_image() -> Image.Image:
    """White canvas with a black rectangle and a black circle."""
    image = Image.new("RGB", (200, 100), (255, 255, 255))
    draw = ImageDraw.Draw(image)
    draw.rectangle([20, 20, 79, 59], fill=(0, 0, 0))
    draw.ellipse([115, 25, 165, 75], fill=(0, 0, 0))
    return image


def grey_bands() -> Image.Image:
    """Four vertical bands from black to white."""
    arr = np.zeros((40, 80), dtype=np.uint8)
    for i, value in enumerate((0, 80, 160, 255)):
        arr[:, i * 20:(i + 1) * 20] = value
    return Image.fromarray(arr).convert("RGB")


def small_mark() -> Image.Image:
    image = Image.new("RGB", (16, 16), (255, 255, 255))
    ImageDraw.Draw(image).rectangle([4, 4, 11, 11], fill=(0, 0, 0))
    return image


@pytest.fixture
def black_png(tmp_path):
    path = tmp_path / "black.png"
    black_square().save(path)
    return path


@pytest.fixture
def shapes_png(tmp_path):
    path = tmp_path / "shapes.png"
    shapes_image().save(path)
    return path


@pytest.fixture
def bands_png(tmp_path):
    path = tmp_path / "bands.png"
    grey_bands().save(path)
    return path


@pytest.fixture
def mark_bytes():
    return to_png_bytes(small_mark())


@pytest.fixture
def corrupt_bytes():
    return b"\x89PNG\r\n\x1a\nthis is not really a png"


@pytest.fixture
def png_tree(tmp_path, mark_bytes):
    """
    input/
      a.png
      B.PNG
      notes.txt
      nested/c.png
    """
    root = tmp_path / "input"
    (root / "nested").mkdir(parents=True)
    (root / "a.png").write_bytes(mark_bytes)
    (root / "B.PNG").write_bytes(mark_bytes)
    (root / "notes.txt").write_text("not an image")
    (root / "nested" / "c.png").write_bytes(mark_bytes)
    return root
