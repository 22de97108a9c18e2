"""Shared fixtures for quickstitch tests."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from quickstitch.stitching import Canvas, SourceImage


def striped(height: int, width: int = 16) -> np.ndarray:
    """Image whose every row alternates black and white columns (uniformity 0)."""
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[:, ::2] = 255
    return pixels


@pytest.fixture
def make_strip():
    """Factory for striped images with solid white gutter rows."""

    def _make(height: int, width: int = 16, gutters=()) -> np.ndarray:
        pixels = striped(height, width)
        for row in gutters:
            pixels[row] = 255
        return pixels

    return _make


@pytest.fixture
def make_canvas():
    """Factory building a canvas straight from pixel arrays."""

    def _make(*arrays: np.ndarray) -> Canvas:
        images = [
            SourceImage(path=Path(f"{i}.png"), pixels=pixels)
            for i, pixels in enumerate(arrays)
        ]
        return Canvas(images)

    return _make


@pytest.fixture
def write_image(tmp_path):
    """Factory writing pixel arrays to lossless image files under tmp_path."""

    def _write(name: str, pixels: np.ndarray, directory: Path = None) -> Path:
        directory = directory or tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        Image.fromarray(pixels).save(path, format="PNG")
        return path

    return _write


@pytest.fixture
def output_dir(tmp_path) -> Path:
    path = tmp_path / "out"
    path.mkdir()
    return path
