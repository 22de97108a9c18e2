"""
Loading of source images into a canvas.

Each file is decoded on its own worker thread into a DecodeResult; the
results are then folded in input order according to the unloadable-file
policy (skip and continue, or abort on the first failure).
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union
import cv2
import natsort
import numpy as np
from PIL import Image

from quickstitch.utils.file_validation import is_image_file

from .base import SourceImage
from .canvas import Canvas
from .errors import ConfigurationError, DecodeFailureError, EmptyInputError, LoadError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Sort(str, Enum):
    """Ordering applied to directory listings."""

    NATURAL = "natural"
    """Digit runs compare by numeric value: 8, 9, 10, 11."""

    LOGICAL = "logical"
    """Plain lexicographic order: 10, 11, 8, 9."""


def sort_paths(paths: Sequence[PathLike], sort: Sort = Sort.NATURAL) -> list[Path]:
    """
    Sort paths according to the given sort policy.

    Args:
        paths: Paths to sort.
        sort: Sorting policy.

    Returns:
        New sorted list of paths.
    """
    paths = [Path(p) for p in paths]

    if Sort(sort) == Sort.NATURAL:
        return natsort.natsorted(paths, key=str)

    return sorted(paths, key=str)


@dataclass
class DecodeResult:
    """Outcome of decoding a single file."""

    path: Path
    """File that was decoded."""

    image: Optional[SourceImage] = None
    """Decoded image, None on failure."""

    error: Optional[Exception] = None
    """Failure cause, None on success."""

    @property
    def ok(self) -> bool:
        return self.error is None


def resize_to_width(pixels: np.ndarray, target_width: int) -> np.ndarray:
    """
    Scale an image to a given width, keeping its aspect ratio.

    Args:
        pixels: Image as numpy array.
        target_width: Width to scale to.

    Returns:
        Scaled image (the input itself if it already has that width).
    """
    height, width = pixels.shape[:2]
    if width == target_width:
        return pixels

    factor = target_width / width
    new_height = max(1, int(round(height * factor)))

    # INTER_AREA avoids moire when shrinking screentone
    interpolation = cv2.INTER_CUBIC if factor > 1 else cv2.INTER_AREA

    return cv2.resize(
        pixels,
        (target_width, new_height),
        interpolation=interpolation,
    )


def decode_image(path: PathLike, target_width: Optional[int] = None) -> SourceImage:
    """
    Read an image file into an RGB SourceImage.

    Args:
        path: Image file.
        target_width: Width to rescale to, or None to keep the original size.

    Returns:
        The decoded image, with read-only pixels.
    """
    path = Path(path)

    with Image.open(path) as img:
        pixels = np.array(img.convert("RGB"))

    if target_width is not None:
        pixels = resize_to_width(pixels, target_width)

    pixels.setflags(write=False)
    return SourceImage(path=path, pixels=pixels)


def decode_file(path: PathLike, target_width: Optional[int] = None) -> DecodeResult:
    """Decode a file, capturing any failure in the result instead of raising."""
    path = Path(path)
    try:
        image = decode_image(path, target_width)
    except Exception as e:
        logger.debug(f"Failed to decode {path}: {e}")
        return DecodeResult(path=path, error=e)

    return DecodeResult(path=path, image=image)


class ImageLoader:
    """
    Loads image files into a Canvas.

    Decoding runs in a thread pool (Pillow and OpenCV release the GIL
    while decoding and resizing); ordering is restored before folding.
    """

    def __init__(self, workers: Optional[int] = None):
        """
        Initialize the loader.

        Args:
            workers: Maximum decode threads (None = executor default).
        """
        self.workers = workers

    def load(
        self,
        paths: Sequence[PathLike],
        target_width: Optional[int] = None,
        ignore_unloadable: bool = False,
    ) -> Canvas:
        """
        Load images in the given order.

        Args:
            paths: Image files, in reading order.
            target_width: Rescale every image to this width. If None, all
                images must already share one width.
            ignore_unloadable: Skip files that fail to decode instead of
                aborting.

        Returns:
            Canvas of the loaded images.

        Raises:
            ConfigurationError: If target_width is not positive.
            EmptyInputError: If there is nothing to load.
            DecodeFailureError: If a file fails and ignore_unloadable is False.
            WidthMismatchError: If widths differ and no target width is set.
        """
        if target_width is not None and target_width <= 0:
            raise ConfigurationError(f"Target width must be positive, got {target_width}")

        paths = [Path(p) for p in paths]
        if not paths:
            raise EmptyInputError()

        logger.debug(f"Loading {len(paths)} images (target width: {target_width})")

        images: list[SourceImage] = []
        skipped: list[Path] = []

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [
                executor.submit(decode_file, path, target_width) for path in paths
            ]

            for future in futures:
                result = future.result()

                if result.ok:
                    images.append(result.image)
                elif ignore_unloadable:
                    logger.debug(f"Skipping unloadable image {result.path}")
                    skipped.append(result.path)
                else:
                    for pending in futures:
                        pending.cancel()
                    raise DecodeFailureError(result.path, result.error) from result.error

        if not images:
            raise EmptyInputError(f"None of the {len(paths)} images could be loaded")

        canvas = Canvas(images, skipped=skipped)
        logger.info(
            f"Loaded {len(canvas)} images into a {canvas.width}x{canvas.height} canvas"
            + (f", skipped {len(skipped)}" if skipped else "")
        )
        return canvas

    def load_dir(
        self,
        directory: PathLike,
        target_width: Optional[int] = None,
        ignore_unloadable: bool = False,
        sort: Sort = Sort.NATURAL,
    ) -> Canvas:
        """
        Load every image in a directory.

        Args:
            directory: Directory to read images from (not recursive).
            target_width: See load().
            ignore_unloadable: See load().
            sort: Ordering of the directory listing.

        Returns:
            Canvas of the loaded images.
        """
        return self.load(
            self.list_dir(directory, sort),
            target_width=target_width,
            ignore_unloadable=ignore_unloadable,
        )

    @staticmethod
    def list_dir(directory: PathLike, sort: Sort = Sort.NATURAL) -> list[Path]:
        """
        List the image files of a directory in sorted order.

        Raises:
            LoadError: If the directory doesn't exist.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise LoadError(f"Not a directory: {directory}")

        paths = [p for p in directory.iterdir() if is_image_file(p)]
        return sort_paths(paths, sort)


def load(
    paths: Sequence[PathLike],
    target_width: Optional[int] = None,
    ignore_unloadable: bool = False,
) -> Canvas:
    """Load images in the given order. See ImageLoader.load()."""
    return ImageLoader().load(paths, target_width, ignore_unloadable)


def load_dir(
    directory: PathLike,
    target_width: Optional[int] = None,
    ignore_unloadable: bool = False,
    sort: Sort = Sort.NATURAL,
) -> Canvas:
    """Load every image in a directory. See ImageLoader.load_dir()."""
    return ImageLoader().load_dir(directory, target_width, ignore_unloadable, sort)
