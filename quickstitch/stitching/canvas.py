"""
Logical vertical concatenation of source images.
"""

import bisect
from pathlib import Path
from typing import Sequence
import numpy as np

from .base import SourceImage
from .errors import EmptyInputError, WidthMismatchError


class Canvas:
    """
    Read-only raster formed by stacking source images top to bottom.

    Pixels are never copied into one large buffer; rows are looked up
    through a table of cumulative image heights.
    """

    def __init__(
        self,
        images: Sequence[SourceImage],
        skipped: Sequence[Path] = (),
    ):
        """
        Initialize the canvas.

        Args:
            images: Source images in reading order, all the same width.
            skipped: Paths that were skipped while loading.

        Raises:
            EmptyInputError: If no images are given.
            WidthMismatchError: If the images differ in width.
        """
        if not images:
            raise EmptyInputError()

        width = images[0].width
        for image in images[1:]:
            if image.width != width:
                raise WidthMismatchError(width, image.width, image.path)

        self._images = tuple(images)
        self._skipped = tuple(Path(p) for p in skipped)
        self._width = width

        # offsets[i] is the first canvas row of image i, offsets[-1] the height
        self._offsets = [0]
        for image in self._images:
            self._offsets.append(self._offsets[-1] + image.height)

    @property
    def images(self) -> tuple[SourceImage, ...]:
        return self._images

    @property
    def skipped(self) -> tuple[Path, ...]:
        """Paths that could not be loaded and were left out."""
        return self._skipped

    @property
    def offsets(self) -> tuple[int, ...]:
        """Cumulative row offsets, one per image plus the total height."""
        return tuple(self._offsets)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._offsets[-1]

    def __len__(self) -> int:
        return len(self._images)

    def locate(self, row: int) -> tuple[int, int]:
        """
        Map a canvas row to its source image.

        Args:
            row: Canvas row offset.

        Returns:
            Tuple of (image index, row within that image).

        Raises:
            IndexError: If the row lies outside the canvas.
        """
        if not 0 <= row < self.height:
            raise IndexError(f"Row {row} outside canvas of height {self.height}")

        index = bisect.bisect_right(self._offsets, row) - 1
        return index, row - self._offsets[index]

    def row(self, row: int) -> np.ndarray:
        """Return the pixels of one canvas row, shape (width, 3)."""
        index, local = self.locate(row)
        return self._images[index].pixels[local]

    def take_rows(self, rows: Sequence[int]) -> np.ndarray:
        """
        Gather several canvas rows into one array.

        Args:
            rows: Canvas row offsets.

        Returns:
            Array of shape (len(rows), width, 3).
        """
        rows = np.asarray(rows, dtype=np.int64)
        dtype = self._images[0].pixels.dtype
        if rows.size == 0:
            return np.empty((0, self._width, 3), dtype=dtype)

        if rows.min() < 0 or rows.max() >= self.height:
            raise IndexError(f"Rows outside canvas of height {self.height}")

        # One gather per source image instead of one lookup per row
        indices = np.searchsorted(self._offsets, rows, side="right") - 1
        result = np.empty((rows.size, self._width, 3), dtype=dtype)
        for index in np.unique(indices):
            mask = indices == index
            local = rows[mask] - self._offsets[index]
            result[mask] = self._images[index].pixels[local]

        return result

    def crop(self, start: int, end: int) -> np.ndarray:
        """
        Copy the rows [start, end) into a new writable array.

        Rows spanning several source images are stitched together.

        Args:
            start: First row.
            end: Row after the last row.

        Returns:
            Array of shape (end - start, width, 3).
        """
        if not 0 <= start < end <= self.height:
            raise IndexError(
                f"Invalid row range [{start}, {end}) for canvas of height {self.height}"
            )

        first, _ = self.locate(start)
        last, _ = self.locate(end - 1)

        parts = []
        for index in range(first, last + 1):
            image_start = self._offsets[index]
            local_start = max(start - image_start, 0)
            local_end = min(end - image_start, self._images[index].height)
            parts.append(self._images[index].pixels[local_start:local_end])

        if len(parts) == 1:
            return parts[0].copy()

        return np.concatenate(parts, axis=0)
