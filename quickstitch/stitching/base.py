"""
Base data types for image stitching.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence
import numpy as np

from .errors import ConfigurationError


@dataclass(frozen=True, eq=False)
class SourceImage:
    """A single decoded input image."""

    path: Path
    """File the image was loaded from."""

    pixels: np.ndarray
    """RGB pixel data with shape (height, width, 3)."""

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


class SplitpointKind(str, Enum):
    """How a splitpoint was produced."""

    CHOSEN = "chosen"
    """A uniform row picked as the cut."""

    FALLBACK = "fallback"
    """A forced cut at the maximum height, no uniform row was found."""

    SKIPPED = "skipped"
    """A uniform row that was superseded by a later one in the same window."""


@dataclass(frozen=True)
class Splitpoint:
    """A canvas row offset selected (or considered) as a segment boundary."""

    offset: int
    """Row offset in the canvas."""

    kind: SplitpointKind = SplitpointKind.CHOSEN
    """How the splitpoint was produced."""

    @property
    def is_committed(self) -> bool:
        """Whether this splitpoint is an actual segment boundary."""
        return self.kind is not SplitpointKind.SKIPPED


@dataclass(frozen=True)
class Segment:
    """Half-open row range [start, end) exported as one output image."""

    index: int
    """1-based position of the segment in reading order."""

    start: int
    """First canvas row of the segment."""

    end: int
    """Canvas row after the last row of the segment."""

    @property
    def height(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class ExportError:
    """A segment that failed to encode or write."""

    index: int
    """1-based index of the failed segment."""

    path: Path
    """Output path the segment was meant to be written to."""

    cause: BaseException
    """The underlying exception."""

    def __str__(self) -> str:
        return f"Segment {self.index} ({self.path}): {self.cause}"


class ImageFormat(str, Enum):
    """Supported output encodings."""

    PNG = "png"
    WEBP = "webp"
    JPG = "jpg"
    JPEG = "jpeg"


# Largest width or height each encoder can store
MAX_DIMENSIONS: dict[ImageFormat, Optional[int]] = {
    ImageFormat.PNG: None,
    ImageFormat.WEBP: 16383,
    ImageFormat.JPG: 65535,
    ImageFormat.JPEG: 65535,
}


@dataclass(frozen=True)
class OutputFormat:
    """Output encoding and its quality setting."""

    format: ImageFormat = ImageFormat.JPG
    """Encoding to use."""

    quality: int = 100
    """JPEG quality (1-100). Ignored for PNG and WebP."""

    def __post_init__(self):
        object.__setattr__(self, "format", ImageFormat(self.format))
        if self.uses_quality and not 1 <= self.quality <= 100:
            raise ConfigurationError(
                f"Quality must be between 1 and 100, got {self.quality}"
            )

    @property
    def uses_quality(self) -> bool:
        return self.format in (ImageFormat.JPG, ImageFormat.JPEG)

    @property
    def extension(self) -> str:
        return self.format.value

    @property
    def pil_format(self) -> str:
        """Format name understood by Pillow."""
        if self.uses_quality:
            return "JPEG"
        return self.format.name

    @property
    def max_dimension(self) -> Optional[int]:
        return MAX_DIMENSIONS[self.format]

    def save_options(self) -> dict:
        """Keyword arguments passed to ``Image.save``."""
        if self.uses_quality:
            return {"quality": self.quality}
        return {}

    def check_dimensions(self, width: int, height: int) -> None:
        """
        Check that an image of the given size can be encoded.

        Raises:
            ConfigurationError: If either dimension exceeds the encoder limit.
        """
        limit = self.max_dimension
        if limit is None:
            return
        if width > limit or height > limit:
            raise ConfigurationError(
                f"{self.format.name} images are limited to {limit}px, "
                f"got {width}x{height}"
            )


def committed_offsets(splitpoints: Sequence[Splitpoint]) -> list[int]:
    """Offsets of the splitpoints that are real segment boundaries."""
    return [sp.offset for sp in splitpoints if sp.is_committed]


def segments_from_splitpoints(
    height: int,
    splitpoints: Sequence[Splitpoint],
) -> list[Segment]:
    """
    Derive the output segments from a splitpoint list.

    Args:
        height: Total canvas height.
        splitpoints: Ordered splitpoints; skipped ones are ignored.

    Returns:
        Segments covering [0, height) in order.
    """
    boundaries = [0] + committed_offsets(splitpoints) + [height]

    return [
        Segment(index=i, start=start, end=end)
        for i, (start, end) in enumerate(zip(boundaries[:-1], boundaries[1:]), start=1)
    ]
