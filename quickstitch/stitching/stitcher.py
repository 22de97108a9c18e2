"""
High level stitching interface.

Chains loading, splitpoint selection and export:

    stitcher = Stitcher()
    stitched = stitcher.load_dir("raws").stitch(max_height=5000, min_height=1000)
    errors = stitched.export("stitched", OutputFormat(ImageFormat.JPG, 90))
"""

from pathlib import Path
from typing import Optional, Sequence, Union

from .base import ExportError, OutputFormat, Segment, Splitpoint, segments_from_splitpoints
from .canvas import Canvas
from .exporter import SegmentExporter
from .loader import ImageLoader, Sort
from .selector import SplitpointSelector

PathLike = Union[str, Path]


class StitchedImages:
    """A canvas together with its selected splitpoints."""

    def __init__(self, canvas: Canvas, splitpoints: Sequence[Splitpoint], workers: Optional[int] = None):
        self.canvas = canvas
        self._splitpoints = tuple(splitpoints)
        self._workers = workers

    @property
    def splitpoints(self) -> tuple[Splitpoint, ...]:
        """All splitpoints, skipped candidates included."""
        return self._splitpoints

    @property
    def segments(self) -> list[Segment]:
        return segments_from_splitpoints(self.canvas.height, self._splitpoints)

    def export(
        self,
        output_dir: PathLike,
        output_format: Optional[OutputFormat] = None,
        debug: bool = False,
    ) -> list[ExportError]:
        """
        Write the segments to an existing directory.

        Returns:
            Errors of the segments that failed to export.
        """
        exporter = SegmentExporter(output_format, debug=debug, workers=self._workers)
        return exporter.export(self.canvas, self._splitpoints, output_dir)


class LoadedImages:
    """Images loaded into a canvas, ready to be stitched."""

    def __init__(self, canvas: Canvas, workers: Optional[int] = None):
        self.canvas = canvas
        self._workers = workers

    def stitch(
        self,
        max_height: int,
        min_height: int = 1,
        scan_interval: int = 5,
        sensitivity: int = 220,
    ) -> StitchedImages:
        """
        Select the splitpoints of the canvas.

        Args:
            max_height: Maximum segment height.
            min_height: Minimum height of every segment but the last.
            scan_interval: Only rows at multiples of this are scored.
            sensitivity: Minimum uniformity (0-255) for a row to be cut at.

        Returns:
            StitchedImages ready for export.
        """
        selector = SplitpointSelector(max_height, min_height, scan_interval, sensitivity)
        return StitchedImages(self.canvas, selector.select(self.canvas), self._workers)


class Stitcher:
    """Entry point for loading images to stitch."""

    def __init__(self, workers: Optional[int] = None):
        """
        Initialize the stitcher.

        Args:
            workers: Maximum threads for decoding and exporting.
        """
        self.workers = workers
        self._loader = ImageLoader(workers)

    def load(
        self,
        paths: Sequence[PathLike],
        target_width: Optional[int] = None,
        ignore_unloadable: bool = False,
    ) -> LoadedImages:
        """Load images in the given order."""
        canvas = self._loader.load(paths, target_width, ignore_unloadable)
        return LoadedImages(canvas, self.workers)

    def load_dir(
        self,
        directory: PathLike,
        target_width: Optional[int] = None,
        ignore_unloadable: bool = False,
        sort: Sort = Sort.NATURAL,
    ) -> LoadedImages:
        """Load every image of a directory, ordered by the sort policy."""
        canvas = self._loader.load_dir(directory, target_width, ignore_unloadable, sort)
        return LoadedImages(canvas, self.workers)


def create_stitcher(workers: Optional[int] = None) -> Stitcher:
    """
    Factory function to create a Stitcher.

    Args:
        workers: Maximum threads for decoding and exporting.

    Returns:
        Configured Stitcher.
    """
    return Stitcher(workers=workers)
