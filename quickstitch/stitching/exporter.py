"""
Segment assembly and export.

Crops each segment out of the canvas, optionally draws debug markers on it,
and writes it to disk. Segments are independent, so they are exported on a
thread pool; a failing segment is reported and never stops the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Sequence, Union
import cv2
import numpy as np
from PIL import Image

from .base import (
    ExportError,
    OutputFormat,
    Segment,
    Splitpoint,
    SplitpointKind,
    segments_from_splitpoints,
)
from .canvas import Canvas
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Debug marker colours (RGB)
DEBUG_COLORS = {
    SplitpointKind.CHOSEN: (255, 0, 0),
    SplitpointKind.SKIPPED: (0, 0, 255),
    SplitpointKind.FALLBACK: (255, 0, 255),
}
DEBUG_LINE_THICKNESS = 3


def segment_filename(index: int, total: int, extension: str) -> str:
    """
    Build the zero-padded file name of a segment.

    Args:
        index: 1-based segment index.
        total: Number of segments in the export.
        extension: File extension without the dot.

    Returns:
        File name such as "07.jpg".
    """
    width = max(2, len(str(total)))
    return f"{index:0{width}d}.{extension}"


def validate_splitpoints(height: int, splitpoints: Sequence[Splitpoint]) -> None:
    """
    Check that splitpoints are ordered and inside the canvas.

    Raises:
        ConfigurationError: If offsets aren't strictly increasing in (0, height).
    """
    previous = 0
    for sp in splitpoints:
        if sp.offset <= previous or sp.offset >= height:
            raise ConfigurationError(
                f"Invalid splitpoint at row {sp.offset} "
                f"(previous {previous}, canvas height {height})"
            )
        previous = sp.offset


def draw_debug_markers(
    image: np.ndarray,
    segment: Segment,
    splitpoints: Sequence[Splitpoint],
) -> np.ndarray:
    """
    Draw marker lines for the splitpoints that fall inside a segment.

    The boundary the segment starts at is drawn on its first row; skipped
    candidates are drawn at their own row.

    Args:
        image: Segment pixels, modified in place.
        segment: The segment the image was cropped from.
        splitpoints: All splitpoints of the canvas.

    Returns:
        The annotated image.
    """
    width = image.shape[1]

    for sp in splitpoints:
        if sp.offset < segment.start or sp.offset >= segment.end:
            continue
        y = sp.offset - segment.start
        cv2.line(
            image,
            (0, y),
            (width - 1, y),
            DEBUG_COLORS[sp.kind],
            DEBUG_LINE_THICKNESS,
        )

    return image


class SegmentExporter:
    """Writes the segments of a canvas to image files."""

    def __init__(
        self,
        output_format: Optional[OutputFormat] = None,
        debug: bool = False,
        workers: Optional[int] = None,
    ):
        """
        Initialize the exporter.

        Args:
            output_format: Encoding of the written files.
            debug: Draw splitpoint markers on the exported segments.
            workers: Maximum export threads (None = executor default).
        """
        self.output_format = output_format or OutputFormat()
        self.debug = debug
        self.workers = workers

    def export(
        self,
        canvas: Canvas,
        splitpoints: Sequence[Splitpoint],
        output_dir: Union[str, Path],
    ) -> list[ExportError]:
        """
        Export every segment of the canvas.

        Args:
            canvas: Canvas to cut.
            splitpoints: Splitpoints from the selector.
            output_dir: Existing directory to write into.

        Returns:
            Errors of the segments that failed, ordered by index. Empty on
            full success.

        Raises:
            ConfigurationError: If the splitpoints are malformed. Raised
                before anything is written.
        """
        output_dir = Path(output_dir)
        validate_splitpoints(canvas.height, splitpoints)
        segments = segments_from_splitpoints(canvas.height, splitpoints)

        logger.debug(
            f"Exporting {len(segments)} segments to {output_dir} "
            f"as {self.output_format.extension}"
        )

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [
                executor.submit(
                    self._export_segment,
                    canvas,
                    segment,
                    splitpoints,
                    output_dir / segment_filename(
                        segment.index, len(segments), self.output_format.extension
                    ),
                )
                for segment in segments
            ]
            results = [future.result() for future in futures]

        errors = [error for error in results if error is not None]

        logger.info(
            f"Exported {len(segments) - len(errors)}/{len(segments)} segments "
            f"to {output_dir}"
        )
        return errors

    def render(
        self,
        canvas: Canvas,
        segment: Segment,
        splitpoints: Sequence[Splitpoint] = (),
    ) -> np.ndarray:
        """Crop a segment from the canvas, with debug markers if enabled."""
        image = canvas.crop(segment.start, segment.end)
        if self.debug:
            draw_debug_markers(image, segment, splitpoints)
        return image

    def _export_segment(
        self,
        canvas: Canvas,
        segment: Segment,
        splitpoints: Sequence[Splitpoint],
        path: Path,
    ) -> Optional[ExportError]:
        """Render and write one segment, returning its error if it fails."""
        try:
            self.output_format.check_dimensions(canvas.width, segment.height)
            image = self.render(canvas, segment, splitpoints)
            self._save(image, path)
        except Exception as e:
            logger.debug(f"Failed to export segment {segment.index} to {path}: {e}")
            if path.is_file():
                path.unlink()
            return ExportError(index=segment.index, path=path, cause=e)

        return None

    def _save(self, image: np.ndarray, path: Path) -> None:
        """Encode an image and write it to disk."""
        Image.fromarray(image).save(
            path,
            format=self.output_format.pil_format,
            **self.output_format.save_options(),
        )


def export(
    canvas: Canvas,
    splitpoints: Sequence[Splitpoint],
    output_dir: Union[str, Path],
    output_format: Optional[OutputFormat] = None,
    debug: bool = False,
) -> list[ExportError]:
    """Export every segment of the canvas. See SegmentExporter.export()."""
    return SegmentExporter(output_format, debug).export(canvas, splitpoints, output_dir)
