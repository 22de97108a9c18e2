"""
Image stitching module.

Loads strip images into one logical canvas, picks cut rows at visually
uniform lines so panels are never severed, and exports the segments.
"""

from .base import (
    SourceImage,
    Splitpoint,
    SplitpointKind,
    Segment,
    ExportError,
    ImageFormat,
    OutputFormat,
    segments_from_splitpoints,
)
from .errors import (
    StitchError,
    ConfigurationError,
    LoadError,
    EmptyInputError,
    DecodeFailureError,
    WidthMismatchError,
)
from .canvas import Canvas
from .loader import ImageLoader, Sort, sort_paths, load, load_dir
from .scorer import LineScorer
from .selector import SplitpointSelector, SelectionState, select
from .exporter import SegmentExporter, export
from .stitcher import Stitcher, LoadedImages, StitchedImages, create_stitcher

__all__ = [
    "SourceImage",
    "Splitpoint",
    "SplitpointKind",
    "Segment",
    "ExportError",
    "ImageFormat",
    "OutputFormat",
    "segments_from_splitpoints",
    "StitchError",
    "ConfigurationError",
    "LoadError",
    "EmptyInputError",
    "DecodeFailureError",
    "WidthMismatchError",
    "Canvas",
    "ImageLoader",
    "Sort",
    "sort_paths",
    "load",
    "load_dir",
    "LineScorer",
    "SplitpointSelector",
    "SelectionState",
    "select",
    "SegmentExporter",
    "export",
    "Stitcher",
    "LoadedImages",
    "StitchedImages",
    "create_stitcher",
]
