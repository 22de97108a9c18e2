"""
Exceptions raised by the stitching engine.
"""

from pathlib import Path
from typing import Optional


class StitchError(Exception):
    """Base class for all stitching errors."""

    pass


class ConfigurationError(StitchError, ValueError):
    """Raised when stitching parameters are invalid, before any work is done."""

    pass


class LoadError(StitchError):
    """Raised when the input images cannot be loaded into a canvas."""

    pass


class EmptyInputError(LoadError):
    """Raised when there are no images to load."""

    def __init__(self, message: str = "No images to load"):
        super().__init__(message)


class DecodeFailureError(LoadError):
    """Raised when a single image file cannot be read or decoded."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        message = f"Failed to load image {self.path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class WidthMismatchError(LoadError):
    """Raised when images differ in width and no target width was given."""

    def __init__(self, expected: int, found: int, path: Path):
        self.expected = expected
        self.found = found
        self.path = Path(path)
        super().__init__(
            f"Image {self.path} is {found}px wide, expected {expected}px "
            f"(set a target width to rescale)"
        )
