"""Utility modules for quickstitch."""

from quickstitch.utils.file_validation import (
    ImageType,
    detect_image_type,
    detect_image_type_from_bytes,
    has_image_extension,
    is_image_file,
)

__all__ = [
    "ImageType",
    "detect_image_type",
    "detect_image_type_from_bytes",
    "has_image_extension",
    "is_image_file",
]
