"""
File type detection for stitching inputs.

Directory inputs are picked by extension, with the file signature (magic
bytes) as a fallback so extension-less images are still picked up and stray
non-image files are left out.
"""

import logging
from enum import Enum
from pathlib import Path
from PIL import Image

logger = logging.getLogger(__name__)


class ImageType(str, Enum):
    """Raster formats recognised by their file signature."""

    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    BMP = "bmp"
    TIFF = "tiff"
    WEBP = "webp"
    UNKNOWN = "unknown"


# Magic byte signatures for file type detection
MAGIC_BYTES = {
    b"\xff\xd8\xff": ImageType.JPEG,
    b"\x89PNG\r\n\x1a\n": ImageType.PNG,
    b"GIF87a": ImageType.GIF,
    b"GIF89a": ImageType.GIF,
    b"BM": ImageType.BMP,
    b"II*\x00": ImageType.TIFF,  # little-endian
    b"MM\x00*": ImageType.TIFF,  # big-endian
    b"RIFF": ImageType.WEBP,  # needs further validation
}

HEADER_SIZE = 32


def detect_image_type_from_bytes(header: bytes) -> ImageType:
    """
    Detect image type from magic bytes (file signature).

    Args:
        header: First few bytes of the file.

    Returns:
        Detected image type.
    """
    for signature, image_type in MAGIC_BYTES.items():
        if header.startswith(signature):
            # RIFF is also used by WAV, AVI, ...
            if signature == b"RIFF":
                if len(header) >= 12 and header[8:12] == b"WEBP":
                    return ImageType.WEBP
                continue
            return image_type

    return ImageType.UNKNOWN


def detect_image_type(path: Path) -> ImageType:
    """
    Detect the image type of a file on disk.

    Args:
        path: File to inspect.

    Returns:
        Detected image type, UNKNOWN if the file can't be read.
    """
    try:
        with open(path, "rb") as f:
            header = f.read(HEADER_SIZE)
    except OSError as e:
        logger.debug(f"Could not read header of {path}: {e}")
        return ImageType.UNKNOWN

    return detect_image_type_from_bytes(header)


def has_image_extension(path: Path) -> bool:
    """Check whether a path has an extension Pillow can open."""
    return Path(path).suffix.lower() in Image.registered_extensions()


def is_image_file(path: Path) -> bool:
    """
    Check whether a path is a stitching input.

    Regular, non-hidden files qualify when they carry an image extension or,
    failing that, an image signature. Files with an image extension are kept
    even if their contents are damaged so that decoding reports them.
    """
    path = Path(path)
    if not path.is_file() or path.name.startswith("."):
        return False

    if has_image_extension(path):
        return True

    return detect_image_type(path) != ImageType.UNKNOWN
