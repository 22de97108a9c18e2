"""quickstitch: stitch strip images into taller images, cut at uniform rows."""

__version__ = "1.0.0"
