"""Pure-Python tools for HDR image data: TIFF/DNG writing, cubemaps, tone mapping and trackball rotation."""

__version__ = "0.1.0"
__all__ = ["cubemap", "dng_writer", "tiff_format", "tonemap", "trackball"]