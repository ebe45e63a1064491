"""Preview module for frame output.

Components:
    export: Raw packed pixel (BGRA/RGBA) and PNG export

Example:
    >>> import sys
    >>> from metaballs.preview import write_raw, save_png
    >>> write_raw(sys.stdout.buffer, renderer.get_image_numpy())
    >>> save_png(renderer.get_image_numpy(), "frame.png")
"""

from metaballs.preview.export import (
    PixelFormat,
    image_to_rgba8,
    pack_pixels,
    save_png,
    write_raw,
)

__all__ = [
    "PixelFormat",
    "image_to_rgba8",
    "pack_pixels",
    "write_raw",
    "save_png",
]
