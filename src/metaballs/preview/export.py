"""Image export utilities for rendered frames.

Frames are float RGBA arrays of shape (H, W, 4) with values in [0, 1] and
the top row first. They can be written as:

    - raw packed pixels (BGRA or RGBA, 8 bits per channel, row-major),
      suitable for piping into a video encoder
    - PNG (8-bit RGBA via Pillow)

BGRA is the default raw layout: it is what a little-endian 0xAARRGGBB pixel
looks like in memory.

Example:
    >>> import sys
    >>> from metaballs.preview.export import write_raw, save_png
    >>> write_raw(sys.stdout.buffer, image)  # doctest: +SKIP
    >>> save_png(image, "frame.png")  # doctest: +SKIP
"""

from __future__ import annotations

from typing import BinaryIO, Literal

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Type alias for raw pixel layouts
PixelFormat = Literal["bgra", "rgba"]

# Channel order of each layout, as indices into RGBA
_CHANNEL_ORDER: dict[str, tuple[int, int, int, int]] = {
    "bgra": (2, 1, 0, 3),
    "rgba": (0, 1, 2, 3),
}


def _check_image(image: npt.NDArray[np.floating]) -> None:
    if image.ndim != 3 or image.shape[2] != 4:
        raise ValueError(f"Expected an (H, W, 4) RGBA image, got shape {image.shape}")


def image_to_rgba8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a float RGBA image to 8-bit.

    Values are clamped to [0, 1]; NaN becomes 0. Conversion truncates, so
    1.0 maps to 255 and anything below 1/255 maps to 0.

    Args:
        image: Float image of shape (H, W, 4).

    Returns:
        uint8 array of shape (H, W, 4).
    """
    _check_image(image)
    clean = np.nan_to_num(image.astype(np.float32), nan=0.0, posinf=1.0, neginf=0.0)
    clean = np.clip(clean, 0.0, 1.0)
    return (clean * 255.0).astype(np.uint8)


def pack_pixels(
    image: npt.NDArray[np.floating],
    pixel_format: PixelFormat = "bgra",
) -> bytes:
    """Pack a float RGBA image into raw 8-bit pixel bytes.

    Args:
        image: Float image of shape (H, W, 4), top row first.
        pixel_format: "bgra" (default) or "rgba".

    Returns:
        H * W * 4 bytes, row-major, top row first.

    Raises:
        ValueError: If the pixel format is unknown or the image shape is wrong.
    """
    try:
        order = _CHANNEL_ORDER[pixel_format]
    except KeyError:
        raise ValueError(
            f"Unknown pixel format: {pixel_format} (expected one of {', '.join(_CHANNEL_ORDER)})"
        ) from None
    rgba8 = image_to_rgba8(image)
    return np.ascontiguousarray(rgba8[:, :, list(order)]).tobytes()


def write_raw(
    stream: BinaryIO,
    image: npt.NDArray[np.floating],
    pixel_format: PixelFormat = "bgra",
) -> int:
    """Write a frame as raw packed pixels to a binary stream.

    Args:
        stream: Binary output stream (e.g. sys.stdout.buffer).
        image: Float image of shape (H, W, 4).
        pixel_format: "bgra" (default) or "rgba".

    Returns:
        The number of bytes written.
    """
    data = pack_pixels(image, pixel_format)
    stream.write(data)
    stream.flush()
    return len(data)


def save_png(image: npt.NDArray[np.floating], filepath: str) -> None:
    """Save a float RGBA image as an 8-bit RGBA PNG.

    Args:
        image: Float image of shape (H, W, 4).
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(image_to_rgba8(image), mode="RGBA")
    pil_image.save(filepath)
