"""Camera module for primary ray generation.

Components:
    pinhole: Look-at pinhole camera

Pixel (i, j) maps to a ray through the image plane, with j = 0 the bottom
row and the field of view spanning the shorter image side.
"""

from .pinhole import PinholeCamera, get_camera_info, get_ray, setup_camera

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]
