"""Pinhole camera model for per-pixel primary rays.

The camera is placed at `position` and looks at `lookat`. The field of view
spans the shorter image side, so the picture is never stretched: for a pixel
(i, j) of a width x height image

    half  = min(width, height) / 2
    s     = (i - width / 2)  / half * tan(fov / 2)
    r     = (j - height / 2) / half * tan(fov / 2)
    dir   = normalize(s * right + r * up + forward)

with j = 0 the bottom row. There is exactly one ray per pixel (no jitter).

The camera builds an orthonormal basis from the view parameters:
- forward: from position toward lookat
- right:   perpendicular to forward and vup
- up:      completes the right-handed frame

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from metaballs.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> camera = PinholeCamera(position=(0.0, 0.0, -3.0), lookat=(0.0, 0.0, 0.0), fov=30.0)
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0, 0, 64, 64)  # Ray through the bottom-left pixel
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from metaballs.core.ray import Ray, make_ray

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        position: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation.
        fov: Field of view in degrees across the shorter image side.
    """

    position: tuple[float, float, float] = (0.0, 0.0, -3.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, 0.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    fov: float = 30.0


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_tan_half_fov = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: PinholeCamera) -> None:
    """Initialize camera state from configuration.

    Args:
        camera: Camera configuration with position, orientation, and FOV.

    Raises:
        ValueError: If the FOV is not in (0, 180) degrees, position equals
            lookat, or vup is parallel to the view direction.
    """
    if not 0.0 < camera.fov < 180.0:
        raise ValueError(f"Field of view must be in (0, 180) degrees, got {camera.fov}")

    position = np.array(camera.position, dtype=np.float32)
    lookat = np.array(camera.lookat, dtype=np.float32)
    vup = np.array(camera.vup, dtype=np.float32)

    forward = lookat - position
    forward_len = np.linalg.norm(forward)
    if forward_len < 1e-8:
        raise ValueError("Camera position and lookat must differ")
    forward = forward / forward_len

    # right = vup x forward keeps the frame right-handed with forward = +z
    right = np.cross(vup, forward)
    right_len = np.linalg.norm(right)
    if right_len < 1e-8:
        raise ValueError("Camera vup must not be parallel to the view direction")
    right = right / right_len

    up = np.cross(forward, right)

    _camera_origin[None] = position.tolist()
    _camera_right[None] = right.tolist()
    _camera_up[None] = up.tolist()
    _camera_forward[None] = forward.tolist()
    _tan_half_fov[None] = math.tan(math.radians(camera.fov) / 2.0)


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the primary ray for a pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray from the camera position with unit direction.
    """
    half_w = 0.5 * ti.cast(width, ti.f32)
    half_h = 0.5 * ti.cast(height, ti.f32)
    scale = _tan_half_fov[None] / ti.min(half_w, half_h)
    s = (ti.cast(pixel_i, ti.f32) - half_w) * scale
    r = (ti.cast(pixel_j, ti.f32) - half_h) * scale
    direction = tm.normalize(s * _camera_right[None] + r * _camera_up[None] + _camera_forward[None])
    return make_ray(_camera_origin[None], direction)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, right, up, forward vectors.
    """
    info = {}
    for name, f in (
        ("origin", _camera_origin),
        ("right", _camera_right),
        ("up", _camera_up),
        ("forward", _camera_forward),
    ):
        vec = f[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
