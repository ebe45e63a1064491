"""Shading and frame rendering for the metaball isosurface.

For every pixel one primary ray is traced against the isosurface. A ray
that escapes shows the environment in its own direction. A ray that hits is
reflected about the surface normal and shows the environment in the
reflected direction, blended with a low-weight contribution from each
directional light.

Light blending is a weighted average over RGB: the reflected environment
color has weight 1, and light k contributes its color with weight
light_weight * intensity_k, where intensity_k = max(0, l_k . reflected).
Alpha is always 1.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from metaballs.core.integrator import render_frame, setup_render_target
    >>> from metaballs.scene.presets import create_default_scene
    >>> from metaballs.camera.pinhole import setup_camera
    >>>
    >>> scene, camera, _ = create_default_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(256, 128)
    >>> render_frame()
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from metaballs.camera.pinhole import get_ray
from metaballs.core.ray import reflect
from metaballs.core.sweep import SurfaceHit, trace_surface
from metaballs.environment.envmap import environment_color
from metaballs.environment.lights import light_color, light_intensity, num_lights

# Type aliases
vec3 = tm.vec3
vec4 = tm.vec4

# =============================================================================
# Shading Configuration
# =============================================================================

DEFAULT_LIGHT_WEIGHT = 0.1

_light_weight = ti.field(dtype=ti.f32, shape=())


def setup_shading(light_weight: float = DEFAULT_LIGHT_WEIGHT) -> None:
    """Configure how strongly direct lights blend into reflections.

    Args:
        light_weight: Weight per unit of light intensity in the RGB average.

    Raises:
        ValueError: If light_weight is negative.
    """
    if not light_weight >= 0.0:
        raise ValueError(f"Light weight must be non-negative, got {light_weight}")
    _light_weight[None] = light_weight


def get_light_weight() -> float:
    return float(_light_weight[None])


# =============================================================================
# Render Target (Framebuffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# RGBA frame buffer, indexed [x, y] with y = 0 the bottom row
_frame_buffer = ti.Vector.field(4, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the frame buffer.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are non-positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the frame buffer to transparent black."""
    _frame_buffer.fill(0.0)


def release_render_target() -> None:
    """Mark the render target as not set up."""
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


@ti.func
def set_pixel(pixel_i: ti.i32, pixel_j: ti.i32, color: vec4):
    """Write one pixel, replacing non-finite channels and clamping to [0, 1]."""
    out = vec4(0.0, 0.0, 0.0, 0.0)
    for c in ti.static(range(4)):
        v = color[c]
        if not (tm.isnan(v) or tm.isinf(v)):
            out[c] = tm.clamp(v, 0.0, 1.0)
    _frame_buffer[pixel_i, pixel_j] = out


# =============================================================================
# Shading
# =============================================================================


@ti.func
def composite_lights(base: vec4, direction: vec3) -> vec4:
    """Weighted RGB average of a base color and the directional lights.

    Args:
        base: The reflected environment color (weight 1).
        direction: Direction the lights are evaluated against.

    Returns:
        The blended color with alpha 1.
    """
    rgb = base.rgb
    total_weight = 1.0
    weight = _light_weight[None]
    for k in range(num_lights[None]):
        w = weight * light_intensity(k, direction)
        rgb += w * light_color(k)
        total_weight += w
    return vec4(rgb / total_weight, 1.0)


@ti.func
def shade_hit(hit: SurfaceHit, ray_direction: vec3) -> vec4:
    """Color of a surface hit: reflected environment plus light blend."""
    reflected = reflect(ray_direction, hit.normal)
    base = environment_color(reflected)
    return composite_lights(base, reflected)


@ti.func
def shade(ray_origin: vec3, ray_direction: vec3) -> vec4:
    """Trace a ray and return its color.

    Call from a serial scope (see trace_surface).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.

    Returns:
        An opaque RGBA color: the shaded surface if the ray hits the
        isosurface, else the environment in the ray's direction.
    """
    hit = trace_surface(ray_origin, ray_direction)
    color = vec4(0.0, 0.0, 0.0, 1.0)
    if hit.hit == 1:
        color = shade_hit(hit, ray_direction)
    else:
        color = environment_color(ray_direction)
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_frame(width: ti.i32, height: ti.i32):
    """Trace one ray per pixel and write the frame buffer."""
    for i, j in ti.ndrange(width, height):
        ray = get_ray(i, j, width, height)
        set_pixel(i, j, shade(ray.origin, ray.direction))


# Single-ray probes (used by render_pixel / trace_ray / trace_surface_hit)
_probe_color = ti.Vector.field(4, dtype=ti.f32, shape=())
_probe_hit = SurfaceHit.field(shape=())


@ti.kernel
def _trace_single(ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32):
    # Serial scope: the sweep's loops must not be parallelized
    for _ in range(1):
        origin = vec3(ox, oy, oz)
        direction = vec3(dx, dy, dz)
        _probe_hit[None] = trace_surface(origin, direction)
        _probe_color[None] = shade(origin, direction)


@ti.kernel
def _render_single_pixel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32):
    for _ in range(1):
        ray = get_ray(pixel_i, pixel_j, width, height)
        _probe_color[None] = shade(ray.origin, ray.direction)


# =============================================================================
# Public Rendering API
# =============================================================================


def _normalized(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    length = float(np.linalg.norm(np.asarray(direction, dtype=np.float64)))
    if not length > 0.0:
        raise ValueError(f"Ray direction must be non-zero, got {direction}")
    return (direction[0] / length, direction[1] / length, direction[2] / length)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> tuple[float, float, float, float]:
    """Shade a single ray from Python.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction; normalized here.

    Returns:
        The (R, G, B, A) color.
    """
    d = _normalized(direction)
    _trace_single(origin[0], origin[1], origin[2], d[0], d[1], d[2])
    color = _probe_color[None]
    return (float(color[0]), float(color[1]), float(color[2]), float(color[3]))


def trace_surface_hit(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> dict:
    """Trace a single ray against the isosurface from Python.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction; normalized here.

    Returns:
        Dictionary with hit (bool), t, point, normal, active_count and
        event_count.
    """
    d = _normalized(direction)
    _trace_single(origin[0], origin[1], origin[2], d[0], d[1], d[2])
    point = _probe_hit.point[None]
    normal = _probe_hit.normal[None]
    return {
        "hit": bool(_probe_hit.hit[None]),
        "t": float(_probe_hit.t[None]),
        "point": (float(point[0]), float(point[1]), float(point[2])),
        "normal": (float(normal[0]), float(normal[1]), float(normal[2])),
        "active_count": int(_probe_hit.active_count[None]),
        "event_count": int(_probe_hit.event_count[None]),
    }


def render_pixel(pixel_i: int, pixel_j: int) -> tuple[float, float, float, float]:
    """Shade a single pixel of the current render target without writing it.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).

    Returns:
        The (R, G, B, A) color.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    _render_single_pixel(pixel_i, pixel_j, width, height)
    color = _probe_color[None]
    return (float(color[0]), float(color[1]), float(color[2]), float(color[3]))


def render_frame() -> None:
    """Render one full frame into the frame buffer.

    The scene must not be modified while this runs.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    _render_frame(width, height)


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the frame buffer as a NumPy array.

    Returns:
        Array of shape (height, width, 4), top row first, values in [0, 1].

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    full_image = _frame_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 4) -> (height, width, 4), then flip to top-left origin
    image = np.transpose(image, (1, 0, 2))
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
