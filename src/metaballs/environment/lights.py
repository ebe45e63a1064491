"""Directional lights.

Lights are infinitely distant and defined by the unit direction pointing
toward them. They are used twice: the lit environment draws a sun disc for
each light, and the shader blends a low-weight light term into reflections.

A light's intensity for a given view direction d is max(0, l . d) scaled by
the light's own intensity.
"""

import math

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Maximum number of directional lights
MAX_LIGHTS = 8

_light_directions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
_light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
_light_intensities = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def add_light(
    direction: tuple[float, float, float],
    color: tuple[float, float, float] = (1.0, 1.0, 1.0),
    intensity: float = 1.0,
) -> int:
    """Add a directional light.

    Args:
        direction: Direction toward the light; normalized here.
        color: RGB color of the light, each component in [0, 1].
        intensity: Non-negative scale factor.

    Returns:
        The index of the added light.

    Raises:
        ValueError: If the direction has zero length, or color/intensity
            are out of range.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    length = math.sqrt(sum(c * c for c in direction))
    if not length > 1e-8 or not math.isfinite(length):
        raise ValueError(f"Light direction must be a finite non-zero vector, got {direction}")
    if not all(0.0 <= c <= 1.0 for c in color):
        raise ValueError(f"Light color components must be in [0, 1], got {color}")
    if not intensity >= 0.0:
        raise ValueError(f"Light intensity must be non-negative, got {intensity}")

    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    _light_directions[idx] = [c / length for c in direction]
    _light_colors[idx] = [float(c) for c in color]
    _light_intensities[idx] = intensity
    num_lights[None] = idx + 1
    return idx


def clear_lights() -> None:
    """Remove all lights."""
    num_lights[None] = 0


def get_light_count() -> int:
    """Get the number of lights."""
    return int(num_lights[None])


@ti.func
def light_color(index: ti.i32) -> vec3:
    return _light_colors[index]


@ti.func
def light_strength(index: ti.i32) -> ti.f32:
    return _light_intensities[index]


@ti.func
def light_cosine(index: ti.i32, direction: vec3) -> ti.f32:
    """Clamped cosine between light `index` and a unit direction."""
    return ti.max(0.0, tm.dot(_light_directions[index], direction))


@ti.func
def light_intensity(index: ti.i32, direction: vec3) -> ti.f32:
    """Intensity of light `index` seen along a unit direction."""
    return light_cosine(index, direction) * _light_intensities[index]
