"""Environment map: direction to color.

The environment has a single operation, `environment_color(direction)`,
used for both the background and reflected rays. Three variants exist and
each builds on the previous one by delegation:

    GRADIENT  gradient keyed by the polar angle, theta / pi, so the
              +y pole maps to 0 and the -y pole to 1
    CHECKER   GRADIENT, mixed toward a checker color on alternate cells
              of a polar/azimuthal grid
    LIT       CHECKER, plus a sun disc for every directional light

The result is always fully opaque.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from metaballs.environment.envmap import (
    ...     EnvironmentConfig, EnvironmentType, setup_environment
    ... )
    >>> setup_environment(EnvironmentConfig(kind=EnvironmentType.CHECKER))
    >>> # Use environment_color(direction) within a Taichi kernel
"""

from dataclasses import dataclass, field
from enum import IntEnum

import taichi as ti
import taichi.math as tm

from metaballs.environment.gradient import Gradient, metallic, sample_gradient, setup_gradient
from metaballs.environment.lights import light_color, light_cosine, light_strength, num_lights
from metaballs.geometry.sphere import to_spherical

vec3 = tm.vec3
vec4 = tm.vec4


class EnvironmentType(IntEnum):
    """Enumeration of environment variants.

    Used for dispatch in environment_color().
    """

    GRADIENT = 0
    CHECKER = 1
    LIT = 2


@dataclass
class EnvironmentConfig:
    """Configuration of the environment map.

    Attributes:
        kind: Which variant to use.
        gradient: Color gradient sampled by polar angle (0 = +y, 1 = -y).
        checker_rows: Number of checker cells along the polar angle.
        checker_cols: Number of checker cells along the azimuth.
        checker_color: RGB color the odd cells are mixed toward.
        checker_mix: Mix factor on odd cells, in [0, 1].
        sun_sharpness: Exponent of the sun disc falloff; larger is smaller.
        sun_weight: Scale of the sun disc contribution.
    """

    kind: EnvironmentType = EnvironmentType.GRADIENT
    gradient: Gradient = field(default_factory=metallic)
    checker_rows: int = 8
    checker_cols: int = 16
    checker_color: tuple[float, float, float] = (0.0, 0.0, 0.0)
    checker_mix: float = 0.25
    sun_sharpness: float = 64.0
    sun_weight: float = 1.0


_kind = ti.field(dtype=ti.i32, shape=())
_checker_rows = ti.field(dtype=ti.i32, shape=())
_checker_cols = ti.field(dtype=ti.i32, shape=())
_checker_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_checker_mix = ti.field(dtype=ti.f32, shape=())
_sun_sharpness = ti.field(dtype=ti.f32, shape=())
_sun_weight = ti.field(dtype=ti.f32, shape=())


def setup_environment(config: EnvironmentConfig | None = None) -> None:
    """Upload an environment configuration.

    Args:
        config: The configuration; defaults to EnvironmentConfig().

    Raises:
        ValueError: If any parameter is out of range.
    """
    if config is None:
        config = EnvironmentConfig()
    kind = EnvironmentType(config.kind)
    if config.checker_rows < 1 or config.checker_cols < 1:
        raise ValueError(
            f"Checker grid must be at least 1x1, got {config.checker_rows}x{config.checker_cols}"
        )
    if not 0.0 <= config.checker_mix <= 1.0:
        raise ValueError(f"Checker mix must be in [0, 1], got {config.checker_mix}")
    if not all(0.0 <= c <= 1.0 for c in config.checker_color):
        raise ValueError(f"Checker color components must be in [0, 1], got {config.checker_color}")
    if config.sun_sharpness < 1.0:
        raise ValueError(f"Sun sharpness must be >= 1, got {config.sun_sharpness}")
    if config.sun_weight < 0.0:
        raise ValueError(f"Sun weight must be non-negative, got {config.sun_weight}")

    setup_gradient(config.gradient)
    _kind[None] = int(kind)
    _checker_rows[None] = config.checker_rows
    _checker_cols[None] = config.checker_cols
    _checker_color[None] = list(config.checker_color)
    _checker_mix[None] = config.checker_mix
    _sun_sharpness[None] = config.sun_sharpness
    _sun_weight[None] = config.sun_weight


def get_environment_type() -> EnvironmentType:
    """Get the currently configured variant."""
    return EnvironmentType(int(_kind[None]))


@ti.func
def _gradient_layer(direction: vec3) -> vec4:
    theta = to_spherical(direction).y
    return sample_gradient(theta / tm.pi)


@ti.func
def _checker_layer(direction: vec3) -> vec4:
    base = _gradient_layer(direction)
    spherical = to_spherical(direction)
    row = ti.cast(ti.floor(spherical.y / tm.pi * _checker_rows[None]), ti.i32)
    col = ti.cast(ti.floor((spherical.z + tm.pi) / (2.0 * tm.pi) * _checker_cols[None]), ti.i32)
    result = base
    if (row + col) % 2 == 1:
        checker = vec4(_checker_color[None], 1.0)
        result = tm.mix(base, checker, _checker_mix[None])
    return result


@ti.func
def _lit_layer(direction: vec3) -> vec4:
    color = _checker_layer(direction)
    sun = vec3(0.0, 0.0, 0.0)
    for k in range(num_lights[None]):
        falloff = ti.pow(light_cosine(k, direction), _sun_sharpness[None])
        sun += light_color(k) * light_strength(k) * falloff
    rgb = tm.clamp(color.rgb + _sun_weight[None] * sun, 0.0, 1.0)
    return vec4(rgb, color.a)


@ti.func
def environment_color(direction: vec3) -> vec4:
    """Color of the environment seen along a unit direction.

    Args:
        direction: The view direction (non-zero; normally unit length).

    Returns:
        An opaque RGBA color.
    """
    kind = _kind[None]
    color = vec4(0.0, 0.0, 0.0, 1.0)
    if kind == int(EnvironmentType.LIT):
        color = _lit_layer(direction)
    elif kind == int(EnvironmentType.CHECKER):
        color = _checker_layer(direction)
    else:
        color = _gradient_layer(direction)
    color.w = 1.0
    return color
