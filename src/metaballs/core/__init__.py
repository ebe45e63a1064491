"""Core rendering module.

This module contains the building blocks of the metaball tracer:

Components:
    ray: Ray data structure and vector helpers
    sweep: Event sweep along a ray and isosurface search
    integrator: Reflection shading and the per-pixel render kernel
    renderer: Frame and animation rendering wrapper

The sweep visits bounding-sphere entry and exit events in order, keeps the
set of balls whose spheres contain the current ray segment, and samples only
their fields to find the first crossing of the iso level.
"""

from .ray import (
    ZERO_LENGTH_SQUARED,
    Ray,
    length_squared,
    lerp,
    make_ray,
    ray_at,
    reflect,
    safe_normalize,
    vec3,
    vec4,
)

# Note: sweep, integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from metaballs.core.integrator or metaballs.core.renderer when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "vec4",
    "lerp",
    "reflect",
    "safe_normalize",
    "length_squared",
    "ZERO_LENGTH_SQUARED",
]
