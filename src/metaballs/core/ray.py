"""Ray data structure and vector utilities for metaball ray casting.

This module provides the Ray dataclass and the small set of vector helpers
the isosurface tracer needs. All operations are designed to work within
Taichi kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, -3.0)
    >>> direction = ti.math.vec3(0.0, 0.0, 1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 2.0)  # Point 2 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type aliases using Taichi's math module
vec3 = tm.vec3
vec4 = tm.vec4

# Below this squared length a vector is treated as zero
ZERO_LENGTH_SQUARED = 1e-24


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Expected to be unit length;
            the sphere intersection formula assumes it.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Negative values lie behind the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Scalar and Vector Utility Functions
# =============================================================================


@ti.func
def lerp(a, b, t: ti.f32):
    """Linearly interpolate between a and b.

    Works for scalars and vectors alike. t = 0 gives a, t = 1 gives b.
    """
    return (1.0 - t) * a + t * b


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector v - 2 (v . n) n.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def safe_normalize(v: vec3, fallback: vec3) -> vec3:
    """Normalize a vector, returning a fallback for zero-length input.

    Args:
        v: The input vector.
        fallback: Returned unchanged when v has (near) zero length.

    Returns:
        v / |v|, or fallback if |v|^2 is below ZERO_LENGTH_SQUARED.
    """
    result = fallback
    len_sq = tm.dot(v, v)
    if len_sq > ZERO_LENGTH_SQUARED:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)
