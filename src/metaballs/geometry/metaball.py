"""Metaball primitive and its scalar field.

A metaball is a point source with a bounded spherical region of influence.
Its contribution falls off from `strength` at the center to 0 at the
boundary along the quintic ease curve

    smooth(u) = u^3 (u (6u - 15) + 10)

where u = 1 - |p - center| / radius. The curve has zero first derivative at
both ends, so the summed field has no visible seams where influence
boundaries meet.
"""

import taichi as ti
import taichi.math as tm

from metaballs.core.ray import safe_normalize
from metaballs.geometry.sphere import Sphere

vec3 = tm.vec3


@ti.dataclass
class Metaball:
    """A metaball defined by center, radius of influence, and strength.

    Attributes:
        center: The center of the field (vec3).
        radius: The radius of influence; the field is 0 outside it.
        strength: The field value at the center.
    """

    center: vec3
    radius: ti.f32
    strength: ti.f32


@ti.func
def bounding_sphere(ball: Metaball) -> Sphere:
    """Get the sphere bounding a metaball's influence."""
    return Sphere(center=ball.center, radius=ball.radius)


@ti.func
def smooth_falloff(u: ti.f32) -> ti.f32:
    """Quintic ease curve with g(0) = 0, g(1) = 1 and g'(0) = g'(1) = 0."""
    return u * u * u * (u * (u * 6.0 - 15.0) + 10.0)


@ti.func
def field_value(ball: Metaball, p: vec3) -> ti.f32:
    """Evaluate a single metaball's field at a point.

    Args:
        ball: The metaball.
        p: The point to evaluate at.

    Returns:
        strength * smooth(1 - d/r) inside the sphere of influence, 0 outside.
        Degenerate balls (radius 0) contribute nothing.
    """
    offset = ball.center - p
    d2 = tm.dot(offset, offset)
    r2 = ball.radius * ball.radius
    value = 0.0
    if r2 > 0.0 and d2 <= r2:
        u = 1.0 - ti.sqrt(d2 / r2)
        value = ball.strength * smooth_falloff(u)
    return value


@ti.func
def metaball_normal(ball: Metaball, p: vec3) -> vec3:
    """Per-ball normal estimate: the unit vector from the center to p.

    Returns the zero vector when p coincides with the center.
    """
    return safe_normalize(p - ball.center, vec3(0.0, 0.0, 0.0))
