"""Bounding sphere primitive with entry/exit interval intersection.

A metaball only influences space inside its bounding sphere, so the tracer
starts by intersecting each ray with every bounding sphere. Unlike a surface
hit test, the result here is the full parameter interval (t0, t1) over which
the ray is inside the sphere. No clipping to t >= 0 is done: intervals that
lie partly or wholly behind the ray origin are returned as-is.

The classic geometric solution is used:

    v   = center - origin
    tca = v . direction          (parameter of closest approach)
    d2  = v . v - tca^2          (squared distance of closest approach)
    thc = sqrt(radius^2 - d2)    (half chord length)
    (t0, t1) = (tca - thc, tca + thc)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from metaballs.geometry.sphere import Sphere, intersect_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, 0), radius=1.0)
    >>> # Use intersect_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class SphereInterval:
    """Parameter interval where a ray is inside a sphere.

    Attributes:
        hit: 1 if the ray's line crosses (or touches) the sphere, 0 otherwise.
        t0: Entry parameter. Only valid if hit == 1.
        t1: Exit parameter, t1 >= t0. Only valid if hit == 1.
    """

    hit: ti.i32
    t0: ti.f32
    t1: ti.f32


@ti.func
def intersect_sphere(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> SphereInterval:
    """Compute the entry/exit interval of a ray through a sphere.

    The direction must be unit length; tca is then a true distance along
    the ray. A ray whose closest approach lies exactly on the surface
    (tangent) yields t0 == t1.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        sphere: The sphere to intersect.

    Returns:
        A SphereInterval; hit == 0 when the closest approach lies outside
        the sphere.
    """
    v = sphere.center - ray_origin
    tca = tm.dot(v, ray_direction)
    d2 = tm.dot(v, v) - tca * tca
    r2 = sphere.radius * sphere.radius

    result = SphereInterval(hit=0, t0=0.0, t1=0.0)
    if d2 <= r2:
        thc = ti.sqrt(r2 - d2)
        result = SphereInterval(hit=1, t0=tca - thc, t1=tca + thc)
    return result


@ti.func
def to_spherical(v: vec3) -> vec3:
    """Convert cartesian coordinates to spherical (r, theta, phi).

    theta is the polar angle measured from the +y axis, in [0, pi].
    phi is the azimuth in the xz-plane, in [-pi, pi], signed by z.
    When v lies on the y axis the azimuth is undefined and 0 is returned.

    Args:
        v: The cartesian vector (need not be normalized, must be non-zero).

    Returns:
        vec3(r, theta, phi).
    """
    r = tm.length(v)
    theta = ti.acos(tm.clamp(v.y / r, -1.0, 1.0))
    xz = ti.sqrt(v.x * v.x + v.z * v.z)
    phi = 0.0
    if xz > 0.0:
        sign_z = 1.0
        if v.z < 0.0:
            sign_z = -1.0
        phi = sign_z * ti.acos(tm.clamp(v.x / xz, -1.0, 1.0))
    return vec3(r, theta, phi)
