"""Geometry module for metaball primitives.

Components:
    sphere: Bounding sphere with ray-sphere interval intersection
    metaball: Metaball record and its smooth, compactly supported field

All routines are Taichi functions (@ti.func) called from the render kernel.
"""

from .metaball import Metaball, bounding_sphere, field_value, metaball_normal, smooth_falloff
from .sphere import Sphere, SphereInterval, intersect_sphere, to_spherical

__all__ = [
    "Sphere",
    "SphereInterval",
    "intersect_sphere",
    "to_spherical",
    "Metaball",
    "bounding_sphere",
    "smooth_falloff",
    "field_value",
    "metaball_normal",
]
