"""Scene-level metaball storage.

Metaballs are stored in Taichi fields for GPU-efficient access. A ball's
index into these fields is its identity: two balls with identical center,
radius and strength are still distinct entries, and the tracer's active set
refers to balls by index only.

The capacity is deliberately small. Each ray keeps a local, fixed-size
event buffer with two events per ball, and the whole sweep runs inside a
single Taichi function.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from metaballs.scene.storage import add_metaball, clear_scene
    >>> clear_scene()
    >>> add_metaball((-0.6, 0.0, 0.0), 1.0, 1.0)
    >>> add_metaball((0.6, 0.0, 0.0), 1.0, 1.0)
"""

import math

import taichi as ti
import taichi.math as tm

from metaballs.geometry.metaball import Metaball, field_value

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of metaballs supported in the scene
MAX_METABALLS = 16

# Two events (entry and exit) per ball
MAX_EVENTS = 2 * MAX_METABALLS

# Metaball storage: Structure of Arrays layout for GPU efficiency
metaball_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METABALLS)
metaball_radii = ti.field(dtype=ti.f32, shape=MAX_METABALLS)
metaball_strengths = ti.field(dtype=ti.f32, shape=MAX_METABALLS)
num_metaballs = ti.field(dtype=ti.i32, shape=())


def _validate_metaball(
    center: tuple[float, float, float],
    radius: float,
    strength: float,
) -> None:
    """Check metaball parameters before they reach the GPU fields.

    Raises:
        ValueError: If any value is non-finite, the radius is negative,
            or the strength is not positive.
    """
    if len(center) != 3:
        raise ValueError(f"Center must have 3 components, got {len(center)}")
    if not all(math.isfinite(c) for c in center):
        raise ValueError(f"Center must be finite, got {center}")
    if not math.isfinite(radius) or radius < 0.0:
        raise ValueError(f"Radius must be finite and non-negative, got {radius}")
    if not math.isfinite(strength) or strength <= 0.0:
        raise ValueError(f"Strength must be finite and positive, got {strength}")


def clear_scene() -> None:
    """Remove all metaballs from the scene.

    Resets the count to zero. The field data is not cleared but will be
    overwritten when new metaballs are added.
    """
    num_metaballs[None] = 0


def add_metaball(
    center: tuple[float, float, float],
    radius: float,
    strength: float = 1.0,
) -> int:
    """Add a metaball to the scene.

    A radius of 0 is accepted; such a ball has no influence and is skipped
    by the tracer.

    Args:
        center: The center of the metaball as (x, y, z).
        radius: The radius of influence (non-negative).
        strength: The field value at the center (positive).

    Returns:
        The index (identity) of the added metaball.

    Raises:
        ValueError: If the parameters are invalid.
        RuntimeError: If the maximum number of metaballs is exceeded.
    """
    _validate_metaball(center, radius, strength)
    idx = num_metaballs[None]
    if idx >= MAX_METABALLS:
        raise RuntimeError(f"Maximum number of metaballs ({MAX_METABALLS}) exceeded")
    metaball_centers[idx] = [float(c) for c in center]
    metaball_radii[idx] = radius
    metaball_strengths[idx] = strength
    num_metaballs[None] = idx + 1
    return idx


def set_metaball(
    index: int,
    center: tuple[float, float, float],
    radius: float,
    strength: float,
) -> None:
    """Replace an existing metaball in place, keeping its identity.

    Used to move metaballs between frames. Must not be called while a
    render kernel for the current frame is running.

    Args:
        index: The index returned by add_metaball().
        center: The new center as (x, y, z).
        radius: The new radius of influence.
        strength: The new strength.

    Raises:
        IndexError: If index does not refer to an existing metaball.
        ValueError: If the parameters are invalid.
    """
    if not 0 <= index < num_metaballs[None]:
        raise IndexError(f"Metaball index {index} out of range (count={num_metaballs[None]})")
    _validate_metaball(center, radius, strength)
    metaball_centers[index] = [float(c) for c in center]
    metaball_radii[index] = radius
    metaball_strengths[index] = strength


def get_metaball_count() -> int:
    """Get the number of metaballs in the scene."""
    return int(num_metaballs[None])


def get_metaball(index: int) -> tuple[tuple[float, float, float], float, float]:
    """Read back a metaball as ((x, y, z), radius, strength).

    Raises:
        IndexError: If index does not refer to an existing metaball.
    """
    if not 0 <= index < num_metaballs[None]:
        raise IndexError(f"Metaball index {index} out of range (count={num_metaballs[None]})")
    c = metaball_centers[index]
    return (
        (float(c[0]), float(c[1]), float(c[2])),
        float(metaball_radii[index]),
        float(metaball_strengths[index]),
    )


@ti.func
def get_ball(index: ti.i32) -> Metaball:
    """Load metaball `index` from the scene fields."""
    return Metaball(
        center=metaball_centers[index],
        radius=metaball_radii[index],
        strength=metaball_strengths[index],
    )


@ti.func
def scene_field_value(p: vec3) -> ti.f32:
    """Sum the field of every metaball in the scene at point p (no clamping)."""
    total = 0.0
    for i in range(num_metaballs[None]):
        total += field_value(get_ball(i), p)
    return total
