"""Ray/isosurface intersection by sorted event sweep.

The summed metaball field is only non-zero inside bounding spheres, so a ray
is intersected with every bounding sphere first. Each hit yields an Entry and
an Exit event; sorted by ray parameter, consecutive events delimit scan
intervals over which the set of influencing balls (the active set) is
constant. Within each interval the summed field of the active set is
sampled at a fixed number of steps, and the first upward crossing of the
iso level is refined by linear interpolation.

Active-set membership is tracked by ball index (identity), never by value:
two structurally identical balls are separate members.

Sampling policy: sample i of an interval is compared against the sample
taken just before it. For i > 0 that is sample i - 1 of the same interval;
for i == 0 it is the last sample carried over from the previous interval.
The summed field is continuous across event boundaries (a ball contributes
0 on its own bounding sphere), so the carried sample is a valid neighbour.
A crossing is only accepted when the earlier sample is at or below the
level, which also keeps the interpolation denominator positive.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from metaballs.core.sweep import setup_surface, trace_surface
    >>> setup_surface(level=0.3, step_count=10)
    >>> # Use trace_surface within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from metaballs.core.ray import lerp, safe_normalize
from metaballs.geometry.metaball import (
    bounding_sphere,
    field_value,
    metaball_normal,
)
from metaballs.geometry.sphere import intersect_sphere
from metaballs.scene.storage import MAX_EVENTS, MAX_METABALLS, get_ball, num_metaballs

vec3 = tm.vec3

# =============================================================================
# Surface Parameters
# =============================================================================

DEFAULT_LEVEL = 0.3
DEFAULT_STEP_COUNT = 10
MAX_STEP_COUNT = 4096

# Event kinds
EXIT = 0
ENTRY = 1

_level = ti.field(dtype=ti.f32, shape=())
_step_count = ti.field(dtype=ti.i32, shape=())


def setup_surface(level: float = DEFAULT_LEVEL, step_count: int = DEFAULT_STEP_COUNT) -> None:
    """Configure the isosurface level and the samples per scan interval.

    Args:
        level: The iso level; the surface is where the summed field equals it.
            Must be positive.
        step_count: Number of field samples per scan interval.

    Raises:
        ValueError: If level is not positive or step_count is out of range.
    """
    if not level > 0.0:
        raise ValueError(f"Iso level must be positive, got {level}")
    if not 1 <= step_count <= MAX_STEP_COUNT:
        raise ValueError(f"Step count must be in [1, {MAX_STEP_COUNT}], got {step_count}")
    _level[None] = level
    _step_count[None] = step_count


def reset_surface() -> None:
    """Restore the default surface parameters."""
    setup_surface(DEFAULT_LEVEL, DEFAULT_STEP_COUNT)


def get_surface_params() -> tuple[float, int]:
    """Get the current (level, step_count)."""
    return float(_level[None]), int(_step_count[None])


# =============================================================================
# Hit Record
# =============================================================================


@ti.dataclass
class SurfaceHit:
    """Result of tracing a ray against the metaball isosurface.

    Attributes:
        hit: 1 if the ray crosses the isosurface, 0 if it escapes.
        t: Ray parameter of the crossing. Only valid if hit == 1.
        point: The crossing point. Only valid if hit == 1.
        normal: Field-weighted unit normal at the crossing. Only valid if hit == 1.
        active_count: Size of the active set after all events were consumed.
            Every Entry is matched by an Exit, so this is always 0.
        event_count: Number of Entry/Exit events generated for the ray.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    active_count: ti.i32
    event_count: ti.i32


# =============================================================================
# Field Sums over the Active Set
# =============================================================================


@ti.func
def sum_active_field(active, p: vec3) -> ti.f32:
    """Sum the field of the balls flagged in `active` at point p.

    Args:
        active: Per-ball flags (1 = active), indexed by ball identity.
        p: The point to evaluate at.
    """
    total = 0.0
    for k in range(num_metaballs[None]):
        if active[k] == 1:
            total += field_value(get_ball(k), p)
    return total


@ti.func
def estimate_normal(active, p: vec3, fallback: vec3) -> vec3:
    """Blend per-ball normals weighted by each active ball's field at p.

    normal = normalize(sum_k q_k(p) * n_k(p)). Balls with zero field at p
    contribute nothing. If the weighted sum vanishes, `fallback` is
    returned instead of a NaN vector.
    """
    acc = vec3(0.0, 0.0, 0.0)
    for k in range(num_metaballs[None]):
        if active[k] == 1:
            ball = get_ball(k)
            acc += field_value(ball, p) * metaball_normal(ball, p)
    return safe_normalize(acc, fallback)


# =============================================================================
# Event Sweep
# =============================================================================


@ti.func
def trace_surface(ray_origin: vec3, ray_direction: vec3) -> SurfaceHit:
    """Find the first crossing of the summed field with the iso level.

    Builds the Entry/Exit event list for every ball with a positive radius,
    keeps it sorted by insertion (stable, so equal-t events keep the order
    they were generated in), then sweeps the events in ascending t. The
    isosurface search runs on each scan interval until a crossing is found;
    remaining events are still consumed so the active set ends empty.

    Call from a serial scope: the loops in here must not become the
    outermost (parallel) loop of a kernel.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.

    Returns:
        A SurfaceHit; hit == 0 if the ray escapes.
    """
    event_t = ti.Vector([0.0 for _ in range(MAX_EVENTS)], dt=ti.f32)
    event_ball = ti.Vector([0 for _ in range(MAX_EVENTS)], dt=ti.i32)
    event_kind = ti.Vector([0 for _ in range(MAX_EVENTS)], dt=ti.i32)
    active = ti.Vector([0 for _ in range(MAX_METABALLS)], dt=ti.i32)

    # Collect events, inserting each into its sorted position
    count = 0
    for k in range(num_metaballs[None]):
        ball = get_ball(k)
        if ball.radius > 0.0:
            interval = intersect_sphere(ray_origin, ray_direction, bounding_sphere(ball))
            if interval.hit == 1:
                for e in ti.static(range(2)):
                    t_new = interval.t0
                    kind = ENTRY
                    if ti.static(e == 1):
                        t_new = interval.t1
                        kind = EXIT
                    # Shift strictly later events right; equal t stays before
                    pos = count
                    shifting = 1
                    while shifting == 1:
                        if pos > 0:
                            if event_t[pos - 1] > t_new:
                                event_t[pos] = event_t[pos - 1]
                                event_ball[pos] = event_ball[pos - 1]
                                event_kind[pos] = event_kind[pos - 1]
                                pos -= 1
                            else:
                                shifting = 0
                        else:
                            shifting = 0
                    event_t[pos] = t_new
                    event_ball[pos] = k
                    event_kind[pos] = kind
                    count += 1

    level = _level[None]
    n = _step_count[None]
    inv_n = 1.0 / ti.cast(n, ti.f32)

    hit = 0
    t_hit = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    # Last sample seen, carried across scan intervals
    has_prev = 0
    t_prev = 0.0
    q_prev = 0.0

    for e in range(count):
        if event_kind[e] == ENTRY:
            active[event_ball[e]] = 1
        else:
            active[event_ball[e]] = 0

        if hit == 0 and e + 1 < count:
            t0 = event_t[e]
            t1 = event_t[e + 1]
            for i in range(n):
                if hit == 0:
                    t_i = lerp(t0, t1, ti.cast(i, ti.f32) * inv_n)
                    q_i = sum_active_field(active, ray_origin + t_i * ray_direction)
                    if q_i > level and has_prev == 1 and q_prev <= level:
                        # q_i > level >= q_prev, so the denominator is positive
                        s = (level - q_prev) / (q_i - q_prev)
                        t_hit = lerp(t_prev, t_i, s)
                        hit_point = ray_origin + t_hit * ray_direction
                        hit_normal = estimate_normal(active, hit_point, -ray_direction)
                        hit = 1
                    t_prev = t_i
                    q_prev = q_i
                    has_prev = 1

    active_count = 0
    for k in range(MAX_METABALLS):
        active_count += active[k]

    return SurfaceHit(
        hit=hit,
        t=t_hit,
        point=hit_point,
        normal=hit_normal,
        active_count=active_count,
        event_count=count,
    )
