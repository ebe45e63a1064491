"""Per-frame metaball snapshots.

Animation is a pure function from a frame index to metaball parameters.
Nothing here touches the GPU fields: the caller loads a snapshot into the
scene between frames (SceneManager.load_snapshot), so positions never change
while a frame is being traced.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, replace

DEFAULT_FRAMES_PER_CYCLE = 60
DEFAULT_AMPLITUDE = 0.35


@dataclass(frozen=True)
class MetaballSpec:
    """Immutable metaball parameters for one frame.

    Attributes:
        center: The center as (x, y, z).
        radius: The radius of influence.
        strength: The field value at the center.
    """

    center: tuple[float, float, float]
    radius: float = 1.0
    strength: float = 1.0


def phase(frame: int, index: int, count: int, frames_per_cycle: int) -> float:
    """Phase angle of ball `index` (of `count`) at `frame`, in radians."""
    return 2.0 * math.pi * (frame / frames_per_cycle + index / count)


def animate(
    base: Sequence[MetaballSpec],
    frame: int,
    frames_per_cycle: int = DEFAULT_FRAMES_PER_CYCLE,
    amplitude: float = DEFAULT_AMPLITUDE,
) -> tuple[MetaballSpec, ...]:
    """Compute the metaballs of a frame from their rest positions.

    Each ball orbits its rest center on an ellipse in the xy-plane, offset
    by amplitude * (sin(phase), 0.5 * cos(phase), 0). Balls are spread
    evenly in phase so they drift into and out of each other. The motion
    repeats every frames_per_cycle frames.

    Args:
        base: Rest-position metaballs.
        frame: Frame index (any integer).
        frames_per_cycle: Frames per full orbit.
        amplitude: Orbit radius along x.

    Returns:
        A new tuple of MetaballSpec, same length and order as base.

    Raises:
        ValueError: If frames_per_cycle is not positive.
    """
    if frames_per_cycle <= 0:
        raise ValueError(f"Frames per cycle must be positive, got {frames_per_cycle}")

    count = len(base)
    snapshot = []
    for k, ball in enumerate(base):
        angle = phase(frame, k, count, frames_per_cycle)
        cx, cy, cz = ball.center
        center = (
            cx + amplitude * math.sin(angle),
            cy + 0.5 * amplitude * math.cos(angle),
            cz,
        )
        snapshot.append(replace(ball, center=center))
    return tuple(snapshot)
