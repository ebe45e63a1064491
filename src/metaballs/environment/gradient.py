"""Color gradients for the environment map.

A gradient maps a normalized scalar in [0, 1] to a color interpolated between
registered stops. Stops are either spaced uniformly (stop k of n sits at
k / (n - 1)) or placed at explicit positions. Input outside [0, 1] is
clamped.

The Python-side `Gradient` dataclass describes the stops; `setup_gradient`
uploads it to Taichi fields for `sample_gradient` to use inside kernels.

Colors are RGBA tuples of floats in [0, 1]. Packed integers are accepted in
0xAARRGGBB form, the notation the preset palettes are written in.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from metaballs.environment.gradient import Gradient, setup_gradient
    >>> gradient = Gradient()
    >>> gradient.add_stop(0xFF000000)
    >>> gradient.add_stop(0xFFDDDDDD)
    >>> setup_gradient(gradient)
    >>> # Use sample_gradient(t) within a Taichi kernel
"""

from dataclasses import dataclass, field

import numpy as np
import taichi as ti
import taichi.math as tm

vec4 = tm.vec4

RGBA = tuple[float, float, float, float]

# Maximum number of stops uploaded to the GPU
MAX_GRADIENT_STOPS = 32


def parse_hex_color(value: int) -> RGBA:
    """Convert a packed 0xAARRGGBB integer into an RGBA float tuple.

    Args:
        value: The packed color, e.g. 0xFF772884.

    Returns:
        (r, g, b, a) with each component in [0, 1].

    Raises:
        ValueError: If value does not fit in 32 bits.
    """
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"Packed color must be a 32-bit unsigned integer, got {value:#x}")
    a = (value >> 24) & 0xFF
    r = (value >> 16) & 0xFF
    g = (value >> 8) & 0xFF
    b = value & 0xFF
    return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


def _to_rgba(color: int | tuple[float, ...]) -> RGBA:
    """Normalize a stop color given as packed int, RGB or RGBA tuple."""
    if isinstance(color, int):
        return parse_hex_color(color)
    if len(color) == 3:
        rgba = (float(color[0]), float(color[1]), float(color[2]), 1.0)
    elif len(color) == 4:
        rgba = (float(color[0]), float(color[1]), float(color[2]), float(color[3]))
    else:
        raise ValueError(f"Color must have 3 or 4 components, got {len(color)}")
    if not all(0.0 <= c <= 1.0 for c in rgba):
        raise ValueError(f"Color components must be in [0, 1], got {rgba}")
    return rgba


@dataclass
class Gradient:
    """An ordered list of color stops.

    Attributes:
        colors: RGBA stop colors in order.
        positions: Optional explicit stop positions in [0, 1], one per color.
            If None, stops are spaced uniformly.
    """

    colors: list[RGBA] = field(default_factory=list)
    positions: list[float] | None = None

    def add_stop(self, color: int | tuple[float, ...], position: float | None = None) -> None:
        """Append a stop.

        Either every stop has a position or none does; mixing the two
        raises ValueError.

        Args:
            color: Packed 0xAARRGGBB int, or an RGB/RGBA float tuple.
            position: Optional explicit position in [0, 1].
        """
        rgba = _to_rgba(color)
        if position is None:
            if self.positions is not None:
                raise ValueError("Gradient uses explicit positions; a position is required")
        else:
            if self.positions is None:
                if self.colors:
                    raise ValueError("Gradient uses uniform spacing; positions cannot be added")
                self.positions = []
            self.positions.append(float(position))
        self.colors.append(rgba)

    def __len__(self) -> int:
        return len(self.colors)

    def resolved_positions(self) -> list[float]:
        """Get the position of every stop.

        Raises:
            ValueError: If explicit positions are out of [0, 1], not
                non-decreasing, or do not match the number of colors.
        """
        n = len(self.colors)
        if self.positions is None:
            if n == 1:
                return [0.0]
            return [k / (n - 1) for k in range(n)]

        if len(self.positions) != n:
            raise ValueError(
                f"Gradient has {n} colors but {len(self.positions)} positions"
            )
        for k, pos in enumerate(self.positions):
            if not 0.0 <= pos <= 1.0:
                raise ValueError(f"Stop position {pos} is outside [0, 1]")
            if k > 0 and pos < self.positions[k - 1]:
                raise ValueError("Stop positions must be non-decreasing")
        return list(self.positions)


def gray() -> Gradient:
    """Black to light gray."""
    gradient = Gradient()
    gradient.add_stop(0xFF000000)
    gradient.add_stop(0xFFDDDDDD)
    return gradient


def metallic() -> Gradient:
    """Purple metallic bands."""
    gradient = Gradient()
    gradient.add_stop(0xFF772884)
    gradient.add_stop(0xFFDFC0FB)
    gradient.add_stop(0xFF842996)
    gradient.add_stop(0xFF671D77)
    gradient.add_stop(0xFF42104D)
    gradient.add_stop(0xFFD3B4E9)
    return gradient


PALETTES = {
    "gray": gray,
    "metallic": metallic,
}


def get_palette(name: str) -> Gradient:
    """Build a named preset gradient.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        factory = PALETTES[name]
    except KeyError:
        raise ValueError(
            f"Unknown palette: {name} (expected one of {', '.join(sorted(PALETTES))})"
        ) from None
    return factory()


# =============================================================================
# Taichi Fields for the Active Gradient
# =============================================================================

_stop_colors = ti.Vector.field(4, dtype=ti.f32, shape=MAX_GRADIENT_STOPS)
_stop_positions = ti.field(dtype=ti.f32, shape=MAX_GRADIENT_STOPS)
_num_stops = ti.field(dtype=ti.i32, shape=())


def setup_gradient(gradient: Gradient) -> None:
    """Upload a gradient to the GPU fields.

    Args:
        gradient: The gradient to sample from kernels.

    Raises:
        ValueError: If the gradient is empty, too long, or has invalid positions.
    """
    n = len(gradient)
    if n == 0:
        raise ValueError("Gradient must have at least one stop")
    if n > MAX_GRADIENT_STOPS:
        raise ValueError(f"Gradient has {n} stops; maximum is {MAX_GRADIENT_STOPS}")

    positions = gradient.resolved_positions()
    colors = np.zeros((MAX_GRADIENT_STOPS, 4), dtype=np.float32)
    colors[:n] = np.asarray(gradient.colors, dtype=np.float32)
    stops = np.ones(MAX_GRADIENT_STOPS, dtype=np.float32)
    stops[:n] = np.asarray(positions, dtype=np.float32)

    _stop_colors.from_numpy(colors)
    _stop_positions.from_numpy(stops)
    _num_stops[None] = n


def clear_gradient() -> None:
    """Remove all stops; sampling then returns opaque black."""
    _num_stops[None] = 0


def get_stop_count() -> int:
    """Get the number of stops currently uploaded."""
    return int(_num_stops[None])


@ti.func
def sample_gradient(t: ti.f32) -> vec4:
    """Sample the uploaded gradient at t.

    t is clamped to [0, 1]. Before the first stop the first color is
    returned, after the last stop the last color. Between two stops the
    color is interpolated linearly per channel; a zero-width segment yields
    the later stop.

    Args:
        t: Normalized position.

    Returns:
        The interpolated RGBA color.
    """
    n = _num_stops[None]
    x = tm.clamp(t, 0.0, 1.0)
    color = vec4(0.0, 0.0, 0.0, 1.0)
    if n == 1:
        color = _stop_colors[0]
    elif n > 1:
        color = _stop_colors[n - 1]
        if x <= _stop_positions[0]:
            color = _stop_colors[0]
        else:
            found = 0
            for k in range(n - 1):
                if found == 0:
                    lo = _stop_positions[k]
                    hi = _stop_positions[k + 1]
                    if x <= hi:
                        width = hi - lo
                        f = 1.0
                        if width > 0.0:
                            f = (x - lo) / width
                        color = tm.mix(_stop_colors[k], _stop_colors[k + 1], f)
                        found = 1
    return tm.clamp(color, 0.0, 1.0)
