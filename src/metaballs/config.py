"""Render configuration.

Plain dataclass settings for a render run, with the output resolution
taken from the RESOLUTION environment variable ("<width>x<height>") when it
is set. This module does not touch Taichi and can be imported before
ti.init().
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from typing import Any

RESOLUTION_ENV_VAR = "RESOLUTION"
DEFAULT_RESOLUTION = "506x253"

ENVIRONMENT_CHOICES = ("gradient", "checker", "lit")
PALETTE_CHOICES = ("gray", "metallic")
PIXEL_FORMAT_CHOICES = ("bgra", "rgba")
ARCH_CHOICES = ("cpu", "gpu")


def parse_resolution(text: str) -> tuple[int, int]:
    """Parse a "<width>x<height>" string.

    Args:
        text: e.g. "506x253".

    Returns:
        Tuple of (width, height).

    Raises:
        ValueError: If the text is malformed or a dimension is not positive.
    """
    parts = text.strip().lower().split("x")
    if len(parts) != 2:
        raise ValueError(f"Resolution must look like <width>x<height>, got {text!r}")
    try:
        width, height = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Resolution must look like <width>x<height>, got {text!r}") from None
    if width <= 0 or height <= 0:
        raise ValueError(f"Resolution must be positive, got {width}x{height}")
    return width, height


def format_resolution(width: int, height: int) -> str:
    return f"{width}x{height}"


@dataclass
class RenderConfig:
    """Settings for a render run.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        fov: Field of view in degrees across the shorter image side.
        camera_position: Camera position; the camera looks at the origin.
        level: Iso level of the surface.
        step_count: Field samples per scan interval.
        environment: Environment variant ("gradient", "checker" or "lit").
        palette: Environment gradient preset ("gray" or "metallic").
        light_weight: Weight of direct lights blended into reflections.
        lights: Directions toward directional lights.
        frames: Number of frames; more than 1 animates the metaballs.
        pixel_format: Raw output layout ("bgra" or "rgba").
        arch: Taichi backend ("cpu" or "gpu").
    """

    width: int = 506
    height: int = 253
    fov: float = 30.0
    camera_position: tuple[float, float, float] = (0.0, 0.0, -3.0)
    level: float = 0.3
    step_count: int = 10
    environment: str = "gradient"
    palette: str = "metallic"
    light_weight: float = 0.1
    lights: list[tuple[float, float, float]] = field(default_factory=list)
    frames: int = 1
    pixel_format: str = "bgra"
    arch: str = "cpu"

    def validate(self) -> None:
        """Check the settings that are not checked further downstream.

        Raises:
            ValueError: If a setting is out of range or not a known choice.
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Resolution must be positive, got {self.width}x{self.height}")
        if self.frames < 1:
            raise ValueError(f"Frame count must be at least 1, got {self.frames}")
        for name, value, choices in (
            ("environment", self.environment, ENVIRONMENT_CHOICES),
            ("palette", self.palette, PALETTE_CHOICES),
            ("pixel format", self.pixel_format, PIXEL_FORMAT_CHOICES),
            ("arch", self.arch, ARCH_CHOICES),
        ):
            if value not in choices:
                raise ValueError(f"Unknown {name}: {value} (expected one of {', '.join(choices)})")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> RenderConfig:
        """Build a config whose resolution comes from RESOLUTION.

        Args:
            environ: Environment mapping; defaults to os.environ.
            **overrides: Field values that take precedence.

        Raises:
            ValueError: If RESOLUTION is needed and malformed. It is not
                read when both width and height are overridden.
        """
        if environ is None:
            environ = os.environ
        values: dict[str, Any] = {}
        if "width" not in overrides or "height" not in overrides:
            width, height = parse_resolution(environ.get(RESOLUTION_ENV_VAR, DEFAULT_RESOLUTION))
            values = {"width": width, "height": height}
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Export to a dictionary (for JSON serialization)."""
        data = asdict(self)
        data["camera_position"] = list(self.camera_position)
        data["lights"] = [list(light) for light in self.lights]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RenderConfig:
        """Load from a dictionary; unknown keys raise ValueError."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        values = dict(data)
        if "camera_position" in values:
            values["camera_position"] = tuple(values["camera_position"])
        if "lights" in values:
            values["lights"] = [tuple(light) for light in values["lights"]]
        return cls(**values)
