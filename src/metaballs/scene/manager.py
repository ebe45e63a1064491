"""Scene manager for metaball scenes.

This module provides a high-level API over the metaball storage fields. It
keeps a Python-side record of every ball (so scenes can be exported and
reloaded) and swaps in per-frame snapshots for animation.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from metaballs.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_metaball(center=(-0.6, 0, 0), radius=1.0, strength=1.0)
    >>> scene.add_metaball(center=(0.6, 0, 0), radius=1.0, strength=1.0)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from metaballs.scene.animation import MetaballSpec
from metaballs.scene.storage import (
    MAX_METABALLS,
    add_metaball,
    clear_scene,
    get_metaball_count,
    set_metaball,
)


@dataclass
class MetaballInfo:
    """Information about a metaball in the scene.

    Attributes:
        index: The index (identity) in the metaball storage arrays.
        center: The center of the metaball.
        radius: The radius of influence.
        strength: The field value at the center.
    """

    index: int
    center: tuple[float, float, float]
    radius: float
    strength: float

    def to_spec(self) -> MetaballSpec:
        return MetaballSpec(center=self.center, radius=self.radius, strength=self.strength)


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        metaballs: List of metaball configurations with center, radius and
            strength keys.
    """

    metaballs: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Metaball scene with Python-side bookkeeping.

    Attributes:
        metaballs: List of MetaballInfo for all metaballs in the scene.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_metaball((0, 0, 0), 1.0)
        0
        >>> scene.get_metaball_count()
        1
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.metaballs: list[MetaballInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        self.metaballs.clear()

    def clear(self) -> None:
        """Clear the entire scene."""
        self._clear_all()

    def add_metaball(
        self,
        center: tuple[float, float, float],
        radius: float,
        strength: float = 1.0,
    ) -> int:
        """Add a metaball to the scene.

        Args:
            center: The center of the metaball as (x, y, z).
            radius: The radius of influence.
            strength: The field value at the center.

        Returns:
            The index of the metaball.

        Raises:
            ValueError: If the parameters are invalid.
            RuntimeError: If the maximum number of metaballs is exceeded.
        """
        index = add_metaball(center, radius, strength)
        info = MetaballInfo(
            index=index,
            center=(float(center[0]), float(center[1]), float(center[2])),
            radius=float(radius),
            strength=float(strength),
        )
        self.metaballs.append(info)
        return index

    def add_spec(self, spec: MetaballSpec) -> int:
        """Add a metaball described by a MetaballSpec."""
        return self.add_metaball(spec.center, spec.radius, spec.strength)

    def load_snapshot(self, snapshot: Sequence[MetaballSpec]) -> None:
        """Replace every metaball's parameters with a frame snapshot.

        Identities are kept: ball k of the snapshot overwrites ball k of
        the scene. Call only between frames.

        Args:
            snapshot: One MetaballSpec per ball in the scene, in order.

        Raises:
            ValueError: If the snapshot length differs from the ball count,
                or a parameter is invalid.
        """
        if len(snapshot) != len(self.metaballs):
            raise ValueError(
                f"Snapshot has {len(snapshot)} metaballs but the scene has {len(self.metaballs)}"
            )
        for info, spec in zip(self.metaballs, snapshot):
            set_metaball(info.index, spec.center, spec.radius, spec.strength)
            info.center = (float(spec.center[0]), float(spec.center[1]), float(spec.center[2]))
            info.radius = float(spec.radius)
            info.strength = float(spec.strength)

    def get_specs(self) -> tuple[MetaballSpec, ...]:
        """Get the current metaballs as immutable specs."""
        return tuple(info.to_spec() for info in self.metaballs)

    def get_metaball_count(self) -> int:
        """Get the number of metaballs in the scene."""
        return get_metaball_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()
        for info in self.metaballs:
            config.metaballs.append(
                {
                    "center": list(info.center),
                    "radius": info.radius,
                    "strength": info.strength,
                }
            )
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Args:
            config: The scene configuration to load.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()
        for ball_config in config.metaballs:
            center_list = ball_config.get("center", [0.0, 0.0, 0.0])
            if len(center_list) != 3:
                raise ValueError(f"Metaball center must have 3 components, got {center_list}")
            center: tuple[float, float, float] = (
                center_list[0],
                center_list[1],
                center_list[2],
            )
            radius = ball_config.get("radius", 1.0)
            strength = ball_config.get("strength", 1.0)
            self.add_metaball(center, radius, strength)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return {"metaballs": self.to_config().metaballs}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with a 'metaballs' key."""
        self.from_config(SceneConfig(metaballs=data.get("metaballs", [])))

    @staticmethod
    def get_max_metaballs() -> int:
        """Get the maximum number of metaballs supported."""
        return MAX_METABALLS
