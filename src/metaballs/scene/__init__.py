"""Scene module for metaball storage and management.

Components:
    storage: Metaball records in Taichi fields
    manager: Python-side scene manager with snapshots and serialization
    animation: Per-frame metaball motion
    presets: The default two-metaball scene

Metaballs are stored Structure-of-Arrays style and identified by their
index, which stays fixed for the lifetime of a scene.
"""

from .animation import DEFAULT_AMPLITUDE, DEFAULT_FRAMES_PER_CYCLE, MetaballSpec, animate, phase
from .manager import MetaballInfo, SceneConfig, SceneManager
from .presets import DefaultSceneParams, create_default_scene, default_metaballs
from .storage import (
    MAX_EVENTS,
    MAX_METABALLS,
    add_metaball,
    clear_scene,
    get_metaball,
    get_metaball_count,
    scene_field_value,
    set_metaball,
)

__all__ = [
    # Storage module
    "MAX_METABALLS",
    "MAX_EVENTS",
    "add_metaball",
    "set_metaball",
    "clear_scene",
    "get_metaball",
    "get_metaball_count",
    "scene_field_value",
    # Manager module
    "SceneManager",
    "MetaballInfo",
    "SceneConfig",
    # Animation module
    "MetaballSpec",
    "animate",
    "phase",
    "DEFAULT_FRAMES_PER_CYCLE",
    "DEFAULT_AMPLITUDE",
    # Presets module
    "DefaultSceneParams",
    "create_default_scene",
    "default_metaballs",
]
