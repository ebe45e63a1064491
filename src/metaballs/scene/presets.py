"""Default metaball scene.

Two equal metaballs side by side on the x axis, close enough that their
fields bridge the gap between them, seen from straight ahead.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from metaballs.scene.presets import create_default_scene
    >>> from metaballs.camera.pinhole import setup_camera
    >>> from metaballs.environment.envmap import setup_environment
    >>>
    >>> scene, camera, environment = create_default_scene()
    >>> setup_camera(camera)
    >>> setup_environment(environment)
"""

from __future__ import annotations

from dataclasses import dataclass

from metaballs.camera.pinhole import PinholeCamera
from metaballs.environment.envmap import EnvironmentConfig, EnvironmentType
from metaballs.environment.gradient import get_palette
from metaballs.scene.animation import MetaballSpec
from metaballs.scene.manager import SceneManager


@dataclass
class DefaultSceneParams:
    """Parameters of the default scene.

    Attributes:
        separation: Half the distance between the two ball centers.
        radius: Radius of influence of each ball.
        strength: Strength of each ball.
        camera_position: Camera position; the camera looks at the origin.
        fov: Field of view in degrees.
        palette: Name of the environment gradient preset.
        environment: Environment variant.
    """

    separation: float = 0.6
    radius: float = 1.0
    strength: float = 1.0
    camera_position: tuple[float, float, float] = (0.0, 0.0, -3.0)
    fov: float = 30.0
    palette: str = "metallic"
    environment: EnvironmentType = EnvironmentType.GRADIENT


def default_metaballs(params: DefaultSceneParams | None = None) -> tuple[MetaballSpec, ...]:
    """Rest positions of the default scene's metaballs."""
    if params is None:
        params = DefaultSceneParams()
    return (
        MetaballSpec(center=(-params.separation, 0.0, 0.0), radius=params.radius, strength=params.strength),
        MetaballSpec(center=(params.separation, 0.0, 0.0), radius=params.radius, strength=params.strength),
    )


def create_default_scene(
    params: DefaultSceneParams | None = None,
) -> tuple[SceneManager, PinholeCamera, EnvironmentConfig]:
    """Create the default two-metaball scene.

    Args:
        params: Optional parameters; defaults to DefaultSceneParams().

    Returns:
        Tuple of (scene, camera, environment). The scene is already loaded
        into the GPU fields; the camera and environment still need
        setup_camera() and setup_environment().
    """
    if params is None:
        params = DefaultSceneParams()

    scene = SceneManager()
    for spec in default_metaballs(params):
        scene.add_spec(spec)

    camera = PinholeCamera(
        position=params.camera_position,
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        fov=params.fov,
    )
    environment = EnvironmentConfig(kind=params.environment, gradient=get_palette(params.palette))
    return scene, camera, environment
