"""Environment module: what reflected rays see.

Components:
    gradient: Color gradients sampled by a parameter in [0, 1]
    lights: Directional lights
    envmap: Environment variants mapping a direction to a color
"""

from .envmap import EnvironmentConfig, EnvironmentType, environment_color, setup_environment
from .gradient import (
    MAX_GRADIENT_STOPS,
    PALETTES,
    Gradient,
    get_palette,
    gray,
    metallic,
    parse_hex_color,
    sample_gradient,
    setup_gradient,
)
from .lights import MAX_LIGHTS, add_light, clear_lights, get_light_count, light_intensity

__all__ = [
    # Gradient
    "Gradient",
    "gray",
    "metallic",
    "PALETTES",
    "get_palette",
    "parse_hex_color",
    "setup_gradient",
    "sample_gradient",
    "MAX_GRADIENT_STOPS",
    # Lights
    "add_light",
    "clear_lights",
    "get_light_count",
    "light_intensity",
    "MAX_LIGHTS",
    # Environment map
    "EnvironmentType",
    "EnvironmentConfig",
    "setup_environment",
    "environment_color",
]
