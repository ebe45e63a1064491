"""Pytest configuration for metaball tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Reset scene, lights, surface, environment and shading before each test.

    This ensures tests are isolated from each other.
    """
    # Import here so the Taichi fields are created after ti.init()
    from metaballs.core.integrator import release_render_target, setup_shading
    from metaballs.core.sweep import reset_surface
    from metaballs.environment.envmap import setup_environment
    from metaballs.environment.lights import clear_lights
    from metaballs.scene.storage import clear_scene

    def _clear_all():
        clear_scene()
        clear_lights()
        reset_surface()
        setup_environment()
        setup_shading()
        release_render_target()

    # Clear everything before test
    _clear_all()

    yield

    # Clear everything after test
    _clear_all()


@pytest.fixture
def two_ball_scene():
    """The default pair of metaballs at x = -0.6 and x = 0.6."""
    from metaballs.scene.storage import add_metaball

    add_metaball((-0.6, 0.0, 0.0), 1.0, 1.0)
    add_metaball((0.6, 0.0, 0.0), 1.0, 1.0)
