"""Tests for the environment map and directional lights.

Tests cover:
- Gradient variant keyed by polar angle
- Checker variant mixing on odd cells
- Lit variant sun discs
- Configuration validation
- Light registration and intensity
"""

import math

import pytest
import taichi as ti


def _env_color(direction):
    from metaballs.environment.envmap import environment_color, vec3

    result = ti.Vector.field(4, dtype=ti.f32, shape=())
    d = [c / math.sqrt(sum(x * x for x in direction)) for c in direction]

    @ti.kernel
    def test_kernel():
        for _ in range(1):
            result[None] = environment_color(vec3(d[0], d[1], d[2]))

    test_kernel()
    c = result[None]
    return (float(c[0]), float(c[1]), float(c[2]), float(c[3]))


def _gradient_at(gradient, t):
    """Reference gradient sample on uniformly spaced stops."""
    positions = gradient.resolved_positions()
    for k in range(len(positions) - 1):
        lo, hi = positions[k], positions[k + 1]
        if t <= hi:
            f = (t - lo) / (hi - lo)
            return tuple(a + (b - a) * f for a, b in zip(gradient.colors[k], gradient.colors[k + 1]))
    return gradient.colors[-1]


def _direction(theta, phi):
    return (math.sin(theta) * math.cos(phi), math.cos(theta), math.sin(theta) * math.sin(phi))


# Centers of checker cells (row 4, column 9) and (row 4, column 8)
ODD_CELL = _direction(0.5625 * math.pi, 0.1875 * math.pi)
EVEN_CELL = _direction(0.5625 * math.pi, 0.0625 * math.pi)


class TestGradientEnvironment:
    """Tests for the default gradient environment."""

    def test_up_is_first_stop(self):
        from metaballs.environment.gradient import metallic

        assert _env_color((0.0, 1.0, 0.0)) == pytest.approx(metallic().colors[0], abs=1e-5)

    def test_down_is_last_stop(self):
        from metaballs.environment.gradient import metallic

        assert _env_color((0.0, -1.0, 0.0)) == pytest.approx(metallic().colors[-1], abs=1e-5)

    def test_horizon_is_middle(self):
        from metaballs.environment.gradient import metallic

        expected = _gradient_at(metallic(), 0.5)
        assert _env_color((1.0, 0.0, 0.0)) == pytest.approx(expected, abs=1e-4)

    def test_independent_of_azimuth(self):
        a = _env_color((1.0, 0.3, 0.0))
        b = _env_color((0.0, 0.3, -1.0))
        assert a == pytest.approx(b, abs=1e-5)

    def test_always_opaque(self):
        from metaballs.environment.envmap import EnvironmentConfig, setup_environment
        from metaballs.environment.gradient import Gradient

        gradient = Gradient()
        gradient.add_stop((1.0, 0.0, 0.0, 0.0))
        gradient.add_stop((0.0, 0.0, 1.0, 0.5))
        setup_environment(EnvironmentConfig(gradient=gradient))
        assert _env_color((1.0, 0.0, 0.0))[3] == 1.0


class TestCheckerEnvironment:
    """Tests for the checker environment."""

    def test_even_cell_matches_gradient(self):
        from metaballs.environment.envmap import EnvironmentConfig, EnvironmentType, setup_environment

        gradient_color = _env_color(EVEN_CELL)
        setup_environment(EnvironmentConfig(kind=EnvironmentType.CHECKER))
        assert _env_color(EVEN_CELL) == pytest.approx(gradient_color, abs=1e-6)

    def test_odd_cell_is_mixed(self):
        from metaballs.environment.envmap import EnvironmentConfig, EnvironmentType, setup_environment

        base = _env_color(ODD_CELL)
        setup_environment(EnvironmentConfig(kind=EnvironmentType.CHECKER, checker_mix=0.25))
        mixed = _env_color(ODD_CELL)
        for k in range(3):
            assert mixed[k] == pytest.approx(0.75 * base[k], abs=1e-5)
        assert mixed[3] == 1.0

    def test_checker_color(self):
        from metaballs.environment.envmap import EnvironmentConfig, EnvironmentType, setup_environment

        setup_environment(
            EnvironmentConfig(
                kind=EnvironmentType.CHECKER,
                checker_color=(1.0, 1.0, 1.0),
                checker_mix=1.0,
            )
        )
        assert _env_color(ODD_CELL) == pytest.approx((1.0, 1.0, 1.0, 1.0), abs=1e-6)


class TestLitEnvironment:
    """Tests for the lit environment."""

    def test_sun_disc_toward_light(self):
        from metaballs.environment.envmap import EnvironmentConfig, EnvironmentType, setup_environment
        from metaballs.environment.lights import add_light

        setup_environment(EnvironmentConfig(kind=EnvironmentType.LIT))
        add_light((0.0, 0.0, 1.0))
        assert _env_color((0.0, 0.0, 1.0)) == pytest.approx((1.0, 1.0, 1.0, 1.0), abs=1e-6)

    def test_no_sun_away_from_light(self):
        from metaballs.environment.envmap import EnvironmentConfig, EnvironmentType, setup_environment
        from metaballs.environment.lights import add_light

        setup_environment(EnvironmentConfig(kind=EnvironmentType.CHECKER))
        checker = _env_color((0.0, 0.0, -1.0))
        setup_environment(EnvironmentConfig(kind=EnvironmentType.LIT))
        add_light((0.0, 0.0, 1.0))
        assert _env_color((0.0, 0.0, -1.0)) == pytest.approx(checker, abs=1e-6)

    def test_without_lights_matches_checker(self):
        from metaballs.environment.envmap import EnvironmentConfig, EnvironmentType, setup_environment

        setup_environment(EnvironmentConfig(kind=EnvironmentType.CHECKER))
        checker = _env_color(ODD_CELL)
        setup_environment(EnvironmentConfig(kind=EnvironmentType.LIT))
        assert _env_color(ODD_CELL) == pytest.approx(checker, abs=1e-6)


class TestEnvironmentConfig:
    """Tests for setup_environment validation."""

    def test_default_type(self):
        from metaballs.environment.envmap import EnvironmentType, get_environment_type

        assert get_environment_type() == EnvironmentType.GRADIENT

    @pytest.mark.parametrize(
        "overrides",
        [
            {"checker_rows": 0},
            {"checker_cols": -1},
            {"checker_mix": 1.5},
            {"checker_color": (2.0, 0.0, 0.0)},
            {"sun_sharpness": 0.5},
            {"sun_weight": -1.0},
        ],
    )
    def test_invalid(self, overrides):
        from metaballs.environment.envmap import EnvironmentConfig, setup_environment

        with pytest.raises(ValueError):
            setup_environment(EnvironmentConfig(**overrides))

    def test_unknown_kind(self):
        from metaballs.environment.envmap import EnvironmentConfig, setup_environment

        with pytest.raises(ValueError):
            setup_environment(EnvironmentConfig(kind=7))


class TestLights:
    """Tests for directional lights."""

    def test_add_light_normalizes(self):
        from metaballs.environment.lights import add_light, get_light_count, light_intensity, vec3

        assert add_light((0.0, 0.0, 5.0), intensity=2.0) == 0
        assert get_light_count() == 1

        result = ti.field(dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = light_intensity(0, vec3(0.0, 0.0, 1.0))
            result[1] = light_intensity(0, vec3(0.0, 0.0, -1.0))
            result[2] = light_intensity(0, vec3(1.0, 0.0, 0.0))

        test_kernel()
        assert result[0] == pytest.approx(2.0)
        # Facing away is clamped to zero
        assert result[1] == 0.0
        assert result[2] == pytest.approx(0.0, abs=1e-7)

    def test_oblique_intensity_is_cosine(self):
        from metaballs.environment.lights import add_light, light_intensity, vec3

        add_light((0.0, 1.0, 1.0))
        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = light_intensity(0, vec3(0.0, 0.0, 1.0))

        test_kernel()
        assert result[None] == pytest.approx(1.0 / math.sqrt(2.0), abs=1e-6)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"direction": (0.0, 0.0, 0.0)},
            {"direction": (0.0, 0.0, 1.0), "color": (1.5, 0.0, 0.0)},
            {"direction": (0.0, 0.0, 1.0), "intensity": -1.0},
        ],
    )
    def test_invalid(self, kwargs):
        from metaballs.environment.lights import add_light

        with pytest.raises(ValueError):
            add_light(**kwargs)

    def test_capacity(self):
        from metaballs.environment.lights import MAX_LIGHTS, add_light

        for _ in range(MAX_LIGHTS):
            add_light((0.0, 1.0, 0.0))
        with pytest.raises(RuntimeError):
            add_light((0.0, 1.0, 0.0))

    def test_clear(self):
        from metaballs.environment.lights import add_light, clear_lights, get_light_count

        add_light((0.0, 1.0, 0.0))
        clear_lights()
        assert get_light_count() == 0


class TestModuleAnnotations:
    """Taichi reads @ti.func annotations at decoration time."""

    def test_annotations_are_not_postponed(self):
        import metaballs.environment.envmap as envmap
        import metaballs.environment.gradient as gradient

        for module in (gradient, envmap):
            assert not hasattr(module, "annotations")
