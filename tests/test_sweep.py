"""Tests for the event sweep and isosurface search.

Tests cover:
- End-to-end hit on the default two-ball scene
- Active set bookkeeping (empty after all events)
- Zero-radius balls generating no events
- Identity of structurally identical balls
- Crossings found against the sample carried over from a previous interval
- Misses and the field-weighted normal fallback
- Surface parameter validation
"""

import pytest
import taichi as ti

ORIGIN = (0.0, 0.0, -3.0)
FORWARD = (0.0, 0.0, 1.0)


class TestDefaultScene:
    """Tests on the default pair of metaballs seen head-on."""

    def test_center_ray_hits_between_balls(self, two_ball_scene):
        from metaballs.core.integrator import trace_surface_hit

        hit = trace_surface_hit(ORIGIN, FORWARD)
        assert hit["hit"]
        # Both bounding spheres are entered at z = -0.8; the surface lies
        # where 2 * smooth(1 - d) = 0.3, at z close to -0.38
        z = hit["point"][2]
        assert -0.8 < z < 0.0
        assert z == pytest.approx(-0.38, abs=0.01)
        assert hit["t"] == pytest.approx(z + 3.0, abs=1e-4)

    def test_center_normal_faces_camera(self, two_ball_scene):
        from metaballs.core.integrator import trace_surface_hit

        hit = trace_surface_hit(ORIGIN, FORWARD)
        nx, ny, nz = hit["normal"]
        assert nz == pytest.approx(-1.0, abs=1e-4)
        assert abs(nx) < 1e-3
        assert abs(ny) < 1e-3

    def test_normal_is_unit_length(self, two_ball_scene):
        from metaballs.core.integrator import trace_surface_hit

        hit = trace_surface_hit(ORIGIN, (0.2, 0.1, 1.0))
        assert hit["hit"]
        length = sum(c * c for c in hit["normal"]) ** 0.5
        assert length == pytest.approx(1.0, abs=1e-5)

    def test_active_set_ends_empty(self, two_ball_scene):
        from metaballs.core.integrator import trace_surface_hit

        hit = trace_surface_hit(ORIGIN, FORWARD)
        assert hit["event_count"] == 4
        assert hit["active_count"] == 0

    def test_miss(self, two_ball_scene):
        from metaballs.core.integrator import trace_surface_hit

        hit = trace_surface_hit((0.0, 5.0, -3.0), FORWARD)
        assert not hit["hit"]
        assert hit["event_count"] == 0
        assert hit["active_count"] == 0

    def test_grazing_ray_misses_surface(self, two_ball_scene):
        """A ray through the bounding spheres but below the level escapes."""
        from metaballs.core.integrator import trace_surface_hit

        hit = trace_surface_hit((0.0, 0.7, -3.0), FORWARD)
        assert not hit["hit"]
        assert hit["event_count"] == 4
        assert hit["active_count"] == 0


class TestBallIdentity:
    """Tests for balls tracked by index in the active set."""

    def test_zero_radius_ball_is_skipped(self):
        from metaballs.core.integrator import trace_surface_hit
        from metaballs.scene.storage import add_metaball

        add_metaball((0.0, 0.0, 0.0), 0.0, 1.0)
        hit = trace_surface_hit(ORIGIN, FORWARD)
        assert not hit["hit"]
        assert hit["event_count"] == 0

    def test_zero_radius_ball_does_not_change_hit(self, two_ball_scene):
        from metaballs.core.integrator import trace_surface_hit
        from metaballs.scene.storage import add_metaball

        before = trace_surface_hit(ORIGIN, FORWARD)
        add_metaball((0.0, 0.0, -0.5), 0.0, 1.0)
        after = trace_surface_hit(ORIGIN, FORWARD)
        assert after["event_count"] == 4
        assert after["t"] == pytest.approx(before["t"], abs=1e-6)

    def test_duplicate_balls_add_up(self):
        """Two identical balls act like one ball of twice the strength."""
        from metaballs.core.integrator import trace_surface_hit
        from metaballs.scene.storage import add_metaball, clear_scene

        add_metaball((0.0, 0.0, 0.0), 1.0, 1.0)
        add_metaball((0.0, 0.0, 0.0), 1.0, 1.0)
        pair = trace_surface_hit(ORIGIN, FORWARD)

        clear_scene()
        add_metaball((0.0, 0.0, 0.0), 1.0, 2.0)
        single = trace_surface_hit(ORIGIN, FORWARD)

        assert pair["hit"] and single["hit"]
        assert pair["event_count"] == 4
        assert pair["active_count"] == 0
        assert pair["t"] == pytest.approx(single["t"], abs=1e-5)

    def test_identical_separate_balls(self):
        """Balls with equal radius and strength stay independent members."""
        from metaballs.core.integrator import trace_surface_hit
        from metaballs.scene.storage import add_metaball, clear_scene

        origin = (-10.0, 0.0, 0.0)
        direction = (1.0, 0.0, 0.0)

        add_metaball((-5.0, 0.0, 0.0), 1.0, 1.0)
        add_metaball((5.0, 0.0, 0.0), 1.0, 1.0)
        pair = trace_surface_hit(origin, direction)

        clear_scene()
        add_metaball((-5.0, 0.0, 0.0), 1.0, 1.0)
        single = trace_surface_hit(origin, direction)

        assert pair["hit"] and single["hit"]
        assert pair["event_count"] == 4
        assert pair["active_count"] == 0
        assert pair["t"] == pytest.approx(single["t"], abs=1e-6)
        assert pair["normal"][0] == pytest.approx(single["normal"][0], abs=1e-6)
        # Single ball of strength 1 reaches 0.3 about 0.61 from its center
        assert pair["point"][0] == pytest.approx(-5.61, abs=0.02)


class TestSamplingPolicy:
    """Tests for the first sample of an interval."""

    def test_crossing_against_carried_sample(self):
        """With one sample per interval, the crossing spans two intervals.

        A large ball is entered at t = 2 and a tiny ball occupies
        t in [2.2, 2.4]. Samples fall at t = 2.0, 2.2 and 2.4 only; the
        level is crossed between the last two, which belong to different
        intervals.
        """
        from metaballs.core.integrator import trace_surface_hit
        from metaballs.core.sweep import setup_surface
        from metaballs.scene.storage import add_metaball

        setup_surface(level=0.3, step_count=1)
        add_metaball((0.0, 0.0, 0.0), 1.0, 1.0)
        add_metaball((0.0, 0.0, -0.7), 0.1, 1.0)

        hit = trace_surface_hit(ORIGIN, FORWARD)
        assert hit["hit"]
        assert hit["event_count"] == 4
        # q(2.2) = smooth(0.2) = 0.05792, q(2.4) = smooth(0.4) = 0.31744
        expected = 2.2 + 0.2 * (0.3 - 0.05792) / (0.31744 - 0.05792)
        assert hit["t"] == pytest.approx(expected, abs=1e-3)

    def test_more_steps_converge(self, two_ball_scene):
        from metaballs.core.integrator import trace_surface_hit
        from metaballs.core.sweep import setup_surface

        setup_surface(level=0.3, step_count=1000)
        fine = trace_surface_hit(ORIGIN, FORWARD)
        assert fine["point"][2] == pytest.approx(-0.3798, abs=2e-3)

    def test_higher_level_hits_later(self, two_ball_scene):
        from metaballs.core.integrator import trace_surface_hit
        from metaballs.core.sweep import setup_surface

        low = trace_surface_hit(ORIGIN, FORWARD)
        setup_surface(level=0.6)
        high = trace_surface_hit(ORIGIN, FORWARD)
        assert high["hit"]
        assert high["t"] > low["t"]


class TestNormalEstimate:
    """Tests for the field-weighted normal."""

    def test_no_active_balls_returns_fallback(self, two_ball_scene):
        from metaballs.core.sweep import estimate_normal, vec3
        from metaballs.scene.storage import MAX_METABALLS

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                active = ti.Vector([0 for _k in range(MAX_METABALLS)], dt=ti.i32)
                result[None] = estimate_normal(active, vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))

        test_kernel()
        n = result[None]
        assert (n[0], n[1], n[2]) == (0.0, 0.0, -1.0)

    def test_symmetric_point_uses_fallback(self, two_ball_scene):
        """Opposite per-ball normals cancel at the midpoint."""
        from metaballs.core.sweep import estimate_normal, vec3
        from metaballs.scene.storage import MAX_METABALLS

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                active = ti.Vector([0 for _k in range(MAX_METABALLS)], dt=ti.i32)
                active[0] = 1
                active[1] = 1
                result[None] = estimate_normal(active, vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        n = result[None]
        assert (n[0], n[1], n[2]) == (0.0, 1.0, 0.0)


class TestSurfaceParams:
    """Tests for surface parameter validation."""

    def test_defaults(self):
        from metaballs.core.sweep import get_surface_params

        assert get_surface_params() == (pytest.approx(0.3), 10)

    @pytest.mark.parametrize("level,steps", [(0.0, 10), (-1.0, 10), (0.3, 0), (0.3, 10**6)])
    def test_invalid(self, level, steps):
        from metaballs.core.sweep import setup_surface

        with pytest.raises(ValueError):
            setup_surface(level, steps)
