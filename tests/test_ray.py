"""Unit tests for ray and vector utilities.

Tests cover:
- Ray construction and evaluation (including negative t)
- Linear interpolation of scalars and vectors
- Reflection about a normal
- Safe normalization with fallback
"""

import taichi as ti


class TestRay:
    """Tests for the Ray dataclass."""

    def test_ray_at(self):
        """Test evaluating points along a ray."""
        from metaballs.core.ray import make_ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 2.0, 3.0), vec3(0.0, 0.0, 1.0))
            result[0] = ray_at(ray, 0.0)
            result[1] = ray_at(ray, 2.5)
            result[2] = ray_at(ray, -1.0)

        test_kernel()
        p = result[0]
        assert (p[0], p[1], p[2]) == (1.0, 2.0, 3.0)
        assert abs(result[1][2] - 5.5) < 1e-6
        # Negative t lies behind the origin
        assert abs(result[2][2] - 2.0) < 1e-6


class TestLerp:
    """Tests for linear interpolation."""

    def test_lerp_scalar(self):
        """Test lerp endpoints and midpoint for scalars."""
        from metaballs.core.ray import lerp

        result = ti.field(dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = lerp(2.0, 6.0, 0.0)
            result[1] = lerp(2.0, 6.0, 1.0)
            result[2] = lerp(2.0, 6.0, 0.25)

        test_kernel()
        assert abs(result[0] - 2.0) < 1e-6
        assert abs(result[1] - 6.0) < 1e-6
        assert abs(result[2] - 3.0) < 1e-6

    def test_lerp_vector(self):
        """Test lerp on vectors interpolates each component."""
        from metaballs.core.ray import lerp, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = lerp(vec3(0.0, 1.0, -2.0), vec3(2.0, 3.0, 2.0), 0.5)

        test_kernel()
        v = result[None]
        assert abs(v[0] - 1.0) < 1e-6
        assert abs(v[1] - 2.0) < 1e-6
        assert abs(v[2]) < 1e-6


class TestReflect:
    """Tests for reflection."""

    def test_reflect_head_on(self):
        """A ray hitting a surface head-on bounces straight back."""
        from metaballs.core.ray import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(0.0, 0.0, 1.0), vec3(0.0, 0.0, -1.0))

        test_kernel()
        v = result[None]
        assert abs(v[2] + 1.0) < 1e-6

    def test_reflect_45_degrees(self):
        """Test reflection keeps the tangential component."""
        from metaballs.core.ray import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            d = ti.math.normalize(vec3(1.0, -1.0, 0.0))
            result[None] = reflect(d, vec3(0.0, 1.0, 0.0))

        test_kernel()
        v = result[None]
        s = 1.0 / 2.0**0.5
        assert abs(v[0] - s) < 1e-6
        assert abs(v[1] - s) < 1e-6


class TestSafeNormalize:
    """Tests for normalization with a fallback."""

    def test_normalizes_nonzero(self):
        from metaballs.core.ray import safe_normalize, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = safe_normalize(vec3(3.0, 0.0, 4.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        v = result[None]
        assert abs(v[0] - 0.6) < 1e-6
        assert abs(v[2] - 0.8) < 1e-6

    def test_zero_vector_returns_fallback(self):
        """Zero input returns the fallback instead of NaN."""
        from metaballs.core.ray import safe_normalize, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = safe_normalize(vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        v = result[None]
        assert (v[0], v[1], v[2]) == (0.0, 1.0, 0.0)
