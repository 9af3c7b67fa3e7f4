"""Unit tests for the thin-lens camera module.

Tests cover:
- Default camera viewport geometry
- Orthonormal basis for arbitrary orientations
- Ray generation through the viewport (unnormalized directions)
- Pixel mapping with and without jitter
- Depth of field: lens offsets stay inside the aperture
- Parameter validation and dictionary round trips
"""

import math

import pytest
import taichi as ti


def _ray_for(s, t):
    """Generate one ray for (s, t); returns (origin, direction)."""
    from weekend_tracer.camera.thin_lens import get_ray

    origin = ti.Vector.field(3, dtype=ti.f32, shape=())
    direction = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        ray = get_ray(s, t)
        origin[None] = ray.origin
        direction[None] = ray.direction

    test_kernel()
    return tuple(origin[None]), tuple(direction[None])


def _assert_close(actual, expected, tol=1e-5):
    for a, e in zip(actual, expected):
        assert abs(a - e) < tol, f"{actual} != {expected}"


class TestDefaultCamera:
    """Tests for the fixed camera used by the early scenes."""

    def test_default_viewport(self):
        from weekend_tracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera.default())
        info = get_camera_info()

        _assert_close(info["origin"], (0.0, 0.0, 0.0))
        _assert_close(info["lower_left"], (-2.0, -1.0, -1.0))
        _assert_close(info["horizontal"], (4.0, 0.0, 0.0))
        _assert_close(info["vertical"], (0.0, 2.0, 0.0))
        assert info["lens_radius"] == 0.0

    def test_center_ray(self):
        from weekend_tracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera.default())
        origin, direction = _ray_for(0.5, 0.5)

        _assert_close(origin, (0.0, 0.0, 0.0))
        _assert_close(direction, (0.0, 0.0, -1.0))

    def test_corner_ray_is_not_normalized(self):
        from weekend_tracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera.default())
        _, direction = _ray_for(0.0, 0.0)

        _assert_close(direction, (-2.0, -1.0, -1.0))

    def test_top_right_ray(self):
        from weekend_tracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera.default())
        _, direction = _ray_for(1.0, 1.0)

        _assert_close(direction, (2.0, 1.0, -1.0))


class TestCameraBasis:
    """Tests for basis computation with look-at positioning."""

    def test_orthonormal_basis(self):
        from weekend_tracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(
            Camera(look_from=(13.0, 2.0, 3.0), look_at=(0.0, 0.0, 0.0), vfov=20.0, aspect_ratio=1.5)
        )
        info = get_camera_info()
        u, v, w = info["u"], info["v"], info["w"]

        def dot(a, b):
            return sum(x * y for x, y in zip(a, b))

        assert abs(dot(u, v)) < 1e-6
        assert abs(dot(u, w)) < 1e-6
        assert abs(dot(v, w)) < 1e-6
        for vec in (u, v, w):
            assert abs(dot(vec, vec) - 1.0) < 1e-5

    def test_w_points_backward(self):
        from weekend_tracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera(look_from=(0.0, 0.0, 3.0), look_at=(0.0, 0.0, 0.0)))
        info = get_camera_info()

        _assert_close(info["w"], (0.0, 0.0, 1.0))
        _assert_close(info["u"], (1.0, 0.0, 0.0))
        _assert_close(info["v"], (0.0, 1.0, 0.0))

    def test_viewport_scales_with_focus_distance(self):
        """The viewport sits at focus_dist and grows with it."""
        from weekend_tracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera(focus_dist=3.0))
        info = get_camera_info()

        _assert_close(info["horizontal"], (12.0, 0.0, 0.0), tol=1e-4)
        _assert_close(info["vertical"], (0.0, 6.0, 0.0), tol=1e-4)
        _assert_close(info["lower_left"], (-6.0, -3.0, -3.0), tol=1e-4)

    @pytest.mark.parametrize("vfov", [30.0, 60.0, 120.0])
    def test_vertical_extent_follows_vfov(self, vfov):
        from weekend_tracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera(vfov=vfov, aspect_ratio=1.0))
        info = get_camera_info()

        expected = 2.0 * math.tan(math.radians(vfov) / 2.0)
        assert abs(info["vertical"][1] - expected) < 1e-4
        assert abs(info["horizontal"][0] - expected) < 1e-4


class TestPixelRays:
    """Tests for get_ray_for_pixel."""

    def _pixel_ray_direction(self, i, j, width, height, jitter):
        from weekend_tracer.camera.thin_lens import get_ray_for_pixel

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            direction[None] = get_ray_for_pixel(i, j, width, height, jitter).direction

        test_kernel()
        return tuple(direction[None])

    def test_unjittered_pixel_uses_lower_left_corner(self):
        from weekend_tracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera.default())
        # s = 1/2, t = 1/2 for pixel (1, 1) of a 2x2 image
        direction = self._pixel_ray_direction(1, 1, 2, 2, 0)
        _assert_close(direction, (0.0, 0.0, -1.0))

        direction = self._pixel_ray_direction(0, 0, 2, 2, 0)
        _assert_close(direction, (-2.0, -1.0, -1.0))

    def test_jittered_pixel_stays_inside_pixel(self):
        from weekend_tracer.camera.thin_lens import Camera, get_ray_for_pixel, setup_camera

        setup_camera(Camera.default())
        min_x = ti.field(dtype=ti.f32, shape=())
        max_x = ti.field(dtype=ti.f32, shape=())
        min_x[None] = 100.0
        max_x[None] = -100.0

        @ti.kernel
        def test_kernel():
            for _ in range(1000):
                d = get_ray_for_pixel(0, 0, 4, 2, 1).direction
                ti.atomic_min(min_x[None], d.x)
                ti.atomic_max(max_x[None], d.x)

        test_kernel()
        # Pixel 0 of 4 spans s in [0, 0.25): x in [-2, -1)
        assert min_x[None] >= -2.0 - 1e-6
        assert max_x[None] < -1.0
        assert max_x[None] - min_x[None] > 0.5


class TestDepthOfField:
    """Tests for the finite-aperture lens."""

    def test_pinhole_origin_fixed(self):
        from weekend_tracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera(look_from=(1.0, 2.0, 3.0), look_at=(1.0, 2.0, 0.0)))
        for _ in range(3):
            origin, _ = _ray_for(0.3, 0.7)
            _assert_close(origin, (1.0, 2.0, 3.0))

    def test_lens_offsets_inside_aperture(self):
        from weekend_tracer.camera.thin_lens import Camera, get_ray, setup_camera

        setup_camera(
            Camera(
                look_from=(0.0, 0.0, 0.0),
                look_at=(0.0, 0.0, -1.0),
                aperture=0.4,
                focus_dist=2.0,
            )
        )
        max_offset = ti.field(dtype=ti.f32, shape=())
        max_z = ti.field(dtype=ti.f32, shape=())
        focus_miss = ti.field(dtype=ti.f32, shape=())
        max_offset[None] = 0.0
        max_z[None] = -100.0
        focus_miss[None] = 0.0

        @ti.kernel
        def test_kernel():
            for _ in range(1000):
                ray = get_ray(0.5, 0.5)
                ti.atomic_max(max_offset[None], ray.origin.norm())
                ti.atomic_max(max_z[None], ti.abs(ray.origin.z))
                # Every ray still passes through the in-focus target point
                target = ray.origin + ray.direction
                ti.atomic_max(focus_miss[None], (target - ti.math.vec3(0.0, 0.0, -2.0)).norm())

        test_kernel()
        assert max_offset[None] <= 0.2 + 1e-5
        assert max_offset[None] > 0.01
        # The lens lies in the u-v plane
        assert max_z[None] < 1e-6
        assert focus_miss[None] < 1e-4


class TestCameraValidation:
    """Tests for parameter validation."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"aspect_ratio": 0.0},
            {"aperture": -0.1},
            {"focus_dist": 0.0},
        ],
    )
    def test_out_of_range_parameters(self, kwargs):
        from weekend_tracer.camera.thin_lens import Camera, setup_camera

        with pytest.raises(ValueError):
            setup_camera(Camera(**kwargs))

    def test_coincident_look_points(self):
        from weekend_tracer.camera.thin_lens import Camera, setup_camera

        with pytest.raises(ValueError, match="different points"):
            setup_camera(Camera(look_from=(1.0, 1.0, 1.0), look_at=(1.0, 1.0, 1.0)))

    def test_vup_parallel_to_view(self):
        from weekend_tracer.camera.thin_lens import Camera, setup_camera

        with pytest.raises(ValueError, match="parallel"):
            setup_camera(Camera(look_from=(0.0, 0.0, 0.0), look_at=(0.0, 5.0, 0.0)))


class TestCameraConfig:
    """Tests for the Python-side camera description."""

    def test_looking_at_focuses_on_target(self):
        from weekend_tracer.camera.thin_lens import Camera

        camera = Camera.looking_at((3.0, 0.0, 4.0), (0.0, 0.0, 0.0), vfov=40.0, aspect_ratio=1.5)

        assert camera.focus_dist == pytest.approx(5.0)
        assert camera.aperture == 0.0
        assert camera.vup == (0.0, 1.0, 0.0)

    def test_dict_round_trip(self):
        from weekend_tracer.camera.thin_lens import Camera

        camera = Camera(look_from=(1.0, 2.0, 3.0), vfov=45.0, aperture=0.2, focus_dist=4.0)
        data = camera.to_dict()

        assert data["look_from"] == [1.0, 2.0, 3.0]
        assert Camera.from_dict(data) == camera

    def test_from_dict_defaults(self):
        from weekend_tracer.camera.thin_lens import Camera

        assert Camera.from_dict({}) == Camera.default()

    def test_from_dict_unknown_key(self):
        from weekend_tracer.camera.thin_lens import Camera

        with pytest.raises(ValueError, match="Unknown camera keys"):
            Camera.from_dict({"fov": 90.0})

    def test_from_dict_bad_vector(self):
        from weekend_tracer.camera.thin_lens import Camera

        with pytest.raises(ValueError, match="3 components"):
            Camera.from_dict({"look_at": [0.0, 1.0]})

    def test_camera_is_immutable(self):
        import dataclasses

        from weekend_tracer.camera.thin_lens import Camera

        camera = Camera.default()

        with pytest.raises(dataclasses.FrozenInstanceError):
            camera.vfov = 30.0
        assert dataclasses.replace(camera, vfov=30.0).vfov == 30.0
