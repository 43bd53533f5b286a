"""Tests for the Voronoi-backed sample map."""

import pytest
import numpy as np
from py_habitat.core.sample_map import (
    GradStrategy, IDWStrategy, NearestStrategy, SampleMapParams, SamplePoint
)
from py_habitat.core.voronoi_sample_map import (
    VoronoiSampleMap, generate_tessellation, get_boundary_points, get_jittered_grid
)


@pytest.fixture(scope="module")
def tessellation():
    return generate_tessellation(50, 50, SampleMapParams(scale=5.0, seed="test"))


class TestJitteredGrid:
    """Test jittered grid generation."""

    def test_grid_size(self):
        points = get_jittered_grid(50, 50, 5, "test_seed")
        assert len(points) == 100

    def test_point_bounds(self):
        points = get_jittered_grid(50, 50, 5, "test_seed")

        assert np.all(points >= 0)
        assert np.all(points[:, 0] <= 50)
        assert np.all(points[:, 1] <= 50)

    def test_jittering_consistency(self):
        points1 = get_jittered_grid(50, 50, 5, "test_seed")
        points2 = get_jittered_grid(50, 50, 5, "test_seed")
        np.testing.assert_array_equal(points1, points2)

    def test_different_seeds(self):
        points1 = get_jittered_grid(50, 50, 5, "seed1")
        points2 = get_jittered_grid(50, 50, 5, "seed2")
        assert not np.array_equal(points1, points2)

    def test_no_jitter_is_regular(self):
        points = get_jittered_grid(20, 20, 10, "any", jitter=0.0)
        np.testing.assert_array_equal(points, [[5, 5], [15, 5], [5, 15], [15, 15]])


class TestBoundaryPoints:
    """Test boundary point generation."""

    def test_outside_map(self):
        boundary = get_boundary_points(50, 50, 5)

        assert len(boundary) > 0
        on_edge = (
            (boundary[:, 0] <= 0) | (boundary[:, 0] >= 50)
            | (boundary[:, 1] <= 0) | (boundary[:, 1] >= 50)
        )
        assert np.all(on_edge)


class TestTessellation:
    """Test tessellation structure."""

    def test_site_count(self, tessellation):
        assert len(tessellation) == 100
        assert len(tessellation.points()) == 100
        assert tessellation.point(7).index == 7

    def test_neighbors_symmetric(self, tessellation):
        for point in tessellation.points():
            for neighbor in tessellation.neighbors(point):
                assert point in tessellation.neighbors(neighbor)

    def test_no_self_neighbors(self, tessellation):
        for point in tessellation.points():
            neighbors = tessellation.neighbors(point)
            assert point not in neighbors
            assert len(neighbors) > 0

    def test_border_flags(self, tessellation):
        """Sites along the map edge are border cells, central ones are not."""
        flags = tessellation.border_flags
        assert flags.sum() > 0
        center = np.argmin(np.hypot(tessellation.sites[:, 0] - 25, tessellation.sites[:, 1] - 25))
        assert flags[center] == 0

    def test_foreign_point_rejected(self, tessellation):
        with pytest.raises(KeyError):
            tessellation.neighbors(SamplePoint(0, -100.0, -100.0))
        with pytest.raises(KeyError):
            tessellation.neighbors(SamplePoint(10_000, 1.0, 1.0))

    def test_deterministic(self):
        params = SampleMapParams(scale=5.0, seed="repeat")
        first = generate_tessellation(30, 30, params)
        second = generate_tessellation(30, 30, params)

        np.testing.assert_array_equal(first.sites, second.sites)
        assert first.cell_neighbors == second.cell_neighbors
        assert first.points() == second.points()

    @pytest.mark.parametrize("width,height,scale", [(0, 10, 1), (10, -1, 1), (10, 10, 0)])
    def test_invalid_dimensions(self, width, height, scale):
        with pytest.raises(ValueError):
            generate_tessellation(width, height, SampleMapParams(scale=scale))


class TestVoronoiSampleMap:
    """Test map construction and interpolation."""

    def test_from_array_skips_nan(self, tessellation):
        values = np.arange(len(tessellation), dtype=float)
        values[::2] = np.nan
        sample_map = VoronoiSampleMap.from_array(tessellation, values)

        assert len(sample_map) == 50
        assert tessellation.point(0) not in sample_map
        assert sample_map[tessellation.point(1)] == 1.0
        np.testing.assert_array_equal(sample_map.to_array(), values)

    def test_from_array_shape_mismatch(self, tessellation):
        with pytest.raises(ValueError):
            VoronoiSampleMap.from_array(tessellation, np.zeros(3))

    def test_foreign_point_rejected(self, tessellation):
        with pytest.raises(KeyError):
            VoronoiSampleMap(tessellation, {SamplePoint(0, -1.0, -1.0): 1.0})

    def test_params_shared(self, tessellation):
        sample_map = VoronoiSampleMap.from_function(tessellation, lambda x, y: x)
        assert sample_map.params is tessellation.params
        assert sample_map.derive([]).tessellation is tessellation

    def test_idw_exact_at_site(self, tessellation):
        sample_map = VoronoiSampleMap.from_function(tessellation, lambda x, y: x * y)
        method = IDWStrategy.default_from_params(sample_map.params)

        for point in tessellation.points()[:10]:
            assert sample_map.interpolate(point.x, point.y, method) == pytest.approx(point.x * point.y)

    def test_idw_within_sample_range(self, tessellation):
        sample_map = VoronoiSampleMap.from_function(tessellation, lambda x, y: x)
        method = IDWStrategy.default_from_params(sample_map.params)
        value = sample_map.interpolate(25.3, 24.1, method)

        assert 0 <= value <= 50

    def test_out_of_range_is_none(self, tessellation):
        sample_map = VoronoiSampleMap.from_function(tessellation, lambda x, y: 1.0)
        method = IDWStrategy.default_from_params(sample_map.params)
        assert sample_map.interpolate(500.0, 500.0, method) is None

    def test_interpolation_ignores_absent_sites(self, tessellation):
        """Only sites in the map's domain contribute."""
        center = tessellation.point(55)
        sample_map = VoronoiSampleMap(tessellation, {center: 7.0})

        method = NearestStrategy(search_radius=100.0)
        assert sample_map.interpolate(0.0, 0.0, method) == 7.0

        method = IDWStrategy(search_radius=1.0)
        assert sample_map.interpolate(center.x + 3.0, center.y, method) is None

    def test_constant_field_has_zero_gradient(self, tessellation):
        sample_map = VoronoiSampleMap.from_function(tessellation, lambda x, y: 12.0)
        params = sample_map.params
        method = IDWStrategy.default_from_params(params)

        for point in tessellation.points():
            gradient = sample_map.get_gradient(point.x, point.y, GradStrategy(delta=params.scale), method)
            assert gradient is not None
            assert gradient.value == pytest.approx(0.0, abs=1e-9)

    def test_gradient_scales_with_field(self, tessellation):
        """IDW is linear in values, so doubling the field doubles the gradient."""
        gentle = VoronoiSampleMap.from_function(tessellation, lambda x, y: x + 0.5 * y)
        steep = VoronoiSampleMap.from_function(tessellation, lambda x, y: 2 * x + y)
        strategy = GradStrategy(delta=gentle.params.scale)
        method = IDWStrategy.default_from_params(gentle.params)

        for point in tessellation.points()[::7]:
            g1 = gentle.get_gradient(point.x, point.y, strategy, method)
            g2 = steep.get_gradient(point.x, point.y, strategy, method)
            assert g1.value > 0
            assert g2.value == pytest.approx(2 * g1.value)
