"""
Unit tests for periodicstats.box.
"""
import numpy as np
import pytest

from periodicstats.box import Box, check_points


class TestBoxConstruction:
    """Tests for building boxes."""

    @pytest.mark.parametrize("lengths", [(0, 1, 1), (1, -2, 1), (1, 1, -1),
                                         (np.inf, 1, 1)])
    def test_non_positive_lengths_rejected(self, lengths):
        with pytest.raises(ValueError):
            Box(*lengths, is2D=False)

    def test_zero_lz_is_2d(self):
        box = Box(4, 5)
        assert box.is2D
        assert box.dimensions == 2
        assert box.Lz == 0
        assert box.volume == pytest.approx(20)

    def test_3d_volume(self):
        box = Box(2, 3, 4)
        assert not box.is2D
        assert box.volume == pytest.approx(24)

    def test_2d_ignores_lz(self):
        box = Box(4, 5, 6, is2D=True)
        assert box.Lz == 0

    def test_periodic_flags(self):
        box = Box(1, 1, 1, periodic=[True, False, True])
        assert box.periodic_x and not box.periodic_y and box.periodic_z
        assert Box(1, 1, 1, periodic=False).periodic.tolist() == [False]*3

    def test_bad_periodic_flags(self):
        with pytest.raises(ValueError):
            Box(1, 1, 1, periodic=[True, False])

    def test_lengths_read_only(self):
        box = Box.cube(3)
        with pytest.raises(ValueError):
            box.L[0] = 1

    def test_from_box(self):
        assert Box.from_box([2, 3]) == Box(2, 3)
        assert Box.from_box([2, 3, 4]) == Box(2, 3, 4)
        assert Box.from_box([2, 3, 4], dimensions=2) == Box(2, 3)
        assert Box.from_box({"Lx": 2, "Ly": 3, "Lz": 4}) == Box(2, 3, 4)
        box = Box.cube(5)
        assert Box.from_box(box) is box

    def test_from_box_invalid(self):
        with pytest.raises(ValueError):
            Box.from_box([1, 2, 3, 4])
        with pytest.raises(ValueError):
            Box.from_box([1, 2], dimensions=3)


class TestWrap:
    """Tests for the minimum image convention."""

    @pytest.fixture
    def box(self):
        return Box.cube(10)

    def test_no_wrap(self, box):
        np.testing.assert_allclose(box.wrap([2.0, 3.0, -4.0]),
                                   [2.0, 3.0, -4.0])

    def test_wrap_positive(self, box):
        np.testing.assert_allclose(box.wrap([8.0, 0.0, 0.0]),
                                   [-2.0, 0.0, 0.0])

    def test_wrap_negative(self, box):
        np.testing.assert_allclose(box.wrap([-7.0, 0.0, 0.0]),
                                   [3.0, 0.0, 0.0])

    def test_wrap_many_images(self, box):
        np.testing.assert_allclose(box.wrap([33.0, -41.0, 0.0]),
                                   [3.0, -1.0, 0.0])

    def test_exactly_half_box(self, box):
        wrapped = box.wrap([[5.0, -5.0, 0.0]])
        np.testing.assert_allclose(wrapped, [[5.0, 5.0, 0.0]])

    def test_batch_in_range(self, box):
        rng = np.random.default_rng(0)
        wrapped = box.wrap(rng.normal(scale=50, size=(500, 3)))
        assert wrapped.shape == (500, 3)
        assert np.all(wrapped > -5.0)
        assert np.all(wrapped <= 5.0)

    def test_does_not_modify_input(self, box):
        vecs = np.array([[8.0, 0.0, 0.0]])
        box.wrap(vecs)
        assert vecs[0, 0] == 8.0

    def test_non_periodic_axis_passes_through(self):
        box = Box(10, 10, 10, periodic=[True, False, True])
        np.testing.assert_allclose(box.wrap([8.0, 8.0, 8.0]),
                                   [-2.0, 8.0, -2.0])

    def test_2d_leaves_z(self):
        box = Box.square(10)
        np.testing.assert_allclose(box.wrap([8.0, -8.0, 7.0]),
                                   [-2.0, 2.0, 7.0])

    def test_2d_vectors(self):
        box = Box.square(10)
        wrapped = box.wrap([[8.0, 0.0], [-7.0, 4.0]])
        assert wrapped.shape == (2, 2)
        np.testing.assert_allclose(wrapped, [[-2.0, 0.0], [3.0, 4.0]])
        np.testing.assert_allclose(box.wrap([8.0, -8.0]), [-2.0, 2.0])

    def test_2d_vectors_need_2d_box(self, box):
        with pytest.raises(ValueError):
            box.wrap([[8.0, 0.0]])
        with pytest.raises(ValueError):
            Box.square(10).wrap([[1.0, 2.0, 3.0, 4.0]])

    def test_fractional_coordinates(self, box):
        np.testing.assert_allclose(box.make_fractional([0.0, -5.0, 2.5]),
                                   [0.5, 0.0, 0.75])
        np.testing.assert_allclose(box.make_absolute([0.5, 0.0, 0.75]),
                                   [0.0, -5.0, 2.5])

    def test_absolute_undoes_fractional(self):
        rng = np.random.default_rng(3)
        box = Box(8, 10, 12)
        points = rng.uniform(-4, 4, size=(50, 3))
        fractions = box.make_fractional(points)
        assert np.all(fractions >= 0) and np.all(fractions < 1)
        np.testing.assert_allclose(box.make_absolute(fractions), points,
                                   atol=1e-12)

    def test_absolute_undoes_fractional_2d(self):
        rng = np.random.default_rng(4)
        box = Box.square(6)
        points = rng.uniform(-3, 3, size=(50, 2))
        fractions = box.make_fractional(points)
        assert fractions.shape == (50, 2)
        np.testing.assert_allclose(box.make_absolute(fractions), points,
                                   atol=1e-12)


class TestDistances:
    """Tests for minimum image distances."""

    def test_all_distances_match_brute_force(self):
        rng = np.random.default_rng(1)
        box = Box(8, 10, 12)
        points = rng.uniform(-4, 4, size=(30, 3))
        query_points = rng.uniform(-4, 4, size=(20, 3))

        distances = box.compute_all_distances(points, query_points)
        assert distances.shape == (30, 20)

        delta = query_points[None, :, :] - points[:, None, :]
        delta -= box.L*np.round(delta/box.L)
        expected = np.linalg.norm(delta, axis=-1)
        np.testing.assert_allclose(distances, expected, atol=1e-12)

    def test_distance_across_boundary(self):
        box = Box.cube(10)
        distances = box.compute_all_distances([[4.5, 0, 0]], [[-4.5, 0, 0]])
        np.testing.assert_allclose(distances, [[1.0]])

    def test_non_periodic_distance(self):
        box = Box(10, 10, 10, periodic=False)
        distances = box.compute_all_distances([[4.5, 0, 0]], [[-4.5, 0, 0]])
        np.testing.assert_allclose(distances, [[9.0]])

    def test_2d_distances_ignore_z(self):
        box = Box.square(10)
        distances = box.compute_all_distances([[0, 0, 3]], [[3, 4, -2]])
        np.testing.assert_allclose(distances, [[5.0]])

    def test_paired_distances(self):
        box = Box.cube(10)
        d = box.compute_distances([[0, 0, 0], [4, 4, 4]],
                                  [[0, 3, 4], [-4, 4, 4]])
        np.testing.assert_allclose(d, [5.0, 2.0])


class TestCheckPoints:
    """Tests for point validation."""

    def test_pads_2d_points(self):
        points = check_points(np.ones((4, 2)), Box.square(3))
        assert points.shape == (4, 3)
        assert np.all(points[:, 2] == 0)

    def test_2d_points_need_2d_box(self):
        with pytest.raises(ValueError):
            check_points(np.ones((4, 2)), Box.cube(3))

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            check_points(np.ones((4, 5)), Box.cube(3))
