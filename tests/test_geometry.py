import pytest

from geometry.matrix import Matrix33
from geometry.primitives import Index, NumberRange, Point, Point2D, Point3D, Size, Spacing, round_half_up
from geometry.volume_geometry import Geometry


def _geometry(n_slices: int = 3) -> Geometry:
    origins = [Point3D(1.0, 2.0, 3.0 + 2.0 * k) for k in range(n_slices)]
    return Geometry(origins, Size([4, 5, n_slices]), Spacing([0.5, 0.5, 2.0]))


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(-0.5) == 0
    assert round_half_up(1.49) == 1
    assert round_half_up(-1.5) == -1


def test_primitives_reject_non_finite():
    with pytest.raises(ValueError):
        Point2D(float("nan"), 0.0)
    with pytest.raises(ValueError):
        Index((0, float("inf"), 0))
    with pytest.raises(ValueError):
        Point((1.0,))


def test_index_world_round_trip_3d():
    g = _geometry()
    for k in range(3):
        for j in range(5):
            for i in range(4):
                index = Index((i, j, k))
                world = g.index_to_world(index)
                assert world is not None
                assert g.world_to_index(world) == index

    assert g.has_slices_at_time(1)
    assert not g.has_slices_at_time(5)


def test_index_to_world_uses_origins_and_spacing():
    g = _geometry()
    world = g.index_to_world(Index((2, 4, 1)))
    assert world is not None
    assert world.values == pytest.approx((2.0, 4.0, 5.0))


def test_index_world_round_trip_4d():
    origins = [Point3D(0.0, 0.0, float(k)) for k in range(2)]
    g = Geometry(origins, Size([3, 3, 2]), Spacing([1.0, 1.0, 1.0]), time=0)
    g.append_frame(Point3D(0.0, 0.0, 0.0), 1)
    assert g.get_size().values == (3, 3, 2, 2)

    for t in range(2):
        for k in range(2):
            index = Index((1, 2, k, t))
            world = g.index_to_world(index)
            assert world is not None
            assert len(world) == 4
            assert g.world_to_index(world) == index


def test_world_to_index_out_of_bounds_and_incomparable():
    g = _geometry()
    assert g.world_to_index(Point((-100.0, 0.0, 3.0))) is None
    assert g.world_to_index(Point((1.0, 2.0, 100.0))) is None
    assert g.world_to_index(Point((1.0, 2.0))) is None
    assert g.is_in_bounds(Point((1.0, 2.0, 3.0)))


def test_get_slice_index():
    origins = [Point3D(0.0, 0.0, float(z)) for z in range(3)]
    g = Geometry(origins, Size([2, 2, 3]), Spacing([1.0, 1.0, 1.0]))
    assert g.get_slice_index(Point3D(0.0, 0.0, -1.0)) == 0
    assert g.get_slice_index(Point3D(0.0, 0.0, 1.5)) == 2
    assert g.get_slice_index(Point3D(0.0, 0.0, 5.0)) == 3


def test_get_slice_index_on_an_origin_is_that_origin():
    origins = [Point3D(0.0, 0.0, float(z)) for z in range(3)]
    g = Geometry(origins, Size([2, 2, 3]), Spacing([1.0, 1.0, 1.0]))
    assert g.get_slice_index(Point3D(0.0, 0.0, 1.0)) == 1
    assert g.get_slice_index(Point3D(0.0, 0.0, 0.0)) == 0


def _flipped_irregular_geometry() -> Geometry:
    # normal points to -z, slices are unevenly spaced
    origins = [Point3D(0.0, 0.0, -z) for z in (0.0, 1.0, 3.0, 7.0)]
    orientation = Matrix33([1, 0, 0, 0, -1, 0, 0, 0, -1])
    return Geometry(origins, Size([2, 2, 4]), Spacing([1.0, 1.0, 1.0]), orientation)


def test_irregular_origins_with_flipped_normal_round_trip():
    g = _flipped_irregular_geometry()
    for k in range(4):
        for j in range(2):
            for i in range(2):
                index = Index((i, j, k))
                world = g.index_to_world(index)
                assert world is not None
                assert g.world_to_index(world) == index


def test_irregular_origins_interpolate_between_slices():
    g = _flipped_irregular_geometry()
    assert g.index_to_world(Index((1, 1, 2))).values == pytest.approx((1.0, -1.0, -3.0))
    # halfway between the origins at z=-3 and z=-7
    point = g.world_to_point(Point((0.0, 0.0, -5.0)))
    assert point.values[2] == pytest.approx(2.5)
    assert g.world_to_index(Point((0.0, 0.0, -5.0))) == Index((0, 0, 3))
    assert g.get_slice_index(Point3D(0.0, 0.0, -5.0)) == 3


def test_append_origin_leaves_earlier_origins_untouched():
    g = Geometry([Point3D(0.0, 0.0, 0.0), Point3D(0.0, 0.0, 1.0)], Size([2, 2, 2]), Spacing([1.0, 1.0, 1.0]))
    before = g.get_origins()
    worlds = [g.index_to_world(Index((1, 0, k))) for k in range(2)]

    g.append_origin(Point3D(0.0, 0.0, 2.0), 2)

    assert before == (Point3D(0.0, 0.0, 0.0), Point3D(0.0, 0.0, 1.0))
    assert len(g.get_origins()) == 3
    assert g.get_origins()[:2] == before
    assert [g.index_to_world(Index((1, 0, k))) for k in range(2)] == worlds


def test_append_origin_grows_size():
    origins = [Point3D(0.0, 0.0, 0.0), Point3D(0.0, 0.0, 1.0)]
    g = Geometry(origins, Size([2, 2, 2]), Spacing([1.0, 1.0, 1.0]))
    index = g.get_slice_index(Point3D(0.0, 0.0, 2.0))
    g.append_origin(Point3D(0.0, 0.0, 2.0), index)

    assert g.get_current_num_slices() == 3
    assert g.get_size().values[2] == 3
    assert g.world_to_index(Point((0.0, 0.0, 2.0))) == Index((0, 0, 2))

    with pytest.raises(ValueError):
        g.append_origin(Point3D(0.0, 0.0, 9.0), 10)


def test_geometry_rejects_bad_input():
    with pytest.raises(ValueError):
        Geometry([], Size([2, 2, 1]), Spacing([1.0, 1.0, 1.0]))
    with pytest.raises(ValueError):
        Geometry([Point3D(0, 0, 0)], Size([2, 2, 1]), Spacing([1.0, 1.0]))
    with pytest.raises(ValueError):
        Geometry([Point3D(0, 0, 0)], Size([2, 2, 1]), Spacing([1.0, 1.0, 1.0]), Matrix33([0] * 9))


def test_matrix_inverse():
    m = Matrix33([2, 0, 0, 0, 4, 0, 0, 0, 1])
    inv = m.get_inverse()
    assert inv is not None
    assert m.multiply(inv).equals(Matrix33.identity())
    assert Matrix33([1, 2, 3, 2, 4, 6, 0, 0, 1]).get_inverse() is None


def test_geometry_equals_and_number_range():
    def make():
        return Geometry([Point3D(0.0, 0.0, 0.0)], Size([2, 2, 1]), Spacing([1.0, 1.0, 1.0]))

    g = make()
    assert g.equals(make())
    assert not g.equals(None)
    g.append_origin(Point3D(0.0, 0.0, 1.0), 1)
    assert not g.equals(make())

    r = NumberRange(-1.0, 3.0)
    assert r.contains(0) and not r.contains(4)
    assert r.width() == 4
    with pytest.raises(ValueError):
        NumberRange(2.0, 1.0)
