import pytest

from geometry.matrix import Matrix33
from geometry.orientation import (
    get_coronal_mat33,
    get_orientation_from_cosines,
    get_orientation_name,
    get_sagittal_mat33,
)
from geometry.plane_helper import PlaneHelper
from geometry.primitives import Index, Point, Point2D, Point3D, Size, Spacing
from geometry.volume_geometry import Geometry


def _axial_geometry() -> Geometry:
    origins = [Point3D(0.0, 0.0, float(k)) for k in range(4)]
    return Geometry(origins, Size([10, 8, 4]), Spacing([1.0, 1.0, 1.0]))


@pytest.mark.parametrize(
    "cosines,name",
    [
        ([1, 0, 0, 0, 1, 0], "axial"),
        ([1, 0, 0, 0, 0, -1], "coronal"),
        ([0, 1, 0, 0, 0, -1], "sagittal"),
        ([0.99, 0.01, 0, 0, 0.02, -0.98], "coronal"),
    ],
)
def test_orientation_name(cosines, name):
    assert get_orientation_name(cosines) == name


def test_orientation_name_needs_six_values():
    assert get_orientation_name([1, 0, 0]) is None
    assert get_orientation_from_cosines(None) is None


def test_orientation_from_cosines_adds_normal():
    m = get_orientation_from_cosines([1, 0, 0, 0, 1, 0])
    assert m is not None
    assert m.equals(Matrix33.identity())


def test_axial_plane_helper_is_acquisition():
    helper = PlaneHelper(_axial_geometry())
    assert helper.get_scroll_index() == 2
    assert helper.is_acquisition_orientation()
    assert helper.get_cosines() == pytest.approx([1, 0, 0, 0, 1, 0])


def test_coronal_view_of_axial_image():
    helper = PlaneHelper.from_target(_axial_geometry(), get_coronal_mat33())
    assert helper.get_scroll_index() == 1
    assert not helper.is_acquisition_orientation()
    assert helper.get_cosines() == pytest.approx([1, 0, 0, 0, 0, 1])


def test_sagittal_view_scrolls_along_i():
    helper = PlaneHelper.from_target(_axial_geometry(), get_sagittal_mat33())
    assert helper.get_scroll_index() == 0
    assert not helper.is_acquisition_orientation()


def test_plane_point_round_trip_on_coronal_view():
    helper = PlaneHelper.from_target(_axial_geometry(), get_coronal_mat33())
    world = helper.get_position_from_plane_point(Point2D(3.0, 2.0), 5.0)
    assert world is not None
    # plane (x, y, scroll) -> image (i, k, j)
    assert world.values == pytest.approx((3.0, 5.0, 2.0))

    plane = helper.get_plane_position(world)
    assert plane is not None
    assert plane.as_tuple() == pytest.approx((3.0, 2.0, 5.0))
    point = helper.get_plane_point_from_position(Point((3.0, 5.0, 2.0)))
    assert point is not None and point.equals(Point2D(3.0, 2.0), 1e-9)


def test_oriented_size_and_spacing():
    g = Geometry([Point3D(0, 0, 0)], Size([10, 8, 4]), Spacing([0.5, 0.7, 2.0]))
    helper = PlaneHelper.from_target(g, get_coronal_mat33())
    view = helper.get_view_orientation()
    assert g.get_size(view).values == (10, 4, 8)
    assert g.get_spacing(view).get_2d() == pytest.approx((0.5, 2.0))


def test_singular_view_orientation_raises_value_error():
    helper = PlaneHelper(_axial_geometry(), Matrix33([1, 0, 0, 0, 1, 0, 0, 0, 0]))
    with pytest.raises(ValueError, match="not invertible"):
        helper.get_oriented_index(Index((1, 2, 3)))
