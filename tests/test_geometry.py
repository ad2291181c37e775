import math

import pytest

from gemview.geometry import Affine, Rect, Vec2, build_view_matrix


def test_vec2_add_sub_round_trip():
    a, b = Vec2(3.5, -2.0), Vec2(1.25, 4.0)
    assert (a + b) - b == a


def test_vec2_mul_div_round_trip():
    a = Vec2(3.0, -6.0)
    size = Vec2(2.0, 4.0)
    assert (a * size) / size == a
    assert (a * 3.0) / 3.0 == a
    assert 2.0 * a == a * 2.0


def test_vec2_neg_and_lengths():
    a = Vec2(3.0, 4.0)
    assert -(-a) == a
    assert a.length_squared() == 25.0
    assert a.distance(Vec2(0.0, 0.0)) == 5.0
    assert a.distance(a) == 0.0


def test_rect_from_corners_normalises():
    r1 = Rect.from_corners(Vec2(10, 20), Vec2(2, 5))
    r2 = Rect.from_corners(Vec2(2, 5), Vec2(10, 20))
    assert r1 == r2
    assert (r1.left, r1.top, r1.right, r1.bottom) == (2, 5, 10, 20)


def test_rect_intersects():
    a = Rect(0, 0, 10, 10)
    assert a.intersects(Rect(5, 5, 10, 10))
    assert Rect(5, 5, 10, 10).intersects(a)
    assert not a.intersects(Rect(10, 0, 5, 5))
    assert not a.intersects(Rect(20, 20, 5, 5))


def test_rect_scaled_from_center_keeps_center():
    r = Rect(2, 4, 10, 20)
    s = r.scaled_from_center(1.3)
    assert s.center.x == pytest.approx(r.center.x)
    assert s.center.y == pytest.approx(r.center.y)
    assert math.isclose(s.width, r.width * 1.3)
    assert math.isclose(s.height, r.height * 1.3)


def test_rotation_quarter_turn():
    p = Affine.rotation(90).apply(Vec2(1, 0))
    assert p.x == pytest.approx(0.0, abs=1e-9)
    assert p.y == pytest.approx(1.0, abs=1e-9)


def test_then_order():
    t = Affine.translation(Vec2(5, 0)).then(Affine.scaling(2, 2))
    p = t.apply(Vec2(0, 0))
    assert p.x == pytest.approx(10.0, abs=1e-9)
    assert p.y == pytest.approx(0.0, abs=1e-9)


@pytest.mark.parametrize("x, y", [(0.0, 0.0), (13.5, -7.25), (1000.0, 250.0)])
def test_inverse_round_trip(x, y):
    m = build_view_matrix(Vec2(120.0, -40.0), 0.75, 33.0, Vec2(512.0, 384.0))
    inv = m.inverse()
    back = inv.apply(m.apply(Vec2(x, y)))
    assert back.x == pytest.approx(x, abs=1e-7)
    assert back.y == pytest.approx(y, abs=1e-7)


def test_singular_inverse_raises():
    with pytest.raises(ValueError):
        Affine.scaling(0.0, 1.0).inverse()


def test_view_matrix_maps_offset_to_center():
    offset, center = Vec2(300.0, 200.0), Vec2(512.0, 384.0)
    m = build_view_matrix(offset, 0.5, 45.0, center)
    p = m.apply(offset)
    assert p.x == pytest.approx(512.0, abs=1e-9)
    assert p.y == pytest.approx(384.0, abs=1e-9)


def test_view_matrix_angle_wraps():
    a = build_view_matrix(Vec2(1, 2), 1.0, 30.0, Vec2(0, 0))
    b = build_view_matrix(Vec2(1, 2), 1.0, 390.0, Vec2(0, 0))
    p = Vec2(7, -3)
    pa, pb = a.apply(p), b.apply(p)
    assert pa.x == pytest.approx(pb.x, abs=1e-9)
    assert pa.y == pytest.approx(pb.y, abs=1e-9)


def test_rows_layout():
    m = build_view_matrix(Vec2(4, 8), 2.0, 0.0, Vec2(1, 1))
    rows = m.rows()
    assert rows[3] == (0.0, 0.0, 0.0, 1.0)
    assert rows[2] == (0.0, 0.0, 1.0, 0.0)
    assert (rows[0][3], rows[1][3]) == (m.c, m.f)