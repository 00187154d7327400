import pytest

from cgpoly.geom import (
    Pt, BBox, EPS, almost_equal, linearly_dependent, contained_within_segment,
    polygon_contains_point, centroid, cross, sub,
)


class TestPoint:
    """basic point helpers"""

    def test_of_accepts_tuples_and_points(self):
        p = Pt.of((1, 2, 3))
        assert p == Pt(1.0, 2.0, 3.0)
        assert Pt.of(p) is p
        assert tuple(p) == (1.0, 2.0, 3.0)

    def test_almost_equal_uses_componentwise_tolerance(self):
        a = Pt(1.0, 1.0, 1.0)
        assert almost_equal(a, Pt(1.0 + EPS / 2, 1.0, 1.0 - EPS / 2))
        assert not almost_equal(a, Pt(1.0 + 10 * EPS, 1.0, 1.0))

    def test_centroid(self):
        c = centroid([Pt(0, 0, 0), Pt(2, 0, 0), Pt(0, 2, 0), Pt(0, 0, 2)])
        assert c == Pt(0.5, 0.5, 0.5)
        with pytest.raises(ValueError):
            centroid([])


class TestLines:
    """collinearity and segment containment"""

    def test_linearly_dependent(self):
        a, b = Pt(0, 0, 0), Pt(1, 1, 1)
        assert linearly_dependent(a, b, Pt(2, 2, 2))
        assert linearly_dependent(a, b, Pt(-3, -3, -3))
        assert not linearly_dependent(a, b, Pt(1, 0, 0))
        # вироджений відрізок — будь-яка точка «на прямій»
        assert linearly_dependent(a, a, Pt(5, 1, 2))

    def test_contained_within_segment(self):
        a, b = Pt(0, 0, 0), Pt(2, 0, 0)
        assert contained_within_segment(Pt(1, 0, 0), a, b)
        assert contained_within_segment(a, a, b)
        assert contained_within_segment(b, a, b)
        assert not contained_within_segment(Pt(3, 0, 0), a, b)
        assert not contained_within_segment(Pt(-0.5, 0, 0), a, b)


class TestPolygonContainment:
    square = [Pt(0, 0, 0), Pt(1, 0, 0), Pt(1, 1, 0), Pt(0, 1, 0)]

    def normal(self):
        return cross(sub(self.square[1], self.square[0]), sub(self.square[2], self.square[0]))

    def test_inside_and_boundary(self):
        n = self.normal()
        assert polygon_contains_point(Pt(0.5, 0.5, 0), self.square, n)
        assert polygon_contains_point(Pt(1, 0.5, 0), self.square, n)
        assert polygon_contains_point(Pt(0, 0, 0), self.square, n)

    def test_outside(self):
        n = self.normal()
        assert not polygon_contains_point(Pt(1.5, 0.5, 0), self.square, n)
        assert not polygon_contains_point(Pt(-0.1, -0.1, 0), self.square, n)


class TestBBox:
    def test_merge_and_contains(self):
        box = BBox.from_point(Pt(0, 0, 0))
        box.merge(Pt(1, -2, 3))
        assert box.min == Pt(0, -2, 0)
        assert box.max == Pt(1, 0, 3)
        assert box.contains(Pt(0.5, -1, 1))
        assert not box.contains(Pt(2, 0, 0))
        assert box.as_tuple() == ((0.0, -2.0, 0.0), (1.0, 0.0, 3.0))

    def test_from_points(self):
        assert BBox.from_points([]) is None
        box = BBox.from_points([Pt(1, 1, 1), Pt(-1, 0, 2)])
        assert box.min == Pt(-1, 0, 1)
        assert box.max == Pt(1, 1, 2)
