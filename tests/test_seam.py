import pytest

from cgpoly.geom import Pt
from cgpoly.mesh import TopologyError
from cgpoly.polyhedron import Polyhedron
from cgpoly.seam import Seam, SplittingCriterion, create_seam

CUBE = [(x, y, z) for x in (0, 1) for y in (0, 1) for z in (0, 1)]


class TestCreateSeam:
    def test_visibility_seam_around_top_face(self):
        poly = Polyhedron(CUBE)
        criterion = SplittingCriterion.by_visibility(Pt(0.5, 0.5, 2))
        seam = create_seam(poly.edges, criterion)
        assert len(seam) == 4
        assert seam.check_edges()
        for e in seam:
            assert criterion.matches_face(e.first_face)
            assert not criterion.matches_face(e.second_face)
            assert e.first_vertex.position.z == 1.0
            assert e.second_vertex.position.z == 1.0

    def test_connectivity_seam_around_corner(self):
        poly = Polyhedron(CUBE)
        corner = poly.find_vertex_by_position((0, 0, 0))
        criterion = SplittingCriterion.by_connectivity(corner)
        seam = create_seam(poly.edges, criterion)
        assert len(seam) == 6
        assert seam.check_edges()
        for e in seam:
            assert corner not in e.vertices()
            assert not corner.incident(e.first_face)
            assert corner.incident(e.second_face)
        positions = {tuple(e.first_vertex.position) for e in seam}
        assert (1.0, 1.0, 1.0) not in positions
        assert len(positions) == 6

    def test_consecutive_edges_share_vertex(self):
        poly = Polyhedron(CUBE)
        seam = create_seam(poly.edges, SplittingCriterion.by_visibility(Pt(2, 2, 2)))
        assert len(seam) == 6
        edges = list(seam)
        for i, e in enumerate(edges):
            assert e.first_vertex is edges[(i + 1) % len(edges)].second_vertex

    def test_inside_point_gives_empty_seam(self):
        poly = Polyhedron(CUBE)
        seam = create_seam(poly.edges, SplittingCriterion.by_visibility(Pt(0.5, 0.5, 0.5)))
        assert seam.empty()
        assert len(seam) == 0


class TestSeamOperations:
    def seam(self):
        poly = Polyhedron(CUBE)
        return poly, create_seam(poly.edges, SplittingCriterion.by_visibility(Pt(0.5, 0.5, 2)))

    def test_shift_rotates(self):
        poly, seam = self.seam()
        before = list(seam)
        seam.shift()
        assert list(seam) == before[1:] + before[:1]
        assert seam.check_edges()

    def test_shift_with_criterion(self):
        poly, seam = self.seam()
        target = seam[2]
        assert seam.shift(lambda s: s.first() is target)
        assert seam.first() is target
        before = list(seam)
        assert not seam.shift(lambda s: False)
        # повний оберт повертає початковий порядок
        assert list(seam) == before

    def test_first_second_last(self):
        poly, seam = self.seam()
        edges = list(seam)
        assert seam.first() is edges[0]
        assert seam.second() is edges[1]
        assert seam.last() is edges[-1]

    def test_push_back_rejects_disconnected_edge(self):
        poly, seam = self.seam()
        edges = list(seam)
        broken = Seam([edges[0]])
        with pytest.raises(TopologyError):
            broken.push_back(edges[2])

    def test_copy_is_independent(self):
        poly, seam = self.seam()
        other = seam.copy()
        other.clear()
        assert other.empty()
        assert len(seam) == 4
