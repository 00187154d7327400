import pytest

from cgpoly.geom import Pt
from cgpoly.predicates import PointStatus
from cgpoly.mesh import Vertex, HalfEdge, Edge, Face, TopologyError


def triangle():
    """одинокий трикутник z=0 проти годинникової стрілки зверху"""
    vs = [Vertex(Pt(0, 0, 0)), Vertex(Pt(1, 0, 0)), Vertex(Pt(0, 1, 0))]
    hs = [HalfEdge(v) for v in vs]
    es = [Edge(h) for h in hs]
    face = Face(hs)
    return vs, hs, es, face


class TestEntities:
    def test_half_edge_becomes_leaving(self):
        v = Vertex(Pt(0, 0, 0))
        h1 = HalfEdge(v)
        assert v.leaving is h1
        h2 = HalfEdge(v)
        assert v.leaving is h2

    def test_face_wires_cycle(self):
        vs, hs, es, face = triangle()
        for i, h in enumerate(hs):
            assert h.face is face
            assert h.next is hs[(i + 1) % 3]
            assert h.previous is hs[i - 1]
            assert h.destination is vs[(i + 1) % 3]
        assert face.vertices() == vs
        assert face.vertex_count == 3
        assert face.edges() == es

    def test_half_specified_edge(self):
        vs, hs, es, face = triangle()
        e = es[0]
        assert not e.fully_specified
        assert e.first_vertex is vs[0]
        assert e.second_vertex is vs[1]
        assert e.first_face is face
        assert e.second_face is None
        assert hs[0].twin() is None

    def test_face_needs_three_half_edges(self):
        v1, v2 = Vertex(Pt(0, 0, 0)), Vertex(Pt(1, 0, 0))
        with pytest.raises(TopologyError):
            Face([HalfEdge(v1), HalfEdge(v2)])

    def test_incident(self):
        vs, hs, es, face = triangle()
        assert all(v.incident(face) for v in vs)
        assert not Vertex(Pt(5, 5, 5)).incident(face)

    def test_entities_compare_by_identity(self):
        a = Vertex(Pt(0, 0, 0))
        b = Vertex(Pt(0, 0, 0))
        assert a != b
        assert len({a, b}) == 2


class TestFaceGeometry:
    def test_normal_and_point_status(self):
        vs, hs, es, face = triangle()
        n = face.normal
        assert n.z > 0 and n.x == 0 and n.y == 0
        assert face.point_status(Pt(0.2, 0.2, 1)) is PointStatus.ABOVE
        assert face.point_status(Pt(0.2, 0.2, -1)) is PointStatus.BELOW
        assert face.point_status(Pt(7, -3, 0)) is PointStatus.INSIDE

    def test_flip_reverses_winding_and_keeps_edges(self):
        vs, hs, es, face = triangle()
        face.flip()
        assert face.normal.z < 0
        for h in face.boundary:
            assert h.next.previous is h
            assert h.origin.leaving is h
        # кожне ребро з'єднує ті самі вершини, що й раніше
        pairs = {frozenset(e.vertices()) for e in es}
        assert pairs == {frozenset((vs[0], vs[1])), frozenset((vs[1], vs[2])), frozenset((vs[2], vs[0]))}

    def test_has_positions_is_cyclic_and_winding_sensitive(self):
        vs, hs, es, face = triangle()
        assert face.has_positions([Pt(1, 0, 0), Pt(0, 1, 0), Pt(0, 0, 0)])
        assert not face.has_positions([Pt(0, 1, 0), Pt(1, 0, 0), Pt(0, 0, 0)])
        assert not face.has_positions([Pt(1, 0, 0), Pt(0, 1, 0)])


class TestEdgeRelabelling:
    def two_triangles(self):
        """два трикутники зі спільним ребром a-b"""
        a, b = Vertex(Pt(0, 0, 0)), Vertex(Pt(1, 0, 0))
        c, d = Vertex(Pt(0, 1, 0)), Vertex(Pt(0, -1, 0))
        h_ab = HalfEdge(a)
        h_ba = HalfEdge(b)
        f1 = Face([h_ab, HalfEdge(b), HalfEdge(c)])
        f2 = Face([h_ba, HalfEdge(a), HalfEdge(d)])
        return a, b, h_ab, h_ba, f1, f2

    def test_flip_swaps_roles_only(self):
        a, b, h_ab, h_ba, f1, f2 = self.two_triangles()
        e = Edge(h_ab, h_ba)
        assert e.first_vertex is a and e.second_vertex is b
        assert e.first_face is f1 and e.second_face is f2
        e.flip()
        assert e.first is h_ba and e.second is h_ab
        assert e.first_vertex is b and e.second_vertex is a
        assert e.first_face is f2 and e.second_face is f1
        assert h_ab.twin() is h_ba and h_ba.twin() is h_ab

    def test_make_second_and_unset(self):
        a, b, h_ab, h_ba, f1, f2 = self.two_triangles()
        e = Edge(h_ab, h_ba)
        e.make_second_edge(h_ab)
        assert e.second is h_ab
        e.unset_second_edge()
        assert e.second is None and h_ab.edge is None
        assert e.first is h_ba
        e.set_second_edge(h_ab)
        assert e.fully_specified and h_ab.edge is e

    def test_set_first_as_leaving(self):
        a, b, h_ab, h_ba, f1, f2 = self.two_triangles()
        e = Edge(h_ab, h_ba)
        assert a.leaving is not h_ab
        e.set_first_as_leaving()
        assert a.leaving is h_ab

    def test_twin_rejects_foreign_half_edge(self):
        a, b, h_ab, h_ba, f1, f2 = self.two_triangles()
        e = Edge(h_ab, h_ba)
        with pytest.raises(TopologyError):
            e.twin(HalfEdge(a))
