# cgpoly/polyhedron.py
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Sequence, Set

from loguru import logger

from .geom import (
    Pt, BBox, EPS, sub, cross, norm, almost_equal, linearly_dependent,
    contained_within_segment, polygon_contains_point,
)
from .predicates import Plane, PointStatus, convex_hull_2d, orient3d, spanning_triple
from .mesh import Vertex, HalfEdge, Edge, Face, TopologyError
from .seam import Seam, SplittingCriterion, create_seam


class Callback:
    """
    Синхронні сповіщення про грані.
    face_was_created — один раз на нову грань, коли її межа вже зшита;
    face_will_be_deleted — один раз на грань, до того як її межу розберуть.
    Зсередини колбеку не можна знову звертатися до многогранника.
    """
    def face_was_created(self, face: Face) -> None:
        pass

    def face_will_be_deleted(self, face: Face) -> None:
        pass


_NO_CALLBACK = Callback()


class Polyhedron:
    """
    Інкрементальна опукла оболонка на напівребрах.

    Стани (за кількістю вершин/граней): порожній, точка, ребро,
    многокутник (одна грань), многогранник (>= 4 граней, замкнений).
    add_point повертає True, якщо точку реально включено в оболонку.
    Не потокобезпечний: хірургія проходить через напіввизначені стани.
    """

    def __init__(self, points: Optional[Iterable] = None,
                 callback: Optional[Callback] = None, eps: float = EPS):
        self.eps = eps
        # впорядковані множини: вставка і видалення за O(1)
        self._vertices: Dict[Vertex, None] = {}
        self._edges: Dict[Edge, None] = {}
        self._faces: Dict[Face, None] = {}
        self._bounds: Optional[BBox] = None
        self._rebuilding = False
        if points is not None:
            self.add_points(points, callback)

    # ---------------- Запити ----------------
    @property
    def vertices(self) -> List[Vertex]:
        return list(self._vertices)

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    @property
    def faces(self) -> List[Face]:
        return list(self._faces)

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    @property
    def face_count(self) -> int:
        return len(self._faces)

    @property
    def bounds(self) -> Optional[BBox]:
        return self._bounds

    def empty(self) -> bool:
        return self.vertex_count == 0

    def point(self) -> bool:
        return self.vertex_count == 1

    def edge(self) -> bool:
        return self.vertex_count == 2

    def polygon(self) -> bool:
        return self.face_count == 1

    def polyhedron(self) -> bool:
        return self.face_count > 3

    def closed(self) -> bool:
        return self.polyhedron() and all(e.fully_specified for e in self._edges)

    def vertex_positions(self) -> List[Pt]:
        return [v.position for v in self._vertices]

    def face_positions(self) -> List[List[Pt]]:
        return [f.positions() for f in self._faces]

    def find_vertex_by_position(self, position, eps: Optional[float] = None) -> Optional[Vertex]:
        p = Pt.of(position)
        tol = self.eps if eps is None else eps
        for v in self._vertices:
            if almost_equal(v.position, p, tol):
                return v
        return None

    def has_vertex(self, position, eps: Optional[float] = None) -> bool:
        return self.find_vertex_by_position(position, eps) is not None

    def find_edge_by_positions(self, p1, p2, eps: Optional[float] = None) -> Optional[Edge]:
        a, b = Pt.of(p1), Pt.of(p2)
        tol = self.eps if eps is None else eps
        for e in self._edges:
            if e.has_positions(a, b, tol):
                return e
        return None

    def has_edge(self, p1, p2, eps: Optional[float] = None) -> bool:
        return self.find_edge_by_positions(p1, p2, eps) is not None

    def has_face(self, positions: Sequence, eps: Optional[float] = None) -> bool:
        pts = [Pt.of(p) for p in positions]
        tol = self.eps if eps is None else eps
        return any(f.has_positions(pts, tol) for f in self._faces)

    def contains(self, point) -> bool:
        """Чи лежить точка всередині оболонки або на її межі."""
        p = Pt.of(point)
        if self.empty() or not self._bounds.contains(p, self.eps):
            return False
        if self.point():
            return almost_equal(next(iter(self._vertices)).position, p, self.eps)
        if self.edge():
            a, b = self.vertex_positions()
            return (linearly_dependent(a, b, p, self.eps) and
                    contained_within_segment(p, a, b, self.eps))
        if self.polygon():
            face = self._only_face()
            if face.point_status(p, self.eps) is not PointStatus.INSIDE:
                return False
            return polygon_contains_point(p, face.positions(), face.normal, self.eps)
        return all(f.point_status(p, self.eps) is not PointStatus.ABOVE for f in self._faces)

    # ---------------- Вставка ----------------
    def add_points(self, points: Iterable, callback: Optional[Callback] = None) -> int:
        """Додати точки по черзі; повертає, скільки з них змінили оболонку."""
        added = 0
        for p in points:
            if self.add_point(p, callback):
                added += 1
        return added

    def add_point(self, point, callback: Optional[Callback] = None) -> bool:
        position = Pt.of(point)
        cb = callback if callback is not None else _NO_CALLBACK

        count = self.vertex_count
        if count == 0:
            added = self._add_first_point(position)
        elif count == 1:
            added = self._add_second_point(position)
        elif count == 2:
            added = self._add_third_point(position, cb)
        else:
            added = self._add_further_point(position, cb)

        if added:
            if self._bounds is None:
                self._bounds = BBox.from_point(position)
            else:
                self._bounds.merge(position)
        else:
            logger.debug(f"Point {tuple(position)} is already contained, ignored")
        return added

    def _add_first_point(self, position: Pt) -> bool:
        assert self.empty()
        self._vertices[Vertex(position)] = None
        logger.debug("Polyhedron became a point")
        return True

    def _add_second_point(self, position: Pt) -> bool:
        assert self.point()
        only, = self._vertices
        if almost_equal(position, only.position, self.eps):
            return False
        new_vertex = Vertex(position)
        self._vertices[new_vertex] = None
        self._edges[Edge(HalfEdge(only), HalfEdge(new_vertex))] = None
        logger.debug("Polyhedron became an edge")
        return True

    def _add_third_point(self, position: Pt, cb: Callback) -> bool:
        assert self.edge()
        v1, v2 = self._vertices
        if linearly_dependent(v1.position, v2.position, position, self.eps):
            return self._add_point_to_edge(position)
        return self._add_point_to_polygon(position, cb)

    def _add_point_to_edge(self, position: Pt) -> bool:
        """Колінеарна третя точка: або вже на відрізку, або зсуває один із кінців."""
        v1, v2 = self._vertices
        a, b = v1.position, v2.position
        if contained_within_segment(position, a, b, self.eps):
            return False
        # рухаємо той кінець, що опинився між новою точкою та іншим кінцем
        if contained_within_segment(a, position, b, self.eps):
            v1.position = position
        else:
            v2.position = position
        logger.debug(f"Edge extended to {tuple(position)}")
        return True

    def _add_further_point(self, position: Pt, cb: Callback) -> bool:
        if self.face_count == 1:
            return self._add_further_point_to_polygon(position, cb)
        return self._add_further_point_to_polyhedron(position, cb)

    def _add_further_point_to_polygon(self, position: Pt, cb: Callback) -> bool:
        """Копланарна точка дає інший многокутник, некопланарна — многогранник."""
        face = self._only_face()
        status = face.point_status(position, self.eps)
        if status is PointStatus.INSIDE:
            return self._add_point_to_polygon(position, cb)
        if status is PointStatus.ABOVE:
            # нова точка має опинитися під гранню
            face.flip()
        return self._make_polyhedron(position, cb)

    def _add_point_to_polygon(self, position: Pt, cb: Callback) -> bool:
        normal: Optional[Pt] = None
        if self._faces:
            face = self._only_face()
            normal = face.normal
            if polygon_contains_point(position, face.positions(), normal, self.eps):
                return False
            positions = face.positions()
        else:
            positions = self.vertex_positions()
        positions.append(position)

        hull = convex_hull_2d(positions, normal, self.eps)
        bounds = self._bounds
        self.clear(cb)
        self._make_polygon(hull, cb)
        # межі накопичені раніше лишаються чинними
        self._bounds = bounds
        logger.debug(f"Polygon rebuilt with {len(hull)} vertices")
        return True

    def _make_polygon(self, positions: Sequence[Pt], cb: Callback) -> None:
        assert self.empty()
        assert len(positions) > 2
        boundary: List[HalfEdge] = []
        for p in positions:
            v = Vertex(p)
            h = HalfEdge(v)
            self._vertices[v] = None
            self._edges[Edge(h)] = None
            boundary.append(h)
        self._add_face(boundary, cb)

    def _make_polyhedron(self, position: Pt, cb: Callback) -> bool:
        """Многокутник + некопланарна точка: шов — уся межа грані, в зворотному порядку (CCW)."""
        assert self.polygon()
        face = self._only_face()
        seam = Seam()
        first = face.boundary[0]
        current = first
        while True:
            seam.push_back(current.edge)
            current = current.previous
            if current is first:
                break
        logger.debug(f"Polygon with {len(seam)} vertices became a polyhedron")
        return self._add_point_to_polyhedron(position, seam, cb)

    def _add_further_point_to_polyhedron(self, position: Pt, cb: Callback) -> bool:
        assert self.polyhedron()
        if self.contains(position):
            return False
        seam = create_seam(list(self._edges), SplittingCriterion.by_visibility(position, self.eps))
        if seam.empty():
            # точка вже перевірена як зовнішня; порожній шов — нічого не міняємо
            return False
        if not seam.copy().shift(lambda s: self._shift_for_weaving(s, position)):
            # сітка ще ціла: будуємо заново в іншому порядку
            logger.debug(f"Point {tuple(position)} cannot be woven onto the seam, rebuilding")
            self._rebuild([position] + self.vertex_positions(), cb)
            return True
        self._split(seam, cb)
        return self._add_point_to_polyhedron(position, seam, cb)

    def _add_point_to_polyhedron(self, position: Pt, seam: Seam, cb: Callback) -> bool:
        assert not seam.empty()
        self._weave(seam, position, cb)
        assert self.polyhedron()
        return True

    # ---------------- Видалення ----------------
    def remove_vertex(self, vertex: Vertex, callback: Optional[Callback] = None) -> None:
        if vertex is None or self.find_vertex_by_position(vertex.position) is not vertex:
            raise ValueError("Vertex does not belong to this polyhedron")
        cb = callback if callback is not None else _NO_CALLBACK

        remaining = [v.position for v in self._vertices if v is not vertex]
        if not self.polyhedron() or not _spans_space(remaining, self.eps):
            logger.debug(f"Removing vertex degrades the polyhedron, rebuilding from {len(remaining)} points")
            self._rebuild(remaining, cb)
            return

        seam = create_seam(list(self._edges), SplittingCriterion.by_connectivity(vertex))
        self._split(seam, cb)
        first_new = len(self._faces)
        try:
            self._seal_with_multiple_polygons(seam, cb)
        except TopologyError as e:
            logger.debug(f"Sealing failed ({e}), rebuilding from {len(remaining)} points")
            self._rebuild(remaining, cb)
            return
        if not self._faces_are_supporting(list(self._faces)[first_new:]):
            logger.debug("Sealed cap is not convex, rebuilding")
            self._rebuild(remaining, cb)
            return
        self._update_bounds()

    def remove_vertex_at(self, position, callback: Optional[Callback] = None) -> None:
        vertex = self.find_vertex_by_position(position)
        if vertex is None:
            raise ValueError(f"No vertex at {tuple(Pt.of(position))}")
        self.remove_vertex(vertex, callback)

    def _rebuild(self, positions: Sequence[Pt], cb: Callback) -> None:
        """Побудувати оболонку заново з positions; межі рахуються з нуля."""
        if self._rebuilding:
            raise TopologyError("Rebuild failed: the hull cannot be built from these points")
        self._rebuilding = True
        try:
            self.clear(cb)
            for p in positions:
                self.add_point(p, cb)
        finally:
            self._rebuilding = False
        self._update_bounds()

    def _faces_are_supporting(self, faces: Iterable[Face]) -> bool:
        for f in faces:
            plane = f.plane()
            for v in self._vertices:
                if plane.point_status(v.position, self.eps) is PointStatus.ABOVE:
                    return False
        return True

    # ---------------- Злиття / очищення ----------------
    def merge(self, other: "Polyhedron", callback: Optional[Callback] = None) -> None:
        """Додати всі вершини other (один повний обхід кільця вершин)."""
        if other is self:
            raise ValueError("Cannot merge a polyhedron with itself")
        for v in other.vertices:
            self.add_point(v.position, callback)

    def clear(self, callback: Optional[Callback] = None) -> None:
        cb = callback if callback is not None else _NO_CALLBACK
        for face in list(self._faces):
            cb.face_will_be_deleted(face)
        self._vertices = {}
        self._edges = {}
        self._faces = {}
        self._bounds = None

    def _update_bounds(self) -> None:
        self._bounds = BBox.from_points(self.vertex_positions())

    def _only_face(self) -> Face:
        assert self.polygon()
        return next(iter(self._faces))

    # ---------------- Хірургія ----------------
    def _add_face(self, boundary: List[HalfEdge], cb: Callback) -> Face:
        face = Face(boundary)
        cb.face_was_created(face)
        self._faces[face] = None
        return face

    def _split(self, seam: Seam, cb: Callback) -> None:
        """
        Розрізати по шву і знести все «над» ним. Ребра шва лишаються
        напіввизначеними (без second), щоб потім їх закрити.
        """
        assert len(seam) >= 3
        # вхід у зносну частину — друге напівребро першого ребра шва
        entry = seam.first().second
        for edge in seam:
            edge.set_first_as_leaving()
            edge.unset_second_edge()
        self._delete_faces(entry, cb)

    def _delete_faces(self, entry: HalfEdge, cb: Callback) -> None:
        visited: Set[int] = set()
        stack: List[HalfEdge] = [entry]
        while stack:
            first = stack.pop()
            face = first.face
            if id(face) in visited:
                continue
            visited.add(id(face))
            cb.face_will_be_deleted(face)

            for h in face.boundary:
                edge = h.edge
                if edge is not None:
                    if edge.fully_specified:
                        stack.append(edge.twin(h))
                        edge.make_second_edge(h)
                        edge.unset_second_edge()
                    else:
                        h.edge = None
                        del self._edges[edge]
                origin = h.origin
                if origin.leaving is h:
                    del self._vertices[origin]
            del self._faces[face]
            logger.trace(f"Deleted face with {face.vertex_count} vertices")
        logger.debug(f"Split removed {len(visited)} faces")

    def _weave(self, seam: Seam, position: Pt, cb: Callback) -> None:
        """
        Накрити шов конусом із новою вершиною position. Сусідні трикутники,
        що лежать в одній площині, зливаються в одну грань.
        """
        assert len(seam) >= 3
        seam = seam.copy()
        if not seam.shift(lambda s: self._shift_for_weaving(s, position)):
            raise TopologyError("No seam rotation separates the first and last woven faces")

        top = Vertex(position)
        seam_edges = list(seam)
        first: Optional[HalfEdge] = None
        last: Optional[HalfEdge] = None

        i = 0
        while i < len(seam_edges):
            edge = seam_edges[i]
            i += 1
            assert not edge.fully_specified
            v1 = edge.second_vertex
            v2 = edge.first_vertex

            h1 = HalfEdge(top)
            h2 = HalfEdge(v1)
            h = HalfEdge(v2)
            boundary = [h1, h2, h]
            edge.set_second_edge(h2)

            if i < len(seam_edges):
                plane = Plane.from_points(position, v1.position, v2.position)
                while (i < len(seam_edges) and
                       plane.point_status(seam_edges[i].first_vertex.position, self.eps) is PointStatus.INSIDE):
                    nxt = seam_edges[i]
                    nxt.set_second_edge(h)
                    h = HalfEdge(nxt.first_vertex)
                    boundary.append(h)
                    i += 1

            self._add_face(boundary, cb)
            logger.trace(f"Woven face with {len(boundary)} vertices")

            if last is not None:
                self._edges[Edge(h1, last)] = None
            if first is None:
                first = h1
            last = h

        assert first.face is not last.face
        self._edges[Edge(first, last)] = None
        self._vertices[top] = None

    def _shift_for_weaving(self, seam: Seam, position: Pt) -> bool:
        """Перша вершина шва має лежати строго під площиною останньої грані конуса."""
        last = seam.last()
        v1 = last.first_vertex
        v2 = last.second_vertex
        v3 = seam.first().first_vertex
        plane = _plane_or_none(position, v2.position, v1.position)
        if plane is None:
            return False
        return plane.point_status(v3.position, self.eps) is PointStatus.BELOW

    def _seal_with_single_polygon(self, seam: Seam, cb: Callback) -> None:
        assert len(seam) >= 3
        boundary: List[HalfEdge] = []
        for edge in seam:
            assert not edge.fully_specified
            h = HalfEdge(edge.second_vertex)
            boundary.append(h)
            edge.set_second_edge(h)
        self._add_face(boundary, cb)

    def _seal_with_multiple_polygons(self, seam: Seam, cb: Callback) -> None:
        """
        Закрити шов без вершини-вершечка: жадібно беремо найдовший копланарний
        відрізок шва, робимо з нього грань, а розрив зшиваємо новим ребром.
        """
        assert len(seam) >= 3
        if len(seam) == 3:
            self._seal_with_single_polygon(seam, cb)
            return

        seam = seam.copy()
        seam.shift(self._shift_for_sealing)

        while not seam.empty():
            assert len(seam) >= 3
            seam_edges = list(seam)
            first_edge, second_edge = seam_edges[0], seam_edges[1]

            v1 = first_edge.first_vertex
            v2 = first_edge.second_vertex
            v3 = second_edge.first_vertex
            plane = _plane_or_none(v1.position, v3.position, v2.position)
            if plane is None:
                raise TopologyError("Degenerate seam corner while sealing")

            b1 = HalfEdge(v2)
            b2 = HalfEdge(second_edge.second_vertex)
            boundary = [b1, b2]
            first_edge.set_second_edge(b1)
            second_edge.set_second_edge(b2)

            # додаємо точки, поки вони в площині перших трьох
            last_vertex = v3
            i = 2
            while (i < len(seam_edges) and
                   plane.point_status(seam_edges[i].first_vertex.position, self.eps) is PointStatus.INSIDE):
                cur = seam_edges[i]
                i += 1
                h = HalfEdge(cur.second_vertex)
                boundary.append(h)
                cur.set_second_edge(h)
                last_vertex = cur.first_vertex

            if i < len(seam_edges):
                closing = HalfEdge(last_vertex)
                boundary.append(closing)
                self._add_face(boundary, cb)
                new_edge = Edge(closing)
                self._edges[new_edge] = None
                seam.replace(i, new_edge)
            else:
                self._add_face(boundary, cb)
                seam.clear()
            logger.trace(f"Sealed face with {len(boundary)} vertices")

    def _shift_for_sealing(self, seam: Seam) -> bool:
        """
        Стартова трійка безпечна, якщо остання вершина шва строго під площиною
        перших трьох, а решта — не над нею.
        """
        first = seam.first()
        v1 = first.first_vertex
        v2 = first.second_vertex
        v3 = seam.second().first_vertex
        plane = _plane_or_none(v1.position, v3.position, v2.position)
        if plane is None:
            return False

        v4 = seam.last().second_vertex
        if plane.point_status(v4.position, self.eps) is not PointStatus.BELOW:
            return False
        if len(seam) < 5:
            return True
        for i in range(2, len(seam) - 1):
            if plane.point_status(seam[i].first_vertex.position, self.eps) is PointStatus.ABOVE:
                return False
        return True

    def to_off(self) -> str:
        """Експорт у формат OFF (грані довільної кількості вершин)."""
        index = {id(v): i for i, v in enumerate(self._vertices)}
        lines = ["OFF", f"{self.vertex_count} {self.face_count} {self.edge_count}"]
        for v in self._vertices:
            p = v.position
            lines.append(f"{p.x} {p.y} {p.z}")
        for f in self._faces:
            ids = " ".join(str(index[id(v)]) for v in f.vertices())
            lines.append(f"{f.vertex_count} {ids}")
        return "\n".join(lines)

    # ---------------- Діагностика ----------------
    def validate(self) -> dict:
        """
        Перевірка коректності сітки:
          - ребра: обидва напівребра (у многогранника), взаємні посилання,
            кінці одного — початки іншого;
          - цикли меж: next/previous/face узгоджені, у кожного напівребра є ребро;
          - грані: >= 3 вершин, плоскі, невироджені;
          - опуклість: жодна вершина не над жодною гранню;
          - вершини: leaving живе і виходить саме з цієї вершини.
        Повертає словник (порожні списки = все ок).
        """
        closed = self.polyhedron()
        vertex_ids = {id(v) for v in self._vertices}
        face_ids = {id(f) for f in self._faces}

        bad_edges: List[tuple] = []
        for ei, e in enumerate(self._edges):
            if e.first.edge is not e:
                bad_edges.append((ei, "first_not_linked"))
                continue
            if e.second is None:
                if closed:
                    bad_edges.append((ei, "open_edge"))
                continue
            if e.second.edge is not e:
                bad_edges.append((ei, "second_not_linked"))
            elif self._faces and (e.first.next is None or e.second.next is None):
                bad_edges.append((ei, "unlinked_half_edge"))
            elif self._faces and (e.first.origin is not e.second.destination or
                                  e.second.origin is not e.first.destination):
                bad_edges.append((ei, "endpoints_mismatch"))

        bad_links: List[tuple] = []
        bad_faces: List[tuple] = []
        non_convex: List[tuple] = []
        for fi, f in enumerate(self._faces):
            if f.vertex_count < 3:
                bad_faces.append((fi, "too_few_vertices"))
                continue
            for h in f.boundary:
                if h.face is not f or h.next.previous is not h or h.previous.next is not h:
                    bad_links.append((fi, "broken_cycle"))
                    break
                if h.edge is None:
                    bad_links.append((fi, "missing_edge"))
                    break
                if id(h.origin) not in vertex_ids:
                    bad_links.append((fi, "dead_origin"))
                    break
            normal = f.normal
            if max(abs(normal.x), abs(normal.y), abs(normal.z)) <= self.eps:
                bad_faces.append((fi, "degenerate"))
                continue
            plane = f.plane()
            if any(plane.point_status(p, self.eps) is not PointStatus.INSIDE for p in f.positions()):
                bad_faces.append((fi, "not_planar"))
            if closed:
                for vi, v in enumerate(self._vertices):
                    if plane.point_status(v.position, self.eps) is PointStatus.ABOVE:
                        non_convex.append((fi, vi))

        bad_vertices: List[tuple] = []
        if self._faces:
            for vi, v in enumerate(self._vertices):
                h = v.leaving
                if h is None or h.origin is not v or id(h.face) not in face_ids:
                    bad_vertices.append((vi, "bad_leaving"))

        return {
            "vertices": self.vertex_count,
            "edges": self.edge_count,
            "faces": self.face_count,
            "euler": self.vertex_count - self.edge_count + self.face_count,
            "bad_edges": bad_edges,
            "bad_links": bad_links,
            "bad_faces": bad_faces,
            "non_convex": non_convex,
            "bad_vertices": bad_vertices,
        }

    def check_invariant(self) -> bool:
        report = self.validate()
        if any(report[k] for k in ("bad_edges", "bad_links", "bad_faces", "non_convex", "bad_vertices")):
            return False
        v, e, f = report["vertices"], report["edges"], report["faces"]
        if v == 0:
            return e == 0 and f == 0
        if v == 1:
            return e == 0 and f == 0
        if v == 2:
            return e == 1 and f == 0
        if f == 1:
            return e == v
        return f > 3 and report["euler"] == 2


def _plane_or_none(a: Pt, b: Pt, c: Pt) -> Optional[Plane]:
    try:
        return Plane.from_points(a, b, c)
    except ValueError:
        return None


def _spans_space(points: Sequence[Pt], eps: float) -> bool:
    """Чи є серед точок четвірка некопланарних."""
    if len(points) < 4:
        return False
    triple = spanning_triple(points, eps)
    if triple is None:
        return False
    a, b, c = triple
    # orient3d — шестикратний об'єм; ділимо на площу основи, щоб мати висоту
    base = norm(cross(sub(b, a), sub(c, a)))
    return any(abs(orient3d(a, b, c, p)) / base > eps for p in points)
