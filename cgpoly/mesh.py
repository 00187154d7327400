# cgpoly/mesh.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .geom import Pt, centroid, almost_equal, EPS
from .predicates import Plane, PointStatus, newell_normal


class TopologyError(RuntimeError):
    """Порушена внутрішня зв'язність сітки (баг або чисельний збій, не помилка користувача)."""


@dataclass(eq=False)
class Vertex:
    """
    Вершина многогранника.
    leaving — одне з напівребер, що виходять із вершини (якір для обходу).
    """
    position: Pt
    leaving: Optional["HalfEdge"] = field(default=None, repr=False)

    def incident(self, face: "Face") -> bool:
        return any(h.origin is self for h in face.boundary)


@dataclass(eq=False)
class HalfEdge:
    """
    Орієнтоване ребро на межі однієї грані.
    origin — початок; next/previous — сусіди по циклу межі грані;
    edge — неорієнтоване ребро-власник (може бути None під час хірургії).
    """
    origin: Vertex
    edge: Optional["Edge"] = field(default=None, repr=False)
    face: Optional["Face"] = field(default=None, repr=False)
    next: Optional["HalfEdge"] = field(default=None, repr=False)
    previous: Optional["HalfEdge"] = field(default=None, repr=False)

    def __post_init__(self):
        # нове напівребро стає «виходом» своєї вершини
        self.origin.leaving = self

    @property
    def destination(self) -> Vertex:
        return self.next.origin

    def twin(self) -> Optional["HalfEdge"]:
        if self.edge is None:
            return None
        return self.edge.twin(self)

    def set_origin(self, vertex: Vertex) -> None:
        self.origin = vertex
        vertex.leaving = self


@dataclass(eq=False)
class Edge:
    """
    Неорієнтоване ребро = пара протилежних напівребер (first, second).
    second може бути None: ребро «напіввизначене» (межа многокутника
    або шов посеред хірургії).
    """
    first: HalfEdge
    second: Optional[HalfEdge] = None

    def __post_init__(self):
        self.first.edge = self
        if self.second is not None:
            self.second.edge = self

    @property
    def first_vertex(self) -> Vertex:
        return self.first.origin

    @property
    def second_vertex(self) -> Vertex:
        if self.second is not None:
            return self.second.origin
        return self.first.destination

    @property
    def first_face(self) -> Optional["Face"]:
        return self.first.face

    @property
    def second_face(self) -> Optional["Face"]:
        return self.second.face if self.second is not None else None

    @property
    def fully_specified(self) -> bool:
        return self.second is not None

    def vertices(self) -> Tuple[Vertex, Vertex]:
        return self.first_vertex, self.second_vertex

    def twin(self, half_edge: HalfEdge) -> Optional[HalfEdge]:
        if half_edge is self.first:
            return self.second
        if half_edge is self.second:
            return self.first
        raise TopologyError("Half edge does not belong to this edge")

    def flip(self) -> None:
        """Поміняти ролі first/second. Лише перейменування, геометрія та ж сама."""
        assert self.second is not None
        self.first, self.second = self.second, self.first

    def make_second_edge(self, half_edge: HalfEdge) -> None:
        if half_edge is not self.second:
            self.flip()
        assert half_edge is self.second

    def set_first_as_leaving(self) -> None:
        self.first.origin.leaving = self.first

    def set_second_edge(self, half_edge: HalfEdge) -> None:
        assert self.second is None
        self.second = half_edge
        half_edge.edge = self

    def unset_second_edge(self) -> None:
        assert self.second is not None
        self.second.edge = None
        self.second = None

    def has_positions(self, p1: Pt, p2: Pt, eps: float = EPS) -> bool:
        a = self.first_vertex.position
        b = self.second_vertex.position
        return ((almost_equal(a, p1, eps) and almost_equal(b, p2, eps)) or
                (almost_equal(a, p2, eps) and almost_equal(b, p1, eps)))


@dataclass(eq=False)
class Face:
    """
    Плоский опуклий багатокутник. boundary — цикл напівребер (>= 3),
    вершини проти годинникової стрілки, якщо дивитися ззовні оболонки.
    """
    boundary: List[HalfEdge]

    def __post_init__(self):
        if len(self.boundary) < 3:
            raise TopologyError(f"Face needs at least 3 half edges, got {len(self.boundary)}")
        self._link()

    def _link(self) -> None:
        n = len(self.boundary)
        for i, h in enumerate(self.boundary):
            h.face = self
            h.next = self.boundary[(i + 1) % n]
            h.previous = self.boundary[i - 1]

    @property
    def vertex_count(self) -> int:
        return len(self.boundary)

    def vertices(self) -> List[Vertex]:
        return [h.origin for h in self.boundary]

    def positions(self) -> List[Pt]:
        return [h.origin.position for h in self.boundary]

    def edges(self) -> List[Optional[Edge]]:
        return [h.edge for h in self.boundary]

    @property
    def normal(self) -> Pt:
        return newell_normal(self.positions())

    def plane(self) -> Plane:
        pts = self.positions()
        return Plane.from_normal(newell_normal(pts), centroid(pts))

    def point_status(self, p: Pt, eps: float = EPS) -> PointStatus:
        return self.plane().point_status(p, eps)

    def flip(self) -> None:
        """
        Перевернути орієнтацію: кожне напівребро тепер іде у зворотний бік
        по тому ж ребру (початок := колишній кінець), порядок циклу обертається.
        """
        new_origins = [h.destination for h in self.boundary]
        for h, v in zip(self.boundary, new_origins):
            h.set_origin(v)
        self.boundary.reverse()
        self._link()

    def has_positions(self, positions: Sequence[Pt], eps: float = EPS) -> bool:
        """Циклічний збіг вершин із positions (з урахуванням напрямку обходу)."""
        own = self.positions()
        n = len(own)
        if n != len(positions):
            return False
        for shift in range(n):
            if all(almost_equal(own[(shift + i) % n], positions[i], eps) for i in range(n)):
                return True
        return False
