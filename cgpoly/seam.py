# cgpoly/seam.py
from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Iterable, Iterator, List, Optional

from loguru import logger

from .geom import Pt, EPS
from .predicates import PointStatus
from .mesh import Edge, Face, Vertex, TopologyError


class Seam:
    """
    Замкнений цикл ребер, що відділяє частину сітки, яку треба замінити.
    Ребра йдуть проти годинникової стрілки (якщо дивитися ззовні) і
    зорієнтовані так, що first_face лишається, а second_face — ні.
    Сусідні ребра ділять вершину: edge[i].first_vertex is edge[i+1].second_vertex.
    Шов нічим не володіє і живе лише протягом однієї операції.
    """

    def __init__(self, edges: Iterable[Edge] = ()):
        self._edges: Deque[Edge] = deque()
        for e in edges:
            self.push_back(e)

    def push_back(self, edge: Edge) -> None:
        assert edge is not None
        if self._edges and self._edges[-1].first_vertex is not edge.second_vertex:
            raise TopologyError("Seam edge is not connected to the previous one")
        self._edges.append(edge)

    def replace(self, consumed: int, replacement: Edge) -> None:
        """Викинути перші consumed ребер і дописати replacement у кінець."""
        for _ in range(consumed):
            self._edges.popleft()
        self._edges.append(replacement)
        assert self.check_edges()

    def shift(self, criterion: Optional[Callable[["Seam"], bool]] = None) -> bool:
        """
        Без аргументу: перенести перше ребро в кінець.
        З предикатом: обертати, доки предикат не справдиться (не більше
        одного повного оберту). Повертає, чи знайшли таке положення.
        """
        if criterion is None:
            assert self._edges
            self._edges.rotate(-1)
            return True
        for _ in range(len(self._edges)):
            if criterion(self):
                return True
            self._edges.rotate(-1)
        return False

    def empty(self) -> bool:
        return not self._edges

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self) -> Iterator[Edge]:
        return iter(self._edges)

    def __getitem__(self, i: int) -> Edge:
        return self._edges[i]

    def first(self) -> Edge:
        assert self._edges
        return self._edges[0]

    def second(self) -> Edge:
        assert len(self._edges) > 1
        return self._edges[1]

    def last(self) -> Edge:
        assert self._edges
        return self._edges[-1]

    def clear(self) -> None:
        self._edges.clear()

    def copy(self) -> "Seam":
        s = Seam()
        s._edges = deque(self._edges)
        return s

    def check_edges(self) -> bool:
        """Чи утворюють ребра замкнений ланцюг."""
        if not self._edges:
            return True
        prev = self._edges[-1]
        for e in self._edges:
            if prev.first_vertex is not e.second_vertex:
                return False
            prev = e
        return True


class CriterionKind(Enum):
    CONNECTIVITY = "connectivity"   # грані, що НЕ торкаються вершини
    VISIBILITY = "visibility"       # грані, під площиною яких лежить точка


class MatchResult(Enum):
    FIRST = 1
    SECOND = 2
    BOTH = 3
    NEITHER = 4


@dataclass(frozen=True)
class SplittingCriterion:
    """
    Предикат над гранями, за яким ріжемо сітку.
    «Збігається» == грань лишається; решта буде знесена.
    """
    kind: CriterionKind
    vertex: Optional[Vertex] = None
    point: Optional[Pt] = None
    eps: float = EPS

    @classmethod
    def by_connectivity(cls, vertex: Vertex) -> "SplittingCriterion":
        return cls(CriterionKind.CONNECTIVITY, vertex=vertex)

    @classmethod
    def by_visibility(cls, point: Pt, eps: float = EPS) -> "SplittingCriterion":
        return cls(CriterionKind.VISIBILITY, point=point, eps=eps)

    def matches_face(self, face: Optional[Face]) -> bool:
        if face is None:
            return False
        if self.kind is CriterionKind.CONNECTIVITY:
            return not self.vertex.incident(face)
        return face.point_status(self.point, self.eps) is PointStatus.BELOW

    def matches(self, edge: Edge) -> MatchResult:
        first = self.matches_face(edge.first_face)
        second = self.matches_face(edge.second_face)
        if first:
            return MatchResult.BOTH if second else MatchResult.FIRST
        return MatchResult.SECOND if second else MatchResult.NEITHER

    def find_first_splitting_edge(self, edges: Iterable[Edge]) -> Optional[Edge]:
        for edge in edges:
            result = self.matches(edge)
            if result is MatchResult.SECOND:
                edge.flip()
                return edge
            if result is MatchResult.FIRST:
                return edge
        return None

    def find_next_splitting_edge(self, last: Edge) -> Optional[Edge]:
        """Наступне ребро шва проти годинникової стрілки: обходимо віялом навколо last.first_vertex."""
        half_edge = last.first.previous
        nxt = half_edge.edge
        result = self.matches(nxt)
        while result not in (MatchResult.FIRST, MatchResult.SECOND) and nxt is not last:
            twin = half_edge.twin()
            if twin is None:
                raise TopologyError("Open edge met while walking around a vertex")
            half_edge = twin.previous
            nxt = half_edge.edge
            result = self.matches(nxt)

        if result not in (MatchResult.FIRST, MatchResult.SECOND):
            return None
        if result is MatchResult.SECOND:
            nxt.flip()
        return nxt


def create_seam(edges: List[Edge], criterion: SplittingCriterion) -> Seam:
    """
    Зібрати шов: ребра, де одна грань задовольняє criterion, а інша ні.
    Порожній шов означає «різати нічого».
    """
    seam = Seam()
    first = criterion.find_first_splitting_edge(edges)
    if first is None:
        logger.debug(f"No {criterion.kind.value} seam: nothing to split")
        return seam

    current = first
    while True:
        seam.push_back(current)
        if len(seam) > len(edges):
            raise TopologyError("Seam does not close")
        current = criterion.find_next_splitting_edge(current)
        if current is None:
            raise TopologyError("Seam is interrupted")
        if current is first:
            break

    logger.trace(f"Built {criterion.kind.value} seam with {len(seam)} edges")
    return seam
