from __future__ import annotations
from dataclasses import dataclass
from math import sqrt
from typing import Iterable, Optional, Sequence, Tuple

EPS = 1e-9  # єдиний епс: дублікати, колінеарність, площини

@dataclass(frozen=True)
class Pt:
    x: float
    y: float
    z: float
    def __iter__(self):
        yield self.x; yield self.y; yield self.z

    @staticmethod
    def of(p) -> "Pt":
        """Привести (x, y, z) або Pt до Pt."""
        if isinstance(p, Pt):
            return p
        x, y, z = p
        return Pt(float(x), float(y), float(z))

def sub(a: Pt, b: Pt) -> Pt:
    return Pt(a.x - b.x, a.y - b.y, a.z - b.z)

def add(a: Pt, b: Pt) -> Pt:
    return Pt(a.x + b.x, a.y + b.y, a.z + b.z)

def scale(a: Pt, k: float) -> Pt:
    return Pt(a.x*k, a.y*k, a.z*k)

def dot(a: Pt, b: Pt) -> float:
    return a.x*b.x + a.y*b.y + a.z*b.z

def cross(a: Pt, b: Pt) -> Pt:
    return Pt(a.y*b.z - a.z*b.y,
              a.z*b.x - a.x*b.z,
              a.x*b.y - a.y*b.x)

def norm(a: Pt) -> float:
    return sqrt(dot(a, a))

def centroid(points: Iterable[Pt]) -> Pt:
    xs = ys = zs = 0.0
    n = 0
    for p in points:
        xs += p.x; ys += p.y; zs += p.z; n += 1
    if n == 0:
        raise ValueError("empty set")
    inv = 1.0 / n
    return Pt(xs*inv, ys*inv, zs*inv)

def almost_equal(a: Pt, b: Pt, eps: float = EPS) -> bool:
    """Покоординатне порівняння з допуском (політика дублікатів)."""
    return abs(a.x - b.x) <= eps and abs(a.y - b.y) <= eps and abs(a.z - b.z) <= eps

def linearly_dependent(a: Pt, b: Pt, c: Pt, eps: float = EPS) -> bool:
    """
    Чи лежать a, b, c на одній прямій.
    Міряємо відстань від c до прямої ab, а не площу, щоб допуск був у довжинах.
    """
    ab = sub(b, a)
    lab = norm(ab)
    if lab <= eps:
        return True
    return norm(cross(ab, sub(c, a))) / lab <= eps

def contained_within_segment(p: Pt, a: Pt, b: Pt, eps: float = EPS) -> bool:
    """p (колінеарна з ab) лежить на відрізку [a, b], включно з кінцями."""
    ab = sub(b, a)
    l2 = dot(ab, ab)
    if l2 == 0.0:
        return almost_equal(p, a, eps)
    t = dot(sub(p, a), ab) / l2
    tol = eps / sqrt(l2)
    return -tol <= t <= 1.0 + tol

def polygon_contains_point(p: Pt, polygon: Sequence[Pt], normal: Pt, eps: float = EPS) -> bool:
    """
    Чи лежить копланарна точка p у опуклому многокутнику (межа теж рахується).
    polygon — вершини проти годинникової стрілки, якщо дивитися з боку normal.
    """
    n_len = norm(normal)
    if n_len == 0.0:
        return False
    n = scale(normal, 1.0 / n_len)
    count = len(polygon)
    for i in range(count):
        a = polygon[i]
        b = polygon[(i + 1) % count]
        edge = sub(b, a)
        le = norm(edge)
        if le == 0.0:
            continue
        # відстань від p до прямої ab із знаком: > 0 — всередину
        if dot(cross(edge, sub(p, a)), n) / le < -eps:
            return False
    return True


@dataclass
class BBox:
    """Осе-вирівняний бокс; min/max — Pt."""
    min: Pt
    max: Pt

    @classmethod
    def from_point(cls, p: Pt) -> "BBox":
        return cls(p, p)

    @classmethod
    def from_points(cls, points: Iterable[Pt]) -> Optional["BBox"]:
        box: Optional[BBox] = None
        for p in points:
            if box is None:
                box = cls.from_point(p)
            else:
                box.merge(p)
        return box

    def merge(self, p: Pt) -> None:
        self.min = Pt(min(self.min.x, p.x), min(self.min.y, p.y), min(self.min.z, p.z))
        self.max = Pt(max(self.max.x, p.x), max(self.max.y, p.y), max(self.max.z, p.z))

    def contains(self, p: Pt, eps: float = EPS) -> bool:
        return (self.min.x - eps <= p.x <= self.max.x + eps and
                self.min.y - eps <= p.y <= self.max.y + eps and
                self.min.z - eps <= p.z <= self.max.z + eps)

    def as_tuple(self) -> Tuple[Tuple[float, float, float], Tuple[float, float, float]]:
        return tuple(self.min), tuple(self.max)
