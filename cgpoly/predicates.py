# cgpoly/predicates.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from .geom import Pt, sub, cross, dot, norm, scale, EPS

def orient3d(a: Pt, b: Pt, c: Pt, d: Pt) -> float:
    ab = sub(b, a)
    ac = sub(c, a)
    ad = sub(d, a)
    return dot(cross(ab, ac), ad)


class PointStatus(Enum):
    ABOVE = 1    # з боку нормалі (зовні)
    BELOW = -1   # проти нормалі (всередині)
    INSIDE = 0   # на площині в межах епсилон


@dataclass(frozen=True)
class Plane:
    """Площина dot(normal, p) = distance, normal — одиничний."""
    normal: Pt
    distance: float

    @classmethod
    def from_points(cls, a: Pt, b: Pt, c: Pt) -> "Plane":
        """
        Площина через a, b, c. Нормаль (b-a) x (c-a): якщо a, b, c
        йдуть проти годинникової стрілки, нормаль дивиться на спостерігача.
        """
        n = cross(sub(b, a), sub(c, a))
        length = norm(n)
        if length == 0.0:
            raise ValueError("Collinear points do not define a plane")
        n = scale(n, 1.0 / length)
        return cls(n, dot(n, a))

    @classmethod
    def from_normal(cls, normal: Pt, anchor: Pt) -> "Plane":
        length = norm(normal)
        if length == 0.0:
            raise ValueError("Zero normal")
        n = scale(normal, 1.0 / length)
        return cls(n, dot(n, anchor))

    def signed_distance(self, p: Pt) -> float:
        return dot(self.normal, p) - self.distance

    def point_status(self, p: Pt, eps: float = EPS) -> PointStatus:
        d = self.signed_distance(p)
        if d > eps:
            return PointStatus.ABOVE
        if d < -eps:
            return PointStatus.BELOW
        return PointStatus.INSIDE

    def flipped(self) -> "Plane":
        return Plane(scale(self.normal, -1.0), -self.distance)


def newell_normal(polygon: Sequence[Pt]) -> Pt:
    """Нормаль багатокутника методом Ньюела (не нормована, стійка до колінеарних трійок)."""
    nx = ny = nz = 0.0
    count = len(polygon)
    for i in range(count):
        a = polygon[i]
        b = polygon[(i + 1) % count]
        nx += (a.y - b.y) * (a.z + b.z)
        ny += (a.z - b.z) * (a.x + b.x)
        nz += (a.x - b.x) * (a.y + b.y)
    return Pt(nx, ny, nz)


def spanning_triple(points: Sequence[Pt], eps: float = EPS) -> Optional[Tuple[Pt, Pt, Pt]]:
    """Перша неколінеарна трійка з points, або None (всі на прямій)."""
    if len(points) < 3:
        return None
    a = points[0]
    b = None
    for p in points[1:]:
        if norm(sub(p, a)) > eps:
            b = p
            break
    if b is None:
        return None
    ab = sub(b, a)
    lab = norm(ab)
    for c in points:
        if norm(cross(ab, sub(c, a))) / lab > eps:
            return a, b, c
    return None


def spanning_normal(points: Sequence[Pt], eps: float = EPS) -> Optional[Pt]:
    """Нормаль першої неколінеарної трійки з points, або None (всі на прямій)."""
    triple = spanning_triple(points, eps)
    if triple is None:
        return None
    a, b, c = triple
    return cross(sub(b, a), sub(c, a))


def convex_hull_2d(points: Iterable[Pt], normal: Optional[Pt] = None, eps: float = EPS) -> List[Pt]:
    """
    Опукла оболонка копланарного набору точок (scipy / Qhull у 2D).
    Проектуємо на координатну площину, що найменше спотворює (відкидаємо
    найбільшу компоненту нормалі), і повертаємо вершини оболонки проти
    годинникової стрілки відносно normal.
    """
    pts = list(points)
    if normal is None:
        normal = spanning_normal(pts, eps)
    if normal is None:
        raise ValueError("Points are collinear: no 2D hull")

    comps = (abs(normal.x), abs(normal.y), abs(normal.z))
    drop = comps.index(max(comps))
    keep = [i for i in range(3) if i != drop]
    arr = np.array([[tuple(p)[keep[0]], tuple(p)[keep[1]]] for p in pts], dtype=float)
    try:
        hull = ConvexHull(arr)
    except QhullError as e:
        raise ValueError("Degenerate point set for 2D hull") from e

    ring = [pts[int(i)] for i in hull.vertices]
    if dot(newell_normal(ring), normal) < 0:
        ring.reverse()
    return ring
