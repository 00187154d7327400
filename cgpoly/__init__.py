"""
cgpoly — інкрементальна 3D опукла оболонка на напівребрах.
Вставка точок, видалення вершин і злиття з підтримкою опуклості
та сповіщеннями про створення/видалення граней.
"""

__version__ = "0.2.0"

from loguru import logger

from cgpoly.geom import Pt, EPS, BBox, centroid
from cgpoly.predicates import Plane, PointStatus, orient3d, convex_hull_2d
from cgpoly.mesh import Vertex, HalfEdge, Edge, Face, TopologyError
from cgpoly.seam import Seam, SplittingCriterion, create_seam
from cgpoly.polyhedron import Polyhedron, Callback

# бібліотека мовчить, доки застосунок не викличе logger.enable("cgpoly")
logger.disable("cgpoly")

__all__ = [
    "Pt", "EPS", "BBox", "centroid",
    "Plane", "PointStatus", "orient3d", "convex_hull_2d",
    "Vertex", "HalfEdge", "Edge", "Face", "TopologyError",
    "Seam", "SplittingCriterion", "create_seam",
    "Polyhedron", "Callback", "__version__",
]
