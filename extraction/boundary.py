"""
extraction/boundary.py

Polygon construction over literal ``(lat, lng)`` points.

Small point sets get a monotone-chain convex hull; dense sets are reduced to
their axis-aligned bounding box. Every ring returned by ``build_boundary`` is
closed (first vertex repeated at the end).
"""

from __future__ import annotations

from typing import Iterable, Sequence

from app.domain.agriculture import BoundaryMethod, BoundingBox, Coordinate

HULL_POINT_THRESHOLD = 10
"""Point sets larger than this use the bounding box instead of the hull."""


class DegeneratePolygonError(ValueError):
    """
    Raised when points cannot enclose an area (too few or collinear).
    """


def _cross(origin: Coordinate, a: Coordinate, b: Coordinate) -> float:
    return (a[0] - origin[0]) * (b[1] - origin[1]) - (a[1] - origin[1]) * (b[0] - origin[0])


def distinct_points(points: Iterable[Coordinate]) -> list[Coordinate]:
    """Drop repeated points, keeping first-seen order."""
    return list(dict.fromkeys((float(lat), float(lng)) for lat, lng in points))


def convex_hull(points: Iterable[Coordinate]) -> list[Coordinate]:
    """
    Return the convex hull of *points* as an open ring in counter-clockwise
    order, starting at the lowest ``(x, y)`` point.

    Collinear points on the hull boundary are discarded.
    """

    ordered = sorted(set(distinct_points(points)))
    if len(ordered) < 3:
        raise DegeneratePolygonError(f"Need at least 3 distinct points, got {len(ordered)}.")

    lower: list[Coordinate] = []
    for point in ordered:
        while len(lower) >= 2 and _cross(lower[-2], lower[-1], point) <= 0:
            lower.pop()
        lower.append(point)

    upper: list[Coordinate] = []
    for point in reversed(ordered):
        while len(upper) >= 2 and _cross(upper[-2], upper[-1], point) <= 0:
            upper.pop()
        upper.append(point)

    hull = lower[:-1] + upper[:-1]
    if len(hull) < 3:
        raise DegeneratePolygonError("All points are collinear.")
    return hull


def bounding_box(points: Iterable[Coordinate]) -> BoundingBox | None:
    collected = list(points)
    if not collected:
        return None
    lats = [lat for lat, _ in collected]
    lngs = [lng for _, lng in collected]
    return BoundingBox(min_lat=min(lats), max_lat=max(lats), min_lng=min(lngs), max_lng=max(lngs))


def bounding_box_ring(points: Iterable[Coordinate]) -> list[Coordinate]:
    """
    Return the 4-corner closed ring (5 points) of the bounding box.
    """

    box = bounding_box(points)
    if box is None:
        raise DegeneratePolygonError("No points to bound.")
    if box.min_lat == box.max_lat or box.min_lng == box.max_lng:
        raise DegeneratePolygonError("Bounding box has zero width.")
    return [
        (box.min_lat, box.min_lng),
        (box.min_lat, box.max_lng),
        (box.max_lat, box.max_lng),
        (box.max_lat, box.min_lng),
        (box.min_lat, box.min_lng),
    ]


def close_ring(points: Sequence[Coordinate]) -> list[Coordinate]:
    ring = list(points)
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def polygon_area(ring: Sequence[Coordinate]) -> float:
    """
    Shoelace area of *ring*, open or closed, in squared coordinate units.

    Self-intersecting rings return a number without complaint; callers only
    use it as a display statistic.
    """

    vertices = list(ring)
    if len(vertices) >= 2 and vertices[0] == vertices[-1]:
        vertices = vertices[:-1]
    if len(vertices) < 3:
        return 0.0

    total = 0.0
    for index, (x1, y1) in enumerate(vertices):
        x2, y2 = vertices[(index + 1) % len(vertices)]
        total += x1 * y2 - x2 * y1
    return abs(total) / 2.0


def build_boundary(
    points: Iterable[Coordinate],
    *,
    hull_threshold: int = HULL_POINT_THRESHOLD,
) -> tuple[list[Coordinate], BoundaryMethod]:
    """
    Build a closed polygon enclosing *points*.

    Raises DegeneratePolygonError when fewer than 3 distinct points are given
    or the points span no area.
    """

    unique = distinct_points(points)
    if len(unique) < 3:
        raise DegeneratePolygonError(f"Need at least 3 distinct points, got {len(unique)}.")
    if len(unique) <= hull_threshold:
        return close_ring(convex_hull(unique)), "convex_hull"
    return bounding_box_ring(unique), "bounding_box"
