"""Stair helper functions for build123d.

Vector helpers, the Segment and RailPath value types used for rails and
landing edges, the tolerance-based line intersection, and the builders
that turn point lists into build123d shapes.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from build123d import Vector, Edge, Wire, Face, Shell

Z_AXIS = Vector(0, 0, 1)

# Closest points of two "intersecting" lines must be within this distance
INTERSECTION_TOLERANCE = 1e-5
# Below this a vector is treated as zero length
ZERO_TOLERANCE = 1e-12
# Consecutive points closer than this collapse when building shapes
POINT_TOLERANCE = 1e-9


def unitize(vec: Vector) -> Vector:
    """Unit vector along vec, or the zero vector when vec has no length."""
    length = vec.length
    if length <= ZERO_TOLERANCE:
        return Vector(0, 0, 0)
    return Vector(vec.X / length, vec.Y / length, vec.Z / length)


def is_zero(vec: Vector) -> bool:
    return vec.length <= ZERO_TOLERANCE


def vector_angle(a: Vector, b: Vector) -> float:
    """Angle between two vectors in radians, in [0, pi].

    Uses atan2 so parallel and perpendicular axis vectors give exactly
    0, pi/2 and pi.
    """
    if is_zero(a) or is_zero(b):
        raise ValueError("Angle is undefined for a zero-length vector")
    return math.atan2(a.cross(b).length, a.dot(b))


def plan_distance(p1: Vector, p2: Vector) -> float:
    """Distance between two points ignoring Z."""
    return math.hypot(p2.X - p1.X, p2.Y - p1.Y)


@dataclass(frozen=True)
class Segment:
    """Straight line between two points."""
    start: Vector
    end: Vector

    @property
    def direction(self) -> Vector:
        return self.end - self.start

    @property
    def length(self) -> float:
        return self.direction.length

    @property
    def unit_tangent(self) -> Vector:
        return unitize(self.direction)

    def point_at(self, t: float) -> Vector:
        return self.start + self.direction * t

    def distance_to_line(self, point: Vector) -> float:
        """Distance from point to the infinite line through this segment."""
        tangent = self.unit_tangent
        offset = point - self.start
        if is_zero(tangent):
            return offset.length
        return (offset - tangent * offset.dot(tangent)).length

    def translated(self, vec: Vector) -> Segment:
        return Segment(self.start + vec, self.end + vec)

    def to_shape(self) -> Edge:
        return Edge.make_line(self.start, self.end)


@dataclass(frozen=True)
class RailPath:
    """Open polyline, used for landing rail edges."""
    points: tuple

    @property
    def length(self) -> float:
        return sum(
            (p2 - p1).length for p1, p2 in zip(self.points, self.points[1:])
        )

    def divide(self, count: int) -> list[Vector]:
        """Split into count equal arc-length pieces.

        Returns count + 1 points, both ends included.
        """
        if count < 1:
            raise ValueError(f"Cannot divide a path into {count} pieces")
        total = self.length
        if total <= ZERO_TOLERANCE:
            return [self.points[0]] * (count + 1)

        pieces = list(zip(self.points, self.points[1:]))
        divisions = [self.points[0]]
        idx = 0
        walked = 0.0
        for k in range(1, count):
            target = total * k / count
            # Advance to the piece containing the target distance
            while idx < len(pieces) - 1 and walked + (pieces[idx][1] - pieces[idx][0]).length < target:
                walked += (pieces[idx][1] - pieces[idx][0]).length
                idx += 1
            p1, p2 = pieces[idx]
            piece_len = (p2 - p1).length
            frac = (target - walked) / piece_len if piece_len > 0 else 0.0
            divisions.append(p1 + (p2 - p1) * frac)
        divisions.append(self.points[-1])
        return divisions

    def translated(self, vec: Vector) -> RailPath:
        return RailPath(tuple(p + vec for p in self.points))

    def to_shape(self) -> Wire:
        return make_polyline(self.points)


def intersect_lines(line1: Segment, line2: Segment,
                    tolerance: float = INTERSECTION_TOLERANCE):
    """Intersect two infinite lines given by two points each.

    The lines are built from independently derived directions, so they
    may be skew by a negligible amount. The closest-approach points are
    accepted as an intersection when they lie within ``tolerance`` of each
    other.

    Returns:
        The point on line1, or None for parallel, degenerate or skew lines.
    """
    d1 = line1.direction
    d2 = line2.direction
    w0 = line1.start - line2.start

    a = d1.dot(d1)
    b = d1.dot(d2)
    c = d2.dot(d2)
    d = d1.dot(w0)
    e = d2.dot(w0)

    denom = a * c - b * b
    if a <= ZERO_TOLERANCE or c <= ZERO_TOLERANCE or abs(denom) <= ZERO_TOLERANCE * a * c:
        return None

    t1 = (b * e - c * d) / denom
    t2 = (a * e - b * d) / denom
    p1 = line1.point_at(t1)
    p2 = line2.point_at(t2)

    if (p1 - p2).length > tolerance:
        return None
    return p1


# ===========================================================================
# SHAPE BUILDERS
# ===========================================================================

def distinct_points(points) -> list[Vector]:
    """Drop points that coincide with the one before them."""
    pts = []
    for p in points:
        p = Vector(p)
        if not pts or (p - pts[-1]).length > POINT_TOLERANCE:
            pts.append(p)
    return pts


def make_polyline(points) -> Wire:
    """Degree-1 open wire through the points."""
    pts = distinct_points(points)
    if len(pts) < 2:
        raise ValueError("A polyline needs at least two distinct points")
    return Wire.make_polygon(pts, close=False)


def make_planar_face(loop) -> Face:
    """Planar face bounded by a closed point loop.

    The loop may repeat its first point at the end.
    """
    pts = distinct_points(loop)
    if len(pts) > 1 and (pts[0] - pts[-1]).length <= POINT_TOLERANCE:
        pts.pop()
    if len(pts) < 3:
        raise ValueError("A planar face needs at least three distinct corners")
    return Face(Wire.make_polygon(pts, close=True))


def make_extruded_profile(points, direction: Vector) -> Shell:
    """Extrude a degree-1 profile through the points along direction."""
    return Shell.extrude(make_polyline(points), direction)
