"""Landing between two consecutive runs.

A Landing joins the top edge of the bottom run to the bottom edge of the
top run with one flat planar surface and left/right railing. The surface
is built in one of three ways depending on the turn angle between the runs:

  - PARALLEL  (turn == 0):            rectangle between the two edges
  - MODERATE  (0 < turn <= 90 deg):   side edges projected and intersected
  - SHARP     (turn > 90 deg):        switchback with a mitred outer corner

A landing whose runs cannot be joined cleanly is invalid and produces no
geometry. Surface construction never raises: a failed intersection yields
NoSurface with the reason.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from build123d import Vector, Face

from stair_run import Run
from stair_helpers import (
    Z_AXIS, Segment, RailPath, unitize, is_zero, vector_angle,
    intersect_lines, make_planar_face,
)

# Turn angles at or below this are treated as exactly parallel runs
ANGLE_TOLERANCE = 1e-9

LANDING_SKIPPED = ("The relationship between {first} and {second} is ambiguous, "
                   "creation of landing will be skipped.")
LANDING_FAILED = "Landing creation failed"


class NearSide(Enum):
    FROM = "from"
    TO = "to"


class LandingCase(Enum):
    PARALLEL = "parallel"
    MODERATE = "moderate"
    SHARP = "sharp"


@dataclass(frozen=True)
class LandingSurface:
    """A successfully built landing."""
    outline: tuple          # closed loop, last point == first point
    face: Face
    right_rail_edge: RailPath
    left_rail_edge: RailPath


@dataclass(frozen=True)
class NoSurface:
    """Landing geometry could not be built."""
    reason: str


def special_angle(a: Vector, b: Vector, m: Vector) -> float:
    """Angle from a to b measured around m when b points back past m."""
    a0 = vector_angle(m, b)
    if a0 > math.pi / 2:
        return a0 + vector_angle(a, m)
    return vector_angle(a, b)


def mid_direction(bottom_dir: Vector, top_dir: Vector,
                  bottom_tread: Vector, near_tangent: Vector) -> Vector:
    """Bisector-like direction for a sharp landing.

    Falls back, in order, from the sum of the run directions to the near
    edge tangent projected on the bottom tread direction, then to the raw
    near edge tangent.
    """
    vec_mid = bottom_dir + top_dir
    if is_zero(vec_mid):
        vec_mid = bottom_tread * bottom_tread.dot(near_tangent)
    if is_zero(vec_mid):
        vec_mid = near_tangent
    return unitize(vec_mid)


def railing_for_edge(edge: RailPath, spacing: float, height: float) -> list:
    """Balusters at even spacing along edge, then the rail above it.

    Returns num + 1 vertical Segments (both ends included) followed by the
    edge raised by height, where num = max(floor(length / spacing), 1).
    """
    num = max(math.floor(edge.length / spacing), 1)
    post = Z_AXIS * height
    railing = [Segment(pt, pt + post) for pt in edge.divide(num)]
    railing.append(edge.translated(post))
    return railing


class Landing:
    """Flat connector from bottom_run's top edge to top_run's bottom edge.

    Both runs are borrowed and must be final before the landing is built.
    """

    def __init__(self, bottom_run: Run, top_run: Run):
        self.bottom_run = bottom_run
        self.top_run = top_run

        # Tread vectors run along each landing edge away from the near side
        bottom, top = self.bottom_edge, self.top_edge
        if self.nearest_side is NearSide.FROM:
            tread_bottom = bottom.end - bottom.start
            tread_top = top.end - top.start
        else:
            tread_bottom = bottom.start - bottom.end
            tread_top = top.start - top.end

        self._is_valid = self._validate(tread_bottom, tread_top)
        self._surface = None

    @property
    def is_valid(self) -> bool:
        return self._is_valid

    @property
    def turn_angle(self) -> float:
        """Angle the climber turns through from run to run, in [0, pi]."""
        return vector_angle(self.bottom_run.run_direction, self.top_run.run_direction)

    @property
    def case(self) -> LandingCase:
        alpha = self.turn_angle
        if alpha <= ANGLE_TOLERANCE:
            return LandingCase.PARALLEL
        if alpha <= math.pi / 2:
            return LandingCase.MODERATE
        return LandingCase.SHARP

    @property
    def bottom_edge(self) -> Segment:
        return self.bottom_run.top_edge

    @property
    def top_edge(self) -> Segment:
        return self.top_run.bottom_edge

    @property
    def nearest_side(self) -> NearSide:
        """Side whose corresponding edge endpoints are closer. Ties go to FROM."""
        bottom, top = self.bottom_edge, self.top_edge
        df = (top.start - bottom.start).length
        dt = (top.end - bottom.end).length
        if df > dt:
            return NearSide.TO
        return NearSide.FROM

    @property
    def near_edge(self) -> Segment:
        bottom, top = self.bottom_edge, self.top_edge
        if self.nearest_side is NearSide.FROM:
            return Segment(bottom.start, top.start)
        return Segment(bottom.end, top.end)

    @property
    def far_edge(self) -> Segment:
        bottom, top = self.bottom_edge, self.top_edge
        if self.nearest_side is NearSide.FROM:
            return Segment(bottom.end, top.end)
        return Segment(bottom.start, top.start)

    # -----------------------------------------------------------------------
    # Validation
    # -----------------------------------------------------------------------

    def _validate(self, tread_bottom: Vector, tread_top: Vector) -> bool:
        bottom, top = self.bottom_edge, self.top_edge

        if self.case is LandingCase.PARALLEL:
            # The top run has to start ahead of the bottom run
            join = self.top_run.start_point - self.bottom_run.end_point
            return self.bottom_run.run_direction.dot(join) > 0

        # Landings are flat
        if bottom.start.Z != top.start.Z:
            return False
        if bottom.end.Z != top.end.Z:
            return False

        near = self.near_edge
        if is_zero(near.direction):
            return False

        # Runs must not meet the near edge at an acute angle
        nvb = near.direction
        nvt = -nvb
        if vector_angle(nvb, tread_bottom) < math.pi / 2:
            return False
        if vector_angle(nvt, tread_top) < math.pi / 2:
            return False

        theta1 = special_angle(tread_bottom, nvb, self.bottom_run.run_direction)
        theta2 = special_angle(tread_top, nvt, -self.top_run.run_direction)

        # The runs turn further than they can
        if theta1 + theta2 > 2 * math.pi:
            return False

        return True

    # -----------------------------------------------------------------------
    # Surface
    # -----------------------------------------------------------------------

    def surface(self):
        """LandingSurface for a valid landing, otherwise NoSurface."""
        if self._surface is None:
            self._surface = self._build_surface()
        return self._surface

    def _build_surface(self):
        if not self._is_valid:
            return NoSurface(LANDING_SKIPPED.format(first="the bottom run", second="the top run"))

        case = self.case
        if case is LandingCase.PARALLEL:
            result = self._parallel_outline()
        elif case is LandingCase.MODERATE:
            result = self._moderate_outline()
        else:
            result = self._sharp_outline()

        if isinstance(result, NoSurface):
            return result

        outline, right_edge, left_edge = result
        try:
            face = make_planar_face(outline)
        except Exception as e:
            print(f"  [!] Landing face failed: {e}")
            return NoSurface(f"{LANDING_FAILED}: could not build a planar face ({e})")

        return LandingSurface(
            outline=tuple(outline),
            face=face,
            right_rail_edge=right_edge,
            left_rail_edge=left_edge,
        )

    def _parallel_outline(self):
        """Rectangle between two parallel runs."""
        bottom, top = self.bottom_edge, self.top_edge
        y_vec = unitize(self.bottom_run.run_direction)

        if (top.end - bottom.start).length >= (top.start - bottom.end).length:
            corner = bottom.start
            x_vec = unitize(bottom.end - bottom.start)
            diagonal = top.end - bottom.start
            starting_at = NearSide.FROM
        else:
            corner = bottom.end
            x_vec = unitize(bottom.start - bottom.end)
            diagonal = top.start - bottom.end
            starting_at = NearSide.TO

        dist_x = diagonal.dot(x_vec)
        dist_y = bottom.distance_to_line(top.start)

        p1 = corner + y_vec * dist_y
        p2 = p1 + x_vec * dist_x
        p3 = p2 - y_vec * dist_y
        outline = [corner, p1, p2, p3, corner]

        rail1 = RailPath((corner, p1, p1 + x_vec * (dist_x - self.top_run.width)))
        rail2 = RailPath((p2, p3, p3 - x_vec * (dist_x - self.bottom_run.width)))

        if starting_at is NearSide.FROM:
            return outline, rail1, rail2
        return outline, rail2, rail1

    def _moderate_outline(self):
        """Both side edges extended until they meet."""
        bottom, top = self.bottom_edge, self.top_edge
        b_dir = self.bottom_run.run_direction
        t_dir = self.top_run.run_direction

        from_x = intersect_lines(Segment(bottom.start, bottom.start + b_dir),
                                 Segment(top.start, top.start - t_dir))
        to_x = intersect_lines(Segment(bottom.end, bottom.end + b_dir),
                               Segment(top.end, top.end - t_dir))
        if from_x is None or to_x is None:
            return NoSurface(f"{LANDING_FAILED}: side edges of the runs do not intersect")

        outline = [bottom.start, from_x, top.start, top.end, to_x, bottom.end, bottom.start]
        right_edge = RailPath((bottom.start, from_x, top.start))
        left_edge = RailPath((top.end, to_x, bottom.end))
        return outline, right_edge, left_edge

    def _sharp_outline(self):
        """Switchback landing wrapping around the inner corner."""
        bottom, top = self.bottom_edge, self.top_edge
        b_dir = self.bottom_run.run_direction
        t_dir = self.top_run.run_direction
        near_tangent = self.near_edge.unit_tangent
        from_side = self.nearest_side is NearSide.FROM

        vec_mid = mid_direction(b_dir, t_dir, self.bottom_run.tread_direction, near_tangent)
        offset_dir = unitize(b_dir - t_dir)

        if near_tangent.dot(b_dir) >= 0:
            vec1 = -t_dir
            vec2 = b_dir
            vec_mid = -vec_mid
            if from_side:
                inner1, outer1, inner2, outer2 = top.start, top.end, bottom.start, bottom.end
            else:
                inner1, outer1, inner2, outer2 = top.end, top.start, bottom.end, bottom.start
        else:
            vec1 = b_dir
            vec2 = -t_dir
            if from_side:
                inner1, outer1, inner2, outer2 = bottom.start, bottom.end, top.start, top.end
            else:
                inner1, outer1, inner2, outer2 = bottom.end, bottom.start, top.end, top.start

        outer_mid = inner1 + offset_dir * self.bottom_run.width

        pt = intersect_lines(Segment(inner1, inner1 + vec_mid), Segment(inner2, inner2 + vec2))
        if pt is None:
            return NoSurface(f"{LANDING_FAILED}: inner corner does not intersect")
        pt1 = intersect_lines(Segment(outer2, outer2 + vec2), Segment(outer_mid, outer_mid + vec_mid))
        if pt1 is None:
            return NoSurface(f"{LANDING_FAILED}: outer corner does not intersect")
        pt2 = intersect_lines(Segment(outer_mid, outer_mid - vec_mid), Segment(outer1, outer1 + vec1))
        if pt2 is None:
            return NoSurface(f"{LANDING_FAILED}: outer mitre does not intersect")

        outline = [inner1, pt, inner2, outer2, pt1, pt2, outer1, inner1]
        inner_edge = RailPath((inner1, pt, inner2))
        outer_edge = RailPath((outer2, pt1, pt2, outer1))

        if from_side:
            return outline, inner_edge, outer_edge
        return outline, outer_edge, inner_edge

    # -----------------------------------------------------------------------
    # Railing
    # -----------------------------------------------------------------------

    @property
    def right_rail_edge(self):
        result = self.surface()
        return None if isinstance(result, NoSurface) else result.right_rail_edge

    @property
    def left_rail_edge(self):
        result = self.surface()
        return None if isinstance(result, NoSurface) else result.left_rail_edge

    def railings(self, include_left: bool, include_right: bool) -> list:
        """Balusters and rails along the landing's edges, left side first.

        Balusters are spaced by the bottom run's tread depth.
        """
        result = self.surface()
        if isinstance(result, NoSurface):
            return []

        spacing = self.bottom_run.tread_dim
        height = self.bottom_run.rail_height
        railing = []
        if include_left:
            railing.extend(railing_for_edge(result.left_rail_edge, spacing, height))
        if include_right:
            railing.extend(railing_for_edge(result.right_rail_edge, spacing, height))
        return railing
