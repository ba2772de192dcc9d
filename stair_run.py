"""Single flight of stairs between two points.

A Run derives its construction directions, step count and step dimensions
from the start and end points, and emits edges, rails, balusters and the
stepped surface. Runs are immutable: every derived value is recomputed
from the same inputs, so repeated queries return identical results.
"""
from __future__ import annotations

import math

from build123d import Vector

from stair_code import CodeRules
from stair_helpers import (
    Z_AXIS, Segment, unitize, is_zero, plan_distance, make_extruded_profile,
)

# Relative slack on the slope bounds so a slope-corrected run stays valid
SLOPE_TOLERANCE = 1e-9


def clamp_run_end(start: Vector, end: Vector) -> Vector:
    """Stretch the plan span of a run to at least MIN_TREAD.

    The plan offset keeps its direction (the +X axis when there is none)
    and the vertical offset is kept as picked.
    """
    plan = Vector(end.X - start.X, end.Y - start.Y, 0)
    if plan.length >= CodeRules.MIN_TREAD:
        return end
    plan_dir = unitize(plan)
    if is_zero(plan_dir):
        plan_dir = Vector(1, 0, 0)
    return start + plan_dir * CodeRules.MIN_TREAD + Vector(0, 0, end.Z - start.Z)


class Run:
    """One inclined flight from start_point to end_point."""

    def __init__(self, start_point, end_point,
                 width: float = CodeRules.DEFAULT_WIDTH,
                 rail_height: float = CodeRules.DEFAULT_RAIL_HEIGHT,
                 left_rail: bool = True, right_rail: bool = True):
        if width <= 0:
            raise ValueError(f"Run width must be positive, got {width}")
        if rail_height <= 0:
            raise ValueError(f"Rail height must be positive, got {rail_height}")
        start = Vector(start_point)
        self._start = start
        self._end = clamp_run_end(start, Vector(end_point))
        self._width = float(width)
        self._rail_height = float(rail_height)
        self._left_rail = bool(left_rail)
        self._right_rail = bool(right_rail)

    def __repr__(self):
        s, e = self._start, self._end
        return (f"Run(({s.X:.2f}, {s.Y:.2f}, {s.Z:.2f}) -> "
                f"({e.X:.2f}, {e.Y:.2f}, {e.Z:.2f}), width={self._width:g})")

    @property
    def start_point(self) -> Vector:
        return Vector(self._start)

    @property
    def end_point(self) -> Vector:
        return Vector(self._end)

    @property
    def width(self) -> float:
        return self._width

    @property
    def rail_height(self) -> float:
        return self._rail_height

    @property
    def left_rail(self) -> bool:
        return self._left_rail

    @property
    def right_rail(self) -> bool:
        return self._right_rail

    # -----------------------------------------------------------------------
    # Directions
    # -----------------------------------------------------------------------

    @property
    def stringer_direction(self) -> Vector:
        """Unit vector along the full slope."""
        return unitize(self._end - self._start)

    @property
    def run_direction(self) -> Vector:
        """Unit vector along the plan, parallel to the climber's foot."""
        return unitize(Vector(self._end.X - self._start.X, self._end.Y - self._start.Y, 0))

    @property
    def tread_direction(self) -> Vector:
        """Horizontal unit vector across the run, to the climber's right."""
        return unitize(self.stringer_direction.cross(Z_AXIS))

    @property
    def riser_direction(self) -> Vector:
        """+Z when ascending, -Z when descending, zero for a flat run."""
        return unitize(Vector(0, 0, self._end.Z - self._start.Z))

    # -----------------------------------------------------------------------
    # Dimensions
    # -----------------------------------------------------------------------

    @property
    def vertical_distance(self) -> float:
        return abs(self._end.Z - self._start.Z)

    @property
    def horizontal_distance(self) -> float:
        return plan_distance(self._start, self._end)

    @property
    def num_steps(self) -> int:
        return max(math.floor(self.horizontal_distance / CodeRules.MIN_TREAD), 1)

    @property
    def riser_dim(self) -> float:
        return self.vertical_distance / self.num_steps

    @property
    def tread_dim(self) -> float:
        return self.horizontal_distance / self.num_steps

    @property
    def slope(self) -> float:
        return self.vertical_distance / self.horizontal_distance

    @property
    def is_valid(self) -> bool:
        """True when the slope lies within the code limits."""
        slope = self.slope
        # Bounds are widened by SLOPE_TOLERANCE on purpose: a slope_corrected()
        # run sits on a limit and recomputes its slope from rounded coordinates
        slope_ok =(CodeRules.MIN_SLOPE * (1 - SLOPE_TOLERANCE) <= slope
                    <= CodeRules.MAX_SLOPE * (1 + SLOPE_TOLERANCE))
        return slope_ok and self.num_steps > 0

    # -----------------------------------------------------------------------
    # Edges
    # -----------------------------------------------------------------------

    def _half_width(self) -> Vector:
        return self.tread_direction * (self._width / 2)

    @property
    def bottom_edge(self) -> Segment:
        half = self._half_width()
        return Segment(self._start + half, self._start - half)

    @property
    def top_edge(self) -> Segment:
        half = self._half_width()
        return Segment(self._end + half, self._end - half)

    @property
    def side_edge_1(self) -> Segment:
        half = self._half_width()
        return Segment(self._start + half, self._end + half)

    @property
    def side_edge_2(self) -> Segment:
        half = self._half_width()
        return Segment(self._start - half, self._end - half)

    def edges(self) -> list[Segment]:
        """Bottom, top and both side edges at full width."""
        return [self.bottom_edge, self.top_edge, self.side_edge_1, self.side_edge_2]

    def flat_lines(self) -> list[Segment]:
        """Outline plus one line per step boundary, for a quick preview."""
        lines = self.edges()
        bottom = self.bottom_edge
        step = self.run_direction * self.tread_dim
        for i in range(1, self.num_steps):
            lines.append(bottom.translated(step * i))
        return lines

    # -----------------------------------------------------------------------
    # Railing
    # -----------------------------------------------------------------------

    def _first_riser_midpoints(self):
        """Mid-height of the first riser on the right and left edges."""
        lift = self.riser_direction * (self.riser_dim / 2)
        bottom = self.bottom_edge
        return bottom.start + lift, bottom.end + lift

    def rails(self) -> list[Segment]:
        """Right then left rail, as enabled."""
        lift = self.riser_direction * (self.riser_dim / 2) + Z_AXIS * self._rail_height
        bottom, top = self.bottom_edge, self.top_edge

        rail_set = []
        if self._right_rail:
            rail_set.append(Segment(bottom.start + lift, top.start + lift))
        if self._left_rail:
            rail_set.append(Segment(bottom.end + lift, top.end + lift))
        return rail_set

    def balusters(self) -> list[Segment]:
        """One vertical post per step and enabled side, standing mid-tread."""
        right, left = self._first_riser_midpoints()
        half_step = (self.riser_direction * (self.riser_dim / 2)
                     + self.run_direction * (self.tread_dim / 2))
        post = Z_AXIS * self._rail_height

        balusters = []
        for i in range(self.num_steps):
            offset = half_step * (2 * i + 1)
            if self._right_rail:
                base = right + offset
                balusters.append(Segment(base, base + post))
            if self._left_rail:
                base = left + offset
                balusters.append(Segment(base, base + post))
        return balusters

    # -----------------------------------------------------------------------
    # Surface
    # -----------------------------------------------------------------------

    def step_profile(self) -> list[Vector]:
        """Sawtooth profile along the left edge: 2 * num_steps + 1 points."""
        riser = self.riser_direction * self.riser_dim
        tread = self.run_direction * self.tread_dim
        cur = self._start - self._half_width()
        pts = [cur]
        for _ in range(self.num_steps):
            cur = cur + riser
            pts.append(cur)
            cur = cur + tread
            pts.append(cur)
        return pts

    def step_surface(self):
        """Stepped surface: the profile extruded across the full width."""
        return make_extruded_profile(self.step_profile(), self.tread_direction * self._width)

    def slope_corrected(self) -> Run:
        """This run, or a copy with its height clamped into the slope limits."""
        if self.is_valid:
            return self
        horizontal = self.horizontal_distance
        if self.slope < CodeRules.MIN_SLOPE:
            vertical = horizontal * CodeRules.MIN_SLOPE
        else:
            vertical = horizontal * CodeRules.MAX_SLOPE
        rise_dir = self.riser_direction
        if is_zero(rise_dir):
            rise_dir = Z_AXIS
        plan_end = Vector(self._end.X, self._end.Y, self._start.Z)
        return Run(self._start, plan_end + rise_dir * vertical,
                   width=self._width, rail_height=self._rail_height,
                   left_rail=self._left_rail, right_rail=self._right_rail)
