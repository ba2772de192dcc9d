"""Smart Stairs Builder.

Builds runs of stairs and the landings between them from picked points:
  - Stepped run surfaces (polyline profile extruded across the width)
  - Rails and balusters for each run
  - Landing surfaces and landing railings between consecutive runs

Each run is described by three points: the start, the end in plan and a
point whose height sets the top of the run. Later runs start on the level
the previous run ended on.

Usage:
    python smart_stairs.py [points.json] [--width 40] [--no_landing] [--show]
"""
import json
import argparse

from build123d import Vector, Compound, export_step, export_stl

from stair_code import CodeRules, StairCodeValidator
from stair_run import Run
from stair_landing import Landing, NoSurface, LANDING_SKIPPED

# Default Configuration
DEFAULT_CONFIG = {
    "width": CodeRules.DEFAULT_WIDTH,
    "rail_height": CodeRules.DEFAULT_RAIL_HEIGHT,
    "left_rail": True,
    "right_rail": True,
    "landing": True,
    "enforce_slope": False,
}

# An L-shaped stair: up along +Y, quarter landing, then up along +X
DEFAULT_RUNS = [
    [(0, 0, 0), (0, 100, 0), (0, 100, 50)],
    [(30, 120, 50), (130, 120, 50), (130, 120, 100)],
]

# Colours
C_STEPS    = (0.72, 0.52, 0.30)
C_LANDING  = (0.78, 0.60, 0.38)
C_RAIL     = (0.40, 0.26, 0.13)
C_BALUSTER = (0.20, 0.20, 0.20)

CATEGORIES = ["steps", "landings", "rails", "balusters", "landing_railings"]


def make_run(points, config, level=None):
    """Build a Run from (start, plan end, height reference) points.

    The plan end is projected onto the start's horizontal plane and the
    run ends at the height of the third point. With level given, the start
    is dropped onto that level first.
    """
    start, plan_end, height_ref = (Vector(p) for p in points)
    if level is not None:
        start = Vector(start.X, start.Y, level)
    end = Vector(plan_end.X, plan_end.Y, height_ref.Z)
    return Run(start, end,
               width=config["width"],
               rail_height=config["rail_height"],
               left_rail=config["left_rail"],
               right_rail=config["right_rail"])


def plan_stairs(run_points, config):
    """Compute runs and landings without building any shapes.

    Returns:
        (runs, landings, diagnostics) where landings only holds the ones
        that produced a surface.
    """
    runs, landings, diagnostics = [], [], []
    prev_run = None
    level = None

    for i, points in enumerate(run_points):
        run = make_run(points, config, level)

        issues = StairCodeValidator.check_run(run)
        for issue in issues:
            diagnostics.append(f"Run {i + 1}: {issue}")
        if issues:
            print(f"  [!] Run {i + 1} does not comply: {'; '.join(issues)}")

        if config.get("enforce_slope") and not run.is_valid:
            run = run.slope_corrected()
            print(f"  Run {i + 1}: slope corrected to {run.slope:.3f}")
            diagnostics.append(f"Run {i + 1}: slope corrected to {run.slope:.3f}")

        print(f"  Run {i + 1}: {run.num_steps} steps, "
              f"riser={run.riser_dim:.2f}, tread={run.tread_dim:.2f}")
        runs.append(run)

        if prev_run is not None and config.get("landing", True):
            landing = Landing(prev_run, run)
            if not landing.is_valid:
                msg = LANDING_SKIPPED.format(first=f"run {i}", second=f"run {i + 1}")
                print(f"  [!] {msg}")
                diagnostics.append(msg)
            else:
                result = landing.surface()
                if isinstance(result, NoSurface):
                    print(f"  [!] Landing {i}: {result.reason}")
                    diagnostics.append(f"Landing {i}: {result.reason}")
                else:
                    landings.append(landing)

        level = run.end_point.Z
        prev_run = run

    return runs, landings, diagnostics


def _shapes(items):
    """Convert Segments/RailPaths to build123d shapes, skipping degenerate ones."""
    shapes = []
    for item in items:
        if item.length <= 0:
            continue
        try:
            shapes.append(item.to_shape())
        except Exception as e:
            print(f"    Warning: skipped degenerate curve: {e}")
    return shapes


def build_stairs(run_points, config):
    """Build the full stair as categorised build123d shape lists.

    Returns:
        (elements, diagnostics)
    """
    runs, landings, diagnostics = plan_stairs(run_points, config)
    return build_elements(runs, landings, config), diagnostics


def build_elements(runs, landings, config):
    """Shapes for already planned runs and landings, keyed by category."""
    elements = {name: [] for name in CATEGORIES}
    for run in runs:
        elements["steps"].append(run.step_surface())
        elements["rails"].extend(_shapes(run.rails()))
        elements["balusters"].extend(_shapes(run.balusters()))

    for landing in landings:
        elements["landings"].append(landing.surface().face)
        railing = landing.railings(config["left_rail"], config["right_rail"])
        elements["landing_railings"].extend(_shapes(railing))

    print(f"  Total: {len(elements['steps'])} runs, {len(elements['landings'])} landings, "
          f"{len(elements['rails'])} rails, {len(elements['balusters'])} balusters")
    return elements


def load_run_points(path):
    """Read run point triples from a JSON file: [[start, end, height], ...]."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data["runs"]
    return [[tuple(p) for p in run] for run in data]


# ===========================================================================
# DISPLAY
# ===========================================================================

def display_stairs(elements):
    """Show surfaces and railing curves in the OCP viewer."""
    from ocp_vscode import show

    parts, names, colours = [], [], []

    def _add(category, items, colour):
        for i, p in enumerate(items):
            parts.append(p)
            names.append(f"{category}_{i+1}")
            colours.append(colour)

    _add("steps",    elements["steps"],            C_STEPS)
    _add("landing",  elements["landings"],         C_LANDING)
    _add("rail",     elements["rails"],            C_RAIL)
    _add("baluster", elements["balusters"],        C_BALUSTER)
    _add("railing",  elements["landing_railings"], C_RAIL)

    show(*parts, names=names, colors=colours)
    print(f"Showing {len(parts)} objects")


# ===========================================================================
# ENTRY POINT
# ===========================================================================

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Smart Stairs Builder")
    parser.add_argument("points", nargs="?", help="JSON file of [start, end, height] point triples")
    parser.add_argument("--width",       type=float, default=DEFAULT_CONFIG["width"])
    parser.add_argument("--rail_height", type=float, default=DEFAULT_CONFIG["rail_height"])
    parser.add_argument("--no_left_rail",  action="store_true")
    parser.add_argument("--no_right_rail", action="store_true")
    parser.add_argument("--no_landing",    action="store_true")
    parser.add_argument("--enforce_slope", action="store_true",
                        help="Clamp non-compliant runs to the nearest code slope")
    parser.add_argument("--step", help="Export everything to this STEP file")
    parser.add_argument("--stl", help="Export the surfaces to this STL file")
    parser.add_argument("--show", action="store_true", help="Show in the OCP viewer")
    args = parser.parse_args()

    config = DEFAULT_CONFIG.copy()
    config.update({
        "width":         args.width,
        "rail_height":   args.rail_height,
        "left_rail":     not args.no_left_rail,
        "right_rail":    not args.no_right_rail,
        "landing":       not args.no_landing,
        "enforce_slope": args.enforce_slope,
    })

    for issue in StairCodeValidator.check_dimensions(config["width"], config["rail_height"]):
        print(f"  [!] {issue}")

    run_points = load_run_points(args.points) if args.points else DEFAULT_RUNS
    print(f"Building: {len(run_points)} runs, W={config['width']}, Rail={config['rail_height']}")
    elements, diagnostics = build_stairs(run_points, config)

    for msg in diagnostics:
        print(f"  - {msg}")

    if args.step:
        everything = [shape for name in CATEGORIES for shape in elements[name]]
        export_step(Compound(everything), args.step)
        print(f"Exported: {args.step}")

    if args.stl:
        export_stl(Compound(elements["steps"] + elements["landings"]), args.stl)
        print(f"Exported: {args.stl}")

    if args.show:
        from ocp_vscode import set_port
        set_port(3939)
        display_stairs(elements)
