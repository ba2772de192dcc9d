"""FastAPI backend for Smart Stairs.
Builds runs and landings server-side and returns validation reports, a GLB
preview of the surfaces, and STEP/DXF downloads.
"""
import io
import os
import math
import base64
import tempfile
import ezdxf
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response, JSONResponse
from pydantic import BaseModel, Field
from build123d import export_gltf, export_step, Compound

from stair_code import CodeRules, StairCodeValidator
from stair_landing import Landing
from smart_stairs import (
    DEFAULT_CONFIG, CATEGORIES, make_run, plan_stairs, build_stairs, build_elements,
)

app = FastAPI()

# Surfaces go into the GLB, curves are sent as point lists
SURFACE_CATEGORIES = ["steps", "landings"]
CURVE_CATEGORIES = ["rails", "balusters", "landing_railings"]

DXF_LAYERS = {
    "STEPS": 32,
    "RAILS": 42,
    "BALUSTERS": 8,
    "LANDINGS": 34,
    "LANDING_RAILS": 44,
}

Point = tuple[float, float, float]


class RunPoints(BaseModel):
    start: Point
    end: Point
    height: Point

    def as_triple(self):
        return [self.start, self.end, self.height]


class StairConfig(BaseModel):
    width: float = Field(DEFAULT_CONFIG["width"],
                         ge=CodeRules.MIN_WIDTH, le=CodeRules.MAX_WIDTH)
    rail_height: float = Field(DEFAULT_CONFIG["rail_height"],
                               ge=CodeRules.MIN_RAIL_HEIGHT, le=CodeRules.MAX_RAIL_HEIGHT)
    left_rail: bool = DEFAULT_CONFIG["left_rail"]
    right_rail: bool = DEFAULT_CONFIG["right_rail"]
    landing: bool = DEFAULT_CONFIG["landing"]
    enforce_slope: bool = DEFAULT_CONFIG["enforce_slope"]


class StairRequest(BaseModel):
    runs: list[RunPoints] = Field(min_length=1)
    config: StairConfig = Field(default_factory=StairConfig)

    def run_points(self):
        return [r.as_triple() for r in self.runs]


class RunPreviewRequest(BaseModel):
    points: RunPoints
    config: StairConfig = Field(default_factory=StairConfig)


def _pt(vec):
    return [round(vec.X, 4), round(vec.Y, 4), round(vec.Z, 4)]


def _curve_points(item):
    """Point list of a Segment or RailPath."""
    if hasattr(item, "points"):
        return [_pt(p) for p in item.points]
    return [_pt(item.start), _pt(item.end)]


def _bbox(shape):
    bb = shape.bounding_box()
    return {
        "min": [round(bb.min.X, 2), round(bb.min.Y, 2), round(bb.min.Z, 2)],
        "max": [round(bb.max.X, 2), round(bb.max.Y, 2), round(bb.max.Z, 2)],
        "size": [round(bb.size.X, 2), round(bb.size.Y, 2), round(bb.size.Z, 2)],
    }


@app.get("/defaults")
async def get_defaults():
    return {"config": DEFAULT_CONFIG, "code": CodeRules.as_dict()}


@app.post("/validate")
async def validate_stairs(req: StairRequest):
    """Code and landing report for the picked points, without building shapes."""
    try:
        config = req.config.model_dump()
        run_points = req.run_points()
        runs, _, diagnostics = plan_stairs(run_points, config)

        run_reports = []
        for run in runs:
            run_reports.append({
                "start": _pt(run.start_point),
                "end": _pt(run.end_point),
                "num_steps": run.num_steps,
                "riser": round(run.riser_dim, 4),
                "tread": round(run.tread_dim, 4),
                "slope": round(run.slope, 4),
                "is_valid": run.is_valid,
                "issues": StairCodeValidator.check_run(run),
            })

        landing_reports = []
        if config["landing"]:
            for bottom, top in zip(runs, runs[1:]):
                landing = Landing(bottom, top)
                landing_reports.append({
                    "turn_angle_deg": round(math.degrees(landing.turn_angle), 4),
                    "case": landing.case.value,
                    "nearest_side": landing.nearest_side.value,
                    "is_valid": landing.is_valid,
                })

        return {
            "runs": run_reports,
            "landings": landing_reports,
            "diagnostics": diagnostics,
        }

    except Exception as e:
        import traceback
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/generate")
async def generate_stairs(req: StairRequest):
    """GLB of the step and landing surfaces plus rail/baluster polylines."""
    try:
        config = req.config.model_dump()
        run_points = req.run_points()

        print(f"[API] Building {len(run_points)} runs...")
        runs, landings, diagnostics = plan_stairs(run_points, config)
        elements = build_elements(runs, landings, config)

        surfaces = []
        manifest_categories = []
        mesh_index = 0
        for cat_name in SURFACE_CATEGORIES:
            parts = elements[cat_name]
            cat_manifest = {"name": cat_name, "parts": []}
            for i, p in enumerate(parts):
                surfaces.append(p)
                cat_manifest["parts"].append({
                    "name": f"{cat_name}_{i+1}",
                    "mesh_index": mesh_index,
                    "area": round(p.area, 2),
                    "bbox": _bbox(p),
                })
                mesh_index += 1
            manifest_categories.append(cat_manifest)

        if not surfaces:
            raise HTTPException(status_code=500, detail="No geometry produced")

        curves = {name: [] for name in CURVE_CATEGORIES}
        for run in runs:
            curves["rails"].extend(_curve_points(s) for s in run.rails())
            curves["balusters"].extend(_curve_points(s) for s in run.balusters())
        for landing in landings:
            railing = landing.railings(config["left_rail"], config["right_rail"])
            curves["landing_railings"].extend(_curve_points(c) for c in railing)

        with tempfile.NamedTemporaryFile(suffix=".glb", delete=False) as tmp:
            glb_path = tmp.name
        try:
            export_gltf(Compound(surfaces), glb_path, binary=True)
            with open(glb_path, "rb") as f:
                glb_bytes = f.read()
        finally:
            if os.path.exists(glb_path):
                os.remove(glb_path)

        return JSONResponse({
            "glb": base64.b64encode(glb_bytes).decode("ascii"),
            "manifest": {"categories": manifest_categories},
            "curves": curves,
            "diagnostics": diagnostics,
        })

    except HTTPException:
        raise
    except Exception as e:
        import traceback
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/export/step")
async def export_step_file(req: StairRequest):
    """STEP file holding every surface and curve of the stair."""
    try:
        config = req.config.model_dump()
        elements, _ = build_stairs(req.run_points(), config)
        everything = [shape for name in CATEGORIES for shape in elements[name]]

        with tempfile.NamedTemporaryFile(suffix=".step", delete=False) as tmp:
            tmp_path = tmp.name
        try:
            export_step(Compound(everything), tmp_path)
            with open(tmp_path, "rb") as f:
                content = f.read()
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

        return Response(
            content=content,
            media_type="application/step",
            headers={"Content-Disposition": "attachment; filename=smart_stairs.step"},
        )

    except Exception as e:
        print(f"[API] STEP Export Error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/export/dxf")
async def export_dxf_file(req: StairRequest):
    """DXF with 3D polylines for steps and landings and lines for the railing."""
    try:
        config = req.config.model_dump()
        runs, landings, _ = plan_stairs(req.run_points(), config)

        doc = ezdxf.new()
        for layer, color in DXF_LAYERS.items():
            doc.layers.add(layer, color=color)
        msp = doc.modelspace()

        def _add_curve(item, layer):
            pts = [p.to_tuple() for p in (item.points if hasattr(item, "points")
                                          else (item.start, item.end))]
            if len(pts) == 2:
                msp.add_line(pts[0], pts[1], dxfattribs={"layer": layer})
            else:
                msp.add_polyline3d(pts, dxfattribs={"layer": layer})

        for run in runs:
            # Both sawtooth profiles plus the step outline
            profile = run.step_profile()
            across = run.tread_direction * run.width
            msp.add_polyline3d([p.to_tuple() for p in profile], dxfattribs={"layer": "STEPS"})
            msp.add_polyline3d([(p + across).to_tuple() for p in profile], dxfattribs={"layer": "STEPS"})
            for p in profile:
                msp.add_line(p.to_tuple(), (p + across).to_tuple(), dxfattribs={"layer": "STEPS"})

            for rail in run.rails():
                _add_curve(rail, "RAILS")
            for baluster in run.balusters():
                _add_curve(baluster, "BALUSTERS")

        for landing in landings:
            outline = landing.surface().outline
            msp.add_polyline3d([p.to_tuple() for p in outline[:-1]], close=True,
                               dxfattribs={"layer": "LANDINGS"})
            for item in landing.railings(config["left_rail"], config["right_rail"]):
                _add_curve(item, "LANDING_RAILS")

        dxf_buffer = io.StringIO()
        doc.write(dxf_buffer)
        return Response(
            content=dxf_buffer.getvalue(),
            media_type="application/dxf",
            headers={"Content-Disposition": "attachment; filename=smart_stairs.dxf"},
        )

    except Exception as e:
        import traceback
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/run")
async def preview_run(req: RunPreviewRequest):
    """Flat outline and step lines of a single run, for live preview."""
    try:
        config = req.config.model_dump()
        run = make_run(req.points.as_triple(), config)
        return {
            "flat_lines": [_curve_points(s) for s in run.flat_lines()],
            "is_valid": run.is_valid,
            "corrected_end": _pt(run.slope_corrected().end_point),
        }

    except Exception as e:
        import traceback
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
