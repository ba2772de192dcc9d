"""Tests for the multi-run stair builder."""
import sys
import os
import json
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stair_code import CodeRules
from smart_stairs import make_run, plan_stairs, build_stairs, load_run_points, CATEGORIES


ACUTE_RUNS = [
    [(0, 0, 0), (0, 100, 0), (0, 100, 50)],
    [(30, 120, 50), (-70, 120, 50), (-70, 120, 100)],
]

STEEP_RUN = [[(0, 0, 0), (0, 100, 0), (0, 100, 100)]]


class TestMakeRun:

    def test_height_from_third_point(self, default_config):
        run = make_run([(0, 0, 0), (0, 100, 7), (3, 3, 50)], default_config)
        assert run.start_point.to_tuple() == pytest.approx((0, 0, 0))
        assert run.end_point.to_tuple() == pytest.approx((0, 100, 50))

    def test_level_overrides_start_height(self, default_config):
        run = make_run([(0, 0, 12), (0, 100, 0), (0, 100, 80)], default_config, level=30)
        assert run.start_point.Z == pytest.approx(30)
        assert run.end_point.Z == pytest.approx(80)

    def test_config_is_applied(self, default_config):
        default_config.update({"width": 60, "rail_height": 36, "left_rail": False})
        run = make_run([(0, 0, 0), (0, 100, 0), (0, 100, 50)], default_config)
        assert run.width == 60
        assert run.rail_height == 36
        assert len(run.rails()) == 1


class TestPlanStairs:

    def test_default_stair(self, default_runs, default_config):
        runs, landings, diagnostics = plan_stairs(default_runs, default_config)
        assert len(runs) == 2
        assert len(landings) == 1
        assert diagnostics == []

    def test_next_run_starts_on_previous_level(self, default_config):
        run_points = [
            [(0, 0, 0), (0, 100, 0), (0, 100, 50)],
            [(30, 120, 0), (130, 120, 0), (130, 120, 100)],
        ]
        runs, landings, _ = plan_stairs(run_points, default_config)
        assert runs[1].start_point.Z == pytest.approx(50)
        assert len(landings) == 1

    def test_landing_disabled(self, default_runs, default_config):
        default_config["landing"] = False
        _, landings, diagnostics = plan_stairs(default_runs, default_config)
        assert landings == []
        assert diagnostics == []

    def test_ambiguous_landing_reported(self, default_config):
        runs, landings, diagnostics = plan_stairs(ACUTE_RUNS, default_config)
        assert len(runs) == 2
        assert landings == []
        assert len(diagnostics) == 1
        assert "between run 1 and run 2" in diagnostics[0]
        assert "ambiguous" in diagnostics[0]

    def test_non_compliant_run_reported(self, default_config):
        runs, _, diagnostics = plan_stairs(STEEP_RUN, default_config)
        assert not runs[0].is_valid
        assert any(d.startswith("Run 1: Slope") for d in diagnostics)

    def test_enforce_slope(self, default_config):
        default_config["enforce_slope"] = True
        runs, _, diagnostics = plan_stairs(STEEP_RUN, default_config)
        assert runs[0].is_valid
        assert runs[0].slope == pytest.approx(CodeRules.MAX_SLOPE)
        assert any("slope corrected" in d for d in diagnostics)


class TestBuildStairs:

    def test_element_counts(self, default_runs, default_config):
        elements, diagnostics = build_stairs(default_runs, default_config)
        assert set(elements) == set(CATEGORIES)
        assert len(elements["steps"]) == 2
        assert len(elements["landings"]) == 1
        assert len(elements["rails"]) == 4
        assert len(elements["balusters"]) == 2 * 2 * 9
        assert len(elements["landing_railings"]) == 13
        assert diagnostics == []

    def test_no_rails(self, default_runs, default_config):
        default_config.update({"left_rail": False, "right_rail": False})
        elements, _ = build_stairs(default_runs, default_config)
        assert elements["rails"] == []
        assert elements["balusters"] == []
        assert elements["landing_railings"] == []
        assert len(elements["landings"]) == 1

    def test_step_surface_area(self, default_runs, default_config):
        elements, _ = build_stairs(default_runs, default_config)
        for surface in elements["steps"]:
            assert surface.area == pytest.approx(40 * 150, rel=1e-6)


class TestLoadRunPoints:

    def test_list_file(self, tmp_path):
        path = tmp_path / "runs.json"
        path.write_text(json.dumps([[[0, 0, 0], [0, 100, 0], [0, 100, 50]]]))
        assert load_run_points(str(path)) == [[(0, 0, 0), (0, 100, 0), (0, 100, 50)]]

    def test_dict_file(self, tmp_path):
        path = tmp_path / "runs.json"
        path.write_text(json.dumps({"runs": [[[1, 2, 3], [4, 5, 6], [7, 8, 9]]]}))
        assert load_run_points(str(path)) == [[(1, 2, 3), (4, 5, 6), (7, 8, 9)]]
