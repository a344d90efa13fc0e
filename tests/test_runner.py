"""
Tests for configuration, item generation, metrics, rendering and the harness.

Run with:
    python -m pytest tests/test_runner.py -v
"""

import csv
import json

import pytest
import yaml

from binpack2d.config import BinConfig, ItemSpec, PackerConfig, RunConfig
from binpack2d.core import Rect
from binpack2d.monitoring import LayoutMetrics, RunSummary, export_to_csv, export_to_json, print_summary
from binpack2d.runner.dataset import (
    ORDERING_STRATEGIES,
    area_desc_order,
    generate_items,
    get_ordering_strategy,
    long_side_desc_order,
    random_order,
)
from binpack2d.runner.harness import (
    build_packer,
    demo_configs,
    main,
    run_batch,
    run_from_config,
    run_packer,
    run_single,
)
from binpack2d.runner.records import StepRecord
from binpack2d.visualization import StepLogger, render_html, render_svg, write_html
from binpack2d.visualization.svg_render import LYING_COLOR, STANDING_COLOR


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def squares_config():
    """Five 50×50 squares on a 100×100 sheet: four fit, one is rejected."""
    return RunConfig(
        name="squares",
        bin=BinConfig(100, 100),
        packer=PackerConfig(algorithm="maxrects", heuristic="bssf"),
        items=(ItemSpec(50, 50, quantity=5),),
    )


# ---------------------------------------------------------------------------
# 1. Configuration
# ---------------------------------------------------------------------------

class TestConfig:
    def test_yaml_round_trip(self, tmp_path, squares_config):
        path = tmp_path / "run.yaml"
        squares_config.to_yaml(path)
        assert RunConfig.from_yaml(path) == squares_config

    def test_yaml_defaults(self, tmp_path):
        path = tmp_path / "minimal.yaml"
        path.write_text(yaml.safe_dump({
            "bin": {"width": 400, "height": 300},
            "items": [{"width": 40, "height": 30}],
        }))
        config = RunConfig.from_yaml(path)
        assert config.bin == BinConfig(400, 300)
        assert config.items == (ItemSpec(40, 30, 1),)
        assert config.packer == PackerConfig()
        assert config.total_quantity == 1

    @pytest.mark.parametrize("width,height", [(0, 10), (10, -1)])
    def test_invalid_bin(self, width, height):
        with pytest.raises(ValueError):
            BinConfig(width, height)

    def test_invalid_item(self):
        with pytest.raises(ValueError):
            ItemSpec(10, 10, quantity=-1)

    def test_expand(self):
        assert ItemSpec(3, 4, 2).expand() == [(3, 4), (3, 4)]


# ---------------------------------------------------------------------------
# 2. Item generation
# ---------------------------------------------------------------------------

class TestDataset:
    def test_reproducible(self):
        assert generate_items(20, seed=5) == generate_items(20, seed=5)

    def test_side_range(self):
        items = generate_items(100, seed=1, min_side=20, max_side=30)
        assert len(items) == 100
        assert all(20 <= i.width <= 30 and 20 <= i.height <= 30 for i in items)

    def test_orderings(self):
        items = [ItemSpec(10, 10), ItemSpec(5, 40), ItemSpec(30, 30)]
        assert area_desc_order(items) == [ItemSpec(30, 30), ItemSpec(5, 40), ItemSpec(10, 10)]
        assert long_side_desc_order(items) == [ItemSpec(5, 40), ItemSpec(30, 30), ItemSpec(10, 10)]
        assert sorted(random_order(items), key=repr) == sorted(items, key=repr)

    def test_lookup(self):
        assert set(ORDERING_STRATEGIES) == {"as_given", "random", "area_desc", "long_side_desc"}
        assert get_ordering_strategy("area_desc") is area_desc_order
        assert get_ordering_strategy("random") is random_order
        with pytest.raises(ValueError, match="Unknown ordering strategy"):
            get_ordering_strategy("shortest_first")


# ---------------------------------------------------------------------------
# 3. Metrics
# ---------------------------------------------------------------------------

class TestMetrics:
    def test_from_rects(self):
        m = LayoutMetrics.from_rects(
            [Rect(0, 0, 50, 50), Rect(50, 0, 20, 30), Rect.failed()], 100, 100,
            run_name="m", algorithm="maxrects",
        )
        assert m.placed == 2
        assert m.requested == 3
        assert m.rejected == 1
        assert m.utilization_pct == pytest.approx(31.0)
        assert (m.max_x, m.max_y) == (70, 50)

    def test_summary_stats(self):
        summary = RunSummary("s")
        for util in (40.0, 60.0, 80.0):
            summary.add_layout(LayoutMetrics("r", "shelf", "", 1, 2, util, 10, 10, 1.0, 100, 100))
        assert summary.total_runs == 3
        assert summary.total_requested == 6
        assert summary.avg_utilization_pct == pytest.approx(60.0)
        assert summary.median_utilization_pct == pytest.approx(60.0)
        assert (summary.min_utilization_pct, summary.max_utilization_pct) == (40.0, 80.0)

    def test_exports(self, tmp_path):
        summary = RunSummary("export")
        summary.add_layout(LayoutMetrics.from_rects(
            [Rect(0, 0, 10, 10)], 100, 100, run_name="one", algorithm="skyline"))
        summary.mark_complete()

        export_to_json(summary, tmp_path / "out" / "summary.json")
        data = json.loads((tmp_path / "out" / "summary.json").read_text())
        assert data["session_id"] == "export"
        assert data["layouts"][0]["run_name"] == "one"

        export_to_json(summary, tmp_path / "brief.json", include_layouts=False)
        assert "layouts" not in json.loads((tmp_path / "brief.json").read_text())

        export_to_csv(summary, tmp_path / "layouts.csv")
        with (tmp_path / "layouts.csv").open() as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["algorithm"] == "skyline"
        assert float(rows[0]["utilization_pct"]) == pytest.approx(1.0)

    def test_print_summary(self):
        summary = RunSummary("abc")
        summary.wall_time_s = 1.5
        text = print_summary(summary)
        assert "Session: abc" in text
        assert "Wall time:   1.50 s" in text
        assert "Errors:      0" in text


# ---------------------------------------------------------------------------
# 4. Rendering and step logging
# ---------------------------------------------------------------------------

class TestRendering:
    def test_colors_and_labels(self):
        svg = render_svg([Rect(0, 0, 30, 10), Rect(30, 0, 10, 30)], 100, 100)
        assert LYING_COLOR in svg and STANDING_COLOR in svg
        assert "font-size='5'" in svg
        assert ">1</text>" in svg

    def test_no_labels_for_many_rects(self):
        rects = [Rect(i, 0, 1, 1) for i in range(200)]
        assert "<text" not in render_svg(rects, 200, 10)

    def test_wide_sheet_is_scaled(self):
        svg = render_svg([], 2000, 1000)
        assert "width='1000' height='500'" in svg
        assert "viewBox='0 0 2000 1000'" in svg

    def test_html(self, tmp_path):
        html = render_html("Demo <1>", [Rect(0, 0, 50, 100)], 100, 100)
        assert "<h3>Demo &lt;1&gt; - Util: 50.00%</h3>" in html
        path = write_html(tmp_path / "sub" / "demo.html", "Demo", [], 10, 10)
        assert path.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")

    def test_step_logger(self, capsys):
        logger = StepLogger(verbose=True)
        logger.log_step(StepRecord(1, 20, 10, True, Rect(0, 0, 10, 20), 0.5, 0.1))
        logger.log_step(StepRecord(2, 500, 500, False))
        out = capsys.readouterr().out
        assert "Step   1" in out and "rotated" in out
        assert "REJECTED" in out
        records = logger.get_records()
        assert records[0]["placement"] == {"x": 0, "y": 0, "width": 10, "height": 20}
        assert "placement" not in records[1]

    def test_quiet_step_logger(self, capsys):
        StepLogger().log_step(StepRecord(1, 10, 10, False))
        assert capsys.readouterr().out == ""


# ---------------------------------------------------------------------------
# 5. Harness
# ---------------------------------------------------------------------------

class TestHarness:
    def test_build_packer_uses_config(self):
        packer = build_packer(BinConfig(200, 100), PackerConfig(algorithm="skyline", heuristic="mwf"))
        assert packer.name == "skyline"
        assert packer.method.value == "mwf"

    def test_run_packer_records_steps(self, squares_config):
        result = run_packer(squares_config)
        assert result.placed == 4
        assert result.requested == 5
        assert len(result.steps) == 5
        assert [s.success for s in result.steps] == [True, True, True, True, False]
        assert result.steps[3].occupancy_after == pytest.approx(1.0)
        assert result.ok

    @pytest.mark.parametrize("algorithm", ["guillotine", "skyline", "shelf"])
    def test_area_conservation_checked(self, algorithm):
        config = RunConfig(
            bin=BinConfig(300, 200),
            packer=PackerConfig(algorithm=algorithm),
            items=tuple(generate_items(30, seed=11, max_side=90)),
        )
        assert run_packer(config).errors == []

    def test_run_single(self):
        config = demo_configs()[3]
        result = run_single(config)
        assert result.algorithm == "single"
        assert result.placed == 13
        assert result.steps == []

    def test_run_from_config_saves(self, tmp_path, capsys):
        config = RunConfig(
            name="demo run",
            bin=BinConfig(1000, 1000),
            packer=PackerConfig(algorithm="single"),
            items=(ItemSpec(310, 210, 50),),
            render=True,
            output_dir=str(tmp_path),
        )
        summary = RunSummary("t")
        result = run_from_config(config, summary)

        assert result.ok
        assert summary.total_runs == 1
        assert "RUN SUMMARY: demo run" in capsys.readouterr().out
        saved = json.loads((tmp_path / "demo_run.json").read_text())
        assert saved["result"]["placed"] == 13
        assert saved["config"]["packer"]["algorithm"] == "single"
        assert (tmp_path / "demo_run.html").exists()

    def test_run_batch_continues_after_errors(self, squares_config):
        bad = RunConfig(name="bad", packer=PackerConfig(algorithm="tetris"),
                        items=(ItemSpec(10, 10),))
        summary = run_batch([bad, squares_config])
        assert summary.errors_count == 1
        assert summary.total_runs == 1
        assert summary.completed_at is not None
        assert summary.wall_time_s > 0
        assert summary.wall_time_s * 1000 >= summary.total_elapsed_ms


class TestCli:
    def test_generated_items(self, capsys):
        code = main(["--algorithm", "maxrects", "--heuristic", "baf", "--bin", "300", "200",
                     "--generate", "25", "--seed", "3", "--order", "area_desc"])
        assert code == 0
        assert "Session:" in capsys.readouterr().out

    def test_single_item(self, tmp_path):
        code = main(["--algorithm", "single", "--item", "310", "210", "--quantity", "50",
                     "--output", str(tmp_path), "--render"])
        assert code == 0
        assert list(tmp_path.glob("session_*_layouts.csv"))
        assert list(tmp_path.glob("*.html"))

    def test_config_file(self, tmp_path, squares_config):
        path = tmp_path / "run.yaml"
        squares_config.to_yaml(path)
        assert main(["--config", str(path)]) == 0

    def test_demo(self, tmp_path):
        assert main(["--demo", "--output", str(tmp_path)]) == 0
        assert (tmp_path / "Case_4_ComplexMix.json").exists()

    def test_unknown_packer_fails(self):
        assert main(["--algorithm", "tetris", "--item", "10", "10"]) == 1

    def test_missing_items(self):
        with pytest.raises(SystemExit):
            main(["--algorithm", "shelf"])
