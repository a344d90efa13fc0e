"""
Packing harness — main entry point for timing, checking and previewing runs.

Orchestrates one run or a batch of runs:
  1. Build the packer named in the run config
  2. Insert every item (or lay out N identical items) and time the packer
  3. Validate the layout: bounds, overlaps and, where the packer keeps a
     disjoint free list, area conservation
  4. Collect metrics, optionally write results.json and an HTML/SVG preview

Usage (CLI):
    binpack2d-run --demo --render --output results/
    binpack2d-run --algorithm maxrects --heuristic bssf --bin 1024 1024 --generate 50 --seed 1
    binpack2d-run --algorithm single --bin 1000 1000 --item 310 210 --quantity 50 --render
    binpack2d-run --config run.yaml --verbose

Usage (Python):
    from binpack2d.runner.harness import run_from_config
    result = run_from_config(config)
"""

import argparse
import json
import logging
import sys
import time
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

# Importing the package registers every packer.
import binpack2d.algorithms  # noqa: F401
from binpack2d.algorithms.base import BasePacker, get_packer_class
from binpack2d.algorithms.single import SingleBinPack
from binpack2d.config import SINGLE_ALGORITHM, BinConfig, ItemSpec, PackerConfig, RunConfig
from binpack2d.core.errors import PackingError
from binpack2d.monitoring.metrics import (
    LayoutMetrics,
    RunSummary,
    export_to_csv,
    export_to_json,
    print_summary,
)
from binpack2d.runner.dataset import generate_items, get_ordering_strategy
from binpack2d.runner.records import RunResult, StepRecord
from binpack2d.validation.validator import (
    PlacementError,
    check_area_conservation,
    utilization,
    validate_layout,
)
from binpack2d.visualization.step_logger import StepLogger
from binpack2d.visualization.svg_render import write_html

logger = logging.getLogger(__name__)

# Packers whose free list is a disjoint partition of the unused area.
DISJOINT_FREE_LIST = ("guillotine", "skyline", "shelf")

# (name, sheet width, sheet height, item width, item height, quantity)
DEMO_SCENARIOS = [
    ("Case 1_Standard", 6000, 1500, 382, 140, 333),
    ("Case 2_Rotation", 12000, 2200, 420, 185, 71),
    ("Case 3_FullFill", 8000, 2200, 330, 250, 102),
    ("Case 4_ComplexMix", 1000, 1000, 310, 210, 50),
]


# ─────────────────────────────────────────────────────────────────────────────
# Core API
# ─────────────────────────────────────────────────────────────────────────────

def build_packer(bin_config: BinConfig, packer_config: PackerConfig) -> BasePacker:
    """Instantiate the registered packer named by ``packer_config.algorithm``."""
    return get_packer_class(packer_config.algorithm).from_config(bin_config, packer_config)


def run_packer(config: RunConfig, step_logger: Optional[StepLogger] = None) -> RunResult:
    """
    Insert every item of ``config`` into one online packer, in order.

    Returns:
        RunResult with the placed rectangles and one StepRecord per insert.
    """
    packer = build_packer(config.bin, config.packer)
    step_logger = step_logger or StepLogger(verbose=config.verbose)
    result = RunResult(
        name=config.name,
        algorithm=config.packer.algorithm,
        bin_width=config.bin.width,
        bin_height=config.bin.height,
        requested=config.total_quantity,
    )

    step = 0
    for item in config.items:
        for width, height in item.expand():
            step += 1
            t0 = time.perf_counter()
            placed = packer.insert(width, height)
            elapsed = (time.perf_counter() - t0) * 1000
            result.elapsed_ms += elapsed
            record = StepRecord(
                step=step,
                width=width,
                height=height,
                success=placed.is_placed,
                placement=placed if placed.is_placed else None,
                occupancy_after=packer.occupancy(),
                elapsed_ms=elapsed,
            )
            result.steps.append(record)
            step_logger.log_step(record)

    result.rects = list(packer.used_rectangles)
    if config.packer.algorithm in DISJOINT_FREE_LIST:
        try:
            check_area_conservation(
                packer.used_rectangles, packer.free_rectangles,
                config.bin.width, config.bin.height,
            )
        except PlacementError as e:
            result.errors.append(f"{type(e).__name__}: {e}")
    return result


def run_single(config: RunConfig) -> RunResult:
    """Lay out the first item spec of ``config`` with the uniform-item packer."""
    if not config.items:
        raise ValueError("A single-item run needs one item spec")
    item = config.items[0]
    packer = SingleBinPack(config.bin.width, config.bin.height, ratio=config.packer.ratio)
    t0 = time.perf_counter()
    rects = packer.insert(item.width, item.height, item.quantity)
    elapsed = (time.perf_counter() - t0) * 1000
    for name, candidate in packer.candidates.items():
        logger.info("%s: %s layout places %d (max_x=%d)",
                    config.name, name, candidate.count, candidate.max_x)
    return RunResult(
        name=config.name,
        algorithm=SINGLE_ALGORITHM,
        bin_width=config.bin.width,
        bin_height=config.bin.height,
        rects=rects,
        requested=item.quantity,
        elapsed_ms=elapsed,
    )


def run_from_config(config: RunConfig, summary: Optional[RunSummary] = None) -> RunResult:
    """
    Run, validate, measure and (optionally) save one configured run.

    Args:
        config:  Full run configuration.
        summary: Session to add this run's metrics to.

    Returns:
        RunResult; validation failures are listed in ``result.errors``.

    Raises:
        PackingError: invalid dimensions or a layout bookkeeping failure.
    """
    if config.packer.algorithm == SINGLE_ALGORITHM:
        result = run_single(config)
    else:
        result = run_packer(config)

    try:
        validate_layout(result.rects, config.bin.width, config.bin.height)
    except PlacementError as e:
        result.errors.append(f"{type(e).__name__}: {e}")

    metrics = LayoutMetrics.from_rects(
        result.rects, config.bin.width, config.bin.height,
        run_name=config.name,
        algorithm=config.packer.algorithm,
        heuristic=config.packer.heuristic or "",
        requested=result.requested,
        elapsed_ms=result.elapsed_ms,
    )
    if summary is not None:
        summary.add_layout(metrics)
        if not result.ok:
            summary.record_error()

    StepLogger(verbose=True).print_summary({
        "name": config.name,
        "algorithm": config.packer.algorithm,
        "placed": result.placed,
        "requested": result.requested,
        "utilization": utilization(result.rects, config.bin.width, config.bin.height),
        "max_x": metrics.max_x,
        "elapsed_ms": result.elapsed_ms,
        "valid": result.ok,
    })
    for error in result.errors:
        print(f"  [FAIL] {error}")

    if config.output_dir:
        _save(config, result)
    return result


def _save(config: RunConfig, result: RunResult) -> None:
    out = Path(config.output_dir)
    out.mkdir(parents=True, exist_ok=True)
    stem = config.name.replace(" ", "_")
    json_path = out / f"{stem}.json"
    with json_path.open("w") as f:
        json.dump({"config": config.to_dict(), "result": result.to_dict()}, f, indent=2)
    print(f"  Saved results to {json_path}")
    if config.render:
        html_path = write_html(
            out / f"{stem}.html", config.name, result.rects,
            config.bin.width, config.bin.height,
        )
        print(f"  Saved preview to {html_path}")


def demo_configs(output_dir: Optional[str] = None, render: bool = False,
                 ratio: float = 0.5) -> List[RunConfig]:
    """The four standard uniform-item scenarios as run configs."""
    return [
        RunConfig(
            name=name,
            bin=BinConfig(sheet_w, sheet_h),
            packer=PackerConfig(algorithm=SINGLE_ALGORITHM, ratio=ratio),
            items=(ItemSpec(item_w, item_h, qty),),
            render=render,
            output_dir=output_dir,
        )
        for name, sheet_w, sheet_h, item_w, item_h, qty in DEMO_SCENARIOS
    ]


def run_batch(configs: Sequence[RunConfig]) -> RunSummary:
    """
    Run several configs, continuing past failures.

    A run that raises ``PackingError`` (or rejects a heuristic name with
    ``ValueError``) counts as an error in the summary.
    """
    summary = RunSummary(session_id=f"session_{datetime.now().strftime('%Y%m%d_%H%M%S')}")
    t0 = time.perf_counter()
    for config in configs:
        print(f"\n--- {config.name} ---")
        try:
            run_from_config(config, summary)
        except (PackingError, ValueError) as e:
            logger.error("%s failed: %s", config.name, e)
            print(f"  [ERROR] {type(e).__name__}: {e}")
            summary.record_error()
    summary.wall_time_s = time.perf_counter() - t0
    summary.mark_complete()
    return summary


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="binpack2d-run",
        description="Run 2D rectangle packers, validate and preview the layouts",
    )
    parser.add_argument("--config", help="YAML run configuration")
    parser.add_argument("--demo", action="store_true",
                        help="Run the four standard uniform-item scenarios")
    parser.add_argument("--algorithm", default="maxrects",
                        help="maxrects, guillotine, skyline, shelf or single (default: maxrects)")
    parser.add_argument("--heuristic", default=None, help="Heuristic code, e.g. bssf, baf, bl")
    parser.add_argument("--split", default=None, help="Guillotine split rule, e.g. minas")
    parser.add_argument("--no-merge", action="store_true", help="Disable guillotine merging")
    parser.add_argument("--no-rotations", action="store_true", help="Never rotate items")
    parser.add_argument("--no-waste-map", action="store_true", help="Disable waste recovery")
    parser.add_argument("--ratio", type=float, default=0.5,
                        help="Uniform-item rebalancing ratio (default: 0.5)")
    parser.add_argument("--bin", nargs=2, type=int, metavar=("W", "H"), default=[1000, 1000])
    parser.add_argument("--item", nargs=2, type=int, metavar=("W", "H"),
                        help="Item size (repeated --quantity times)")
    parser.add_argument("--quantity", type=int, default=1)
    parser.add_argument("--generate", type=int, metavar="N", help="Generate N random items")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--order", default="as_given",
                        help="Ordering for generated items (as_given, random, area_desc, long_side_desc)")
    parser.add_argument("--render", action="store_true", help="Write an HTML/SVG preview")
    parser.add_argument("--output", default=None, help="Output directory")
    parser.add_argument("--verbose", action="store_true", help="Print every step")
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """Translate parsed CLI arguments into a RunConfig."""
    if args.config:
        config = RunConfig.from_yaml(args.config)
        overrides = {}
        if args.render:
            overrides["render"] = True
        if args.output:
            overrides["output_dir"] = args.output
        if args.verbose:
            overrides["verbose"] = True
        return replace(config, **overrides) if overrides else config

    if args.generate:
        items = generate_items(args.generate, seed=args.seed)
        items = get_ordering_strategy(args.order)(items)
    elif args.item:
        items = [ItemSpec(args.item[0], args.item[1], args.quantity)]
    else:
        raise SystemExit("one of --config, --demo, --item or --generate is required")

    return RunConfig(
        name=f"{args.algorithm}_{args.heuristic or 'default'}",
        bin=BinConfig(args.bin[0], args.bin[1]),
        packer=PackerConfig(
            algorithm=args.algorithm,
            heuristic=args.heuristic,
            split=args.split,
            merge=not args.no_merge,
            allow_rotations=not args.no_rotations,
            use_waste_map=not args.no_waste_map,
            ratio=args.ratio,
        ),
        items=tuple(items),
        render=args.render,
        output_dir=args.output,
        verbose=args.verbose,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.demo:
        configs = demo_configs(args.output, args.render, args.ratio)
    else:
        configs = [config_from_args(args)]

    summary = run_batch(configs)
    print(print_summary(summary))

    if args.output:
        export_to_json(summary, Path(args.output) / f"{summary.session_id}.json")
        export_to_csv(summary, Path(args.output) / f"{summary.session_id}_layouts.csv")

    return 1 if summary.errors_count else 0


if __name__ == "__main__":
    sys.exit(main())
