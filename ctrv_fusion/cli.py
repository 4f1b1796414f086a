"""
Command-line interface: replay a measurement file through a fusion filter.

Reads lidar/radar measurements with ground truth, runs the chosen filter,
writes per-step estimates as CSV and prints the NIS consistency summary and
the final RMSE.

Examples:
    # Default UKF with both sensors
    ctrv-fusion --input-file data/sim/ctrv_fusion/measurements.txt

    # EKF, radar only, custom process noise, with plots
    ctrv-fusion --filter ekf --use-lidar 0 --std-a 1.0 --std-yawdd 0.5 \\
        --input-file data/sim/ctrv_fusion/measurements.txt --plot figs/
"""

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from ctrv_fusion.errors import FilterHealthError, FilterUpdateError
from ctrv_fusion.estimators import FILTERS, create_filter
from ctrv_fusion.eval.plots import plot_nis, plot_trajectory_2d, save_figure
from ctrv_fusion.fusion.config import FilterConfig, load_config
from ctrv_fusion.fusion.types import Measurement, SensorType
from ctrv_fusion.io.measurement_file import read_measurement_file, write_estimates_csv
from ctrv_fusion.runner import RunResult, run_filter


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Fuse lidar and radar measurements with a CTRV EKF or UKF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--filter",
        type=str,
        choices=sorted(FILTERS),
        default="ukf",
        help="Filter variant (default: ukf)",
    )
    parser.add_argument(
        "--input-file",
        type=str,
        required=True,
        help="Measurement file (L/R lines with ground truth)",
    )
    parser.add_argument(
        "--output-file",
        type=str,
        default="output/ctrv_fusion_estimates.csv",
        help="CSV file for per-step estimates (default: output/ctrv_fusion_estimates.csv)",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="JSON file with FilterConfig fields; command-line values override it",
    )
    parser.add_argument(
        "--plot",
        type=str,
        metavar="DIR",
        help="Save trajectory and NIS plots to this directory",
    )
    parser.add_argument(
        "--skip-failed-updates",
        action="store_true",
        help="Skip measurements whose update fails instead of aborting",
    )

    filter_group = parser.add_argument_group("Filter Parameters")
    filter_group.add_argument(
        "--verbose", type=int, choices=[0, 1], help="Step-by-step diagnostic output"
    )
    filter_group.add_argument(
        "--use-lidar", type=int, choices=[0, 1], help="Use lidar measurements (default: 1)"
    )
    filter_group.add_argument(
        "--use-radar", type=int, choices=[0, 1], help="Use radar measurements (default: 1)"
    )
    filter_group.add_argument(
        "--std-a", type=float, help="Longitudinal acceleration noise std (default: 0.6)"
    )
    filter_group.add_argument(
        "--std-yawdd", type=float, help="Yaw acceleration noise std (default: 0.4)"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> FilterConfig:
    """Build the FilterConfig from an optional JSON file plus CLI overrides."""
    config = load_config(args.config) if args.config else FilterConfig()

    overrides = {}
    if args.verbose is not None:
        overrides["verbose"] = bool(args.verbose)
    if args.use_lidar is not None:
        overrides["use_lidar"] = bool(args.use_lidar)
    if args.use_radar is not None:
        overrides["use_radar"] = bool(args.use_radar)
    if args.std_a is not None:
        overrides["std_a"] = args.std_a
    if args.std_yawdd is not None:
        overrides["std_yawdd"] = args.std_yawdd

    return dataclasses.replace(config, **overrides)


def print_summary(result: RunResult) -> None:
    """Print NIS and RMSE summaries of a run."""
    print()
    for line in result.nis_tracker.summary_lines():
        print(line)

    if result.failures:
        print(f"Skipped {len(result.failures)} failed update(s):")
        for failure in result.failures:
            print(f"  {failure}")

    rmse = result.rmse
    print("Final RMSE:")
    print(f"  RMSE(px)={rmse[0]:.4f}, RMSE(py)={rmse[1]:.4f}")
    print(f"  RMSE(vx)={rmse[2]:.4f}, RMSE(vy)={rmse[3]:.4f}")


def save_plots(
    result: RunResult,
    out_dir: str,
    filter_name: str,
    measurements: Optional[List[Measurement]] = None,
) -> None:
    """Save trajectory and per-sensor NIS plots."""
    if len(result.estimates) == 0:
        return

    tracker = result.nis_tracker
    fig = plot_trajectory_2d(
        result.truth[:, :2],
        {filter_name.upper(): result.estimates[:, :2]},
        measurements=measurements,
        title=f"{filter_name.upper()} CTRV Fusion",
    )
    save_figure(fig, out_dir, f"{filter_name}_trajectory")

    for sensor in SensorType:
        if not tracker.history[sensor]:
            continue
        fig = plot_nis(
            tracker.history[sensor],
            dof=sensor.measurement_dim,
            confidence=tracker.confidence,
            title=f"NIS ({sensor.name.lower()})",
        )
        save_figure(fig, out_dir, f"{filter_name}_nis_{sensor.name.lower()}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
    except (OSError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    print("=" * 70)
    print("CTRV FUSION")
    print("=" * 70)
    print(f"filter={args.filter}, use_lidar={config.use_lidar}, use_radar={config.use_radar}, "
          f"verbose={config.verbose}, std_a={config.std_a}, std_yawdd={config.std_yawdd}")
    print(f"Input file:  {args.input_file}")
    print(f"Output file: {args.output_file}")

    try:
        records = read_measurement_file(args.input_file)
    except OSError as e:
        print(f"Cannot open input file: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Malformed input file: {e}", file=sys.stderr)
        return 1

    fusion_filter = create_filter(args.filter, config)

    try:
        progress = tqdm(
            records,
            desc=f"{args.filter.upper()} filtering",
            unit="meas",
            disable=config.verbose,
        )
        result = run_filter(
            fusion_filter, progress, skip_failed_updates=args.skip_failed_updates
        )
    except (FilterUpdateError, FilterHealthError, ValueError) as e:
        print(f"Filter run aborted: {e}", file=sys.stderr)
        return 1

    if not fusion_filter.is_initialized:
        print("Filter was never initialized: no measurement of an enabled sensor.")

    write_estimates_csv(result.rows, args.output_file)
    print_summary(result)

    if args.plot:
        save_plots(result, args.plot, args.filter, [r.measurement for r in records])
        print(f"Plots saved to {Path(args.plot)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
