"""
Command-line entry point.

    spatiallagpy --data sales.csv --variables price --k 8 --output-dir out/
    spatiallagpy --config analysis.json
"""

import argparse
import logging

from spatiallagpy.config import AnalysisConfig, NeighborRule, SmoothingMethod, WeightType
from spatiallagpy.pipeline import SpatialLagAnalysis

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Spatial lags, Moran statistics and smoothed rates from a point or polygon file",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", default=None, help="JSON configuration file")
    parser.add_argument("--data", default=None, help="CSV/TSV point table or vector file")
    parser.add_argument("--output-dir", default=None, help="Directory for result tables")
    parser.add_argument("--x-col", default=None, help="x coordinate column (point tables)")
    parser.add_argument("--y-col", default=None, help="y coordinate column (point tables)")
    parser.add_argument("--variables", nargs="*", default=None, help="Columns to lag")
    parser.add_argument(
        "--rule", choices=[r.value for r in NeighborRule], default=None, help="Neighbor rule"
    )
    parser.add_argument("--k", type=int, default=None, help="Number of nearest neighbors")
    parser.add_argument("--threshold", type=float, default=None, help="Distance band radius")
    parser.add_argument(
        "--weights", choices=[w.value for w in WeightType], default=None, help="Weight type"
    )
    parser.add_argument("--events", default=None, help="Event count column for smoothing")
    parser.add_argument("--base", default=None, help="Population column for smoothing")
    parser.add_argument(
        "--smoothing",
        nargs="*",
        choices=[m.value for m in SmoothingMethod],
        default=None,
        help="Rate estimators",
    )
    parser.add_argument("--permutations", type=int, default=None, help="Permutations for inference")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> AnalysisConfig:
    """Start from --config (or defaults) and apply command-line overrides."""
    config = AnalysisConfig.load(args.config) if args.config else AnalysisConfig()

    overrides = {
        "data_path": args.data,
        "output_dir": args.output_dir,
        "x_col": args.x_col,
        "y_col": args.y_col,
        "variables": args.variables,
        "n_permutations": args.permutations,
        "random_seed": args.seed,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)

    if args.rule is not None:
        config.neighbors.rule = NeighborRule(args.rule)
    if args.k is not None:
        config.neighbors.k = args.k
    if args.threshold is not None:
        config.neighbors.threshold = args.threshold
    if args.weights is not None:
        config.weights.weight_type = WeightType(args.weights)
    if args.events is not None:
        config.smoothing.events_col = args.events
    if args.base is not None:
        config.smoothing.base_col = args.base
    if args.smoothing is not None:
        config.smoothing.methods = [SmoothingMethod(m) for m in args.smoothing]

    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    config = config_from_args(args)
    result = SpatialLagAnalysis(config).run()

    if not result.summary.empty:
        print(result.summary.to_string(index=False))
    for name, path in result.outputs.items():
        logger.info(f"{name}: {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
