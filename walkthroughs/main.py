"""Main entry point for the walkthrough pipelines.

Provides CLI interface for running either study end to end.

Usage:
    # Austin housing with config file
    python -m walkthroughs.main austin-housing --config pipeline_config.yml

    # Smaller race for a quick run
    python -m walkthroughs.main austin-housing --data austin.csv --grid-size 5 --folds 3

    # Netflix titles straight from the default URL
    python -m walkthroughs.main netflix-titles --output-dir ./artifacts/netflix
"""

import argparse
import logging
from pathlib import Path
import sys

from walkthroughs.pipelines.austin_housing import run_austin_housing
from walkthroughs.pipelines.config import PipelineConfig, get_default_config, load_config
from walkthroughs.pipelines.netflix_titles import run_netflix_titles


def _load_pipeline_config(args: argparse.Namespace) -> PipelineConfig:
    """Load pipeline config from file or defaults, then apply CLI overrides."""
    study = args.command.replace("-", "_")
    study_overrides = {"folds": args.folds}
    if study == "austin_housing":
        study_overrides["grid_size"] = args.grid_size
    else:
        study_overrides["max_tokens"] = args.max_tokens
    overrides = {"split": {"seed": args.seed}, study: study_overrides}
    if args.config:
        return load_config(args.config, overrides=overrides)
    return get_default_config(overrides=overrides)


def _output_dir(args: argparse.Namespace, config: PipelineConfig) -> Path:
    if args.output_dir:
        return Path(args.output_dir)
    return config.paths.output_dir / args.command.replace("-", "_")


def austin_housing(args: argparse.Namespace) -> None:
    """Run the Austin housing price-range study."""
    config = _load_pipeline_config(args)
    output_dir = _output_dir(args, config)

    settings = config.austin_housing
    print("Starting Austin housing pipeline...")
    print(f"Race: {settings.grid_size} candidates, {settings.folds} folds, trees={settings.trees}")

    result = run_austin_housing(data=args.data, output_dir=output_dir, config=config)

    print("\n" + "=" * 60)
    print("AUSTIN HOUSING COMPLETE")
    print("=" * 60)
    print(result.summary())
    print(f"\nArtifacts saved to: {output_dir}")


def netflix_titles(args: argparse.Namespace) -> None:
    """Run the Netflix title-type study."""
    config = _load_pipeline_config(args)
    output_dir = _output_dir(args, config)

    settings = config.netflix_titles
    print("Starting Netflix titles pipeline...")
    print(f"Workflow: max_tokens={settings.max_tokens}, cost={settings.cost}, folds={settings.folds}")

    result = run_netflix_titles(data=args.data, output_dir=output_dir, config=config)

    print("\n" + "=" * 60)
    print("NETFLIX TITLES COMPLETE")
    print("=" * 60)
    print(result.summary())
    print(f"\nArtifacts saved to: {output_dir}")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=str, help="Path to YAML config file")
    parser.add_argument("--data", type=str, help="CSV path or URL (overrides config)")
    parser.add_argument("--output-dir", type=str, help="Path to save artifacts (overrides config)")
    parser.add_argument("--seed", type=int, help="Random seed (overrides config)")
    parser.add_argument("--folds", type=int, help="Number of resampling folds (overrides config)")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tabular ML walkthroughs")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    housing_parser = subparsers.add_parser(
        "austin-housing", help="Tune a boosted tree for Austin price ranges"
    )
    _add_common_arguments(housing_parser)
    housing_parser.add_argument("--grid-size", type=int, help="Candidates in the race (overrides config)")

    netflix_parser = subparsers.add_parser(
        "netflix-titles", help="Classify Netflix titles from their descriptions"
    )
    _add_common_arguments(netflix_parser)
    netflix_parser.add_argument("--max-tokens", type=int, help="TF-IDF vocabulary size (overrides config)")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {"austin-housing": austin_housing, "netflix-titles": netflix_titles}
    try:
        commands[args.command](args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
