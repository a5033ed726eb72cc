# ImageFlow Command Line Interface
"""
Apply filter pipelines to image files from the shell.

Usage:
    # List the available filters
    imageflow list

    # Run a pipeline given in compact form
    imageflow process photo.png out.png --pipeline "grayscale | boxblur 3"

    # Run a saved pipeline and print per-stage timings
    imageflow process photo.png out.png --load pipeline.json --metrics

    # Save a pipeline for later use
    imageflow process photo.png out.png --pipeline "sepia; brightness 1.2" --save sepia.json

    # Compare host and accelerator implementations
    imageflow benchmark --width 2000 --height 1500 --radius 3
"""

from __future__ import annotations

import argparse
import logging
import sys

from imageflow.codec import load_image, save_image
from imageflow.config import get_config
from imageflow.errors import ImageFlowError
from imageflow.filters import FilterPipeline, ProcessingMode, default_registry
from imageflow.filters.benchmark import create_test_image, run_all_benchmarks, summary_table

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """
    Sets up logging for the imageflow package, writing to stdout.

    Calling it again only updates the level.
    """
    logger = logging.getLogger("imageflow")
    logger.setLevel(level)

    # Prevent duplicate handlers if called multiple times
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    return logger


def cmd_list(args: argparse.Namespace) -> int:
    registry = default_registry()
    print(f"{'ID':<12} {'Name':<14} {'GPU':<5} Description")
    for filter_id in registry.list_ids():
        entry = registry.info_for(filter_id)
        gpu = "yes" if entry.has_accelerator else "-"
        print(f"{entry.id:<12} {entry.display_name:<14} {gpu:<5} {entry.description}")
    return 0


def _build_pipeline(args: argparse.Namespace) -> FilterPipeline | None:
    mode = ProcessingMode(args.mode) if args.mode else ProcessingMode.AUTO
    if args.load:
        pipeline = FilterPipeline()
        if not pipeline.load_from(args.load):
            print(f"error: could not load pipeline from {args.load}", file=sys.stderr)
            return None
        if args.mode:
            pipeline.mode = mode
        return pipeline
    return FilterPipeline.parse(args.pipeline, mode=mode)


def cmd_process(args: argparse.Namespace) -> int:
    pipeline = _build_pipeline(args)
    if pipeline is None:
        return 1
    if pipeline.is_empty():
        print("warning: pipeline is empty, output equals input", file=sys.stderr)

    image = load_image(args.input)
    print(f"Input: {args.input} ({image.width}x{image.height}, {image.channels} channel(s))")
    print(f"Pipeline: {pipeline.describe()}")

    if args.metrics:
        result, metrics = pipeline.apply_with_metrics(image)
    else:
        result, metrics = pipeline.apply(image), None

    save_image(result, args.output, quality=args.quality)
    print(f"Output: {args.output} ({result.width}x{result.height}, {result.channels} channel(s))")

    if metrics is not None:
        print(metrics.summary())

    if args.save:
        if not pipeline.save_to(args.save):
            print(f"error: could not save pipeline to {args.save}", file=sys.stderr)
            return 1
        print(f"Pipeline saved to {args.save}")
    return 0


def cmd_benchmark(args: argparse.Namespace) -> int:
    image = create_test_image(args.width, args.height)
    print(f"Test image: {image.width}x{image.height} ({image.size / 1024 / 1024:.1f} MB)")
    results = run_all_benchmarks(image, radius=args.radius, repeat=args.repeat)
    if args.json:
        for r in results:
            print(r.to_json())
    else:
        print(summary_table(results))
    return 0


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def _non_negative_int(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='imageflow',
        description='Apply filter pipelines to images',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s list
  %(prog)s process in.png out.png --pipeline "grayscale | boxblur 3"
  %(prog)s process in.png out.png --load pipeline.json --metrics
  %(prog)s benchmark --radius 5
"""
    )
    parser.add_argument(
        '--log-level',
        default=None,
        help='Logging level (default: IMAGEFLOW_LOG_LEVEL or INFO)'
    )
    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('list', help='List registered filters')

    process = commands.add_parser('process', help='Apply a pipeline to an image')
    process.add_argument('input', help='Input image file')
    process.add_argument('output', help='Output image file')
    source = process.add_mutually_exclusive_group(required=True)
    source.add_argument(
        '--pipeline', '-p',
        help='Compact pipeline, e.g. "grayscale | boxblur 3"'
    )
    source.add_argument(
        '--load', '-l',
        help='Load a saved pipeline (JSON)'
    )
    process.add_argument(
        '--save', '-s',
        help='Save the pipeline to this file after processing'
    )
    process.add_argument(
        '--mode',
        choices=[m.value for m in ProcessingMode],
        help='Processing mode (default: auto, or the mode stored in --load)'
    )
    process.add_argument(
        '--metrics',
        action='store_true',
        help='Print per-stage timings'
    )
    process.add_argument(
        '--quality',
        type=int,
        default=90,
        help='Quality for lossy output formats (default: 90)'
    )

    bench = commands.add_parser('benchmark', help='Compare host and accelerator filters')
    bench.add_argument('--width', type=_positive_int, default=2000, help='Test image width (default: 2000)')
    bench.add_argument('--height', type=_positive_int, default=1500, help='Test image height (default: 1500)')
    bench.add_argument('--radius', type=_non_negative_int, default=3, help='Box blur radius (default: 3)')
    bench.add_argument('--repeat', type=_positive_int, default=3, help='Timed runs per filter (default: 3)')
    bench.add_argument('--json', action='store_true', help='Print results as JSON')
    return parser


COMMANDS = {
    'list': cmd_list,
    'process': cmd_process,
    'benchmark': cmd_benchmark,
}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging((args.log_level or get_config().log_level).upper())

    try:
        return COMMANDS[args.command](args)
    except (ImageFlowError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
