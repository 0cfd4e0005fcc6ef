#!/usr/bin/env python3
"""
Web Motion Forensics
Main entry point: checks that an animated page really moves.

    python main.py verify <url> [--chrome PATH] [--outDir DIR] [--samplePoints N]
    python main.py compare t0.png t0.6.png t1.2.png [--threshold T]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from comparator.report_builder import ReportBuilder, error_report
from core.motion_analyzer import MotionAnalyzer
from core.raster import load_raster
from utils.settings import Settings
from visual.compare_images import ImageComparator

logger = logging.getLogger(__name__)


def positive_int_or_none(value):
    # Bad --samplePoints values fall back to the configured default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Capture frames of an animated page and measure how much they change.')
    parser.add_argument('-v', '--verbose', action='store_true', help='debug logging on stderr')
    subparsers = parser.add_subparsers(dest='command', required=True)

    verify = subparsers.add_parser('verify', help='drive a headless browser and compare captured frames')
    verify.add_argument('url')
    verify.add_argument('--chrome', help='Chrome/Chromium executable (defaults to the bundled one)')
    verify.add_argument('--outDir', dest='out_dir', help='directory for screenshots')
    verify.add_argument('--samplePoints', dest='sample_points', type=positive_int_or_none, default=None)
    verify.add_argument('--threshold', type=float, default=None)
    verify.add_argument('--html', help='also write an HTML report to this path')

    compare = subparsers.add_parser('compare', help='compare existing screenshots in the given order')
    compare.add_argument('images', nargs='+', help='two or more image files')
    compare.add_argument('--threshold', type=float, default=None)
    compare.add_argument('--edges-dir', dest='edges_dir', help='write edge maps here')
    compare.add_argument('--html', help='also write an HTML report to this path')
    return parser


def run_verify(args, settings: Settings) -> dict:
    analyzer = MotionAnalyzer(settings)
    report = analyzer.run(args.url, out_dir=args.out_dir, chrome=args.chrome,
                          sample_points=args.sample_points)
    if args.html:
        analyzer.last_report.generate_html_report(args.html)
    return report


def run_compare(args, settings: Settings) -> dict:
    if len(args.images) < 2:
        raise ValueError('compare needs at least two images')
    paths = {Path(image).stem: Path(image) for image in args.images}
    if len(paths) != len(args.images):
        raise ValueError('image file names must be unique')

    comparator = ImageComparator(threshold=settings.threshold)
    frames = {label: load_raster(path) for label, path in paths.items()}

    builder = ReportBuilder()
    for label, path in paths.items():
        builder.add_frame(label, path)
    builder.collect_metrics(comparator.compare_frames(frames))
    if args.edges_dir:
        comparator.save_edge_maps(frames, args.edges_dir)
    if args.html:
        builder.generate_html_report(args.html)

    report = builder.to_dict()
    return {key: report[key] for key in ('frames', 'pixelDiff', 'edgeDiff')}


def main(argv=None) -> int:
    """Main execution function."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        stream=sys.stderr,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        settings = Settings.from_env()
        if args.threshold is not None:
            settings.threshold = args.threshold
        if args.command == 'verify':
            report = run_verify(args, settings)
        else:
            report = run_compare(args, settings)
    except Exception as e:
        logger.error(f"Motion check failed: {str(e)}", exc_info=True)
        sys.stdout.write(json.dumps(error_report(e), indent=2) + '\n')
        return 1

    sys.stdout.write(json.dumps(report, indent=2) + '\n')
    return 0


if __name__ == "__main__":
    sys.exit(main())
