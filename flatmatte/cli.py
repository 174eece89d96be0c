#!/usr/bin/env python3
"""
Background Matting CLI

Flood fill from the border in Lab space, interior island removal,
boundary refinement and alpha-aware post-filters.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from flatmatte.pipeline import (
    RGB,
    MattingConfig,
    MattingError,
    MattingPipeline,
    PipelineLogger,
)


def parse_color(value: str) -> RGB:
    try:
        return RGB.from_hex(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flatmatte",
        description="Cut out images on a flat background into transparent PNGs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic usage
  %(prog)s logo.jpg

  # Known background, softer edges
  %(prog)s --bg-color "#ff8800" --decontaminate --soften-edges logo.png

  # Keep small enclosed background specks, stronger fringe removal
  %(prog)s --min-island-size 500 --passes 3 scan.png

  # Debug logging to a custom file
  %(prog)s --debug --log-file ~/matte.log logo.png
        """,
    )

    # Positional arguments
    parser.add_argument("files", nargs="+", type=Path, help="Input image files")

    # Output options
    parser.add_argument(
        "-o", "--output", type=Path, help="Output path (for single file only)"
    )
    parser.add_argument(
        "--no-autocrop",
        action="store_true",
        help="Keep the full canvas instead of cropping to visible pixels",
    )
    parser.add_argument(
        "--no-pretrim",
        action="store_true",
        help="Skip the coarse crop to content before matting",
    )

    # Segmentation options
    parser.add_argument(
        "-t",
        "--threshold",
        type=float,
        default=15.0,
        help="Background distance in delta-E units (default: 15, 0 = exact match)",
    )
    parser.add_argument(
        "--bg-color",
        type=parse_color,
        metavar="HEX",
        help="Background color, e.g. '#ffffff' (default: estimated from corners)",
    )
    parser.add_argument(
        "--min-island-size",
        type=int,
        default=100,
        metavar="N",
        help="Smallest enclosed background region to remove, in pixels (default: 100)",
    )

    # Post-filter options
    parser.add_argument(
        "--passes",
        type=int,
        default=1,
        metavar="N",
        help="Number of fringe erosion passes (0-10, default: 1)",
    )
    parser.add_argument(
        "--decontaminate",
        action="store_true",
        help="Remove background color bleeding from semi-transparent edges",
    )
    parser.add_argument(
        "--soften-edges",
        action="store_true",
        help="Gaussian-smooth the alpha of hard matte edges",
    )

    # Logging options
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug mode with detailed logging"
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Custom log file path (default: ~/.local/share/flatmatte/debug.log)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Validate arguments
    if args.output and len(args.files) > 1:
        parser.error("--output can only be used with a single input file")

    # Create logger
    logger = PipelineLogger(
        log_file=args.log_file, debug_mode=args.debug, verbose=args.verbose
    )

    logger.log_info(f"Processing {len(args.files)} image(s)...")

    config = MattingConfig(
        threshold=args.threshold,
        background=args.bg_color,
        min_island_size=args.min_island_size,
        erosion_passes=args.passes,
        decontaminate=args.decontaminate,
        soften_edges=args.soften_edges,
        pretrim=not args.no_pretrim,
        autocrop=not args.no_autocrop,
        output_path=args.output if len(args.files) == 1 else None,
    )
    pipeline = MattingPipeline(config=config, logger=logger)

    success_count = 0

    for file_path in args.files:
        try:
            output_path = pipeline.process(file_path)
            logger.log_info(f"✓ Success: {file_path} → {output_path}")
            success_count += 1

        except FileNotFoundError as e:
            logger.log_error(f"✗ File not found: {e}")
        except MattingError as e:
            logger.log_error(f"✗ Failed: {e}")
        except KeyboardInterrupt:
            logger.log_warning("Interrupted by user")
            return 130
        except Exception as e:
            logger.log_error(f"✗ Failed: {e}", exc_info=args.verbose or args.debug)

    logger.log_info(f"Done! Processed {success_count}/{len(args.files)} images.")

    return 0 if success_count == len(args.files) else 1


if __name__ == "__main__":
    sys.exit(main())
