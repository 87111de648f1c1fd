#!/usr/bin/env python3
"""
Parts Table Matcher - CLI Entry Point

Reads photographed parts tables with OCR and matches every row against
the reference parts catalog (a multi-sheet workbook).

Usage:
    # Single photo
    python main.py ./photos/table.jpg ./output

    # Batch folder (photos and/or .txt files holding OCR text)
    python main.py ./photos/ ./output --catalog ./mydata.xlsx

    # Show workflow visualization
    python main.py --show-graph
"""

import argparse
import logging
import sys
from pathlib import Path
from datetime import datetime

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from version import __version__, APP_NAME
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parts Table Matcher - match OCR'd parts tables against the parts catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ./photos/table.jpg ./output
  %(prog)s ./photos/ ./output --catalog ./mydata.xlsx
  %(prog)s ./ocr_text.txt ./output --threshold 0.5
  %(prog)s --show-graph
        """
    )

    parser.add_argument(
        "input_path",
        nargs="?",
        help="Table photo, OCR text file, or folder of them"
    )

    parser.add_argument(
        "output_path",
        nargs="?",
        help="Directory for output reports"
    )

    parser.add_argument(
        "--catalog", "-c",
        default=None,
        help="Parts catalog workbook (.xlsx) or CSV (default: config catalog_path / PARTS_CATALOG_PATH)"
    )

    parser.add_argument(
        "--config",
        default=None,
        help="YAML config file (default: ./config/matcher_config.yaml if present)"
    )

    parser.add_argument(
        "--threshold", "-t",
        type=float,
        default=None,
        help="Minimum match score 0-1 (default: 0.40)"
    )

    parser.add_argument(
        "--max-retries", "-r",
        type=int,
        default=2,
        help="OCR retries per photo before skipping (default: 2)"
    )

    parser.add_argument(
        "--no-preprocess",
        action="store_true",
        help="Skip grayscale/threshold preprocessing before OCR"
    )

    parser.add_argument(
        "--no-checkpoints",
        action="store_true",
        help="Disable state checkpointing"
    )

    parser.add_argument(
        "--show-graph",
        action="store_true",
        help="Show workflow graph visualization and exit"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging"
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.show_graph:
        from workflow import get_workflow_visualization
        print(get_workflow_visualization())
        return 0

    if not args.input_path or not args.output_path:
        parser.error("input_path and output_path are required (unless using --show-graph)")

    if args.threshold is not None and not 0.0 <= args.threshold <= 1.0:
        parser.error(f"threshold must be between 0 and 1, got {args.threshold}")
    if args.max_retries < 0:
        parser.error(f"max-retries must be non-negative, got {args.max_retries}")

    input_path = Path(args.input_path).resolve()
    output_path = Path(args.output_path).resolve()

    if not input_path.exists():
        logger.error(f"Input path does not exist: {input_path}")
        return 1

    from matcher.config import load_config
    from matcher.part_catalog import CatalogLoadError, load_catalog

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Invalid config: {e}")
        return 1

    if args.threshold is not None:
        config.match_threshold = args.threshold
    if args.no_preprocess:
        config.ocr.preprocess = False

    catalog_path = Path(args.catalog or config.catalog_path).resolve()
    try:
        catalog = load_catalog(catalog_path)
    except CatalogLoadError as e:
        logger.error(str(e))
        return 1

    output_path.mkdir(parents=True, exist_ok=True)

    print("\n" + "=" * 60)
    print(f"  {APP_NAME} v{__version__}")
    print("  OCR parts table -> catalog matching")
    print("=" * 60)
    print(f"  Input:     {input_path}")
    print(f"  Output:    {output_path}")
    print(f"  Catalog:   {catalog_path} ({len(catalog.sheets)} sheets, {len(catalog)} rows)")
    print(f"  Threshold: {config.match_threshold:.0%}")
    print(f"  Binarize:  {'Enabled' if config.ocr.preprocess else 'Disabled'}")
    print("=" * 60 + "\n")

    try:
        from workflow import run_matching_workflow

        start_time = datetime.now()

        result = run_matching_workflow(
            input_path=str(input_path),
            output_path=str(output_path),
            catalog=catalog,
            config=config,
            catalog_path=str(catalog_path),
            max_retries=args.max_retries,
            preprocess=config.ocr.preprocess,
            enable_checkpoints=not args.no_checkpoints
        )

        duration = (datetime.now() - start_time).total_seconds()

        files_completed = result.get("files_completed", [])
        files_failed = result.get("files_failed", [])

        print("\n" + "=" * 60)
        print("  PROCESSING COMPLETE")
        print("=" * 60)
        print(f"  Files Processed: {len(files_completed) + len(files_failed)}")
        print(f"  Successful:      {len(files_completed)}")
        print(f"  Failed:          {len(files_failed)}")
        print(f"  Items:           {result.get('total_items', 0)}")
        print(f"  Matched:         {result.get('total_matched', 0)}")
        print(f"  Unmatched:       {result.get('total_unmatched', 0)}")
        print(f"  Duration:        {duration:.1f} seconds")
        print("=" * 60)
        print(f"\n  Reports saved to: {output_path}")

        if files_failed:
            print("\n  Failed files:")
            for f in files_failed:
                print(f"    - {f.get('filename', 'Unknown')}: {f.get('errors', ['Unknown error'])[0]}")

        print()
        return 0

    except ImportError as e:
        logger.error(f"Missing dependency: {e}")
        logger.error("Run: pip install -e .")
        return 1
    except Exception as e:
        logger.exception(f"Workflow failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
