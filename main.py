#!/usr/bin/env python3
"""
Receipt Engine - Main Entry Point.

Command-line interface and programmatic access to the extraction
pipeline.

Usage:
    Command Line:
        python main.py --input receipt.jpg
        python main.py --input ./receipts/ --output results.json --evaluate --ground-truth gt.json

    Python:
        from main import run_extraction
        results, failures = run_extraction("receipt.jpg")

Exit codes:
    0    every document processed
    1    nothing processed (or a setup error)
    2    some documents failed
    130  interrupted
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from config import ConfigurationManager, get_config
from receipt_engine.input_handler.handler import DEFAULT_MEDIA_TYPES
from receipt_engine.utils.exceptions import ConfigurationError, ReceiptEngineError
from receipt_engine.utils.helpers import ensure_directory, generate_timestamp, guess_media_type
from receipt_engine.utils.logger import ROOT_LOGGER_NAME, get_logger, setup_logger_from_config

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_PARTIAL = 2
EXIT_INTERRUPTED = 130


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Receipt and invoice data extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Process a single receipt:
        python main.py --input receipt.jpg

    Process a directory:
        python main.py --input ./receipts/ --output results.json

    With evaluation:
        python main.py --input ./receipts/ --evaluate --ground-truth data/ground_truth.json
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Input file or directory containing documents"
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="JSON output file (default: <paths.output_dir>/extraction_<timestamp>.json)"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-document recognition budget in seconds (0 disables it)"
    )

    parser.add_argument(
        "--evaluate",
        action="store_true",
        help="Evaluate results against ground truth"
    )
    parser.add_argument(
        "--ground-truth", "-gt",
        type=str,
        default=None,
        help="Path to ground truth file (JSON or CSV)"
    )
    parser.add_argument(
        "--report-format",
        choices=["txt", "json"],
        default="txt",
        help="Evaluation report format (default: txt)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors"
    )

    args = parser.parse_args(argv)
    if args.evaluate and not args.ground_truth:
        parser.error("--evaluate requires --ground-truth")
    return args


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """Load configuration and set up logging."""
    config = ConfigurationManager(args.config)
    logger = setup_logger_from_config()

    if args.debug:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.ERROR)

    logger.info("=" * 60)
    logger.info("RECEIPT ENGINE")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")

    return config


def collect_inputs(input_path: str) -> List[Path]:
    """
    Files to process: the file itself, or every supported file in a directory.

    Raises:
        FileNotFoundError: If the path doesn't exist.
    """
    logger = get_logger(__name__)
    path = Path(input_path)

    if not path.exists():
        raise FileNotFoundError(f"Input path not found: {path}")
    if path.is_file():
        return [path]

    supported = set(get_config("input.supported_media_types", list(DEFAULT_MEDIA_TYPES)))
    files = sorted(
        p for p in path.iterdir()
        if p.is_file() and guess_media_type(p) in supported
    )

    if not files:
        logger.warning(f"No supported files found in: {path}")
    else:
        logger.info(f"Found {len(files)} files to process")
    return files


def run_extraction(
    input_path: str,
    timeout_seconds: Optional[float] = None
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Run the pipeline over a file or directory.

    Returns:
        (results, failures): serialized results and serialized failures,
        one entry per input file.
    """
    from receipt_engine.ocr_engine import RecognizerPool
    from receipt_engine.pipeline import ExtractionPipeline

    logger = get_logger(__name__)
    files = collect_inputs(input_path)

    results: List[Dict[str, Any]] = []
    failures: List[Dict[str, Any]] = []

    with RecognizerPool(size=1) as pool:
        pipeline = ExtractionPipeline(recognizers=pool, timeout_seconds=timeout_seconds)

        for file_path in files:
            try:
                result = pipeline.extract_file(file_path)
            except ReceiptEngineError as e:
                logger.error(f"Failed: {file_path.name}: {e}")
                failures.append({'source_file': file_path.name, **e.to_dict()})
                continue

            results.append(result.to_dict())
            logger.info(
                f"  {file_path.name}: amount={result.fields.amount}, "
                f"confidence={result.overall_confidence:.2f} ({result.decision})"
            )

    return results, failures


def write_output(
    results: List[Dict[str, Any]],
    failures: List[Dict[str, Any]],
    output_path: Optional[str]
) -> Path:
    if output_path:
        path = Path(output_path)
    else:
        path = Path(get_config("paths.output_dir", "outputs")) / f"extraction_{generate_timestamp()}.json"

    ensure_directory(path.parent)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump({'results': results, 'failures': failures}, f, indent=2, ensure_ascii=False)
    return path


def run_evaluation(results: List[Dict[str, Any]], ground_truth_path: str, report_format: str) -> bool:
    """Evaluate, write a report, and return whether the run passed."""
    from receipt_engine.evaluation import Evaluator

    logger = get_logger(__name__)
    evaluator = Evaluator(ground_truth_path)
    summary = evaluator.evaluate(results)

    reports_dir = Path(get_config("paths.reports_dir", "outputs/reports"))
    report_path = reports_dir / f"evaluation_{generate_timestamp()}.{report_format}"
    evaluator.generate_report(summary, report_path, format=report_format)

    if report_format == 'txt':
        logger.info("\n" + summary.print_report())
    return summary.passed


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = parse_arguments(argv)
        initialize_system(args)
        logger = get_logger(__name__)

        results, failures = run_extraction(args.input, timeout_seconds=args.timeout)
        if not results and not failures:
            logger.error("No files to process")
            return EXIT_FAILED

        output = write_output(results, failures, args.output)
        logger.info(f"Results written to: {output}")

        if args.evaluate and results:
            passed = run_evaluation(results, args.ground_truth, args.report_format)
            logger.info(f"Evaluation {'passed' if passed else 'did not pass'}")

        logger.info("=" * 60)
        logger.info(f"Extraction complete: {len(results)} succeeded, {len(failures)} failed")
        logger.info("=" * 60)

        if not results:
            return EXIT_FAILED
        return EXIT_PARTIAL if failures else EXIT_OK

    except (FileNotFoundError, ConfigurationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return EXIT_INTERRUPTED

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if argv is None and "--debug" in sys.argv:
            import traceback
            traceback.print_exc()
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
