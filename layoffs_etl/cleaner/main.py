"""
Cleaner Service - Main Entry Point

This is the command-line interface for the layoffs cleaning pipeline.
It reads the raw layoffs table, cleans it in one deterministic pass and
publishes the analysis-ready table together with a validation report.

Usage:
    python -m layoffs_etl.cleaner.main [OPTIONS]

Options:
    --input PATH          Raw CSV file to clean
    --source-table NAME   Raw PostgreSQL table to clean (needs DATABASE_URL)
    --output PATH         Destination CSV file for the clean table
    --target-table NAME   Destination PostgreSQL table (needs DATABASE_URL)
    --config PATH         Cleaning configuration (default: config/cleaning.yml)
    --report PATH         Also write the validation report as JSON
    --dry-run             Clean and validate without writing any output
    --verbose             Enable debug logging
    --help                Show this message and exit

Examples:
    # Clean a CSV export:
    python -m layoffs_etl.cleaner.main --input data/layoffs.csv --output out/layoffs_clean.csv

    # Clean the database table in place of the previous clean table:
    python -m layoffs_etl.cleaner.main --source-table layoffs_data_cleaning --target-table layoffs_clean

    # Dry run to see the validation report only:
    python -m layoffs_etl.cleaner.main --input data/layoffs.csv --dry-run

Exit Codes:
    0: Success
    1: Run completed but the clean set failed validation
    2: Fatal error (bad source schema, database connection, configuration, etc.)
"""

import argparse
import json
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .config_loader import CleaningConfig, load_cleaning_config
from .db_operations import DatabaseError, LayoffsDB
from .loader import LoadError, load_csv_records
from .pipeline import PipelineResult, run_pipeline
from .writer import write_clean_csv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description='Clean the raw layoffs table into an analysis-ready table',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        '--input',
        type=str,
        help='Raw CSV file to clean',
        default=None
    )
    source.add_argument(
        '--source-table',
        type=str,
        help='Raw PostgreSQL table to clean (requires DATABASE_URL)',
        default=None,
        dest='source_table'
    )

    sink = parser.add_mutually_exclusive_group()
    sink.add_argument(
        '--output',
        type=str,
        help='Destination CSV file for the clean table',
        default=None
    )
    sink.add_argument(
        '--target-table',
        type=str,
        help='Destination PostgreSQL table (requires DATABASE_URL)',
        default=None,
        dest='target_table'
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to cleaning.yml (defaults to CLEANING_CONFIG_PATH or config/cleaning.yml)',
        default=None
    )

    parser.add_argument(
        '--report',
        type=str,
        help='Write the validation report as JSON to this path',
        default=None
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Clean and validate without writing any output',
        dest='dry_run'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args(argv)
    if not args.dry_run and not (args.output or args.target_table):
        parser.error('one of --output or --target-table is required unless --dry-run is set')
    return args


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _write_report(result: PipelineResult, path: str) -> None:
    payload: dict[str, Any] = {
        'report': result.report.to_dict(),
        'stats': result.stats,
    }
    report_path = Path(path)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    logger.info("Validation report written", extra={'report_path': str(report_path)})


def run_cleaner(
    *,
    config: CleaningConfig,
    input_path: Optional[str] = None,
    output_path: Optional[str] = None,
    source_table: Optional[str] = None,
    target_table: Optional[str] = None,
    db: Optional[LayoffsDB] = None,
    dry_run: bool = False,
) -> PipelineResult:
    """
    Main cleaner logic: load, clean, validate, publish.

    Exactly one source (``input_path`` or ``source_table``) must be given.
    Output is written only after the whole pipeline succeeded, and the
    writers replace the previous output atomically.

    Args:
        config: Cleaning configuration
        input_path: Raw CSV file
        output_path: Clean CSV file
        source_table: Raw database table (requires ``db``)
        target_table: Clean database table (requires ``db``)
        db: Database interface for table sources/targets
        dry_run: If True, don't write any output

    Returns:
        PipelineResult with clean records, report and stats

    Raises:
        LoadError: If the source is unreadable or has the wrong schema
        DatabaseError: If a database read or publish fails
        ValueError: If the source/target arguments are inconsistent
    """
    if bool(input_path) == bool(source_table):
        raise ValueError("Exactly one of input_path or source_table must be given")
    if (source_table or target_table) and db is None:
        raise ValueError("A database connection is required for table sources and targets")

    if input_path:
        raw_records = load_csv_records(input_path)
    else:
        raw_records = db.fetch_raw_records(source_table)

    result = run_pipeline(raw_records, config)

    if dry_run:
        logger.info(
            f"DRY RUN: Would publish {len(result.clean_records)} clean records"
        )
        return result

    if output_path:
        write_clean_csv(result.clean_records, output_path)
    if target_table:
        db.replace_clean_table(result.clean_records, target_table, config.index_columns)
        logger.info(
            "Clean table stats after publish",
            extra=db.get_clean_stats(target_table)
        )

    return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the cleaner service.

    Returns:
        Exit code (0 = success, 1 = validation failed, 2 = fatal error)
    """
    args = parse_args(argv)

    _configure_logging(args.verbose)
    if args.verbose:
        logger.debug("Debug logging enabled")

    try:
        config = load_cleaning_config(args.config)

        db = None
        if args.source_table or args.target_table:
            database_url = os.getenv('DATABASE_URL')
            if not database_url:
                logger.error("DATABASE_URL environment variable must be set")
                return 2  # Fatal error - cannot proceed without database
            logger.info("Connecting to database")
            db = LayoffsDB(database_url)

        result = run_cleaner(
            config=config,
            input_path=args.input,
            output_path=args.output,
            source_table=args.source_table,
            target_table=args.target_table,
            db=db,
            dry_run=args.dry_run,
        )

        if args.report:
            _write_report(result, args.report)

        if not result.report.is_consistent:
            logger.warning(
                "Completed with validation problems: %s",
                "; ".join(result.report.problems),
            )
            return 1  # Output written, but it violates the clean-set invariants

        logger.info("Cleaner completed successfully")
        return 0

    except LoadError as e:
        logger.error(f"Load error: {e}")
        return 2

    except DatabaseError as e:
        logger.error(f"Database error: {e}")
        return 2

    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return 2

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130  # Standard Unix exit code for SIGINT

    except Exception as e:
        logger.error(
            "Unexpected fatal error",
            extra={
                'error': str(e),
                'error_type': type(e).__name__,
            },
            exc_info=True
        )
        return 2  # Fatal error


if __name__ == '__main__':
    sys.exit(main())
