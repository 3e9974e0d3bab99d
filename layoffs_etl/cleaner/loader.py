"""
Raw Record Loader

Reads the raw layoffs table from a CSV file into an ordered list of
RawRecord objects. The loader is deliberately dumb: it keeps source order
and the exact text of every cell (no trimming, no type coercion). Cleaning
is the job of the stages that follow.

The only thing the loader enforces is the schema: the column set must be
exactly the nine business fields, otherwise the run aborts before any
record is touched.
"""

import csv
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Union

from layoffs_etl.common.records import BUSINESS_FIELDS, RawRecord

logger = logging.getLogger(__name__)


class LoadError(Exception):
    """Raised when the raw source is unreadable or does not match the expected schema."""
    pass


def check_schema(columns: Iterable[str], source: str) -> None:
    """
    Verify that a source exposes exactly the business columns.

    Column order is irrelevant, the column set is not.

    Args:
        columns: Column names reported by the source
        source: Human-readable source name (for error messages)

    Raises:
        LoadError: If columns are missing, unexpected or repeated
    """
    column_list = list(columns)
    actual = set(column_list)
    expected = set(BUSINESS_FIELDS)

    missing = sorted(expected - actual)
    unexpected = sorted(actual - expected)
    repeated = sorted({name for name in column_list if column_list.count(name) > 1})

    if missing or unexpected or repeated:
        logger.error(
            "Source schema mismatch",
            extra={
                'source': source,
                'missing': missing,
                'unexpected': unexpected,
                'repeated': repeated,
            }
        )
        raise LoadError(
            f"Schema mismatch in {source}: missing={missing}, "
            f"unexpected={unexpected}, repeated={repeated}"
        )


def load_csv_records(path: Union[str, Path], encoding: str = "utf-8-sig") -> list[RawRecord]:
    """
    Load raw layoff records from a CSV file.

    Args:
        path: Path to the CSV file (header row required)
        encoding: File encoding. The default also strips a UTF-8 BOM.

    Returns:
        List of RawRecord in file order. Empty cells are kept as "".

    Raises:
        LoadError: If the file cannot be read, has no header, has the wrong
            column set, or a row carries more or fewer cells than the header
    """
    path = Path(path)
    records: list[RawRecord] = []

    try:
        with path.open("r", encoding=encoding, newline="") as handle:
            reader = csv.DictReader(handle)
            if reader.fieldnames is None:
                raise LoadError(f"{path} is empty, expected a header row")
            check_schema(reader.fieldnames, str(path))

            for row in reader:
                # DictReader stores surplus cells under the None key
                if None in row:
                    raise LoadError(
                        f"{path} line {reader.line_num}: row has more cells than the header"
                    )
                # ... and fills missing trailing cells with None
                if None in row.values():
                    raise LoadError(
                        f"{path} line {reader.line_num}: row has fewer cells than the header"
                    )
                records.append(RawRecord.from_mapping(row))

    except OSError as e:
        logger.error(f"Failed to read raw CSV: {e}")
        raise LoadError(f"Cannot read {path}: {e}") from e
    except (UnicodeDecodeError, csv.Error) as e:
        logger.error(f"Failed to parse raw CSV: {e}")
        raise LoadError(f"Cannot parse {path}: {e}") from e

    logger.info(
        "Loaded raw records from CSV",
        extra={'path': str(path), 'count': len(records)}
    )
    return records
