"""
CSV output for the clean table.

The file is written next to its destination under a temporary name and
then swapped in with os.replace(), so readers see either the previous
output or the complete new one, never a partial file.
"""

import csv
import logging
import os
import stat
import tempfile
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Any, Union

from layoffs_etl.common.records import BUSINESS_FIELDS, CleanRecord

logger = logging.getLogger(__name__)


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _target_mode(path: Path) -> int:
    """Keep the mode of an existing output, else honour the process umask."""
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_clean_csv(records: Sequence[CleanRecord], path: Union[str, Path]) -> Path:
    """
    Atomically write clean records to a CSV file.

    NULL values are written as empty cells and dates as YYYY-MM-DD.

    Args:
        records: Clean records in output order
        path: Destination file; parent directories are created

    Returns:
        The destination path

    Raises:
        OSError: If the file cannot be written (the destination is left untouched)
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            writer.writerow(BUSINESS_FIELDS)
            for record in records:
                writer.writerow([_format_cell(value) for value in record.as_row()])
        # mkstemp creates the file owner-only
        os.chmod(tmp_name, _target_mode(path))
        os.replace(tmp_name, path)
    except BaseException:
        # Covers KeyboardInterrupt too: no temp file may outlive a failed run
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.info(
        "Wrote clean records to CSV",
        extra={'path': str(path), 'count': len(records)}
    )
    return path
