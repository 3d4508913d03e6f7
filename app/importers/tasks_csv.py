"""Task import from the tracker's CSV export.

Columns, in order: serial no, owner, action item, reported date, target
date, status, progress comments. Dates look like ``02/Sep/25``.
"""

import csv
import io
import re
from datetime import date
from typing import List, Optional

import structlog

from app.domain.entities import Task
from app.domain.exceptions import ImportFormatException

logger = structlog.get_logger(__name__)

MIN_FIELDS = 7
DEFAULT_OWNER = "Unknown"
DEFAULT_STATUS = "Not Started"

MONTHS = {
    "Jan": "01",
    "Feb": "02",
    "Mar": "03",
    "Apr": "04",
    "May": "05",
    "Jun": "06",
    "Jul": "07",
    "Aug": "08",
    "Sep": "09",
    "Oct": "10",
    "Nov": "11",
    "Dec": "12",
}

_OWNER_SEPARATORS = re.compile(r"[,;/]")
_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def parse_csv_date(value: str, today: Optional[date] = None) -> str:
    """Convert ``DD/Mon/YY`` (or ``DD/Mon/YYYY``) to ISO ``YYYY-MM-DD``.

    Unknown month names map to January. Anything that does not split into
    three parts, or does not form a real date, falls back to ``today``.
    """
    today = today or date.today()
    parts = (value or "").split("/")
    if len(parts) == 3:
        day = parts[0].strip().zfill(2)
        month = MONTHS.get(parts[1].strip(), "01")
        year = parts[2].strip()
        if len(year) == 2:
            year = f"20{year}"
        candidate = f"{year}-{month}-{day}"
        try:
            return date.fromisoformat(candidate).isoformat()
        except ValueError:
            logger.warning("Unparseable CSV date, using today", value=value)

    return today.isoformat()


def split_owners(value: str) -> List[str]:
    owners = [o.strip() for o in _OWNER_SEPARATORS.split(value or "")]
    return [o for o in owners if o] or [DEFAULT_OWNER]


def _serial_no(value: str, fallback: int) -> int:
    match = _LEADING_INT.match(value or "")
    number = int(match.group()) if match else 0
    return number or fallback


def read_rows(content: str, filename: str = "upload.csv") -> List[List[str]]:
    """RFC 4180 rows with trimmed fields; all-blank rows are dropped.

    Raises ImportFormatException when the reader rejects the content, for
    example a field over the csv module's size limit.
    """
    content = content.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(content, newline=""))
    rows = []
    try:
        for row in reader:
            fields = [field.strip() for field in row]
            if any(fields):
                rows.append(fields)
    except csv.Error as e:
        logger.warning(
            "Unreadable task CSV", filename=filename, line=reader.line_num, error=str(e)
        )
        raise ImportFormatException(filename, f"line {reader.line_num}: {e}") from e
    return rows


def parse_tasks_csv(
    content: str, today: Optional[date] = None, filename: str = "upload.csv"
) -> List[Task]:
    today = today or date.today()
    tasks: List[Task] = []

    # First row is the header
    for fields in read_rows(content, filename)[1:]:
        if len(fields) < MIN_FIELDS:
            continue

        tasks.append(
            Task(
                serial_no=_serial_no(fields[0], len(tasks) + 1),
                owner=split_owners(fields[1]),
                action_item=fields[2],
                reported_date=parse_csv_date(fields[3], today),
                target_date=parse_csv_date(fields[4], today),
                status=fields[5] or DEFAULT_STATUS,
                progress_comments=fields[6],
                category=None,
            )
        )

    return tasks
