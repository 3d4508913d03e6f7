"""Idea import from spreadsheets (XLSX) or CSV files.

Headers are matched loosely against ``COLUMN_ALIASES``; only a title
column is required.
"""

import csv
import io
import re
import zipfile
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import structlog
from openpyxl import load_workbook
from pydantic import BaseModel, Field

from app.domain.entities import EvaluationStage, Idea, StageStatus
from app.domain.exceptions import ImportFormatException

logger = structlog.get_logger(__name__)

EMPTY_FILE_ERROR = "File is empty or has no data rows"
MISSING_TITLE_COLUMN_ERROR = (
    'Could not find a "Title" column. Please ensure your file has a column '
    'named "Title" or "Idea Title".'
)

COLUMN_ALIASES: Dict[str, List[str]] = {
    "title": ["title", "idea title", "idea name", "name", "idea"],
    "description": ["description", "desc", "details"],
    "problem_statement": ["problem statement", "problem", "issue", "challenge"],
    "proposed_solution": ["proposed solution", "solution", "approach", "proposed approach"],
    "expected_benefits": ["expected benefits", "benefits", "expected outcome", "outcomes", "value"],
    "category": ["category", "type", "idea category", "area"],
    "priority": ["priority", "urgency", "importance"],
    "status": ["status", "state", "current status"],
    "remarks": ["remarks", "notes", "comments", "additional notes"],
    "submitter_name": ["submitter name", "submitter", "owner", "author", "submitted by", "idea owner"],
    "submitter_email": ["submitter email", "email", "owner email", "author email"],
    "submitter_employee_id": ["employee id", "emp id", "employee number", "staff id"],
    "department_code": ["department", "dept", "ou", "department code", "dept code", "unit"],
    "evaluation_stage": ["stage", "evaluation stage", "level", "phase"],
    "stage_status": ["stage status", "review status", "approval status"],
}

CATEGORIES = ["Innovation", "Process Improvement", "Cost Reduction", "Quality"]
PRIORITIES = ["High", "Medium", "Low"]

_TEXT_FIELDS = [
    "description",
    "problem_statement",
    "proposed_solution",
    "expected_benefits",
    "remarks",
    "submitter_name",
    "submitter_email",
    "submitter_employee_id",
    "department_code",
]


class ImportResult(BaseModel):
    ideas: List[Idea] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    skipped: int = 0


def find_column_mapping(headers: List[str]) -> Dict[str, str]:
    """Map each known field to the first header that is one of its aliases."""
    normalized = [h.strip().lower() for h in headers]
    mapping: Dict[str, str] = {}
    for field, aliases in COLUMN_ALIASES.items():
        for index, header in enumerate(normalized):
            if header in aliases:
                mapping[field] = headers[index]
                break
    return mapping


def _pick(value: Optional[str], choices: List[str], default: str) -> str:
    if not value:
        return default
    wanted = value.strip().lower()
    return next((c for c in choices if c.lower() == wanted), default)


def normalize_category(value: Optional[str]) -> str:
    return _pick(value, CATEGORIES, "Innovation")


def normalize_priority(value: Optional[str]) -> str:
    return _pick(value, PRIORITIES, "Medium")


def normalize_stage(value: Optional[str]) -> EvaluationStage:
    if not value:
        return EvaluationStage.L1
    normalized = value.strip().upper()
    if normalized in EvaluationStage.__members__:
        return EvaluationStage(normalized)
    # "1", "Level 2", "Stage 3"
    match = re.search(r"\d", normalized)
    if match and f"L{match.group()}" in EvaluationStage.__members__:
        return EvaluationStage(f"L{match.group()}")
    return EvaluationStage.L1


def normalize_stage_status(value: Optional[str]) -> StageStatus:
    if not value:
        return StageStatus.PENDING
    normalized = re.sub(r"\s+", "_", value.strip().lower())
    if normalized in {s.value for s in StageStatus}:
        return StageStatus(normalized)
    if "progress" in normalized or "review" in normalized:
        return StageStatus.IN_PROGRESS
    if "approve" in normalized or "accept" in normalized:
        return StageStatus.APPROVED
    if "reject" in normalized or "decline" in normalized:
        return StageStatus.REJECTED
    if "hold" in normalized or "pause" in normalized:
        return StageStatus.ON_HOLD
    return StageStatus.PENDING


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _is_xlsx(data: bytes, filename: str) -> bool:
    name = filename.lower()
    if name.endswith((".xlsx", ".xlsm")):
        return True
    if name.endswith(".csv"):
        return False
    return zipfile.is_zipfile(io.BytesIO(data))


def _read_xlsx(data: bytes) -> List[List[str]]:
    workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        return [[_cell_text(v) for v in row] for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_csv(data: bytes) -> List[List[str]]:
    text = data.decode("utf-8-sig")
    return [[f.strip() for f in row] for row in csv.reader(io.StringIO(text, newline=""))]


def read_records(data: bytes, filename: str) -> List[Dict[str, str]]:
    """First sheet (or the CSV) as header-keyed records, blank rows dropped."""
    try:
        grid = _read_xlsx(data) if _is_xlsx(data, filename) else _read_csv(data)
    except Exception as e:
        logger.warning("Unreadable idea import file", filename=filename, error=str(e))
        raise ImportFormatException(filename, str(e)) from e

    grid = [row for row in grid if any(row)]
    if not grid:
        return []

    headers = grid[0]
    records = []
    for row in grid[1:]:
        records.append(
            {
                header: row[index] if index < len(row) else ""
                for index, header in enumerate(headers)
                if header
            }
        )
    return records


def parse_idea_row(record: Dict[str, str], mapping: Dict[str, str]) -> Optional[Idea]:
    def value(field: str) -> Optional[str]:
        column = mapping.get(field)
        if column is None:
            return None
        text = (record.get(column) or "").strip()
        return text or None

    title = value("title")
    if not title:
        return None

    return Idea(
        title=title,
        category=normalize_category(value("category")),
        priority=normalize_priority(value("priority")),
        status="new",
        evaluation_stage=normalize_stage(value("evaluation_stage")),
        stage_status=normalize_stage_status(value("stage_status")),
        **{field: value(field) for field in _TEXT_FIELDS},
    )


def parse_ideas_file(data: bytes, filename: str) -> ImportResult:
    records = read_records(data, filename) if data else []
    if not records:
        return ImportResult(errors=[EMPTY_FILE_ERROR])

    mapping = find_column_mapping(list(records[0].keys()))
    if "title" not in mapping:
        return ImportResult(errors=[MISSING_TITLE_COLUMN_ERROR])

    result = ImportResult()
    for index, record in enumerate(records):
        idea = parse_idea_row(record, mapping)
        if idea is None:
            result.skipped += 1
            result.errors.append(f'Row {index + 2}: Missing required "Title" field')
        else:
            result.ideas.append(idea)

    logger.info(
        "Idea file parsed",
        filename=filename,
        ideas=len(result.ideas),
        skipped=result.skipped,
    )
    return result
