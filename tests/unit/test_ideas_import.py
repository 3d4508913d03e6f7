"""Tests for the idea spreadsheet/CSV import."""

import io
from datetime import datetime

import pytest
from openpyxl import Workbook

from app.domain.entities import EvaluationStage, StageStatus
from app.domain.exceptions import ImportFormatException
from app.importers.ideas import (
    EMPTY_FILE_ERROR,
    MISSING_TITLE_COLUMN_ERROR,
    find_column_mapping,
    normalize_category,
    normalize_priority,
    normalize_stage,
    normalize_stage_status,
    parse_ideas_file,
)


def xlsx_bytes(rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestColumnMapping:
    def test_aliases_are_case_insensitive(self):
        mapping = find_column_mapping(["Idea Title", " DEPT ", "Submitted By", "Level"])

        assert mapping == {
            "title": "Idea Title",
            "department_code": " DEPT ",
            "submitter_name": "Submitted By",
            "evaluation_stage": "Level",
        }

    def test_first_matching_header_wins(self):
        mapping = find_column_mapping(["Name", "Title"])
        assert mapping["title"] == "Name"


class TestNormalizers:
    def test_category_and_priority(self):
        assert normalize_category("process improvement") == "Process Improvement"
        assert normalize_category("Moonshot") == "Innovation"
        assert normalize_category(None) == "Innovation"
        assert normalize_priority("HIGH") == "High"
        assert normalize_priority("urgent") == "Medium"

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, EvaluationStage.L1),
            ("l3", EvaluationStage.L3),
            ("Level 2", EvaluationStage.L2),
            ("4", EvaluationStage.L4),
            ("Stage 9", EvaluationStage.L1),
            ("unknown", EvaluationStage.L1),
        ],
    )
    def test_stage(self, value, expected):
        assert normalize_stage(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, StageStatus.PENDING),
            ("In Progress", StageStatus.IN_PROGRESS),
            ("under review", StageStatus.IN_PROGRESS),
            ("Approved", StageStatus.APPROVED),
            ("accepted", StageStatus.APPROVED),
            ("Declined", StageStatus.REJECTED),
            ("paused", StageStatus.ON_HOLD),
            ("whatever", StageStatus.PENDING),
        ],
    )
    def test_stage_status(self, value, expected):
        assert normalize_stage_status(value) == expected


class TestParseCsv:
    def test_rows_with_and_without_title(self):
        data = (
            "\ufeffTitle,Category,Priority,Submitter,Email,Stage,Review Status\n"
            "Invoice OCR,cost reduction,high,Dana,dana@example.com,L2,in progress\n"
            ",Quality,Low,,,,\n"
            "Chatbot for HR,,,,,,\n"
        ).encode("utf-8")

        result = parse_ideas_file(data, "ideas.csv")

        assert [i.title for i in result.ideas] == ["Invoice OCR", "Chatbot for HR"]
        assert result.skipped == 1
        assert result.errors == ['Row 3: Missing required "Title" field']

        ocr = result.ideas[0]
        assert ocr.category == "Cost Reduction"
        assert ocr.priority == "High"
        assert ocr.submitter_name == "Dana"
        assert ocr.submitter_email == "dana@example.com"
        assert ocr.evaluation_stage == EvaluationStage.L2
        assert ocr.stage_status == StageStatus.IN_PROGRESS
        assert ocr.status == "new"

        chatbot = result.ideas[1]
        assert chatbot.category == "Innovation"
        assert chatbot.priority == "Medium"
        assert chatbot.description is None

    def test_missing_title_column(self):
        result = parse_ideas_file(b"Summary,Owner\nSomething,Dana\n", "ideas.csv")
        assert result.ideas == []
        assert result.errors == [MISSING_TITLE_COLUMN_ERROR]

    @pytest.mark.parametrize("data", [b"", b"Title,Category\n", b"\n\n"])
    def test_empty_files(self, data):
        result = parse_ideas_file(data, "ideas.csv")
        assert result.errors == [EMPTY_FILE_ERROR]


class TestParseXlsx:
    def test_first_sheet_is_read(self):
        data = xlsx_bytes(
            [
                ["Idea Name", "Problem", "Solution", "Dept", "Submission"],
                ["Self-service portal", "Too many tickets", "Portal", 42, datetime(2025, 3, 1)],
                [None, None, None, None, None],
                ["Route optimisation", None, None, "OPS", None],
            ]
        )

        result = parse_ideas_file(data, "ideas.xlsx")

        assert result.errors == []
        assert [i.title for i in result.ideas] == [
            "Self-service portal",
            "Route optimisation",
        ]
        portal = result.ideas[0]
        assert portal.problem_statement == "Too many tickets"
        assert portal.proposed_solution == "Portal"
        assert portal.department_code == "42"

    def test_detects_xlsx_without_extension(self):
        data = xlsx_bytes([["Title"], ["Drone inventory"]])
        result = parse_ideas_file(data, "upload")
        assert [i.title for i in result.ideas] == ["Drone inventory"]

    def test_corrupt_workbook(self):
        with pytest.raises(ImportFormatException):
            parse_ideas_file(b"not a workbook", "ideas.xlsx")
