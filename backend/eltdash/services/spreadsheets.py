import io
from datetime import datetime, date

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from pydantic import ValidationError

from eltdash.errors import validation_errors
from eltdash.schemas import TestScoreCreate

SCORE_COLUMNS = [
    ("Student Name", "studentName"),
    ("School", "school"),
    ("Test Type", "testType"),
    ("Score", "score"),
    ("Max Score", "maxScore"),
    ("Test Date", "testDate"),
    ("Instructor", "instructor"),
    ("Course", "course"),
    ("Level", "level"),
]
HEADER_FILL = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")


def _write_header(ws, headers):
    for c, h in enumerate(headers, 1):
        cell = ws.cell(row=1, column=c, value=h)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")
        ws.column_dimensions[get_column_letter(c)].width = max(14, len(h) + 4)


def _to_bytes(wb):
    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


def build_score_template():
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Test Scores"
    _write_header(ws, [h for h, _ in SCORE_COLUMNS] + ["Percentage"])
    ws.append(["Jane Doe", "KFNA", "ALCPT", 82, 100, "2025-01-15", "John Smith", "ALCPT Prep", "Intermediate"])
    return _to_bytes(wb)


def build_score_export(scores, school_names):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Test Scores"
    _write_header(ws, [h for h, _ in SCORE_COLUMNS] + ["Percentage", "Status"])
    for s in scores:
        ws.append([
            s.student_name,
            school_names.get(s.school_id, s.school_id),
            s.test_type.value,
            s.score,
            s.max_score,
            s.test_date,
            s.instructor,
            s.course,
            s.level,
            s.percentage,
            "Pass" if s.passed else "Fail",
        ])
    return _to_bytes(wb)


def _cell_value(value):
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value.strip() or None
    return value


def parse_score_upload(stream, school_lookup):
    """
    Read an uploaded workbook into validated TestScoreCreate rows.

    ``school_lookup`` maps a lowercased school name, code or id string to a
    school id. Returns (rows, errors); errors carry the 1-based sheet row.
    """
    wb = openpyxl.load_workbook(stream, read_only=True, data_only=True)
    ws = wb.active
    rows_iter = ws.iter_rows(values_only=True)

    header = next(rows_iter, None)
    if not header:
        return [], [{"row": 1, "message": "The workbook is empty"}]

    index = {str(h).strip().lower(): i for i, h in enumerate(header) if h is not None}
    missing = [h for h, _ in SCORE_COLUMNS[:6] if h.lower() not in index]
    if missing:
        return [], [{"row": 1, "message": f"Missing columns: {', '.join(missing)}"}]

    rows, errors = [], []
    for row_number, values in enumerate(rows_iter, start=2):
        if not values or all(v is None for v in values):
            continue

        payload = {}
        for heading, key in SCORE_COLUMNS:
            i = index.get(heading.lower())
            if i is not None and i < len(values):
                payload[key] = _cell_value(values[i])

        school = payload.pop("school", None)
        school_id = school_lookup.get(str(school).lower()) if school is not None else None
        if school_id is None:
            errors.append({"row": row_number, "message": f"Unknown school: {school}"})
            continue
        payload["schoolId"] = school_id
        if payload.get("maxScore") is None:
            payload.pop("maxScore", None)

        try:
            rows.append(TestScoreCreate.model_validate(payload))
        except ValidationError as exc:
            errors.append({"row": row_number, "message": "Invalid row", "errors": validation_errors(exc)})

    wb.close()
    return rows, errors
