"""All-or-nothing CSV grade import.

The upload is a CSV with ``StudentId`` and ``Value`` columns. Every row is
checked (student exists, student enrolled in the target class, value in
range) and all problems are collected. A single bad row rejects the whole
file and nothing is written; otherwise every row is inserted in one
transaction.
"""

import io
import re
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd
from sqlalchemy.orm import Session

from gradevault.core.errors import BulkImportRejected, EmptyPayload, ValidationError
from gradevault.core.logging import get_logger
from gradevault.models.enrollment import Enrollment
from gradevault.models.grade import MAX_GRADE_VALUE, MIN_GRADE_VALUE, Grade
from gradevault.models.student import Student
from gradevault.models.teacher import Teacher
from gradevault.schemas.common import MAX_ID
from gradevault.services import scoping
from gradevault.services.grades import is_valid_grade_value

logger = get_logger("bulk_import")

STUDENT_ID_COLUMN = "studentid"
VALUE_COLUMN = "value"
_INTEGER = re.compile(r"^[+-]?\d+$")


@dataclass
class GradeRow:
    line: int
    student_id: Optional[int]
    value: Optional[int]
    errors: list[str] = field(default_factory=list)


def _normalize_column(name: str) -> str:
    return re.sub(r"[\s_]", "", str(name)).lower()


def _cell(raw) -> str:
    # Short rows come back as NaN rather than ""
    return raw.strip() if isinstance(raw, str) else ""


def _parse_int(text: str) -> Optional[int]:
    return int(text) if _INTEGER.match(text) else None


def parse_grade_rows(content: bytes) -> list[GradeRow]:
    """Read a CSV upload into rows; line numbers count the header as line 1."""
    if not content or not content.strip():
        return []
    try:
        frame = pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise ValidationError("The uploaded file is not a readable CSV file.") from exc

    frame.columns = [_normalize_column(col) for col in frame.columns]
    missing = [col for col in (STUDENT_ID_COLUMN, VALUE_COLUMN) if col not in frame.columns]
    if missing:
        raise ValidationError("The uploaded file must have StudentId and Value columns.")

    rows: list[GradeRow] = []
    for position, record in enumerate(frame[[STUDENT_ID_COLUMN, VALUE_COLUMN]].itertuples(index=False), start=2):
        raw_student, raw_value = (_cell(cell) for cell in record)
        if not raw_student and not raw_value:
            continue
        row = GradeRow(line=position, student_id=_parse_int(raw_student), value=_parse_int(raw_value))
        if row.student_id is None:
            row.errors.append(f"Row {position}: StudentId {raw_student!r} is not a whole number.")
        if row.value is None:
            row.errors.append(f"Row {position}: Value {raw_value!r} is not a whole number.")
        rows.append(row)
    return rows


def validate_rows(db: Session, class_id: int, rows: list[GradeRow]) -> list[str]:
    # Ids outside the INTEGER range cannot exist and are kept out of the queries
    student_ids = sorted(
        {row.student_id for row in rows if row.student_id is not None and 1 <= row.student_id <= MAX_ID}
    )
    existing_ids = {sid for (sid,) in db.query(Student.id).filter(Student.id.in_(student_ids))} if student_ids else set()
    enrolled_ids = (
        {
            sid
            for (sid,) in db.query(Enrollment.student_id).filter(
                Enrollment.class_id == class_id, Enrollment.student_id.in_(student_ids)
            )
        }
        if student_ids
        else set()
    )

    errors: list[str] = []
    for row in rows:
        errors.extend(row.errors)
        if row.student_id is not None:
            if row.student_id not in existing_ids:
                errors.append(f"Row {row.line}: Student {row.student_id} does not exist.")
            elif row.student_id not in enrolled_ids:
                errors.append(f"Row {row.line}: Student {row.student_id} is not enrolled in this class.")
        if row.value is not None and not is_valid_grade_value(row.value):
            errors.append(
                f"Row {row.line}: Value {row.value} must be between {MIN_GRADE_VALUE} and {MAX_GRADE_VALUE}."
            )
    return errors


def import_grades(db: Session, teacher: Teacher, class_id: int, content: bytes) -> int:
    school_class = scoping.get_owned_class(db, teacher, class_id)

    rows = parse_grade_rows(content)
    if not rows:
        raise EmptyPayload()

    errors = validate_rows(db, school_class.id, rows)
    if errors:
        logger.warning("Bulk upload for class %d rejected with %d errors", school_class.id, len(errors))
        raise BulkImportRejected(errors=errors)

    students = {
        student.id: student
        for student in db.query(Student).filter(Student.id.in_(sorted({row.student_id for row in rows})))
    }
    try:
        db.add_all(
            Grade(student=students[row.student_id], school_class=school_class, value=row.value) for row in rows
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Imported %d grades into class %d", len(rows), school_class.id)
    return len(rows)
