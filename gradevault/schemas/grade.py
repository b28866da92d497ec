"""Grade schemas.

The 1-10 range is checked by the grade services rather than here so that
single creates, updates and bulk imports report the same error.
"""

from datetime import datetime
from typing import Optional

from gradevault.schemas.common import CamelModel, EntityId


class GradeCreate(CamelModel):
    student_id: EntityId
    class_id: EntityId
    value: int


class GradeUpdate(CamelModel):
    value: int


class GradeRead(CamelModel):
    id: int
    student_id: int
    student_name: Optional[str] = None
    class_id: int
    class_name: Optional[str] = None
    value: int
    date_assigned: datetime


class BulkUploadResult(CamelModel):
    imported_count: int
