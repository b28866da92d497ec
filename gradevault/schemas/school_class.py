from typing import Optional

from pydantic import Field

from gradevault.schemas.common import CamelModel


class ClassBase(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    room_number: Optional[str] = Field(default=None, max_length=50)


class ClassCreate(ClassBase):
    pass


class ClassUpdate(ClassBase):
    pass


class ClassRead(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    room_number: Optional[str] = None
    teacher_name: Optional[str] = None
    student_count: int = 0
