from typing import Optional

from gradevault.schemas.common import CamelModel


class StudentRead(CamelModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
