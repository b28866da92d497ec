"""Shared path parameter types for the routers."""

from typing import Annotated

from fastapi import Path

from gradevault.schemas.common import MAX_ID

# Out-of-range ids fail request validation instead of reaching the database
ClassIdPath = Annotated[int, Path(ge=1, le=MAX_ID)]
StudentIdPath = Annotated[int, Path(ge=1, le=MAX_ID)]
GradeIdPath = Annotated[int, Path(ge=1, le=MAX_ID)]
