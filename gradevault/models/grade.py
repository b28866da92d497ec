"""Grade model. Values live in the 1-10 domain."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import relationship

from gradevault.db.base_class import Base
from gradevault.core.time import utc_now

MIN_GRADE_VALUE = 1
MAX_GRADE_VALUE = 10


class Grade(Base):
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    value = Column(Integer, nullable=False)
    date_assigned = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        CheckConstraint(f"value >= {MIN_GRADE_VALUE} AND value <= {MAX_GRADE_VALUE}", name="ck_grade_value_range"),
        Index("ix_grades_class_student", "class_id", "student_id"),
    )

    student = relationship("Student", back_populates="grades")
    school_class = relationship("SchoolClass", back_populates="grades")
