"""Class model. A class belongs to exactly one teacher."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from gradevault.db.base_class import Base
from gradevault.core.time import utc_now


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    room_number = Column(String(50), nullable=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    teacher = relationship("Teacher", back_populates="classes")
    # Dependents go with the class in the same flush
    enrollments = relationship(
        "Enrollment",
        back_populates="school_class",
        cascade="all, delete-orphan",
    )
    grades = relationship(
        "Grade",
        back_populates="school_class",
        cascade="all, delete-orphan",
    )
