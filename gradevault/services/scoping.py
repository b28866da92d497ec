"""Authorization-scoped query layer.

Every read or write of classes, enrollments and grades goes through the
helpers here. They take the caller's resolved profile and hand back queries
already filtered by ownership, so no endpoint repeats its own teacher/student
lookup. Profiles are resolved per request and never cached.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Query, Session

from gradevault.core.errors import Forbidden, NotFound, NotFoundOrForbidden, ProfileNotFound
from gradevault.core.logging import get_logger
from gradevault.models.enrollment import Enrollment
from gradevault.models.grade import Grade
from gradevault.models.school_class import SchoolClass
from gradevault.models.student import Student
from gradevault.models.teacher import Teacher
from gradevault.models.user import ROLE_TEACHER

logger = get_logger("scoping")


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    role: str

    @property
    def is_teacher(self) -> bool:
        return self.role == ROLE_TEACHER


def teacher_profile(db: Session, principal: Principal) -> Teacher:
    teacher = db.query(Teacher).filter(Teacher.user_id == principal.user_id).first()
    if teacher is None:
        logger.warning("User %d has no teacher profile", principal.user_id)
        raise ProfileNotFound("No teacher profile found for this user.")
    return teacher


def student_profile(db: Session, principal: Principal) -> Student:
    student = db.query(Student).filter(Student.user_id == principal.user_id).first()
    if student is None:
        logger.warning("User %d has no student profile", principal.user_id)
        raise ProfileNotFound("No student profile found for this user.")
    return student


def owned_classes(db: Session, teacher: Teacher) -> Query:
    return db.query(SchoolClass).filter(SchoolClass.teacher_id == teacher.id)


def get_owned_class(db: Session, teacher: Teacher, class_id: int) -> SchoolClass:
    # Missing and foreign classes are reported the same way
    school_class = owned_classes(db, teacher).filter(SchoolClass.id == class_id).first()
    if school_class is None:
        raise NotFoundOrForbidden("Class not found or you don't have permission to access it.")
    return school_class


def owned_grades(db: Session, teacher: Teacher) -> Query:
    return db.query(Grade).join(SchoolClass, Grade.class_id == SchoolClass.id).filter(SchoolClass.teacher_id == teacher.id)


def get_grade_for_teacher(db: Session, teacher: Teacher, grade_id: int) -> Grade:
    grade = db.get(Grade, grade_id)
    if grade is None:
        raise NotFound("Grade not found.")
    if grade.school_class is None or grade.school_class.teacher_id != teacher.id:
        raise Forbidden("You don't have permission to modify this grade.")
    return grade


def own_grades(db: Session, student: Student) -> Query:
    return db.query(Grade).filter(Grade.student_id == student.id)


def enrollment_for(db: Session, student_id: int, class_id: int) -> Optional[Enrollment]:
    return (
        db.query(Enrollment)
        .filter(Enrollment.student_id == student_id, Enrollment.class_id == class_id)
        .first()
    )


def is_enrolled(db: Session, student_id: int, class_id: int) -> bool:
    return enrollment_for(db, student_id, class_id) is not None


def enrolled_classes(db: Session, student: Student) -> Query:
    return (
        db.query(SchoolClass)
        .join(Enrollment, Enrollment.class_id == SchoolClass.id)
        .filter(Enrollment.student_id == student.id)
    )
