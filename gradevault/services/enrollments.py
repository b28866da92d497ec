"""Enrollment management for a teacher's classes."""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gradevault.core.errors import AlreadyEnrolled, NotEnrolled, NotFound
from gradevault.core.logging import get_logger
from gradevault.models.enrollment import Enrollment
from gradevault.models.grade import Grade
from gradevault.models.school_class import SchoolClass
from gradevault.models.student import Student
from gradevault.models.teacher import Teacher
from gradevault.services import scoping

logger = get_logger("enrollments")


def enroll_student(db: Session, teacher: Teacher, class_id: int, student_id: int) -> Enrollment:
    school_class = scoping.get_owned_class(db, teacher, class_id)

    student = db.get(Student, student_id)
    if student is None:
        raise NotFound("Student not found.")

    if scoping.is_enrolled(db, student_id, class_id):
        raise AlreadyEnrolled()

    enrollment = Enrollment(student=student, school_class=school_class)
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError as exc:
        # A concurrent request enrolled the same pair first
        db.rollback()
        raise AlreadyEnrolled() from exc
    logger.info("Student %d enrolled in class %d", student_id, class_id)
    return enrollment


def unenroll_student(db: Session, teacher: Teacher, class_id: int, student_id: int) -> int:
    """Remove a student from a class along with their grades in it.

    Returns the number of grades deleted with the enrollment.
    """
    scoping.get_owned_class(db, teacher, class_id)

    enrollment = scoping.enrollment_for(db, student_id, class_id)
    if enrollment is None:
        raise NotEnrolled()

    try:
        removed_grades = (
            db.query(Grade)
            .filter(Grade.class_id == class_id, Grade.student_id == student_id)
            .delete(synchronize_session="fetch")
        )
        db.delete(enrollment)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Student %d removed from class %d (%d grades deleted)", student_id, class_id, removed_grades
    )
    return removed_grades


def list_enrolled(db: Session, teacher: Teacher, class_id: int) -> list[Student]:
    scoping.get_owned_class(db, teacher, class_id)
    return (
        db.query(Student)
        .join(Enrollment, Enrollment.student_id == Student.id)
        .filter(Enrollment.class_id == class_id)
        .order_by(Student.last_name, Student.first_name, Student.id)
        .all()
    )


def list_enrollable(db: Session, teacher: Teacher, class_id: int) -> list[Student]:
    scoping.get_owned_class(db, teacher, class_id)
    enrolled_ids = select(Enrollment.student_id).where(Enrollment.class_id == class_id)
    return (
        db.query(Student)
        .filter(Student.id.not_in(enrolled_ids))
        .order_by(Student.last_name, Student.first_name, Student.id)
        .all()
    )


def list_student_classes(db: Session, student: Student) -> list[SchoolClass]:
    return scoping.enrolled_classes(db, student).order_by(SchoolClass.name, SchoolClass.id).all()
