"""Grade lifecycle and the role-scoped grade views."""

from sqlalchemy.orm import Session

from gradevault.core.errors import Forbidden, InvalidGradeValue, NotFoundOrForbidden, StudentNotEnrolled, UnknownStudent
from gradevault.core.logging import get_logger
from gradevault.models.grade import MAX_GRADE_VALUE, MIN_GRADE_VALUE, Grade
from gradevault.models.student import Student
from gradevault.models.teacher import Teacher
from gradevault.schemas.grade import GradeCreate, GradeRead
from gradevault.services import scoping
from gradevault.services.scoping import Principal

logger = get_logger("grades")


def is_valid_grade_value(value: int) -> bool:
    return MIN_GRADE_VALUE <= value <= MAX_GRADE_VALUE


def validate_grade_value(value: int) -> None:
    if not is_valid_grade_value(value):
        raise InvalidGradeValue(f"Grade value must be between {MIN_GRADE_VALUE} and {MAX_GRADE_VALUE}.")


def to_grade_read(grade: Grade) -> GradeRead:
    student = grade.student
    school_class = grade.school_class
    return GradeRead(
        id=grade.id,
        student_id=grade.student_id,
        student_name=student.full_name if student else None,
        class_id=grade.class_id,
        class_name=school_class.name if school_class else "Unknown Class",
        value=grade.value,
        date_assigned=grade.date_assigned,
    )


def create_grade(db: Session, teacher: Teacher, grade_in: GradeCreate) -> Grade:
    school_class = scoping.get_owned_class(db, teacher, grade_in.class_id)
    if db.get(Student, grade_in.student_id) is None:
        raise UnknownStudent()
    enrollment = scoping.enrollment_for(db, grade_in.student_id, school_class.id)
    if enrollment is None:
        raise StudentNotEnrolled()
    validate_grade_value(grade_in.value)

    grade = Grade(student=enrollment.student, school_class=school_class, value=grade_in.value)
    db.add(grade)
    db.commit()
    db.refresh(grade)
    logger.info("Grade %d created for student %d in class %d", grade.id, grade.student_id, grade.class_id)
    return grade


def update_grade(db: Session, teacher: Teacher, grade_id: int, value: int) -> Grade:
    grade = scoping.get_grade_for_teacher(db, teacher, grade_id)
    validate_grade_value(value)
    # date_assigned keeps the original assignment time
    grade.value = value
    db.commit()
    db.refresh(grade)
    logger.info("Grade %d updated by teacher %d", grade.id, teacher.id)
    return grade


def delete_grade(db: Session, teacher: Teacher, grade_id: int) -> None:
    grade = scoping.get_grade_for_teacher(db, teacher, grade_id)
    db.delete(grade)
    db.commit()
    logger.info("Grade %d deleted by teacher %d", grade_id, teacher.id)


def get_grade_for_principal(db: Session, principal: Principal, grade_id: int) -> Grade:
    if principal.is_teacher:
        return scoping.get_grade_for_teacher(db, scoping.teacher_profile(db, principal), grade_id)

    student = scoping.student_profile(db, principal)
    grade = scoping.own_grades(db, student).filter(Grade.id == grade_id).first()
    if grade is None:
        raise NotFoundOrForbidden("Grade not found.")
    return grade


def list_class_grades(db: Session, teacher: Teacher, class_id: int) -> list[Grade]:
    scoping.get_owned_class(db, teacher, class_id)
    return (
        scoping.owned_grades(db, teacher)
        .filter(Grade.class_id == class_id)
        .order_by(Grade.date_assigned.desc(), Grade.id.desc())
        .all()
    )


def list_student_class_grades(db: Session, student: Student, class_id: int) -> list[Grade]:
    if not scoping.is_enrolled(db, student.id, class_id):
        raise Forbidden("You are not enrolled in this class.")
    return (
        scoping.own_grades(db, student)
        .filter(Grade.class_id == class_id)
        .order_by(Grade.date_assigned.desc(), Grade.id.desc())
        .all()
    )


def list_my_grades(db: Session, student: Student) -> list[Grade]:
    return scoping.own_grades(db, student).order_by(Grade.date_assigned.desc(), Grade.id.desc()).all()
