"""Class ownership workflow: create, update, delete and list a teacher's classes."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from gradevault.core.errors import NotFoundOrForbidden
from gradevault.core.logging import get_logger
from gradevault.models.enrollment import Enrollment
from gradevault.models.school_class import SchoolClass
from gradevault.models.teacher import Teacher
from gradevault.schemas.school_class import ClassCreate, ClassRead, ClassUpdate
from gradevault.services import scoping
from gradevault.services.scoping import Principal

logger = get_logger("classes")


def student_count(db: Session, class_id: int) -> int:
    return db.query(func.count(Enrollment.student_id)).filter(Enrollment.class_id == class_id).scalar() or 0


def to_class_read(db: Session, school_class: SchoolClass) -> ClassRead:
    teacher = school_class.teacher
    return ClassRead(
        id=school_class.id,
        name=school_class.name,
        description=school_class.description,
        room_number=school_class.room_number,
        teacher_name=teacher.full_name if teacher else None,
        student_count=student_count(db, school_class.id),
    )


def list_owned_classes(db: Session, teacher: Teacher) -> list[SchoolClass]:
    classes = scoping.owned_classes(db, teacher).order_by(SchoolClass.name, SchoolClass.id).all()
    logger.info("Retrieved %d classes for teacher %d", len(classes), teacher.id)
    return classes


def create_class(db: Session, teacher: Teacher, class_in: ClassCreate) -> SchoolClass:
    school_class = SchoolClass(
        name=class_in.name,
        description=class_in.description,
        room_number=class_in.room_number,
        teacher_id=teacher.id,
    )
    db.add(school_class)
    db.commit()
    db.refresh(school_class)
    logger.info("Class %r (%d) created by teacher %d", school_class.name, school_class.id, teacher.id)
    return school_class


def update_class(db: Session, teacher: Teacher, class_id: int, class_in: ClassUpdate) -> SchoolClass:
    school_class = scoping.get_owned_class(db, teacher, class_id)
    school_class.name = class_in.name
    school_class.description = class_in.description
    school_class.room_number = class_in.room_number
    db.commit()
    db.refresh(school_class)
    return school_class


def delete_class(db: Session, teacher: Teacher, class_id: int) -> None:
    """Delete an owned class together with its enrollments and grades.

    The relationship cascades on ``SchoolClass`` emit the dependent deletes in
    the same flush as the class row, so the three deletes commit or roll back
    together.
    """
    school_class = scoping.get_owned_class(db, teacher, class_id)
    try:
        db.delete(school_class)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Class %d deleted by teacher %d", class_id, teacher.id)


def get_class_for_principal(db: Session, principal: Principal, class_id: int) -> SchoolClass:
    if principal.is_teacher:
        return scoping.get_owned_class(db, scoping.teacher_profile(db, principal), class_id)

    student = scoping.student_profile(db, principal)
    school_class = scoping.enrolled_classes(db, student).filter(SchoolClass.id == class_id).first()
    if school_class is None:
        raise NotFoundOrForbidden("Class not found or you don't have permission to access it.")
    return school_class
