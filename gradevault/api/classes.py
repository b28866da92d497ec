"""Class and enrollment endpoints for GradeVault teachers."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from gradevault.api.params import ClassIdPath, StudentIdPath
from gradevault.db.session import get_db
from gradevault.dependencies.auth import get_current_teacher, require_member
from gradevault.models.teacher import Teacher
from gradevault.schemas.common import ERROR_RESPONSES
from gradevault.schemas.school_class import ClassCreate, ClassRead, ClassUpdate
from gradevault.schemas.student import StudentRead
from gradevault.services import classes as class_service
from gradevault.services import enrollments as enrollment_service
from gradevault.services.scoping import Principal

router = APIRouter(prefix="/api/classes", tags=["classes"], responses=ERROR_RESPONSES)


@router.get("/teacher-classes", response_model=list[ClassRead])
def list_teacher_classes(db: Session = Depends(get_db), teacher: Teacher = Depends(get_current_teacher)):
    classes = class_service.list_owned_classes(db, teacher)
    return [class_service.to_class_read(db, school_class) for school_class in classes]


@router.post("", response_model=ClassRead, status_code=status.HTTP_201_CREATED)
def create_class(
    class_in: ClassCreate,
    db: Session = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    school_class = class_service.create_class(db, teacher, class_in)
    return class_service.to_class_read(db, school_class)


@router.get("/{class_id}", response_model=ClassRead)
def get_class(class_id: ClassIdPath, db: Session = Depends(get_db), principal: Principal = Depends(require_member)):
    school_class = class_service.get_class_for_principal(db, principal, class_id)
    return class_service.to_class_read(db, school_class)


@router.put("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_class(
    class_id: ClassIdPath,
    class_in: ClassUpdate,
    db: Session = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    class_service.update_class(db, teacher, class_id, class_in)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class(class_id: ClassIdPath, db: Session = Depends(get_db), teacher: Teacher = Depends(get_current_teacher)):
    class_service.delete_class(db, teacher, class_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{class_id}/students", response_model=list[StudentRead])
def list_class_students(class_id: ClassIdPath, db: Session = Depends(get_db), teacher: Teacher = Depends(get_current_teacher)):
    return enrollment_service.list_enrolled(db, teacher, class_id)


@router.get("/{class_id}/available-students", response_model=list[StudentRead])
def list_available_students(
    class_id: ClassIdPath,
    db: Session = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    return enrollment_service.list_enrollable(db, teacher, class_id)


@router.post("/{class_id}/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def add_student_to_class(
    class_id: ClassIdPath,
    student_id: StudentIdPath,
    db: Session = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    enrollment_service.enroll_student(db, teacher, class_id, student_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{class_id}/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_student_from_class(
    class_id: ClassIdPath,
    student_id: StudentIdPath,
    db: Session = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    enrollment_service.unenroll_student(db, teacher, class_id, student_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
