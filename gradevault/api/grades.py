"""Grade endpoints: teacher grade management, student views and bulk CSV upload."""

import asyncio

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.orm import Session

from gradevault.api.params import ClassIdPath, GradeIdPath
from gradevault.db.session import get_db
from gradevault.dependencies.auth import get_current_student, get_current_teacher, require_member
from gradevault.models.student import Student
from gradevault.models.teacher import Teacher
from gradevault.schemas.common import ERROR_RESPONSES, MAX_ID
from gradevault.schemas.grade import BulkUploadResult, GradeCreate, GradeRead, GradeUpdate
from gradevault.schemas.school_class import ClassRead
from gradevault.services import bulk_import
from gradevault.services import classes as class_service
from gradevault.services import enrollments as enrollment_service
from gradevault.services import grades as grade_service
from gradevault.services import scoping
from gradevault.services.scoping import Principal

router = APIRouter(prefix="/api/grades", tags=["grades"], responses=ERROR_RESPONSES)


@router.get("/my-grades", response_model=list[GradeRead])
def list_my_grades(db: Session = Depends(get_db), student: Student = Depends(get_current_student)):
    return [grade_service.to_grade_read(grade) for grade in grade_service.list_my_grades(db, student)]


@router.get("/my-classes", response_model=list[ClassRead])
def list_my_classes(db: Session = Depends(get_db), student: Student = Depends(get_current_student)):
    classes = enrollment_service.list_student_classes(db, student)
    return [class_service.to_class_read(db, school_class) for school_class in classes]


@router.get("/class/{class_id}", response_model=list[GradeRead])
def list_class_grades(class_id: ClassIdPath, db: Session = Depends(get_db), principal: Principal = Depends(require_member)):
    if principal.is_teacher:
        grades = grade_service.list_class_grades(db, scoping.teacher_profile(db, principal), class_id)
    else:
        grades = grade_service.list_student_class_grades(db, scoping.student_profile(db, principal), class_id)
    return [grade_service.to_grade_read(grade) for grade in grades]


@router.post("/bulk-upload", response_model=BulkUploadResult)
async def bulk_upload_grades(
    file: UploadFile = File(...),
    class_id: int = Form(..., alias="classId", ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    content = await file.read()
    # pandas parsing and the synchronous session stay off the event loop
    imported = await asyncio.to_thread(bulk_import.import_grades, db, teacher, class_id, content)
    return BulkUploadResult(imported_count=imported)


@router.post("", response_model=GradeRead, status_code=status.HTTP_201_CREATED)
def create_grade(grade_in: GradeCreate, db: Session = Depends(get_db), teacher: Teacher = Depends(get_current_teacher)):
    grade = grade_service.create_grade(db, teacher, grade_in)
    return grade_service.to_grade_read(grade)


@router.get("/{grade_id}", response_model=GradeRead)
def get_grade(grade_id: GradeIdPath, db: Session = Depends(get_db), principal: Principal = Depends(require_member)):
    return grade_service.to_grade_read(grade_service.get_grade_for_principal(db, principal, grade_id))


@router.put("/{grade_id}", response_model=GradeRead)
def update_grade(
    grade_id: GradeIdPath,
    grade_in: GradeUpdate,
    db: Session = Depends(get_db),
    teacher: Teacher = Depends(get_current_teacher),
):
    grade = grade_service.update_grade(db, teacher, grade_id, grade_in.value)
    return grade_service.to_grade_read(grade)


@router.delete("/{grade_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_grade(grade_id: GradeIdPath, db: Session = Depends(get_db), teacher: Teacher = Depends(get_current_teacher)):
    grade_service.delete_grade(db, teacher, grade_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
