"""Request dependencies: settings, mailer, the authenticated principal and role-scoped profiles."""

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from gradevault.core.security import decode_access_token
from gradevault.core.settings import Settings
from gradevault.db.session import get_db
from gradevault.models.student import Student
from gradevault.models.teacher import Teacher
from gradevault.models.user import ROLE_STUDENT, ROLE_TEACHER, User
from gradevault.services import scoping
from gradevault.services.mailer import EmailService
from gradevault.services.scoping import Principal


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_principal(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(default=None),
) -> Principal:
    # Expect Authorization: Bearer <token>
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthenticated()
    token = authorization.split(" ", 1)[1]
    try:
        payload = decode_access_token(settings, token)
    except ValueError:
        raise _unauthenticated()

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthenticated()

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise _unauthenticated()
    return Principal(user_id=user.id, email=user.email, role=user.role)


def require_role(*roles: str):
    """Build a dependency that admits only principals holding one of ``roles``."""

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role for this action")
        return principal

    return dependency


require_teacher = require_role(ROLE_TEACHER)
require_student = require_role(ROLE_STUDENT)
require_member = require_role(ROLE_TEACHER, ROLE_STUDENT)


def get_current_teacher(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_teacher),
) -> Teacher:
    return scoping.teacher_profile(db, principal)


def get_current_student(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_student),
) -> Student:
    return scoping.student_profile(db, principal)
