from gradevault.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all
from gradevault.models.user import User  # noqa: F401
from gradevault.models.teacher import Teacher  # noqa: F401
from gradevault.models.student import Student  # noqa: F401
from gradevault.models.school_class import SchoolClass  # noqa: F401
from gradevault.models.enrollment import Enrollment  # noqa: F401
from gradevault.models.grade import Grade  # noqa: F401
