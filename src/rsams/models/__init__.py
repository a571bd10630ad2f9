"""ORM models registered with Base.metadata."""

from .account import AccountModel
from .student_profile import StudentProfileModel
from .teacher_profile import TeacherProfileModel

__all__ = ["AccountModel", "StudentProfileModel", "TeacherProfileModel"]
