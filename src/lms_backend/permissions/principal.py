from typing import Optional, Set
from pydantic import BaseModel, model_validator, Field
from lms_backend.api.exceptions import UnauthorizedException


ROLE_STUDENT = "student"
ROLE_INSTRUCTOR = "instructor"
ROLE_ADMIN = "admin"

# Roles allowed to author courses, lessons and materials
AUTHOR_ROLES = (ROLE_INSTRUCTOR, ROLE_ADMIN)


class Principal(BaseModel):
    """Acting user of a request, or an anonymous caller when user_id is None"""

    is_admin: bool = False
    user_id: Optional[str] = None
    role: Optional[str] = None

    # Courses with a non-dropped enrollment, loaded fresh for every request
    enrolled_course_ids: Set[str] = Field(default_factory=set)

    @model_validator(mode='after')
    def set_is_admin_from_role(self):
        """Automatically set admin flag based on role"""
        if self.role == ROLE_ADMIN:
            self.is_admin = True
        return self

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def get_user_id_or_throw(self) -> str:
        """Get user ID or raise exception"""
        if self.user_id is None:
            raise UnauthorizedException("Authentication required")
        return self.user_id

    def has_role(self, *roles: str) -> bool:
        return self.role in roles

    def owns(self, instructor_id: Optional[str]) -> bool:
        return self.user_id is not None and instructor_id is not None and str(instructor_id) == str(self.user_id)

    def is_enrolled(self, course_id: str) -> bool:
        return str(course_id) in self.enrolled_course_ids
