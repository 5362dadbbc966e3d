from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session
from lms_backend.interface.base import BaseEntityGet, ListQuery, reject_null
from lms_backend.model.auth import User
from lms_backend.settings import settings

EMAIL_PATTERN = r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,})+$"

class UserRole(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"

def _check_password(value: str) -> str:
    if value is None or len(value) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")
    return value

class UserRegister(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str
    role: UserRole = UserRole.STUDENT

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('password')
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password(value)

    @field_validator('role')
    @classmethod
    def no_self_service_admin(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")
        return value

class UserLogin(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    bio: Optional[str] = Field(None, max_length=500)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    # Present only to reject it, see the change-password endpoint
    password: Optional[str] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return reject_null(value).strip().lower()

    @field_validator('first_name', 'last_name', 'role', 'is_active')
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)

class UserPasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator('new_password')
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password(value)

class UserGet(BaseEntityGet):
    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    role: UserRole
    bio: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    enrolled_courses_count: int = 0
    completed_courses_count: int = 0

    model_config = ConfigDict(from_attributes=True)

class UserQuery(ListQuery):
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    search: Optional[str] = None

def user_search(db: Session, query, params: Optional[UserQuery]):
    if params is None:
        return query
    if params.role != None:
        query = query.filter(User.role == params.role.value)
    if params.is_active != None:
        query = query.filter(User.is_active == params.is_active)
    if params.search:
        pattern = f"%{params.search}%"
        query = query.filter(or_(
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
            User.email.ilike(pattern)
        ))
    return query
