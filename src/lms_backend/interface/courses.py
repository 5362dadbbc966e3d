from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session
from lms_backend.interface.base import BaseEntityGet, reject_null
from lms_backend.interface.materials import MaterialGet
from lms_backend.model.course import Course

class CourseStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"

class CourseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    duration: int = Field(..., ge=1, description="Duration in weeks")
    status: CourseStatus = CourseStatus.ACTIVE

class CourseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    duration: Optional[int] = Field(None, ge=1)
    status: Optional[CourseStatus] = None

    @field_validator('name', 'description', 'duration', 'status')
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)

class CourseList(BaseModel):
    id: str
    name: str
    description: str
    instructor: str
    instructor_id: Optional[str] = None
    duration: int
    enrolled_students: int
    status: CourseStatus
    lesson_count: int
    total_lesson_duration: int

    model_config = ConfigDict(from_attributes=True)

class CourseGet(BaseEntityGet, CourseList):
    materials: List[MaterialGet] = []

    model_config = ConfigDict(from_attributes=True)

class CourseQuery(BaseModel):
    status: Optional[CourseStatus] = None
    instructor_id: Optional[str] = None

def course_search(db: Session, query, params: Optional[CourseQuery]):
    if params is None:
        return query
    if params.status != None:
        query = query.filter(Course.status == params.status.value)
    if params.instructor_id != None:
        query = query.filter(Course.instructor_id == params.instructor_id)
    return query
