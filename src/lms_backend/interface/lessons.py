from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from lms_backend.interface.base import BaseEntityGet, reject_null
from lms_backend.interface.materials import MaterialGet

class LessonCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    content: str = Field(..., min_length=1)
    duration: int = Field(..., ge=1, description="Duration in minutes")
    video_url: Optional[str] = None
    is_published: bool = False

class LessonUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    content: Optional[str] = Field(None, min_length=1)
    duration: Optional[int] = Field(None, ge=1)
    video_url: Optional[str] = None
    is_published: Optional[bool] = None

    @field_validator('title', 'description', 'content', 'duration', 'is_published')
    @classmethod
    def required_not_null(cls, value):
        return reject_null(value)

class LessonGet(BaseEntityGet):
    id: str
    course_id: str
    title: str
    description: str
    content: str
    order: int
    duration: int
    video_url: Optional[str] = None
    is_published: bool
    materials: List[MaterialGet] = []

    model_config = ConfigDict(from_attributes=True)
