from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict
from lms_backend.interface.courses import CourseList

class EnrollmentStatus(str, Enum):
    ENROLLED = "enrolled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DROPPED = "dropped"

class ProgressUpdate(BaseModel):
    # Range is enforced by the enrollment ledger
    progress: Optional[int] = None
    status: Optional[EnrollmentStatus] = None

class EnrollmentGet(BaseModel):
    id: str
    user_id: str
    course_id: str
    enrolled_at: Optional[datetime] = None
    progress: int
    status: EnrollmentStatus
    course: Optional[CourseList] = None

    model_config = ConfigDict(from_attributes=True)
