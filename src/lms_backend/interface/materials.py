from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

class MaterialInfo(BaseModel):
    """Descriptor of a file already placed in the blob store"""
    name: str
    file_name: str
    locator: str
    file_size: int
    mime_type: str

class MaterialGet(BaseModel):
    id: str
    course_id: str
    lesson_id: Optional[str] = None
    name: str
    file_name: str
    file_size: int
    mime_type: str
    uploaded_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
