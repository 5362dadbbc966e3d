from datetime import datetime
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, Field

DataT = TypeVar("DataT")

class ListQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

class ApiResponse(BaseModel, Generic[DataT]):
    """Uniform response envelope of every endpoint"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None
    error: Optional[str] = None
    count: Optional[int] = None

class BaseEntityGet(BaseModel):
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Update timestamp")

def reject_null(value):
    """Partial updates may omit a required field but not set it to null"""
    if value is None:
        raise ValueError("Field may not be null")
    return value
