"""
Orchestration helpers shared by the routers.

A route resolves its target (404 when missing), asks the guard, delegates
to the hierarchy or the enrollment ledger and finally commits through
`commit_db`, which turns persistence failures into a 500 after rolling the
whole unit of work back.
"""

import logging
from typing import Any, Optional

from sqlalchemy import exc
from sqlalchemy.orm import Session

from lms_backend.api.exceptions import BadRequestException, InternalServerException, NotFoundException
from lms_backend.interface.base import ApiResponse
from lms_backend.model.auth import User
from lms_backend.model.course import Course

logger = logging.getLogger(__name__)


def get_course_db(db: Session, course_id: str) -> Course:
    course = db.query(Course).filter(Course.id == str(course_id)).first()
    if course is None:
        raise NotFoundException(detail="Course not found")
    return course


def get_user_db(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == str(user_id)).first()
    if user is None:
        raise NotFoundException(detail="User not found")
    return user


def integrity_message(error_msg: str) -> str:
    """User facing text for a constraint violation, never the raw database error"""
    lowered = error_msg.lower()

    if 'not null' in lowered or 'not-null' in lowered:
        return "A required field is missing"
    if 'unique' in lowered or 'duplicate key' in lowered:
        return "A record with these values already exists"
    if 'check constraint' in lowered or 'checkviolation' in lowered:
        return "A value is outside its allowed range"
    if 'foreign key' in lowered:
        return "The request references a record that does not exist"

    return "The request violates data integrity constraints"


def commit_db(db: Session, *refresh: Any) -> None:
    """Commit the unit of work, rolling everything back on failure"""
    try:
        db.commit()
    except exc.IntegrityError as e:
        db.rollback()
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        logger.warning(f"Integrity error on commit: {error_msg}")
        raise BadRequestException(detail=integrity_message(error_msg))
    except exc.SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Commit failed: {e}")
        raise InternalServerException(detail="Database write failed")

    for entity in refresh:
        db.refresh(entity)


def respond(data: Any = None, message: Optional[str] = None, count: Optional[int] = None) -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data, count=count)
