import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lms_backend.api.crud import commit_db, get_course_db, respond
from lms_backend.database import get_db
from lms_backend.interface.base import ApiResponse
from lms_backend.interface.lessons import LessonCreate, LessonGet, LessonUpdate
from lms_backend.permissions.auth import get_current_principal
from lms_backend.permissions.core import Action, ResourceRef, require
from lms_backend.permissions.principal import Principal
from lms_backend.services.hierarchy import CourseHierarchy
from lms_backend.services.storage_service import StorageService, get_storage_service

logger = logging.getLogger(__name__)

lesson_router = APIRouter(prefix="/courses/{course_id}/lessons", tags=["lessons"])


@lesson_router.get("", response_model=ApiResponse[List[LessonGet]])
def list_lessons(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    db: Session = Depends(get_db)
):
    """Lessons of a course in ascending order"""
    course = get_course_db(db, course_id)
    require(permissions, Action.READ, ResourceRef.lesson_of(course))

    lessons = [LessonGet.model_validate(lesson) for lesson in course.lessons]
    return respond(data=lessons, count=len(lessons))


@lesson_router.get("/{lesson_id}", response_model=ApiResponse[LessonGet])
def get_lesson(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    lesson_id: str,
    db: Session = Depends(get_db)
):
    course = get_course_db(db, course_id)
    lesson = CourseHierarchy(db).get_lesson(course, lesson_id)
    require(permissions, Action.READ, ResourceRef.lesson_of(course))

    return respond(data=LessonGet.model_validate(lesson))


@lesson_router.post("", response_model=ApiResponse[LessonGet], status_code=status.HTTP_201_CREATED)
def create_lesson(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    entity: LessonCreate,
    db: Session = Depends(get_db)
):
    course = get_course_db(db, course_id)
    require(permissions, Action.CREATE, ResourceRef.lesson_of(course))

    lesson = CourseHierarchy(db).append_lesson(course, entity)
    commit_db(db, lesson)

    return respond(data=LessonGet.model_validate(lesson), message="Lesson added successfully")


@lesson_router.put("/{lesson_id}", response_model=ApiResponse[LessonGet])
def update_lesson(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    lesson_id: str,
    entity: LessonUpdate,
    db: Session = Depends(get_db)
):
    course = get_course_db(db, course_id)
    hierarchy = CourseHierarchy(db)
    hierarchy.get_lesson(course, lesson_id)
    require(permissions, Action.UPDATE, ResourceRef.lesson_of(course))

    lesson = hierarchy.update_lesson(course, lesson_id, entity)
    commit_db(db, lesson)

    return respond(data=LessonGet.model_validate(lesson), message="Lesson updated successfully")


@lesson_router.delete("/{lesson_id}", response_model=ApiResponse[None])
async def delete_lesson(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    lesson_id: str,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
):
    course = get_course_db(db, course_id)
    hierarchy = CourseHierarchy(db, storage)
    hierarchy.get_lesson(course, lesson_id)
    require(permissions, Action.DELETE, ResourceRef.lesson_of(course))

    await hierarchy.remove_lesson(course, lesson_id)
    commit_db(db)

    return respond(message="Lesson deleted successfully")
