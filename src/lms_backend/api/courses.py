import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lms_backend.api.crud import commit_db, get_course_db, get_user_db, respond
from lms_backend.database import get_db
from lms_backend.interface.base import ApiResponse
from lms_backend.interface.courses import CourseCreate, CourseGet, CourseList, CourseQuery, CourseUpdate, course_search
from lms_backend.model.course import Course
from lms_backend.permissions.auth import get_current_principal
from lms_backend.permissions.core import Action, ResourceKind, ResourceRef, require
from lms_backend.permissions.principal import Principal
from lms_backend.services.hierarchy import CourseHierarchy
from lms_backend.services.storage_service import StorageService, get_storage_service

logger = logging.getLogger(__name__)

course_router = APIRouter(prefix="/courses", tags=["courses"])


@course_router.get("", response_model=ApiResponse[List[CourseList]])
def list_courses(
    params: CourseQuery = Depends(),
    db: Session = Depends(get_db)
):
    """Public course catalogue, newest first"""
    query = course_search(db, db.query(Course), params)
    courses = query.order_by(Course.created_at.desc()).all()

    return respond(
        data=[CourseList.model_validate(course) for course in courses],
        count=len(courses)
    )


@course_router.get("/{course_id}", response_model=ApiResponse[CourseGet])
def get_course(course_id: str, db: Session = Depends(get_db)):
    course = get_course_db(db, course_id)
    return respond(data=CourseGet.model_validate(course))


@course_router.post("", response_model=ApiResponse[CourseGet], status_code=status.HTTP_201_CREATED)
def create_course(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    entity: CourseCreate,
    db: Session = Depends(get_db)
):
    require(permissions, Action.CREATE, ResourceRef(kind=ResourceKind.COURSE))

    instructor = get_user_db(db, permissions.get_user_id_or_throw())

    course = Course(
        **entity.model_dump(mode="json"),
        instructor=instructor.full_name,
        instructor_id=instructor.id,
        enrolled_students=0
    )
    db.add(course)
    commit_db(db, course)

    logger.info(f"Course {course.id} created by {instructor.id}")
    return respond(data=CourseGet.model_validate(course), message="Course created successfully")


@course_router.put("/{course_id}", response_model=ApiResponse[CourseGet])
def update_course(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    entity: CourseUpdate,
    db: Session = Depends(get_db)
):
    course = get_course_db(db, course_id)
    require(permissions, Action.UPDATE, ResourceRef.course_of(course))

    for key, value in entity.model_dump(mode="json", exclude_unset=True).items():
        setattr(course, key, value)

    commit_db(db, course)
    return respond(data=CourseGet.model_validate(course), message="Course updated successfully")


@course_router.delete("/{course_id}", response_model=ApiResponse[CourseList])
async def delete_course(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
):
    course = get_course_db(db, course_id)
    require(permissions, Action.DELETE, ResourceRef.course_of(course))

    deleted = CourseList.model_validate(course)

    await CourseHierarchy(db, storage).remove_course(course)
    commit_db(db)

    return respond(data=deleted, message="Course deleted successfully")
