from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lms_backend.api.crud import commit_db, get_course_db, get_user_db, respond
from lms_backend.database import get_db
from lms_backend.interface.base import ApiResponse
from lms_backend.interface.enrollments import EnrollmentGet, ProgressUpdate
from lms_backend.permissions.auth import get_current_principal
from lms_backend.permissions.core import Action, ResourceRef, require
from lms_backend.permissions.principal import Principal
from lms_backend.services.enrollment import EnrollmentLedger

enrollment_router = APIRouter(prefix="/users/{user_id}", tags=["enrollments"])


@enrollment_router.post("/enroll/{course_id}", response_model=ApiResponse[EnrollmentGet], status_code=status.HTTP_201_CREATED)
def enroll(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    user_id: str,
    course_id: str,
    db: Session = Depends(get_db)
):
    user = get_user_db(db, user_id)
    course = get_course_db(db, course_id)
    require(permissions, Action.UPDATE, ResourceRef.account(user.id))

    enrollment = EnrollmentLedger(db).enroll(user, course)
    commit_db(db, enrollment)

    return respond(data=EnrollmentGet.model_validate(enrollment), message="Successfully enrolled in course")


@enrollment_router.delete("/enroll/{course_id}", response_model=ApiResponse[None])
def unenroll(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    user_id: str,
    course_id: str,
    db: Session = Depends(get_db)
):
    user = get_user_db(db, user_id)
    course = get_course_db(db, course_id)
    require(permissions, Action.UPDATE, ResourceRef.account(user.id))

    EnrollmentLedger(db).unenroll(user, course)
    commit_db(db)

    return respond(message="Successfully unenrolled from course")


@enrollment_router.get("/courses", response_model=ApiResponse[List[EnrollmentGet]])
def list_enrollments(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    user_id: str,
    db: Session = Depends(get_db)
):
    user = get_user_db(db, user_id)
    require(permissions, Action.READ, ResourceRef.account(user.id))

    enrollments = [EnrollmentGet.model_validate(e) for e in EnrollmentLedger(db).enrollments_for(user)]
    return respond(data=enrollments, count=len(enrollments))


@enrollment_router.put("/courses/{course_id}/progress", response_model=ApiResponse[EnrollmentGet])
def update_progress(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    user_id: str,
    course_id: str,
    entity: ProgressUpdate,
    db: Session = Depends(get_db)
):
    user = get_user_db(db, user_id)
    course = get_course_db(db, course_id)
    require(permissions, Action.UPDATE, ResourceRef.account(user.id))

    enrollment = EnrollmentLedger(db).update_progress(user, course, progress=entity.progress, status=entity.status)
    commit_db(db, enrollment)

    return respond(data=EnrollmentGet.model_validate(enrollment), message="Progress updated successfully")
