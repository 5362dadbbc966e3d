"""
Material endpoints for courses and lessons.

Uploads are validated, written to the blob store and only then attached to
the hierarchy. When the database write fails afterwards the freshly stored
blob is removed again.
"""

import logging
from typing import Annotated, List, Optional, Union

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from lms_backend.api.crud import commit_db, get_course_db, respond
from lms_backend.api.exceptions import ServiceUnavailableException
from lms_backend.database import get_db
from lms_backend.interface.base import ApiResponse
from lms_backend.interface.materials import MaterialGet, MaterialInfo
from lms_backend.model.course import Course, Lesson
from lms_backend.permissions.auth import get_current_principal
from lms_backend.permissions.core import Action, ResourceRef, require
from lms_backend.permissions.principal import Principal
from lms_backend.services.hierarchy import CourseHierarchy
from lms_backend.services.storage_service import StorageService, get_storage_service
from lms_backend.storage_security import perform_full_file_validation, sanitize_filename

logger = logging.getLogger(__name__)

material_router = APIRouter(prefix="/courses/{course_id}", tags=["materials"])


async def _upload(
    target: Union[Course, Lesson],
    course: Course,
    file: UploadFile,
    name: Optional[str],
    db: Session,
    storage: StorageService
):
    data = await file.read()
    perform_full_file_validation(file.filename, file.content_type, data)

    filename = sanitize_filename(file.filename)
    metadata = {
        "course_id": str(course.id),
        "lesson_id": str(target.id) if isinstance(target, Lesson) else None,
        "filename": filename,
        "content_type": file.content_type,
    }
    locator = await storage.store(data, metadata)

    info = MaterialInfo(
        name=name or file.filename or filename,
        file_name=filename,
        locator=locator,
        file_size=len(data),
        mime_type=file.content_type
    )

    try:
        material = CourseHierarchy(db, storage).attach_material(target, info)
        commit_db(db, material)
    except Exception:
        db.rollback()
        try:
            await storage.delete(locator)
        except ServiceUnavailableException as e:
            logger.warning(f"Could not remove orphaned blob {locator}: {e.detail}")
        raise

    return material


async def _download(material, storage: StorageService) -> RedirectResponse:
    url = await storage.url_for(material.locator)
    return RedirectResponse(url=url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


# Course materials

@material_router.get("/materials", response_model=ApiResponse[List[MaterialGet]])
def list_course_materials(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    db: Session = Depends(get_db)
):
    course = get_course_db(db, course_id)
    require(permissions, Action.READ, ResourceRef.material_of(course))

    materials = [MaterialGet.model_validate(m) for m in course.materials]
    return respond(data=materials, count=len(materials))


@material_router.post("/materials", response_model=ApiResponse[MaterialGet], status_code=status.HTTP_201_CREATED)
async def upload_course_material(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
):
    course = get_course_db(db, course_id)
    require(permissions, Action.CREATE, ResourceRef.material_of(course))

    material = await _upload(course, course, file, name, db, storage)
    return respond(data=MaterialGet.model_validate(material), message="Material uploaded successfully")


@material_router.get("/materials/{material_id}/download")
async def download_course_material(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    material_id: str,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
):
    course = get_course_db(db, course_id)
    material = CourseHierarchy(db).get_material(course, material_id)
    require(permissions, Action.READ, ResourceRef.material_of(course))

    return await _download(material, storage)


@material_router.delete("/materials/{material_id}", response_model=ApiResponse[None])
async def delete_course_material(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    material_id: str,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
):
    course = get_course_db(db, course_id)
    hierarchy = CourseHierarchy(db, storage)
    hierarchy.get_material(course, material_id)
    require(permissions, Action.DELETE, ResourceRef.material_of(course))

    await hierarchy.remove_material(course, material_id)
    commit_db(db)

    return respond(message="Material deleted successfully")


# Lesson materials

@material_router.get("/lessons/{lesson_id}/materials", response_model=ApiResponse[List[MaterialGet]])
def list_lesson_materials(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    lesson_id: str,
    db: Session = Depends(get_db)
):
    course = get_course_db(db, course_id)
    lesson = CourseHierarchy(db).get_lesson(course, lesson_id)
    require(permissions, Action.READ, ResourceRef.material_of(course))

    materials = [MaterialGet.model_validate(m) for m in lesson.materials]
    return respond(data=materials, count=len(materials))


@material_router.post("/lessons/{lesson_id}/materials", response_model=ApiResponse[MaterialGet], status_code=status.HTTP_201_CREATED)
async def upload_lesson_material(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    lesson_id: str,
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
):
    course = get_course_db(db, course_id)
    lesson = CourseHierarchy(db).get_lesson(course, lesson_id)
    require(permissions, Action.CREATE, ResourceRef.material_of(course))

    material = await _upload(lesson, course, file, name, db, storage)
    return respond(data=MaterialGet.model_validate(material), message="Material uploaded successfully")


@material_router.get("/lessons/{lesson_id}/materials/{material_id}/download")
async def download_lesson_material(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    lesson_id: str,
    material_id: str,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
):
    course = get_course_db(db, course_id)
    hierarchy = CourseHierarchy(db)
    lesson = hierarchy.get_lesson(course, lesson_id)
    material = hierarchy.get_material(lesson, material_id)
    require(permissions, Action.READ, ResourceRef.material_of(course))

    return await _download(material, storage)


@material_router.delete("/lessons/{lesson_id}/materials/{material_id}", response_model=ApiResponse[None])
async def delete_lesson_material(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    lesson_id: str,
    material_id: str,
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
):
    course = get_course_db(db, course_id)
    hierarchy = CourseHierarchy(db, storage)
    lesson = hierarchy.get_lesson(course, lesson_id)
    hierarchy.get_material(lesson, material_id)
    require(permissions, Action.DELETE, ResourceRef.material_of(course))

    await hierarchy.remove_material(lesson, material_id)
    commit_db(db)

    return respond(message="Material deleted successfully")
