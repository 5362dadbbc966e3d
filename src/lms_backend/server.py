import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lms_backend.api.courses import course_router
from lms_backend.api.enrollments import enrollment_router
from lms_backend.api.lessons import lesson_router
from lms_backend.api.materials import material_router
from lms_backend.api.users import user_router
from lms_backend.database import get_db, get_engine
from lms_backend.model.base import Base
from lms_backend.services.accounts import create_admin_user
from lms_backend.settings import settings

logger = logging.getLogger(__name__)


async def init_admin_user():

    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin bootstrap")
        return

    with next(get_db()) as db:
        create_admin_user(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)


async def startup_logic():

    Base.metadata.create_all(bind=get_engine())
    await init_admin_user()


@asynccontextmanager
async def lifespan(app: FastAPI):

    if settings.DEBUG_MODE == "production":
        await startup_logic()

    yield

app = FastAPI(title="LMS Backend", lifespan=lifespan)

origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation error", "error": jsonable_encoder(exc.errors())}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"}
    )


app.include_router(course_router)
app.include_router(lesson_router)
app.include_router(material_router)
app.include_router(user_router)
app.include_router(enrollment_router)


@app.get("/health", tags=["system"])
def health():
    return {"success": True, "message": "LMS backend is running"}
