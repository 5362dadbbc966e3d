from .base import ApiResponse, ListQuery
from .courses import CourseCreate, CourseGet, CourseList, CourseQuery, CourseUpdate
from .lessons import LessonCreate, LessonGet, LessonUpdate
from .materials import MaterialGet, MaterialInfo
from .enrollments import EnrollmentGet, EnrollmentStatus, ProgressUpdate
from .users import UserGet, UserRegister, UserRole, UserUpdate
