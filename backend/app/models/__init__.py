from app.models.admin import Admin
from app.models.course import Course, CourseLevel, CourseStatus, CourseType
from app.models.course_category import CourseCategory
from app.models.course_enrollment import OPEN_ENROLLMENT_STATUSES, CourseEnrollment, EnrollmentStatus
from app.models.course_provider import CourseProvider, CourseProviderStatus
from app.models.course_student_link import CourseStudentLink
from app.models.instructor import Instructor
from app.models.user import User

__all__ = [
    "Admin",
    "Course",
    "CourseCategory",
    "CourseEnrollment",
    "CourseLevel",
    "CourseProvider",
    "CourseProviderStatus",
    "CourseStatus",
    "CourseStudentLink",
    "CourseType",
    "EnrollmentStatus",
    "Instructor",
    "OPEN_ENROLLMENT_STATUSES",
    "User",
]
