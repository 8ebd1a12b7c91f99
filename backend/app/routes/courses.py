"""
Course Catalog API Routes
Published-course listing and detail, categories, and enrollment requests.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from starlette.concurrency import run_in_threadpool
from sqlmodel import Session

from app.database import get_session, preflight_check
from app.services.course_catalog import (
    CourseFilters,
    CoursePage,
    CourseSort,
    get_published_course,
    list_categories,
    list_published_courses,
    resolve_sort,
)
from app.services.enrollment_service import submit_enrollment
from app.services.outcome_classifier import failure_response
from app.utils.envelope import CamelModel, Pagination, success_response
from app.utils.failures import ConnectionRefused, ValidationFailure
from app.utils.pagination import PageRequest, build_pagination, is_truthy_flag, resolve_page_request
from app.utils.validation import is_blank

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class InstructorSummary(CamelModel):
    id: str
    first_name: str
    last_name: str
    profile_picture: Optional[str] = None
    rating: float
    experience: int
    specialization: Optional[str] = None


class ProviderSummary(CamelModel):
    id: str
    company_name: str
    logo: Optional[str] = None
    rating: float
    verified: bool


class CategorySummary(CamelModel):
    id: int
    name: str
    slug: str
    icon: Optional[str] = None
    color: Optional[str] = None


class AdminSummary(CamelModel):
    id: str
    first_name: str
    last_name: str


class CourseResponse(CamelModel):
    id: int
    title: str
    slug: str
    description: str
    short_description: Optional[str] = None
    course_image: Optional[str] = None
    course_fee: float
    rating: float
    total_ratings: int
    level: str
    duration: Optional[int] = None
    course_type: str
    language: str
    city: Optional[str] = None
    country: Optional[str] = None
    max_students: Optional[int] = None
    current_students: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    enrollment_deadline: Optional[datetime] = None
    status: str
    payment_link: Optional[str] = None
    learning_outcomes: Optional[List[str]] = None
    prerequisites: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime
    instructor: Optional[InstructorSummary] = None
    course_provider: Optional[ProviderSummary] = None
    category: Optional[CategorySummary] = None
    enrolled_students_count: int = 0


class CourseDetailResponse(CourseResponse):
    created_by: Optional[AdminSummary] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    course_count: int = 0


class EnrollmentRequest(CamelModel):
    clerk_id: Optional[str] = None


class EnrollmentCourse(CamelModel):
    id: int
    title: str
    slug: str
    course_image: Optional[str] = None
    payment_link: Optional[str] = None


class EnrollmentResponse(CamelModel):
    id: int
    name: str
    email: str
    phone_number: str
    college: Optional[str] = None
    semester: Optional[str] = None
    university: Optional[str] = None
    course_id: int
    status: str
    notes: Optional[str] = None
    created_at: datetime
    course: EnrollmentCourse


# ============================================================================
# Course Endpoints
# ============================================================================


def _load_course_page(
    session: Session,
    filters: CourseFilters,
    sort: CourseSort,
    page_request: PageRequest,
) -> Tuple[List[CourseResponse], Optional[Pagination]]:
    page: CoursePage = list_published_courses(session, filters, sort, page_request)
    courses = []
    for course in page.courses:
        item = CourseResponse.model_validate(course)
        item.enrolled_students_count = page.enrolled_counts.get(course.id, 0)
        courses.append(item)
    return courses, build_pagination(page_request, page.total)


@router.get("/courses")
async def list_courses(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    level: Optional[str] = Query(None),
    course_type: Optional[str] = Query(None, alias="courseType"),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    fetch_all: Optional[str] = Query(None, alias="all"),
    session: Session = Depends(get_session),
):
    """
    List published courses.

    Query params (all optional, all strings):
    - page / limit: clamped to page >= 1 and 1 <= limit <= 50
    - all=true: return every match, no pagination block
    - level, courseType, category (slug), search
    - sortBy: rating | price | students | createdAt (default)
    - sortOrder: asc | desc (default)

    A bounded liveness check runs first on a connection of its own; if the
    database does not answer, the request ends with 503 before the listing
    query is attempted.
    """
    if not await preflight_check(session.get_bind()):
        return failure_response(ConnectionRefused("Database pre-flight check failed"), action="fetch courses")

    page_request = resolve_page_request(page, limit, fetch_all=is_truthy_flag(fetch_all))
    filters = CourseFilters(level=level, course_type=course_type, category=category, search=search)
    sort = resolve_sort(sort_by, sort_order)

    try:
        courses, pagination = await run_in_threadpool(_load_course_page, session, filters, sort, page_request)
    except Exception as e:
        session.rollback()
        return failure_response(e, action="fetch courses")

    return success_response(courses, "Courses retrieved successfully", pagination=pagination)


@router.get("/courses/categories")
def get_categories(session: Session = Depends(get_session)):
    """All categories ordered by name, with their number of published courses"""
    try:
        categories = []
        for category, course_count in list_categories(session):
            item = CategoryResponse.model_validate(category)
            item.course_count = course_count
            categories.append(item)
    except Exception as e:
        session.rollback()
        return failure_response(e, action="fetch categories")

    return success_response(categories, "Categories retrieved successfully")


@router.get("/courses/{slug}")
def get_course(slug: str, session: Session = Depends(get_session)):
    """Get a published course by slug"""
    try:
        if is_blank(slug):
            raise ValidationFailure("Course slug is required", field="slug")
        course, enrolled_count = get_published_course(session, slug.strip())
        payload = CourseDetailResponse.model_validate(course)
        payload.enrolled_students_count = enrolled_count
    except Exception as e:
        session.rollback()
        return failure_response(e, action="fetch course")

    return success_response(payload, "Course retrieved successfully")


@router.post("/courses/{course_id}/enroll")
def enroll_in_course(
    course_id: str,
    request: Optional[EnrollmentRequest] = None,
    session: Session = Depends(get_session),
):
    """
    Submit an enrollment request for the user identified by clerkId.

    The enrollment is created PENDING from the user's stored profile; the
    response carries the course payment link.
    """
    try:
        if is_blank(course_id) or not course_id.strip().isdigit():
            raise ValidationFailure("Course ID is required and must be numeric", field="courseId")
        if request is None or is_blank(request.clerk_id):
            raise ValidationFailure("clerkId missing from request body", field="clerkId")

        enrollment, _course = submit_enrollment(session, int(course_id.strip()), request.clerk_id.strip())
        payload = EnrollmentResponse.model_validate(enrollment)
    except Exception as e:
        session.rollback()
        return failure_response(e, action="submit enrollment")

    return success_response(payload, "Enrollment request submitted successfully", status_code=201)
