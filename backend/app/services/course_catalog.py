"""
Course catalog queries: published-course listing, course detail and
category listing.

Listing filters are AND-combined with each other and with the implicit
"published" condition; the free-text search is a case-insensitive OR over
title, description and short description.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import selectinload
from sqlmodel import Session, col, func, select

from app.models.course import Course, CourseStatus
from app.models.course_category import CourseCategory
from app.models.course_student_link import CourseStudentLink
from app.utils.failures import RecordNotFound
from app.utils.pagination import PageRequest
from app.utils.sql import scalar_int

DEFAULT_SORT_FIELD = "createdAt"

SORT_COLUMNS = {
    "rating": Course.rating,
    "price": Course.course_fee,
    "students": Course.current_students,
    "createdAt": Course.created_at,
}


@dataclass(frozen=True)
class CourseFilters:
    level: Optional[str] = None
    course_type: Optional[str] = None
    category: Optional[str] = None  # category slug
    search: Optional[str] = None


@dataclass(frozen=True)
class CourseSort:
    field: str = DEFAULT_SORT_FIELD
    descending: bool = True


@dataclass
class CoursePage:
    courses: List[Course]
    total: int
    enrolled_counts: Dict[int, int] = field(default_factory=dict)


def resolve_sort(sort_by: Optional[str] = None, sort_order: Optional[str] = None) -> CourseSort:
    """Unknown sort fields fall back to creation time; anything but "asc" sorts descending"""
    sort_field = sort_by if sort_by in SORT_COLUMNS else DEFAULT_SORT_FIELD
    descending = (sort_order or "desc").strip().lower() != "asc"
    return CourseSort(field=sort_field, descending=descending)


def build_course_conditions(filters: CourseFilters) -> List[Any]:
    conditions: List[Any] = [col(Course.status) == CourseStatus.PUBLISHED.value]

    if filters.level:
        conditions.append(col(Course.level) == filters.level.strip().upper())
    if filters.course_type:
        conditions.append(col(Course.course_type) == filters.course_type.strip().upper())
    if filters.category:
        category_ids = select(CourseCategory.id).where(CourseCategory.slug == filters.category.strip())
        conditions.append(col(Course.category_id).in_(category_ids))
    if filters.search and filters.search.strip():
        pattern = f"%{filters.search.strip()}%"
        conditions.append(
            or_(
                col(Course.title).ilike(pattern),
                col(Course.description).ilike(pattern),
                col(Course.short_description).ilike(pattern),
            )
        )

    return conditions


def order_by_clauses(sort: CourseSort) -> Tuple[Any, Any]:
    column = col(SORT_COLUMNS[sort.field])
    tiebreak = col(Course.id)
    if sort.descending:
        return column.desc(), tiebreak.desc()
    return column.asc(), tiebreak.asc()


def count_enrolled_students(session: Session, course_ids: Sequence[int]) -> Dict[int, int]:
    if not course_ids:
        return {}
    rows = session.exec(
        select(CourseStudentLink.course_id, func.count())
        .where(col(CourseStudentLink.course_id).in_(list(course_ids)))
        .group_by(CourseStudentLink.course_id)
    ).all()
    return {course_id: scalar_int(count) for course_id, count in rows}


def list_published_courses(
    session: Session,
    filters: CourseFilters,
    sort: CourseSort,
    page_request: PageRequest,
) -> CoursePage:
    """
    One page of published courses.

    In fetch-all mode no LIMIT/OFFSET is applied and the total is not
    counted (reported as 0).
    """
    conditions = build_course_conditions(filters)

    query = (
        select(Course)
        .where(and_(*conditions))
        .options(
            selectinload(Course.instructor),
            selectinload(Course.course_provider),
            selectinload(Course.category),
        )
        .order_by(*order_by_clauses(sort))
    )
    if page_request.skip is not None:
        query = query.offset(page_request.skip)
    if page_request.limit is not None:
        query = query.limit(page_request.limit)

    courses = list(session.exec(query).all())

    total = 0
    if not page_request.fetch_all:
        total = scalar_int(session.exec(select(func.count()).select_from(Course).where(and_(*conditions))).one())

    enrolled_counts = count_enrolled_students(session, [course.id for course in courses])
    return CoursePage(courses=courses, total=total, enrolled_counts=enrolled_counts)


def get_published_course(session: Session, slug: str) -> Tuple[Course, int]:
    """Published course by slug with its enrolled-student count"""
    course = session.exec(
        select(Course)
        .where(Course.slug == slug, col(Course.status) == CourseStatus.PUBLISHED.value)
        .options(
            selectinload(Course.instructor),
            selectinload(Course.course_provider),
            selectinload(Course.category),
            selectinload(Course.created_by),
        )
    ).first()
    if not course:
        raise RecordNotFound("Course")

    counts = count_enrolled_students(session, [course.id])
    return course, counts.get(course.id, 0)


def list_categories(session: Session) -> List[Tuple[CourseCategory, int]]:
    """All categories by name, each with its number of published courses"""
    rows = session.exec(
        select(CourseCategory, func.count(col(Course.id)))
        .outerjoin(
            Course,
            and_(
                col(Course.category_id) == col(CourseCategory.id),
                col(Course.status) == CourseStatus.PUBLISHED.value,
            ),
        )
        .group_by(col(CourseCategory.id))
        .order_by(col(CourseCategory.name).asc())
    ).all()
    return [(category, scalar_int(count)) for category, count in rows]
