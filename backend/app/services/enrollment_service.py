"""
Course enrollment requests.

An enrollment is built from the requesting user's stored onboarding profile,
not from the request body, so the applicant must have completed onboarding
first.
"""

import logging
from typing import Tuple

from sqlmodel import Session, col, select

from app.models.course import Course, CourseStatus
from app.models.course_enrollment import OPEN_ENROLLMENT_STATUSES, CourseEnrollment, EnrollmentStatus
from app.models.user import User
from app.utils.failures import RecordNotFound, ValidationFailure
from app.utils.validation import is_blank

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("phone_number", "college", "semester", "university")

INCOMPLETE_PROFILE_MESSAGE = (
    "Your profile is incomplete. Please complete onboarding before enrolling in a course."
)
DUPLICATE_ENROLLMENT_MESSAGE = "You already have a pending enrollment for this course"


def profile_is_complete(user: User) -> bool:
    return user.is_profile_complete and not any(is_blank(getattr(user, name)) for name in PROFILE_FIELDS)


def submit_enrollment(session: Session, course_id: int, clerk_id: str) -> Tuple[CourseEnrollment, Course]:
    """
    Record a PENDING enrollment request for a published course.

    Raises:
        RecordNotFound: unknown user, or course missing / not published
        ValidationFailure: incomplete profile, or an open (PENDING or
            CONTACTED) request for the same course and email already exists

    The duplicate check and the insert are separate statements; two
    concurrent submissions can both pass the check.
    """
    user = session.exec(select(User).where(User.clerk_id == clerk_id)).first()
    if not user:
        raise RecordNotFound("User")

    if not profile_is_complete(user):
        raise ValidationFailure(INCOMPLETE_PROFILE_MESSAGE, field="profile")

    course = session.exec(
        select(Course).where(Course.id == course_id, col(Course.status) == CourseStatus.PUBLISHED.value)
    ).first()
    if not course:
        raise RecordNotFound("Course")

    existing = session.exec(
        select(CourseEnrollment).where(
            CourseEnrollment.course_id == course_id,
            CourseEnrollment.email == user.email,
            col(CourseEnrollment.status).in_([status.value for status in OPEN_ENROLLMENT_STATUSES]),
        )
    ).first()
    if existing:
        raise ValidationFailure(DUPLICATE_ENROLLMENT_MESSAGE, field="courseId")

    enrollment = CourseEnrollment(
        name=f"{user.first_name} {user.last_name}".strip(),
        email=user.email,
        phone_number=user.phone_number,
        college=user.college,
        semester=user.semester,
        university=user.university,
        course_id=course_id,
        status=EnrollmentStatus.PENDING.value,
    )
    session.add(enrollment)
    session.commit()
    session.refresh(enrollment)

    logger.info("Enrollment %s submitted for course %s", enrollment.id, course_id)
    return enrollment, course
