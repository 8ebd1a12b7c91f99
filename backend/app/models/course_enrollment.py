from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

from app.utils.clock import utc_now

if TYPE_CHECKING:
    from app.models.course import Course


class EnrollmentStatus(str, Enum):
    PENDING = "PENDING"
    CONTACTED = "CONTACTED"
    ENROLLED = "ENROLLED"
    CANCELLED = "CANCELLED"


# An enrollment in one of these states blocks a new request for the same course
OPEN_ENROLLMENT_STATUSES = (EnrollmentStatus.PENDING, EnrollmentStatus.CONTACTED)


class CourseEnrollment(SQLModel, table=True):
    """Enrollment request captured from a user's onboarding profile.

    Staff follow up with the applicant (CONTACTED) and either admit them
    (ENROLLED) or close the request (CANCELLED).
    """

    __tablename__ = "course_enrollment"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True)
    phone_number: str
    college: Optional[str] = None
    semester: Optional[str] = None
    university: Optional[str] = None
    course_id: int = Field(foreign_key="course.id", index=True)
    status: EnrollmentStatus = Field(default=EnrollmentStatus.PENDING, sa_column=Column(String, nullable=False))
    notes: Optional[str] = None
    contacted_at: Optional[datetime] = None
    contacted_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    # Relationships
    course: "Course" = Relationship(back_populates="enrollments")
