from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, String
from sqlmodel import Column, Field, Relationship, SQLModel

from app.models.course_student_link import CourseStudentLink
from app.utils.clock import utc_now

if TYPE_CHECKING:
    from app.models.admin import Admin
    from app.models.course_category import CourseCategory
    from app.models.course_enrollment import CourseEnrollment
    from app.models.course_provider import CourseProvider
    from app.models.instructor import Instructor
    from app.models.user import User


class CourseLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class CourseType(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
    HYBRID = "HYBRID"


class CourseStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class Course(SQLModel, table=True):
    __tablename__ = "course"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    slug: str = Field(unique=True, index=True)
    description: str = Field(default="")
    short_description: Optional[str] = None
    course_image: Optional[str] = None
    course_fee: float = Field(default=0)
    rating: float = Field(default=0)
    total_ratings: int = Field(default=0)
    level: CourseLevel = Field(default=CourseLevel.BEGINNER, sa_column=Column(String, nullable=False))
    duration: Optional[int] = None  # days
    course_type: CourseType = Field(default=CourseType.ONLINE, sa_column=Column(String, nullable=False))
    language: str = Field(default="English")
    city: Optional[str] = None
    country: Optional[str] = None
    max_students: Optional[int] = None
    current_students: int = Field(default=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    enrollment_deadline: Optional[datetime] = None
    status: CourseStatus = Field(default=CourseStatus.DRAFT, sa_column=Column(String, nullable=False, index=True))
    payment_link: Optional[str] = None
    learning_outcomes: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    prerequisites: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))

    instructor_id: Optional[str] = Field(default=None, foreign_key="instructor.id", index=True)
    course_provider_id: Optional[str] = Field(default=None, foreign_key="course_provider.id", index=True)
    category_id: Optional[int] = Field(default=None, foreign_key="course_category.id", index=True)
    created_by_id: Optional[str] = Field(default=None, foreign_key="admin.id")

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    # Relationships
    instructor: Optional["Instructor"] = Relationship(back_populates="courses")
    course_provider: Optional["CourseProvider"] = Relationship(back_populates="courses")
    category: Optional["CourseCategory"] = Relationship(back_populates="courses")
    created_by: Optional["Admin"] = Relationship(back_populates="courses")
    enrollments: List["CourseEnrollment"] = Relationship(back_populates="course")
    enrolled_students: List["User"] = Relationship(back_populates="enrolled_courses", link_model=CourseStudentLink)
