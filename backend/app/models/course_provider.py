from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

from app.utils.clock import utc_now

if TYPE_CHECKING:
    from app.models.admin import Admin
    from app.models.course import Course
    from app.models.instructor import Instructor


class CourseProviderStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class CourseProvider(SQLModel, table=True):
    __tablename__ = "course_provider"

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    company_name: str
    company_description: Optional[str] = None
    website: Optional[str] = None
    email: str = Field(unique=True, index=True)
    phone_number: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    logo: Optional[str] = None
    rating: float = Field(default=0)
    verified: bool = Field(default=False)
    status: CourseProviderStatus = Field(
        default=CourseProviderStatus.PENDING, sa_column=Column(String, nullable=False)
    )
    admin_id: Optional[str] = Field(default=None, foreign_key="admin.id")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    # Relationships
    admin: Optional["Admin"] = Relationship(back_populates="course_providers")
    instructors: List["Instructor"] = Relationship(back_populates="course_provider")
    courses: List["Course"] = Relationship(back_populates="course_provider")
