from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

from app.utils.clock import utc_now

if TYPE_CHECKING:
    from app.models.course import Course
    from app.models.course_provider import CourseProvider


class Instructor(SQLModel, table=True):
    __tablename__ = "instructor"

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    first_name: str
    last_name: str
    email: str = Field(unique=True, index=True)
    profile_picture: Optional[str] = None
    rating: float = Field(default=0)
    experience: int = Field(default=0)  # years
    specialization: Optional[str] = None
    bio: Optional[str] = None
    course_provider_id: Optional[str] = Field(default=None, foreign_key="course_provider.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)

    # Relationships
    course_provider: Optional["CourseProvider"] = Relationship(back_populates="instructors")
    courses: List["Course"] = Relationship(back_populates="instructor")
