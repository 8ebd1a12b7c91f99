from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

from app.models.course_student_link import CourseStudentLink
from app.utils.clock import utc_now

if TYPE_CHECKING:
    from app.models.course import Course


class User(SQLModel, table=True):
    # "user" is reserved in PostgreSQL
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    clerk_id: str = Field(unique=True, index=True)  # id issued by the external auth provider
    email: str = Field(unique=True, index=True)
    first_name: str = Field(default="")
    last_name: str = Field(default="")
    phone_number: Optional[str] = Field(default=None, unique=True)
    profile_photo: Optional[str] = None
    age: Optional[int] = None
    bio: Optional[str] = None
    college: Optional[str] = None
    semester: Optional[str] = None
    university: Optional[str] = None
    is_profile_complete: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    # Relationships
    enrolled_courses: List["Course"] = Relationship(back_populates="enrolled_students", link_model=CourseStudentLink)
