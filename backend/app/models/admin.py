from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

from app.utils.clock import utc_now

if TYPE_CHECKING:
    from app.models.course import Course
    from app.models.course_provider import CourseProvider


class Admin(SQLModel, table=True):
    __tablename__ = "admin"

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    first_name: str
    last_name: str
    email: str = Field(unique=True, index=True)
    password: str  # bcrypt hash, written by the admin console
    phone_number: Optional[str] = None
    profile_picture: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    # Relationships
    courses: List["Course"] = Relationship(back_populates="created_by")
    course_providers: List["CourseProvider"] = Relationship(back_populates="admin")
