from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

from app.utils.clock import utc_now

if TYPE_CHECKING:
    from app.models.course import Course


class CourseCategory(SQLModel, table=True):
    __tablename__ = "course_category"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    slug: str = Field(unique=True, index=True)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None  # hex, e.g. "#3B82F6"
    created_at: datetime = Field(default_factory=utc_now)

    # Relationships
    courses: List["Course"] = Relationship(back_populates="category")
