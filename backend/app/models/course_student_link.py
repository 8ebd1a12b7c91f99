from sqlmodel import Field, SQLModel


class CourseStudentLink(SQLModel, table=True):
    """Students admitted to a course (many-to-many between course and user)"""

    __tablename__ = "course_student_link"

    course_id: int = Field(foreign_key="course.id", primary_key=True)
    user_id: str = Field(foreign_key="users.id", primary_key=True)
