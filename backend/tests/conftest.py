import os

# Settings are read at call time; these must be in place before app.main is imported
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CLERK_WEBHOOK_SECRET", "whsec_dGVzdC13ZWJob29rLXNlY3JldC1rZXk=")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from app.database import get_session  # noqa: E402
from app.main import app  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models are registered by tests/__init__.py before create_all()
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables are rebuilt for every test so unique columns never collide
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on freshly created tables"""
    import app.models  # noqa: F401

    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    The override is set BEFORE TestClient() and stays in place for the
    entire duration, so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Catalog data
# ============================================================================


@pytest.fixture
def catalog(session: Session):
    """A small catalog: two categories, three published courses, one draft

    Creation times are spread out so the default sort (newest first) is
    deterministic: python-basics < data-science < web-dev < draft-course.
    """
    from datetime import datetime, timedelta, timezone

    from app.models import Admin, Course, CourseCategory, CourseProvider, Instructor

    admin = Admin(first_name="Abebe", last_name="Kebede", email="admin@example.com", password="hash")
    provider = CourseProvider(company_name="Addis Academy", email="hello@addis.example", rating=4.5, verified=True)
    session.add(admin)
    session.add(provider)
    session.commit()

    instructor = Instructor(
        first_name="Sara",
        last_name="Tesfaye",
        email="sara@example.com",
        rating=4.8,
        experience=6,
        specialization="Data",
        course_provider_id=provider.id,
    )
    programming = CourseCategory(name="Programming", slug="programming", color="#3B82F6")
    design = CourseCategory(name="Design", slug="design")
    session.add(instructor)
    session.add(programming)
    session.add(design)
    session.commit()

    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    courses = {
        "python-basics": Course(
            title="Python Basics",
            slug="python-basics",
            description="Learn Python from scratch",
            short_description="Intro to programming",
            course_fee=100,
            rating=4.2,
            current_students=30,
            level="BEGINNER",
            course_type="ONLINE",
            status="PUBLISHED",
            payment_link="https://pay.example/python",
            learning_outcomes=["Variables", "Loops"],
            category_id=programming.id,
            instructor_id=instructor.id,
            course_provider_id=provider.id,
            created_by_id=admin.id,
            created_at=base,
        ),
        "data-science": Course(
            title="Data Science",
            slug="data-science",
            description="Pandas and statistics",
            course_fee=300,
            rating=4.9,
            current_students=10,
            level="ADVANCED",
            course_type="HYBRID",
            status="PUBLISHED",
            category_id=programming.id,
            instructor_id=instructor.id,
            created_at=base + timedelta(days=1),
        ),
        "web-dev": Course(
            title="Web Design",
            slug="web-dev",
            description="Layouts and typography",
            course_fee=200,
            rating=3.5,
            current_students=20,
            level="INTERMEDIATE",
            course_type="OFFLINE",
            status="PUBLISHED",
            category_id=design.id,
            created_at=base + timedelta(days=2),
        ),
        "draft-course": Course(
            title="Unreleased Python Course",
            slug="draft-course",
            description="Not yet public",
            status="DRAFT",
            category_id=programming.id,
            created_at=base + timedelta(days=3),
        ),
    }
    for course in courses.values():
        session.add(course)
    session.commit()
    for course in courses.values():
        session.refresh(course)

    return {
        "admin": admin,
        "provider": provider,
        "instructor": instructor,
        "categories": {"programming": programming, "design": design},
        "courses": courses,
    }


@pytest.fixture
def make_user(session: Session):
    """Factory for users; complete=True fills in the onboarding profile"""
    from app.models import User

    def _make_user(clerk_id: str = "user_1", email: str = "student@example.com", complete: bool = True, **fields):
        values = dict(clerk_id=clerk_id, email=email, first_name="Hana", last_name="Girma")
        if complete:
            values.update(
                phone_number="+251911223344",
                college="Engineering",
                semester="3",
                university="Addis Ababa University",
                is_profile_complete=True,
            )
        values.update(fields)
        user = User(**values)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user
