import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from app.models import User
from app.services.user_service import create_or_update_user
from app.utils.failures import ValidationFailure

ONBOARDING = {
    "phoneNumber": "+251911223344",
    "college": "Engineering",
    "semester": "3",
    "university": "Addis Ababa University",
}


def _create(client: TestClient, clerk_id="user_1", email="student@example.com", **extra):
    return client.post("/api/users/create-or-update", json={"clerkId": clerk_id, "email": email, **extra})


# ============================================================================
# create-or-update
# ============================================================================


def test_create_user(session: Session, client: TestClient):
    response = _create(client, firstName="Hana", lastName="Girma")

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["data"]["isNewUser"] is True
    user = body["data"]["user"]
    assert user["clerkId"] == "user_1"
    assert user["firstName"] == "Hana"
    assert user["isProfileComplete"] is False

    assert session.exec(select(User)).one().email == "student@example.com"


def test_new_user_timestamps_are_timezone_aware(session: Session, client: TestClient):
    user = User(clerk_id="user_tz", email="tz@example.com")

    assert user.created_at.tzinfo is not None
    assert user.updated_at.tzinfo is not None

    session.add(user)
    session.commit()

    response = _create(client, clerk_id="user_2", email="second@example.com")
    assert response.status_code == 201
    assert response.json()["data"]["user"]["createdAt"]


def test_update_existing_user_keeps_blank_fields(client: TestClient):
    _create(client, firstName="Hana", lastName="Girma")

    response = _create(client, email="new@example.com", firstName="Hanna")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User updated successfully"
    assert body["data"]["isNewUser"] is False
    assert body["data"]["user"]["email"] == "new@example.com"
    assert body["data"]["user"]["firstName"] == "Hanna"
    assert body["data"]["user"]["lastName"] == "Girma"


def test_create_requires_clerk_id_and_email(client: TestClient):
    response = client.post("/api/users/create-or-update", json={"email": "student@example.com"})

    assert response.status_code == 400
    assert response.json()["message"] == "clerkId and email are required"


@pytest.mark.parametrize(
    "clerk_id, email, field",
    [
        (None, "student@example.com", "clerkId"),
        ("user_1", None, "email"),
        ("user_1", "   ", "email"),
        ("", "", "clerkId"),
    ],
)
def test_create_requires_tags_the_blank_field(session: Session, clerk_id, email, field):
    with pytest.raises(ValidationFailure) as exc_info:
        create_or_update_user(session, clerk_id, email)

    assert exc_info.value.field == field
    assert str(exc_info.value) == "clerkId and email are required"


def test_create_rejects_bad_email(client: TestClient):
    response = _create(client, email="not-an-email")

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email format"


def test_create_with_email_of_another_user_is_409(client: TestClient):
    _create(client, clerk_id="user_1")

    response = _create(client, clerk_id="user_2")

    assert response.status_code == 409
    body = response.json()
    assert "email" in body["message"]
    assert body["message"] == "A user with this email already exists"
    assert body["error"] == "duplicate_key"


# ============================================================================
# profile / check-profile
# ============================================================================


def test_get_profile(make_user, client: TestClient):
    make_user()

    response = client.get("/api/users/profile/user_1")

    assert response.status_code == 200
    assert response.json()["message"] == "User profile retrieved successfully"
    assert response.json()["data"]["phoneNumber"] == "+251911223344"


def test_get_profile_unknown_user_is_404(session: Session, client: TestClient):
    response = client.get("/api/users/profile/nobody")

    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_check_profile_unknown_user_is_200(session: Session, client: TestClient):
    response = client.get("/api/users/check-profile/nobody")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User not found"
    assert body["data"] == {"isComplete": False, "user": None}


def test_check_profile_reports_completion(make_user, client: TestClient):
    make_user(complete=False)

    body = client.get("/api/users/check-profile/user_1").json()

    assert body["message"] == "Profile status checked successfully"
    assert body["data"]["isComplete"] is False
    assert body["data"]["user"]["clerkId"] == "user_1"


# ============================================================================
# complete-onboarding
# ============================================================================


def test_complete_onboarding(make_user, session: Session, client: TestClient):
    make_user(complete=False)

    response = client.put("/api/users/complete-onboarding/user_1", json=ONBOARDING)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Onboarding completed successfully"
    assert body["data"]["isProfileComplete"] is True
    assert body["data"]["college"] == "Engineering"

    session.expire_all()
    assert session.exec(select(User)).one().is_profile_complete is True


def test_complete_onboarding_rejects_bad_phone_format(make_user, client: TestClient):
    make_user(complete=False)

    response = client.put(
        "/api/users/complete-onboarding/user_1",
        json={**ONBOARDING, "phoneNumber": "0911223344"},
    )

    assert response.status_code == 400
    message = response.json()["message"].lower()
    assert "phone number" in message
    assert "format" in message
    assert response.json()["message"] == "Invalid phone number format. Expected: +251XXXXXXXXX"


def test_complete_onboarding_uses_configured_phone_pattern(make_user, client: TestClient, monkeypatch):
    monkeypatch.setenv("PHONE_NUMBER_PATTERN", r"^\+1[0-9]{10}$")
    monkeypatch.setenv("PHONE_NUMBER_EXAMPLE", "+1XXXXXXXXXX")
    make_user(complete=False)

    ok = client.put("/api/users/complete-onboarding/user_1", json={**ONBOARDING, "phoneNumber": "+15551234567"})
    assert ok.status_code == 200

    bad = client.put("/api/users/complete-onboarding/user_1", json=ONBOARDING)
    assert bad.json()["message"] == "Invalid phone number format. Expected: +1XXXXXXXXXX"


def test_complete_onboarding_blank_fields_count_as_missing(make_user, client: TestClient):
    make_user(complete=False)

    response = client.put("/api/users/complete-onboarding/user_1", json={**ONBOARDING, "college": "   "})

    assert response.status_code == 400
    assert response.json()["message"] == "Phone number, college, semester, and university are required"


def test_complete_onboarding_unknown_user_is_404(session: Session, client: TestClient):
    response = client.put("/api/users/complete-onboarding/nobody", json=ONBOARDING)

    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_complete_onboarding_phone_in_use_is_409(make_user, client: TestClient):
    make_user(clerk_id="owner", email="owner@example.com")
    make_user(clerk_id="user_1", complete=False)

    response = client.put("/api/users/complete-onboarding/user_1", json=ONBOARDING)

    assert response.status_code == 409
    assert response.json()["message"] == "Phone number already in use"


def test_complete_onboarding_keeps_own_phone(make_user, client: TestClient):
    make_user()

    response = client.put("/api/users/complete-onboarding/user_1", json=ONBOARDING)

    assert response.status_code == 200
