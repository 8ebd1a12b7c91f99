"""
User profile lifecycle: creation after external sign-in, onboarding
completion, and the upsert driven by auth-provider webhooks.
"""

import logging
from typing import Optional, Tuple

from sqlmodel import Session, select

from app.models.user import User
from app.utils.failures import RecordNotFound, UniqueViolation, ValidationFailure
from app.utils.validation import (
    is_blank,
    is_valid_email,
    is_valid_phone_number,
    missing_fields,
    phone_number_format_message,
)

logger = logging.getLogger(__name__)

ONBOARDING_FIELDS = ("phone_number", "college", "semester", "university")


def find_user_by_clerk_id(session: Session, clerk_id: str) -> Optional[User]:
    return session.exec(select(User).where(User.clerk_id == clerk_id)).first()


def get_user_by_clerk_id(session: Session, clerk_id: str) -> User:
    user = find_user_by_clerk_id(session, clerk_id)
    if not user:
        raise RecordNotFound("User")
    return user


def create_or_update_user(
    session: Session,
    clerk_id: Optional[str],
    email: Optional[str],
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    profile_photo: Optional[str] = None,
) -> Tuple[User, bool]:
    """
    Create the user for clerk_id, or refresh the stored identity fields.

    Blank optional fields keep the stored value on update.

    Returns:
        (user, is_new_user)
    """
    if is_blank(clerk_id) or is_blank(email):
        field = "clerkId" if is_blank(clerk_id) else "email"
        raise ValidationFailure("clerkId and email are required", field=field)
    email = email.strip()
    if not is_valid_email(email):
        raise ValidationFailure("Invalid email format", field="email")

    user = find_user_by_clerk_id(session, clerk_id)
    if user:
        user.first_name = first_name or user.first_name
        user.last_name = last_name or user.last_name
        user.profile_photo = profile_photo or user.profile_photo
        user.email = email
        session.add(user)
        session.commit()
        session.refresh(user)
        return user, False

    user = User(
        clerk_id=clerk_id,
        email=email,
        first_name=first_name or "",
        last_name=last_name or "",
        profile_photo=profile_photo or None,
        is_profile_complete=False,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("Created user %s", user.id)
    return user, True


def complete_onboarding(
    session: Session,
    clerk_id: str,
    phone_number: Optional[str],
    college: Optional[str],
    semester: Optional[str],
    university: Optional[str],
) -> User:
    """
    Store the onboarding answers and mark the profile complete.

    The phone-number ownership check runs before the update without a lock;
    the unique constraint on users.phone_number still rejects a racing
    duplicate, which the classifier reports as 409.
    """
    if is_blank(clerk_id):
        raise ValidationFailure("Clerk ID is required", field="clerkId")

    answers = {
        "phone_number": phone_number,
        "college": college,
        "semester": semester,
        "university": university,
    }
    missing = missing_fields(answers, ONBOARDING_FIELDS)
    if missing:
        raise ValidationFailure(
            "Phone number, college, semester, and university are required",
            field=missing[0],
        )

    phone_number = phone_number.strip()
    if not is_valid_phone_number(phone_number):
        raise ValidationFailure(phone_number_format_message(), field="phoneNumber")

    user = get_user_by_clerk_id(session, clerk_id)

    taken = session.exec(
        select(User).where(User.phone_number == phone_number, User.clerk_id != clerk_id)
    ).first()
    if taken:
        raise UniqueViolation(("phone_number",), message="Phone number already in use")

    user.phone_number = phone_number
    user.college = college.strip()
    user.semester = semester.strip()
    user.university = university.strip()
    user.is_profile_complete = True
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def upsert_user_from_provider(
    session: Session,
    clerk_id: str,
    email: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    image_url: Optional[str] = None,
) -> Tuple[User, bool]:
    """
    Mirror an auth-provider user record.

    Updates touch names and photo only; the email is written on creation.

    Returns:
        (user, created)
    """
    user = find_user_by_clerk_id(session, clerk_id)
    created = user is None
    if created:
        user = User(clerk_id=clerk_id, email=email, is_profile_complete=False)

    user.first_name = first_name or ""
    user.last_name = last_name or ""
    user.profile_photo = image_url or None

    session.add(user)
    session.commit()
    session.refresh(user)
    return user, created
