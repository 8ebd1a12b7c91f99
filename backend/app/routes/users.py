"""
User API Routes
Account mirroring for the auth provider and the onboarding profile.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.services.outcome_classifier import failure_response
from app.services.user_service import (
    complete_onboarding,
    create_or_update_user,
    find_user_by_clerk_id,
    get_user_by_clerk_id,
)
from app.utils.envelope import CamelModel, success_response
from app.utils.failures import ValidationFailure
from app.utils.validation import is_blank

router = APIRouter()


class UserUpsertRequest(CamelModel):
    clerk_id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_photo: Optional[str] = None


class OnboardingRequest(CamelModel):
    phone_number: Optional[str] = None
    college: Optional[str] = None
    semester: Optional[str] = None
    university: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    clerk_id: str
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    profile_photo: Optional[str] = None
    age: Optional[int] = None
    bio: Optional[str] = None
    college: Optional[str] = None
    semester: Optional[str] = None
    university: Optional[str] = None
    is_profile_complete: bool
    created_at: datetime
    updated_at: datetime


def _require_clerk_id(clerk_id: str) -> str:
    if is_blank(clerk_id):
        raise ValidationFailure("Clerk ID is required", field="clerkId")
    return clerk_id.strip()


@router.post("/users/create-or-update")
def create_or_update(request: Optional[UserUpsertRequest] = None, session: Session = Depends(get_session)):
    """Create the user for clerkId (201) or refresh its identity fields (200)"""
    request = request or UserUpsertRequest()
    try:
        user, is_new = create_or_update_user(
            session,
            clerk_id=request.clerk_id.strip() if request.clerk_id else None,
            email=request.email,
            first_name=request.first_name,
            last_name=request.last_name,
            profile_photo=request.profile_photo,
        )
        payload = {"user": UserResponse.model_validate(user), "isNewUser": is_new}
    except Exception as e:
        session.rollback()
        return failure_response(e, action="create or update user")

    if is_new:
        return success_response(payload, "User created successfully", status_code=201)
    return success_response(payload, "User updated successfully")


@router.get("/users/profile/{clerk_id}")
def get_profile(clerk_id: str, session: Session = Depends(get_session)):
    try:
        user = get_user_by_clerk_id(session, _require_clerk_id(clerk_id))
        payload = UserResponse.model_validate(user)
    except Exception as e:
        session.rollback()
        return failure_response(e, action="fetch user profile")

    return success_response(payload, "User profile retrieved successfully")


@router.put("/users/complete-onboarding/{clerk_id}")
def complete_user_onboarding(
    clerk_id: str,
    request: Optional[OnboardingRequest] = None,
    session: Session = Depends(get_session),
):
    """
    Store phone number, college, semester and university and mark the
    profile complete. The phone number must match the configured pattern and
    must not belong to another user.
    """
    request = request or OnboardingRequest()
    try:
        user = complete_onboarding(
            session,
            clerk_id=_require_clerk_id(clerk_id),
            phone_number=request.phone_number,
            college=request.college,
            semester=request.semester,
            university=request.university,
        )
        payload = UserResponse.model_validate(user)
    except Exception as e:
        session.rollback()
        return failure_response(e, action="complete onboarding")

    return success_response(payload, "Onboarding completed successfully")


@router.get("/users/check-profile/{clerk_id}")
def check_profile(clerk_id: str, session: Session = Depends(get_session)):
    """Always 200; isComplete is false for unknown users"""
    try:
        user = find_user_by_clerk_id(session, _require_clerk_id(clerk_id))
    except Exception as e:
        session.rollback()
        return failure_response(e, action="check profile status")

    if not user:
        return success_response({"isComplete": False, "user": None}, "User not found")

    payload = {"isComplete": user.is_profile_complete, "user": UserResponse.model_validate(user)}
    return success_response(payload, "Profile status checked successfully")
