"""
Auth-provider webhook events.

user.created / user.updated mirror the provider's user into the users table;
user.deleted is acknowledged only (accounts are kept); anything else is
acknowledged and ignored.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlmodel import Session

from app.models.user import User
from app.services.user_service import upsert_user_from_provider
from app.utils.failures import ValidationFailure

logger = logging.getLogger(__name__)

USER_CREATED = "user.created"
USER_UPDATED = "user.updated"
USER_DELETED = "user.deleted"


@dataclass
class WebhookResult:
    message: str
    status_code: int = 200
    user: Optional[User] = None


def primary_email(data: Dict[str, Any]) -> Optional[str]:
    primary_id = data.get("primary_email_address_id")
    for entry in data.get("email_addresses") or []:
        if entry.get("id") == primary_id:
            return entry.get("email_address")
    return None


def handle_event(session: Session, event: Dict[str, Any]) -> WebhookResult:
    event_type = event.get("type")
    data = event.get("data") or {}
    logger.info("Received auth webhook: %s", event_type)

    if event_type in (USER_CREATED, USER_UPDATED):
        email = primary_email(data)
        if not email:
            raise ValidationFailure("No primary email found", field="email_addresses")
        if not data.get("id"):
            raise ValidationFailure("Webhook user id missing", field="data.id")

        user, created = upsert_user_from_provider(
            session,
            clerk_id=data["id"],
            email=email,
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            image_url=data.get("image_url"),
        )
        verb = "created" if event_type == USER_CREATED else "updated"
        logger.info("User %s from webhook: %s", verb, user.id)
        return WebhookResult(
            message=f"User {verb} successfully",
            status_code=201 if event_type == USER_CREATED else 200,
            user=user,
        )

    if event_type == USER_DELETED:
        logger.info("User deleted at provider: %s", data.get("id"))
        return WebhookResult(message="User deletion acknowledged")

    logger.info("Unhandled webhook event type: %s", event_type)
    return WebhookResult(message="Webhook received")
