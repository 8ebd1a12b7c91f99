"""
Auth-provider webhook endpoint.

Deliveries are verified against CLERK_WEBHOOK_SECRET before any event is
applied.
"""

import logging

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from sqlmodel import Session
from svix.webhooks import Webhook, WebhookVerificationError

from app.database import get_session
from app.routes.users import UserResponse
from app.services.outcome_classifier import failure_response
from app.services.webhook_service import handle_event
from app.settings import get_webhook_secret
from app.utils.envelope import error_response, success_response
from app.utils.failures import ValidationFailure

logger = logging.getLogger(__name__)

SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")

router = APIRouter()


@router.post("/webhooks/clerk")
async def clerk_webhook(request: Request, session: Session = Depends(get_session)):
    secret = get_webhook_secret()
    if not secret:
        logger.error("CLERK_WEBHOOK_SECRET is not configured")
        return error_response("Webhook secret not configured", 500)

    payload = await request.body()
    try:
        if not all(request.headers.get(name) for name in SVIX_HEADERS):
            raise ValidationFailure("Missing Svix headers", field="headers")

        webhook = Webhook(secret)
        try:
            event = webhook.verify(payload, {name: request.headers[name] for name in SVIX_HEADERS})
        except WebhookVerificationError as e:
            logger.warning("Webhook verification failed: %s", e)
            raise ValidationFailure("Invalid webhook signature", field="svix-signature") from e
        except ValueError as e:
            raise ValidationFailure("Invalid webhook payload") from e
        if not isinstance(event, dict):
            raise ValidationFailure("Invalid webhook payload")

        result = await run_in_threadpool(handle_event, session, event)
        data = {"user": UserResponse.model_validate(result.user)} if result.user else None
    except Exception as e:
        session.rollback()
        return failure_response(e, action="process webhook")

    return success_response(data, result.message, status_code=result.status_code)
