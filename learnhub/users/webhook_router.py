"""
Identity provider webhook (Svix signed)

Mirrors user.created / user.updated / user.deleted into the users collection.
The raw body is verified with the svix SDK before it is parsed.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from svix.webhooks import Webhook, WebhookVerificationError

from learnhub import config
from learnhub.dependencies import get_db
from learnhub.users.database import (
    build_user, delete_user, email_taken_by_other, get_user, insert_user, upsert_profile,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Webhook"])

SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


def verify_webhook(body: bytes, headers: dict) -> None:
    """Raise 400 unless the svix signature and timestamp check out"""
    try:
        webhook = Webhook(config.CLERK_WEBHOOK_SECRET)
    except (RuntimeError, ValueError) as e:
        logger.error("Webhook secret is missing or malformed: %s", e)
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    try:
        webhook.verify(body, headers)
    except WebhookVerificationError as e:
        logger.warning("Webhook %s rejected: %s", headers.get("svix-id"), e)
        raise HTTPException(status_code=400, detail="Invalid webhook signature")


def _primary_email(data: dict) -> Optional[str]:
    addresses = data.get("email_addresses") or []
    if not addresses:
        return None
    return addresses[0].get("email_address")


async def _mirrored_email(db: AsyncIOMotorDatabase, data: dict, clerk_id: str) -> Optional[str]:
    """Primary email, dropped when another user already owns it"""
    email = _primary_email(data)
    if await email_taken_by_other(db, email, clerk_id):
        logger.warning("Email of %s already belongs to another user; mirroring without it", clerk_id)
        return None
    return email


async def _read_body(request: Request) -> bytes:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > config.WEBHOOK_MAX_BODY_BYTES:
        raise HTTPException(status_code=413, detail="Payload too large")

    body = await request.body()
    if len(body) > config.WEBHOOK_MAX_BODY_BYTES:
        raise HTTPException(status_code=413, detail="Payload too large")
    return body


async def handle_event(db: AsyncIOMotorDatabase, event_type: str, data: dict) -> str:
    clerk_id = data.get("id")

    if event_type == "user.created":
        if await get_user(db, clerk_id):
            return "User already exists"
        email = await _mirrored_email(db, data, clerk_id)
        await insert_user(db, build_user(clerk_id, email, data.get("first_name"), data.get("last_name")))
        return "User created"

    if event_type == "user.updated":
        email = await _mirrored_email(db, data, clerk_id)
        await upsert_profile(db, clerk_id, email, data.get("first_name"), data.get("last_name"))
        return "User updated"

    if event_type == "user.deleted":
        if not await delete_user(db, clerk_id):
            return "User already deleted"
        return "User deleted"

    logger.info("Ignoring webhook event %s", event_type)
    return "Event ignored"


@router.post("")
async def identity_webhook(request: Request, db: AsyncIOMotorDatabase = Depends(get_db)):
    body = await _read_body(request)

    headers = {name: request.headers.get(name) for name in SVIX_HEADERS}
    if not all(headers.values()):
        raise HTTPException(status_code=400, detail="Missing svix headers")

    verify_webhook(body, headers)

    try:
        event = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    event_type = event.get("type")
    data = event.get("data") or {}

    try:
        message = await handle_event(db, event_type, data)
    except PyMongoError as e:
        logger.exception("Webhook %s (%s) failed: %s", headers["svix-id"], event_type, e)
        raise HTTPException(status_code=500, detail="Error processing webhook")

    logger.info("Webhook %s processed: %s", event_type, message)
    return {"success": True, "message": message}
