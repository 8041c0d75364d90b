from datetime import datetime
from enum import Enum
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.database import new_id


class NotificationType(str, Enum):
    NEW_REPLY = "new_reply"
    NEW_ASSIGNMENT = "new_assignment"
    ASSIGNMENT_GRADED = "assignment_graded"
    DISCUSSION_MENTION = "discussion_mention"


class SourceType(str, Enum):
    DISCUSSION = "Discussion"
    ASSIGNMENT = "Assignment"


def build_notification(
    user_id: str,
    type: NotificationType,
    source_id: str,
    source_type: SourceType,
    message: Optional[str] = None,
    link: Optional[str] = None,
) -> dict:
    return {
        "notification_id": new_id("NTF"),
        "user_id": user_id,
        "type": type.value,
        "source_id": source_id,
        "source_type": source_type.value,
        "message": message,
        "link": link,
        "is_read": False,
        "created_at": datetime.utcnow(),
    }


async def create_notification(db: AsyncIOMotorDatabase, user_id: str, type: NotificationType,
                              source_id: str, source_type: SourceType,
                              message: Optional[str] = None, link: Optional[str] = None) -> dict:
    doc = build_notification(user_id, type, source_id, source_type, message, link)
    await db.notifications.insert_one(doc)
    return doc


async def notify_many(db: AsyncIOMotorDatabase, user_ids: List[str], type: NotificationType,
                      source_id: str, source_type: SourceType,
                      message: Optional[str] = None, link: Optional[str] = None) -> int:
    docs = [build_notification(uid, type, source_id, source_type, message, link) for uid in user_ids]
    if docs:
        await db.notifications.insert_many(docs)
    return len(docs)


async def list_notifications(db: AsyncIOMotorDatabase, user_id: str) -> List[dict]:
    cursor = db.notifications.find({"user_id": user_id}).sort("created_at", -1)
    return await cursor.to_list(length=None)


async def mark_read(db: AsyncIOMotorDatabase, notification_id: str, user_id: str) -> Optional[dict]:
    """Only the owner's notification matches; None otherwise"""
    result = await db.notifications.update_one(
        {"notification_id": notification_id, "user_id": user_id},
        {"$set": {"is_read": True}},
    )
    if result.matched_count == 0:
        return None
    return await db.notifications.find_one({"notification_id": notification_id})
