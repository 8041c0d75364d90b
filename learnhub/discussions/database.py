from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.database import new_id, save_versioned, touch


async def create_thread(db: AsyncIOMotorDatabase, data: dict, author: str) -> dict:
    now = datetime.utcnow()
    thread = {
        **data,
        "thread_id": new_id("THR"),
        "author": author,
        "replies": [],
        "views": 0,
        "is_pinned": False,
        "is_locked": False,
        "version": 0,
        "last_activity": now,
        "created_at": now,
        "updated_at": now,
    }
    await db.discussions.insert_one(thread)
    return thread


async def get_thread(db: AsyncIOMotorDatabase, thread_id: str) -> Optional[dict]:
    return await db.discussions.find_one({"thread_id": thread_id})


async def list_course_threads(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    """Pinned threads first, then most recent activity"""
    cursor = db.discussions.find({"course_id": course_id}).sort([("is_pinned", -1), ("last_activity", -1)])
    return await cursor.to_list(length=None)


async def record_view(db: AsyncIOMotorDatabase, thread_id: str) -> Optional[dict]:
    """Every fetch counts; no per-viewer dedup"""
    result = await db.discussions.update_one({"thread_id": thread_id}, {"$inc": {"views": 1}})
    if result.matched_count == 0:
        return None
    return await get_thread(db, thread_id)


async def save_thread(db: AsyncIOMotorDatabase, thread: dict) -> dict:
    touch(thread, "updated_at", "last_activity")
    # views is only ever moved by $inc
    return await save_versioned(db.discussions, "thread_id", thread, skip_fields=("views",))


async def delete_thread(db: AsyncIOMotorDatabase, thread_id: str) -> None:
    await db.discussions.delete_one({"thread_id": thread_id})

# ==================== REPLIES ====================


def find_reply(thread: dict, reply_id: str) -> Optional[dict]:
    for reply in thread.get("replies", []):
        if reply.get("reply_id") == reply_id:
            return reply
    return None


def add_reply(thread: dict, author: str, content: str, attachments: List[dict]) -> dict:
    now = datetime.utcnow()
    reply = {
        "reply_id": new_id("RPL"),
        "author": author,
        "content": content,
        "attachments": attachments,
        "reactions": [],
        "is_accepted_answer": False,
        "created_at": now,
        "updated_at": now,
    }
    thread.setdefault("replies", []).append(reply)
    return reply


def toggle_reaction(reply: dict, user_id: str, reaction_type: str) -> bool:
    """Posting the same (user, type) pair twice removes it; returns True when added"""
    reactions = reply.setdefault("reactions", [])
    matching = [r for r in reactions if r.get("user") == user_id and r.get("type") == reaction_type]

    if matching:
        reply["reactions"] = [
            r for r in reactions if not (r.get("user") == user_id and r.get("type") == reaction_type)
        ]
        return False

    reactions.append({"user": user_id, "type": reaction_type})
    return True


def accept_answer(thread: dict, reply: dict) -> dict:
    """Single accepted answer per thread"""
    for r in thread.get("replies", []):
        r["is_accepted_answer"] = False
    reply["is_accepted_answer"] = True
    return reply
