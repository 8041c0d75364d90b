from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.courses.database import get_course, is_participant
from learnhub.database import serialize_many, serialize_mongo
from learnhub.dependencies import get_current_user_id, get_db
from learnhub.discussions.database import (
    accept_answer, add_reply, create_thread, delete_thread, find_reply, get_thread,
    list_course_threads, record_view, save_thread, toggle_reaction,
)
from learnhub.discussions.models import ReactionToggle, ReplyCreate, ReplyUpdate, ThreadCreate, ThreadUpdate
from learnhub.notifications.database import NotificationType, SourceType, create_notification

router = APIRouter(tags=["Discussions"])


async def _require_thread(db: AsyncIOMotorDatabase, thread_id: str) -> dict:
    thread = await get_thread(db, thread_id)
    if not thread:
        raise HTTPException(status_code=404, detail="Thread not found")
    return thread


async def _require_participant(db: AsyncIOMotorDatabase, course_id: str, user_id: str) -> dict:
    course = await get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if not is_participant(course, user_id):
        raise HTTPException(status_code=403, detail="Not enrolled in this course")
    return course


def _require_reply(thread: dict, reply_id: str) -> dict:
    reply = find_reply(thread, reply_id)
    if not reply:
        raise HTTPException(status_code=404, detail="Reply not found")
    return reply

# ==================== THREADS ====================


@router.get("/course/{course_id}")
async def list_threads_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return serialize_many(await list_course_threads(db, course_id))


@router.get("/{thread_id}")
async def get_thread_endpoint(
    thread_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    thread = await record_view(db, thread_id)
    if not thread:
        raise HTTPException(status_code=404, detail="Thread not found")
    return serialize_mongo(thread)


@router.post("", status_code=201)
async def create_thread_endpoint(
    payload: ThreadCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await _require_participant(db, payload.course_id, user_id)

    thread = await create_thread(db, payload.model_dump(), user_id)
    return serialize_mongo(thread)


@router.put("/{thread_id}")
async def update_thread_endpoint(
    thread_id: str,
    updates: ThreadUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    thread = await _require_thread(db, thread_id)
    if thread["author"] != user_id:
        raise HTTPException(status_code=403, detail="Not authorized to update this thread")

    thread.update(updates.model_dump(exclude_none=True))
    return serialize_mongo(await save_thread(db, thread))


@router.delete("/{thread_id}")
async def delete_thread_endpoint(
    thread_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    thread = await _require_thread(db, thread_id)
    if thread["author"] != user_id:
        raise HTTPException(status_code=403, detail="Not authorized to delete this thread")

    await delete_thread(db, thread_id)
    return {"message": "Thread deleted"}

# ==================== REPLIES ====================


@router.post("/{thread_id}/replies")
async def add_reply_endpoint(
    thread_id: str,
    payload: ReplyCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    thread = await _require_thread(db, thread_id)
    if thread.get("is_locked"):
        raise HTTPException(status_code=400, detail="Thread is locked")

    await _require_participant(db, thread["course_id"], user_id)

    data = payload.model_dump()
    add_reply(thread, user_id, data["content"], data["attachments"])
    thread = await save_thread(db, thread)

    if thread["author"] != user_id:
        await create_notification(
            db, thread["author"], NotificationType.NEW_REPLY,
            thread_id, SourceType.DISCUSSION,
            message=f"New reply on \"{thread['title']}\"",
            link=f"/discussions/{thread_id}",
        )

    return serialize_mongo(thread)


@router.put("/{thread_id}/replies/{reply_id}")
async def update_reply_endpoint(
    thread_id: str,
    reply_id: str,
    updates: ReplyUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    thread = await _require_thread(db, thread_id)
    reply = _require_reply(thread, reply_id)
    if reply["author"] != user_id:
        raise HTTPException(status_code=403, detail="Not authorized to update this reply")

    reply.update(updates.model_dump(exclude_none=True))
    return serialize_mongo(await save_thread(db, thread))


@router.delete("/{thread_id}/replies/{reply_id}")
async def delete_reply_endpoint(
    thread_id: str,
    reply_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    thread = await _require_thread(db, thread_id)
    reply = _require_reply(thread, reply_id)
    if reply["author"] != user_id:
        raise HTTPException(status_code=403, detail="Not authorized to delete this reply")

    thread["replies"] = [r for r in thread["replies"] if r["reply_id"] != reply_id]
    return serialize_mongo(await save_thread(db, thread))


@router.post("/{thread_id}/replies/{reply_id}/reactions")
async def toggle_reaction_endpoint(
    thread_id: str,
    reply_id: str,
    payload: ReactionToggle,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    thread = await _require_thread(db, thread_id)
    reply = _require_reply(thread, reply_id)

    toggle_reaction(reply, user_id, payload.type)
    return serialize_mongo(await save_thread(db, thread))


@router.post("/{thread_id}/replies/{reply_id}/accept")
async def accept_answer_endpoint(
    thread_id: str,
    reply_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    thread = await _require_thread(db, thread_id)
    if thread["author"] != user_id:
        raise HTTPException(status_code=403, detail="Not authorized to accept answers")

    reply = _require_reply(thread, reply_id)
    accept_answer(thread, reply)
    return serialize_mongo(await save_thread(db, thread))
