from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.database import new_id

DEFAULT_PREFERENCES = {"learning_style": None, "difficulty_level": "beginner", "topics": []}


def build_user(clerk_id: str, email: Optional[str], first_name: Optional[str] = None,
               last_name: Optional[str] = None, role: str = "student",
               preferences: Optional[dict] = None) -> dict:
    now = datetime.utcnow()
    user = {
        "clerk_id": clerk_id,
        "first_name": first_name,
        "last_name": last_name,
        "role": role,
        "enrolled_courses": [],
        "teaching_courses": [],
        "progress": [],
        "preferences": preferences or dict(DEFAULT_PREFERENCES),
        "created_at": now,
        "updated_at": now,
    }
    # Absent rather than null: the unique email index is sparse
    if email:
        user["email"] = email
    return user


async def get_user(db: AsyncIOMotorDatabase, clerk_id: str) -> Optional[dict]:
    return await db.users.find_one({"clerk_id": clerk_id})


async def find_existing_user(db: AsyncIOMotorDatabase, clerk_id: str, email: str) -> Optional[dict]:
    return await db.users.find_one({"$or": [{"clerk_id": clerk_id}, {"email": email}]})


async def email_taken_by_other(db: AsyncIOMotorDatabase, email: Optional[str], clerk_id: str) -> bool:
    if not email:
        return False
    owner = await db.users.find_one({"email": email, "clerk_id": {"$ne": clerk_id}})
    return owner is not None


async def insert_user(db: AsyncIOMotorDatabase, user: dict) -> dict:
    await db.users.insert_one(user)
    return user


async def upsert_profile(db: AsyncIOMotorDatabase, clerk_id: str, email: Optional[str],
                         first_name: Optional[str], last_name: Optional[str]) -> None:
    now = datetime.utcnow()
    update = {
        "$set": {
            "first_name": first_name,
            "last_name": last_name,
            "updated_at": now,
        },
        "$setOnInsert": {
            "role": "student",
            "enrolled_courses": [],
            "teaching_courses": [],
            "progress": [],
            "preferences": dict(DEFAULT_PREFERENCES),
            "created_at": now,
        },
    }
    if email:
        update["$set"]["email"] = email
    else:
        update["$unset"] = {"email": ""}

    await db.users.update_one({"clerk_id": clerk_id}, update, upsert=True)


async def update_preferences(db: AsyncIOMotorDatabase, clerk_id: str, preferences: dict) -> Optional[dict]:
    result = await db.users.update_one(
        {"clerk_id": clerk_id},
        {"$set": {"preferences": preferences, "updated_at": datetime.utcnow()}},
    )
    if result.matched_count == 0:
        return None
    return await get_user(db, clerk_id)


async def record_course_progress(db: AsyncIOMotorDatabase, clerk_id: str, course_id: str,
                                 completed_lessons: List[str]) -> None:
    """Mirror a course's completed lessons onto the user's progress records"""
    now = datetime.utcnow()
    result = await db.users.update_one(
        {"clerk_id": clerk_id, "progress.course_id": course_id},
        {"$set": {
            "progress.$.completed_lessons": completed_lessons,
            "progress.$.last_accessed": now,
        }},
    )
    if result.matched_count:
        return

    await db.users.update_one(
        {"clerk_id": clerk_id, "progress.course_id": {"$ne": course_id}},
        {"$push": {"progress": {
            "course_id": course_id,
            "completed_lessons": completed_lessons,
            "last_accessed": now,
        }}},
    )


async def delete_user(db: AsyncIOMotorDatabase, clerk_id: str) -> bool:
    result = await db.users.delete_one({"clerk_id": clerk_id})
    return result.deleted_count > 0


async def save_contact(db: AsyncIOMotorDatabase, name: str, email: str, message: str) -> dict:
    doc = {
        "contact_id": new_id("CNT"),
        "name": name,
        "email": email,
        "message": message,
        "created_at": datetime.utcnow(),
    }
    await db.contacts.insert_one(doc)
    return doc
