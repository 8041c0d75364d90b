import logging
import uuid
from datetime import datetime
from typing import Iterable, List, Optional

from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase

from learnhub import config

logger = logging.getLogger(__name__)


def create_client() -> AsyncIOMotorClient:
    """Bounded connection pool; motor connects lazily on first operation"""
    return AsyncIOMotorClient(
        config.MONGO_URL,
        maxPoolSize=config.MONGO_MAX_POOL_SIZE,
        serverSelectionTimeoutMS=config.MONGO_SERVER_SELECTION_TIMEOUT_MS,
    )


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12].upper()}"


def serialize_mongo(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return doc


def serialize_many(docs: Iterable[dict]) -> List[dict]:
    return [serialize_mongo(doc) for doc in docs]


async def save_versioned(
    collection: AsyncIOMotorCollection,
    id_field: str,
    doc: dict,
    skip_fields: Iterable[str] = (),
) -> dict:
    """
    Write back a document that was read, mutated in memory, and must not
    overwrite a concurrent save. Raises 409 when the stored version moved on.
    Documents stored before versioning have no field; their first save starts it at 1.
    """
    version = doc.get("version")
    skipped = {"_id", "version", *skip_fields}
    updates = {k: v for k, v in doc.items() if k not in skipped}

    guard = {"$exists": False} if version is None else version
    result = await collection.update_one(
        {id_field: doc[id_field], "version": guard},
        {"$set": updates, "$inc": {"version": 1}},
    )
    if result.matched_count == 0:
        logger.warning("Version conflict on %s %s (version %s)", collection.name, doc[id_field], version)
        raise HTTPException(
            status_code=409,
            detail="Document was modified concurrently, please retry",
        )

    doc["version"] = (version or 0) + 1
    return doc


def touch(doc: dict, *fields: str) -> dict:
    now = datetime.utcnow()
    for field in fields or ("updated_at",):
        doc[field] = now
    return doc


# ==================== DATABASE INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create MongoDB indexes"""
    await db.users.create_index("clerk_id", unique=True)
    # Webhook mirrors may arrive without an email; those documents omit the field
    await db.users.create_index("email", unique=True, sparse=True)

    await db.courses.create_index("course_id", unique=True)
    await db.courses.create_index("enrolled_students.student_id")
    await db.courses.create_index("instructor")

    await db.assignments.create_index("assignment_id", unique=True)
    await db.assignments.create_index("course_id")
    await db.assignments.create_index("submissions.student_id")

    await db.discussions.create_index("thread_id", unique=True)
    await db.discussions.create_index([("course_id", 1), ("is_pinned", -1), ("last_activity", -1)])

    await db.notifications.create_index("notification_id", unique=True)
    await db.notifications.create_index([("user_id", 1), ("created_at", -1)])

    logger.info("LearnHub indexes created")
