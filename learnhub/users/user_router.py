import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.database import serialize_mongo
from learnhub.dependencies import get_current_user_id, get_db
from learnhub.users.database import build_user, find_existing_user, get_user, insert_user, update_preferences
from learnhub.users.models import UserCreate, UserPreferences

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


@router.post("", status_code=201)
async def create_user_endpoint(
    payload: UserCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if await find_existing_user(db, payload.clerk_id, payload.email):
        raise HTTPException(status_code=400, detail="User already exists")

    user = build_user(
        payload.clerk_id, payload.email, payload.first_name, payload.last_name,
        role=payload.role, preferences=payload.preferences.model_dump(),
    )
    await insert_user(db, user)

    logger.info("User %s created", payload.clerk_id)
    return serialize_mongo(user)


# /me routes must stay above /{clerk_id}
@router.get("/me")
async def get_me_endpoint(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return serialize_mongo(user)


@router.put("/me/preferences")
async def update_preferences_endpoint(
    preferences: UserPreferences,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Learning style, level and topics fed to recommendations and learning paths"""
    user = await update_preferences(db, user_id, preferences.model_dump())
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return serialize_mongo(user)


@router.get("/{clerk_id}")
async def get_user_endpoint(clerk_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    user = await get_user(db, clerk_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return serialize_mongo(user)
