from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.database import serialize_many, serialize_mongo
from learnhub.dependencies import get_current_user_id, get_db
from learnhub.notifications.database import list_notifications, mark_read

router = APIRouter(tags=["Notifications"])


@router.get("")
async def list_notifications_endpoint(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Caller's notifications, newest first"""
    return serialize_many(await list_notifications(db, user_id))


@router.put("/{notification_id}/read")
async def mark_read_endpoint(
    notification_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    notification = await mark_read(db, notification_id, user_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found or does not belong to user")

    return {"message": "Notification marked as read", "notification": serialize_mongo(notification)}
