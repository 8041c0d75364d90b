import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from learnhub.dependencies import get_db
from learnhub.users.database import save_contact
from learnhub.users.models import ContactCreate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Contact"])


@router.post("", status_code=201)
async def contact_endpoint(payload: ContactCreate, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        await save_contact(db, payload.name, payload.email, payload.message)
    except PyMongoError as e:
        logger.error("Contact message not stored: %s", e)
        return JSONResponse(
            status_code=500,
            content={"message": "Something went wrong, please try again", "color": "red"},
        )

    return {"message": "Thank you, we will contact you soon", "color": "green"}
