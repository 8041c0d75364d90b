import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field

from learnhub.ai.services import AIService
from learnhub.courses.database import get_course, list_courses
from learnhub.dependencies import get_ai_service, get_current_user_id, get_db
from learnhub.users.database import get_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["AI"])


class AnalyzeRequest(BaseModel):
    content: str = Field(..., min_length=1)
    content_type: str = "text"


@router.get("/recommendations")
async def recommendations_endpoint(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    ai: AIService = Depends(get_ai_service),
):
    user = await get_user(db, user_id) or {"clerk_id": user_id}
    courses = await list_courses(db)

    try:
        result = await ai.get_course_recommendations(user, courses)
    except Exception as e:
        logger.warning("Recommendations failed for %s: %s", user_id, e)
        raise HTTPException(status_code=502, detail="AI service unavailable")

    return {"status": "success", "data": result}


@router.get("/learning-path/{course_id}")
async def learning_path_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    ai: AIService = Depends(get_ai_service),
):
    course = await get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    user = await get_user(db, user_id) or {"clerk_id": user_id}

    try:
        result = await ai.optimize_learning_path(user, course)
    except Exception as e:
        logger.warning("Learning path failed for %s on %s: %s", user_id, course_id, e)
        raise HTTPException(status_code=502, detail="AI service unavailable")

    return {"status": "success", "data": result}


@router.post("/analyze-content")
async def analyze_content_endpoint(
    payload: AnalyzeRequest,
    user_id: str = Depends(get_current_user_id),
    ai: AIService = Depends(get_ai_service),
):
    try:
        result = await ai.analyze_content(payload.content, payload.content_type)
    except Exception as e:
        logger.warning("Content analysis failed: %s", e)
        raise HTTPException(status_code=502, detail="AI service unavailable")

    return {"status": "success", "data": result}
