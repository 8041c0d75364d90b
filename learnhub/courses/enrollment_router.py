"""
Enrollment, lesson progress, ratings and completion certificates
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.auth.identity_client import IdentityClient, IdentityProviderError
from learnhub.courses.database import (
    add_enrollment, find_enrollment, find_lesson, get_course, mark_lesson_complete,
    save_course, upsert_rating,
)
from learnhub.courses.models import ProgressUpdate, RatingCreate
from learnhub.dependencies import get_current_user_id, get_db, get_identity_client
from learnhub.users.database import record_course_progress

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Enrollments"])


async def _require_course(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    course = await get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.post("/{course_id}/enroll")
async def enroll_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    course = await _require_course(db, course_id)

    if not add_enrollment(course, user_id):
        raise HTTPException(status_code=400, detail="Already enrolled in this course")

    await save_course(db, course)
    await db.users.update_one(
        {"clerk_id": user_id},
        {"$addToSet": {"enrolled_courses": course_id}},
    )

    logger.info("User %s enrolled in %s", user_id, course_id)
    return {"message": "Successfully enrolled in course"}


@router.post("/{course_id}/progress")
async def update_progress_endpoint(
    course_id: str,
    payload: ProgressUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    course = await _require_course(db, course_id)

    enrollment = find_enrollment(course, user_id)
    if enrollment is None:
        raise HTTPException(status_code=400, detail="Not enrolled in this course")

    if not find_lesson(course, payload.lesson_id):
        raise HTTPException(status_code=404, detail="Lesson not found in course")

    if mark_lesson_complete(course, enrollment, payload.lesson_id):
        await save_course(db, course)
        await record_course_progress(db, user_id, course_id, enrollment["completed_lessons"])

    return {
        "message": "Progress updated successfully",
        "progress": enrollment["progress"],
        "completed_lessons": enrollment["completed_lessons"],
        "completion_date": enrollment.get("completion_date"),
    }


@router.post("/{course_id}/ratings")
async def rate_course_endpoint(
    course_id: str,
    payload: RatingCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    course = await _require_course(db, course_id)

    if find_enrollment(course, user_id) is None:
        raise HTTPException(status_code=403, detail="Only enrolled students can rate this course")

    upsert_rating(course, user_id, payload.rating, payload.review)
    course = await save_course(db, course)
    return {"average_rating": course["average_rating"], "ratings": len(course["ratings"])}


@router.get("/{course_id}/certificate")
async def certificate_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    identity: IdentityClient = Depends(get_identity_client),
):
    """Certificate data; rendering the document is left to the client"""
    course = await _require_course(db, course_id)

    enrollment = find_enrollment(course, user_id)
    if not enrollment or not enrollment.get("completion_date"):
        raise HTTPException(status_code=403, detail="Course not completed or not enrolled.")

    try:
        profile = await identity.get_user(user_id)
        student_name = profile.get("full_name") or profile.get("username") or "Student"
    except IdentityProviderError as e:
        logger.warning("Certificate name lookup failed: %s", e)
        student_name = "Student"

    return {
        "message": "Certificate data fetched",
        "data": {
            "student_name": student_name,
            "course_title": course["title"],
            "completion_date": enrollment["completion_date"],
        },
    }
