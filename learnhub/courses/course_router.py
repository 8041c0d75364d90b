import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub import config
from learnhub.assignments.models import SubmissionStatus
from learnhub.auth.auth_utils import verify_optional_bearer_token
from learnhub.auth.identity_client import IdentityClient, IdentityProviderError, looks_like_provider_id
from learnhub.courses.database import (
    create_course, delete_course, find_enrollment, get_course, list_courses,
    list_enrolled_courses, save_course,
)
from learnhub.courses.models import CourseCreate, CourseUpdate
from learnhub.database import serialize_many, serialize_mongo
from learnhub.dependencies import get_current_user_id, get_db, get_identity_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Courses"])


async def verify_course_instructor(db: AsyncIOMotorDatabase, course_id: str, user_id: str, action: str) -> dict:
    course = await get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    if course["instructor"] != user_id:
        raise HTTPException(status_code=403, detail=f"Not authorized to {action}")

    return course


def resolve_course_creator(
    api_key: Optional[str],
    authorization: Optional[str],
    body_instructor: Optional[str],
) -> str:
    """
    Course creation accepts either the static API key (a trusted service
    naming the instructor in the body) or a bearer token (the caller is the
    instructor; any body value is ignored).
    """
    if api_key and config.COURSE_CREATION_API_KEY and api_key == config.COURSE_CREATION_API_KEY:
        logger.info("Course creation authenticated with API key")
        if not body_instructor:
            raise HTTPException(status_code=400, detail="Instructor ID is required.")
        return body_instructor

    claims = verify_optional_bearer_token(authorization)
    if claims is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required: provide a valid API key or bearer token.",
        )
    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Token has no subject")
    return claims["sub"]


async def instructor_details(identity: IdentityClient, instructor: Optional[str]) -> dict:
    if not instructor:
        return {"full_name": "No Instructor Assigned"}

    if not looks_like_provider_id(instructor):
        logger.warning("Instructor id %s is not an identity-provider id", instructor)
        return {"full_name": "Unknown Instructor"}

    try:
        profile = await identity.get_user(instructor)
    except IdentityProviderError as e:
        logger.warning("Instructor lookup failed: %s", e)
        return {"full_name": "Unknown Instructor"}

    return {
        "full_name": profile.get("full_name") or profile.get("username") or "N/A",
        "image_url": profile.get("image_url"),
    }

# ==================== COURSE CRUD ====================


@router.get("")
async def list_courses_endpoint(db: AsyncIOMotorDatabase = Depends(get_db)):
    courses = await list_courses(db)
    return serialize_many(courses)


@router.get("/enrolled")
async def list_my_enrolled_courses(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Enrolled courses with lesson counts and the caller's average grade"""
    courses = await list_enrolled_courses(db, user_id)

    results = []
    for course in courses:
        enrollment = find_enrollment(course, user_id) or {}
        assignments = await db.assignments.find({"course_id": course["course_id"]}).to_list(length=None)

        scores = []
        for assignment in assignments:
            for submission in assignment.get("submissions", []):
                grade = submission.get("grade") or {}
                if (submission.get("student_id") == user_id
                        and submission.get("status") == SubmissionStatus.GRADED.value
                        and grade.get("score") is not None):
                    scores.append(grade["score"])

        results.append({
            "course_id": course["course_id"],
            "title": course["title"],
            "description": course["description"],
            "progress": enrollment.get("progress", 0.0),
            "completed_lessons": len(enrollment.get("completed_lessons", [])),
            "total_lessons": len(course.get("lessons", [])),
            "average_grade": round(sum(scores) / len(scores), 2) if scores else "N/A",
        })

    return results


@router.get("/{course_id}")
async def get_course_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    identity: IdentityClient = Depends(get_identity_client),
):
    course = await get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    course["instructor_details"] = await instructor_details(identity, course.get("instructor"))
    return serialize_mongo(course)


@router.post("", status_code=201)
async def create_course_endpoint(
    course: CourseCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    x_api_key: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
):
    instructor_id = resolve_course_creator(x_api_key, authorization, course.instructor)

    created = await create_course(db, course.model_dump(mode="json"), instructor_id)
    logger.info("Course %s created by %s", created["course_id"], instructor_id)
    return serialize_mongo(created)


@router.put("/{course_id}")
async def update_course_endpoint(
    course_id: str,
    updates: CourseUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    course = await verify_course_instructor(db, course_id, user_id, "update this course")

    course.update(updates.model_dump(mode="json", exclude_none=True))
    course = await save_course(db, course)
    return serialize_mongo(course)


@router.delete("/{course_id}")
async def delete_course_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    await verify_course_instructor(db, course_id, user_id, "delete this course")

    await delete_course(db, course_id)
    logger.info("Course %s deleted by %s", course_id, user_id)
    return {"message": "Course deleted"}
