from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.courses.course_router import verify_course_instructor
from learnhub.courses.database import (
    LessonValidationError, build_lesson, find_lesson, replace_lesson, save_course, sync_all_progress,
)
from learnhub.courses.models import LessonPayload
from learnhub.dependencies import get_current_user_id, get_db

router = APIRouter(tags=["Lessons"])


@router.post("/{course_id}/lessons", status_code=201)
async def add_lesson(
    course_id: str,
    payload: LessonPayload,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    course = await verify_course_instructor(db, course_id, user_id, "add lessons to this course")

    try:
        lesson = build_lesson(payload, order=len(course["lessons"]))
    except LessonValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # get_course already adapted legacy lessons, so this write persists the migration
    course["lessons"].append(lesson)
    sync_all_progress(course)
    await save_course(db, course)
    return lesson


@router.put("/{course_id}/lessons/{lesson_id}")
async def update_lesson(
    course_id: str,
    lesson_id: str,
    payload: LessonPayload,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    course = await verify_course_instructor(db, course_id, user_id, "update lessons in this course")

    lesson = find_lesson(course, lesson_id)
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found in course")

    try:
        replace_lesson(lesson, payload)
    except LessonValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await save_course(db, course)
    return lesson


@router.delete("/{course_id}/lessons/{lesson_id}")
async def delete_lesson(
    course_id: str,
    lesson_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    course = await verify_course_instructor(db, course_id, user_id, "delete lessons from this course")

    if not find_lesson(course, lesson_id):
        raise HTTPException(status_code=404, detail="Lesson not found in course")

    course["lessons"] = [lesson for lesson in course["lessons"] if lesson["lesson_id"] != lesson_id]
    sync_all_progress(course)
    await save_course(db, course)
    return {"message": "Lesson deleted successfully"}
