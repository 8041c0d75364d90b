from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.courses.models import (
    LESSON_CONTENT_TYPES, AssignmentContent, Lesson, LessonPayload, MixedContent,
    QuizContent, TextContent, TextPayload, VideoContent, VideoPayload,
)
from learnhub.database import new_id, save_versioned, touch


class LessonValidationError(ValueError):
    pass

# ==================== COURSE CRUD ====================


async def create_course(db: AsyncIOMotorDatabase, course_data: dict, instructor_id: str) -> dict:
    now = datetime.utcnow()
    course = {
        "course_id": new_id("COURSE"),
        "title": course_data["title"],
        "description": course_data["description"],
        "image_url": course_data.get("image_url"),
        "instructor": instructor_id,
        "category": course_data["category"],
        "level": course_data["level"],
        "tags": course_data.get("tags", []),
        "status": course_data.get("status") or "draft",
        "lessons": [],
        "enrolled_students": [],
        "assignments": [],
        "ratings": [],
        "average_rating": 0.0,
        "version": 0,
        "created_at": now,
        "updated_at": now,
    }

    await db.courses.insert_one(course)
    await db.users.update_one(
        {"clerk_id": instructor_id},
        {"$addToSet": {"teaching_courses": course["course_id"]}},
    )
    return course


async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    course = await db.courses.find_one({"course_id": course_id})
    if course:
        course["lessons"] = [normalize_lesson(lesson) for lesson in course.get("lessons", [])]
    return course


async def list_courses(db: AsyncIOMotorDatabase) -> List[dict]:
    """All courses, lesson bodies omitted"""
    courses = await db.courses.find({}).sort("created_at", -1).to_list(length=None)
    for course in courses:
        course["lessons"] = [
            {k: v for k, v in lesson.items() if k != "content"}
            for lesson in course.get("lessons", [])
        ]
    return courses


async def save_course(db: AsyncIOMotorDatabase, course: dict) -> dict:
    """Recompute derived fields and write back under the version guard"""
    course["average_rating"] = average_rating(course.get("ratings", []))
    touch(course)
    return await save_versioned(db.courses, "course_id", course)


async def delete_course(db: AsyncIOMotorDatabase, course_id: str) -> bool:
    result = await db.courses.delete_one({"course_id": course_id})
    await db.users.update_many(
        {"teaching_courses": course_id},
        {"$pull": {"teaching_courses": course_id}},
    )
    return result.deleted_count > 0


async def list_enrolled_courses(db: AsyncIOMotorDatabase, student_id: str) -> List[dict]:
    cursor = db.courses.find({"enrolled_students.student_id": student_id})
    return await cursor.to_list(length=None)


def average_rating(ratings: List[dict]) -> float:
    if not ratings:
        return 0.0
    return sum(r["rating"] for r in ratings) / len(ratings)


def upsert_rating(course: dict, user_id: str, rating: int, review: Optional[str]) -> dict:
    """One rating per user; a second rating replaces the first"""
    ratings = [r for r in course.get("ratings", []) if r.get("user") != user_id]
    ratings.append({
        "user": user_id,
        "rating": rating,
        "review": review,
        "date": datetime.utcnow(),
    })
    course["ratings"] = ratings
    return course

# ==================== ENROLLMENT & PROGRESS ====================


def find_enrollment(course: dict, student_id: str) -> Optional[dict]:
    for student in course.get("enrolled_students", []):
        if student.get("student_id") == student_id:
            return student
    return None


def is_enrolled(course: dict, student_id: str) -> bool:
    return find_enrollment(course, student_id) is not None


def is_participant(course: dict, user_id: str) -> bool:
    return course.get("instructor") == user_id or is_enrolled(course, user_id)


def add_enrollment(course: dict, student_id: str) -> bool:
    """Add-if-absent; False when the student is already enrolled"""
    if is_enrolled(course, student_id):
        return False

    course.setdefault("enrolled_students", []).append({
        "student_id": student_id,
        "progress": 0.0,
        "completed_lessons": [],
        "last_accessed": datetime.utcnow(),
        "completion_date": None,
    })
    return True


def recompute_progress(enrollment: dict, total_lessons: int) -> dict:
    completed = len(set(enrollment.get("completed_lessons", [])))
    enrollment["progress"] = (completed / total_lessons) * 100 if total_lessons else 0.0

    # Stamped once, the first time every lesson is complete
    if total_lessons and completed == total_lessons and enrollment.get("completion_date") is None:
        enrollment["completion_date"] = datetime.utcnow()
    return enrollment


def mark_lesson_complete(course: dict, enrollment: dict, lesson_id: str) -> bool:
    """Returns False when the lesson was already complete (no state change)"""
    completed = enrollment.setdefault("completed_lessons", [])
    if lesson_id in completed:
        return False

    completed.append(lesson_id)
    enrollment["last_accessed"] = datetime.utcnow()
    recompute_progress(enrollment, len(course.get("lessons", [])))
    return True

# ==================== LESSONS ====================


def normalize_lesson(lesson: dict) -> dict:
    """Read-time adapter for lessons stored before content became a typed union"""
    content = lesson.get("content")
    if isinstance(content, dict) and content.get("type"):
        return lesson

    legacy_text = content if isinstance(content, str) else ""
    return {
        **lesson,
        "content": {"type": "text", "text": {"content": legacy_text, "format": "markdown"}},
    }


def find_lesson(course: dict, lesson_id: str) -> Optional[dict]:
    for lesson in course.get("lessons", []):
        if lesson.get("lesson_id") == lesson_id:
            return lesson
    return None


def build_lesson_content(payload: LessonPayload) -> dict:
    """
    Validate a lesson body and build its content union.
    Text needs non-empty content, video a non-empty URL; quiz, assignment
    and mixed lessons are accepted with just their type.
    """
    if not payload.title or not payload.title.strip():
        raise LessonValidationError("Lesson title is required.")

    content_type = payload.content_type
    if content_type == "text" and (not payload.content or not payload.content.strip()):
        raise LessonValidationError("Lesson content is required for text lessons.")
    if content_type == "video" and (not payload.video_url or not payload.video_url.strip()):
        raise LessonValidationError("Lesson video URL is required for video lessons.")
    if content_type not in LESSON_CONTENT_TYPES:
        raise LessonValidationError("Invalid content type provided.")

    duration = payload.duration or 30
    if content_type == "text":
        content = TextContent(text=TextPayload(content=payload.content.strip()))
    elif content_type == "video":
        content = VideoContent(video=VideoPayload(url=payload.video_url.strip(), duration=duration))
    elif content_type == "quiz":
        content = QuizContent(quiz=payload.quiz)
    elif content_type == "assignment":
        content = AssignmentContent()
    else:
        content = MixedContent()

    return content.model_dump(exclude_none=True)


def build_lesson(payload: LessonPayload, order: int) -> dict:
    lesson = Lesson(
        lesson_id=new_id("LESS"),
        title=payload.title.strip(),
        order=order,
        duration=payload.duration or 30,
        content=build_lesson_content(payload),
        created_at=datetime.utcnow(),
    )
    return lesson.model_dump(exclude_none=True)


def replace_lesson(lesson: dict, payload: LessonPayload) -> dict:
    """Edit in place; the content object is rebuilt, never merged"""
    content = build_lesson_content(payload)
    lesson["title"] = payload.title.strip()
    lesson["duration"] = payload.duration or 30
    lesson["content"] = content
    lesson["updated_at"] = datetime.utcnow()
    return lesson


def sync_all_progress(course: dict) -> dict:
    """After the lesson list changes, drop stale completions and recompute"""
    lesson_ids = {lesson["lesson_id"] for lesson in course.get("lessons", [])}
    for enrollment in course.get("enrolled_students", []):
        enrollment["completed_lessons"] = [
            lid for lid in enrollment.get("completed_lessons", []) if lid in lesson_ids
        ]
        recompute_progress(enrollment, len(lesson_ids))
    return course
