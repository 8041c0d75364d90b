import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.ai.services import AIService
from learnhub.assignments.database import (
    apply_grade, create_assignment, delete_assignment, find_submission, get_assignment,
    list_course_assignments, list_student_submissions, save_assignment, upsert_submission,
)
from learnhub.assignments.models import (
    AssignmentCreate, AssignmentStatus, AssignmentUpdate, GradeCreate, SubmissionCreate,
)
from learnhub.courses.database import get_course, is_enrolled
from learnhub.database import serialize_many, serialize_mongo
from learnhub.dependencies import get_ai_service, get_current_user_id, get_db
from learnhub.notifications.database import NotificationType, SourceType, create_notification, notify_many

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Assignments"])


async def _require_assignment(db: AsyncIOMotorDatabase, assignment_id: str) -> dict:
    assignment = await get_assignment(db, assignment_id)
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return assignment


async def verify_assignment_instructor(db: AsyncIOMotorDatabase, assignment: dict, user_id: str, action: str) -> dict:
    course = await get_course(db, assignment["course_id"])
    if not course or course["instructor"] != user_id:
        raise HTTPException(status_code=403, detail=f"Not authorized to {action}")
    return course


async def advisory_review(ai: AIService, assignment: dict, content: str) -> dict:
    """AI grading / plagiarism hints; failures are logged and left out"""
    settings = assignment.get("ai_settings") or {}
    review = {}

    if settings.get("auto_grade"):
        try:
            review["grading"] = await ai.grade_assignment(content, assignment.get("rubric", []))
        except Exception as e:
            logger.warning("AI grading skipped for %s: %s", assignment["assignment_id"], e)

    if settings.get("plagiarism_check"):
        try:
            review["plagiarism"] = await ai.check_plagiarism(content)
        except Exception as e:
            logger.warning("Plagiarism check skipped for %s: %s", assignment["assignment_id"], e)

    return review

# ==================== ASSIGNMENT CRUD ====================


@router.get("/course/{course_id}")
async def list_course_assignments_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return serialize_many(await list_course_assignments(db, course_id))


@router.get("/student/submissions")
async def my_submissions_endpoint(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await list_student_submissions(db, user_id)


@router.get("/{assignment_id}")
async def get_assignment_endpoint(
    assignment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return serialize_mongo(await _require_assignment(db, assignment_id))


@router.post("", status_code=201)
async def create_assignment_endpoint(
    payload: AssignmentCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    course = await get_course(db, payload.course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    if course["instructor"] != user_id:
        raise HTTPException(status_code=403, detail="Not authorized to create assignments for this course")

    assignment = await create_assignment(db, payload.model_dump(), user_id)

    students = [s["student_id"] for s in course.get("enrolled_students", [])]
    await notify_many(
        db, students, NotificationType.NEW_ASSIGNMENT,
        assignment["assignment_id"], SourceType.ASSIGNMENT,
        message=f"New assignment in {course['title']}: {assignment['title']}",
        link=f"/assignments/{assignment['assignment_id']}",
    )

    logger.info("Assignment %s created for course %s", assignment["assignment_id"], course["course_id"])
    return serialize_mongo(assignment)


@router.put("/{assignment_id}")
async def update_assignment_endpoint(
    assignment_id: str,
    updates: AssignmentUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    assignment = await _require_assignment(db, assignment_id)
    await verify_assignment_instructor(db, assignment, user_id, "update this assignment")

    assignment.update(updates.model_dump(exclude_none=True))
    assignment = await save_assignment(db, assignment)
    return serialize_mongo(assignment)


@router.delete("/{assignment_id}")
async def delete_assignment_endpoint(
    assignment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    assignment = await _require_assignment(db, assignment_id)
    await verify_assignment_instructor(db, assignment, user_id, "delete this assignment")

    await delete_assignment(db, assignment)
    return {"message": "Assignment deleted"}

# ==================== SUBMISSIONS ====================


@router.post("/{assignment_id}/submit")
async def submit_assignment_endpoint(
    assignment_id: str,
    payload: SubmissionCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    ai: AIService = Depends(get_ai_service),
):
    assignment = await _require_assignment(db, assignment_id)

    if assignment.get("status") == AssignmentStatus.CLOSED.value:
        raise HTTPException(status_code=400, detail="Assignment is closed")

    course = await get_course(db, assignment["course_id"])
    if not course or not is_enrolled(course, user_id):
        raise HTTPException(status_code=403, detail="Not enrolled in this course")

    fields = payload.model_dump()
    review = await advisory_review(ai, assignment, payload.content)
    if review:
        fields["ai_review"] = review

    submission = upsert_submission(assignment, user_id, fields)
    await save_assignment(db, assignment)

    return {"message": "Assignment submitted successfully", "submission": submission}


@router.post("/{assignment_id}/submissions/{submission_id}/grade")
async def grade_submission_endpoint(
    assignment_id: str,
    submission_id: str,
    payload: GradeCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    assignment = await _require_assignment(db, assignment_id)
    await verify_assignment_instructor(db, assignment, user_id, "grade this assignment")

    submission = find_submission(assignment, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")

    apply_grade(submission, payload.score, payload.feedback, user_id)
    await save_assignment(db, assignment)

    await create_notification(
        db, submission["student_id"], NotificationType.ASSIGNMENT_GRADED,
        assignment_id, SourceType.ASSIGNMENT,
        message=f"Your submission for {assignment['title']} was graded",
        link=f"/assignments/{assignment_id}",
    )

    return {"message": "Submission graded successfully", "submission": submission}
