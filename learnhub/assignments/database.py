from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.assignments.models import AssignmentStatus, SubmissionStatus
from learnhub.database import new_id, save_versioned, touch

# ==================== ASSIGNMENT CRUD ====================


async def create_assignment(db: AsyncIOMotorDatabase, data: dict, created_by: str) -> dict:
    now = datetime.utcnow()
    assignment = {
        **data,
        "assignment_id": new_id("ASG"),
        "status": AssignmentStatus.PUBLISHED.value,
        "created_by": created_by,
        "submissions": [],
        "version": 0,
        "created_at": now,
        "updated_at": now,
    }
    await db.assignments.insert_one(assignment)

    # Bump the course version so a stale course save cannot drop this reference
    await db.courses.update_one(
        {"course_id": assignment["course_id"]},
        {"$addToSet": {"assignments": assignment["assignment_id"]}, "$inc": {"version": 1}},
    )
    return assignment


async def get_assignment(db: AsyncIOMotorDatabase, assignment_id: str) -> Optional[dict]:
    return await db.assignments.find_one({"assignment_id": assignment_id})


async def list_course_assignments(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    cursor = db.assignments.find({"course_id": course_id}).sort("due_date", 1)
    return await cursor.to_list(length=None)


async def save_assignment(db: AsyncIOMotorDatabase, assignment: dict) -> dict:
    touch(assignment)
    return await save_versioned(db.assignments, "assignment_id", assignment)


async def delete_assignment(db: AsyncIOMotorDatabase, assignment: dict) -> None:
    await db.assignments.delete_one({"assignment_id": assignment["assignment_id"]})
    await db.courses.update_one(
        {"course_id": assignment["course_id"]},
        {"$pull": {"assignments": assignment["assignment_id"]}, "$inc": {"version": 1}},
    )


async def list_student_submissions(db: AsyncIOMotorDatabase, student_id: str) -> List[dict]:
    """Assignments the student submitted to, projected to their own submission"""
    cursor = db.assignments.find({"submissions.student_id": student_id})
    assignments = await cursor.to_list(length=None)

    return [
        {
            "assignment_id": a["assignment_id"],
            "title": a["title"],
            "course_id": a["course_id"],
            "submission": find_submission_by_student(a, student_id),
        }
        for a in assignments
    ]

# ==================== SUBMISSIONS ====================


def find_submission_by_student(assignment: dict, student_id: str) -> Optional[dict]:
    for submission in assignment.get("submissions", []):
        if submission.get("student_id") == student_id:
            return submission
    return None


def find_submission(assignment: dict, submission_id: str) -> Optional[dict]:
    for submission in assignment.get("submissions", []):
        if submission.get("submission_id") == submission_id:
            return submission
    return None


def upsert_submission(assignment: dict, student_id: str, fields: dict) -> dict:
    """At most one submission per student: merge onto the existing one or append"""
    incoming = {
        **fields,
        "student_id": student_id,
        "submitted_at": datetime.utcnow(),
        "status": SubmissionStatus.SUBMITTED.value,
    }

    existing = find_submission_by_student(assignment, student_id)
    if existing is not None:
        # A resubmission needs grading again
        existing.update(incoming, grade=None)
        return existing

    submission = {"submission_id": new_id("SUB"), "grade": None, **incoming}
    assignment.setdefault("submissions", []).append(submission)
    return submission


def apply_grade(submission: dict, score: float, feedback: Optional[str], grader_id: str) -> dict:
    submission["grade"] = {
        "score": score,
        "feedback": feedback,
        "grader_id": grader_id,
        "graded_at": datetime.utcnow(),
    }
    submission["status"] = SubmissionStatus.GRADED.value
    return submission
