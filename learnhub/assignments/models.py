from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AssignmentType(str, Enum):
    ESSAY = "essay"
    CODING = "coding"
    QUIZ = "quiz"
    PROJECT = "project"
    OTHER = "other"


class AssignmentStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"


class SubmissionStatus(str, Enum):
    SUBMITTED = "submitted"
    GRADED = "graded"
    RETURNED = "returned"


class Attachment(BaseModel):
    filename: str
    url: str
    type: Optional[str] = None


class RubricItem(BaseModel):
    criterion: str
    description: Optional[str] = None
    points: float = 0
    weight: float = 1.0


class AISettings(BaseModel):
    auto_grade: bool = False
    plagiarism_check: bool = True
    grading_model: str = Field("basic", pattern="^(basic|advanced|custom)$")
    custom_instructions: Optional[str] = None


class AssignmentCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str
    description: str
    course_id: str
    lesson_id: Optional[str] = None
    type: AssignmentType
    due_date: datetime
    total_points: float = 100
    attachments: List[Attachment] = []
    rubric: List[RubricItem] = []
    ai_settings: AISettings = AISettings()


class AssignmentUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: Optional[str] = None
    description: Optional[str] = None
    lesson_id: Optional[str] = None
    type: Optional[AssignmentType] = None
    due_date: Optional[datetime] = None
    total_points: Optional[float] = None
    attachments: Optional[List[Attachment]] = None
    rubric: Optional[List[RubricItem]] = None
    ai_settings: Optional[AISettings] = None
    status: Optional[AssignmentStatus] = None


class SubmissionCreate(BaseModel):
    content: str = Field(..., min_length=1)
    attachments: List[Attachment] = []


class GradeCreate(BaseModel):
    score: float = Field(..., ge=0, le=100)
    feedback: Optional[str] = None
