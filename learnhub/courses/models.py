from datetime import datetime
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field

# ==================== ENUMS ====================


class CourseLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CourseStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


LESSON_CONTENT_TYPES = ("text", "video", "quiz", "assignment", "mixed")

# ==================== COURSE MODELS ====================


class CourseCreate(BaseModel):
    title: str
    description: str
    category: str
    level: CourseLevel
    image_url: Optional[str] = None
    tags: List[str] = []
    status: CourseStatus = CourseStatus.DRAFT
    # Honoured only on the API-key path
    instructor: Optional[str] = None


class CourseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    level: Optional[CourseLevel] = None
    tags: Optional[List[str]] = None
    status: Optional[CourseStatus] = None


class RatingCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = None


class ProgressUpdate(BaseModel):
    lesson_id: str

# ==================== LESSON CONTENT (tagged union on `type`) ====================


class TextPayload(BaseModel):
    content: str = ""
    format: Literal["markdown", "html", "plain"] = "markdown"


class VideoPayload(BaseModel):
    url: str
    duration: Optional[int] = None
    provider: Literal["youtube", "vimeo", "custom"] = "youtube"


class QuizQuestion(BaseModel):
    question: str
    type: Literal["multiple_choice", "true_false", "short_answer"]
    options: List[str] = []
    correct_answer: Any = None
    explanation: Optional[str] = None
    points: int = 1


class QuizPayload(BaseModel):
    questions: List[QuizQuestion] = []
    passing_score: Optional[float] = None
    time_limit: Optional[int] = None


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: TextPayload


class VideoContent(BaseModel):
    type: Literal["video"] = "video"
    video: VideoPayload


class QuizContent(BaseModel):
    type: Literal["quiz"] = "quiz"
    quiz: Optional[QuizPayload] = None


class AssignmentContent(BaseModel):
    type: Literal["assignment"] = "assignment"


class MixedContent(BaseModel):
    type: Literal["mixed"] = "mixed"


LessonContent = Annotated[
    Union[TextContent, VideoContent, QuizContent, AssignmentContent, MixedContent],
    Field(discriminator="type"),
]


class LessonPayload(BaseModel):
    """Form-shaped lesson body; turned into a LessonContent by build_lesson_content"""
    title: Optional[str] = None
    duration: Optional[int] = None
    content_type: Optional[str] = None
    content: Optional[str] = None
    video_url: Optional[str] = None
    quiz: Optional[QuizPayload] = None


class Lesson(BaseModel):
    lesson_id: str
    title: str
    order: int
    duration: int = 30
    content: LessonContent
    created_at: datetime
    updated_at: Optional[datetime] = None
