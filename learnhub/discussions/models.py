from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from learnhub.assignments.models import Attachment


class ThreadCategory(str, Enum):
    GENERAL = "general"
    QUESTION = "question"
    DISCUSSION = "discussion"
    ANNOUNCEMENT = "announcement"


class ReactionType(str, Enum):
    LIKE = "like"
    HELPFUL = "helpful"
    CONFUSED = "confused"


class ThreadCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    course_id: str
    tags: List[str] = []
    category: ThreadCategory = ThreadCategory.GENERAL
    attachments: List[Attachment] = []


class ThreadUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    category: Optional[ThreadCategory] = None
    is_pinned: Optional[bool] = None
    is_locked: Optional[bool] = None


class ReplyCreate(BaseModel):
    content: str = Field(..., min_length=1)
    attachments: List[Attachment] = []


class ReplyUpdate(BaseModel):
    content: Optional[str] = None
    attachments: Optional[List[Attachment]] = None


class ReactionToggle(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    type: ReactionType
