from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class UserPreferences(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    learning_style: Optional[str] = None
    difficulty_level: DifficultyLevel = DifficultyLevel.BEGINNER
    topics: List[str] = []


class UserCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    clerk_id: str = Field(..., min_length=1)
    email: EmailStr
    role: UserRole = UserRole.STUDENT
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    preferences: UserPreferences = UserPreferences()


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    message: str = Field(..., min_length=1)
