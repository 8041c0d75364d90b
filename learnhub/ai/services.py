"""
AI advisory service backed by Gemini.

Every method builds a prompt from structured input, sends it to the model and
parses the reply as JSON. There is no retry and no schema validation beyond
the parse; callers decide whether a failure matters.
"""

import json
import logging
import re
from typing import List, Optional

import google.generativeai as genai

from learnhub import config
from learnhub.ai.prompts import PROMPTS

logger = logging.getLogger(__name__)


class AIResponseError(ValueError):
    """Model reply did not contain a parseable JSON object"""


def parse_json_reply(raw_output: str) -> dict:
    # Find the first '{' and the last '}' to skip prose and ```json fences
    match = re.search(r"\{.*\}", raw_output or "", re.DOTALL)
    if not match:
        raise AIResponseError(f"No JSON found in model output: {raw_output!r:.200}")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AIResponseError(f"Malformed JSON in model output: {e}") from e


def _preferences(user: Optional[dict]) -> dict:
    prefs = (user or {}).get("preferences") or {}
    return {
        "learning_style": prefs.get("learning_style") or "unspecified",
        "difficulty_level": prefs.get("difficulty_level") or "beginner",
        "topics": ", ".join(prefs.get("topics") or []) or "none",
        "enrolled_count": len((user or {}).get("enrolled_courses") or []),
    }


class AIService:
    def __init__(self, model):
        self.model = model

    @classmethod
    def from_config(cls) -> "AIService":
        genai.configure(api_key=config.GOOGLE_AI_API_KEY)
        return cls(genai.GenerativeModel(config.GEMINI_MODEL))

    async def _run(self, prompt: str) -> dict:
        response = await self.model.generate_content_async(prompt)
        return parse_json_reply(response.text)

    async def get_course_recommendations(self, user: dict, available_courses: List[dict]) -> dict:
        courses = "\n".join(
            f"- [{c.get('course_id')}] {c.get('title')} | Level: {c.get('level')} | "
            f"Category: {c.get('category')} | Tags: {', '.join(c.get('tags') or [])}"
            for c in available_courses
        )
        prompt = PROMPTS["recommend"].format(courses=courses or "none", **_preferences(user))
        return await self._run(prompt)

    async def analyze_content(self, content: str, content_type: str = "text") -> dict:
        prompt = PROMPTS["analyze"].format(content=content, content_type=content_type)
        return await self._run(prompt)

    async def grade_assignment(self, submission_content: str, rubric: List[dict]) -> dict:
        rubric_text = "\n".join(
            f"- {r.get('criterion')} | Description: {r.get('description') or ''} | "
            f"Points: {r.get('points')} | Weight: {r.get('weight')}"
            for r in rubric
        )
        prompt = PROMPTS["grade"].format(
            submission=json.dumps(submission_content),
            rubric=rubric_text or "No rubric provided; grade on overall quality out of 100.",
        )
        return await self._run(prompt)

    async def optimize_learning_path(self, user: dict, course: dict) -> dict:
        lessons = "\n".join(
            f"- {lesson.get('lesson_id')}: {lesson.get('title')}"
            for lesson in course.get("lessons") or []
        )
        prompt = PROMPTS["learning_path"].format(
            course_title=course.get("title"),
            lessons=lessons or "none",
            **_preferences(user),
        )
        return await self._run(prompt)

    async def check_plagiarism(self, content: str, content_type: str = "text") -> dict:
        prompt = PROMPTS["plagiarism"].format(content=content, content_type=content_type)
        return await self._run(prompt)
