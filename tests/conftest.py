import asyncio
import base64
import os
import uuid
from datetime import datetime, timedelta

import pytest

# Set test environment variables before learnhub.config is imported
os.environ["CLERK_JWT_ALGORITHM"] = "HS256"
os.environ["CLERK_JWT_KEY"] = "test-session-secret"
os.environ["CLERK_WEBHOOK_SECRET"] = "whsec_" + base64.b64encode(b"test-webhook-secret").decode()
os.environ["COURSE_CREATION_API_KEY"] = "test-course-api-key"
os.environ["GOOGLE_AI_API_KEY"] = "test-google-key"
os.environ["LOG_LEVEL"] = "WARNING"

from fastapi.testclient import TestClient
from jose import jwt
from mongomock_motor import AsyncMongoMockClient

from learnhub.auth.identity_client import IdentityProviderError
from learnhub.database import create_indexes
from learnhub.dependencies import get_ai_service, get_db, get_identity_client
from learnhub.main import app

INSTRUCTOR = "user_instructor"
STUDENT = "user_student"
OTHER = "user_other"


def make_token(sub, expires_in=3600):
    claims = {"sub": sub, "exp": datetime.utcnow() + timedelta(seconds=expires_in)}
    return jwt.encode(claims, os.environ["CLERK_JWT_KEY"], algorithm="HS256")


def auth(sub):
    return {"Authorization": f"Bearer {make_token(sub)}"}


class FakeIdentityClient:
    def __init__(self, profiles=None):
        self.profiles = profiles or {}
        self.calls = []

    async def get_user(self, user_id):
        self.calls.append(user_id)
        if user_id not in self.profiles:
            raise IdentityProviderError(f"Profile lookup failed for {user_id}")
        return self.profiles[user_id]

    async def aclose(self):
        pass


class FakeAIService:
    def __init__(self):
        self.fail = False
        self.calls = []
        self.users = []

    async def _answer(self, name, result):
        self.calls.append(name)
        if self.fail:
            raise RuntimeError("model unavailable")
        return result

    async def get_course_recommendations(self, user, available_courses):
        self.users.append(user)
        recs = [{"course_id": c["course_id"], "confidence": 0.9, "reason": "match"} for c in available_courses]
        return await self._answer("recommend", {"recommendations": recs})

    async def analyze_content(self, content, content_type="text"):
        return await self._answer("analyze", {"complexity": "beginner", "key_concepts": ["python"]})

    async def grade_assignment(self, submission_content, rubric):
        return await self._answer("grade", {"score": 88, "confidence": 0.7, "feedback": "Solid"})

    async def optimize_learning_path(self, user, course):
        order = [lesson["lesson_id"] for lesson in course.get("lessons", [])]
        return await self._answer("learning_path", {"suggested_order": order})

    async def check_plagiarism(self, content, content_type="text"):
        return await self._answer("plagiarism", {"plagiarism_score": 0.05, "originality_score": 0.95})


@pytest.fixture(scope="function")
def db():
    """Fresh in-memory database per test"""
    return AsyncMongoMockClient()[f"learnhub_test_{uuid.uuid4().hex[:8]}"]


@pytest.fixture(scope="function")
def indexed_db(db):
    """The test database with the production indexes applied"""
    asyncio.run(create_indexes(db))
    return db


@pytest.fixture(scope="function")
def identity():
    return FakeIdentityClient({
        INSTRUCTOR: {"full_name": "Ada Lovelace", "username": "ada", "image_url": "https://img/ada.png"},
        STUDENT: {"full_name": "Sam Student", "username": "sam", "image_url": None},
    })


@pytest.fixture(scope="function")
def ai():
    return FakeAIService()


@pytest.fixture(scope="function")
def client(db, identity, ai):
    """Test client with overridden store, identity provider and AI service"""

    async def override_get_db():
        return db

    async def override_get_identity_client():
        return identity

    async def override_get_ai_service():
        return ai

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_client] = override_get_identity_client
    app.dependency_overrides[get_ai_service] = override_get_ai_service

    # Not used as a context manager so the startup hook (real Mongo, Gemini) never runs
    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def course(client):
    """A published course owned by INSTRUCTOR"""
    response = client.post(
        "/api/courses",
        json={
            "title": "Intro to Python",
            "description": "Basics",
            "category": "programming",
            "level": "beginner",
            "status": "published",
        },
        headers=auth(INSTRUCTOR),
    )
    assert response.status_code == 201
    return response.json()


def add_text_lesson(client, course_id, title="Lesson", content="Body"):
    response = client.post(
        f"/api/courses/{course_id}/lessons",
        json={"title": title, "content_type": "text", "content": content},
        headers=auth(INSTRUCTOR),
    )
    assert response.status_code == 201
    return response.json()


def enroll(client, course_id, user=STUDENT):
    response = client.post(f"/api/courses/{course_id}/enroll", headers=auth(user))
    assert response.status_code == 200
    return response.json()
