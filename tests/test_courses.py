import asyncio

from conftest import INSTRUCTOR, OTHER, STUDENT, add_text_lesson, auth, enroll


class TestCourseCreation:
    def test_bearer_caller_is_instructor(self, client):
        response = client.post(
            "/api/courses",
            json={
                "title": "T", "description": "D", "category": "c", "level": "advanced",
                "instructor": "user_someone_else",
            },
            headers=auth(INSTRUCTOR),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["instructor"] == INSTRUCTOR
        assert data["status"] == "draft"
        assert data["course_id"].startswith("COURSE_")
        assert data["average_rating"] == 0
        assert "_id" not in data

    def test_api_key_takes_instructor_from_body(self, client):
        response = client.post(
            "/api/courses",
            json={"title": "T", "description": "D", "category": "c", "level": "beginner", "instructor": OTHER},
            headers={"X-API-Key": "test-course-api-key"},
        )
        assert response.status_code == 201
        assert response.json()["instructor"] == OTHER

    def test_api_key_without_instructor(self, client):
        response = client.post(
            "/api/courses",
            json={"title": "T", "description": "D", "category": "c", "level": "beginner"},
            headers={"X-API-Key": "test-course-api-key"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Instructor ID is required."

    def test_no_credentials(self, client):
        response = client.post(
            "/api/courses",
            json={"title": "T", "description": "D", "category": "c", "level": "beginner", "instructor": OTHER},
        )
        assert response.status_code == 401

    def test_wrong_api_key_falls_back_to_bearer(self, client):
        response = client.post(
            "/api/courses",
            json={"title": "T", "description": "D", "category": "c", "level": "beginner", "instructor": OTHER},
            headers={"X-API-Key": "nope"},
        )
        assert response.status_code == 401

    def test_invalid_level_is_400(self, client):
        response = client.post(
            "/api/courses",
            json={"title": "T", "description": "D", "category": "c", "level": "expert"},
            headers=auth(INSTRUCTOR),
        )
        assert response.status_code == 400
        fields = [e["field"] for e in response.json()["detail"]]
        assert "body.level" in fields

    def test_expired_token(self, client):
        from conftest import make_token

        response = client.post(
            "/api/courses",
            json={"title": "T", "description": "D", "category": "c", "level": "beginner"},
            headers={"Authorization": f"Bearer {make_token(INSTRUCTOR, expires_in=-60)}"},
        )
        assert response.status_code == 401


class TestCourseReads:
    def test_list_omits_lesson_content(self, client, course):
        add_text_lesson(client, course["course_id"], content="secret body")

        response = client.get("/api/courses")
        assert response.status_code == 200
        courses = response.json()
        assert len(courses) == 1
        assert courses[0]["lessons"][0]["title"] == "Lesson"
        assert "content" not in courses[0]["lessons"][0]

    def test_get_course_with_instructor_details(self, client, course, identity):
        response = client.get(f"/api/courses/{course['course_id']}")
        assert response.status_code == 200
        details = response.json()["instructor_details"]
        assert details["full_name"] == "Ada Lovelace"
        assert details["image_url"] == "https://img/ada.png"

    def test_instructor_lookup_failure_is_placeholder(self, client, identity):
        created = client.post(
            "/api/courses",
            json={"title": "T", "description": "D", "category": "c", "level": "beginner", "instructor": "user_ghost"},
            headers={"X-API-Key": "test-course-api-key"},
        ).json()

        response = client.get(f"/api/courses/{created['course_id']}")
        assert response.status_code == 200
        assert response.json()["instructor_details"] == {"full_name": "Unknown Instructor"}

    def test_non_provider_instructor_id(self, client, identity):
        created = client.post(
            "/api/courses",
            json={"title": "T", "description": "D", "category": "c", "level": "beginner", "instructor": "legacy-42"},
            headers={"X-API-Key": "test-course-api-key"},
        ).json()

        response = client.get(f"/api/courses/{created['course_id']}")
        assert response.json()["instructor_details"] == {"full_name": "Unknown Instructor"}
        assert "legacy-42" not in identity.calls

    def test_missing_course(self, client):
        assert client.get("/api/courses/COURSE_MISSING").status_code == 404


class TestCourseUpdates:
    def test_instructor_updates(self, client, course):
        response = client.put(
            f"/api/courses/{course['course_id']}",
            json={"title": "Renamed", "level": "intermediate"},
            headers=auth(INSTRUCTOR),
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"
        assert response.json()["level"] == "intermediate"
        assert response.json()["version"] == 1

    def test_non_instructor_cannot_update(self, client, course):
        response = client.put(
            f"/api/courses/{course['course_id']}",
            json={"title": "Hijacked"},
            headers=auth(OTHER),
        )
        assert response.status_code == 403

        stored = client.get(f"/api/courses/{course['course_id']}").json()
        assert stored["title"] == "Intro to Python"

    def test_delete(self, client, course):
        assert client.delete(f"/api/courses/{course['course_id']}", headers=auth(OTHER)).status_code == 403

        response = client.delete(f"/api/courses/{course['course_id']}", headers=auth(INSTRUCTOR))
        assert response.status_code == 200
        assert client.get(f"/api/courses/{course['course_id']}").status_code == 404


class TestEnrollmentAndProgress:
    def test_enroll_twice(self, client, course):
        enroll(client, course["course_id"])

        response = client.post(f"/api/courses/{course['course_id']}/enroll", headers=auth(STUDENT))
        assert response.status_code == 400
        assert response.json()["detail"] == "Already enrolled in this course"

        stored = client.get(f"/api/courses/{course['course_id']}").json()
        assert len(stored["enrolled_students"]) == 1

    def test_enroll_records_on_user(self, client, course, db):
        client.post("/api/users", json={"clerk_id": STUDENT, "email": "sam@learnhub.io"})
        enroll(client, course["course_id"])

        me = client.get("/api/users/me", headers=auth(STUDENT)).json()
        assert me["enrolled_courses"] == [course["course_id"]]

    def test_progress_to_completion(self, client, course):
        course_id = course["course_id"]
        lessons = [add_text_lesson(client, course_id, title=f"L{i}") for i in range(4)]
        enroll(client, course_id)

        for i, lesson in enumerate(lessons[:3]):
            response = client.post(
                f"/api/courses/{course_id}/progress",
                json={"lesson_id": lesson["lesson_id"]},
                headers=auth(STUDENT),
            )
            assert response.status_code == 200
        assert response.json()["progress"] == 75
        assert response.json()["completion_date"] is None

        response = client.post(
            f"/api/courses/{course_id}/progress",
            json={"lesson_id": lessons[3]["lesson_id"]},
            headers=auth(STUDENT),
        )
        assert response.json()["progress"] == 100
        completion_date = response.json()["completion_date"]
        assert completion_date is not None

        # Repeating a lesson changes nothing, including the completion stamp
        again = client.post(
            f"/api/courses/{course_id}/progress",
            json={"lesson_id": lessons[0]["lesson_id"]},
            headers=auth(STUDENT),
        ).json()
        assert again["progress"] == 100
        assert len(again["completed_lessons"]) == 4
        assert again["completion_date"][:19] == completion_date[:19]

    def test_progress_requires_enrollment(self, client, course):
        lesson = add_text_lesson(client, course["course_id"])
        response = client.post(
            f"/api/courses/{course['course_id']}/progress",
            json={"lesson_id": lesson["lesson_id"]},
            headers=auth(STUDENT),
        )
        assert response.status_code == 400

    def test_progress_unknown_lesson(self, client, course):
        enroll(client, course["course_id"])
        response = client.post(
            f"/api/courses/{course['course_id']}/progress",
            json={"lesson_id": "LESS_NOPE"},
            headers=auth(STUDENT),
        )
        assert response.status_code == 404

    def test_enrolled_listing(self, client, course):
        lesson = add_text_lesson(client, course["course_id"])
        add_text_lesson(client, course["course_id"], title="Second")
        enroll(client, course["course_id"])
        client.post(
            f"/api/courses/{course['course_id']}/progress",
            json={"lesson_id": lesson["lesson_id"]},
            headers=auth(STUDENT),
        )

        response = client.get("/api/courses/enrolled", headers=auth(STUDENT))
        assert response.status_code == 200
        [entry] = response.json()
        assert entry["course_id"] == course["course_id"]
        assert entry["completed_lessons"] == 1
        assert entry["total_lessons"] == 2
        assert entry["progress"] == 50
        assert entry["average_grade"] == "N/A"


class TestRatingsAndCertificate:
    def test_rating_replaces_previous(self, client, course):
        enroll(client, course["course_id"])
        enroll(client, course["course_id"], user=OTHER)

        client.post(f"/api/courses/{course['course_id']}/ratings", json={"rating": 2}, headers=auth(STUDENT))
        client.post(f"/api/courses/{course['course_id']}/ratings", json={"rating": 4}, headers=auth(OTHER))
        response = client.post(
            f"/api/courses/{course['course_id']}/ratings", json={"rating": 5}, headers=auth(STUDENT)
        )
        assert response.status_code == 200
        assert response.json() == {"average_rating": 4.5, "ratings": 2}

    def test_rating_requires_enrollment(self, client, course):
        response = client.post(
            f"/api/courses/{course['course_id']}/ratings", json={"rating": 5}, headers=auth(STUDENT)
        )
        assert response.status_code == 403

    def test_rating_bounds(self, client, course):
        enroll(client, course["course_id"])
        response = client.post(
            f"/api/courses/{course['course_id']}/ratings", json={"rating": 6}, headers=auth(STUDENT)
        )
        assert response.status_code == 400

    def test_certificate(self, client, course):
        lesson = add_text_lesson(client, course["course_id"])
        enroll(client, course["course_id"])

        assert client.get(f"/api/courses/{course['course_id']}/certificate", headers=auth(STUDENT)).status_code == 403

        client.post(
            f"/api/courses/{course['course_id']}/progress",
            json={"lesson_id": lesson["lesson_id"]},
            headers=auth(STUDENT),
        )
        response = client.get(f"/api/courses/{course['course_id']}/certificate", headers=auth(STUDENT))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["student_name"] == "Sam Student"
        assert data["course_title"] == "Intro to Python"
        assert data["completion_date"]

    def test_certificate_name_fallback(self, client, course):
        lesson = add_text_lesson(client, course["course_id"])
        enroll(client, course["course_id"], user=OTHER)
        client.post(
            f"/api/courses/{course['course_id']}/progress",
            json={"lesson_id": lesson["lesson_id"]},
            headers=auth(OTHER),
        )

        response = client.get(f"/api/courses/{course['course_id']}/certificate", headers=auth(OTHER))
        assert response.json()["data"]["student_name"] == "Student"


class TestConcurrency:
    def test_stale_course_save_conflicts(self, client, course, db):
        from fastapi import HTTPException

        from learnhub.courses.database import get_course, save_course

        async def race():
            first = await get_course(db, course["course_id"])
            second = await get_course(db, course["course_id"])

            first["title"] = "First writer"
            await save_course(db, first)

            second["title"] = "Second writer"
            try:
                await save_course(db, second)
            except HTTPException as e:
                return e.status_code
            return None

        assert asyncio.run(race()) == 409
        assert client.get(f"/api/courses/{course['course_id']}").json()["title"] == "First writer"
