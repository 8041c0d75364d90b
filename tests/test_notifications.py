import asyncio

from conftest import OTHER, STUDENT, auth

from learnhub.notifications.database import NotificationType, SourceType, create_notification


def seed(db, user_id, message="hello"):
    return asyncio.run(create_notification(
        db, user_id, NotificationType.DISCUSSION_MENTION, "THR_1", SourceType.DISCUSSION, message=message,
    ))


class TestNotifications:
    def test_only_own_notifications_listed(self, client, db):
        seed(db, STUDENT)
        seed(db, OTHER)

        listed = client.get("/api/notifications", headers=auth(STUDENT)).json()
        assert len(listed) == 1
        assert listed[0]["user_id"] == STUDENT
        assert listed[0]["is_read"] is False
        assert listed[0]["notification_id"].startswith("NTF_")
        assert "_id" not in listed[0]

    def test_mark_read(self, client, db):
        notification = seed(db, STUDENT)

        response = client.put(f"/api/notifications/{notification['notification_id']}/read", headers=auth(STUDENT))
        assert response.status_code == 200
        assert response.json()["notification"]["is_read"] is True

    def test_cannot_mark_someone_elses(self, client, db):
        notification = seed(db, STUDENT)

        response = client.put(f"/api/notifications/{notification['notification_id']}/read", headers=auth(OTHER))
        assert response.status_code == 404

        listed = client.get("/api/notifications", headers=auth(STUDENT)).json()
        assert listed[0]["is_read"] is False

    def test_requires_auth(self, client):
        assert client.get("/api/notifications").status_code == 401
