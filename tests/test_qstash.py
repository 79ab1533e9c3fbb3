"""Background tasks: scheduling through QStash and the signed webhook."""
import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from conftest import bearer, register, requester_for, sign_qstash, webhook_body
from hackathon_api.core.config import settings
from hackathon_api.infrastructure.qstash.client import QStashClient, QStashError, QStashReceiver
from hackathon_api.repositories import blog_repo, feature_flag_repo, task_repo
from hackathon_api.services.task_processors import DEFAULT_CLEANUP_AGE_MS

WEBHOOK = "/api/qstash/webhook"


@pytest.fixture
def alice(client):
    return register(client)


def _schedule(client, token, **body):
    payload = {"type": "notification", "payload": {"message": "hi"}, **body}
    return client.post("/api/qstash/schedule", headers=bearer(token), json=payload)


def _deliver(client, body, key="sig_current_key", signature=None):
    sig = signature if signature is not None else sign_qstash(body, key=key)
    return client.post(WEBHOOK, content=body, headers={"Upstash-Signature": sig, "Content-Type": "application/json"})


class TestSchedule:
    def test_publishes_then_persists_pending_task(self, client, store, qstash, alice):
        token, user = alice
        resp = _schedule(client, token, delay=30)
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["messageId"] == "msg_test_1"
        assert data["taskId"].startswith("task_")

        task = task_repo.get_task(store, data["taskId"])
        assert task["status"] == "pending"
        assert task["qstashMessageId"] == "msg_test_1"
        assert task["userId"] == user["id"]
        assert task["retryCount"] == 0
        assert store.lrange(task_repo.owner_key(user["id"]), 0, -1) == [data["taskId"]]

        kwargs = qstash.publish_json.call_args.kwargs
        assert kwargs["url"] == "https://hackathon.test/api/qstash/webhook"
        assert kwargs["delay"] == 30
        assert kwargs["not_before"] is None
        assert kwargs["body"]["taskId"] == data["taskId"]
        assert kwargs["body"]["userId"] == user["id"]

    def test_scheduled_for_sets_not_before(self, client, qstash, alice):
        resp = _schedule(client, alice[0], scheduledFor="2030-01-01T00:00:00.000Z")
        assert resp.status_code == 201
        assert qstash.publish_json.call_args.kwargs["not_before"] == 1893456000

    def test_invalid_scheduled_for(self, client, qstash, alice):
        resp = _schedule(client, alice[0], scheduledFor="tomorrow")
        assert resp.status_code == 400
        qstash.publish_json.assert_not_called()

    def test_missing_type(self, client, qstash, alice):
        resp = client.post("/api/qstash/schedule", headers=bearer(alice[0]), json={"payload": {}})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Task type and payload are required"
        qstash.publish_json.assert_not_called()

    def test_publish_failure_persists_nothing(self, client, store, qstash, alice):
        token, user = alice
        qstash.publish_json.side_effect = QStashError("boom at https://qstash.upstash.io/v2/publish/x")
        resp = _schedule(client, token)
        assert resp.status_code == 500
        assert resp.json()["error"] == "Failed to schedule task"
        assert "details" not in resp.json()
        assert "upstash.io" not in resp.text
        assert store.lrange(task_repo.owner_key(user["id"]), 0, -1) == []
        assert list(store.scan_iter("task:*")) == []

    def test_requires_auth(self, client):
        assert client.post("/api/qstash/schedule", json={"type": "x", "payload": {}}).status_code == 401

    def test_disabled_flag_returns_503(self, client, store, qstash, alice):
        feature_flag_repo.update_flag(store, "upstash_qstash", {"enabled": False})
        resp = _schedule(client, alice[0])
        assert resp.status_code == 503
        qstash.publish_json.assert_not_called()
        assert client.get("/api/qstash/tasks", headers=bearer(alice[0])).status_code == 503


class TestWelcomeEmail:
    def test_schedules_with_delay(self, client, store, qstash, alice):
        resp = client.post(
            "/api/qstash/welcome-email",
            headers=bearer(alice[0]),
            json={"email": "new@example.com", "name": "New"},
        )
        assert resp.status_code == 201
        kwargs = qstash.publish_json.call_args.kwargs
        assert kwargs["delay"] == 5
        assert kwargs["body"]["type"] == "welcome_email"
        assert kwargs["body"]["payload"] == {"email": "new@example.com", "name": "New"}

    def test_requires_email_and_name(self, client, qstash, alice):
        resp = client.post("/api/qstash/welcome-email", headers=bearer(alice[0]), json={"email": "x@example.com"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Email and name are required"


class TestListTasks:
    def test_lists_own_tasks_newest_first(self, client, alice):
        token, _ = alice
        first = _schedule(client, token).json()["data"]["taskId"]
        second = _schedule(client, token).json()["data"]["taskId"]
        resp = client.get("/api/qstash/tasks", headers=bearer(token))
        assert [t["id"] for t in resp.json()["data"]] == [second, first]

    def test_skips_dangling_ids(self, client, store, alice):
        token, user = alice
        store.lpush(task_repo.owner_key(user["id"]), "task_gone")
        assert client.get("/api/qstash/tasks", headers=bearer(token)).json()["data"] == []


class TestWebhook:
    def _pending_task(self, client, store, token, task_type, payload):
        resp = client.post("/api/qstash/schedule", headers=bearer(token), json={"type": task_type, "payload": payload})
        return resp.json()["data"]["taskId"]

    def test_invalid_signature_leaves_task_untouched(self, client, store, alice):
        token, user = alice
        task_id = self._pending_task(client, store, token, "notification", {"message": "hi"})
        body = webhook_body(task_id, "notification", {"message": "hi"}, user["id"])

        resp = _deliver(client, body, key="wrong-key")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid QStash signature"
        assert task_repo.get_task(store, task_id)["status"] == "pending"

    def test_missing_signature(self, client, store, alice):
        token, user = alice
        task_id = self._pending_task(client, store, token, "notification", {"message": "hi"})
        resp = client.post(WEBHOOK, content=webhook_body(task_id, "notification", {}, user["id"]))
        assert resp.status_code == 401
        assert task_repo.get_task(store, task_id)["status"] == "pending"

    def test_tampered_body(self, client, store, alice):
        token, user = alice
        task_id = self._pending_task(client, store, token, "notification", {"message": "hi"})
        signed = webhook_body(task_id, "notification", {"message": "hi"}, user["id"])
        tampered = webhook_body(task_id, "notification", {"message": "evil"}, user["id"])
        resp = _deliver(client, tampered, signature=sign_qstash(signed))
        assert resp.status_code == 401

    def test_next_signing_key_accepted(self, client, store, alice):
        token, user = alice
        task_id = self._pending_task(client, store, token, "notification", {"message": "hi"})
        body = webhook_body(task_id, "notification", {"message": "hi"}, user["id"])
        assert _deliver(client, body, key="sig_next_key").status_code == 200

    def test_welcome_email_completes(self, client, store, alice):
        token, user = alice
        payload = {"email": "new@example.com", "name": "New"}
        task_id = self._pending_task(client, store, token, "welcome_email", payload)

        resp = _deliver(client, webhook_body(task_id, "welcome_email", payload, user["id"]))
        assert resp.status_code == 200
        task = task_repo.get_task(store, task_id)
        assert task["status"] == "completed"
        assert task["result"]["delivered"] is False
        assert task["completedAt"]

    def test_notification_stored(self, client, store, alice):
        token, user = alice
        payload = {"type": "info", "message": "hello"}
        task_id = self._pending_task(client, store, token, "notification", payload)
        resp = _deliver(client, webhook_body(task_id, "notification", payload, user["id"]))
        assert resp.status_code == 200
        ids = store.lrange(f"user:{user['id']}:notifications", 0, -1)
        assert len(ids) == 1
        assert resp.json()["result"]["notificationId"] == ids[0]

    def test_cleanup_acknowledges(self, client, store, alice):
        token, user = alice
        payload = {"type": "old_tasks", "olderThan": DEFAULT_CLEANUP_AGE_MS}
        task_id = self._pending_task(client, store, token, "cleanup_task", payload)
        resp = _deliver(client, webhook_body(task_id, "cleanup_task", payload, user["id"]))
        assert resp.status_code == 200
        assert task_repo.get_task(store, task_id)["result"]["itemsCleaned"] == 0

    def test_scheduled_blog_post_published(self, client, store, alice):
        token, user = alice
        blog_repo.insert_post(store, requester_for(user), {"title": "Soon", "content": "c", "status": "scheduled"})
        payload = {"postId": "soon", "action": "publish"}
        task_id = self._pending_task(client, store, token, "scheduled_blog_post", payload)

        resp = _deliver(client, webhook_body(task_id, "scheduled_blog_post", payload, user["id"]))
        assert resp.status_code == 200
        assert blog_repo.get_post(store, "soon")["status"] == "published"

    def test_missing_post_fails_task(self, client, store, alice):
        token, user = alice
        payload = {"postId": "ghost", "action": "publish"}
        task_id = self._pending_task(client, store, token, "scheduled_blog_post", payload)
        resp = _deliver(client, webhook_body(task_id, "scheduled_blog_post", payload, user["id"]))
        assert resp.status_code == 500
        assert task_repo.get_task(store, task_id)["status"] == "failed"

    def test_unknown_type_fails_task(self, client, store, alice):
        token, user = alice
        task_id = self._pending_task(client, store, token, "mystery", {"a": 1})

        resp = _deliver(client, webhook_body(task_id, "mystery", {"a": 1}, user["id"]))
        assert resp.status_code == 500
        assert resp.json()["success"] is False
        task = task_repo.get_task(store, task_id)
        assert task["status"] == "failed"
        assert task["retryCount"] == 1
        assert task["error"] == "Unknown task type: mystery"

    def test_redelivery_increments_retry_count(self, client, store, alice):
        token, user = alice
        task_id = self._pending_task(client, store, token, "mystery", {"a": 1})
        body = webhook_body(task_id, "mystery", {"a": 1}, user["id"])
        _deliver(client, body)
        _deliver(client, body)
        assert task_repo.get_task(store, task_id)["retryCount"] == 2

    def test_processor_runs_off_event_loop(self, client, store, alice):
        token, user = alice
        task_id = self._pending_task(client, store, token, "notification", {"message": "hi"})
        seen = {}

        def fake_processor(*args, **kwargs):
            try:
                asyncio.get_running_loop()
                seen["on_loop"] = True
            except RuntimeError:
                seen["on_loop"] = False
            return {"ok": True}

        with patch("hackathon_api.services.task_service.run_processor", side_effect=fake_processor):
            resp = _deliver(client, webhook_body(task_id, "notification", {"message": "hi"}, user["id"]))
        assert resp.status_code == 200
        assert seen == {"on_loop": False}

    def test_webhook_works_with_flag_disabled(self, client, store, alice):
        token, user = alice
        task_id = self._pending_task(client, store, token, "notification", {"message": "hi"})
        feature_flag_repo.update_flag(store, "upstash_qstash", {"enabled": False})
        resp = _deliver(client, webhook_body(task_id, "notification", {"message": "hi"}, user["id"]))
        assert resp.status_code == 200


class TestReceiver:
    def test_expired_signature(self):
        receiver = QStashReceiver(signing_keys=["k"])
        body = b'{"a":1}'
        sig = sign_qstash(body, key="k", exp=1)
        assert receiver.verify(signature=sig, body=body) is False

    def test_wrong_issuer(self):
        receiver = QStashReceiver(signing_keys=["k"])
        body = b"{}"
        assert receiver.verify(signature=sign_qstash(body, key="k", iss="someone"), body=body) is False

    def test_url_check_when_given(self):
        receiver = QStashReceiver(signing_keys=["k"])
        body = b"{}"
        sig = sign_qstash(body, key="k", url="https://a.test/hook")
        assert receiver.verify(signature=sig, body=body, url="https://a.test/hook") is True
        assert receiver.verify(signature=sig, body=body, url="https://b.test/hook") is False

    def test_no_keys_configured(self):
        receiver = QStashReceiver(signing_keys=[None, ""])
        assert receiver.verify(signature="x", body=b"") is False


class TestPublisher:
    def test_headers_and_url(self):
        client = QStashClient(token="tok", base_url="https://qstash.test/")
        response = MagicMock(content=b"{}", status_code=201)
        response.json.return_value = {"messageId": "msg_1"}
        with patch("hackathon_api.infrastructure.qstash.client.requests.post", return_value=response) as post:
            out = client.publish_json(
                url="https://app.test/api/qstash/webhook",
                body={"taskId": "t1"},
                headers={"X-Task-Id": "t1"},
                delay=5,
            )
        assert out["messageId"] == "msg_1"
        args, kwargs = post.call_args
        assert args[0] == "https://qstash.test/v2/publish/https://app.test/api/qstash/webhook"
        assert kwargs["json"] == {"taskId": "t1"}
        assert kwargs["headers"]["Authorization"] == "Bearer tok"
        assert kwargs["headers"]["Upstash-Delay"] == "5s"
        assert kwargs["headers"]["Upstash-Forward-X-Task-Id"] == "t1"

    def test_not_before_wins_over_delay(self):
        client = QStashClient(token="tok")
        response = MagicMock(content=b"{}")
        response.json.return_value = {"messageId": "msg_1"}
        with patch("hackathon_api.infrastructure.qstash.client.requests.post", return_value=response) as post:
            client.publish_json(url="u", body={}, delay=5, not_before=1700000000)
        headers = post.call_args.kwargs["headers"]
        assert headers["Upstash-Not-Before"] == "1700000000"
        assert "Upstash-Delay" not in headers

    def test_http_error_raises(self):
        client = QStashClient(token="tok")
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")
        with patch("hackathon_api.infrastructure.qstash.client.requests.post", return_value=response):
            with pytest.raises(QStashError):
                client.publish_json(url="u", body={})

    def test_missing_token(self):
        with pytest.raises(QStashError):
            QStashClient(token=None).publish_json(url="u", body={})

    def test_webhook_url_from_settings(self):
        assert settings.webhook_url() == "https://hackathon.test/api/qstash/webhook"
