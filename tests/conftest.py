"""
Shared pytest fixtures for the API tests.

The settings object is built at import time, so the environment is fixed here
before anything from `hackathon_api` is imported. The store is an in-memory
fakeredis instance and the QStash publisher is a mock.
"""
import base64
import hashlib
import json
import os
import time
from unittest.mock import MagicMock

os.environ.update(
    {
        "JWT_SECRET": "test-secret-with-enough-length-for-hs256",
        "ADMIN_EMAILS": '["admin@example.com"]',
        "PUBLIC_URL": "https://hackathon.test",
        "QSTASH_TOKEN": "qstash-test-token",
        "QSTASH_CURRENT_SIGNING_KEY": "sig_current_key",
        "QSTASH_NEXT_SIGNING_KEY": "sig_next_key",
        "AUTH_MODE": "cookie",
    }
)

import fakeredis  # noqa: E402
import jwt as pyjwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from hackathon_api.core.config import settings  # noqa: E402
from hackathon_api.infrastructure.qstash.client import QStashClient, QStashReceiver  # noqa: E402
from hackathon_api.main import app  # noqa: E402
from hackathon_api.services.authz import Requester  # noqa: E402

PASSWORD = "Passw0rdOk"


@pytest.fixture
def store():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def qstash():
    mock = MagicMock(spec=QStashClient)
    mock.publish_json.return_value = {"messageId": "msg_test_1"}
    return mock


@pytest.fixture
def receiver():
    return QStashReceiver(signing_keys=settings.qstash_signing_keys)


@pytest.fixture
def client(store, qstash, receiver):
    app.state.store = store
    app.state.qstash = qstash
    app.state.qstash_receiver = receiver
    with TestClient(app) as c:
        yield c
    app.state.store = None
    app.state.qstash = None
    app.state.qstash_receiver = None


def register(client, username="alice", email="alice@example.com", password=PASSWORD):
    """Registers a user and returns (token, user). Leaves the cookie jar empty."""
    resp = client.post("/api/auth/register", json={"username": username, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    client.cookies.clear()
    body = resp.json()
    return body["token"], body["user"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def requester_for(user):
    return Requester(id=user["id"], role=user.get("role", "user"), email=user.get("email"), user=user)


def sign_qstash(body: bytes, key: str = "sig_current_key", url: str = "https://hackathon.test/api/qstash/webhook", **overrides):
    """Builds an `Upstash-Signature` JWT for `body` the way QStash does."""
    now = int(time.time())
    claims = {
        "iss": "Upstash",
        "sub": url,
        "exp": now + 300,
        "nbf": now,
        "iat": now,
        "jti": f"jwt_{now}",
        "body": base64.urlsafe_b64encode(hashlib.sha256(body).digest()).decode().rstrip("="),
    }
    claims.update(overrides)
    return pyjwt.encode(claims, key, algorithm="HS256")


def webhook_body(task_id, task_type, payload, user_id="user_x"):
    return json.dumps({"taskId": task_id, "type": task_type, "payload": payload, "userId": user_id}).encode()
