import re
from types import SimpleNamespace

import pytest
import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

from endless_gateway import Settings, create_app
from endless_gateway import identity as identity_module
from endless_gateway.dispatcher import Dispatcher
from endless_gateway.identity import IdentityResolver

ALLOWED_ORIGIN = "https://endless.example"

USERS = {
    "user-1": {"name": "Ada", "api": {"key": "sk-live-ada"}},
    "user-2": {"name": "Keyless", "api": {}},
    "user-3": {"name": "Padded", "api": {"key": "  sk-padded-secret  "}},
    "user-4": {"name": "Numeric", "api": {"key": 12345}},
}

TOKENS = {
    "good-token": "user-1",
    "keyless-token": "user-2",
    "padded-token": "user-3",
    "numeric-token": "user-4",
    "orphan-token": "ghost",
}


class FakeFirestore:
    """Just enough of ``google.cloud.firestore.Client`` for user lookups."""

    def __init__(self, users):
        self.users = users
        self.lookups = []

    def collection(self, name):
        return FakeCollection(self, name)


class FakeCollection:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    def document(self, doc_id):
        return FakeDocument(self.client, self.name, doc_id)


class FakeDocument:
    def __init__(self, client, collection, doc_id):
        self.client = client
        self.collection = collection
        self.doc_id = doc_id

    def get(self):
        self.client.lookups.append((self.collection, self.doc_id))
        record = self.client.users.get(self.doc_id)
        return SimpleNamespace(exists=record is not None, to_dict=lambda: record)


class FakeDownstream:
    """Replaces ``HTTPAdapter.send`` so requests still prepares and validates
    every outbound request, but nothing leaves the process."""

    def __init__(self):
        self.calls = []
        self.status_code = 200
        self.content_type = "application/json"
        self.content = b'{"ok": true}'
        self.error = None

    def send(self, adapter, request, **kwargs):
        self.calls.append({
            "url": request.url,
            "data": request.body,
            "headers": request.headers,
            "timeout": kwargs.get("timeout"),
        })
        if self.error is not None:
            raise self.error
        resp = requests.Response()
        resp.status_code = self.status_code
        resp.headers = CaseInsensitiveDict()
        if self.content_type is not None:
            resp.headers["Content-Type"] = self.content_type
        resp._content = self.content
        resp.url = request.url
        resp.request = request
        return resp


@pytest.fixture
def verified_tokens(monkeypatch):
    calls = []

    def fake_verify(token, request, audience=None):
        calls.append({"token": token, "audience": audience})
        if token not in TOKENS:
            raise ValueError("Token expired, 1700000000 < 1800000000")
        return {"sub": TOKENS[token], "aud": audience}

    monkeypatch.setattr(identity_module.google_id_token, "verify_firebase_token", fake_verify)
    return calls


@pytest.fixture
def firestore():
    return FakeFirestore(USERS)


@pytest.fixture
def downstream(monkeypatch):
    fake = FakeDownstream()

    def send(adapter, request, **kwargs):
        return fake.send(adapter, request, **kwargs)

    monkeypatch.setattr(HTTPAdapter, "send", send)
    return fake


@pytest.fixture
def settings():
    return Settings(
        allowed_origins=(ALLOWED_ORIGIN,),
        firebase_project_id="endless-test",
        upstream_timeout=5.0,
    )


@pytest.fixture
def resolver(settings, firestore):
    return IdentityResolver(
        settings.firebase_project_id,
        users_collection=settings.users_collection,
        firestore_client=firestore,
    )


@pytest.fixture
def app(settings, resolver, verified_tokens, downstream):
    return create_app(
        settings,
        identity_resolver=resolver,
        dispatcher=Dispatcher(settings.routes, timeout=settings.upstream_timeout),
    )


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def multipart_parts():
    """Split a multipart body into ``(name, filename, data)`` tuples."""

    def parse(body, content_type):
        boundary = content_type.split("boundary=", 1)[1].encode()
        parts = []
        for chunk in body.split(b"--" + boundary)[1:-1]:
            head, _, data = chunk[2:-2].partition(b"\r\n\r\n")
            head = head.decode()
            name = re.search(r'; name="([^"]*)"', head).group(1)
            filename = re.search(r'; filename="([^"]*)"', head)
            parts.append((name, filename.group(1) if filename else None, data))
        return parts

    return parse
