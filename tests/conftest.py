"""
Shared test fixtures for the Speakeasy submission pipeline.
Zero network calls: in-memory store, fake bucket, fake HTTP session.
"""
from datetime import datetime, timezone

import pytest
import requests

from speakeasy.models import Assignment
from speakeasy.services.media_transfer import BackupStorage, MediaTransferAgent
from speakeasy.services.submission_coordinator import SubmissionCoordinator
from speakeasy.services.submission_store import InMemorySubmissionStore

ANALYSIS_URL = "https://analysis.test/webhook/testai"


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Records post() calls; answers with a fixed status or raises."""

    def __init__(self, status_code=200, error=None):
        self.status_code = status_code
        self.error = error
        self.calls = []

    def post(self, url, data=None, files=None, timeout=None):
        self.calls.append({"url": url, "data": data, "files": files, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status_code)


class FakeBackupStorage(BackupStorage):
    def __init__(self, fail=False):
        self.fail = fail
        self.objects = {}

    def upload(self, path, blob, content_type):
        if self.fail:
            raise IOError("bucket unavailable")
        self.objects[path] = (blob, content_type)

    def public_url(self, path):
        return f"https://backup.test/videos/{path}"


class Clock:
    def __init__(self):
        self.now = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


@pytest.fixture
def store():
    store = InMemorySubmissionStore()
    store.add_assignment(Assignment(
        id="A1",
        title="Persuasive Speech",
        description="Convince us in two minutes",
        due_date="2024-03-15T23:59:00+00:00",
    ))
    store.add_student("S1", "Alice Johnson")
    store.add_student("S2", "Bob Smith")
    return store


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def backup():
    return FakeBackupStorage()


@pytest.fixture
def transfer(session, backup):
    return MediaTransferAgent(ANALYSIS_URL, backup, session=session)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def coordinator(store, transfer, clock):
    return SubmissionCoordinator(store, transfer, clock=clock)


@pytest.fixture
def app(coordinator):
    from speakeasy.app import create_app
    app = create_app(coordinator)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
