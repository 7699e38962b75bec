from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

from fakes import FakeDocumentStore, FakeIdentityProvider, FakeObjectStore


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'services.session_gate'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs
    os.environ.setdefault("RUN_ENV", "test")


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    # Never touch the real session file or trace log from tests
    monkeypatch.setenv("HCP_SESSION_PATH", str(tmp_path / "session.json"))
    monkeypatch.setenv("REMOTE_TRACE", "false")
    from config.settings import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture()
def document_store():
    return FakeDocumentStore()


@pytest.fixture()
def object_store():
    return FakeObjectStore()


@pytest.fixture()
def remote(identity_provider, document_store, object_store):
    from services.remote import RemoteServices
    return RemoteServices(backend="fake", identity=identity_provider, documents=document_store, objects=object_store)


@pytest.fixture()
def gate(remote):
    from services.remote import Ready
    from services.session_gate import SessionGate
    g = SessionGate(Ready(remote))
    yield g
    g.close()


@pytest.fixture()
def signed_in_gate(gate):
    gate.sign_in("admin@example.com", "s3cret")
    return gate


@pytest.fixture()
def workflow(signed_in_gate):
    from services.profile_workflow import ProfileWorkflow
    return ProfileWorkflow(signed_in_gate, collection="hcpProfiles", clock=lambda: "2024-05-01T09:30:00.000Z")


@pytest.fixture()
def jane_draft() -> Dict[str, Any]:
    return {
        "fullName": "Jane Doe",
        "primarySkill": "Elder Care",
        "experienceYears": 3,
        "bioSummary": "Warm and patient caregiver.",
        "locationPreference": "Kampala",
        "profilePhotoUrl": None,
    }


@pytest.fixture()
def local_env(tmp_path, monkeypatch):
    """Point the local backend at tmp_path."""
    monkeypatch.setenv("HCP_BACKEND", "local")
    monkeypatch.setenv("HCP_DB_PATH", str(tmp_path / "hcp.db"))
    monkeypatch.setenv("HCP_BLOB_DIR", str(tmp_path / "blobs"))
    from config.settings import get_settings
    get_settings.cache_clear()
    return tmp_path


@pytest.fixture()
def firebase_config():
    from config.settings import FirebaseConfig
    return FirebaseConfig(
        api_key="test-key",
        auth_domain="demo.firebaseapp.com",
        project_id="demo",
        storage_bucket="demo.appspot.com",
        messaging_sender_id="1234",
        app_id="1:1234:web:abcd",
    )
