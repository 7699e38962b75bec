from __future__ import annotations

import sqlite3

import pytest

from backends.local import (
    LocalIdentityProvider,
    LocalObjectStore,
    build_local_services,
    hash_password,
    verify_password,
)
from backends.registry import available_backends, get_backend
from config.settings import get_settings
from db.repos.admin_users_repo import AdminUsersRepo
from db.repos.documents_repo import DocumentsRepo
from db.schema import bootstrap
from services.errors import BackendError
from services.remote import Disabled, Ready, init_remote_services


@pytest.fixture()
def conn():
    c = sqlite3.connect(":memory:")
    bootstrap(c)
    yield c
    c.close()


def test_password_hash_round_trip():
    encoded = hash_password("s3cret", iterations=1000)
    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert verify_password("s3cret", encoded)
    assert not verify_password("wrong", encoded)
    assert not verify_password("s3cret", "garbage")


def test_documents_repo_create_merge_delete(conn):
    repo = DocumentsRepo(conn)
    doc_id = repo.write_document("hcpProfiles", None, {"fullName": "Jane", "primarySkill": "Elder Care"})
    repo.write_document("hcpProfiles", doc_id, {"fullName": "X"}, merge=True)
    assert repo.list_documents("hcpProfiles") == [(doc_id, {"fullName": "X", "primarySkill": "Elder Care"})]

    repo.write_document("hcpProfiles", doc_id, {"fullName": "Only"})
    assert repo.get_document("hcpProfiles", doc_id) == {"fullName": "Only"}

    repo.delete_document("hcpProfiles", doc_id)
    assert repo.list_documents("hcpProfiles") == []


def test_merge_on_missing_document_fails(conn):
    repo = DocumentsRepo(conn)
    with pytest.raises(BackendError) as exc:
        repo.write_document("hcpProfiles", "gone", {"fullName": "X"}, merge=True)
    assert exc.value.status == 404
    assert repo.list_documents("hcpProfiles") == []


def test_collections_are_separate(conn):
    repo = DocumentsRepo(conn)
    repo.write_document("a", "1", {"v": 1})
    repo.write_document("b", "1", {"v": 2})
    assert repo.list_documents("a") == [("1", {"v": 1})]


def test_local_identity_sign_in_and_restore(conn, tmp_path):
    session = tmp_path / "session.json"
    users = AdminUsersRepo(conn)
    provider = LocalIdentityProvider(users, session_path=str(session))
    provider.add_admin("Admin@Example.com", "s3cret")

    with pytest.raises(BackendError) as exc:
        provider.sign_in("admin@example.com", "nope")
    assert exc.value.message == "INVALID_LOGIN_CREDENTIALS"

    identity = provider.sign_in("admin@example.com", "s3cret")
    assert identity.email == "admin@example.com"
    assert provider.id_token() == f"local:{identity.id}"

    restored = LocalIdentityProvider(users, session_path=str(session))
    seen = []
    restored.on_change(seen.append)
    assert seen == [identity]

    restored.sign_out()
    assert seen[-1] is None
    assert not session.exists()


def test_duplicate_admin_is_rejected(conn):
    provider = LocalIdentityProvider(AdminUsersRepo(conn))
    provider.add_admin("admin@example.com", "s3cret")
    with pytest.raises(BackendError) as exc:
        provider.add_admin("ADMIN@example.com", "other")
    assert exc.value.message == "EMAIL_EXISTS"


def test_local_object_store_streams_chunks(tmp_path):
    store = LocalObjectStore(str(tmp_path / "blobs"), chunk_bytes=4)
    snaps = list(store.put_streaming("hcp_profile_pictures/x.jpg", b"0123456789", "image/jpeg"))
    assert [s.bytes_transferred for s in snaps] == [4, 8, 10]
    assert snaps[-1].ref == "hcp_profile_pictures/x.jpg"

    url = store.resolve_url(snaps[-1].ref)
    assert url.startswith("file://")
    assert (tmp_path / "blobs" / "hcp_profile_pictures" / "x.jpg").read_bytes() == b"0123456789"


def test_local_object_store_rejects_escaping_paths(tmp_path):
    store = LocalObjectStore(str(tmp_path / "blobs"))
    with pytest.raises(BackendError):
        list(store.put_streaming("../outside.jpg", b"x", "image/jpeg"))


def test_registry_knows_both_backends():
    import backends  # noqa: F401
    assert {"firebase", "local"} <= set(available_backends())
    with pytest.raises(KeyError):
        get_backend("nope", None)


def test_init_remote_services_local(local_env):
    result = init_remote_services()
    assert isinstance(result, Ready)
    assert result.services.backend == "local"
    assert (local_env / "hcp.db").exists()


def test_init_remote_services_unknown_backend(monkeypatch):
    monkeypatch.setenv("HCP_BACKEND", "mongo")
    get_settings.cache_clear()
    result = init_remote_services()
    assert isinstance(result, Disabled)
    assert "mongo" in result.reason.message


def test_build_local_services_uses_settings(local_env):
    services = build_local_services(get_settings())
    assert services.objects.root == (local_env / "blobs").resolve()
