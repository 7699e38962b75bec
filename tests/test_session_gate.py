from __future__ import annotations

import pytest

from fakes import FakeDocumentStore, FakeIdentityProvider
from models.identity import Identity
from services.errors import (
    AuthFailure,
    AuthRequired,
    ConfigurationMissing,
    SessionNotReady,
    ValidationFailure,
)
from services.profile_workflow import ProfileWorkflow
from services.remote import Disabled, Ready
from services.session_gate import SessionGate


def _disabled_gate() -> SessionGate:
    return SessionGate(Disabled(ConfigurationMissing(["FIREBASE_API_KEY"])))


def test_gate_is_ready_after_first_notification_without_user(gate):
    state = gate.state
    assert state.ready is True
    assert state.identity is None
    assert state.is_authenticated is False


def test_data_access_blocked_until_provider_reports(remote):
    provider = FakeIdentityProvider(deferred=True)
    remote.identity = provider
    gate = SessionGate(Ready(remote))
    assert gate.ready is False
    with pytest.raises(SessionNotReady):
        gate.require_access()
    with pytest.raises(SessionNotReady):
        gate.sign_in("admin@example.com", "s3cret")

    provider.emit(None)
    assert gate.ready is True
    with pytest.raises(AuthRequired):
        gate.require_access()


def test_ready_never_flips_back(gate):
    gate.sign_in("admin@example.com", "s3cret")
    gate.sign_out()
    assert gate.ready is True
    assert gate.identity is None


def test_sign_in_sets_identity_and_notifies(gate):
    seen = []
    gate.subscribe(seen.append)
    identity = gate.sign_in("admin@example.com", "s3cret")
    assert identity == Identity(email="admin@example.com", id="uid-admin")
    assert gate.state.is_authenticated
    assert seen[-1].identity == identity


def test_sign_in_failure_passes_provider_message_through(gate, identity_provider):
    with pytest.raises(AuthFailure) as exc:
        gate.sign_in("admin@example.com", "wrong")
    assert exc.value.message == "INVALID_LOGIN_CREDENTIALS"
    assert identity_provider.sign_in_calls == 1
    assert gate.identity is None


def test_sign_in_requires_email_and_password(gate, identity_provider):
    with pytest.raises(ValidationFailure) as exc:
        gate.sign_in("  ", "")
    assert exc.value.errors == ["Email is required", "Password is required"]
    assert identity_provider.sign_in_calls == 0


def test_latest_notification_wins(gate, identity_provider):
    first = Identity(email="a@example.com", id="a")
    second = Identity(email="b@example.com", id="b")
    identity_provider.emit(first)
    identity_provider.emit(second)
    assert gate.identity == second


def test_unsubscribed_listener_is_not_called(gate):
    seen = []
    unsubscribe = gate.subscribe(seen.append)
    unsubscribe()
    gate.sign_in("admin@example.com", "s3cret")
    assert seen == []


def test_disabled_gate_is_ready_without_identity_forever():
    gate = _disabled_gate()
    state = gate.state
    assert state.ready is True
    assert state.identity is None
    assert "FIREBASE_API_KEY" in state.disabled_reason

    with pytest.raises(ConfigurationMissing) as exc:
        gate.require_access()
    assert exc.value.missing == ["FIREBASE_API_KEY"]
    with pytest.raises(ConfigurationMissing):
        gate.sign_in("admin@example.com", "s3cret")
    gate.sign_out()
    assert gate.identity is None


def test_disabled_gate_rejects_every_data_operation(jane_draft):
    gate = _disabled_gate()
    workflow = ProfileWorkflow(gate)
    with pytest.raises(ConfigurationMissing):
        workflow.list()
    with pytest.raises(ConfigurationMissing):
        workflow.save(jane_draft)
    with pytest.raises(ConfigurationMissing):
        workflow.delete("abc", lambda _q: True)


def test_unauthenticated_operations_never_reach_the_store(gate, document_store, jane_draft):
    workflow = ProfileWorkflow(gate)
    for call in (
        workflow.list,
        lambda: workflow.save(jane_draft),
        lambda: workflow.delete("abc", lambda _q: True),
    ):
        with pytest.raises(AuthRequired):
            call()
    assert document_store.calls == []


def test_gate_rejects_unknown_init_result():
    with pytest.raises(TypeError):
        SessionGate(object())  # type: ignore[arg-type]


def test_provider_subscription_is_released_on_close(remote):
    provider = FakeIdentityProvider()
    remote.identity = provider
    remote.documents = FakeDocumentStore()
    gate = SessionGate(Ready(remote))
    assert len(provider.listeners) == 1
    gate.close()
    assert provider.listeners == []
