from __future__ import annotations

import pytest

from models.upload import LocalFile, UploadSucceeded
from services.errors import ValidationFailure
from services.profile_form import CREATED, UPDATED, UPLOAD_ATTACHED, UPLOAD_PENDING, ProfileForm
from services.upload_workflow import UploadWorkflow


def _fill(form: ProfileForm) -> None:
    form.set_field("fullName", " Jane Doe ")
    form.set_field("primarySkill", "Elder Care")
    form.set_field("experienceYears", "3")
    form.set_field("bioSummary", "Warm and patient caregiver.")
    form.set_field("locationPreference", "Kampala")


@pytest.fixture()
def new_form(workflow, object_store):
    return ProfileForm(workflow, UploadWorkflow(object_store))


def test_set_field_coerces_form_input(new_form):
    new_form.set_field("experience_years", "4 years")
    new_form.set_field("languagesSpoken", "English, Luganda ,")
    new_form.set_field("profilePhotoUrl", "  ")
    assert new_form.values["experienceYears"] == 4
    assert new_form.values["languagesSpoken"] == ["English", "Luganda"]
    assert new_form.values["profilePhotoUrl"] is None


def test_system_fields_cannot_be_edited(new_form):
    for key in ("id", "dateCreated", "lastUpdated"):
        with pytest.raises(ValidationFailure):
            new_form.set_field(key, "x")


def test_upload_then_attach_sets_exact_url(new_form, document_store):
    _fill(new_form)
    new_form.upload.objects.chunk_bytes = 256 * 1024
    new_form.pick_photo(LocalFile(name="jane.jpg", content_type="image/jpeg", data=b"j" * (2 * 1024 * 1024)))
    events = []
    session = new_form.upload_photo(events.append)
    assert isinstance(events[-1], UploadSucceeded)
    assert new_form.values["profilePhotoUrl"] == session.result_url == events[-1].url
    assert new_form.success == UPLOAD_ATTACHED

    record_id = new_form.submit()
    assert new_form.success == CREATED
    stored = document_store.collections["hcpProfiles"][record_id]
    assert stored["profilePhotoUrl"] == events[-1].url
    # Upload session is reset after a successful save
    assert new_form.upload.session.local_file is None


def test_attach_without_finished_upload_does_nothing(new_form):
    assert new_form.attach_upload() is False
    assert new_form.values["profilePhotoUrl"] is None


def test_save_is_blocked_while_upload_in_flight(new_form, document_store):
    _fill(new_form)
    new_form.pick_photo(LocalFile(name="jane.jpg", content_type="image/jpeg", data=b"j" * 10))
    stream = new_form.upload.start()
    next(stream)
    assert new_form.can_submit is False

    writes_before = [c for c in document_store.calls if c[0] == "write"]
    assert new_form.submit() is None
    assert new_form.error == UPLOAD_PENDING
    assert [c for c in document_store.calls if c[0] == "write"] == writes_before

    list(stream)
    assert new_form.can_submit is True
    assert new_form.attach_upload() is True
    assert new_form.submit() is not None


def test_validation_error_is_recorded_on_form(new_form, document_store):
    new_form.set_field("fullName", "Jane")
    assert new_form.submit() is None
    assert "primarySkill" in new_form.error
    assert new_form.saving is False
    assert not any(c[0] == "write" for c in document_store.calls)


def test_edit_form_sends_only_changed_fields(workflow, object_store, document_store, jane_draft):
    record_id = workflow.save(jane_draft)
    form = ProfileForm(workflow, UploadWorkflow(object_store), workflow.get(record_id))
    assert form.is_edit
    form.set_field("bioSummary", "Now also trained in first aid.")
    assert form.changed_fields() == {"bioSummary": "Now also trained in first aid."}

    assert form.submit() == record_id
    assert form.success == UPDATED
    stored = document_store.collections["hcpProfiles"][record_id]
    assert stored["bioSummary"] == "Now also trained in first aid."
    assert stored["lastUpdated"] == "2024-05-01T09:30:00.000Z"
    assert form.changed_fields() == {}


def test_concurrent_submit_is_rejected(new_form):
    _fill(new_form)
    assert new_form._submit_lock.acquire(blocking=False)
    try:
        assert new_form.submit() is None
        assert new_form.error == "A save is already in progress."
    finally:
        new_form._submit_lock.release()


def test_clearing_experience_on_edit_is_a_validation_error(workflow, object_store, document_store, jane_draft):
    record_id = workflow.save(jane_draft)
    form = ProfileForm(workflow, UploadWorkflow(object_store), workflow.get(record_id))
    form.set_field("experienceYears", "")

    assert form.submit() is None
    assert form.error.startswith("experienceYears")
    assert form.success is None
    assert document_store.collections["hcpProfiles"][record_id]["experienceYears"] == 3
    assert [r.id for r in workflow.list()] == [record_id]


def test_abandoned_upload_does_not_block_save(new_form):
    _fill(new_form)
    new_form.pick_photo(LocalFile(name="a.jpg", content_type="image/jpeg", data=b"a" * 10))
    new_form.upload.start()
    assert new_form.can_submit is True

    new_form.pick_photo(LocalFile(name="b.jpg", content_type="image/jpeg", data=b"b" * 10))
    session = new_form.upload_photo()
    assert session.result_url is not None
    assert new_form.submit() is not None
