from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from models.hcp_profile import SYSTEM_KEYS, HcpProfile
from models.upload import LocalFile, UploadSession
from services.errors import HcpAdminError, ValidationFailure
from services.mapping import coerce_field, wire_name
from services.profile_workflow import ProfileWorkflow
from services.upload_workflow import UploadWorkflow

logger = logging.getLogger(__name__)

UPLOAD_ATTACHED = "Profile picture uploaded successfully!"
CREATED = "New HCP profile created successfully!"
UPDATED = "HCP profile updated successfully!"
UPLOAD_PENDING = "Please wait for the photo upload to finish before saving."
SAVE_PENDING = "A save is already in progress."


class ProfileForm:
    """One open create/edit form: a draft, its photo upload, and save state."""

    def __init__(
        self,
        workflow: ProfileWorkflow,
        upload: UploadWorkflow,
        record: Optional[HcpProfile] = None,
    ) -> None:
        self.workflow = workflow
        self.upload = upload
        self.record_id: Optional[str] = record.id if record else None
        self._original: Dict[str, Any] = record.to_document() if record else {"profilePhotoUrl": None}
        self.values: Dict[str, Any] = dict(self._original)
        self.saving = False
        self.error: Optional[str] = None
        self.success: Optional[str] = None
        self._submit_lock = threading.Lock()

    @property
    def is_edit(self) -> bool:
        return self.record_id is not None

    def set_field(self, name: str, raw: Any) -> None:
        key = wire_name(name)
        if key in SYSTEM_KEYS:
            raise ValidationFailure([f"{key} is managed by the system and cannot be edited"])
        self.values[key] = coerce_field(key, raw)
        self.success = None

    # --- photo ---
    def pick_photo(self, local_file: LocalFile) -> UploadSession:
        return self.upload.pick(local_file)

    def attach_upload(self) -> bool:
        """Copy a finished upload's URL into the draft; False if there is none."""
        url = self.upload.session.result_url
        if not url:
            return False
        self.values["profilePhotoUrl"] = url
        self.success = UPLOAD_ATTACHED
        return True

    def upload_photo(self, on_progress=None) -> UploadSession:
        session = self.upload.run(on_progress)
        if session.result_url:
            self.attach_upload()
        return session

    # --- save ---
    @property
    def can_submit(self) -> bool:
        return not self.saving and not self.upload.uploading

    def changed_fields(self) -> Dict[str, Any]:
        return {k: v for k, v in self.values.items() if self._original.get(k) != v or k not in self._original}

    def _payload(self) -> Dict[str, Any]:
        if not self.is_edit:
            return dict(self.values)
        payload = self.changed_fields()
        payload["id"] = self.record_id
        return payload

    def submit(self) -> Optional[str]:
        """Save the draft; returns the record id, or None with ``error`` set."""
        if not self._submit_lock.acquire(blocking=False):
            self.error = SAVE_PENDING
            return None
        try:
            if self.upload.uploading:
                self.error = UPLOAD_PENDING
                return None
            self.saving = True
            self.error = None
            self.success = None
            try:
                record_id = self.workflow.save(self._payload())
            except HcpAdminError as exc:
                self.error = exc.message
                logger.info("Form save failed: %s", exc.message, extra={"op": "form.submit", "status": "error"})
                return None
            self.success = UPDATED if self.is_edit else CREATED
            self.record_id = record_id
            self._original = dict(self.values)
            self.upload.reset()
            return record_id
        finally:
            self.saving = False
            self._submit_lock.release()
