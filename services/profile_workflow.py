from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

from pydantic import ValidationError

from data_validator import format_validation_error
from models.hcp_profile import SYSTEM_KEYS, HcpProfile, HcpStatus, ProfilePatch
from services.errors import BackendError, PersistenceFailed, ValidationFailure
from services.session_gate import SessionGate

logger = logging.getLogger(__name__)

DELETE_PROMPT = "Are you sure you want to delete this HCP profile? This action cannot be undone."

Draft = Union[HcpProfile, ProfilePatch, Mapping[str, Any]]
Confirm = Callable[[str], bool]


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with milliseconds, e.g. 2024-05-01T09:30:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ProfileWorkflow:
    """List, create, update and delete HCP profiles behind the session gate.

    ``records`` is the last successfully fetched list. It only changes by
    re-fetching after a successful write, so a failed save or delete leaves it
    as it was.
    """

    def __init__(
        self,
        gate: SessionGate,
        *,
        collection: str = "hcpProfiles",
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self.gate = gate
        self.collection = collection
        self.clock = clock
        self.records: List[HcpProfile] = []
        self.list_error: Optional[str] = None

    # --- reads ---
    def list(self) -> List[HcpProfile]:
        services = self.gate.require_access()
        try:
            docs = services.documents.list_documents(self.collection)
        except BackendError as exc:
            raise PersistenceFailed(f"Failed to load profiles: {exc.message}") from exc
        records = []
        for doc_id, fields in docs:
            record = HcpProfile.from_document(doc_id, fields)
            if record is not None:
                records.append(record)
        self.records = records
        self.list_error = None
        logger.debug("Loaded %d profiles", len(records), extra={"op": "profiles.list", "status": "ok"})
        return records

    def get(self, record_id: str) -> Optional[HcpProfile]:
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def clear(self) -> None:
        self.records = []
        self.list_error = None

    # --- writes ---
    def save(self, draft: Draft) -> str:
        """Create (no id) or merge-update (with id); returns the record id."""
        record_id = self._draft_id(draft)
        services = self.gate.require_access()

        if record_id is None:
            fields = self._create_fields(draft)
            fields["dateCreated"] = self.clock()
            fields["internalStatus"] = HcpStatus.PENDING_REVIEW.value
            op = "create"
        else:
            fields = self._update_fields(draft)
            fields["lastUpdated"] = self.clock()
            op = "update"

        try:
            saved_id = services.documents.write_document(
                self.collection, record_id, fields, merge=record_id is not None
            )
        except BackendError as exc:
            logger.warning("Save failed", extra={"op": f"profiles.{op}", "status": "error", "error": exc.message})
            raise PersistenceFailed(f"Failed to save profile: {exc.message}") from exc

        logger.info("Saved profile %s", saved_id, extra={"op": f"profiles.{op}", "status": "ok"})
        self._refresh_after_write()
        return saved_id

    def delete(self, record_id: str, confirm: Confirm) -> bool:
        """Delete after ``confirm(DELETE_PROMPT)`` answers True; False if declined."""
        services = self.gate.require_access()
        if not confirm(DELETE_PROMPT):
            return False
        try:
            services.documents.delete_document(self.collection, record_id)
        except BackendError as exc:
            logger.warning("Delete failed", extra={"op": "profiles.delete", "status": "error", "error": exc.message})
            raise PersistenceFailed(f"Failed to delete profile: {exc.message}") from exc
        logger.info("Deleted profile %s", record_id, extra={"op": "profiles.delete", "status": "ok"})
        self._refresh_after_write()
        return True

    # --- helpers ---
    def _refresh_after_write(self) -> None:
        # The write already succeeded; a failed refresh is reported, not raised
        try:
            self.list()
        except (PersistenceFailed, BackendError) as exc:
            self.list_error = getattr(exc, "message", str(exc))
            logger.warning("Refresh after write failed: %s", self.list_error, extra={"op": "profiles.list", "status": "error"})

    @staticmethod
    def _draft_id(draft: Draft) -> Optional[str]:
        if isinstance(draft, (HcpProfile, ProfilePatch)):
            value = draft.id
        else:
            value = draft.get("id")
        return str(value) if value else None

    @staticmethod
    def _create_fields(draft: Draft) -> dict:
        try:
            if isinstance(draft, HcpProfile):
                profile = draft
            else:
                data = draft.model_dump(by_alias=True, exclude_unset=True) if isinstance(draft, ProfilePatch) else dict(draft)
                profile = HcpProfile.model_validate(data)
        except ValidationError as exc:
            raise ValidationFailure(format_validation_error(exc)) from exc
        fields = profile.to_document()
        for key in SYSTEM_KEYS:
            fields.pop(key, None)
        return fields

    @staticmethod
    def _update_fields(draft: Draft) -> dict:
        try:
            if isinstance(draft, ProfilePatch):
                patch = draft
            elif isinstance(draft, HcpProfile):
                patch = ProfilePatch.model_validate(draft.model_dump(by_alias=True, exclude_unset=True))
            else:
                patch = ProfilePatch.model_validate(dict(draft))
        except ValidationError as exc:
            raise ValidationFailure(format_validation_error(exc)) from exc
        return patch.to_fields()
