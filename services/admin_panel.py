from __future__ import annotations

import logging
from typing import Callable, List, Optional

from config.settings import Settings, get_settings
from models.hcp_profile import HcpProfile
from models.identity import SessionState
from ports.objects import ObjectStorePort
from services.errors import HcpAdminError
from services.profile_form import ProfileForm
from services.profile_workflow import Confirm, ProfileWorkflow
from services.remote import init_remote_services
from services.session_gate import SessionGate
from services.upload_workflow import UploadWorkflow

logger = logging.getLogger(__name__)

UploadFactory = Callable[[Optional[ObjectStorePort]], UploadWorkflow]


class AdminPanel:
    """State behind the admin page: sign-in error, record list, open form."""

    def __init__(self, gate: SessionGate, workflow: ProfileWorkflow, upload_factory: UploadFactory) -> None:
        self.gate = gate
        self.workflow = workflow
        self.upload_factory = upload_factory
        self.login_error: Optional[str] = None
        self.error: Optional[str] = None
        self.loading = False
        self.selected: Optional[HcpProfile] = None
        self.form: Optional[ProfileForm] = None
        self._unsubscribe = gate.subscribe(self._on_session)

    @property
    def records(self) -> List[HcpProfile]:
        return self.workflow.records

    def _on_session(self, state: SessionState) -> None:
        if state.identity is None:
            # List visibility follows authentication
            self.workflow.clear()
            self.selected = None
            self.form = None
        else:
            self.refresh()

    def login(self, email: str, password: str) -> bool:
        self.login_error = None
        try:
            self.gate.sign_in(email, password)
        except HcpAdminError as exc:
            self.login_error = exc.message
            return False
        return True

    def logout(self) -> None:
        self.gate.sign_out()
        self.workflow.clear()
        self.selected = None
        self.form = None

    def refresh(self) -> List[HcpProfile]:
        self.loading = True
        self.error = None
        try:
            return self.workflow.list()
        except HcpAdminError as exc:
            self.error = exc.message
            return self.workflow.records
        finally:
            self.loading = False

    def _new_upload(self) -> UploadWorkflow:
        services = self.gate.services
        return self.upload_factory(services.objects if services else None)

    def open_new(self) -> ProfileForm:
        self.selected = None
        self.form = ProfileForm(self.workflow, self._new_upload())
        return self.form

    def open_edit(self, record_id: str) -> Optional[ProfileForm]:
        record = self.workflow.get(record_id)
        if record is None:
            self.error = f"Profile {record_id} not found."
            return None
        self.selected = record
        self.form = ProfileForm(self.workflow, self._new_upload(), record)
        return self.form

    def form_saved(self) -> None:
        """Close the form after a successful save."""
        self.form = None
        self.selected = None
        if self.workflow.list_error:
            self.error = self.workflow.list_error

    def delete(self, record_id: str, confirm: Confirm) -> bool:
        self.error = None
        try:
            deleted = self.workflow.delete(record_id, confirm)
        except HcpAdminError as exc:
            self.error = exc.message
            return False
        if deleted and self.selected is not None and self.selected.id == record_id:
            self.selected = None
            self.form = None
        if self.workflow.list_error:
            self.error = self.workflow.list_error
        return deleted

    def close(self) -> None:
        self._unsubscribe()
        self.gate.close()


def create_admin_panel(settings: Optional[Settings] = None) -> AdminPanel:
    """Wire the remote handle, gate and workflows together once per process."""
    settings = settings or get_settings()
    gate = SessionGate(init_remote_services(settings))
    workflow = ProfileWorkflow(gate, collection=settings.profiles_collection)

    def _upload_factory(objects: Optional[ObjectStorePort]) -> UploadWorkflow:
        return UploadWorkflow(objects, prefix=settings.avatar_prefix, max_bytes=settings.max_upload_bytes)

    return AdminPanel(gate, workflow, _upload_factory)
