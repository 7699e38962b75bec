from .hcp_profile import (
    Availability,
    EmergencyContact,
    EmploymentEntry,
    HcpProfile,
    HcpStatus,
    ProfilePatch,
)
from .identity import Identity, SessionState
from .upload import (
    LocalFile,
    TransferSnapshot,
    UploadEvent,
    UploadFailed,
    UploadProgress,
    UploadSession,
    UploadSucceeded,
)

__all__ = [
    "Availability",
    "EmergencyContact",
    "EmploymentEntry",
    "HcpProfile",
    "HcpStatus",
    "ProfilePatch",
    "Identity",
    "SessionState",
    "LocalFile",
    "TransferSnapshot",
    "UploadEvent",
    "UploadFailed",
    "UploadProgress",
    "UploadSession",
    "UploadSucceeded",
]
