from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

logger = logging.getLogger(__name__)

# Keys the workflow owns; never accepted from a caller's patch.
SYSTEM_KEYS: Tuple[str, ...] = ("id", "dateCreated", "lastUpdated")


class HcpStatus(str, Enum):
    PENDING_REVIEW = "Pending Review"
    APPROVED = "Approved - Ready for Match"
    MATCHED = "Matched"
    INACTIVE = "Inactive"


class Availability(BaseModel):
    full_time: bool = Field(default=False, alias="fullTime")
    part_time: bool = Field(default=False, alias="partTime")
    days: List[str] = Field(default_factory=list)
    hours: str = ""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class EmergencyContact(BaseModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class EmploymentEntry(BaseModel):
    employer: Optional[str] = None
    role: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    duties: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


REQUIRED_LABELS: Dict[str, str] = {
    "full_name": "Full name",
    "primary_skill": "Primary skill",
    "experience_years": "Experience years",
    "bio_summary": "Bio summary",
    "location_preference": "Location preference",
}
REQUIRED_TEXT_FIELDS = ("full_name", "primary_skill", "bio_summary", "location_preference")


def _require_text(value: Optional[str], label: str) -> Optional[str]:
    if value is None:
        return value
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{label} is required")
    return stripped


class HcpProfile(BaseModel):
    """Stored shape of one home-care professional. Wire names are camelCase."""

    id: Optional[str] = None

    # Essentials
    full_name: str = Field(alias="fullName")
    primary_skill: str = Field(alias="primarySkill")
    experience_years: int = Field(alias="experienceYears", ge=0)
    bio_summary: str = Field(alias="bioSummary")
    location_preference: str = Field(alias="locationPreference")
    profile_photo_url: Optional[str] = Field(default=None, alias="profilePhotoUrl")

    # Enrichment
    secondary_skills: Optional[List[str]] = Field(default=None, alias="secondarySkills")
    languages_spoken: Optional[List[str]] = Field(default=None, alias="languagesSpoken")
    certifications: Optional[List[str]] = None
    education_level: Optional[str] = Field(default=None, alias="educationLevel")
    employment_history: Optional[List[EmploymentEntry]] = Field(default=None, alias="employmentHistory")
    references_summary: Optional[str] = Field(default=None, alias="referencesSummary")
    availability: Optional[Availability] = None

    # Vetting
    police_clearance_status: Optional[str] = Field(default=None, alias="policeClearanceStatus")
    police_clearance_date: Optional[str] = Field(default=None, alias="policeClearanceDate")
    national_id: Optional[str] = Field(default=None, alias="nationalId")
    health_notes: Optional[str] = Field(default=None, alias="healthNotes")
    emergency_contact: Optional[EmergencyContact] = Field(default=None, alias="emergencyContact")
    admin_notes: Optional[str] = Field(default=None, alias="adminNotes")

    # System
    internal_status: Optional[HcpStatus] = Field(default=None, alias="internalStatus")
    date_created: Optional[str] = Field(default=None, alias="dateCreated")
    last_updated: Optional[str] = Field(default=None, alias="lastUpdated")

    # Stored documents may carry keys we have not formalised yet
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator(*REQUIRED_TEXT_FIELDS)
    @classmethod
    def _required_text_not_blank(cls, v: str, info: ValidationInfo) -> str:
        return _require_text(v, REQUIRED_LABELS[info.field_name])

    def to_document(self) -> Dict[str, Any]:
        """Fields as written to the document store (no id)."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id"}, exclude_none=True) | {
            "profilePhotoUrl": self.profile_photo_url,
        }

    @classmethod
    def from_document(cls, doc_id: str, fields: Dict[str, Any]) -> Optional["HcpProfile"]:
        """Build a record from a stored document; None if it no longer validates."""
        data = dict(fields)
        data["id"] = doc_id
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            logger.warning("Skipping stored profile %s: %d validation error(s)", doc_id, exc.error_count())
            return None


class ProfilePatch(BaseModel):
    """Partial update for an existing profile; only explicitly set fields are sent."""

    id: Optional[str] = None

    full_name: Optional[str] = Field(default=None, alias="fullName")
    primary_skill: Optional[str] = Field(default=None, alias="primarySkill")
    experience_years: Optional[int] = Field(default=None, alias="experienceYears", ge=0)
    bio_summary: Optional[str] = Field(default=None, alias="bioSummary")
    location_preference: Optional[str] = Field(default=None, alias="locationPreference")
    profile_photo_url: Optional[str] = Field(default=None, alias="profilePhotoUrl")

    secondary_skills: Optional[List[str]] = Field(default=None, alias="secondarySkills")
    languages_spoken: Optional[List[str]] = Field(default=None, alias="languagesSpoken")
    certifications: Optional[List[str]] = None
    education_level: Optional[str] = Field(default=None, alias="educationLevel")
    employment_history: Optional[List[EmploymentEntry]] = Field(default=None, alias="employmentHistory")
    references_summary: Optional[str] = Field(default=None, alias="referencesSummary")
    availability: Optional[Availability] = None

    police_clearance_status: Optional[str] = Field(default=None, alias="policeClearanceStatus")
    police_clearance_date: Optional[str] = Field(default=None, alias="policeClearanceDate")
    national_id: Optional[str] = Field(default=None, alias="nationalId")
    health_notes: Optional[str] = Field(default=None, alias="healthNotes")
    emergency_contact: Optional[EmergencyContact] = Field(default=None, alias="emergencyContact")
    admin_notes: Optional[str] = Field(default=None, alias="adminNotes")

    internal_status: Optional[HcpStatus] = Field(default=None, alias="internalStatus")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    # Runs only for fields the caller set, so an explicit None is a request to clear
    @field_validator(*REQUIRED_LABELS)
    @classmethod
    def _required_fields_not_cleared(cls, v: Any, info: ValidationInfo) -> Any:
        label = REQUIRED_LABELS[info.field_name]
        if v is None:
            raise ValueError(f"{label} is required")
        if isinstance(v, str):
            return _require_text(v, label)
        return v

    def to_fields(self) -> Dict[str, Any]:
        """Only the fields the caller set, camelCase, minus system keys."""
        data = self.model_dump(by_alias=True, mode="json", exclude_unset=True)
        for key in SYSTEM_KEYS:
            data.pop(key, None)
        return data
