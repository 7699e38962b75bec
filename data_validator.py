import logging
import re
from typing import Any, Dict, List

from pydantic import ValidationError

from models.hcp_profile import HcpProfile, HcpStatus
from services.mapping import map_to_profile_fields

logger = logging.getLogger(__name__)


def format_validation_error(exc: ValidationError) -> List[str]:
    """Flatten a pydantic error into 'field: message' lines."""
    out = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "record"
        out.append(f"{loc}: {err.get('msg')}")
    return out


class ProfileValidator:
    def __init__(self):
        self.validation_stats = {
            'total_profiles': 0,
            'valid_profiles': 0,
            'invalid_profiles': 0,
            'validation_errors': []
        }

    def validate_required_fields(self, fields: Dict[str, Any]) -> List[str]:
        """Check the required profile fields before any model validation."""
        errors = []
        for field in ('fullName', 'primarySkill', 'bioSummary', 'locationPreference'):
            value = fields.get(field)
            if not isinstance(value, str) or not value.strip():
                errors.append(f"Missing required field: {field}")
        years = fields.get('experienceYears')
        if years is None or (isinstance(years, str) and not years.strip()):
            errors.append("Missing required field: experienceYears")
        return errors

    def validate_optional_fields(self, fields: Dict[str, Any]) -> List[str]:
        """Plausibility warnings; they never reject a record."""
        warnings = []

        years = fields.get('experienceYears')
        if isinstance(years, int) and years > 60:
            warnings.append("Experience years outside plausible range (0-60)")

        bio = fields.get('bioSummary')
        if isinstance(bio, str) and len(bio) > 2000:
            warnings.append(f"Bio summary too long: {len(bio)} characters")

        photo = fields.get('profilePhotoUrl')
        if photo and not str(photo).startswith(('http://', 'https://', 'file://')):
            warnings.append("Profile photo URL should be an http(s) URL")

        contact = fields.get('emergencyContact')
        if isinstance(contact, dict) and contact.get('phone'):
            digits = re.sub(r"\D", "", str(contact['phone']))
            if len(digits) < 7:
                warnings.append("Emergency contact phone number too short to be valid")

        status = fields.get('internalStatus')
        if status and status != HcpStatus.PENDING_REVIEW.value:
            warnings.append("Imported profiles always start as Pending Review")

        return warnings

    def validate_profile_data(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a single row and return validation results."""
        fields = map_to_profile_fields(raw)
        validation_result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'profile': fields
        }

        validation_result['errors'].extend(self.validate_required_fields(fields))
        validation_result['warnings'].extend(self.validate_optional_fields(fields))

        if not validation_result['errors']:
            draft = dict(fields)
            draft.pop('id', None)
            try:
                HcpProfile.model_validate(draft)
            except ValidationError as exc:
                validation_result['errors'].extend(format_validation_error(exc))

        validation_result['is_valid'] = len(validation_result['errors']) == 0

        self.validation_stats['total_profiles'] += 1
        if validation_result['is_valid']:
            self.validation_stats['valid_profiles'] += 1
        else:
            self.validation_stats['invalid_profiles'] += 1
            self.validation_stats['validation_errors'].append({
                'profile': fields.get('fullName') or '(unnamed)',
                'errors': validation_result['errors'],
            })
        return validation_result

    def validate_profiles(self, profiles: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Validate a batch; returns the valid rows as camelCase field dicts."""
        valid = []
        for raw in profiles:
            if not isinstance(raw, dict):
                self.validation_stats['total_profiles'] += 1
                self.validation_stats['invalid_profiles'] += 1
                self.validation_stats['validation_errors'].append({
                    'profile': '(not an object)',
                    'errors': ["Row is not a JSON object"],
                })
                continue
            result = self.validate_profile_data(raw)
            if result['is_valid']:
                valid.append(result['profile'])
            else:
                logger.warning("Invalid profile %s: %s", result['profile'].get('fullName') or '(unnamed)',
                               "; ".join(result['errors']))
            for warning in result['warnings']:
                logger.info("Profile %s: %s", result['profile'].get('fullName') or '(unnamed)', warning)
        return valid

    def get_validation_stats(self) -> Dict[str, Any]:
        return dict(self.validation_stats)
