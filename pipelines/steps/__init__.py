# Namespace for pipeline steps
from .validate_profiles import ValidateProfiles  # noqa: F401
from .persist_profiles import PersistProfiles  # noqa: F401
