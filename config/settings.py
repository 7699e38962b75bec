from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional

from dotenv import load_dotenv

from services.errors import ConfigurationMissing


# Names of the settings that must all be non-empty before Firebase is reachable.
FIREBASE_REQUIRED_ENV: Dict[str, str] = {
    "api_key": "FIREBASE_API_KEY",
    "auth_domain": "FIREBASE_AUTH_DOMAIN",
    "project_id": "FIREBASE_PROJECT_ID",
    "storage_bucket": "FIREBASE_STORAGE_BUCKET",
    "messaging_sender_id": "FIREBASE_MESSAGING_SENDER_ID",
    "app_id": "FIREBASE_APP_ID",
}


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _as_positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        value = 0
    if value <= 0:
        raise ConfigurationMissing([name], message=f"{name} must be a positive integer (got '{raw}').")
    return value


@dataclass(frozen=True)
class FirebaseConfig:
    api_key: Optional[str]
    auth_domain: Optional[str]
    project_id: Optional[str]
    storage_bucket: Optional[str]
    messaging_sender_id: Optional[str]
    app_id: Optional[str]
    measurement_id: Optional[str] = None

    def missing(self) -> List[str]:
        """Return env names of required settings that are absent or blank."""
        out: List[str] = []
        for attr, env_name in FIREBASE_REQUIRED_ENV.items():
            value = getattr(self, attr)
            if not isinstance(value, str) or not value.strip():
                out.append(env_name)
        return out


@dataclass(frozen=True)
class Settings:
    firebase: FirebaseConfig

    # Backend selection: firebase | local
    backend: str

    # Local backend
    db_path: str
    blob_dir: str

    # Record / upload layout
    profiles_collection: str
    avatar_prefix: str
    upload_chunk_bytes: int
    max_upload_bytes: int

    # Session persistence and HTTP
    session_path: str
    http_timeout_seconds: int

    log_level: str
    run_env: str

    # Logging/tracing
    remote_trace: bool = False
    remote_log_path: str = "logs/remote_calls.jsonl"

    def missing_firebase_settings(self) -> List[str]:
        return self.firebase.missing()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    firebase = FirebaseConfig(
        api_key=os.getenv("FIREBASE_API_KEY"),
        auth_domain=os.getenv("FIREBASE_AUTH_DOMAIN"),
        project_id=os.getenv("FIREBASE_PROJECT_ID"),
        storage_bucket=os.getenv("FIREBASE_STORAGE_BUCKET"),
        messaging_sender_id=os.getenv("FIREBASE_MESSAGING_SENDER_ID"),
        app_id=os.getenv("FIREBASE_APP_ID"),
        measurement_id=os.getenv("FIREBASE_MEASUREMENT_ID"),
    )
    return Settings(
        firebase=firebase,
        backend=os.getenv("HCP_BACKEND", "firebase").strip().lower(),
        db_path=os.getenv("HCP_DB_PATH", "hcp_admin.db"),
        blob_dir=os.getenv("HCP_BLOB_DIR", "blobs"),
        profiles_collection=os.getenv("HCP_PROFILES_COLLECTION", "hcpProfiles"),
        avatar_prefix=os.getenv("HCP_AVATAR_PREFIX", "hcp_profile_pictures").strip("/"),
        upload_chunk_bytes=_as_positive_int("HCP_UPLOAD_CHUNK_BYTES", 256 * 1024),
        max_upload_bytes=_as_positive_int("HCP_MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
        session_path=os.path.expanduser(os.getenv("HCP_SESSION_PATH", "~/.hcp-admin/session.json")),
        http_timeout_seconds=_as_positive_int("HCP_HTTP_TIMEOUT_SECONDS", 30),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        run_env=os.getenv("RUN_ENV", "local"),
        remote_trace=_as_bool(os.getenv("REMOTE_TRACE")),
        remote_log_path=os.getenv("REMOTE_LOG_PATH", "logs/remote_calls.jsonl"),
    )
