from __future__ import annotations

import requests

from backends.firebase_auth import FirebaseAuthClient
from backends.firebase_storage import FirebaseStorageClient
from backends.firestore import FirestoreClient
from backends.registry import register
from config.settings import Settings
from services.errors import ConfigurationMissing
from services.remote import RemoteServices


def build_firebase_services(settings: Settings) -> RemoteServices:
    missing = settings.missing_firebase_settings()
    if missing:
        raise ConfigurationMissing(missing)

    http = requests.Session()
    timeout = settings.http_timeout_seconds
    auth = FirebaseAuthClient(settings.firebase, session_path=settings.session_path, http=http, timeout=timeout)
    documents = FirestoreClient(settings.firebase, auth.id_token, http=http, timeout=timeout)
    objects = FirebaseStorageClient(
        settings.firebase,
        auth.id_token,
        http=http,
        timeout=timeout,
        chunk_bytes=settings.upload_chunk_bytes,
    )
    return RemoteServices(backend="firebase", identity=auth, documents=documents, objects=objects)


def _register():
    register("firebase", build_firebase_services)


_register()
