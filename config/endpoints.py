from __future__ import annotations

import os


# Central table of Firebase REST endpoints. Each base URL may be overridden via
# env vars to point at the local Firebase emulator suite.
#
# Keys are consumed by backends/firebase_*.py
ENDPOINTS: dict[str, dict] = {
    "auth": {
        "base_url": os.getenv("FIREBASE_AUTH_URL", "https://identitytoolkit.googleapis.com/v1"),
        "sign_in": "accounts:signInWithPassword",
        "operation": "auth.sign_in",
    },
    "token": {
        "base_url": os.getenv("FIREBASE_TOKEN_URL", "https://securetoken.googleapis.com/v1"),
        "refresh": "token",
        "operation": "auth.refresh",
    },
    "firestore": {
        "base_url": os.getenv("FIRESTORE_URL", "https://firestore.googleapis.com/v1"),
        # Path template for the root of a database's documents
        "documents": "projects/{project_id}/databases/(default)/documents",
        "page_size": 300,
    },
    "storage": {
        "base_url": os.getenv("FIREBASE_STORAGE_URL", "https://firebasestorage.googleapis.com/v0"),
        "objects": "b/{bucket}/o",
    },
}
