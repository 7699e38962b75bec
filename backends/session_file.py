"""Persisted sign-in session for the admin CLI.

The browser SDK keeps the signed-in user in local storage; the CLI keeps it in a
small JSON file readable only by the current user.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def load_session(path: Optional[Path]) -> Optional[Dict[str, Any]]:
    if path is None or not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable session file %s: %s", path, exc)
        return None
    return data if isinstance(data, dict) else None


def save_session(path: Optional[Path], data: Dict[str, Any]) -> None:
    if path is None:
        return
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        os.chmod(path, 0o600)
    except OSError as exc:
        logger.warning("Could not persist session to %s: %s", path, exc)


def clear_session(path: Optional[Path]) -> None:
    if path is None:
        return
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not delete session file %s: %s", path, exc)
