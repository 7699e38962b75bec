"""Remote service handle and the tagged result of initialising it.

The handle is built once per process and passed explicitly into the session
gate and the workflows. Initialisation never raises for a missing or broken
configuration: it returns ``Disabled`` so the caller can still come up and
report why data operations are off.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Optional, Union

from config.settings import Settings, get_settings
from ports.documents import DocumentStorePort
from ports.identity import IdentityProviderPort
from ports.objects import ObjectStorePort
from services.errors import ConfigurationMissing

logger = logging.getLogger(__name__)


@dataclass
class RemoteServices:
    backend: str
    identity: IdentityProviderPort
    documents: DocumentStorePort
    # None when object storage could not be set up; uploads then fail fast
    objects: Optional[ObjectStorePort] = None


@dataclass(frozen=True)
class Ready:
    services: RemoteServices


@dataclass(frozen=True)
class Disabled:
    reason: ConfigurationMissing


InitResult = Union[Ready, Disabled]


def init_remote_services(settings: Optional[Settings] = None) -> InitResult:
    if settings is None:
        try:
            settings = get_settings()
        except ConfigurationMissing as exc:
            logger.error(exc.message, extra={"op": "init", "status": "disabled"})
            return Disabled(exc)
    # Imported here so registering the adapters stays off the import path of models/services
    from backends.registry import get_backend
    import backends  # noqa: F401

    try:
        services = get_backend(settings.backend, settings)
    except KeyError:
        reason = ConfigurationMissing(
            ["HCP_BACKEND"],
            message=f"Unknown backend '{settings.backend}'. Data operations are disabled.",
        )
    except ConfigurationMissing as exc:
        reason = exc
    except (OSError, sqlite3.Error) as exc:
        reason = ConfigurationMissing(message=f"Backend could not be opened: {exc}. Data operations are disabled.")
    else:
        logger.info("Remote services ready", extra={"op": "init", "status": "ok", "backend": services.backend})
        return Ready(services)

    logger.error(reason.message, extra={"op": "init", "status": "disabled", "backend": settings.backend})
    return Disabled(reason)
