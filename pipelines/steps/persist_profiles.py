from __future__ import annotations

import logging
from typing import Callable, Optional

from pipelines.runner import RunContext
from services.errors import HcpAdminError
from services.profile_workflow import ProfileWorkflow

logger = logging.getLogger(__name__)


class PersistProfiles:
    """Create each validated row through the profile workflow.

    Rows are always created as new records; an ``id`` in the input is ignored.
    """

    def __init__(self, workflow: ProfileWorkflow, on_processed: Optional[Callable[[int], None]] = None) -> None:
        self.workflow = workflow
        self.on_processed = on_processed

    def run(self, ctx: RunContext) -> RunContext:
        created = []
        failed = []
        for fields in (ctx.profiles or []):
            draft = {k: v for k, v in fields.items() if k != "id"}
            name = draft.get("fullName") or "(unnamed)"
            try:
                created.append(self.workflow.save(draft))
            except HcpAdminError as exc:
                logger.warning("Could not import %s: %s", name, exc.message,
                               extra={"op": "import.persist", "status": "error", "error": exc.message})
                failed.append({"profile": name, "error": exc.message})
                continue
            if self.on_processed:
                self.on_processed(len(created))

        ctx.meta["created_ids"] = created
        ctx.meta["failed"] = failed
        return ctx
