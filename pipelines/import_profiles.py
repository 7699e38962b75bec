from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pipelines.runner import Pipeline, RunContext
from pipelines.steps import PersistProfiles, ValidateProfiles
from services.errors import ValidationFailure
from services.profile_workflow import ProfileWorkflow


def load_profiles_file(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Read a JSON array of profiles, or an object with a ``profiles`` array."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValidationFailure([f"Cannot read {p}: {exc}"]) from exc
    if isinstance(data, dict):
        data = data.get("profiles")
    if not isinstance(data, list):
        raise ValidationFailure([f"{p} must contain a JSON array of profiles"])
    return data


def import_profiles(
    workflow: ProfileWorkflow,
    path: Union[str, Path],
    on_processed: Optional[Callable[[int], None]] = None,
) -> RunContext:
    """Validate and create every profile in ``path``; returns the run context.

    ``on_processed`` is called with the running count after each created row.
    ``ctx.meta`` carries ``validation_stats``, ``created_ids`` and ``failed``.
    """
    # Fail on auth/config before reading rows
    workflow.gate.require_access()
    ctx = RunContext(source=str(path), profiles=load_profiles_file(path))
    pipeline = Pipeline([ValidateProfiles(), PersistProfiles(workflow, on_processed)])
    return pipeline.run(ctx)
