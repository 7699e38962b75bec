from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from utils.logging_setup import init_logging


logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """State handed from step to step during one import run."""

    source: Optional[str] = None
    profiles: list = field(default_factory=list)
    meta: dict = field(default_factory=dict)


class Step(Protocol):
    def run(self, ctx: RunContext) -> RunContext:
        ...


class Pipeline:
    def __init__(self, steps: List[Step]):
        self.steps = steps

    def run(self, ctx: RunContext) -> RunContext:
        init_logging()
        for step in self.steps:
            name = type(step).__name__
            started = time.perf_counter()
            try:
                ctx = step.run(ctx)
            except Exception as exc:
                logger.error("Step failed", extra={
                    "op": f"pipeline.{name}", "status": "error",
                    "duration_ms": int((time.perf_counter() - started) * 1000), "error": str(exc),
                })
                raise
            logger.info("Step finished", extra={
                "op": f"pipeline.{name}", "status": "ok",
                "duration_ms": int((time.perf_counter() - started) * 1000),
            })
        return ctx
