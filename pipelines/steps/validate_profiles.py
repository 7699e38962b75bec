from __future__ import annotations

from data_validator import ProfileValidator
from pipelines.runner import RunContext


class ValidateProfiles:
    def __init__(self) -> None:
        self.validator = ProfileValidator()

    def run(self, ctx: RunContext) -> RunContext:
        ctx.profiles = self.validator.validate_profiles(ctx.profiles or [])
        ctx.meta["validation_stats"] = self.validator.get_validation_stats()
        return ctx
