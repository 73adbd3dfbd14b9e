"""
Run-scoped context for evaluation runs.

RunContext carries the run identifier, the variant being evaluated and an
optional deadline. The runner checks the deadline between examples, and
binds the run identifier onto every log record it emits.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from loguru import logger
from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunContext(BaseModel):
    """Context for a single evaluation run.

    Attributes:
        run_id: Unique identifier, used for log correlation and reports.
        name: Human-readable run name (e.g. the suite name).
        variant: Name of the variant under test, if any.
        deadline: Absolute time after which no new example is started.
        started_at: Creation time of the context.
    """

    run_id: str
    name: str | None = None
    variant: str | None = None
    deadline: datetime | None = None
    started_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    @classmethod
    def new(cls, name: str | None = None) -> "RunContext":
        return cls(run_id=f"eval-{uuid.uuid4().hex[:12]}", name=name)

    def for_variant(self, variant: str) -> "RunContext":
        """Derive a context for one variant; the variant gets its own run_id."""
        return self.model_copy(
            update={"run_id": f"{self.run_id}-{variant}", "variant": variant}
        )

    def with_deadline(self, deadline: datetime) -> "RunContext":
        return self.model_copy(update={"deadline": deadline})

    def with_timeout(self, seconds: float) -> "RunContext":
        """Set the deadline relative to now."""
        return self.with_deadline(_utcnow() + timedelta(seconds=seconds))

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.deadline is None:
            return False
        return (now or _utcnow()) >= self.deadline

    def bind_logger(self):
        """Return a loguru logger with run_id (and variant) bound."""
        extra = {"run_id": self.run_id}
        if self.variant:
            extra["variant"] = self.variant
        return logger.bind(**extra)
