"""Option models shared by the acquisition protocol and the lock controller."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


REFRESH_INTERVAL_COEF = 0.8


class LockOptions(BaseModel):
    """Timing options for a single lock. All durations are milliseconds."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    lock_timeout_ms: int = Field(default=10000, gt=0)
    acquire_timeout_ms: int = Field(default=10000, ge=0)
    acquire_attempts_limit: Optional[int] = Field(default=None, ge=1)
    retry_interval_ms: int = Field(default=10, ge=0)
    # None derives the interval from lock_timeout_ms; <= 0 disables renewal.
    refresh_interval_ms: Optional[int] = None

    @property
    def refresh_interval_is_derived(self) -> bool:
        return self.refresh_interval_ms is None

    def resolved_refresh_interval_ms(self) -> int:
        if self.refresh_interval_ms is not None:
            return self.refresh_interval_ms
        return round(self.lock_timeout_ms * REFRESH_INTERVAL_COEF)

    def merged(self, **overrides: object) -> "LockOptions":
        """Return a validated copy with ``overrides`` applied on top."""
        if not overrides:
            return self
        data = self.model_dump(exclude_unset=True)
        data.update(overrides)
        return LockOptions.model_validate(data)
