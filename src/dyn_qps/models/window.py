"""Report time window.

Date/Time: Uses `whenever` library (UTC-first, Rust-backed).
"""

from pydantic import BaseModel, Field, model_validator
from whenever import Instant, TimeDelta

from .config import Period


class TimeWindow(BaseModel):
    """Epoch-second bounds sent as start_ts/end_ts to the QPSReport endpoint."""

    start_ts: int = Field(ge=0)
    end_ts: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindow":
        if self.end_ts < self.start_ts:
            raise ValueError("end_ts must not be before start_ts")
        return self

    @classmethod
    def for_period(cls, period: Period, now: Instant | None = None) -> "TimeWindow":
        end = now if now is not None else Instant.now()
        start = end - TimeDelta(seconds=period.seconds)
        return cls(start_ts=start.timestamp(), end_ts=end.timestamp())

    def to_params(self) -> dict[str, int]:
        return {"start_ts": self.start_ts, "end_ts": self.end_ts}
