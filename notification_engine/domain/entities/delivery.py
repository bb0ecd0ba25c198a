"""Value objects describing webhook delivery attempts and their results."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of a single HTTP attempt against a webhook endpoint."""

    success: bool
    latency_ms: float
    status_code: int | None = None
    error: str | None = None
    timed_out: bool = False
    configuration_error: str | None = None


class DeliveryPhase(str, Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryState:
    """Progress of a delivery through its bounded retry loop."""

    phase: DeliveryPhase
    attempt: int
    max_attempts: int
    timeouts: int = 0
    last_outcome: DeliveryOutcome | None = None

    @classmethod
    def start(cls, max_attempts: int) -> "DeliveryState":
        return cls(phase=DeliveryPhase.ATTEMPTING, attempt=1, max_attempts=max(1, max_attempts))

    @property
    def is_final(self) -> bool:
        return self.phase is not DeliveryPhase.ATTEMPTING

    def advance(self, outcome: DeliveryOutcome) -> "DeliveryState":
        """Return the state reached after ``outcome`` of the current attempt."""

        if self.is_final:
            raise ValueError(f"Delivery already finished with phase '{self.phase.value}'")
        timeouts = self.timeouts + (1 if outcome.timed_out else 0)
        if outcome.success:
            phase = DeliveryPhase.SUCCEEDED
            attempt = self.attempt
        elif self.attempt >= self.max_attempts:
            phase = DeliveryPhase.FAILED
            attempt = self.attempt
        else:
            phase = DeliveryPhase.ATTEMPTING
            attempt = self.attempt + 1
        return replace(
            self,
            phase=phase,
            attempt=attempt,
            timeouts=timeouts,
            last_outcome=outcome,
        )


@dataclass(frozen=True)
class FinalOutcome:
    """Settled result of a delivery after every retry has been spent."""

    webhook_id: int | None
    success: bool
    attempts: int
    timeouts: int
    last_outcome: DeliveryOutcome | None
    template_error: str | None = None

    @classmethod
    def from_state(
        cls,
        webhook_id: int | None,
        state: DeliveryState,
        *,
        template_error: str | None = None,
    ) -> "FinalOutcome":
        return cls(
            webhook_id=webhook_id,
            success=state.phase is DeliveryPhase.SUCCEEDED,
            attempts=state.attempt,
            timeouts=state.timeouts,
            last_outcome=state.last_outcome,
            template_error=template_error,
        )


__all__ = [
    "DeliveryOutcome",
    "DeliveryPhase",
    "DeliveryState",
    "FinalOutcome",
]
