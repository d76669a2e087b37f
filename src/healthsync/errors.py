"""Exception hierarchy for the HealthSync capture core.

Recovery policy per error:
    ProviderUnavailable          — recovered by the orchestrator (field degrades to 0 / absent)
    StoreCorrupt                 — recovered by the record store (history read as empty)
    SchedulerRegistrationFailure — surfaced to register_periodic() / update_interval() callers
    WriteFailure                 — surfaced to manual sync callers, logged by background triggers
    InvalidInterval              — surfaced to callers of IntervalConfig.set()
"""

from __future__ import annotations


class HealthSyncError(Exception):
    """Base class for all HealthSync errors."""


class ProviderUnavailable(HealthSyncError):
    """A health or location provider could not supply data.

    Attributes:
        provider: Short name of the provider that failed ('health', 'location').
        reason:   Human-readable cause (denied, timeout, error text).
    """

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider} provider unavailable: {reason}")


class StoreCorrupt(HealthSyncError):
    """The persisted history document could not be deserialized."""


class WriteFailure(HealthSyncError):
    """The persistence layer rejected a write."""


class SchedulerRegistrationFailure(HealthSyncError):
    """The host scheduler refused or failed a periodic registration."""


class InvalidInterval(HealthSyncError, ValueError):
    """A sync interval outside the accepted range was supplied."""

    def __init__(self, minutes: object, low: int, high: int) -> None:
        self.minutes = minutes
        super().__init__(
            f"Sync interval must be an integer in [{low}, {high}] minutes, got {minutes!r}"
        )
