from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pinvault.models.security import VerifyResult


class PinVaultError(Exception):
    """Base error for the PIN security core."""


class ValidationError(PinVaultError):
    """Input has the wrong shape: malformed or weak PIN, mismatched confirmation."""


class StorageError(PinVaultError):
    """The credential store is unavailable or a write failed."""


class VerificationError(PinVaultError):
    """A PIN check required by a mutating operation did not pass."""

    def __init__(self, result: VerifyResult) -> None:
        super().__init__(result.error or "PIN verification failed")
        self.result = result


class LockoutError(VerificationError):
    """The lockout policy refused the PIN check."""

    @property
    def remaining_time_ms(self) -> int:
        return self.result.remaining_time_ms


class RemoteError(PinVaultError):
    """The PIN reset service could not be reached or answered garbage."""


class FlowStateError(PinVaultError):
    """A flow operation was called from a state that does not allow it."""
