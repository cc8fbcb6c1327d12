from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from pinvault.constants import (
    ATTEMPT_KEYS,
    CREDENTIAL_KEYS,
    FAILED_ATTEMPTS_KEY,
    LOCKOUT_TIME_KEY,
    PIN_HASH_KEY,
    PIN_PATTERN,
    PIN_SALT_KEY,
    PIN_SETUP_KEY,
    SALT_BYTES,
    WEAK_PINS,
    format_remaining,
)
from pinvault.errors import LockoutError, ValidationError, VerificationError
from pinvault.models.security import PinAuthRequirement, SecurityStatus, VerifyResult
from pinvault.settings import settings
from pinvault.storage.base import CredentialStore

logger = logging.getLogger(__name__)


def epoch_ms() -> int:
    return int(time.time() * 1000)


def hash_pin(pin: str, salt: str) -> str:
    return hashlib.sha256((pin + salt).encode()).hexdigest()


def is_well_formed(pin: str | None) -> bool:
    return isinstance(pin, str) and PIN_PATTERN.fullmatch(pin) is not None


def validate_pin_format(pin: str | None, *, reject_weak: bool = True) -> None:
    """Raise ValidationError unless ``pin`` is an acceptable new PIN."""
    if not is_well_formed(pin):
        raise ValidationError("PIN must be exactly 6 digits")
    if reject_weak and pin in WEAK_PINS:
        raise ValidationError("weak PIN")


class PinAuthenticator:
    """PIN lifecycle and lockout policy for one device.

    Only this class reads or writes the credential and attempt-state keys.
    Every call names the ``context`` (user id) it operates on, and
    read-modify-write cycles for a context are serialized by a per-context lock.
    Locks are kept for the life of the instance, one per context ever seen;
    a device holds a handful of users, so they are never pruned.
    """

    def __init__(
        self,
        store: CredentialStore,
        *,
        max_attempts: int | None = None,
        lockout_duration_ms: int | None = None,
        reject_weak_pins: bool | None = None,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        self.store = store
        self.max_attempts = max_attempts if max_attempts is not None else settings.max_attempts
        self.lockout_duration_ms = (
            lockout_duration_ms if lockout_duration_ms is not None else settings.lockout_duration_ms
        )
        self.reject_weak_pins = reject_weak_pins if reject_weak_pins is not None else settings.reject_weak_pins
        self.clock = clock
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _locked(self, context: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(context, threading.RLock())
        with lock:
            yield

    # --- Setup ---

    def validate_pin_format(self, pin: str | None) -> None:
        validate_pin_format(pin, reject_weak=self.reject_weak_pins)

    def setup_pin(self, context: str, pin: str) -> None:
        """Store a new PIN for ``context``, replacing any existing one.

        Clears the failed-attempt counter and any active lockout.
        """
        self.validate_pin_format(pin)
        with self._locked(context):
            self._store_credential(context, pin)
        logger.info("PIN set up for context=%s", context)

    def _store_credential(self, context: str, pin: str) -> None:
        salt = secrets.token_hex(SALT_BYTES)
        # Credential and cleared attempt state land in one write.
        self.store.put_many(
            context,
            {PIN_HASH_KEY: hash_pin(pin, salt), PIN_SALT_KEY: salt, PIN_SETUP_KEY: "true"},
            remove=ATTEMPT_KEYS,
        )

    def is_pin_setup(self, context: str) -> bool:
        return self.store.get(context, PIN_SETUP_KEY) == "true"

    # --- Verification ---

    def verify_pin(self, context: str, pin: str) -> VerifyResult:
        with self._locked(context):
            return self._verify(context, pin)

    def _verify(self, context: str, pin: str) -> VerifyResult:
        now = self.clock()

        lockout_until = self._lockout_until(context)
        if lockout_until is not None:
            if now < lockout_until:
                remaining = lockout_until - now
                logger.info("PIN check refused during lockout for context=%s", context)
                return VerifyResult(
                    error=f"Too many failed attempts. Try again in {format_remaining(remaining)}.",
                    locked_out=True,
                    remaining_time_ms=remaining,
                )
            self._reset_attempts(context)
            logger.info("Lockout expired for context=%s", context)

        # Malformed input costs an attempt like a wrong guess.
        if not is_well_formed(pin):
            return self._record_failure(context, now, "Invalid PIN format")

        stored_hash = self.store.get(context, PIN_HASH_KEY)
        salt = self.store.get(context, PIN_SALT_KEY)
        if not stored_hash or not salt:
            return VerifyResult(error="PIN not set up")

        if hmac.compare_digest(hash_pin(pin, salt).encode(), stored_hash.encode()):
            self._reset_attempts(context)
            logger.info("PIN verified for context=%s", context)
            return VerifyResult(success=True)

        return self._record_failure(context, now, "Incorrect PIN")

    def _record_failure(self, context: str, now: int, reason: str) -> VerifyResult:
        failed = self._failed_attempts(context) + 1
        remaining = self.max_attempts - failed

        if remaining <= 0:
            lockout_until = now + self.lockout_duration_ms
            self.store.put_many(context, {FAILED_ATTEMPTS_KEY: "0", LOCKOUT_TIME_KEY: str(lockout_until)})
            logger.warning("PIN locked after %d failed attempts for context=%s", failed, context)
            return VerifyResult(
                error=f"Too many failed attempts. PIN locked for {format_remaining(self.lockout_duration_ms)}.",
                locked_out=True,
                remaining_time_ms=self.lockout_duration_ms,
            )

        self.store.put(context, FAILED_ATTEMPTS_KEY, str(failed))
        logger.info("PIN check failed (%d/%d) for context=%s", failed, self.max_attempts, context)
        return VerifyResult(
            error=f"{reason}. {remaining} attempts remaining.",
            remaining_attempts=remaining,
        )

    def _require_verified(self, context: str, pin: str) -> None:
        result = self._verify(context, pin)
        if result.success:
            return
        if result.locked_out:
            raise LockoutError(result)
        raise VerificationError(result)

    # --- Change / removal ---

    def change_pin(self, context: str, old_pin: str, new_pin: str) -> None:
        """Replace the PIN after checking ``old_pin``.

        Raises LockoutError or VerificationError when the old PIN is not
        accepted; the stored credential is left as it was.
        """
        self.validate_pin_format(new_pin)
        with self._locked(context):
            self._require_verified(context, old_pin)
            self._store_credential(context, new_pin)
        logger.info("PIN changed for context=%s", context)

    def remove_pin(self, context: str, pin: str) -> None:
        with self._locked(context):
            self._require_verified(context, pin)
            self.store.delete_many(context, CREDENTIAL_KEYS + ATTEMPT_KEYS)
        logger.info("PIN removed for context=%s", context)

    def emergency_reset(self, context: str) -> None:
        """Delete the credential and attempt state without any PIN check."""
        with self._locked(context):
            self.store.delete_many(context, CREDENTIAL_KEYS + ATTEMPT_KEYS)
        logger.warning("Emergency PIN reset for context=%s", context)

    # --- Status ---

    def get_security_status(self, context: str) -> SecurityStatus:
        remaining = self._lockout_remaining(context)
        return SecurityStatus(
            pin_setup=self.is_pin_setup(context),
            failed_attempts=self._failed_attempts(context),
            is_locked_out=remaining > 0,
            lockout_remaining_time_ms=remaining,
        )

    def requires_pin_auth(self, context: str) -> PinAuthRequirement:
        remaining = self._lockout_remaining(context)
        return PinAuthRequirement(
            required=self.is_pin_setup(context),
            locked_out=remaining > 0,
            remaining_lockout_time_ms=remaining,
        )

    def generate_session_token(self) -> str:
        session_data = f"{self.clock()}-{secrets.token_hex(16)}"
        return hashlib.sha256(session_data.encode()).hexdigest()

    # --- Attempt state ---

    def _failed_attempts(self, context: str) -> int:
        value = self.store.get(context, FAILED_ATTEMPTS_KEY)
        if not value:
            return 0
        try:
            return max(0, int(value))
        except ValueError:
            logger.warning("Ignoring unreadable failed-attempt counter for context=%s", context)
            return 0

    def _lockout_until(self, context: str) -> int | None:
        value = self.store.get(context, LOCKOUT_TIME_KEY)
        if not value:
            return None
        try:
            return int(value)
        except ValueError:
            logger.warning("Ignoring unreadable lockout timestamp for context=%s", context)
            return None

    def _lockout_remaining(self, context: str) -> int:
        lockout_until = self._lockout_until(context)
        if lockout_until is None:
            return 0
        return max(0, lockout_until - self.clock())

    def _reset_attempts(self, context: str) -> None:
        self.store.delete_many(context, ATTEMPT_KEYS)
