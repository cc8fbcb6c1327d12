from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from pinvault.constants import COUNTDOWN_TICK_SECONDS, PIN_LENGTH, format_remaining
from pinvault.errors import StorageError
from pinvault.flows.recovery import PinRecoveryFlow
from pinvault.models.flow import EntryState, FlowEvent, FlowEventType
from pinvault.models.recovery import UserContact
from pinvault.services.biometric import BiometricAuthenticator, UnavailableBiometric
from pinvault.services.pin_service import PinAuthenticator, epoch_ms
from pinvault.services.reset_client import PinResetClient

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


def _default_timer(interval: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    return timer


class PinEntryFlow:
    """Unlock screen state machine.

    Buffers up to six digits and submits them automatically, turns
    PinAuthenticator results into events for the UI (``notify``), and runs a
    once-per-second countdown while the PIN is locked.  Call ``close()`` when
    the screen goes away so no countdown tick fires afterwards.
    """

    def __init__(
        self,
        authenticator: PinAuthenticator,
        user: UserContact,
        *,
        notify: Callable[[FlowEvent], None],
        biometric: BiometricAuthenticator | None = None,
        reset_client: PinResetClient | None = None,
        clock: Callable[[], int] = epoch_ms,
        timer_factory: TimerFactory = _default_timer,
    ) -> None:
        self.authenticator = authenticator
        self.user = user
        self.notify = notify
        self.biometric = biometric or UnavailableBiometric()
        self.clock = clock
        self.timer_factory = timer_factory

        self.state = EntryState.ENTERING
        self.attempts = 0
        self.lockout_until = 0
        self.biometric_available = False
        self.biometric_type = "Biometric"

        self._digits: list[str] = []
        self._timer: threading.Timer | None = None
        self._closed = False
        self._lock = threading.RLock()

        self._owns_reset_client = reset_client is None
        self.recovery = PinRecoveryFlow(
            authenticator,
            reset_client or PinResetClient(),
            user,
            self._on_recovery_event,
        )

    @property
    def digits_entered(self) -> int:
        return len(self._digits)

    @property
    def is_locked_out(self) -> bool:
        return self.state == EntryState.LOCKED

    @property
    def lockout_remaining_ms(self) -> int:
        if not self.is_locked_out:
            return 0
        return max(0, self.lockout_until - self.clock())

    def start(self) -> None:
        status = self.authenticator.get_security_status(self.user.id)
        self.attempts = status.failed_attempts
        if status.is_locked_out:
            self._enter_lockout(status.lockout_remaining_time_ms)
        self._check_biometric()

    def _check_biometric(self) -> None:
        try:
            info = self.biometric.get_info()
        except Exception:
            logger.exception("Biometric availability check failed")
            self.biometric_available = False
            return
        self.biometric_available = info.available and info.is_setup
        self.biometric_type = info.type_name or "Biometric"

    # --- Digit entry ---

    def press_digit(self, digit: str) -> None:
        if not (isinstance(digit, str) and len(digit) == 1 and digit.isdigit() and digit.isascii()):
            raise ValueError(f"Not a digit: {digit!r}")
        with self._lock:
            if self.state != EntryState.ENTERING or len(self._digits) >= PIN_LENGTH:
                return
            self._digits.append(digit)
            ready = len(self._digits) == PIN_LENGTH
        if ready:
            self.submit()

    def delete_digit(self) -> None:
        with self._lock:
            if self._digits and self.state == EntryState.ENTERING:
                self._digits.pop()

    def clear(self) -> None:
        with self._lock:
            self._digits.clear()

    def submit(self) -> bool:
        with self._lock:
            if self.state != EntryState.ENTERING:
                return False
            pin = "".join(self._digits)
            self._digits.clear()
            self.state = EntryState.VERIFYING

        try:
            result = self.authenticator.verify_pin(self.user.id, pin)
        except StorageError:
            logger.exception("PIN verification failed for user=%s", self.user.id)
            self.state = EntryState.ENTERING
            self.notify(FlowEvent(type=FlowEventType.FAILURE, message="Failed to verify PIN. Please try again."))
            return False

        if result.success:
            self.attempts = 0
            self.state = EntryState.UNLOCKED
            logger.info("Unlocked with PIN for user=%s", self.user.id)
            self.notify(FlowEvent(type=FlowEventType.SUCCESS))
            return True

        self.state = EntryState.ENTERING
        self.notify(FlowEvent(type=FlowEventType.FAILURE, message=result.error or "Incorrect PIN"))
        if result.locked_out:
            self._enter_lockout(result.remaining_time_ms)
        elif result.remaining_attempts is not None:
            self.attempts = self.authenticator.max_attempts - result.remaining_attempts
        return False

    # --- Biometric ---

    def authenticate_biometric(self) -> bool:
        """Unlock with the device biometric prompt. Leaves PIN attempts untouched."""
        if not self.biometric_available or self.state != EntryState.ENTERING:
            return False
        try:
            result = self.biometric.authenticate()
        except Exception:
            logger.exception("Biometric authentication error for user=%s", self.user.id)
            self.notify(
                FlowEvent(type=FlowEventType.BIOMETRIC_FAILED, message="Please try again or use your PIN")
            )
            return False

        if result.success:
            self.clear()
            self.state = EntryState.UNLOCKED
            logger.info("Unlocked with %s for user=%s", self.biometric_type, self.user.id)
            self.notify(FlowEvent(type=FlowEventType.SUCCESS))
            return True
        if not result.cancelled:
            self.notify(
                FlowEvent(
                    type=FlowEventType.BIOMETRIC_FAILED,
                    message=result.error or "Biometric authentication failed",
                )
            )
        return False

    # --- Lockout countdown ---

    def _enter_lockout(self, remaining_ms: int) -> None:
        with self._lock:
            self._digits.clear()
            self.state = EntryState.LOCKED
            self.lockout_until = self.clock() + remaining_ms
        self.notify(
            FlowEvent(
                type=FlowEventType.LOCKED,
                message=f"Try again in {format_remaining(remaining_ms)}",
                remaining_time_ms=remaining_ms,
            )
        )
        self._schedule_tick()

    def _schedule_tick(self) -> None:
        with self._lock:
            self._cancel_timer()
            if self._closed:
                return
            self._timer = self.timer_factory(COUNTDOWN_TICK_SECONDS, self.tick)
            self._timer.start()

    def tick(self) -> None:
        if self._closed or not self.is_locked_out:
            return
        remaining = self.lockout_remaining_ms
        if remaining > 0:
            self.notify(FlowEvent(type=FlowEventType.LOCKOUT_TICK, remaining_time_ms=remaining))
            self._schedule_tick()
            return

        with self._lock:
            self._cancel_timer()
            self.state = EntryState.ENTERING
            self.attempts = 0
            self.lockout_until = 0
        logger.info("Lockout countdown finished for user=%s", self.user.id)
        self.notify(FlowEvent(type=FlowEventType.UNLOCKED))

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # --- Recovery ---

    def _on_recovery_event(self, event: FlowEvent) -> None:
        if event.type == FlowEventType.RESET_COMPLETE:
            # setup_pin cleared the stored lockout; mirror that on screen.
            with self._lock:
                self._cancel_timer()
                self._digits.clear()
                self.attempts = 0
                self.lockout_until = 0
                if self.state == EntryState.LOCKED:
                    self.state = EntryState.ENTERING
        self.notify(event)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._cancel_timer()
        self.recovery.cancel()
        if self._owns_reset_client:
            self.recovery.reset_client.close()
