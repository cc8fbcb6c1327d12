from __future__ import annotations

import logging
from collections.abc import Callable

from pinvault.constants import PIN_LENGTH, RESET_CODE_LENGTH
from pinvault.errors import FlowStateError, RemoteError, StorageError, ValidationError
from pinvault.models.flow import FlowEvent, FlowEventType
from pinvault.models.recovery import RecoveryStep, RemoteResult, ResetMethod, UserContact
from pinvault.services.pin_service import PinAuthenticator
from pinvault.services.reset_client import PinResetClient

logger = logging.getLogger(__name__)

# Steps that may step back without repeating a network call.
_BACK_TRANSITIONS = {
    RecoveryStep.CONFIRM_SEND: RecoveryStep.SELECT_METHOD,
    RecoveryStep.SET_NEW_PIN: RecoveryStep.AWAIT_CODE,
}


class PinRecoveryFlow:
    """Forgot-PIN flow.

    SELECT_METHOD -> CONFIRM_SEND -> AWAIT_CODE -> SET_NEW_PIN -> DONE, with
    ``cancel()`` back to IDLE from anywhere.  The reset service delivers and
    checks the code; once it accepts the new PIN the local credential is
    re-keyed to match.  Failures keep the flow on its current step and are
    reported through ``notify``.
    """

    def __init__(
        self,
        authenticator: PinAuthenticator,
        reset_client: PinResetClient,
        user: UserContact,
        notify: Callable[[FlowEvent], None],
    ) -> None:
        self.authenticator = authenticator
        self.reset_client = reset_client
        self.user = user
        self.notify = notify
        self.step = RecoveryStep.IDLE
        self.method: ResetMethod | None = None
        self._code = ""
        self.busy = False

    @property
    def is_active(self) -> bool:
        return self.step != RecoveryStep.IDLE

    def _require(self, *steps: RecoveryStep) -> None:
        if self.step not in steps:
            raise FlowStateError(f"Not allowed during recovery step '{self.step.value}'")

    def _error(self, message: str) -> None:
        self.notify(FlowEvent(type=FlowEventType.ERROR, message=message))

    def begin(self) -> None:
        self._require(RecoveryStep.IDLE, RecoveryStep.DONE)
        self._clear()
        self.step = RecoveryStep.SELECT_METHOD

    def select_method(self, method: ResetMethod | str) -> None:
        self._require(RecoveryStep.SELECT_METHOD)
        try:
            method = ResetMethod(method)
        except ValueError as exc:
            raise ValidationError(f"Unknown reset method: {method}") from exc
        if not self.user.contact_for(method):
            raise ValidationError(f"No {method.value} on file for this account")
        self.method = method
        self.step = RecoveryStep.CONFIRM_SEND

    def back(self) -> None:
        self._require(*_BACK_TRANSITIONS)
        self.step = _BACK_TRANSITIONS[self.step]

    def send_code(self) -> bool:
        self._require(RecoveryStep.CONFIRM_SEND)
        result = self._call_remote(
            "Failed to send reset code",
            lambda: self.reset_client.send_code(self.user.id, self.method, self.user.contact_for(self.method)),
        )
        if result is None:
            return False
        self.step = RecoveryStep.AWAIT_CODE
        self.notify(FlowEvent(type=FlowEventType.CODE_SENT, message=f"Code sent to your {self.method.value}"))
        return True

    def submit_code(self, code: str) -> bool:
        """Accept the delivered code. Only its length is checked here."""
        self._require(RecoveryStep.AWAIT_CODE)
        code = (code or "").strip()
        if len(code) != RESET_CODE_LENGTH:
            self._error(f"Please enter the {RESET_CODE_LENGTH}-digit code")
            return False
        self._code = code
        self.step = RecoveryStep.SET_NEW_PIN
        return True

    def complete(self, new_pin: str, confirm_pin: str) -> bool:
        self._require(RecoveryStep.SET_NEW_PIN)
        if len(new_pin or "") != PIN_LENGTH:
            self._error(f"PIN must be {PIN_LENGTH} digits")
            return False
        if new_pin != confirm_pin:
            self._error("PINs do not match")
            return False
        try:
            self.authenticator.validate_pin_format(new_pin)
        except ValidationError as exc:
            self._error(str(exc))
            return False

        result = self._call_remote(
            "Failed to reset PIN",
            lambda: self.reset_client.complete(self.user.id, self._code, new_pin, self.method),
        )
        if result is None:
            return False

        try:
            self.authenticator.setup_pin(self.user.id, new_pin)
        except StorageError:
            logger.exception("Could not store reset PIN for user=%s", self.user.id)
            self._error("Could not save the new PIN. Please try again.")
            return False

        self._clear()
        self.step = RecoveryStep.DONE
        self.notify(
            FlowEvent(type=FlowEventType.RESET_COMPLETE, message="You can now use your new PIN to sign in")
        )
        return True

    def cancel(self) -> None:
        self._clear()
        self.step = RecoveryStep.IDLE

    def _clear(self) -> None:
        self.method = None
        self._code = ""

    def _call_remote(self, fallback: str, call: Callable[[], RemoteResult]) -> RemoteResult | None:
        self.busy = True
        try:
            result = call()
        except RemoteError as exc:
            logger.warning("PIN reset call failed for user=%s: %s", self.user.id, exc)
            self._error(str(exc) or fallback)
            return None
        finally:
            self.busy = False
        if not result.success:
            self._error(result.error or fallback)
            return None
        return result
