from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ResetMethod(str, Enum):
    PHONE = "phone"
    EMAIL = "email"


class RecoveryStep(str, Enum):
    IDLE = "idle"
    SELECT_METHOD = "select_method"
    CONFIRM_SEND = "confirm_send"
    AWAIT_CODE = "await_code"
    SET_NEW_PIN = "set_new_pin"
    DONE = "done"


class UserContact(BaseModel):
    id: str
    email: str = ""
    phone: str = ""

    def contact_for(self, method: ResetMethod) -> str:
        return self.email if method == ResetMethod.EMAIL else self.phone


class RemoteResult(BaseModel):
    success: bool = False
    error: str | None = None
