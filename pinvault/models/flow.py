from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class EntryState(str, Enum):
    ENTERING = "entering"
    VERIFYING = "verifying"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class FlowEventType(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    LOCKED = "locked"
    LOCKOUT_TICK = "lockout_tick"
    UNLOCKED = "unlocked"
    BIOMETRIC_FAILED = "biometric_failed"
    CODE_SENT = "code_sent"
    RESET_COMPLETE = "reset_complete"
    ERROR = "error"


class FlowEvent(BaseModel):
    type: FlowEventType
    message: str = ""
    remaining_time_ms: int = 0
