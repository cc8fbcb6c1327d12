from __future__ import annotations

from pydantic import BaseModel


class VerifyResult(BaseModel):
    success: bool = False
    error: str | None = None
    locked_out: bool = False
    remaining_attempts: int | None = None
    remaining_time_ms: int = 0


class SecurityStatus(BaseModel):
    pin_setup: bool = False
    failed_attempts: int = 0
    is_locked_out: bool = False
    lockout_remaining_time_ms: int = 0


class PinAuthRequirement(BaseModel):
    required: bool = False
    locked_out: bool = False
    remaining_lockout_time_ms: int = 0
