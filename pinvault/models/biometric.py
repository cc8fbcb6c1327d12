from __future__ import annotations

from pydantic import BaseModel


class BiometricInfo(BaseModel):
    available: bool = False
    is_setup: bool = False
    type_name: str = "Biometric"


class BiometricResult(BaseModel):
    success: bool = False
    cancelled: bool = False
    error: str | None = None
