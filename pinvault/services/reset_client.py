from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from pinvault.errors import RemoteError
from pinvault.models.recovery import RemoteResult, ResetMethod
from pinvault.settings import settings

logger = logging.getLogger(__name__)

SEND_CODE_PATH = "/auth/pin-reset/send-code"
COMPLETE_PATH = "/auth/pin-reset/complete"


class PinResetClient:
    """Client for the first-party PIN reset endpoints.

    The service owns the reset session: it delivers the code over SMS or email
    and checks it when the new PIN is submitted.  Both calls answer
    ``{success, error?}``; transport failures and unreadable bodies raise
    RemoteError.  No retries: that belongs to the caller.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url if base_url is not None else settings.reset_api_url).rstrip("/")
        token = token if token is not None else settings.reset_api_token
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.reset_api_timeout,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> PinResetClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def send_code(self, user_id: str, method: ResetMethod, contact: str) -> RemoteResult:
        result = self._post(
            SEND_CODE_PATH,
            {"userId": user_id, "method": method.value, "contact": contact},
        )
        logger.info("Reset code request for user=%s via %s: success=%s", user_id, method.value, result.success)
        return result

    def complete(self, user_id: str, code: str, new_pin: str, method: ResetMethod) -> RemoteResult:
        result = self._post(
            COMPLETE_PATH,
            {"userId": user_id, "code": code, "newPin": new_pin, "method": method.value},
        )
        logger.info("PIN reset completion for user=%s: success=%s", user_id, result.success)
        return result

    def _post(self, path: str, body: dict[str, Any]) -> RemoteResult:
        try:
            resp = self._client.post(path, json=body)
        except httpx.HTTPError as exc:
            logger.warning("PIN reset request to %s failed: %s", path, type(exc).__name__)
            raise RemoteError("Could not reach the PIN reset service") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise RemoteError(f"Unexpected response from the PIN reset service (HTTP {resp.status_code})") from exc

        if not isinstance(data, dict) or "success" not in data:
            raise RemoteError(f"Malformed response from the PIN reset service (HTTP {resp.status_code})")

        try:
            result = RemoteResult.model_validate(data)
        except PydanticValidationError as exc:
            raise RemoteError("Malformed response from the PIN reset service") from exc

        if not result.success and not result.error:
            result.error = f"PIN reset service returned HTTP {resp.status_code}"
        return result
