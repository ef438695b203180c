"""SMS delivery through an HTTP gateway."""

from __future__ import annotations

import logging

import httpx

from johri_config.settings import Settings
from johri_identity.application.ports import NotificationSender
from johri_identity.domain.user.value_objects import PhoneNumber

logger = logging.getLogger(__name__)

OTP_MESSAGE = "Your Johri verification code is {code}. It expires in {minutes} minutes."
CONFIRMATION_MESSAGE = (
    "Your Johri password was changed. If this wasn't you, contact support."
)


class SmsNotificationSender(NotificationSender):
    """Posts messages to the configured SMS gateway.

    Gateway errors are raised to the caller; the notification dispatcher
    turns them into a delivery failure.
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ):
        self._settings = settings
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._settings.sms_enabled

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._settings.sms_api_key:
                headers["Authorization"] = (
                    f"Bearer {self._settings.sms_api_key.get_secret_value()}"
                )
            self._client = httpx.AsyncClient(
                base_url=self._settings.sms_gateway_url.rstrip("/"),
                timeout=self._settings.sms_timeout,
                headers=headers,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _send(self, phone_number: str, text: str) -> None:
        client = self._get_client()
        try:
            response = await client.post(
                "/messages",
                json={
                    "to": phone_number,
                    "sender": self._settings.sms_sender_id,
                    "message": text,
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "SMS gateway returned error %d: %s",
                e.response.status_code,
                e.response.text[:200] if e.response.text else "no body",
            )
            raise
        except httpx.HTTPError as e:
            logger.warning("SMS gateway request failed: %s", e)
            raise
        logger.info("SMS sent to %s", PhoneNumber(phone_number).masked)

    async def send_code(
        self,
        destination: str,
        code: str,
        display_name: str | None = None,  # noqa: ARG002
    ) -> None:
        if not self.enabled:
            logger.warning(
                "SMS disabled, skipping verification SMS to %s (code: %s)",
                destination,
                code,
            )
            return

        await self._send(
            destination,
            OTP_MESSAGE.format(code=code, minutes=self._settings.otp_expiry_minutes),
        )

    async def send_confirmation(
        self,
        destination: str,
        display_name: str | None = None,  # noqa: ARG002
    ) -> None:
        if not self.enabled:
            logger.warning(
                "SMS disabled, skipping password change confirmation to %s",
                destination,
            )
            return

        await self._send(destination, CONFIRMATION_MESSAGE)
