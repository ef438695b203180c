"""Outbound notification port.

Senders deliver verification codes and confirmations on one channel. The
dispatcher picks the sender for a channel and normalizes delivery failures.
"""

import logging
from abc import ABC, abstractmethod

from johri_identity.domain.user.value_objects import ContactChannel
from johri_identity.exceptions import NotificationDeliveryError

logger = logging.getLogger(__name__)


class NotificationSender(ABC):
    """Delivers messages on a single channel (email or SMS)."""

    @abstractmethod
    async def send_code(
        self,
        destination: str,
        code: str,
        display_name: str | None = None,
    ) -> None:
        """Send a one-time passcode to ``destination``."""

    @abstractmethod
    async def send_confirmation(
        self,
        destination: str,
        display_name: str | None = None,
    ) -> None:
        """Confirm to ``destination`` that the password was changed."""

    async def close(self) -> None:
        """Release held resources. Senders without any keep the default."""
        return None


class NotificationDispatcher:
    """Routes notifications to the sender registered for a channel."""

    def __init__(self, senders: dict[ContactChannel, NotificationSender]):
        self._senders = dict(senders)

    def _sender_for(self, channel: ContactChannel) -> NotificationSender:
        sender = self._senders.get(channel)
        if sender is None:
            msg = f"No notification sender configured for channel {channel.value}"
            raise NotificationDeliveryError(msg)
        return sender

    async def send_code(
        self,
        channel: ContactChannel,
        destination: str,
        code: str,
        display_name: str | None = None,
    ) -> None:
        """Deliver a code.

        Raises
        ------
        NotificationDeliveryError
            If the sender fails; the underlying cause is logged
        """
        sender = self._sender_for(channel)
        try:
            await sender.send_code(destination, code, display_name)
        except NotificationDeliveryError:
            raise
        except Exception as e:
            logger.error(
                "Failed to send %s code to %s: %s",
                channel.value,
                destination,
                e,
            )
            raise NotificationDeliveryError() from e

    async def send_confirmation(
        self,
        channel: ContactChannel,
        destination: str,
        display_name: str | None = None,
    ) -> None:
        sender = self._sender_for(channel)
        try:
            await sender.send_confirmation(destination, display_name)
        except NotificationDeliveryError:
            raise
        except Exception as e:
            raise NotificationDeliveryError(
                "Failed to send password change confirmation.",
            ) from e

    async def aclose(self) -> None:
        for sender in self._senders.values():
            await sender.close()
