"""Verification tokens proving a password reset OTP was verified.

Tokens are random, bound to one user, time-boxed and single-use. Only an
HMAC-SHA256 digest keyed with a server secret is stored, so a leaked table
cannot be replayed and a forged token never matches.
"""

import hashlib
import hmac
import logging
import re
import secrets
from datetime import timedelta
from uuid import UUID

from johri_identity.domain.shared.time import Clock, ensure_tz_aware, utc_now
from johri_identity.exceptions import InvalidResetTokenError
from johri_identity.repositories import (
    VerificationTokenData,
    VerificationTokenRepository,
)
from johri_identity.schemas import VerificationGrant

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "otpv"
TOKEN_PATTERN = re.compile(r"^otpv\.[0-9a-f]{32}\.[0-9]{1,12}\.[A-Za-z0-9_-]{32,}$")


class VerificationTokenService:
    """Issue, verify and consume reset verification tokens.

    Token format: ``otpv.<user id hex>.<issued unix ts>.<random nonce>``.
    """

    DEFAULT_TTL_MINUTES = 10

    def __init__(
        self,
        token_repository: VerificationTokenRepository,
        secret: str,
        ttl_minutes: int = DEFAULT_TTL_MINUTES,
        clock: Clock = utc_now,
    ):
        if not secret:
            msg = "Verification token secret cannot be empty"
            raise ValueError(msg)
        self._tokens = token_repository
        self._secret = secret.encode("utf-8")
        self._ttl = timedelta(minutes=ttl_minutes)
        self._clock = clock

    @staticmethod
    def has_valid_shape(token: str | None) -> bool:
        return bool(token) and TOKEN_PATTERN.match(token) is not None

    async def issue(self, user_id: UUID) -> VerificationGrant:
        """Issue a new token, invalidating any earlier one of the user."""
        now = self._clock()
        expires_at = now + self._ttl
        token = ".".join(
            [
                TOKEN_PREFIX,
                user_id.hex,
                str(int(now.timestamp())),
                secrets.token_urlsafe(32),
            ],
        )

        await self._tokens.invalidate_all_for_user(user_id, now)
        await self._tokens.create(
            user_id=user_id,
            token_hash=self._digest(token),
            created_at=now,
            expires_at=expires_at,
        )
        logger.debug("Issued verification token for user %s", user_id)
        return VerificationGrant(token=token, expires_at=expires_at)

    async def verify(self, token: str, user_id: UUID) -> VerificationTokenData:
        """Check that ``token`` is live and was issued to ``user_id``.

        Does not consume the token.

        Raises
        ------
        InvalidResetTokenError
            If the token is malformed, unknown, used, expired, or belongs to
            someone else
        """
        if not self.has_valid_shape(token):
            raise InvalidResetTokenError()

        embedded_user = token.split(".")[1]
        if not hmac.compare_digest(embedded_user, user_id.hex):
            raise InvalidResetTokenError()

        data = await self._tokens.find_unused_by_hash(self._digest(token))
        if data is None or data.user_id != user_id:
            raise InvalidResetTokenError()

        if self._clock() > ensure_tz_aware(data.expires_at):
            raise InvalidResetTokenError()

        return data

    async def consume(self, data: VerificationTokenData) -> None:
        """Mark a verified token as used.

        Raises
        ------
        InvalidResetTokenError
            If a concurrent request consumed it first
        """
        if not await self._tokens.mark_used(data.id, self._clock()):
            raise InvalidResetTokenError()

    def _digest(self, token: str) -> str:
        return hmac.new(self._secret, token.encode("utf-8"), hashlib.sha256).hexdigest()
