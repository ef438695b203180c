"""Session token service.

Binds an authenticated user id to a signed, expiring JWT.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from johri_identity.domain.shared.time import Clock, utc_now
from johri_identity.domain.user.value_objects import UserRole
from johri_identity.exceptions import InvalidSessionError
from johri_identity.schemas import SessionPayload


class SessionTokenService:
    """Create and verify session tokens.

    Expiry is checked against the injected clock rather than the wall clock
    so sessions behave consistently with the rest of the account state.

    Examples
    --------
    >>> service = SessionTokenService(secret_key="your-secret-key")
    >>> token, expires_at = service.create_session_token(user_id, UserRole.VIEWER)
    >>> payload = service.verify_session_token(token)
    >>> print(payload.user_id)
    """

    DEFAULT_EXPIRE_HOURS = 24
    ALGORITHM = "HS256"
    TOKEN_TYPE = "session"

    def __init__(
        self,
        secret_key: str,
        expire_hours: int = DEFAULT_EXPIRE_HOURS,
        clock: Clock = utc_now,
    ):
        if not secret_key:
            msg = "Session secret key cannot be empty"
            raise ValueError(msg)

        self._secret_key = secret_key
        self._expire = timedelta(hours=expire_hours)
        self._clock = clock

    def create_session_token(
        self,
        user_id: UUID,
        role: UserRole,
    ) -> tuple[str, datetime]:
        """Create a session token.

        Returns
        -------
        The encoded token and its expiry time
        """
        now = self._clock()
        expires_at = now + self._expire
        payload = {
            "sub": str(user_id),
            "role": role.value,
            "type": self.TOKEN_TYPE,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self.ALGORITHM)
        return token, expires_at

    def verify_session_token(self, token: str) -> SessionPayload:
        """Verify and decode a session token.

        Raises
        ------
        InvalidSessionError
            If token is invalid, expired, or malformed
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
                options={
                    "require": ["sub", "exp", "iat"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
            if payload.get("type") != self.TOKEN_TYPE:
                raise InvalidSessionError()

            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
            issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
            user_id = UUID(payload["sub"])
            role = UserRole(payload["role"])
        except jwt.InvalidTokenError as e:
            raise InvalidSessionError() from e
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidSessionError() from e

        if self._clock() >= expires_at:
            raise InvalidSessionError("Session has expired.")

        return SessionPayload(
            user_id=user_id,
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
        )
