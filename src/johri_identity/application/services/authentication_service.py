"""Sign-in flows: password, phone/email OTP, Google and session resolution."""

import logging
from uuid import UUID

from johri_identity.application.context import RequestContext
from johri_identity.application.ports import NotificationDispatcher
from johri_identity.application.services.account_lock_guard import AccountLockGuard
from johri_identity.application.services.audit_trail import AuditTrail
from johri_identity.application.services.otp_challenge import OtpChallenge
from johri_identity.domain.security import AuditEventType
from johri_identity.domain.user import (
    ContactChannel,
    ContactIdentifier,
    Email,
    PhoneNumber,
    User,
    UserAlreadyExistsError,
    UserRepository,
    UserRole,
    classify_identifier,
)
from johri_identity.exceptions import (
    AccountNotFoundError,
    InvalidCredentialsError,
    InvalidSessionError,
    NotificationDeliveryError,
    ValidationFailureError,
)
from johri_identity.schemas import (
    AuthenticatedSession,
    OAuthProfile,
    OtpDispatch,
    PublicUser,
)
from johri_identity.services import (
    OtpLedger,
    PasswordHashingService,
    SessionTokenService,
)

logger = logging.getLogger(__name__)

# Roles that may sign up on their own, and the identifier each must provide.
REGISTRATION_IDENTIFIER: dict[UserRole, ContactChannel] = {
    UserRole.OWNER: ContactChannel.EMAIL,
    UserRole.JEWELER: ContactChannel.SMS,
}

OTP_USER_NOT_FOUND_MESSAGE = "User not found. Please request an OTP first."


class AuthenticationService:
    """Orchestrates every way of signing in.

    Each call walks the same states: look the account up, check its lock,
    verify the credential, then open a session. Decisions are always taken
    on freshly read rows; the service holds no state between calls.
    """

    def __init__(  # noqa: PLR0913
        self,
        user_repository: UserRepository,
        password_service: PasswordHashingService,
        session_token_service: SessionTokenService,
        otp_ledger: OtpLedger,
        otp_challenge: OtpChallenge,
        lock_guard: AccountLockGuard,
        audit_trail: AuditTrail,
        notifications: NotificationDispatcher,
    ):
        self._users = user_repository
        self._passwords = password_service
        self._sessions = session_token_service
        self._ledger = otp_ledger
        self._challenge = otp_challenge
        self._lock_guard = lock_guard
        self._audit = audit_trail
        self._notifications = notifications

    async def authenticate_local(
        self,
        username: str,
        password: str,
        context: RequestContext | None = None,
    ) -> AuthenticatedSession:
        """Sign in with username and password.

        Wrong passwords are audited but do not count towards the lockout,
        which is driven by OTP failures only.

        Raises
        ------
        InvalidCredentialsError
            If the username is unknown or the password is wrong
        AccountLockedError
            If the account is locked
        """
        user = await self._users.find_by_username((username or "").strip())
        if user is None:
            await self._audit.record(
                AuditEventType.LOGIN_FAILED,
                None,
                context,
                method="password",
                reason="unknown_user",
            )
            raise InvalidCredentialsError()

        user = await self._lock_guard.ensure_unlocked(user, context)

        if not self._passwords.verify(password, user.password_hash):
            await self._audit.record(
                AuditEventType.LOGIN_FAILED,
                user.id,
                context,
                method="password",
                reason="bad_password",
            )
            raise InvalidCredentialsError()

        if self._passwords.needs_rehash(user.password_hash):
            user.set_password_hash(self._passwords.rehash(password))
            await self._users.save(user)
            logger.info("Upgraded password hash cost for user %s", user.id)

        return await self._start_session(user, context, method="password")

    async def request_otp(
        self,
        identifier: str,
        context: RequestContext | None = None,
    ) -> OtpDispatch:
        """Send a sign-in code to a phone number or email address.

        Unknown phone numbers get a new end-user account. Unknown email
        addresses are rejected.

        Raises
        ------
        InvalidPhoneNumberError
            If the identifier is neither an email nor 10-15 digits
        AccountNotFoundError
            If no account uses the email address
        OtpRateLimitError
            If a code was sent less than a minute ago
        NotificationDeliveryError
            If the code could not be delivered
        """
        contact = classify_identifier(identifier)
        user = await self._find_by_contact(contact)

        if user is None:
            if contact.is_email:
                raise AccountNotFoundError()
            user = User.create(
                role=UserRole.VIEWER,
                username=f"user_{contact.value}",
                phone_number=contact.value,
            )
            await self._users.save(user)
            logger.info("Created end-user %s for phone sign-in", user.id)

        record = await self._ledger.issue(user.id)
        try:
            await self._notifications.send_code(
                contact.channel,
                contact.value,
                record.code,
                user.display_name,
            )
        except NotificationDeliveryError:
            # An undelivered code must not start the resend window
            await self._ledger.clear(user.id)
            raise
        await self._audit.record(
            AuditEventType.OTP_SENT,
            user.id,
            context,
            channel=contact.channel.value,
            purpose="login",
        )
        return OtpDispatch(
            channel=contact.channel,
            destination=contact.value,
            expires_at=record.expires_at,
        )

    async def verify_otp_login(
        self,
        identifier: str,
        code: str,
        context: RequestContext | None = None,
    ) -> AuthenticatedSession:
        """Sign in with a previously requested OTP.

        Raises
        ------
        AccountNotFoundError
            If no account matches the identifier
        AccountLockedError
            If the account is locked, or this attempt exhausted the ladder
        OtpExpiredError
            If no live code exists
        InvalidOtpError
            If the code is wrong
        """
        contact = classify_identifier(identifier)
        user = await self._find_by_contact(contact)
        if user is None:
            raise AccountNotFoundError(OTP_USER_NOT_FOUND_MESSAGE)

        user = await self._lock_guard.ensure_unlocked(user, context)
        await self._challenge.verify(user, (code or "").strip(), context, "login")

        await self._audit.record(
            AuditEventType.OTP_VERIFIED,
            user.id,
            context,
            purpose="login",
        )
        return await self._start_session(user, context, method="otp")

    async def authenticate_oauth(
        self,
        profile: OAuthProfile,
        context: RequestContext | None = None,
    ) -> AuthenticatedSession:
        """Sign in with a Google identity.

        Known Google accounts sign straight in. Otherwise an account with
        the same email gets the Google id linked, or a new end-user is
        created.

        Raises
        ------
        InvalidCredentialsError
            If the provider did not return an email address
        AccountLockedError
            If the matching account is locked
        """
        if not profile.email:
            raise InvalidCredentialsError(
                "No email address was returned by the identity provider.",
            )

        user = await self._users.find_by_google_id(profile.provider_user_id)
        if user is not None:
            user = await self._lock_guard.ensure_unlocked(user, context)
            return await self._start_session(user, context, method="google")

        user = await self._users.find_by_email(profile.email.strip().lower())
        if user is not None:
            user = await self._lock_guard.ensure_unlocked(user, context)
            user.link_google_account(profile.provider_user_id)
            await self._users.save(user)
            logger.info("Linked Google account to user %s", user.id)
        else:
            user = User.create(
                role=UserRole.VIEWER,
                email=profile.email,
                google_id=profile.provider_user_id,
                display_name=profile.display_name,
            )
            await self._users.save(user)
            logger.info("Created end-user %s from Google sign-in", user.id)

        return await self._start_session(user, context, method="google")

    async def resolve_session(
        self,
        session_token: str,
        context: RequestContext | None = None,
    ) -> PublicUser:
        """Return the user behind a session, re-checking the lock each time.

        Raises
        ------
        InvalidSessionError
            If the token is invalid or the user no longer exists
        AccountLockedError
            If the user was locked after the session was opened
        """
        payload = self._sessions.verify_session_token(session_token)
        user = await self._users.find_by_id(payload.user_id)
        if user is None:
            raise InvalidSessionError()

        user = await self._lock_guard.ensure_unlocked(user, context, "session")
        return user.to_public()

    async def register(  # noqa: PLR0913
        self,
        role: UserRole,
        username: str,
        password: str,
        email: str | None = None,
        phone_number: str | None = None,
        display_name: str | None = None,
    ) -> PublicUser:
        """Create an Owner (email) or Jeweler (phone) account with a password.

        Raises
        ------
        ValidationFailureError
            If the role cannot self-register or its identifier is missing
        WeakPasswordError
            If the password violates any strength rule
        UserAlreadyExistsError
            If the username or identifier is taken
        """
        required = REGISTRATION_IDENTIFIER.get(role)
        if required is None:
            msg = f"Role '{role.value}' cannot self-register."
            raise ValidationFailureError([msg], msg)

        username = (username or "").strip()
        errors: list[str] = []
        if not username:
            errors.append("Username is required.")
        if required == ContactChannel.EMAIL and not email:
            errors.append("Email is required for Super Admin registration.")
        if required == ContactChannel.SMS and not phone_number:
            errors.append("Phone number is required for Jeweler registration.")
        if errors:
            raise ValidationFailureError(errors)

        self._passwords.validate_strength(password)
        email_value = Email(email).value if email else None
        phone_value = PhoneNumber(phone_number).value if phone_number else None

        if await self._users.find_by_username(username) is not None:
            raise UserAlreadyExistsError(username)
        if email_value and await self._users.find_by_email(email_value) is not None:
            raise UserAlreadyExistsError(email_value)
        if (
            phone_value
            and await self._users.find_by_phone_number(phone_value) is not None
        ):
            raise UserAlreadyExistsError(phone_value)

        user = User.create(
            role=role,
            username=username,
            email=email_value,
            phone_number=phone_value,
            display_name=display_name,
            password_hash=self._passwords.hash(password),
        )
        await self._users.save(user)
        logger.info("Registered %s account %s", role.value, user.id)
        return user.to_public()

    async def unlock_account(
        self,
        user_id: UUID,
        context: RequestContext | None = None,
    ) -> PublicUser:
        """Administratively clear a lock.

        Raises
        ------
        AccountNotFoundError
            If the user does not exist
        """
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise AccountNotFoundError("User not found.")

        was_locked = user.is_locked
        await self._users.unlock(user.id)
        user.unlock()
        if was_locked:
            logger.info("User %s unlocked by administrator", user.id)
            await self._audit.record(
                AuditEventType.ACCOUNT_UNLOCKED,
                user.id,
                context,
                reason="admin",
            )
        return user.to_public()

    async def _find_by_contact(self, contact: ContactIdentifier) -> User | None:
        if contact.is_email:
            return await self._users.find_by_email(contact.value)
        return await self._users.find_by_phone_number(contact.value)

    async def _start_session(
        self,
        user: User,
        context: RequestContext | None,
        method: str,
    ) -> AuthenticatedSession:
        await self._ledger.clear(user.id)
        token, expires_at = self._sessions.create_session_token(user.id, user.role)
        await self._audit.record(
            AuditEventType.LOGIN_SUCCESS,
            user.id,
            context,
            method=method,
        )
        logger.info("User %s signed in (%s)", user.id, method)
        return AuthenticatedSession(
            user=user.to_public(),
            session_token=token,
            expires_at=expires_at,
        )
