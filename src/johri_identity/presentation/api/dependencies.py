"""FastAPI dependency injection for the identity services.

Provides dependencies for:
- Database sessions (committed even when an account error is raised)
- Role guards for staff-only routes
- Request context (client IP and user agent for the audit log)
- Service instances
- The current user behind a bearer session token
"""

import logging
from functools import lru_cache
from typing import Annotated, AsyncGenerator, Awaitable, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from johri_config.settings import Settings, get_settings
from johri_identity.application.context import RequestContext
from johri_identity.application.ports import NotificationDispatcher
from johri_identity.application.services import (
    AuthenticationService,
    PasswordResetService,
)
from johri_identity.domain.user import UserRole
from johri_identity.exceptions import (
    AuthError,
    InsufficientRoleError,
    InvalidSessionError,
    NotificationDeliveryError,
)
from johri_identity.infrastructure.factory import (
    IdentityServiceFactory,
    build_notification_dispatcher,
)
from johri_identity.infrastructure.persistence.sqlalchemy import (
    create_identity_engine,
)
from johri_identity.infrastructure.persistence.sqlalchemy import (
    create_tables as create_schema,
)
from johri_identity.schemas import PublicUser

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


# -----------------------------------------------------------------------------
# Database Engine & Session (Singleton)
# -----------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """Get the shared async database engine (singleton)."""
    settings = get_settings()
    return create_identity_engine(settings.database_url, echo=settings.database_echo)


@lru_cache(maxsize=1)
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get the shared async session maker (singleton)."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency.

    Account errors are expected outcomes that still carry writes (failed
    attempt counts, locks, audit events), so the transaction is committed
    before the error propagates. A failed code delivery is an internal
    failure and rolls back like any other exception, so no undelivered
    code is left behind to throttle the retry.

    Yields
    ------
    AsyncSession for database operations
    """
    async with get_session_maker()() as session:
        try:
            yield session
        except NotificationDeliveryError:
            await session.rollback()
            raise
        except AuthError:
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise
        else:
            await session.commit()


DBSession = Annotated[AsyncSession, Depends(get_db_session)]


async def create_tables() -> None:
    """Create all identity tables (idempotent)."""
    logger.info("Ensuring identity tables exist...")
    await create_schema(get_engine())
    logger.info("Identity schema is up to date")


# -----------------------------------------------------------------------------
# Request Context
# -----------------------------------------------------------------------------


def _client_ip(request: Request, trust_proxy_headers: bool) -> str | None:
    if trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
    return request.client.host if request.client else None


def get_request_context(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> RequestContext:
    """Capture client IP and user agent for audit events.

    Proxy headers are honoured only when ``api_trust_proxy_headers`` is set.
    """
    return RequestContext(
        ip_address=_client_ip(request, settings.api_trust_proxy_headers),
        user_agent=request.headers.get("user-agent"),
    )


RequestCtx = Annotated[RequestContext, Depends(get_request_context)]


# -----------------------------------------------------------------------------
# Services
# -----------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_notification_dispatcher() -> NotificationDispatcher:
    """Shared dispatcher; senders keep their HTTP connections across requests."""
    return build_notification_dispatcher(get_settings())


def get_service_factory(
    session: DBSession,
    settings: Settings = Depends(get_settings),
    notifications: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> IdentityServiceFactory:
    return IdentityServiceFactory(session, settings, notifications)


ServiceFactory = Annotated[IdentityServiceFactory, Depends(get_service_factory)]


def get_authentication_service(factory: ServiceFactory) -> AuthenticationService:
    return factory.authentication_service()


def get_password_reset_service(factory: ServiceFactory) -> PasswordResetService:
    return factory.password_reset_service()


AuthService = Annotated[AuthenticationService, Depends(get_authentication_service)]
ResetService = Annotated[PasswordResetService, Depends(get_password_reset_service)]


# -----------------------------------------------------------------------------
# Current User (session token)
# -----------------------------------------------------------------------------


async def get_current_user(
    auth_service: AuthService,
    context: RequestCtx,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> PublicUser:
    """Resolve the bearer session token to a user.

    Raises
    ------
    InvalidSessionError
        If no token was sent or it does not resolve to a user
    AccountLockedError
        If the user is locked
    """
    if credentials is None:
        raise InvalidSessionError("Not authenticated.")
    return await auth_service.resolve_session(credentials.credentials, context)


CurrentUser = Annotated[PublicUser, Depends(get_current_user)]


# -----------------------------------------------------------------------------
# Role Guards
# -----------------------------------------------------------------------------


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[PublicUser]]:
    """Build a dependency that admits only the given roles.

    Usage::

        @router.post("/users/{user_id}/unlock")
        async def unlock(user_id: UUID, admin: AdminUser, auth: AuthService): ...

    Raises
    ------
    InsufficientRoleError
        If the current user's role is not one of ``roles``
    """
    if not roles:
        msg = "require_roles needs at least one role"
        raise ValueError(msg)
    allowed = frozenset(roles)

    async def _guard(user: CurrentUser) -> PublicUser:
        if user.role not in allowed:
            logger.warning(
                "User %s with role %s denied, requires one of %s",
                user.id,
                user.role.value,
                sorted(role.value for role in allowed),
            )
            raise InsufficientRoleError()
        return user

    return _guard


STAFF_ROLES = (UserRole.OWNER, UserRole.ADMIN)

AdminUser = Annotated[PublicUser, Depends(require_roles(*STAFF_ROLES))]
