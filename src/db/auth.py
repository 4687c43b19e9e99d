# auth boundary: accounts, sessions, and auth-state notifications
from __future__ import annotations

import secrets
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

import bcrypt

from db import crud
from db.models import Role
from utils.config import settings
from utils.errors import AuthError, backend_errors
from utils.local_storage import SESSION_KEY, LocalStorage
from utils.logger import get_logger
from utils.pure import require, validate_email, validate_new_password

_logger = get_logger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    USER_UPDATED = "USER_UPDATED"


@dataclass(frozen=True)
class Session:
    user_id: str
    email: str
    access_token: str


AuthListener = Callable[[AuthEvent, Optional[Session]], Awaitable[None]]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


class AuthClient:
    """
    Issues sessions and tells subscribers whenever the session changes.

    The current session is persisted in local storage so a restart keeps the
    user signed in, and listeners are awaited one after another in
    subscription order.
    """

    def __init__(self, storage: LocalStorage, notifier=None):
        self._storage = storage
        self._notifier = notifier
        self._session: Optional[Session] = None
        self._listeners: List[AuthListener] = []

    # ---------- subscriptions ----------

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, event: AuthEvent) -> None:
        _logger.debug(f"Auth event {event.value}")
        for listener in list(self._listeners):
            await listener(event, self._session)

    # ---------- session ----------

    def get_session(self) -> Optional[Session]:
        return self._session

    def restore_session(self) -> Optional[Session]:
        """Load the persisted session, if any, without notifying listeners."""
        data = self._storage.get_json(SESSION_KEY)
        if not isinstance(data, dict):
            return None
        try:
            self._session = Session(**data)
        except TypeError:
            _logger.warning("Dropping malformed persisted session.")
            self._storage.remove_item(SESSION_KEY)
            return None
        return self._session

    async def _start_session(self, user_id: str, email: str) -> Session:
        """Persist and announce a new session.

        If a listener fails the session is signed out again before the error
        propagates, so nothing stays persisted for a half-entered session.
        """
        self._session = Session(user_id, email, secrets.token_urlsafe(24))
        self._storage.set_json(SESSION_KEY, asdict(self._session))
        try:
            await self._emit(AuthEvent.SIGNED_IN)
        except Exception:
            _logger.warning(f"Sign-in of {email} aborted, signing out again")
            await self.sign_out()
            raise
        return self._session

    # ---------- operations ----------

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        confirm_password: Optional[str] = None,
        role: Optional[Role] = None,
    ) -> str:
        """Create an account plus its profile. Returns the new user id.

        Does not sign the new user in. `role` is only honored for accounts
        created by staff; self sign-up gets customer, or master admin when the
        email is the configured bootstrap address.
        """
        email = validate_email(email)
        validate_new_password(password, confirm_password)
        if role is None:
            is_bootstrap = settings.master_admin_email and email == settings.master_admin_email
            role = Role.MASTER_ADMIN if is_bootstrap else Role.CUSTOMER

        with backend_errors(f"registering {email}", "Could not create the account."):
            if not await crud.email_available(email):
                raise AuthError("This email is already registered.")
            user_id = await crud.create_user(email, hash_password(password))
            await crud.create_profile(user_id, full_name or None, phone or None, email, role)
        _logger.info(f"Registered {email} as {Role(role).value}")
        return user_id

    async def sign_in(self, email: str, password: str) -> Session:
        email = require(email, "Email").lower()
        require(password, "Password")
        with backend_errors(f"signing in {email}", "Could not sign you in right now."):
            creds = await crud.get_credentials(email)
        if not creds or not verify_password(password, creds[2]):
            raise AuthError("Invalid email or password.")
        return await self._start_session(creds[0], creds[1])

    async def sign_out(self) -> None:
        if self._session is None:
            return
        self._session = None
        self._storage.remove_item(SESSION_KEY)
        await self._emit(AuthEvent.SIGNED_OUT)

    async def request_password_reset(self, email: str) -> Optional[str]:
        """Send a reset link if the email exists; return the token (None otherwise).

        Unknown emails are not reported, so the caller shows the same message
        either way.
        """
        email = validate_email(email)
        with backend_errors(f"requesting reset for {email}", "Could not send the reset link."):
            creds = await crud.get_credentials(email)
            if not creds:
                _logger.info(f"Password reset requested for unknown email {email}")
                return None
            token = await crud.create_password_reset(creds[0])
            if self._notifier is not None:
                await self._notifier.send_email(
                    "password_reset", email, {"email": email, "token": token}
                )
        await self._emit(AuthEvent.PASSWORD_RECOVERY)
        return token

    async def update_password(
        self,
        new_password: str,
        token: Optional[str] = None,
        confirm_password: Optional[str] = None,
    ) -> None:
        """Change the signed-in user's password, or redeem a reset token."""
        validate_new_password(new_password, confirm_password)
        if not token and self._session is None:
            raise AuthError("Sign in to change your password.")
        with backend_errors("updating password", "Could not update your password."):
            if token:
                user_id = await crud.consume_password_reset(token)
                if user_id is None:
                    raise AuthError("This reset link is invalid or was already used.")
            else:
                user_id = self._session.user_id
            await crud.update_user(user_id, password_hash=hash_password(new_password))
        await self._emit(AuthEvent.USER_UPDATED)
