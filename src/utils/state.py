from __future__ import annotations

from typing import Callable, Optional

from db import crud
from db.auth import AuthClient, AuthEvent, Session
from db.models import Capability, Profile, has_capability
from services.cart import CartViewModel, LocalCartBackend, RemoteCartBackend
from services.cart_sync import merge_local_cart
from utils.config import settings
from utils.errors import StoreError, backend_errors
from utils.local_storage import LocalStorage
from utils.logger import get_logger
from utils.notify import Notifier

_logger = get_logger(__name__)


class AppContext:
    """
    Everything the screens share: who is signed in and what is in the cart.

    Created once by the app, `start()`ed on mount and `teardown()` on exit.
    It listens to the auth client, so signing in or out anywhere rebinds the
    cart to the right store and merges the anonymous cart exactly once per
    sign-in.
    """

    def __init__(
        self,
        storage: Optional[LocalStorage] = None,
        notifier: Optional[Notifier] = None,
        auth: Optional[AuthClient] = None,
    ):
        self.storage = storage or LocalStorage(settings.local_storage_path)
        self.notifier = notifier or Notifier()
        self.auth = auth or AuthClient(self.storage, self.notifier)
        self.cart = CartViewModel(LocalCartBackend(self.storage))

        self.session: Optional[Session] = None
        self.profile: Optional[Profile] = None
        self.merge_error: Optional[Exception] = None

        # fired after session/profile changed and the cart was rebuilt
        self.on_auth_change: Optional[Callable[[], None]] = None

        self._merged_for: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ---------- lifecycle ----------

    async def start(self) -> None:
        self._unsubscribe = self.auth.subscribe(self._handle_auth_event)
        session = self.auth.restore_session()
        if session is None:
            await self.cart.load()
            return
        # a restored session was already merged when it signed in
        self._merged_for = session.user_id
        try:
            await self._enter_session(session)
        except StoreError as exc:
            _logger.warning(f"Could not restore session of {session.email}: {exc.message}")
            await self.auth.sign_out()

    async def teardown(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.session = None
        self.profile = None
        self.cart.replace([])

    # ---------- queries ----------

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user_id if self.session else None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def can(self, capability: Capability) -> bool:
        return has_capability(self.profile.role if self.profile else None, capability)

    # ---------- auth transitions ----------

    async def _handle_auth_event(self, event: AuthEvent, session: Optional[Session]) -> None:
        if event == AuthEvent.SIGNED_IN and session is not None:
            await self._enter_session(session)
        elif event == AuthEvent.SIGNED_OUT:
            await self._leave_session()
        elif event == AuthEvent.USER_UPDATED and self.session is not None:
            try:
                await self.reload_profile()
            except StoreError:
                _logger.warning("Keeping the previous profile after a failed reload")
            self._notify()

    async def reload_profile(self) -> Optional[Profile]:
        if self.session is not None:
            self.profile = await self._fetch_profile(self.session.user_id)
        return self.profile

    @staticmethod
    async def _fetch_profile(user_id: str) -> Optional[Profile]:
        with backend_errors(f"loading profile {user_id}", "Could not load your profile."):
            return await crud.get_profile(user_id)

    async def _enter_session(self, session: Session) -> None:
        profile = await self._fetch_profile(session.user_id)
        self.session = session
        self.profile = profile
        self.cart.bind(RemoteCartBackend(session.user_id))

        merged = None
        self.merge_error = None
        if self._merged_for != session.user_id:
            self._merged_for = session.user_id
            try:
                merged = await merge_local_cart(session.user_id, self.storage)
            except Exception as exc:
                # local copy is still there; the server cart is loaded below
                _logger.error(f"Error merging local cart: {exc}")
                self.merge_error = exc

        if merged is not None:
            self.cart.replace(merged)
        else:
            await self.cart.load()
        self._notify()

    async def _leave_session(self) -> None:
        self.session = None
        self.profile = None
        self._merged_for = None
        self.cart.bind(LocalCartBackend(self.storage))
        await self.cart.load()
        self._notify()

    def _notify(self) -> None:
        if self.on_auth_change is not None:
            self.on_auth_change()
