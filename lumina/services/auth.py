"""
Authentication Session

The stores don't care how someone signed in, only about the edges:
none -> authenticated and authenticated -> none. AuthSession is that
signal. GoogleServiceAccountSession signs in with the service account
the Google Sheets client is configured with.
"""

from typing import Awaitable, Callable, Optional

import structlog
from pydantic import BaseModel, Field

from lumina.reactive import Signal
from lumina.services.storage.google_sheets import GoogleSheetsClient


logger = structlog.get_logger(__name__)

AuthListener = Callable[[Optional["AuthUser"]], Awaitable[None]]


class AuthUser(BaseModel):
    """The signed-in identity."""

    email: str = Field(..., min_length=1)
    display_name: str = ""


class AuthSession:
    """
    Current user plus transition listeners.

    Listeners are coroutines awaited one after another in registration
    order, so a store registered earlier has finished loading before a
    later one reacts. Repeating the current state emits nothing.
    """

    def __init__(self):
        self.user: Signal[Optional[AuthUser]] = Signal(None)
        self._listeners: list[AuthListener] = []

    @property
    def is_authenticated(self) -> bool:
        return self.user.value is not None

    def add_listener(self, listener: AuthListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def sign_in(self, user: AuthUser) -> None:
        if self.user.value == user:
            return
        logger.info("auth_signed_in", email=user.email)
        await self._transition(user)

    async def sign_out(self) -> None:
        if self.user.value is None:
            return
        logger.info("auth_signed_out", email=self.user.value.email)
        await self._transition(None)

    async def _transition(self, user: Optional[AuthUser]) -> None:
        self.user.set(user)
        for listener in list(self._listeners):
            await listener(user)


class GoogleServiceAccountSession(AuthSession):
    """Session backed by a Google service account."""

    def __init__(self, client: GoogleSheetsClient):
        super().__init__()
        self._client = client

    async def authenticate(self) -> AuthUser:
        """
        Connect to Google and sign in as the service account.

        Raises:
            ConnectionError: If the credentials can't be loaded
        """
        self._client.connect()
        email = self._client.service_account_email or "service-account"
        user = AuthUser(email=email, display_name="Service account")
        await self.sign_in(user)
        return user
