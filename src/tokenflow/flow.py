"""Authorization flow state: URL issued -> code or error received -> token exchanged.

The flow is created empty, populated by ``begin`` once the listener is bound,
and settled exactly once by ``complete`` or ``abort``. Settlement is enforced
by the underlying SettlableResult, so duplicate redirects are no-ops.
"""

import asyncio
import enum
from typing import Any, Callable

from tokenflow.errors import ExchangeFailure, FlowCancelled, MissingRefreshToken
from tokenflow.settle import SettlableResult


class FlowState(enum.Enum):
    EMPTY = "empty"
    READY = "ready"
    SETTLED_OK = "settled-ok"
    SETTLED_ERROR = "settled-error"


class AuthorizationFlow:
    """Handle returned to the caller of ``generate_refresh_token``.

    ``oauth_client`` is a ``google_auth_oauthlib.flow.Flow`` (or anything with
    ``fetch_token(code=...)`` and a ``credentials`` attribute).
    """

    def __init__(self, authorize_url: str = "") -> None:
        self.authorize_url = authorize_url
        self.oauth_client: Any = None
        self.result: SettlableResult[Any] = SettlableResult()
        # Set by the launcher so cancel() can release the listener.
        self.on_cancel: Callable[[], None] | None = None
        self._failed = False
        self._exchanging = False

    @property
    def state(self) -> FlowState:
        if self.result.done:
            return FlowState.SETTLED_ERROR if self._failed else FlowState.SETTLED_OK
        if self.oauth_client is None:
            return FlowState.EMPTY
        return FlowState.READY

    def begin(self, oauth_client: Any, authorize_url: str) -> None:
        """Record the bound client and its consent URL (EMPTY -> READY)."""
        self.oauth_client = oauth_client
        self.authorize_url = authorize_url

    async def complete(self, code: str) -> None:
        """Exchange ``code`` for tokens and resolve with the authenticated client."""
        if self.result.done or self._exchanging:
            return
        self._exchanging = True
        client = self.oauth_client
        if client is None:
            self._settle_error(ExchangeFailure("OAuth client was not set"))
            return
        try:
            # fetch_token is blocking (requests); keep the loop free for the listener.
            await asyncio.to_thread(client.fetch_token, code=code)
        except asyncio.CancelledError:
            self._settle_error(FlowCancelled("Token exchange was cancelled"))
            raise
        except Exception as exc:
            failure = ExchangeFailure(f"Token exchange failed: {exc}")
            failure.__cause__ = exc
            self._settle_error(failure)
            return
        self.result.resolve(client)

    def abort(self, error: BaseException) -> None:
        """Reject the flow, unless a code is already being exchanged."""
        if self._exchanging:
            return
        self._settle_error(error)

    def cancel(self, reason: str = "Authorization flow cancelled") -> None:
        """Release the listener and reject the flow with ``FlowCancelled``."""
        if self.on_cancel is not None:
            self.on_cancel()
        self._settle_error(FlowCancelled(reason))

    def _settle_error(self, error: BaseException) -> None:
        if self.result.done:
            return
        self._failed = True
        self.result.reject(error)

    async def get_oauth_client(self) -> Any:
        """Wait for the redirect and return the client holding the credentials."""
        return await self.result.wait()

    async def get_token(self) -> str:
        """Wait for the redirect and return the granted refresh token."""
        client = await self.result.wait()
        refresh_token = getattr(client.credentials, "refresh_token", None)
        if not refresh_token:
            raise MissingRefreshToken(
                "No refresh token returned. Revoke previous access and try again:"
                " https://myaccount.google.com/permissions"
            )
        return refresh_token
