"""Errors raised by the loopback authorization flow."""


class GoAuthError(Exception):
    """Base class for flow errors."""


class PortBindFailure(GoAuthError):
    """The listener could not bind for a reason other than a port conflict."""


class RedirectError(GoAuthError):
    """The identity provider redirected back with an ``error`` parameter.

    ``str(err)`` is the provider's error code, e.g. ``access_denied``.
    """

    def __init__(self, error: str) -> None:
        super().__init__(error)
        self.error = error


class ExchangeFailure(GoAuthError):
    """Exchanging the authorization code for tokens failed."""


class MissingRefreshToken(GoAuthError):
    """The exchange succeeded but no refresh token was granted."""


class FlowCancelled(GoAuthError):
    """The flow was cancelled before a redirect arrived."""


class CallbackFailure(GoAuthError):
    """Handling the redirect request failed after it was accepted."""
