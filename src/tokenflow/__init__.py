"""Loopback-redirect OAuth2 flow for obtaining a refresh token."""

from tokenflow.errors import (
    CallbackFailure,
    ExchangeFailure,
    FlowCancelled,
    GoAuthError,
    MissingRefreshToken,
    PortBindFailure,
    RedirectError,
)
from tokenflow.flow import AuthorizationFlow, FlowState
from tokenflow.launcher import generate_refresh_token, launch
from tokenflow.settle import SettlableResult

__all__ = [
    "AuthorizationFlow",
    "CallbackFailure",
    "ExchangeFailure",
    "FlowCancelled",
    "FlowState",
    "GoAuthError",
    "MissingRefreshToken",
    "PortBindFailure",
    "RedirectError",
    "SettlableResult",
    "generate_refresh_token",
    "launch",
]
