# ems_api/backend/__init__.py
from ems_api.backend.data import APIResponse, BackendError, DataClient, parse_select, register_procedure
from ems_api.backend.auth import (
    SIGNED_IN,
    SIGNED_OUT,
    TOKEN_REFRESHED,
    USER_UPDATED,
    ActiveSession,
    AuthClient,
    AuthError,
    AuthEvent,
    AuthSession,
    AuthStateHub,
    Subscription,
    is_token_revoked,
)
from ems_api.backend import procedures  # noqa: F401  (registers rpc procedures)

__all__ = [
    "APIResponse", "BackendError", "DataClient", "parse_select", "register_procedure",
    "SIGNED_IN", "SIGNED_OUT", "TOKEN_REFRESHED", "USER_UPDATED",
    "ActiveSession", "AuthClient", "AuthError", "AuthEvent", "AuthSession",
    "AuthStateHub", "Subscription", "is_token_revoked",
]
