"""Error taxonomy for authentication workflows.

Each error carries the machine-readable ``code`` returned to clients and the
HTTP status the API layer responds with.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every failure surfaced by the auth service."""

    code: str = "AuthError"
    status_code: int = 500
    default_message: str = "authentication error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AuthError):
    code = "InvalidInput"
    status_code = 400
    default_message = "Email and password are required"


class DuplicateAccount(AuthError):
    code = "DuplicateAccount"
    status_code = 409
    default_message = "User already exists with this email"


class InvalidCredentials(AuthError):
    """Unknown email or wrong secret; the two cases are deliberately identical."""

    code = "InvalidCredentials"
    status_code = 401
    default_message = "Invalid email or password"


class StoreUnavailable(AuthError):
    code = "StoreUnavailable"
    status_code = 500
    default_message = "credential store unavailable"
