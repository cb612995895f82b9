"""Auth service orchestrating validation, hashing and credential storage."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from .account import AccountView
from .contracts import LoginInput, NewAccount, SignupInput
from .errors import AuthError, DuplicateAccount, InvalidCredentials, InvalidInput, StoreUnavailable
from ..repository import CredentialStore
from ..security.passwords import hash_secret, secret_too_long, verify_secret

logger = logging.getLogger(__name__)


def _require_fields(email: object, secret: object) -> tuple[str, str]:
    if not isinstance(email, str) or not email or not isinstance(secret, str) or not secret:
        raise InvalidInput()
    return email, secret


class AuthService:
    """Signup and login workflows backed by an injected credential store."""

    def __init__(self, store: CredentialStore) -> None:
        """Store the credential store used by every workflow."""
        self._store = store

    async def signup(self, payload: SignupInput) -> AccountView:
        """Register a new account and return its public view.

        Parameters
        ----------
        payload:
            Raw signup fields. ``email`` and ``secret`` must be non-empty strings.

        Raises
        ------
        InvalidInput
            A required field is missing, or the secret exceeds the hash input limit.
        DuplicateAccount
            The email is already registered, detected either by the pre-check or
            by the store's unique key at insert time.
        StoreUnavailable
            The credential store failed.
        """
        email, secret = _require_fields(payload.email, payload.secret)
        if payload.display_name is not None and not isinstance(payload.display_name, str):
            raise InvalidInput("name must be a string")
        if secret_too_long(secret):
            raise InvalidInput("password must be at most 72 bytes")

        if await self._call_store(self._store.find_by_email, email) is not None:
            logger.info("signup rejected, account exists: %s", email)
            raise DuplicateAccount()

        secret_hash = await run_in_threadpool(hash_secret, secret)
        try:
            account = await self._call_store(
                self._store.insert,
                NewAccount(email=email, secret_hash=secret_hash, display_name=payload.display_name),
            )
        except DuplicateAccount:
            logger.info("signup lost insert race for existing account: %s", email)
            raise
        logger.info("account created: %s id=%s", email, account.account_id)
        return account.view()

    async def login(self, payload: LoginInput) -> AccountView:
        """Verify credentials and return the matching account view."""
        email, secret = _require_fields(payload.email, payload.secret)

        account = await self._call_store(self._store.find_by_email, email)
        if account is None:
            logger.info("login failed, unknown email: %s", email)
            raise InvalidCredentials()

        if not await run_in_threadpool(verify_secret, secret, account.secret_hash):
            logger.info("login failed, password mismatch: %s", email)
            raise InvalidCredentials()

        logger.info("login succeeded: %s", email)
        return account.view()

    async def _call_store(self, operation, *args):
        try:
            return await operation(*args)
        except AuthError:
            raise
        except Exception as exc:
            logger.exception("credential store call %s failed", getattr(operation, "__name__", operation))
            raise StoreUnavailable() from exc
