from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True, frozen=True)
class AccountView:
    """Public-safe projection of an account; never carries the secret hash."""

    account_id: str
    email: str
    display_name: str | None = None


@dataclass(slots=True)
class Account:
    """A registered user identity as held by the credential store."""

    account_id: str
    email: str
    secret_hash: str
    created_at: datetime
    display_name: str | None = None

    def view(self) -> AccountView:
        return AccountView(
            account_id=self.account_id,
            email=self.email,
            display_name=self.display_name,
        )
