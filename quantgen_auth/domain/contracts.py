"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SignupInput:
    """Raw signup fields as received from a client."""

    email: str | None
    secret: str | None
    display_name: str | None = None


@dataclass(slots=True)
class LoginInput:
    """Raw login fields as received from a client."""

    email: str | None
    secret: str | None


@dataclass(slots=True, frozen=True)
class NewAccount:
    """Validated, already-hashed account data handed to the credential store."""

    email: str
    secret_hash: str
    display_name: str | None = None
