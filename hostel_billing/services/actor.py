"""Resolved actor passed explicitly to every mutating operation.

Authentication happens outside this package; callers hand in either the
SYSTEM actor (trusted non-interactive access such as scheduled jobs or API-key
clients) or an AuthenticatedUser.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class SystemActor:
    """Trusted non-interactive caller."""

    role: str = "system"

    @property
    def user_id(self) -> None:
        return None


@dataclass(frozen=True)
class AuthenticatedUser:
    """Logged-in user with their role ("admin" or "tenant")."""

    user_id: int
    role: str


Actor = Union[SystemActor, AuthenticatedUser]

SYSTEM = SystemActor()

__all__ = ["Actor", "AuthenticatedUser", "SystemActor", "SYSTEM"]
