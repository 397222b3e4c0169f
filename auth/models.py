"""
auth/models.py -- Domain types for authentication entities.

Pattern: Data class (pure data container). Role is the one exception: it owns
the privilege ordering so that policy code compares roles through named
methods instead of re-deriving integer thresholds at each call site.

Layer rule: no imports from api/, core/, or maintenance/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Role(IntEnum):
    """User roles ordered by privilege. A LOWER value means MORE privilege.

    The numbers are persisted and travel inside token claims, so they must not
    be renumbered. NAO_VALIDADO (9) is the role every self-registered account
    starts with.
    """

    ADMIN_COMPLEX = 1
    SINDICO = 2
    SUBSINDICO = 3
    RESPONSAVEL_MANUTENCAO = 4
    MORADOR = 5
    NAO_VALIDADO = 9

    def outranks(self, other: Role) -> bool:
        """True if this role is strictly more privileged than other."""
        return self.value < other.value

    def is_below(self, other: Role) -> bool:
        """True if this role is strictly less privileged than other."""
        return self.value > other.value


@dataclass
class User:
    """A resident, manager, or administrator registered under a complex.

    complex_id is None only for operator-created accounts whose complex was
    removed out from under them; registration always sets it.
    """

    username: str
    name: str
    role: Role = Role.NAO_VALIDADO
    id: int | None = None
    hashed_password: str | None = None
    complex_id: int | None = None
    complement: str = ""
    created_at: str | None = None
    is_active: bool = True


@dataclass
class TokenPair:
    """The single live credential row for a user.

    expires_at is the refresh horizon (ISO 8601, UTC). A stored access token is
    only honoured while now < expires_at, independent of its own exp claim.
    """

    user_id: int
    access_token: str
    refresh_token: str
    expires_at: str
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """Claims decoded from a verified access token."""

    id: int
    username: str
    role: Role
