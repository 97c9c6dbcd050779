"""User identity as supplied by the auth provider."""

from dataclasses import dataclass

from prime_crm.models.enums import UserRole


@dataclass(frozen=True)
class User:
    """Authenticated user."""

    id: str
    email: str
    name: str
    role: UserRole
    avatar_url: str | None = None
