"""Who the current session belongs to."""

from __future__ import annotations

from .base import DomainModel
from .types import UserId


class Identity(DomainModel):
    """Signed-in user id, or ``None`` for an anonymous visitor."""

    user_id: UserId | None = None

    @property
    def authenticated(self) -> bool:
        return bool(self.user_id)

    @classmethod
    def anonymous(cls) -> Identity:
        return cls()

    @classmethod
    def signed_in(cls, user_id: str) -> Identity:
        return cls(user_id=UserId(user_id))


__all__ = ["Identity"]
