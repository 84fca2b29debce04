"""Per-request caller context handed explicitly to every engine call."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SessionContext:
    """Who is calling and with which backend credentials.

    Built once per request by ``landuse.middleware.session_context`` and
    passed down as a parameter; services never read it from ``flask.g``.
    """

    access_token: str | None
    role: str | None = None
    access: tuple[str, ...] = field(default_factory=tuple)
    user_id: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def has_access(self, key: str) -> bool:
        return key in self.access

    def to_dict(self) -> dict:
        return {
            "is_authenticated": self.is_authenticated,
            "role": self.role,
            "access": list(self.access),
            "user_id": self.user_id,
        }


ANONYMOUS = SessionContext(access_token=None)
