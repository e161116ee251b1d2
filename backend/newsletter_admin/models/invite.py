from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class InviteStatus(str, Enum):
    ACTIVE = "active"
    EXHAUSTED = "exhausted"
    EXPIRED = "expired"
    REVOKED = "revoked"


class InviteCode(BaseModel):
    """Stored in MongoDB 'admin_invites' collection, keyed by code."""
    code: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    used_count: int = 0
    max_uses: int
    expires_at: datetime | None = None
    created_by: str | None = None  # id of the admin who minted it
    assigned_to: str | None = None  # only this user may redeem it
    notes: str | None = None
    revoked_at: datetime | None = None

    @property
    def is_exhausted(self) -> bool:
        return self.used_count >= self.max_uses

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def status(self, now: datetime | None = None) -> InviteStatus:
        if self.revoked_at is not None:
            return InviteStatus.REVOKED
        if self.is_exhausted:
            return InviteStatus.EXHAUSTED
        if self.is_expired(now):
            return InviteStatus.EXPIRED
        return InviteStatus.ACTIVE
