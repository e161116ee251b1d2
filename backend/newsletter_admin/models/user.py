from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class PromotionMethod(str, Enum):
    INVITE_CODE = "invite_code"
    MASTER_CODE = "master_code"


class PromotionLog(BaseModel):
    """Audit trail written onto the user document when promoted."""
    model_config = {"use_enum_values": True}

    promoted_by: str = "invite_system"
    promotion_method: PromotionMethod
    invite_code: str | None = None
    promotion_timestamp: datetime


class UserAccount(BaseModel):
    """Stored in MongoDB 'users' collection, owned by the auth provider."""
    id: str
    role: UserRole = UserRole.USER
    admin_promoted_at: datetime | None = None
    admin_promotion_log: PromotionLog | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
