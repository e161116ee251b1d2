from pydantic import BaseModel, Field


class CreateInviteRequest(BaseModel):
    max_uses: int | None = Field(default=None, ge=1, le=100)
    expiry_days: int | None = Field(default=None, ge=0, le=365)
    assigned_to: str | None = Field(default=None, max_length=128)
    notes: str | None = Field(default=None, max_length=500)


class RedeemRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)


class RedeemResponse(BaseModel):
    promoted: bool
    role: str


class InviteCodeDetail(BaseModel):
    code: str
    created_at: str
    used_count: int
    max_uses: int
    expires_at: str | None = None
    created_by: str | None = None
    assigned_to: str | None = None
    notes: str | None = None
    revoked_at: str | None = None
    status: str
