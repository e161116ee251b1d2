from fastapi import APIRouter, Depends, Query

from newsletter_admin.config import settings
from newsletter_admin.dependencies import get_current_user_id, require_admin
from newsletter_admin.middleware.error_handler import ValidationError
from newsletter_admin.middleware.input_guard import sanitize_notes, validate_invite_code
from newsletter_admin.schemas.invite import (
    CreateInviteRequest,
    InviteCodeDetail,
    RedeemRequest,
    RedeemResponse,
)
from newsletter_admin.services import invite_service

router = APIRouter(tags=["invites"])


@router.post("/admin/invites", response_model=InviteCodeDetail)
async def create_invite(body: CreateInviteRequest, user_id: str = Depends(require_admin)):
    invite = await invite_service.generate_code(
        created_by=user_id,
        max_uses=body.max_uses,
        expiry_days=body.expiry_days,
        assigned_to=body.assigned_to,
        notes=sanitize_notes(body.notes),
    )
    return invite_service.describe(invite)


@router.get("/admin/invites", response_model=list[InviteCodeDetail])
async def list_invites(
    active_only: bool = False,
    mine: bool = False,
    limit: int | None = Query(default=None, ge=1),
    user_id: str = Depends(require_admin),
):
    """List invite codes with their usage, newest first."""
    limit = min(limit or settings.invite_list_limit, settings.invite_list_limit)
    invites = await invite_service.list_codes(
        created_by=user_id if mine else None,
        active_only=active_only,
        limit=limit,
    )
    return [invite_service.describe(inv) for inv in invites]


@router.delete("/admin/invites/{code}", response_model=InviteCodeDetail)
async def revoke_invite(code: str, _user_id: str = Depends(require_admin)):
    invite = await invite_service.revoke_code(code)
    return invite_service.describe(invite)


@router.post("/invites/redeem", response_model=RedeemResponse)
async def redeem_invite(body: RedeemRequest, user_id: str = Depends(get_current_user_id)):
    if not await invite_service.redeem(user_id, validate_invite_code(body.code)):
        raise ValidationError("Invalid or expired invite code")
    return {"promoted": True, "role": "admin"}
