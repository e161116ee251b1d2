"""Admin invite codes: minting, redemption and promotion to the admin role."""

import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from motor.motor_asyncio import AsyncIOMotorClientSession
from pymongo.errors import DuplicateKeyError, PyMongoError

from newsletter_admin.config import settings
from newsletter_admin.db.mongodb import get_mongo_client
from newsletter_admin.middleware.error_handler import (
    ExhaustedError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    RevokedError,
    StorageError,
    ValidationError,
)
from newsletter_admin.models.invite import InviteCode, InviteStatus
from newsletter_admin.models.user import PromotionLog, PromotionMethod, UserAccount
from newsletter_admin.repositories import invite_repo, user_repo

logger = logging.getLogger(__name__)

CODE_PREFIX = "ADM-"
GENERATE_ATTEMPTS = 3

# Failures that mean "this code cannot promote this user", reported as False.
_REJECTIONS = (NotFoundError, ExhaustedError, ExpiredError, RevokedError, ForbiddenError)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_code() -> str:
    return CODE_PREFIX + secrets.token_hex(6).upper()


def _is_master_code(code: str) -> bool:
    master = settings.master_invite_code
    if not master:
        return False
    return secrets.compare_digest(code.encode(), master.encode())


@asynccontextmanager
async def _transaction():
    """Yield a session whose writes commit together or not at all."""
    client = get_mongo_client()
    async with await client.start_session() as session:
        async with session.start_transaction():
            yield session


async def generate_code(
    created_by: str | None = None,
    max_uses: int | None = None,
    expiry_days: int | None = None,
    assigned_to: str | None = None,
    notes: str | None = None,
) -> InviteCode:
    if max_uses is None:
        max_uses = settings.invite_default_max_uses
    if expiry_days is None:
        expiry_days = settings.invite_default_expiry_days
    if max_uses < 1:
        raise ValidationError("max_uses must be at least 1")
    if expiry_days < 0:
        raise ValidationError("expiry_days cannot be negative")

    now = _now()
    expires_at = now + timedelta(days=expiry_days) if expiry_days else None

    for _ in range(GENERATE_ATTEMPTS):
        invite = InviteCode(
            code=_new_code(),
            created_at=now,
            max_uses=max_uses,
            expires_at=expires_at,
            created_by=created_by,
            assigned_to=assigned_to or None,
            notes=notes or None,
        )
        try:
            await invite_repo.create_invite(invite)
        except DuplicateKeyError:
            logger.warning("Invite code collision on %s, retrying", invite.code)
            continue
        except PyMongoError as e:
            logger.error("Failed to create invite code: %s", e)
            raise StorageError("Failed to create invite code", detail=str(e))
        logger.info(
            "Generated admin invite %s (max_uses=%d, created_by=%s)",
            invite.code, max_uses, created_by,
        )
        return invite

    raise StorageError("Could not generate a unique invite code")


async def redeem(user_id: str, code: str) -> bool:
    """Promote user_id to admin with an invite or the master code.

    Returns False when the code cannot be used (unknown, exhausted, expired,
    revoked, assigned to someone else) or the user does not exist; nothing
    is written in that case. Storage failures raise StorageError.
    """
    code = (code or "").strip()
    if not code:
        logger.warning("Empty invite code submitted by user %s", user_id)
        return False

    try:
        if _is_master_code(code):
            await _promote_with_master_code(user_id)
        else:
            await _redeem_invite(user_id, code)
    except _REJECTIONS as e:
        logger.warning("Invite redemption rejected for user %s: %s", user_id, e.message)
        return False
    except PyMongoError as e:
        logger.error("Invite redemption failed for user %s: %s", user_id, e)
        raise StorageError("Failed to redeem invite code", detail=str(e))
    return True


async def _promote_with_master_code(user_id: str) -> None:
    user = await user_repo.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found", detail=user_id)
    if UserAccount(**user).is_admin:
        logger.info("User %s is already an admin", user_id)
        return

    log = PromotionLog(promotion_method=PromotionMethod.MASTER_CODE, promotion_timestamp=_now())
    if not await user_repo.promote_to_admin(user_id, log):
        raise NotFoundError("User not found", detail=user_id)
    logger.info("Promoted user %s to admin with the master code", user_id)


async def _redeem_invite(user_id: str, code: str) -> None:
    now = _now()
    async with _transaction() as session:
        user = await user_repo.get_user(user_id, session=session)
        if user is None:
            raise NotFoundError("User not found", detail=user_id)
        if UserAccount(**user).is_admin:
            # The code must still be redeemable; an existing admin takes no use.
            await _check_redeemable(code, user_id, now, session)
            logger.info("User %s is already an admin, invite %s not consumed", user_id, code)
            return

        claimed = await invite_repo.claim_use(code, user_id, now, session=session)
        if claimed is None:
            await _check_redeemable(code, user_id, now, session)
            # Active on re-read: a concurrent redemption took the last use first.
            raise ExhaustedError(detail=code)

        log = PromotionLog(
            promotion_method=PromotionMethod.INVITE_CODE,
            invite_code=code,
            promotion_timestamp=now,
        )
        # Raising here aborts the transaction and gives the claimed use back.
        if not await user_repo.promote_to_admin(user_id, log, session=session):
            raise NotFoundError("User not found", detail=user_id)

    logger.info(
        "Promoted user %s to admin with invite %s (%d/%d uses)",
        user_id, code, claimed["used_count"], claimed["max_uses"],
    )


async def _check_redeemable(
    code: str,
    user_id: str,
    now: datetime,
    session: AsyncIOMotorClientSession | None = None,
) -> None:
    """Raise the error that stops user_id from redeeming code, if there is one."""
    doc = await invite_repo.get_invite(code, session=session)
    if doc is None:
        raise NotFoundError("Invite code not found", detail=code)

    invite = InviteCode(**doc)
    status = invite.status(now)
    if status is InviteStatus.REVOKED:
        raise RevokedError(detail=code)
    if status is InviteStatus.EXHAUSTED:
        raise ExhaustedError(detail=code)
    if status is InviteStatus.EXPIRED:
        raise ExpiredError(detail=code)
    if invite.assigned_to and invite.assigned_to != user_id:
        raise ForbiddenError("Invite code is not assigned to this user", detail=code)


async def list_codes(
    created_by: str | None = None,
    active_only: bool = False,
    limit: int | None = None,
) -> list[InviteCode]:
    try:
        docs = await invite_repo.list_invites(
            _now(), created_by=created_by, active_only=active_only, limit=limit
        )
    except PyMongoError as e:
        logger.error("Failed to list invite codes: %s", e)
        raise StorageError("Failed to list invite codes", detail=str(e))
    return [InviteCode(**d) for d in docs]


async def revoke_code(code: str) -> InviteCode:
    try:
        doc = await invite_repo.revoke_invite(code, _now())
    except PyMongoError as e:
        logger.error("Failed to revoke invite code %s: %s", code, e)
        raise StorageError("Failed to revoke invite code", detail=str(e))
    if doc is None:
        raise NotFoundError(f"Invite code '{code}' not found or already revoked")
    logger.info("Revoked admin invite %s", code)
    return InviteCode(**doc)


def describe(invite: InviteCode, now: datetime | None = None) -> dict:
    return {
        "code": invite.code,
        "created_at": invite.created_at.isoformat(),
        "used_count": invite.used_count,
        "max_uses": invite.max_uses,
        "expires_at": invite.expires_at.isoformat() if invite.expires_at else None,
        "created_by": invite.created_by,
        "assigned_to": invite.assigned_to,
        "notes": invite.notes,
        "revoked_at": invite.revoked_at.isoformat() if invite.revoked_at else None,
        "status": invite.status(now).value,
    }
