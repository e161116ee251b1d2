from fastapi import Depends, Header

from newsletter_admin.middleware.auth import decode_access_token
from newsletter_admin.middleware.error_handler import AuthenticationError, ForbiddenError
from newsletter_admin.models.user import UserAccount
from newsletter_admin.repositories import user_repo


async def get_current_user_id(authorization: str = Header(...)) -> str:
    """Extract and validate user ID from Bearer token."""
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header")

    token = authorization.removeprefix("Bearer ")
    user_id = decode_access_token(token)
    if not user_id:
        raise AuthenticationError("Invalid or expired token")

    return user_id


async def require_admin(user_id: str = Depends(get_current_user_id)) -> str:
    """Allow only callers whose stored role is admin."""
    user = await user_repo.get_user(user_id)
    if user is None or not UserAccount(**user).is_admin:
        raise ForbiddenError("Only admins can manage invite codes")
    return user_id
