"""Validation and sanitization for user-supplied invite fields."""

import logging
import re

from newsletter_admin.middleware.error_handler import ValidationError

logger = logging.getLogger(__name__)

# --- Constants ---

MAX_INVITE_CODE_LENGTH = 64
MAX_NOTES_LENGTH = 500

INVITE_CODE_RE = re.compile(r"^[A-Za-z0-9_\-]+$")

# Dangerous invisible/control characters to strip.
_DANGEROUS_CHARS_RE = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f"
    r"\u200b-\u200f\u2028-\u202f\u2060\ufeff]"
)


# --- Public API ---


def validate_invite_code(code: str) -> str:
    """Normalize a submitted invite code and check it against the allowlist."""
    code = _strip_dangerous_chars(code).strip()
    if not code or len(code) > MAX_INVITE_CODE_LENGTH:
        raise ValidationError(f"Invite code must be 1-{MAX_INVITE_CODE_LENGTH} characters")
    if not INVITE_CODE_RE.match(code):
        logger.warning("Malformed invite code submitted: %r", code[:MAX_INVITE_CODE_LENGTH])
        raise ValidationError("Invite code may only contain letters, digits, '-' and '_'")
    return code


def sanitize_notes(text: str | None) -> str | None:
    """Clean admin notes before storing them; blank notes become None."""
    if text is None:
        return None
    text = _strip_dangerous_chars(text).strip()
    if len(text) > MAX_NOTES_LENGTH:
        text = text[:MAX_NOTES_LENGTH]
    return text or None


# --- Private helpers ---


def _strip_dangerous_chars(text: str) -> str:
    return _DANGEROUS_CHARS_RE.sub("", text)
