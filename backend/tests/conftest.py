import copy
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from pymongo.errors import DuplicateKeyError

from newsletter_admin.config import settings
from newsletter_admin.models.invite import InviteCode
from newsletter_admin.repositories import invite_repo, user_repo
from newsletter_admin.services import invite_service

TEST_JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


class FakeDocumentStore:
    """In-memory stand-in for the 'admin_invites' and 'users' collections.

    Mirrors the repository functions one to one. ``writes`` counts every
    mutation so tests can assert that nothing was stored.
    """

    def __init__(self):
        self.invites: dict[str, dict] = {}
        self.users: dict[str, dict] = {}
        self.writes = 0

    # --- seeding helpers ---

    def add_user(self, user_id: str, role: str = "user") -> dict:
        self.users[user_id] = {"id": user_id, "role": role}
        return self.users[user_id]

    def add_invite(self, code: str, **fields) -> dict:
        fields.setdefault("max_uses", 5)
        self.invites[code] = InviteCode(code=code, **fields).model_dump()
        return self.invites[code]

    # --- invite_repo ---

    async def create_invite(self, invite: InviteCode) -> InviteCode:
        if invite.code in self.invites:
            raise DuplicateKeyError(f"duplicate key: {invite.code}")
        self.invites[invite.code] = invite.model_dump()
        self.writes += 1
        return invite

    async def get_invite(self, code, session=None):
        doc = self.invites.get(code)
        return copy.deepcopy(doc) if doc else None

    async def claim_use(self, code, user_id, now, session=None):
        doc = self.invites.get(code)
        if doc is None or not self._is_active(doc, now):
            return None
        if doc["assigned_to"] not in (None, user_id):
            return None
        doc["used_count"] += 1
        self.writes += 1
        return copy.deepcopy(doc)

    async def list_invites(self, now, created_by=None, active_only=False, limit=None):
        docs = sorted(self.invites.values(), key=lambda d: d["created_at"], reverse=True)
        if created_by:
            docs = [d for d in docs if d["created_by"] == created_by]
        if active_only:
            docs = [d for d in docs if self._is_active(d, now)]
        if limit:
            docs = docs[:limit]
        return copy.deepcopy(docs)

    async def revoke_invite(self, code, now):
        doc = self.invites.get(code)
        if doc is None or doc["revoked_at"] is not None:
            return None
        doc["revoked_at"] = now
        self.writes += 1
        return copy.deepcopy(doc)

    # --- user_repo ---

    async def get_user(self, user_id, session=None):
        doc = self.users.get(user_id)
        return copy.deepcopy(doc) if doc else None

    async def promote_to_admin(self, user_id, log, session=None):
        doc = self.users.get(user_id)
        if doc is None:
            return False
        doc["role"] = "admin"
        doc["admin_promoted_at"] = log.promotion_timestamp
        doc["admin_promotion_log"] = log.model_dump()
        self.writes += 1
        return True

    # --- transactions ---

    @asynccontextmanager
    async def transaction(self):
        snapshot = copy.deepcopy((self.invites, self.users, self.writes))
        try:
            yield None
        except BaseException:
            self.invites, self.users, self.writes = snapshot
            raise

    @staticmethod
    def _is_active(doc: dict, now: datetime) -> bool:
        if doc["revoked_at"] is not None:
            return False
        if doc["used_count"] >= doc["max_uses"]:
            return False
        return doc["expires_at"] is None or doc["expires_at"] > now


@pytest.fixture
def store():
    """Route both repositories and the service transaction through a FakeDocumentStore."""
    fake = FakeDocumentStore()
    with (
        patch.object(invite_repo, "create_invite", fake.create_invite),
        patch.object(invite_repo, "get_invite", fake.get_invite),
        patch.object(invite_repo, "claim_use", fake.claim_use),
        patch.object(invite_repo, "list_invites", fake.list_invites),
        patch.object(invite_repo, "revoke_invite", fake.revoke_invite),
        patch.object(user_repo, "get_user", fake.get_user),
        patch.object(user_repo, "promote_to_admin", fake.promote_to_admin),
        patch.object(invite_service, "_transaction", fake.transaction),
    ):
        yield fake


@pytest.fixture
def master_code(monkeypatch):
    """Enable a master invite code for the duration of the test."""
    monkeypatch.setattr(settings, "master_invite_code", "DISCOVER_ADMIN_2025")
    return "DISCOVER_ADMIN_2025"


@pytest.fixture
def jwt_secret(monkeypatch):
    monkeypatch.setattr(settings, "jwt_secret_key", TEST_JWT_SECRET)
    return TEST_JWT_SECRET


@pytest.fixture
def now():
    return datetime.now(timezone.utc)
