"""Tests for the moderator registry."""

import tempfile

import pytest

from modcore.config import Settings
from modcore.core import ModerationCore
from modcore.errors import Conflict, InvalidArgument, NotFound, Unauthorized
from modcore.moderators.models import Capabilities

ADMIN = 1
MOD = 2
USER = 9


def _core(tmpdir: str) -> ModerationCore:
    return ModerationCore(Settings(data_dir=tmpdir, admin_user_ids={ADMIN}))


def test_capabilities_default_to_false():
    caps = Capabilities.from_dict({"ban_users": True})
    assert caps.ban_users
    assert not any(v for k, v in caps.to_dict().items() if k != "ban_users")
    with pytest.raises(InvalidArgument):
        Capabilities.from_dict({"fly": True})
    with pytest.raises(InvalidArgument):
        Capabilities.from_dict({"ban_users": "yes"})


def test_admins_pass_every_check():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        assert core.moderators.is_moderator(ADMIN)
        assert core.moderators.has_capability(ADMIN, "manage_rules")
        assert not core.moderators.is_moderator(USER)


def test_grant_update_revoke():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        privilege = core.moderators.grant(ADMIN, MOD, {"approve_content": True, "ban_users": True})
        assert privilege.is_active
        assert privilege.assigned_by == ADMIN
        assert core.moderators.is_moderator(MOD)
        assert core.moderators.has_capability(MOD, "ban_users")
        assert not core.moderators.has_capability(MOD, "manage_rules")

        updated = core.moderators.update(ADMIN, MOD, {"manage_rules": True, "ban_users": False})
        assert updated.capabilities.manage_rules
        assert updated.capabilities.approve_content
        assert not updated.capabilities.ban_users

        revoked = core.moderators.revoke(ADMIN, MOD)
        assert not revoked.is_active
        assert not core.moderators.is_moderator(MOD)
        assert core.moderators.get(MOD).user_id == MOD
        with pytest.raises(Conflict):
            core.moderators.revoke(ADMIN, MOD)


def test_regrant_reactivates_and_overwrites():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        first = core.moderators.grant(ADMIN, MOD, {"approve_content": True})
        core.moderators.revoke(ADMIN, MOD)

        again = core.moderators.grant(ADMIN, MOD, {"ban_users": True})
        assert again.id == first.id
        assert again.is_active
        assert again.capabilities.ban_users
        assert not again.capabilities.approve_content
        assert len(core.moderators.list_all()) == 1


def test_grant_to_active_moderator_conflicts():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        core.moderators.grant(ADMIN, MOD)
        with pytest.raises(Conflict):
            core.moderators.grant(ADMIN, MOD)


def test_administration_requires_assign_moderators():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        core.moderators.grant(ADMIN, MOD, {"approve_content": True})
        with pytest.raises(Unauthorized):
            core.moderators.grant(MOD, USER)

        core.moderators.update(ADMIN, MOD, {"assign_moderators": True})
        assert core.moderators.grant(MOD, USER).assigned_by == MOD


def test_get_and_list():
    with tempfile.TemporaryDirectory() as tmpdir:
        core = _core(tmpdir)
        core.moderators.grant(ADMIN, MOD)
        core.moderators.grant(ADMIN, 3)
        core.moderators.revoke(ADMIN, 3)

        assert {p.user_id for p in core.moderators.list_all()} == {MOD, 3}
        assert [p.user_id for p in core.moderators.list_all(active_only=True)] == [MOD]
        with pytest.raises(NotFound):
            core.moderators.get(USER)
        with pytest.raises(InvalidArgument):
            core.moderators.grant(ADMIN, 0)


def test_revocation_reaches_every_core_on_the_same_store():
    with tempfile.TemporaryDirectory() as tmpdir:
        writer, server = _core(tmpdir), _core(tmpdir)
        writer.moderators.grant(ADMIN, USER, {"approve_content": True})
        assert server.moderators.is_moderator(USER)

        writer.moderators.revoke(ADMIN, USER)
        assert not server.moderators.is_moderator(USER)
        with pytest.raises(Unauthorized):
            server.moderators.require_moderator(USER)
