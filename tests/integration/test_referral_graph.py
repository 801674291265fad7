"""
Integration tests for the referral graph.

Tests cover:
- Edge creation up to seven levels
- Ignored codes (missing, unknown, self, loop)
- Duplicate signups
- Upline and downline queries
"""

import pytest
from sqlalchemy import func, select

from app.models import ReferralEdge
from app.services.referral.chain_manager import ReferralChainManager
from app.services.referral_service import ReferralService
from app.utils.exceptions import DuplicateSignupReferral


async def _edge_count(session) -> int:
    result = await session.execute(select(func.count(ReferralEdge.id)))
    return result.scalar_one()


class TestRecordSignup:
    """Test edge creation at signup."""

    @pytest.mark.parametrize("length,expected_levels", [(2, 1), (4, 3), (8, 7), (10, 7)])
    async def test_edges_per_chain_depth(self, session, make_chain, length, expected_levels):
        """The newest member gets one edge per ancestor, at most seven."""
        users = await make_chain(length)
        newest = users[-1]

        upline = await ReferralChainManager(session).get_upline(newest.id)

        assert [entry.level for entry in upline] == list(range(1, expected_levels + 1))
        for entry in upline:
            assert entry.inviter_id == users[-1 - entry.level].id

    async def test_no_code_creates_nothing(self, session, make_user):
        """Signup without a code has no inviter."""
        user = await make_user()

        edges = await ReferralChainManager(session).record_signup(user.id, None)

        assert edges == []
        assert await _edge_count(session) == 0

    async def test_unknown_code_ignored(self, session, make_user):
        """Unknown code is a no-op, not an error."""
        user = await make_user()

        edges = await ReferralChainManager(session).record_signup(user.id, "NOPE99")

        assert edges == []
        assert await _edge_count(session) == 0

    async def test_code_is_case_insensitive(self, session, make_user):
        """Codes are normalized before lookup."""
        inviter = await make_user()
        invitee = await make_user()

        edges = await ReferralChainManager(session).record_signup(
            invitee.id, f"  {inviter.referral_code.lower()} "
        )

        assert len(edges) == 1
        assert edges[0].inviter_id == inviter.id

    async def test_self_referral_ignored(self, session, make_user):
        """Own code never creates an edge."""
        user = await make_user()

        edges = await ReferralChainManager(session).record_signup(user.id, user.referral_code)

        assert edges == []

    async def test_loop_ignored(self, session, make_chain):
        """An ancestor cannot join below its own descendant."""
        root, child = await make_chain(2)

        edges = await ReferralChainManager(session).record_signup(root.id, child.referral_code)

        assert edges == []
        assert await _edge_count(session) == 1

    async def test_duplicate_signup_rejected(self, session, make_user):
        """A user has exactly one direct inviter."""
        first = await make_user()
        second = await make_user()
        invitee = await make_user()
        graph = ReferralChainManager(session)
        await graph.record_signup(invitee.id, first.referral_code)
        await session.commit()

        with pytest.raises(DuplicateSignupReferral):
            await graph.record_signup(invitee.id, second.referral_code)

        inviter = await graph.get_inviter(invitee.id)
        assert inviter.id == first.id


class TestReferralQueries:
    """Test downline tree and statistics."""

    async def test_downline_tree(self, session, make_chain):
        """Tree nests each member under its inviter."""
        u1, u2, u3, u4 = await make_chain(4)

        tree = await ReferralService(session).get_downline_tree(u1.id)

        assert [node.user_id for node in tree] == [u2.id]
        assert tree[0].level == 1
        assert tree[0].downline[0].user_id == u3.id
        assert tree[0].downline[0].downline[0].user_id == u4.id
        assert tree[0].downline[0].downline[0].level == 3

    async def test_downline_depth_cap(self, session, make_chain):
        """max_level stops the walk."""
        u1, u2, u3, _ = await make_chain(4)

        tree = await ReferralService(session).get_downline_tree(u1.id, max_level=2)

        assert tree[0].downline[0].user_id == u3.id
        assert tree[0].downline[0].downline == []

    async def test_leaf_has_empty_downline(self, session, make_chain):
        """Newest member has no invitees."""
        users = await make_chain(3)

        assert await ReferralService(session).get_downline_tree(users[-1].id) == []

    async def test_referral_stats(self, session, make_chain, activate, clock):
        """Level counts cover the whole network, active counts only today."""
        u1, u2, u3 = await make_chain(3)
        await activate([u3], clock().date())

        stats = await ReferralService(session, clock).get_referral_stats(u1.id)

        assert stats.total_referrals == 2
        assert stats.level_counts[1] == 1
        assert stats.level_counts[2] == 1
        assert stats.active_counts.get(1, 0) == 0
        assert stats.active_counts[2] == 1
