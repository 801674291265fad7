"""
Integration tests for UserService.

Tests cover:
- Registration and referral code generation
- Referral attachment at registration
"""

import pytest

from app.config.business_constants import REFERRAL_CODE_ALPHABET, REFERRAL_CODE_LENGTH
from app.services.referral.chain_manager import ReferralChainManager
from app.services.user_service import UserService, generate_referral_code


class TestReferralCode:
    """Test code generation."""

    def test_code_format(self):
        """Codes are upper-case alphanumeric of fixed length."""
        for _ in range(50):
            code = generate_referral_code()
            assert len(code) == REFERRAL_CODE_LENGTH
            assert set(code) <= set(REFERRAL_CODE_ALPHABET)


class TestRegistration:
    """Test user registration."""

    async def test_register_without_code(self, session):
        """New user starts with zero balances and a unique code."""
        user = await UserService(session).register_user(email="Alice@Example.com")

        assert user.id is not None
        assert user.email == "alice@example.com"
        assert len(user.referral_code) == REFERRAL_CODE_LENGTH
        assert user.total_balance == 0

    async def test_codes_are_unique(self, session):
        """Each user gets a distinct code."""
        service = UserService(session)
        codes = {(await service.register_user()).referral_code for _ in range(10)}

        assert len(codes) == 10

    async def test_duplicate_email(self, session):
        """Email addresses are unique."""
        service = UserService(session)
        await service.register_user(email="bob@example.com")

        with pytest.raises(ValueError):
            await service.register_user(email="BOB@example.com")

    async def test_register_with_code(self, session):
        """Code attaches the new user to its inviter."""
        service = UserService(session)
        inviter = await service.register_user(email="inviter@example.com")

        invitee = await service.register_user(referral_code=inviter.referral_code)

        found = await ReferralChainManager(session).get_inviter(invitee.id)
        assert found.id == inviter.id

    async def test_unknown_code_still_registers(self, session):
        """A bad code never fails the registration."""
        user = await UserService(session).register_user(referral_code="ZZZZZZ")

        assert user.id is not None
        assert await ReferralChainManager(session).get_inviter(user.id) is None
