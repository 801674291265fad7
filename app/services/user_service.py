"""
User service.

Registration with referral-code generation.
"""

import secrets

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    REFERRAL_CODE_ALPHABET,
    REFERRAL_CODE_LENGTH,
    REFERRAL_CODE_MAX_ATTEMPTS,
)
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, log_operation, transaction
from app.services.referral_service import ReferralService
from app.utils.datetime_utils import Clock, utc_now
from app.utils.exceptions import RewardsError


def generate_referral_code(length: int = REFERRAL_CODE_LENGTH) -> str:
    """Generate a random upper-case alphanumeric referral code."""
    return "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length)
    )


class UserService(BaseService):
    """User registration and lookup."""

    def __init__(
        self, session: AsyncSession, clock: Clock = utc_now
    ) -> None:
        """Initialize user service."""
        super().__init__(session, clock)
        self.user_repo = UserRepository(session)
        self.referral_service = ReferralService(session, clock)

    async def _unique_referral_code(self) -> str:
        for _ in range(REFERRAL_CODE_MAX_ATTEMPTS):
            code = generate_referral_code()
            if not await self.user_repo.referral_code_exists(code):
                return code
        raise RuntimeError("Could not generate a unique referral code")

    @transaction
    async def _create_user(self, email: str | None) -> User:
        if email:
            email = email.strip().lower()
            if await self.user_repo.get_by_email(email):
                raise ValueError(f"Email already registered: {email}")

        code = await self._unique_referral_code()
        try:
            user = await self.user_repo.create(email=email, referral_code=code)
        except IntegrityError as e:
            raise ValueError("User with this email or code already exists") from e

        self.logger.info(
            "User registered",
            extra={"user_id": user.id, "referral_code": code},
        )
        return user

    @log_operation
    async def register_user(
        self, email: str | None = None, referral_code: str | None = None
    ) -> User:
        """
        Register a user and attach them to an inviter.

        The user is committed before the referral is applied; a failing
        referral is logged and never fails the registration.

        Args:
            email: Email address
            referral_code: Inviter's referral code

        Returns:
            Created user

        Raises:
            ValueError: If the email is already registered
        """
        user = await self._create_user(email)

        if referral_code:
            try:
                await self.referral_service.apply_referral(user.id, referral_code)
            except RewardsError as e:
                self.logger.warning(
                    "Referral not applied at registration",
                    extra={
                        "user_id": user.id,
                        "referral_code": referral_code,
                        "error": str(e),
                    },
                )

        return user

    async def get_user(self, user_id: int) -> User | None:
        """Get user by ID with current balances."""
        return await self.user_repo.get_fresh(user_id)
