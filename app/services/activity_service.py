"""
Activity service.

Caller-facing earning operations: timed activities, the daily
check-in and today's earnings summary.
"""

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from dramatiq.errors import DramatiqError
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import calculate_checkin_reward
from app.config.settings import settings
from app.models.earning import ACTIVITY_EARNING_TYPES, EarningType
from app.repositories.activity_day_repository import ActivityDayRepository
from app.repositories.earning_repository import EarningRepository
from app.repositories.user_repository import UserRepository
from app.services.activity.gate import ActivityGate
from app.services.activity.rewards import RewardGenerator
from app.services.balance_service import BalanceService
from app.services.base_service import BaseService, transaction
from app.utils.datetime_utils import Clock, previous_day, utc_now
from app.utils.exceptions import AlreadyCheckedIn, NotFound


ACTIVITY_DESCRIPTIONS = {
    EarningType.WATCH: "Watched video ad",
    EarningType.SCRATCH: "Scratch card reward",
    EarningType.TREASURE: "Treasure box reward",
}


@dataclass
class ActivityResult:
    """Result of a credited activity."""

    earning_id: int
    amount: Decimal
    new_balance: Decimal


@dataclass
class CheckInResult:
    """Result of a daily check-in."""

    streak: int
    reward: Decimal
    new_balance: Decimal
    earning_id: int | None = None


@dataclass
class TodaysEarnings:
    """Today's earnings summary."""

    total: Decimal
    count: int


def dispatch_commission(earning_id: int) -> None:
    """Enqueue per-transaction commission distribution for an earning."""
    from jobs.broker import broker  # noqa: F401
    from jobs.tasks.commission_distribution import distribute_earning_commission

    distribute_earning_commission.send_with_options(
        args=(earning_id,),
        delay=settings.commission_delay_ms,
    )


class ActivityService(BaseService):
    """Credits activities under the daily limits."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock = utc_now,
        rewards: RewardGenerator | None = None,
        commission_dispatcher: Callable[[int], None] | None = None,
    ) -> None:
        """
        Initialize activity service.

        Args:
            session: Async database session
            clock: Returns the current UTC datetime
            rewards: Reward amount generator
            commission_dispatcher: Enqueues per-transaction commissions
        """
        super().__init__(session, clock)
        self.gate = ActivityGate(session, clock)
        self.rewards = rewards or RewardGenerator()
        self.balance_service = BalanceService(session, clock)
        self.user_repo = UserRepository(session)
        self.earning_repo = EarningRepository(session)
        self.activity_repo = ActivityDayRepository(session)
        self.commission_dispatcher = commission_dispatcher or dispatch_commission

    def _after_commit(self, earning_id: int | None) -> None:
        """Trigger the legacy per-transaction bonus when it is configured."""
        if earning_id is None or settings.uses_daily_settlement:
            return
        try:
            self.commission_dispatcher(earning_id)
        except (DramatiqError, RedisError) as e:
            # The earning stays committed; the bonus is best effort
            self.logger.error(
                "Failed to enqueue commission distribution",
                extra={"earning_id": earning_id, "error": str(e)},
            )

    @transaction
    async def _credit_activity(
        self,
        user_id: int,
        activity_type: EarningType,
        reward: Decimal | None,
        task_name: str | None,
    ) -> ActivityResult:
        # Row lock: concurrent requests must not both pass the limit check
        if await self.user_repo.get_for_update(user_id) is None:
            raise NotFound("User", user_id)

        await self.gate.check_daily_limit(user_id, activity_type.value)
        amount = self.rewards.amount_for(activity_type.value, reward)

        if activity_type == EarningType.TASK:
            description = f"Completed task: {task_name or 'task'}"
        else:
            description = ACTIVITY_DESCRIPTIONS[activity_type]

        change = await self.balance_service.credit(
            user_id, amount, activity_type, description=description
        )

        self.logger.info(
            "Activity credited",
            extra={
                "user_id": user_id,
                "activity_type": activity_type.value,
                "amount": str(amount),
            },
        )

        return ActivityResult(
            earning_id=change.earning_id,
            amount=change.amount,
            new_balance=change.total_balance,
        )

    async def record_activity(
        self,
        user_id: int,
        activity_type: str,
        reward: Decimal | None = None,
        task_name: str | None = None,
    ) -> ActivityResult:
        """
        Credit one activity.

        Args:
            user_id: User ID
            activity_type: watch, scratch, treasure, task or checkin
            reward: Fixed reward (tasks)
            task_name: Task name for the ledger description

        Returns:
            ActivityResult

        Raises:
            ValueError: If the activity type is not an activity
            DailyLimitExceeded: If today's limit is reached
            AlreadyCheckedIn: For a second check-in today
            NotFound: If the user does not exist
        """
        try:
            earning_type = EarningType(activity_type)
        except ValueError as e:
            raise ValueError(f"Unknown activity type: {activity_type}") from e
        if earning_type not in ACTIVITY_EARNING_TYPES:
            raise ValueError(f"Not a user activity: {activity_type}")

        if earning_type == EarningType.CHECKIN:
            checkin = await self.check_in(user_id)
            return ActivityResult(
                earning_id=checkin.earning_id,
                amount=checkin.reward,
                new_balance=checkin.new_balance,
            )

        result = await self._credit_activity(
            user_id, earning_type, reward, task_name
        )
        self._after_commit(result.earning_id)
        return result

    @transaction
    async def _check_in(self, user_id: int) -> CheckInResult:
        user = await self.user_repo.get_fresh(user_id)
        if user is None:
            raise NotFound("User", user_id)

        today = self.today()
        if user.last_checkin_date == today:
            raise AlreadyCheckedIn(user_id)

        if user.last_checkin_date == previous_day(today):
            streak = user.daily_streak + 1
        else:
            streak = 1

        # Compare-and-set guards against a concurrent check-in
        if not await self.user_repo.record_checkin(user_id, today, streak):
            raise AlreadyCheckedIn(user_id)
        await self.activity_repo.record(user_id, today)

        reward = calculate_checkin_reward(streak)
        change = await self.balance_service.credit(
            user_id,
            reward,
            EarningType.CHECKIN,
            description=f"Daily check-in (Day {streak})",
        )

        self.logger.info(
            "User checked in",
            extra={"user_id": user_id, "streak": streak, "reward": str(reward)},
        )

        return CheckInResult(
            streak=streak,
            reward=change.amount,
            new_balance=change.total_balance,
            earning_id=change.earning_id,
        )

    async def check_in(self, user_id: int) -> CheckInResult:
        """
        Daily check-in.

        Extends the streak when the previous check-in was yesterday and
        resets it to 1 otherwise. Marks the user active for today, which
        makes their upline eligible for today's commissions.

        Args:
            user_id: User ID

        Returns:
            CheckInResult

        Raises:
            AlreadyCheckedIn: If the user already checked in today
            NotFound: If the user does not exist
        """
        result = await self._check_in(user_id)
        self._after_commit(result.earning_id)
        return result

    async def get_todays_earnings(
        self, user_id: int, earning_type: str | None = None
    ) -> TodaysEarnings:
        """Get total and count of today's earnings of a user."""
        total, count = await self.earning_repo.summary_for_day(
            user_id, self.today(), earning_type=earning_type
        )
        return TodaysEarnings(total=total, count=count)
