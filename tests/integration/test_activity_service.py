"""
Integration tests for ActivityService.

Tests cover:
- Check-in streak rewards over consecutive days
- Double check-in and missed days
- Daily activity limits and the user row lock
- Caller-supplied rewards
- Per-transaction commission dispatch
"""

import random
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.config.settings import settings
from app.services.activity_service import ActivityService
from app.services.activity.rewards import RewardGenerator
from app.services.balance_service import BalanceService
from app.utils.exceptions import AlreadyCheckedIn, DailyLimitExceeded, NotFound


@pytest.fixture
def dispatcher():
    """Records enqueued per-transaction commissions."""
    return MagicMock()


@pytest.fixture
def activity_service(session, clock, dispatcher):
    """ActivityService with a seeded reward generator."""
    return ActivityService(
        session,
        clock=clock,
        rewards=RewardGenerator(random.Random(42)),
        commission_dispatcher=dispatcher,
    )


class TestCheckIn:
    """Test daily check-in."""

    async def test_streak_rewards(self, activity_service, make_user, clock):
        """Rewards grow by 0.15 per day and cap at 1.00."""
        user = await make_user()
        expected = ["0.10", "0.25", "0.40", "0.55", "0.70", "0.85", "1.00", "1.00"]

        for day_number, reward in enumerate(expected, start=1):
            result = await activity_service.check_in(user.id)
            assert result.streak == day_number
            assert result.reward == Decimal(reward)
            clock.advance(days=1)

        balance = await BalanceService(activity_service.session).get_balance(user.id)
        assert balance.total_balance == Decimal("4.85")

    async def test_second_checkin_same_day(self, activity_service, make_user, clock):
        """Second check-in fails and credits nothing."""
        user_id = (await make_user()).id
        await activity_service.check_in(user_id)
        clock.advance(hours=11)

        with pytest.raises(AlreadyCheckedIn):
            await activity_service.check_in(user_id)

        balance = await BalanceService(activity_service.session).get_balance(user_id)
        assert balance.total_balance == Decimal("0.10")

    async def test_missed_day_resets_streak(self, activity_service, make_user, clock):
        """Gap of a day starts over at 1."""
        user = await make_user()
        await activity_service.check_in(user.id)
        clock.advance(days=1)
        await activity_service.check_in(user.id)
        clock.advance(days=2)

        result = await activity_service.check_in(user.id)

        assert result.streak == 1
        assert result.reward == Decimal("0.10")

    async def test_checkin_marks_user_active(self, activity_service, make_user, clock):
        """Check-in makes the user commission eligible today."""
        user = await make_user()
        today = clock().date()
        assert not await activity_service.gate.is_user_active(user.id, today)

        await activity_service.check_in(user.id)

        assert await activity_service.gate.is_user_active(user.id, today)

    async def test_eligibility_survives_next_day_checkin(
        self, activity_service, make_user, clock
    ):
        """Checking in again the next day keeps the previous day eligible."""
        user = await make_user()
        first_day = clock().date()
        await activity_service.check_in(user.id)

        clock.advance(hours=12, minutes=2)
        await activity_service.check_in(user.id)

        assert await activity_service.gate.is_user_active(user.id, first_day)
        assert await activity_service.gate.is_user_active(user.id, clock().date())

    async def test_checkin_via_record_activity(self, activity_service, make_user):
        """checkin activity type routes to the check-in."""
        user = await make_user()

        result = await activity_service.record_activity(user.id, "checkin")

        assert result.amount == Decimal("0.10")

    async def test_unknown_user(self, activity_service):
        """Missing user is reported."""
        with pytest.raises(NotFound):
            await activity_service.check_in(999)


class TestRecordActivity:
    """Test timed activities and daily limits."""

    async def test_watch_limit(self, activity_service, make_user):
        """Twenty watches a day, the 21st is refused."""
        user_id = (await make_user()).id

        for _ in range(20):
            result = await activity_service.record_activity(user_id, "watch")
            assert Decimal("0.10") <= result.amount < Decimal("0.20")

        with pytest.raises(DailyLimitExceeded) as exc_info:
            await activity_service.record_activity(user_id, "watch")

        assert exc_info.value.limit == 20
        todays = await activity_service.get_todays_earnings(user_id, "watch")
        assert todays.count == 20

    async def test_limit_resets_next_day(self, activity_service, make_user, clock):
        """Treasure limit of one applies per UTC day."""
        user_id = (await make_user()).id
        await activity_service.record_activity(user_id, "treasure")

        with pytest.raises(DailyLimitExceeded):
            await activity_service.record_activity(user_id, "treasure")

        clock.advance(days=1)
        result = await activity_service.record_activity(user_id, "treasure")
        assert result.amount >= Decimal("0.20")

    async def test_task_with_fixed_reward(self, activity_service, make_user):
        """Tasks pay the supplied reward."""
        user = await make_user()

        result = await activity_service.record_activity(
            user.id, "task", reward=Decimal("1.50"), task_name="Install app"
        )

        assert result.amount == Decimal("1.50")
        assert result.new_balance == Decimal("1.50")

    @pytest.mark.parametrize("activity_type", ["watch", "scratch", "treasure"])
    async def test_fixed_reward_refused_for_random_activity(
        self, activity_service, make_user, activity_type
    ):
        """A caller cannot choose the reward of a random activity."""
        user_id = (await make_user()).id

        with pytest.raises(ValueError, match="only accepted for tasks"):
            await activity_service.record_activity(
                user_id, activity_type, reward=Decimal("500")
            )

        todays = await activity_service.get_todays_earnings(user_id)
        assert todays.count == 0
        balance = await BalanceService(activity_service.session).get_balance(user_id)
        assert balance.total_balance == Decimal("0")

    async def test_task_without_reward(self, activity_service, make_user):
        """Tasks need a reward."""
        user = await make_user()

        with pytest.raises(ValueError):
            await activity_service.record_activity(user.id, "task")

    @pytest.mark.parametrize("activity_type", ["referral", "commission", "dance"])
    async def test_rejects_non_activities(self, activity_service, make_user, activity_type):
        """Network income and unknown types cannot be recorded."""
        user = await make_user()

        with pytest.raises(ValueError):
            await activity_service.record_activity(user.id, activity_type)

    async def test_todays_earnings(self, activity_service, make_user, clock):
        """Summary covers the current UTC day only."""
        user = await make_user()
        await activity_service.record_activity(user.id, "task", reward=Decimal("2.00"))
        await activity_service.check_in(user.id)

        todays = await activity_service.get_todays_earnings(user.id)
        assert todays.total == Decimal("2.10")
        assert todays.count == 2

        clock.advance(days=1)
        todays = await activity_service.get_todays_earnings(user.id)
        assert todays.count == 0

    async def test_user_row_locked_before_limit_count(
        self, activity_service, make_user, monkeypatch
    ):
        """The user row is locked before today's count is taken."""
        user_id = (await make_user()).id
        calls = []
        get_for_update = activity_service.user_repo.get_for_update
        check_daily_limit = activity_service.gate.check_daily_limit

        async def locking(uid):
            calls.append("lock")
            return await get_for_update(uid)

        async def counting(uid, activity_type, limit=None):
            calls.append("count")
            return await check_daily_limit(uid, activity_type, limit)

        monkeypatch.setattr(activity_service.user_repo, "get_for_update", locking)
        monkeypatch.setattr(activity_service.gate, "check_daily_limit", counting)

        await activity_service.record_activity(user_id, "watch")

        assert calls == ["lock", "count"]


class TestCommissionDispatch:
    """Test per-transaction commission enqueueing."""

    async def test_not_dispatched_under_daily_policy(
        self, activity_service, make_user, dispatcher
    ):
        """Daily policy pays at settlement only."""
        user = await make_user()

        await activity_service.record_activity(user.id, "watch")

        dispatcher.assert_not_called()

    async def test_dispatched_under_legacy_policy(
        self, activity_service, make_user, dispatcher, monkeypatch
    ):
        """Legacy policy enqueues each committed earning."""
        monkeypatch.setattr(settings, "commission_policy", "per_transaction")
        user = await make_user()

        result = await activity_service.record_activity(user.id, "watch")

        dispatcher.assert_called_once_with(result.earning_id)

    async def test_not_dispatched_when_limit_hit(
        self, activity_service, make_user, dispatcher, monkeypatch
    ):
        """A refused activity enqueues nothing."""
        monkeypatch.setattr(settings, "commission_policy", "per_transaction")
        user = await make_user()
        await activity_service.record_activity(user.id, "treasure")
        dispatcher.reset_mock()

        with pytest.raises(DailyLimitExceeded):
            await activity_service.record_activity(user.id, "treasure")

        dispatcher.assert_not_called()
