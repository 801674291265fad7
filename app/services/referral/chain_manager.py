"""
Referral chain management module.

Maintains the referral graph: creates the frozen multi-level upline
edges at signup and answers upline and downline queries.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.referral import ReferralEdge
from app.models.user import User
from app.repositories.referral_repository import ReferralRepository
from app.repositories.user_repository import UserRepository
from app.services.referral.config import REFERRAL_DEPTH
from app.utils.exceptions import DuplicateSignupReferral


@dataclass
class UplineEntry:
    """Ancestor of a user at a level."""

    level: int
    inviter_id: int


@dataclass
class DownlineNode:
    """Member of a user's downline tree."""

    user_id: int
    email: str | None
    level: int
    is_active: bool
    last_activity_date: date | None
    total_balance: Decimal
    earned_balance: Decimal
    downline: list["DownlineNode"] = field(default_factory=list)

    @classmethod
    def from_user(cls, user: User, level: int) -> "DownlineNode":
        """Build node from a user row."""
        return cls(
            user_id=user.id,
            email=user.email,
            level=level,
            is_active=user.is_active,
            last_activity_date=user.last_activity_date,
            total_balance=user.total_balance,
            earned_balance=user.earned_balance,
        )


class ReferralChainManager:
    """Manages referral chain operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize chain manager."""
        self.session = session
        self.referral_repo = ReferralRepository(session)
        self.user_repo = UserRepository(session)

    async def _ancestor_ids(self, user_id: int) -> list[int]:
        """
        Follow level-1 edges upward from a user.

        Returns:
            IDs of the user's inviter, its inviter, ... at most
            REFERRAL_DEPTH entries
        """
        ancestors: list[int] = []
        current = user_id
        for _ in range(REFERRAL_DEPTH):
            inviter_id = await self.referral_repo.get_inviter_id(current)
            if inviter_id is None or inviter_id in ancestors:
                break
            ancestors.append(inviter_id)
            current = inviter_id
        return ancestors

    async def record_signup(
        self, invitee_id: int, referral_code: str | None
    ) -> list[ReferralEdge]:
        """
        Create referral edges for a new invitee.

        Creates the level-1 edge to the code's owner, then one edge per
        further ancestor up to REFERRAL_DEPTH levels. Missing, unknown or
        self-owned codes and codes that would close a loop are ignored.

        Args:
            invitee_id: Invitee user ID
            referral_code: Referral code presented at signup

        Returns:
            Created edges ordered by level (empty if nothing was created)

        Raises:
            DuplicateSignupReferral: If the invitee already has an inviter
        """
        if not referral_code or not referral_code.strip():
            return []

        inviter = await self.user_repo.get_by_referral_code(referral_code)
        if inviter is None:
            logger.info(
                "Unknown referral code ignored",
                extra={"invitee_id": invitee_id, "referral_code": referral_code},
            )
            return []

        if inviter.id == invitee_id:
            logger.warning(
                "Self-referral ignored",
                extra={"invitee_id": invitee_id},
            )
            return []

        if await self.referral_repo.get_edge(invitee_id, level=1):
            raise DuplicateSignupReferral(invitee_id)

        chain = [inviter.id, *await self._ancestor_ids(inviter.id)]
        chain = chain[:REFERRAL_DEPTH]

        if invitee_id in chain:
            logger.warning(
                "Referral loop detected",
                extra={
                    "invitee_id": invitee_id,
                    "inviter_id": inviter.id,
                    "chain_ids": chain,
                },
            )
            return []

        edges: list[ReferralEdge] = []
        try:
            async with self.session.begin_nested():
                for level, ancestor_id in enumerate(chain, start=1):
                    edge = await self.referral_repo.create(
                        inviter_id=ancestor_id,
                        invitee_id=invitee_id,
                        level=level,
                        bonus_given=False,
                    )
                    edges.append(edge)
        except IntegrityError as e:
            # Concurrent signup for the same invitee won the race
            raise DuplicateSignupReferral(invitee_id) from e

        logger.info(
            "Referral chain created",
            extra={
                "invitee_id": invitee_id,
                "inviter_id": inviter.id,
                "levels_created": len(edges),
            },
        )

        return edges

    async def get_inviter(self, user_id: int) -> User | None:
        """
        Get direct inviter of a user.

        Args:
            user_id: User ID

        Returns:
            Inviter or None
        """
        inviter_id = await self.referral_repo.get_inviter_id(user_id)
        if inviter_id is None:
            return None
        return await self.user_repo.get_fresh(inviter_id)

    async def get_upline(self, user_id: int) -> list[UplineEntry]:
        """
        Get stored ancestors of a user ordered by level.

        Args:
            user_id: User ID

        Returns:
            Upline entries for levels 1..7 that exist
        """
        edges = await self.referral_repo.get_upline_edges(user_id)
        return [
            UplineEntry(level=edge.level, inviter_id=edge.inviter_id)
            for edge in edges
        ]

    async def get_downline(
        self,
        user_id: int,
        max_level: int = REFERRAL_DEPTH,
        max_children: int | None = None,
    ) -> list[DownlineNode]:
        """
        Build the downline tree of a user.

        Walks level-1 edges in reverse with an explicit stack.

        Args:
            user_id: Root user ID
            max_level: Depth cap
            max_children: Max direct invitees expanded per node

        Returns:
            Direct invitees, each carrying its own downline
        """
        if max_children is None:
            max_children = settings.downline_fanout_limit
        max_level = min(max_level, REFERRAL_DEPTH)
        if max_level < 1:
            return []

        roots: list[DownlineNode] = []
        visited = {user_id}
        stack: list[tuple[int, int, list[DownlineNode]]] = [(user_id, 1, roots)]

        while stack:
            parent_id, level, siblings = stack.pop()
            invitees = await self.referral_repo.get_direct_invitees(
                parent_id, limit=max_children
            )
            for invitee in invitees:
                if invitee.id in visited:
                    continue
                visited.add(invitee.id)
                node = DownlineNode.from_user(invitee, level)
                siblings.append(node)
                if level < max_level:
                    stack.append((invitee.id, level + 1, node.downline))

        return roots
