"""
Points ledger, gifts and monthly penalties.

Balances are always summed from claim rows, never stored. Gifts are pairs of
chore-less claim rows (+value for the recipient, -value for the giver).
Pending claims count at their provisional value until resolved.
"""
import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from chorewheel.application.chore_breaks import ChoreBreakService
from chorewheel.application.errors import ValidationError
from chorewheel.application.hearts import HeartService
from chorewheel.config import get_settings
from chorewheel.domain.penalty import owed_points, penalty_for_shortfall
from chorewheel.domain.periods import month_start, next_month_start, prev_month_start
from chorewheel.infrastructure.db.models import ChoreClaim, EventLog, Heart
from chorewheel.infrastructure.eventlog.repository import EventLogRepository

logger = logging.getLogger(__name__)


class ChorePointsService:
    def __init__(self, db: Session):
        self.db = db

    def get_chore_points(self, resident_id: str, chore_id: int, start: datetime, end: datetime) -> float:
        """Points from valid claims on one chore within [start, end)."""
        return self._sum(
            ChoreClaim.claimed_by == resident_id,
            ChoreClaim.chore_id == chore_id,
            ChoreClaim.claimed_at >= start,
            ChoreClaim.claimed_at < end,
        )

    def get_all_chore_points(self, resident_id: str, start: datetime, end: datetime) -> float:
        """Points from valid claims and gifts within [start, end)."""
        return self._sum(
            ChoreClaim.claimed_by == resident_id,
            ChoreClaim.claimed_at >= start,
            ChoreClaim.claimed_at < end,
        )

    def get_points_balance(self, resident_id: str, now: datetime) -> float:
        """Points earned this month up to and including `now`."""
        return self._sum(
            ChoreClaim.claimed_by == resident_id,
            ChoreClaim.claimed_at >= month_start(now),
            ChoreClaim.claimed_at <= now,
        )

    def get_largest_chore_claim(self, resident_id: str, start: datetime, end: datetime) -> ChoreClaim | None:
        """Biggest valid claim with start <= claimed_at <= end (a claim made at `end` counts)."""
        return self.db.query(ChoreClaim).filter(
            ChoreClaim.claimed_by == resident_id,
            ChoreClaim.chore_id.is_not(None),
            ChoreClaim.valid.is_(True),
            ChoreClaim.claimed_at >= start,
            ChoreClaim.claimed_at <= end,
        ).order_by(ChoreClaim.value.desc(), ChoreClaim.id).first()

    def _sum(self, *criteria) -> float:
        total = self.db.query(func.coalesce(func.sum(ChoreClaim.value), 0.0)).filter(
            ChoreClaim.valid.is_(True),
            *criteria,
        ).scalar()
        return float(total)


class GiftChorePointsUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(
        self,
        house_id: str,
        giver_id: str,
        recipient_id: str,
        current_time: datetime,
        value: float,
    ) -> tuple[ChoreClaim, ChoreClaim]:
        """
        Move points from giver to recipient.

        Returns:
            (recipient_row, giver_row)

        Raises:
            ValidationError: non-positive value, self-gift or insufficient balance
        """
        if value <= 0:
            raise ValidationError("Gift must be positive")
        if giver_id == recipient_id:
            raise ValidationError("Cannot gift points to yourself")

        balance = ChorePointsService(self.db).get_points_balance(giver_id, current_time)
        if round(balance - value, 6) < 0:
            raise ValidationError(f"Insufficient points: balance {balance:.2f}, gift {value:.2f}")

        meta = {"gift": {"from": giver_id, "to": recipient_id}}
        received = ChoreClaim(
            house_id=house_id,
            claimed_by=recipient_id,
            claimed_at=current_time,
            value=value,
            resolved_at=current_time,
            valid=True,
            meta=meta,
        )
        given = ChoreClaim(
            house_id=house_id,
            claimed_by=giver_id,
            claimed_at=current_time,
            value=-value,
            resolved_at=current_time,
            valid=True,
            meta=meta,
        )
        self.db.add_all([received, given])
        self.db.flush()

        self.event_repo.append_event(
            house_id=house_id,
            event_type="chore_points_gifted",
            payload={"recipient_id": recipient_id, "value": value, "claim_ids": [received.id, given.id]},
            occurred_at=current_time,
            actor_resident_id=giver_id,
        )
        self.db.commit()

        logger.info("Resident %s gifted %.2f points to %s", giver_id, value, recipient_id)
        return received, given


class ChorePenaltyService:
    """
    Assesses last month's shortfall once the current month is PENALTY_DELAY_HOURS old.

    Penalties are hearts rows with negative value; each resident/month is
    assessed once, guarded by the event log idempotency key.
    """

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.event_repo = EventLogRepository(db)

    def calculate_penalty(self, resident_id: str, penalty_time: datetime) -> float:
        """Hearts owed for the month before penalty_time."""
        assessed_month = prev_month_start(penalty_time)

        percentage = ChoreBreakService(self.db).get_active_resident_percentage(resident_id, assessed_month)
        owed = owed_points(self.settings.POINTS_PER_RESIDENT, percentage)
        earned = ChorePointsService(self.db).get_all_chore_points(
            resident_id, assessed_month, next_month_start(assessed_month)
        )

        return penalty_for_shortfall(owed, earned, self.settings.PENALTY_INCREMENT, self.settings.PENALTY_SIZE)

    def add_chore_penalty(self, house_id: str, resident_id: str, current_time: datetime) -> Heart | None:
        """
        Record last month's penalty, at most once.

        No-op (None) before the delay has passed, when already assessed,
        when the resident's hearts are not initialised, or when nothing is owed.
        """
        if current_time < month_start(current_time) + self.settings.penalty_delay:
            return None

        assessed_month = prev_month_start(current_time)
        key = f"chore-penalty-{resident_id}-{assessed_month:%Y-%m}"
        if self.db.query(EventLog.id).filter(EventLog.idempotency_key == key).first():
            return None

        hearts = HeartService(self.db)
        if not hearts.is_initialised(resident_id):
            logger.debug("Resident %s has no hearts yet, skipping penalty", resident_id)
            return None

        penalty = self.calculate_penalty(resident_id, current_time)

        heart = None
        if penalty > 0:
            heart = hearts.add_heart(
                house_id,
                resident_id,
                current_time,
                -penalty,
                {"kind": "chore_penalty", "month": f"{assessed_month:%Y-%m}"},
            )

        self.event_repo.append_event(
            house_id=house_id,
            event_type="chore_penalty_added",
            payload={"resident_id": resident_id, "month": f"{assessed_month:%Y-%m}", "penalty": penalty},
            occurred_at=current_time,
            idempotency_key=key,
        )
        self.db.commit()

        if heart is not None:
            logger.info("Resident %s penalised %.1f hearts for %s", resident_id, penalty, f"{assessed_month:%Y-%m}")
        return heart
