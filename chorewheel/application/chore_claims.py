"""
Chore claim use cases - claim, resolve, bulk resolve.

pending (resolved_at NULL, valid provisionally true) -> valid | invalid
"""
import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from chorewheel.application.chore_values import ChoreValueService
from chorewheel.application.chores import ChoreService
from chorewheel.application.errors import NotFoundError, StateError, ValidationError
from chorewheel.application.polls import PollService
from chorewheel.config import get_settings
from chorewheel.infrastructure.db.models import ChoreClaim, Poll
from chorewheel.infrastructure.eventlog.repository import EventLogRepository

logger = logging.getLogger(__name__)


class ChoreClaimService:
    """Read side of the claim ledger."""

    def __init__(self, db: Session):
        self.db = db

    def get_chore_claim(self, claim_id: int) -> ChoreClaim:
        claim = self.db.query(ChoreClaim).filter(ChoreClaim.id == claim_id).first()
        if not claim:
            raise NotFoundError(f"Claim #{claim_id} not found")
        return claim

    def get_valid_chore_claims(self, chore_id: int) -> list[ChoreClaim]:
        """Valid claims on a chore, pending ones included."""
        return self.db.query(ChoreClaim).filter(
            ChoreClaim.chore_id == chore_id,
            ChoreClaim.valid.is_(True),
        ).order_by(ChoreClaim.claimed_at, ChoreClaim.id).all()

    def get_latest_chore_claim(self, chore_id: int, as_of: datetime) -> ChoreClaim | None:
        return self.db.query(ChoreClaim).filter(
            ChoreClaim.chore_id == chore_id,
            ChoreClaim.valid.is_(True),
            ChoreClaim.claimed_at < as_of,
        ).order_by(ChoreClaim.claimed_at.desc(), ChoreClaim.id.desc()).first()

    def get_unresolved_chore_claims(self, house_id: str) -> list[ChoreClaim]:
        return self.db.query(ChoreClaim).filter(
            ChoreClaim.house_id == house_id,
            ChoreClaim.chore_id.is_not(None),
            ChoreClaim.resolved_at.is_(None),
        ).order_by(ChoreClaim.claimed_at, ChoreClaim.id).all()


class ClaimChoreUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(
        self,
        house_id: str,
        chore_id: int,
        resident_id: str,
        claimed_at: datetime,
        duration: timedelta | None = None,
    ) -> ChoreClaim:
        """
        Claim the value a chore has accrued so far and open a poll on it.

        Raises:
            NotFoundError: unknown chore (or chore of another house)
            ValidationError: chore inactive or worth nothing yet
        """
        chore = ChoreService(self.db).get_chore(chore_id)
        if chore.house_id != house_id:
            raise NotFoundError(f"Chore #{chore_id} not found")
        if not chore.active:
            raise ValidationError(f"Chore '{chore.name}' is not active")

        value = ChoreValueService(self.db).get_current_chore_value(chore_id, claimed_at)
        if value <= 0:
            raise ValidationError(f"Chore '{chore.name}' has no value to claim")

        if duration is None:
            duration = get_settings().chores_poll_length
        poll = PollService(self.db).create_poll(claimed_at, duration)

        claim = ChoreClaim(
            house_id=house_id,
            chore_id=chore_id,
            claimed_by=resident_id,
            claimed_at=claimed_at,
            value=value,
            poll_id=poll.id,
            valid=True,
            meta={},
        )
        self.db.add(claim)
        self.db.flush()

        self.event_repo.append_event(
            house_id=house_id,
            event_type="chore_claimed",
            payload={"claim_id": claim.id, "chore_id": chore_id, "value": value, "poll_id": poll.id},
            occurred_at=claimed_at,
            actor_resident_id=resident_id,
        )
        self.db.commit()

        logger.info("Resident %s claimed chore #%s for %.2f (claim #%s)", resident_id, chore_id, value, claim.id)
        return claim


class ResolveChoreClaimUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, claim_id: int, resolved_at: datetime) -> ChoreClaim | None:
        """
        Resolve a claim once its poll has closed.

        The value is recomputed over the window since the previous valid claim;
        an invalid claim is worth 0.

        Returns:
            The resolved claim, or None if it was already resolved

        Raises:
            NotFoundError: unknown claim
            StateError: poll still open
        """
        claim = ChoreClaimService(self.db).get_chore_claim(claim_id)
        if claim.resolved_at is not None:
            return None

        polls = PollService(self.db)
        poll = polls.get_poll(claim.poll_id)
        if not polls.is_poll_closed(poll, resolved_at):
            raise StateError("Poll not closed")

        counts = polls.get_poll_result_counts(poll.id)
        valid = counts.passes(poll.min_votes)

        if valid:
            value = ChoreValueService(self.db).get_current_chore_value(claim.chore_id, claim.claimed_at)
        else:
            value = 0.0

        claim.valid = valid
        claim.value = value
        claim.resolved_at = resolved_at

        self.event_repo.append_event(
            house_id=claim.house_id,
            event_type="chore_claim_resolved",
            payload={
                "claim_id": claim.id,
                "chore_id": claim.chore_id,
                "valid": valid,
                "value": value,
                "yays": counts.yays,
                "nays": counts.nays,
            },
            occurred_at=resolved_at,
            idempotency_key=f"chore-claim-resolved-{claim.id}",
        )
        self.db.commit()

        logger.debug("Claim #%s resolved: valid=%s value=%.2f", claim.id, valid, value)
        return claim


class ResolveChoreClaimsUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, house_id: str, now: datetime) -> list[ChoreClaim]:
        """
        Resolve every unresolved claim of the house whose poll has closed,
        oldest first. One failing claim does not stop the batch.
        """
        claim_ids = [
            claim_id for (claim_id,) in self.db.query(ChoreClaim.id)
            .select_from(ChoreClaim)
            .join(Poll, Poll.id == ChoreClaim.poll_id)
            .filter(
                ChoreClaim.house_id == house_id,
                ChoreClaim.chore_id.is_not(None),
                ChoreClaim.resolved_at.is_(None),
                Poll.end_time <= now,
            )
            .order_by(ChoreClaim.claimed_at, ChoreClaim.id)
            .all()
        ]

        resolved = []
        for claim_id in claim_ids:
            try:
                claim = ResolveChoreClaimUseCase(self.db).execute(claim_id, now)
            except StateError:
                self.db.rollback()
                continue
            except Exception:
                logger.exception("Failed to resolve claim #%s", claim_id)
                self.db.rollback()
                continue
            if claim is not None:
                resolved.append(claim)

        if resolved:
            logger.info("House %s: resolved %s claims", house_id, len(resolved))
        return resolved
