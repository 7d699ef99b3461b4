"""
Chore proposals - poll-gated add / edit / delete of chores.

The yes-vote threshold is fixed when the proposal is created:
max(CHORES_MIN_VOTES, ceil(CHORES_PROPOSAL_PCT * active residents)).
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from chorewheel.application.chore_breaks import ChoreBreakService
from chorewheel.application.chores import ChoreService
from chorewheel.application.errors import NotFoundError, StateError, ValidationError
from chorewheel.application.polls import PollService
from chorewheel.config import get_settings
from chorewheel.domain.voting import proposal_min_votes
from chorewheel.infrastructure.db.models import ChoreProposal, Poll
from chorewheel.infrastructure.eventlog.repository import EventLogRepository

logger = logging.getLogger(__name__)


class CreateChoreProposalUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def add(self, house_id: str, resident_id: str, name: str, metadata: dict | None, now: datetime) -> ChoreProposal:
        """Propose a new chore (or reactivating a deleted one with this name)."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Chore name cannot be empty")
        return self._create(house_id, resident_id, None, name, metadata, True, now)

    def edit(
        self,
        house_id: str,
        resident_id: str,
        chore_id: int,
        name: str,
        metadata: dict | None,
        now: datetime,
    ) -> ChoreProposal:
        self._get_house_chore(house_id, chore_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Chore name cannot be empty")
        return self._create(house_id, resident_id, chore_id, name, metadata, True, now)

    def delete(self, house_id: str, resident_id: str, chore_id: int, now: datetime) -> ChoreProposal:
        chore = self._get_house_chore(house_id, chore_id)
        return self._create(house_id, resident_id, chore_id, chore.name, chore.meta, False, now)

    def _get_house_chore(self, house_id: str, chore_id: int):
        chore = ChoreService(self.db).get_chore(chore_id)
        if chore.house_id != house_id:
            raise NotFoundError(f"Chore #{chore_id} not found")
        return chore

    def _create(
        self,
        house_id: str,
        resident_id: str,
        chore_id: int | None,
        name: str,
        metadata: dict | None,
        active: bool,
        now: datetime,
    ) -> ChoreProposal:
        settings = get_settings()

        residents = ChoreBreakService(self.db).get_active_resident_count(house_id, now)
        min_votes = proposal_min_votes(residents, settings.CHORES_PROPOSAL_PCT, settings.CHORES_MIN_VOTES)
        poll = PollService(self.db).create_poll(now, settings.chores_proposal_poll_length, min_votes)

        proposal = ChoreProposal(
            house_id=house_id,
            proposed_by=resident_id,
            chore_id=chore_id,
            name=name,
            meta=dict(metadata or {}),
            active=active,
            poll_id=poll.id,
            valid=True,
        )
        self.db.add(proposal)
        self.db.flush()

        self.event_repo.append_event(
            house_id=house_id,
            event_type="chore_proposal_created",
            payload={
                "proposal_id": proposal.id,
                "chore_id": chore_id,
                "name": name,
                "active": active,
                "poll_id": poll.id,
                "min_votes": min_votes,
            },
            occurred_at=now,
            actor_resident_id=resident_id,
        )
        self.db.commit()

        logger.info("Resident %s proposed %s (proposal #%s)", resident_id, _describe(proposal), proposal.id)
        return proposal


class ResolveChoreProposalUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, proposal_id: int, now: datetime) -> ChoreProposal:
        """
        Resolve a proposal and, if its poll passed, apply it to the chore list.

        A passed proposal that can no longer be applied (an edit to a name
        another chore took meanwhile) is resolved as invalid.

        Raises:
            NotFoundError: unknown proposal
            StateError: already resolved, or poll still open
        """
        proposal = self.db.query(ChoreProposal).filter(ChoreProposal.id == proposal_id).first()
        if not proposal:
            raise NotFoundError(f"Proposal #{proposal_id} not found")
        if proposal.resolved_at is not None:
            raise StateError("Proposal already resolved")

        polls = PollService(self.db)
        poll = polls.get_poll(proposal.poll_id)
        if not polls.is_poll_closed(poll, now):
            raise StateError("Poll not closed")

        counts = polls.get_poll_result_counts(poll.id)
        valid = counts.passes(poll.min_votes)

        chore_id = proposal.chore_id
        if valid:
            try:
                chore_id = self._apply(proposal)
            except ValidationError as exc:
                logger.warning("Proposal #%s passed but cannot be applied: %s", proposal.id, exc)
                valid = False

        proposal.valid = valid
        proposal.resolved_at = now

        self.event_repo.append_event(
            house_id=proposal.house_id,
            event_type="chore_proposal_resolved",
            payload={
                "proposal_id": proposal.id,
                "chore_id": chore_id,
                "valid": valid,
                "yays": counts.yays,
                "nays": counts.nays,
            },
            occurred_at=now,
            idempotency_key=f"chore-proposal-resolved-{proposal.id}",
        )
        self.db.commit()

        logger.debug("Proposal #%s resolved: valid=%s", proposal.id, valid)
        return proposal

    def _apply(self, proposal: ChoreProposal) -> int:
        chores = ChoreService(self.db)
        if proposal.chore_id is None:
            chore = chores.add_chore(proposal.house_id, proposal.name, proposal.meta)
        elif proposal.active:
            chore = chores.edit_chore(proposal.chore_id, proposal.name, proposal.meta)
        else:
            chore = chores.deactivate_chore(proposal.chore_id)
        return chore.id


class ResolveChoreProposalsUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, house_id: str, now: datetime) -> list[ChoreProposal]:
        proposal_ids = [
            proposal_id for (proposal_id,) in self.db.query(ChoreProposal.id)
            .select_from(ChoreProposal)
            .join(Poll, Poll.id == ChoreProposal.poll_id)
            .filter(
                ChoreProposal.house_id == house_id,
                ChoreProposal.resolved_at.is_(None),
                Poll.end_time <= now,
            )
            .order_by(ChoreProposal.id)
            .all()
        ]

        resolved = []
        for proposal_id in proposal_ids:
            try:
                resolved.append(ResolveChoreProposalUseCase(self.db).execute(proposal_id, now))
            except StateError:
                self.db.rollback()
            except Exception:
                logger.exception("Failed to resolve proposal #%s", proposal_id)
                self.db.rollback()

        if resolved:
            logger.info("House %s: resolved %s proposals", house_id, len(resolved))
        return resolved


def _describe(proposal: ChoreProposal) -> str:
    if proposal.chore_id is None:
        return f"adding '{proposal.name}'"
    if proposal.active:
        return f"editing chore #{proposal.chore_id}"
    return f"deleting chore #{proposal.chore_id}"
