"""
Anonymous time-boxed yes/no polls backing chore claims and proposals
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from chorewheel.application.errors import NotFoundError, StateError
from chorewheel.config import get_settings
from chorewheel.domain.voting import encrypt_resident_id, poll_passes
from chorewheel.infrastructure.db.models import Poll, PollVote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollResultCounts:
    yays: int
    nays: int

    def passes(self, min_votes: int) -> bool:
        return poll_passes(self.yays, self.nays, min_votes)


class PollService:
    def __init__(self, db: Session, salt: str | None = None):
        self.db = db
        self.salt = salt if salt is not None else get_settings().SALT

    def create_poll(self, start_time: datetime, duration: timedelta, min_votes: int | None = None) -> Poll:
        if min_votes is None:
            min_votes = get_settings().CHORES_MIN_VOTES

        poll = Poll(start_time=start_time, end_time=start_time + duration, min_votes=min_votes)
        self.db.add(poll)
        self.db.flush()
        return poll

    def get_poll(self, poll_id: int) -> Poll:
        poll = self.db.query(Poll).filter(Poll.id == poll_id).first()
        if not poll:
            raise NotFoundError(f"Poll #{poll_id} not found")
        return poll

    @staticmethod
    def is_poll_closed(poll: Poll, now: datetime) -> bool:
        return now >= poll.end_time

    def submit_vote(self, poll_id: int, resident_id: str, submitted_at: datetime, vote: bool | None) -> PollVote:
        """
        Record or replace a resident's vote (True = yay, False = nay, None = abstain).

        The last vote before the poll closes wins.

        Raises:
            NotFoundError: unknown poll
            StateError: submitted after the poll closed
        """
        poll = self.get_poll(poll_id)
        if submitted_at > poll.end_time:
            raise StateError("Poll has closed")

        encrypted_id = encrypt_resident_id(resident_id, self.salt)
        poll_vote = self.db.query(PollVote).filter(
            PollVote.poll_id == poll_id,
            PollVote.encrypted_resident_id == encrypted_id,
        ).first()

        if poll_vote:
            poll_vote.submitted_at = submitted_at
            poll_vote.vote = vote
        else:
            poll_vote = PollVote(
                poll_id=poll_id,
                encrypted_resident_id=encrypted_id,
                submitted_at=submitted_at,
                vote=vote,
            )
            self.db.add(poll_vote)

        self.db.flush()
        return poll_vote

    def get_poll_votes(self, poll_id: int) -> list[PollVote]:
        return self.db.query(PollVote).filter(PollVote.poll_id == poll_id).all()

    def get_poll_results(self, poll_id: int) -> list[PollVote]:
        """Votes submitted within [start_time, end_time]."""
        poll = self.get_poll(poll_id)
        return self.db.query(PollVote).filter(
            PollVote.poll_id == poll_id,
            PollVote.submitted_at >= poll.start_time,
            PollVote.submitted_at <= poll.end_time,
        ).all()

    def get_poll_result_counts(self, poll_id: int) -> PollResultCounts:
        votes = self.get_poll_results(poll_id)
        yays = sum(1 for v in votes if v.vote is True)
        nays = sum(1 for v in votes if v.vote is False)
        logger.debug("Poll %s tally: %s yays, %s nays", poll_id, yays, nays)
        return PollResultCounts(yays=yays, nays=nays)
