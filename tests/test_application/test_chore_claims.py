"""
Tests for chore claims - claim, resolve, incremental value, bulk resolution
"""
from datetime import datetime, timedelta

import pytest

from chorewheel.application.chore_claims import (
    ChoreClaimService,
    ClaimChoreUseCase,
    ResolveChoreClaimUseCase,
    ResolveChoreClaimsUseCase,
)
from chorewheel.application.chore_values import ChoreValueService
from chorewheel.application.errors import NotFoundError, StateError, ValidationError
from chorewheel.application.polls import PollService
from chorewheel.infrastructure.eventlog.repository import EventLogRepository

_T0 = datetime(2027, 3, 10, 9)
_POLL = timedelta(hours=48)


def _vote(db_session, claim, votes):
    polls = PollService(db_session)
    for resident_id, vote in votes.items():
        polls.submit_vote(claim.poll_id, resident_id, claim.claimed_at, vote)
    db_session.commit()


@pytest.fixture
def dishes(db_session, chores):
    chore = chores[0]
    ChoreValueService(db_session).add_chore_value(chore.id, _T0, 10)
    db_session.commit()
    return chore


class TestClaimChore:
    def test_claim_snapshots_value_and_opens_poll(self, db_session, house_id, residents, dishes):
        claim = ClaimChoreUseCase(db_session).execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))

        assert claim.value == 10
        assert claim.valid is True
        assert claim.resolved_at is None
        poll = PollService(db_session).get_poll(claim.poll_id)
        assert poll.end_time == claim.claimed_at + _POLL

    def test_claim_sums_increments_valued_at_same_instant(self, db_session, house_id, residents, dishes):
        ChoreValueService(db_session).add_chore_value(dishes.id, _T0, 5)
        db_session.commit()

        claim = ClaimChoreUseCase(db_session).execute(house_id, dishes.id, "R1", _T0)

        assert claim.value == 15

    def test_custom_poll_duration(self, db_session, house_id, residents, dishes):
        claim = ClaimChoreUseCase(db_session).execute(
            house_id, dishes.id, "R1", _T0 + timedelta(hours=1), duration=timedelta(hours=2),
        )
        assert PollService(db_session).get_poll(claim.poll_id).end_time == _T0 + timedelta(hours=3)

    def test_zero_value_claim_fails(self, db_session, house_id, residents, chores):
        with pytest.raises(ValidationError, match="no value"):
            ClaimChoreUseCase(db_session).execute(house_id, chores[1].id, "R1", _T0)

    def test_claim_already_claimed_value_fails(self, db_session, house_id, residents, dishes):
        use_case = ClaimChoreUseCase(db_session)
        use_case.execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))

        with pytest.raises(ValidationError):
            use_case.execute(house_id, dishes.id, "R2", _T0 + timedelta(hours=2))

    def test_unknown_chore(self, db_session, house_id, residents):
        with pytest.raises(NotFoundError):
            ClaimChoreUseCase(db_session).execute(house_id, 999, "R1", _T0)

    def test_claim_is_logged(self, db_session, house_id, residents, dishes):
        ClaimChoreUseCase(db_session).execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))

        events = EventLogRepository(db_session).list_events(house_id, ["chore_claimed"])
        assert len(events) == 1
        assert events[0].actor_resident_id == "R1"


class TestResolveChoreClaim:
    def test_two_yays_is_valid(self, db_session, house_id, residents, dishes):
        claim = ClaimChoreUseCase(db_session).execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))
        _vote(db_session, claim, {"R2": True, "R3": True})

        resolved = ResolveChoreClaimUseCase(db_session).execute(claim.id, claim.claimed_at + _POLL)

        assert resolved.valid is True
        assert resolved.value == 10
        assert resolved.resolved_at == claim.claimed_at + _POLL

    def test_one_yay_is_invalid(self, db_session, house_id, residents, dishes):
        claim = ClaimChoreUseCase(db_session).execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))
        _vote(db_session, claim, {"R2": True})

        resolved = ResolveChoreClaimUseCase(db_session).execute(claim.id, claim.claimed_at + _POLL)

        assert resolved.valid is False
        assert resolved.value == 0

    def test_tie_is_invalid(self, db_session, house_id, residents, dishes):
        claim = ClaimChoreUseCase(db_session).execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))
        _vote(db_session, claim, {"R1": True, "R2": True, "R3": False, "R4": False})

        resolved = ResolveChoreClaimUseCase(db_session).execute(claim.id, claim.claimed_at + _POLL)

        assert resolved.valid is False
        assert resolved.value == 0

    def test_poll_not_closed(self, db_session, house_id, residents, dishes):
        claim = ClaimChoreUseCase(db_session).execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))

        with pytest.raises(StateError, match="not closed"):
            ResolveChoreClaimUseCase(db_session).execute(claim.id, claim.claimed_at + timedelta(hours=47))

    def test_second_resolution_is_noop(self, db_session, house_id, residents, dishes):
        claim = ClaimChoreUseCase(db_session).execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))
        _vote(db_session, claim, {"R2": True, "R3": True})
        use_case = ResolveChoreClaimUseCase(db_session)

        assert use_case.execute(claim.id, claim.claimed_at + _POLL) is not None
        assert use_case.execute(claim.id, claim.claimed_at + _POLL + timedelta(hours=1)) is None

        events = EventLogRepository(db_session).list_events(house_id, ["chore_claim_resolved"])
        assert [e.idempotency_key for e in events] == [f"chore-claim-resolved-{claim.id}"]

    def test_unknown_claim(self, db_session, house_id):
        with pytest.raises(NotFoundError):
            ResolveChoreClaimUseCase(db_session).execute(999, _T0)


class TestIncrementalClaims:
    def _two_claims(self, db_session, house_id, dishes):
        use_case = ClaimChoreUseCase(db_session)
        first = use_case.execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))
        ChoreValueService(db_session).add_chore_value(dishes.id, _T0 + timedelta(hours=2), 5)
        second = use_case.execute(house_id, dishes.id, "R2", _T0 + timedelta(hours=3))
        return first, second

    def test_second_claim_gets_only_new_value(self, db_session, house_id, residents, dishes):
        first, second = self._two_claims(db_session, house_id, dishes)
        assert first.value == 10
        assert second.value == 5

        _vote(db_session, first, {"R3": True, "R4": True})
        _vote(db_session, second, {"R3": True, "R4": True})
        resolver = ResolveChoreClaimUseCase(db_session)
        resolver.execute(first.id, second.claimed_at + _POLL)
        resolver.execute(second.id, second.claimed_at + _POLL)

        assert first.value == 10
        assert second.value == 5

    def test_invalidated_claim_returns_value_to_pool(self, db_session, house_id, residents, dishes):
        first, second = self._two_claims(db_session, house_id, dishes)

        _vote(db_session, first, {"R3": True})
        _vote(db_session, second, {"R3": True, "R4": True})
        resolver = ResolveChoreClaimUseCase(db_session)
        resolver.execute(first.id, second.claimed_at + _POLL)
        resolver.execute(second.id, second.claimed_at + _POLL)

        assert first.valid is False
        assert first.value == 0
        assert second.value == 15


class TestResolveChoreClaims:
    def test_bulk_resolves_only_closed_polls(self, db_session, house_id, residents, dishes):
        use_case = ClaimChoreUseCase(db_session)
        early = use_case.execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))
        ChoreValueService(db_session).add_chore_value(dishes.id, _T0 + timedelta(hours=20), 5)
        late = use_case.execute(house_id, dishes.id, "R2", _T0 + timedelta(hours=24))
        _vote(db_session, early, {"R3": True, "R4": True})

        now = early.claimed_at + _POLL
        resolved = ResolveChoreClaimsUseCase(db_session).execute(house_id, now)

        assert [c.id for c in resolved] == [early.id]
        assert [c.id for c in ChoreClaimService(db_session).get_unresolved_chore_claims(house_id)] == [late.id]

    def test_bulk_is_idempotent(self, db_session, house_id, residents, dishes):
        claim = ClaimChoreUseCase(db_session).execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))
        now = claim.claimed_at + _POLL

        assert len(ResolveChoreClaimsUseCase(db_session).execute(house_id, now)) == 1
        assert ResolveChoreClaimsUseCase(db_session).execute(house_id, now) == []


class TestClaimQueries:
    def test_valid_and_latest_claims(self, db_session, house_id, residents, dishes):
        claim = ClaimChoreUseCase(db_session).execute(house_id, dishes.id, "R1", _T0 + timedelta(hours=1))
        service = ChoreClaimService(db_session)

        assert [c.id for c in service.get_valid_chore_claims(dishes.id)] == [claim.id]
        assert service.get_latest_chore_claim(dishes.id, _T0 + timedelta(hours=2)).id == claim.id
        assert service.get_latest_chore_claim(dishes.id, _T0 + timedelta(hours=1)) is None
        assert service.get_chore_claim(claim.id).claimed_by == "R1"
