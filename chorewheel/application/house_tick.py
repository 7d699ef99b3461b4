"""
House tick - the periodic chore maintenance, run opportunistically whenever a
resident interacts with the house (no background scheduler).

Steps (each safe to repeat):
  - accrue chore values since the last update
  - resolve claims whose polls have closed
  - resolve proposals whose polls have closed
  - assess last month's penalties for every active resident
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from chorewheel.application.chore_claims import ResolveChoreClaimsUseCase
from chorewheel.application.chore_points import ChorePenaltyService
from chorewheel.application.chore_proposals import ResolveChoreProposalsUseCase
from chorewheel.application.chore_values import ChoreValueService
from chorewheel.application.residents import ResidentService

logger = logging.getLogger(__name__)


@dataclass
class HouseTickResult:
    values_written: int = 0
    claims_resolved: list[int] = field(default_factory=list)
    proposals_resolved: list[int] = field(default_factory=list)
    penalties: dict[str, float] = field(default_factory=dict)


class HouseTickService:
    def __init__(self, db: Session):
        self.db = db

    def run(self, house_id: str, now: datetime) -> HouseTickResult:
        result = HouseTickResult()

        try:
            rows = ChoreValueService(self.db).update_chore_values(house_id, now)
            self.db.commit()
            result.values_written = len(rows)
        except IntegrityError:
            # Another update already covered this window
            logger.info("House %s: value window already updated, skipping", house_id)
            self.db.rollback()

        result.claims_resolved = [c.id for c in ResolveChoreClaimsUseCase(self.db).execute(house_id, now)]
        result.proposals_resolved = [p.id for p in ResolveChoreProposalsUseCase(self.db).execute(house_id, now)]

        penalties = ChorePenaltyService(self.db)
        for resident in ResidentService(self.db).get_residents(house_id):
            resident_id = resident.slack_id
            try:
                heart = penalties.add_chore_penalty(house_id, resident_id, now)
            except Exception:
                logger.exception("Penalty assessment failed for resident %s", resident_id)
                self.db.rollback()
                continue
            if heart is not None:
                result.penalties[resident_id] = -heart.value

        logger.info(
            "House %s tick: %s value rows, %s claims, %s proposals, %s penalties",
            house_id,
            result.values_written,
            len(result.claims_resolved),
            len(result.proposals_resolved),
            len(result.penalties),
        )
        return result


# ── CLI entry point ──
if __name__ == "__main__":
    import argparse
    from datetime import timezone

    from chorewheel.infrastructure.db.session import check_db_connection, get_session_factory

    parser = argparse.ArgumentParser(description="Run chore maintenance for a house")
    parser.add_argument("house_id")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    check_db_connection()

    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        HouseTickService(db).run(args.house_id, datetime.now(timezone.utc).replace(tzinfo=None))
    finally:
        db.close()
