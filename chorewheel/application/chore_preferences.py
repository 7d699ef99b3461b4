"""
Pairwise chore preferences and the house ranking derived from them
"""
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session, aliased

from chorewheel.application.chore_breaks import ChoreBreakService
from chorewheel.application.chores import ChoreService
from chorewheel.application.errors import ValidationError
from chorewheel.config import get_settings
from chorewheel.domain.ranking import PowerRanker, Preference
from chorewheel.infrastructure.db.models import Chore, ChorePreference, Resident

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChoreRanking:
    id: int
    name: str
    ranking: float


class ChorePreferenceService:
    def __init__(self, db: Session):
        self.db = db

    def set_chore_preference(
        self,
        house_id: str,
        resident_id: str,
        alpha_chore_id: int,
        beta_chore_id: int,
        preference: float,
    ) -> ChorePreference:
        """
        Upsert a resident's preference for alpha over beta.

        Stored with alpha < beta; a swapped pair is flipped to 1 - preference,
        so (2, 1, 0.8) is stored as (1, 2, 0.2).
        """
        if alpha_chore_id == beta_chore_id:
            raise ValidationError("Cannot compare a chore with itself")
        if not 0.0 <= preference <= 1.0:
            raise ValidationError(f"Preference must be between 0 and 1, got {preference}")

        if alpha_chore_id > beta_chore_id:
            alpha_chore_id, beta_chore_id = beta_chore_id, alpha_chore_id
            preference = 1.0 - preference

        row = self.db.query(ChorePreference).filter(
            ChorePreference.house_id == house_id,
            ChorePreference.resident_id == resident_id,
            ChorePreference.alpha_chore_id == alpha_chore_id,
            ChorePreference.beta_chore_id == beta_chore_id,
        ).first()

        if row:
            row.preference = preference
        else:
            row = ChorePreference(
                house_id=house_id,
                resident_id=resident_id,
                alpha_chore_id=alpha_chore_id,
                beta_chore_id=beta_chore_id,
                preference=preference,
            )
            self.db.add(row)

        self.db.flush()
        return row

    def get_chore_preferences(self, house_id: str) -> list[ChorePreference]:
        return self.db.query(ChorePreference).filter(
            ChorePreference.house_id == house_id,
        ).order_by(ChorePreference.id).all()

    def get_active_chore_preferences(self, house_id: str) -> list[ChorePreference]:
        """Preferences whose resident and both chores are still active."""
        alpha = aliased(Chore)
        beta = aliased(Chore)
        return (
            self.db.query(ChorePreference)
            .join(Resident, Resident.slack_id == ChorePreference.resident_id)
            .join(alpha, alpha.id == ChorePreference.alpha_chore_id)
            .join(beta, beta.id == ChorePreference.beta_chore_id)
            .filter(
                ChorePreference.house_id == house_id,
                Resident.active.is_(True),
                alpha.active.is_(True),
                beta.active.is_(True),
            )
            .order_by(ChorePreference.id)
            .all()
        )

    def get_current_chore_rankings(self, house_id: str, now: datetime | None = None) -> list[ChoreRanking]:
        """
        Rank the house's active chores, highest first.

        R in the preference matrix is the active resident count at `now`
        (breaks and exemptions considered) or, without `now`, the number of
        active residents.
        """
        settings = get_settings()
        chores = ChoreService(self.db).get_chores(house_id)

        if now is not None:
            num_residents = ChoreBreakService(self.db).get_active_resident_count(house_id, now)
        else:
            num_residents = self.db.query(Resident).filter(
                Resident.house_id == house_id,
                Resident.active.is_(True),
            ).count()

        preferences = [
            Preference(p.alpha_chore_id, p.beta_chore_id, p.preference)
            for p in self.get_active_chore_preferences(house_id)
        ]

        ranker = PowerRanker([c.id for c in chores], preferences, num_residents)
        rankings = ranker.run(
            damping=settings.RANKING_DAMPING,
            epsilon=settings.RANKING_EPSILON,
            max_iterations=settings.RANKING_MAX_ITERATIONS,
        )
        logger.debug("House %s ranked %s chores from %s preferences", house_id, len(chores), len(preferences))

        result = [ChoreRanking(id=c.id, name=c.name, ranking=rankings[c.id]) for c in chores]
        return sorted(result, key=lambda r: (-r.ranking, r.id))
