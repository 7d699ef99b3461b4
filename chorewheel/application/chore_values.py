"""
Chore valuation - append-only value accrual.

Every update allocates a slice of the house's monthly point budget across
its active chores in proportion to their ranking:

    points_per_resident * active_residents * inflation * interval_scalar * ranking

interval_scalar = whole hours since the last update / (hours in month * denominator).
Each update starts where the previous one ended, so repeated calls never
double count or leave gaps.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from chorewheel.application.chore_breaks import ChoreBreakService
from chorewheel.application.chore_preferences import ChorePreferenceService
from chorewheel.application.chores import ChoreService
from chorewheel.config import get_settings
from chorewheel.domain.periods import EPOCH, HOUR, interval_scalar, whole_hours_between
from chorewheel.infrastructure.db.models import Chore, ChoreClaim, ChoreValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentChoreValue:
    id: int
    name: str
    value: float


class ChoreValueService:
    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def add_chore_value(
        self,
        chore_id: int,
        valued_at: datetime,
        value: float,
        metadata: dict | None = None,
    ) -> ChoreValue:
        row = ChoreValue(chore_id=chore_id, valued_at=valued_at, value=value, meta=metadata or {})
        self.db.add(row)
        self.db.flush()
        return row

    def get_chore_value(self, chore_id: int, start: datetime, end: datetime) -> float:
        """Sum of increments with start < valued_at <= end."""
        total = self.db.query(func.coalesce(func.sum(ChoreValue.value), 0.0)).filter(
            ChoreValue.chore_id == chore_id,
            ChoreValue.valued_at > start,
            ChoreValue.valued_at <= end,
        ).scalar()
        return float(total)

    def get_current_chore_value(self, chore_id: int, as_of: datetime) -> float:
        """
        Value accrued since the latest valid claim made strictly before as_of.

        Pending claims are provisionally valid, so they close the window too;
        an invalidated claim's window is returned to the pool.
        """
        last_claimed_at = self.db.query(func.max(ChoreClaim.claimed_at)).filter(
            ChoreClaim.chore_id == chore_id,
            ChoreClaim.valid.is_(True),
            ChoreClaim.claimed_at < as_of,
        ).scalar()

        return self.get_chore_value(chore_id, last_claimed_at or EPOCH, as_of)

    def get_current_chore_values(self, house_id: str, as_of: datetime) -> list[CurrentChoreValue]:
        return [
            CurrentChoreValue(id=chore.id, name=chore.name, value=self.get_current_chore_value(chore.id, as_of))
            for chore in ChoreService(self.db).get_chores(house_id)
        ]

    def get_last_valued_at(self, house_id: str) -> datetime | None:
        return self.db.query(func.max(ChoreValue.valued_at)).select_from(ChoreValue).join(
            Chore, Chore.id == ChoreValue.chore_id,
        ).filter(Chore.house_id == house_id).scalar()

    def get_active_resident_count(self, house_id: str, now: datetime) -> int:
        return ChoreBreakService(self.db).get_active_resident_count(house_id, now)

    def interval_hours(self, house_id: str, now: datetime) -> int:
        """Whole hours since the last update (or the bootstrap look-back for a new house)."""
        return whole_hours_between(self._window_start(house_id, now), now)

    def get_chore_value_interval_scalar(self, house_id: str, now: datetime) -> float:
        hours = self.interval_hours(house_id, now)
        return interval_scalar(hours, now, self.settings.VALUE_INTERVAL_DENOMINATOR)

    def update_chore_values(self, house_id: str, now: datetime) -> list[ChoreValue]:
        """
        Accrue value for every active chore over the pending window.

        Writes nothing when less than a whole hour has passed. Leftover
        minutes roll into the next window: valued_at is the window start plus
        the whole hours counted, not `now`.

        Rows are keyed by (chore, window_start). A concurrent update that read
        the same last timestamp fails with IntegrityError on flush, and the
        caller rolls back; the winner's window already covers that time.
        """
        window_start = self._window_start(house_id, now)
        hours = whole_hours_between(window_start, now)
        if hours == 0:
            return []

        scalar = interval_scalar(hours, now, self.settings.VALUE_INTERVAL_DENOMINATOR)
        residents = self.get_active_resident_count(house_id, now)
        rankings = ChorePreferenceService(self.db).get_current_chore_rankings(house_id, now)

        budget = (
            self.settings.POINTS_PER_RESIDENT
            * residents
            * self.settings.INFLATION_FACTOR
            * scalar
        )
        valued_at = window_start + hours * HOUR

        rows = []
        for ranking in rankings:
            rows.append(ChoreValue(
                chore_id=ranking.id,
                valued_at=valued_at,
                window_start=window_start,
                value=budget * ranking.ranking,
                meta={"ranking": ranking.ranking, "residents": residents, "scalar": scalar},
            ))

        self.db.add_all(rows)
        self.db.flush()

        logger.info(
            "House %s: accrued %.2f points over %s hours across %s chores",
            house_id, budget, hours, len(rows),
        )
        return rows

    def get_updated_chore_values(self, house_id: str, now: datetime) -> list[CurrentChoreValue]:
        self.update_chore_values(house_id, now)
        return self.get_current_chore_values(house_id, now)

    def _window_start(self, house_id: str, now: datetime) -> datetime:
        last = self.get_last_valued_at(house_id)
        if last is None:
            return now - timedelta(hours=self.settings.VALUE_BOOTSTRAP_HOURS)
        return last
