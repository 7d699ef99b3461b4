"""
Chore breaks and residency pro-rating.

A resident's active percentage for a month is the share of the month's days
not covered by a break. Time before the resident's active_at and after their
exempt_at counts as an implicit break.
"""
import logging
from datetime import date, datetime

from sqlalchemy.orm import Session

from chorewheel.application.errors import NotFoundError, ValidationError
from chorewheel.domain.periods import active_fraction, month_start, next_month_start, to_date
from chorewheel.infrastructure.db.models import ChoreBreak, Resident

logger = logging.getLogger(__name__)


class ChoreBreakService:
    def __init__(self, db: Session):
        self.db = db

    def add_chore_break(
        self,
        house_id: str,
        resident_id: str,
        start_date: date | datetime,
        end_date: date | datetime,
        circumstance: str | None = None,
    ) -> ChoreBreak:
        start_date, end_date = to_date(start_date), to_date(end_date)
        if start_date >= end_date:
            raise ValidationError("Break must end after it starts")

        resident = self.db.query(Resident).filter(Resident.slack_id == resident_id).first()
        if not resident or resident.house_id != house_id:
            raise NotFoundError(f"Resident {resident_id} not found in house {house_id}")

        chore_break = ChoreBreak(
            house_id=house_id,
            resident_id=resident_id,
            start_date=start_date,
            end_date=end_date,
            circumstance=circumstance,
        )
        self.db.add(chore_break)
        self.db.flush()
        return chore_break

    def delete_chore_break(self, break_id: int) -> None:
        chore_break = self.db.query(ChoreBreak).filter(ChoreBreak.id == break_id).first()
        if not chore_break:
            raise NotFoundError(f"Break #{break_id} not found")
        self.db.delete(chore_break)
        self.db.flush()

    def get_chore_breaks(self, house_id: str, now: datetime) -> list[ChoreBreak]:
        """Breaks in effect at `now` (start_date <= now < end_date)."""
        today = to_date(now)
        return self.db.query(ChoreBreak).filter(
            ChoreBreak.house_id == house_id,
            ChoreBreak.start_date <= today,
            ChoreBreak.end_date > today,
        ).order_by(ChoreBreak.id).all()

    def get_resident_breaks(self, resident_id: str, start: date, end: date) -> list[ChoreBreak]:
        """Breaks overlapping [start, end)."""
        return self.db.query(ChoreBreak).filter(
            ChoreBreak.resident_id == resident_id,
            ChoreBreak.start_date < end,
            ChoreBreak.end_date > start,
        ).order_by(ChoreBreak.start_date).all()

    def get_active_resident_percentage(self, resident_id: str, month_ref: datetime) -> float:
        """
        Fraction of month_ref's month the resident was on the hook for chores.

        Example:
            Feb 2027 (28 days), break Feb 1 - Feb 8  -> 0.75
            Feb 2027, breaks in weeks 1 and 3        -> 0.5
            Feb 2027, active_at Feb 8, no breaks     -> 0.75
        """
        resident = self.db.query(Resident).filter(Resident.slack_id == resident_id).first()
        if not resident:
            raise NotFoundError(f"Resident {resident_id} not found")
        if resident.active_at is None:
            return 0.0

        first = to_date(month_start(month_ref))
        last = to_date(next_month_start(month_ref))

        intervals = [
            (b.start_date, b.end_date)
            for b in self.get_resident_breaks(resident_id, first, last)
        ]

        activated = to_date(resident.active_at)
        if activated > first:
            intervals.append((first, activated))

        if resident.exempt_at is not None:
            exempted = to_date(resident.exempt_at)
            if exempted < last:
                intervals.append((exempted, last))

        percentage = active_fraction(month_ref, intervals)
        logger.debug("Resident %s active for %.3f of %s", resident_id, percentage, first)
        return percentage

    def get_active_resident_count(self, house_id: str, now: datetime) -> int:
        """Residents that are active, activated, not exempt and not on a break at `now`."""
        residents = self.db.query(Resident).filter(
            Resident.house_id == house_id,
            Resident.active.is_(True),
            Resident.active_at.is_not(None),
            Resident.active_at <= now,
        ).all()

        on_break = {b.resident_id for b in self.get_chore_breaks(house_id, now)}

        return sum(
            1 for r in residents
            if r.slack_id not in on_break and (r.exempt_at is None or r.exempt_at > now)
        )
