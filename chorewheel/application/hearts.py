"""
Hearts ledger (minimal): the chore engine only initialises residents and
writes penalties into it.
"""
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from chorewheel.config import get_settings
from chorewheel.infrastructure.db.models import Heart


class HeartService:
    def __init__(self, db: Session):
        self.db = db

    def is_initialised(self, resident_id: str) -> bool:
        return self.db.query(Heart.id).filter(Heart.resident_id == resident_id).first() is not None

    def initialise_resident(self, house_id: str, resident_id: str, now: datetime) -> Heart | None:
        """Grant the baseline hearts once; returns None if already initialised."""
        if self.is_initialised(resident_id):
            return None
        return self.add_heart(house_id, resident_id, now, get_settings().HEARTS_BASELINE, {"kind": "baseline"})

    def add_heart(
        self,
        house_id: str,
        resident_id: str,
        generated_at: datetime,
        value: float,
        metadata: dict | None = None,
    ) -> Heart:
        heart = Heart(
            house_id=house_id,
            resident_id=resident_id,
            generated_at=generated_at,
            value=value,
            meta=metadata or {},
        )
        self.db.add(heart)
        self.db.flush()
        return heart

    def get_hearts(self, resident_id: str, now: datetime) -> float:
        total = self.db.query(func.coalesce(func.sum(Heart.value), 0.0)).filter(
            Heart.resident_id == resident_id,
            Heart.generated_at <= now,
        ).scalar()
        return float(total)
