"""
Houses and residents, as far as the chore engine needs them.

Residents are never hard-deleted; deactivation keeps claims, preferences and
breaks attached to a valid row.
"""
from datetime import datetime

from sqlalchemy.orm import Session

from chorewheel.application.errors import NotFoundError
from chorewheel.infrastructure.db.models import House, Resident


class ResidentService:
    def __init__(self, db: Session):
        self.db = db

    def add_house(self, house_id: str, name: str | None = None) -> House:
        house = self.db.query(House).filter(House.slack_id == house_id).first()
        if house:
            if name is not None:
                house.name = name
        else:
            house = House(slack_id=house_id, name=name)
            self.db.add(house)
        self.db.flush()
        return house

    def get_house(self, house_id: str) -> House:
        house = self.db.query(House).filter(House.slack_id == house_id).first()
        if not house:
            raise NotFoundError(f"House {house_id} not found")
        return house

    def add_resident(self, house_id: str, resident_id: str, active_at: datetime) -> Resident:
        """
        Create the resident or reactivate an existing one.

        An already active resident keeps the original active_at.
        """
        self.get_house(house_id)

        resident = self.db.query(Resident).filter(Resident.slack_id == resident_id).first()
        if resident:
            if not resident.active or resident.active_at is None:
                resident.active_at = active_at
            resident.house_id = house_id
            resident.active = True
            resident.exempt_at = None
        else:
            resident = Resident(
                slack_id=resident_id,
                house_id=house_id,
                active=True,
                active_at=active_at,
            )
            self.db.add(resident)
        self.db.flush()
        return resident

    def delete_resident(self, house_id: str, resident_id: str) -> None:
        resident = self.get_resident(resident_id)
        if resident.house_id != house_id:
            raise NotFoundError(f"Resident {resident_id} not found in house {house_id}")
        resident.active = False
        self.db.flush()

    def exempt_resident(self, house_id: str, resident_id: str, exempt_at: datetime) -> Resident:
        resident = self.get_resident(resident_id)
        if resident.house_id != house_id:
            raise NotFoundError(f"Resident {resident_id} not found in house {house_id}")
        resident.exempt_at = exempt_at
        self.db.flush()
        return resident

    def get_resident(self, resident_id: str) -> Resident:
        resident = self.db.query(Resident).filter(Resident.slack_id == resident_id).first()
        if not resident:
            raise NotFoundError(f"Resident {resident_id} not found")
        return resident

    def get_residents(self, house_id: str) -> list[Resident]:
        return self.db.query(Resident).filter(
            Resident.house_id == house_id,
            Resident.active.is_(True),
        ).order_by(Resident.slack_id).all()
