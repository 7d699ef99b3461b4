"""
Chore definitions - soft-deleted and reactivated by (house, name)
"""
from sqlalchemy.orm import Session

from chorewheel.application.errors import NotFoundError, ValidationError
from chorewheel.infrastructure.db.models import Chore


class ChoreService:
    def __init__(self, db: Session):
        self.db = db

    def add_chore(self, house_id: str, name: str, metadata: dict | None = None) -> Chore:
        """
        Upsert on (house_id, name): an existing chore is reactivated and its
        metadata overwritten, keeping its id (and so its value history).
        """
        name = self._clean_name(name)

        chore = self.db.query(Chore).filter(Chore.house_id == house_id, Chore.name == name).first()
        if chore:
            chore.active = True
            chore.meta = dict(metadata or {})
        else:
            chore = Chore(house_id=house_id, name=name, active=True, meta=dict(metadata or {}))
            self.db.add(chore)
        self.db.flush()
        return chore

    def edit_chore(self, chore_id: int, name: str, metadata: dict | None = None) -> Chore:
        chore = self.get_chore(chore_id)
        name = self._clean_name(name)

        clash = self.db.query(Chore).filter(
            Chore.house_id == chore.house_id,
            Chore.name == name,
            Chore.id != chore_id,
        ).first()
        if clash:
            raise ValidationError(f"A chore named '{name}' already exists")

        chore.name = name
        chore.meta = dict(metadata or {})
        self.db.flush()
        return chore

    def delete_chore(self, house_id: str, name: str) -> Chore:
        chore = self.db.query(Chore).filter(Chore.house_id == house_id, Chore.name == name).first()
        if not chore:
            raise NotFoundError(f"Chore '{name}' not found")
        chore.active = False
        self.db.flush()
        return chore

    def deactivate_chore(self, chore_id: int) -> Chore:
        chore = self.get_chore(chore_id)
        chore.active = False
        self.db.flush()
        return chore

    def get_chore(self, chore_id: int) -> Chore:
        chore = self.db.query(Chore).filter(Chore.id == chore_id).first()
        if not chore:
            raise NotFoundError(f"Chore #{chore_id} not found")
        return chore

    def get_chores(self, house_id: str) -> list[Chore]:
        return self.db.query(Chore).filter(
            Chore.house_id == house_id,
            Chore.active.is_(True),
        ).order_by(Chore.id).all()

    @staticmethod
    def _clean_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Chore name cannot be empty")
        return name
