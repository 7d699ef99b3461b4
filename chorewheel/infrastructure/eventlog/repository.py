"""
Event Log Repository - append-only audit trail of chore wheel actions

Resolution events carry idempotency keys, so two resolvers racing on the
same claim or proposal collide on the unique constraint.
"""
from datetime import datetime
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session

from chorewheel.infrastructure.db.models import EventLog


class EventLogRepository:
    """
    Repository for the event log
    """

    def __init__(self, db: Session):
        self.db = db

    def append_event(
        self,
        house_id: str,
        event_type: str,
        payload: Dict[str, Any],
        occurred_at: datetime,
        actor_resident_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> int:
        """
        Append an event to the log

        Args:
            house_id: House the event belongs to
            event_type: Event type (e.g. "chore_claimed")
            payload: Event data (stored as JSONB)
            occurred_at: Caller-supplied time of the event
            actor_resident_id: Resident who acted (optional)
            idempotency_key: Unique key guarding against duplicates (optional)

        Returns:
            event_id: id of the new event

        Raises:
            IntegrityError: if idempotency_key already exists

        Example:
            >>> repo = EventLogRepository(db)
            >>> event_id = repo.append_event(
            ...     house_id="T123",
            ...     event_type="chore_claim_resolved",
            ...     payload={"claim_id": 7, "valid": True},
            ...     occurred_at=now,
            ...     idempotency_key="chore-claim-resolved-7"
            ... )
        """
        event = EventLog(
            house_id=house_id,
            actor_resident_id=actor_resident_id,
            event_type=event_type,
            payload_json=payload,
            occurred_at=occurred_at,
            idempotency_key=idempotency_key,
        )

        self.db.add(event)
        self.db.flush()  # get the id without committing

        return event.id

    def list_events(
        self,
        house_id: str,
        event_types: Optional[List[str]] = None,
        limit: int = 200,
    ) -> List[EventLog]:
        """
        List a house's events in insertion order

        Args:
            house_id: House id
            event_types: Filter by event types (optional)
            limit: Maximum number of events (default: 200)
        """
        query = self.db.query(EventLog).filter(EventLog.house_id == house_id)

        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        return query.order_by(EventLog.id.asc()).limit(limit).all()
