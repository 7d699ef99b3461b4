"""
SQLAlchemy ORM models

All timestamps are naive UTC datetimes supplied by the caller.
"""
from datetime import date as date_type, datetime
from sqlalchemy import (
    String, DateTime, Integer, Float, Text, Date, Boolean, ForeignKey,
    UniqueConstraint, CheckConstraint, Index, func,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from chorewheel.infrastructure.db.session import Base


class House(Base):
    """
    Tenant boundary, identified by the chat platform's opaque id
    """
    __tablename__ = "house"

    slack_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)


class Resident(Base):
    """
    Resident of a house. Never hard-deleted: deactivation keeps ledger history.
    """
    __tablename__ = "resident"

    slack_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    house_id: Mapped[str] = mapped_column(ForeignKey("house.slack_id"), nullable=False, index=True)

    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    active_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    exempt_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)


class Chore(Base):
    """
    Chore definition. Name is the natural key within a house; soft-deleted via active=false.
    """
    __tablename__ = "chore"

    id: Mapped[int] = mapped_column(primary_key=True)
    house_id: Mapped[str] = mapped_column(ForeignKey("house.slack_id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    meta: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("house_id", "name", name="uq_chore_house_name"),
    )


class ChorePreference(Base):
    """
    One resident's preference between two chores.

    preference = 1.0 sends all value to alpha, 0.0 sends all value to beta.
    """
    __tablename__ = "chore_pref"

    id: Mapped[int] = mapped_column(primary_key=True)
    house_id: Mapped[str] = mapped_column(ForeignKey("house.slack_id"), nullable=False, index=True)
    resident_id: Mapped[str] = mapped_column(ForeignKey("resident.slack_id"), nullable=False)
    alpha_chore_id: Mapped[int] = mapped_column(ForeignKey("chore.id"), nullable=False)
    beta_chore_id: Mapped[int] = mapped_column(ForeignKey("chore.id"), nullable=False)
    preference: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "house_id", "resident_id", "alpha_chore_id", "beta_chore_id",
            name="uq_chore_pref_resident_pair",
        ),
        CheckConstraint("alpha_chore_id < beta_chore_id", name="ck_chore_pref_ordered"),
        CheckConstraint("preference >= 0 AND preference <= 1", name="ck_chore_pref_range"),
    )


class ChoreValue(Base):
    """
    Append-only value increment for a chore. Never updated or deleted.

    Rows written by a house update carry the window they cover; unique per
    (chore, window_start), so two updates that read the same last timestamp
    collide. Manual increments leave window_start NULL.
    """
    __tablename__ = "chore_value"

    id: Mapped[int] = mapped_column(primary_key=True)
    chore_id: Mapped[int] = mapped_column(ForeignKey("chore.id"), nullable=False)
    valued_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    window_start: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    meta: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_chore_value_chore_valued_at", "chore_id", "valued_at"),
        Index("ux_chore_value_chore_window", "chore_id", "window_start", unique=True),
    )


class Poll(Base):
    """
    Time-boxed yes/no poll. Immutable once created.
    """
    __tablename__ = "poll"

    id: Mapped[int] = mapped_column(primary_key=True)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    min_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=2)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)


class PollVote(Base):
    """
    Anonymised vote: the resident id is only stored as a keyed one-way hash.

    vote: True = yay, False = nay, None = abstain
    """
    __tablename__ = "poll_vote"

    id: Mapped[int] = mapped_column(primary_key=True)
    poll_id: Mapped[int] = mapped_column(ForeignKey("poll.id"), nullable=False)
    encrypted_resident_id: Mapped[str] = mapped_column(String(64), nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    vote: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("poll_id", "encrypted_resident_id", name="uq_poll_vote_voter"),
    )


class ChoreClaim(Base):
    """
    Ledger row for chore points.

    A claim on a chore starts pending (resolved_at is NULL, valid provisionally
    true) and is resolved exactly once. Gifts are stored as a pair of claim
    rows without a chore: +value for the recipient, -value for the giver.
    """
    __tablename__ = "chore_claim"

    id: Mapped[int] = mapped_column(primary_key=True)
    house_id: Mapped[str] = mapped_column(ForeignKey("house.slack_id"), nullable=False, index=True)
    chore_id: Mapped[int | None] = mapped_column(ForeignKey("chore.id"), nullable=True, index=True)
    claimed_by: Mapped[str] = mapped_column(ForeignKey("resident.slack_id"), nullable=False, index=True)
    claimed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    poll_id: Mapped[int | None] = mapped_column(ForeignKey("poll.id"), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    valid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    meta: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)


class ChoreBreak(Base):
    """
    Period [start_date, end_date) during which a resident is excused from chores
    """
    __tablename__ = "chore_break"

    id: Mapped[int] = mapped_column(primary_key=True)
    house_id: Mapped[str] = mapped_column(ForeignKey("house.slack_id"), nullable=False, index=True)
    resident_id: Mapped[str] = mapped_column(ForeignKey("resident.slack_id"), nullable=False, index=True)
    start_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    end_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    circumstance: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_chore_break_dates"),
    )


class ChoreProposal(Base):
    """
    Poll-gated intent to add (chore_id NULL), edit (chore_id set, active=true)
    or delete (active=false) a chore
    """
    __tablename__ = "chore_proposal"

    id: Mapped[int] = mapped_column(primary_key=True)
    house_id: Mapped[str] = mapped_column(ForeignKey("house.slack_id"), nullable=False, index=True)
    proposed_by: Mapped[str] = mapped_column(ForeignKey("resident.slack_id"), nullable=False)
    chore_id: Mapped[int | None] = mapped_column(ForeignKey("chore.id"), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    meta: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, default=dict)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    poll_id: Mapped[int] = mapped_column(ForeignKey("poll.id"), nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    valid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)


class Heart(Base):
    """
    Hearts ledger row (owned by the hearts subsystem; chores only writes penalties)
    """
    __tablename__ = "heart"

    id: Mapped[int] = mapped_column(primary_key=True)
    house_id: Mapped[str] = mapped_column(ForeignKey("house.slack_id"), nullable=False, index=True)
    resident_id: Mapped[str] = mapped_column(ForeignKey("resident.slack_id"), nullable=False, index=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    meta: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)


class EventLog(Base):
    """
    Audit log of chore wheel actions (append-only)
    """
    __tablename__ = "event_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    house_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    actor_resident_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    payload_json: Mapped[dict] = mapped_column(JSONB, nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    idempotency_key: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
