"""create chore wheel tables

Revision ID: 3f9c2a7d1e04
Revises:
Create Date: 2026-10-16 10:12:41.204117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1e04'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # 1. house / resident
    op.create_table(
        'house',
        sa.Column('slack_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('slack_id')
    )

    op.create_table(
        'resident',
        sa.Column('slack_id', sa.String(length=64), nullable=False),
        sa.Column('house_id', sa.String(length=64), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('active_at', sa.DateTime(), nullable=True),
        sa.Column('exempt_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['house_id'], ['house.slack_id']),
        sa.PrimaryKeyConstraint('slack_id')
    )
    op.create_index('ix_resident_house_id', 'resident', ['house_id'])

    # 2. chore / chore_pref / chore_value
    op.create_table(
        'chore',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('house_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['house_id'], ['house.slack_id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('house_id', 'name', name='uq_chore_house_name')
    )
    op.create_index('ix_chore_house_id', 'chore', ['house_id'])

    op.create_table(
        'chore_pref',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('house_id', sa.String(length=64), nullable=False),
        sa.Column('resident_id', sa.String(length=64), nullable=False),
        sa.Column('alpha_chore_id', sa.Integer(), nullable=False),
        sa.Column('beta_chore_id', sa.Integer(), nullable=False),
        sa.Column('preference', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['house_id'], ['house.slack_id']),
        sa.ForeignKeyConstraint(['resident_id'], ['resident.slack_id']),
        sa.ForeignKeyConstraint(['alpha_chore_id'], ['chore.id']),
        sa.ForeignKeyConstraint(['beta_chore_id'], ['chore.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'house_id', 'resident_id', 'alpha_chore_id', 'beta_chore_id',
            name='uq_chore_pref_resident_pair'
        ),
        sa.CheckConstraint('alpha_chore_id < beta_chore_id', name='ck_chore_pref_ordered'),
        sa.CheckConstraint('preference >= 0 AND preference <= 1', name='ck_chore_pref_range')
    )
    op.create_index('ix_chore_pref_house_id', 'chore_pref', ['house_id'])

    op.create_table(
        'chore_value',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('chore_id', sa.Integer(), nullable=False),
        sa.Column('valued_at', sa.DateTime(), nullable=False),
        sa.Column('window_start', sa.DateTime(), nullable=True),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['chore_id'], ['chore.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chore_value_chore_valued_at', 'chore_value', ['chore_id', 'valued_at'])
    op.create_index('ux_chore_value_chore_window', 'chore_value', ['chore_id', 'window_start'], unique=True)

    # 3. poll / poll_vote
    op.create_table(
        'poll',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('min_votes', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'poll_vote',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('poll_id', sa.Integer(), nullable=False),
        sa.Column('encrypted_resident_id', sa.String(length=64), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('vote', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['poll_id'], ['poll.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('poll_id', 'encrypted_resident_id', name='uq_poll_vote_voter')
    )

    # 4. chore_claim / chore_break / chore_proposal
    op.create_table(
        'chore_claim',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('house_id', sa.String(length=64), nullable=False),
        sa.Column('chore_id', sa.Integer(), nullable=True),
        sa.Column('claimed_by', sa.String(length=64), nullable=False),
        sa.Column('claimed_at', sa.DateTime(), nullable=False),
        sa.Column('value', sa.Float(), nullable=False, server_default='0'),
        sa.Column('poll_id', sa.Integer(), nullable=True),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('valid', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['house_id'], ['house.slack_id']),
        sa.ForeignKeyConstraint(['chore_id'], ['chore.id']),
        sa.ForeignKeyConstraint(['claimed_by'], ['resident.slack_id']),
        sa.ForeignKeyConstraint(['poll_id'], ['poll.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chore_claim_house_id', 'chore_claim', ['house_id'])
    op.create_index('ix_chore_claim_chore_id', 'chore_claim', ['chore_id'])
    op.create_index('ix_chore_claim_claimed_by', 'chore_claim', ['claimed_by'])

    op.create_table(
        'chore_break',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('house_id', sa.String(length=64), nullable=False),
        sa.Column('resident_id', sa.String(length=64), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('circumstance', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['house_id'], ['house.slack_id']),
        sa.ForeignKeyConstraint(['resident_id'], ['resident.slack_id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('start_date < end_date', name='ck_chore_break_dates')
    )
    op.create_index('ix_chore_break_house_id', 'chore_break', ['house_id'])
    op.create_index('ix_chore_break_resident_id', 'chore_break', ['resident_id'])

    op.create_table(
        'chore_proposal',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('house_id', sa.String(length=64), nullable=False),
        sa.Column('proposed_by', sa.String(length=64), nullable=False),
        sa.Column('chore_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('poll_id', sa.Integer(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('valid', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['house_id'], ['house.slack_id']),
        sa.ForeignKeyConstraint(['proposed_by'], ['resident.slack_id']),
        sa.ForeignKeyConstraint(['chore_id'], ['chore.id']),
        sa.ForeignKeyConstraint(['poll_id'], ['poll.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_chore_proposal_house_id', 'chore_proposal', ['house_id'])

    # 5. heart / event_log
    op.create_table(
        'heart',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('house_id', sa.String(length=64), nullable=False),
        sa.Column('resident_id', sa.String(length=64), nullable=False),
        sa.Column('generated_at', sa.DateTime(), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['house_id'], ['house.slack_id']),
        sa.ForeignKeyConstraint(['resident_id'], ['resident.slack_id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_heart_house_id', 'heart', ['house_id'])
    op.create_index('ix_heart_resident_id', 'heart', ['resident_id'])

    op.create_table(
        'event_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('house_id', sa.String(length=64), nullable=False),
        sa.Column('actor_resident_id', sa.String(length=64), nullable=True),
        sa.Column('event_type', sa.String(length=128), nullable=False),
        sa.Column('payload_json', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('occurred_at', sa.DateTime(), nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key')
    )
    op.create_index('ix_event_log_house_id', 'event_log', ['house_id'])
    op.create_index('ix_event_log_event_type', 'event_log', ['event_type'])
    op.create_index('ix_event_log_occurred_at', 'event_log', ['occurred_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('event_log')
    op.drop_table('heart')
    op.drop_table('chore_proposal')
    op.drop_table('chore_break')
    op.drop_table('chore_claim')
    op.drop_table('poll_vote')
    op.drop_table('poll')
    op.drop_table('chore_value')
    op.drop_table('chore_pref')
    op.drop_table('chore')
    op.drop_table('resident')
    op.drop_table('house')
