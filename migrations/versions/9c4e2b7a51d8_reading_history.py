"""reading history

Revision ID: 9c4e2b7a51d8
Revises: 3f2a9c1d7e40
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '9c4e2b7a51d8'
down_revision = '3f2a9c1d7e40'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'reading_histories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('spread_type', sa.String(length=50), nullable=False),
        sa.Column('question', sa.String(length=500), nullable=True),
        sa.Column('cards_json', sa.Text(), nullable=False),
        sa.Column('interpretation', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('reading_histories', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_reading_histories_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_reading_histories_created_at'), ['created_at'], unique=False)


def downgrade():
    with op.batch_alter_table('reading_histories', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_reading_histories_created_at'))
        batch_op.drop_index(batch_op.f('ix_reading_histories_user_id'))
    op.drop_table('reading_histories')
