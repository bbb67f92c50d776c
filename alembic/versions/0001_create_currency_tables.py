"""create currency and currency_stats tables

Revision ID: 0001_create_currency_tables
Revises: 
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_create_currency_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'currency',
        sa.Column('symbol', sa.String(), primary_key=True),
    )
    op.create_table(
        'currency_stats',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date_time', sa.DateTime(), nullable=False),
        sa.Column(
            'currency_id',
            sa.String(),
            sa.ForeignKey('currency.symbol', name='fk_currency_id'),
            nullable=False,
        ),
        sa.Column('price', sa.Numeric(25, 7), nullable=False),
    )
    op.create_index('idx_date_time', 'currency_stats', ['date_time'])
    op.create_index('idx_currency_id', 'currency_stats', ['currency_id'])
    op.create_index('idx_price', 'currency_stats', ['price'])


def downgrade():
    op.drop_index('idx_price', table_name='currency_stats')
    op.drop_index('idx_currency_id', table_name='currency_stats')
    op.drop_index('idx_date_time', table_name='currency_stats')
    op.drop_table('currency_stats')
    op.drop_table('currency')
