"""Initial schema with users, posts, coins, trades, trading_config and stats

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from coinwhisperer.storage.sql.models import Amount, Id


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', Id, autoincrement=True, nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username')
    )

    # Create posts table
    op.create_table(
        'posts',
        sa.Column('id', Id, autoincrement=True, nullable=False),
        sa.Column('external_id', sa.String(100), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('author_name', sa.String(255), nullable=False),
        sa.Column('author_username', sa.String(255), nullable=False),
        sa.Column('author_profile_image', sa.String(500), nullable=True),
        sa.Column('coin_symbol', sa.String(20), nullable=False),
        sa.Column('sentiment_score', sa.Float(), nullable=False),
        sa.Column('sentiment_label', sa.String(10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('likes', sa.Integer(), nullable=False),
        sa.Column('retweets', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('external_id')
    )
    op.create_index('ix_posts_created_at', 'posts', ['created_at'])
    op.create_index('ix_posts_coin_symbol', 'posts', ['coin_symbol'])

    # Create coins table
    op.create_table(
        'coins',
        sa.Column('id', Id, autoincrement=True, nullable=False),
        sa.Column('symbol', sa.String(20), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('current_price', Amount(30, 18), nullable=False),
        sa.Column('price_change_percentage', Amount(12, 4), nullable=False),
        sa.Column('image', sa.String(500), nullable=True),
        sa.Column('is_tracked', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('symbol')
    )

    # Create trades table
    op.create_table(
        'trades',
        sa.Column('id', Id, autoincrement=True, nullable=False),
        sa.Column('type', sa.String(4), nullable=False),
        sa.Column('coin_symbol', sa.String(20), nullable=False),
        sa.Column('amount', Amount(30, 8), nullable=False),
        sa.Column('price', Amount(30, 18), nullable=False),
        sa.Column('sentiment_score', sa.Float(), nullable=False),
        sa.Column('threshold', sa.Float(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_trades_timestamp', 'trades', ['timestamp'])

    # Single-row tables
    op.create_table(
        'trading_config',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('buy_threshold', sa.Float(), nullable=False),
        sa.Column('sell_threshold', sa.Float(), nullable=False),
        sa.Column('auto_trading', sa.Boolean(), nullable=False),
        sa.Column('notifications', sa.Boolean(), nullable=False),
        sa.Column('risk_level', sa.String(10), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'stats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('overall_sentiment', sa.Float(), nullable=False),
        sa.Column('overall_sentiment_label', sa.String(10), nullable=False),
        sa.Column('active_trades', sa.Integer(), nullable=False),
        sa.Column('tracked_coins', sa.Integer(), nullable=False),
        sa.Column('profit_loss', Amount(30, 8), nullable=False),
        sa.Column('profit_loss_percentage', Amount(12, 4), nullable=False),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    op.drop_table('stats')
    op.drop_table('trading_config')
    op.drop_table('trades')
    op.drop_table('coins')
    op.drop_table('posts')
    op.drop_table('users')
