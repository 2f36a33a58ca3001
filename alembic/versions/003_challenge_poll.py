"""Weekly challenge poll: options and one changeable vote per user.

Revision ID: 003_challenge_poll
Revises: 002_community_tables
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "003_challenge_poll"
down_revision: str | None = "002_community_tables"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS challenge_options (
            id BIGSERIAL PRIMARY KEY,
            challenge_id BIGINT NOT NULL REFERENCES weekly_challenges(id) ON DELETE CASCADE,
            title VARCHAR(200) NOT NULL,
            description TEXT,
            order_index INTEGER NOT NULL
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_challenge_options_challenge_id
        ON challenge_options(challenge_id)
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS challenge_votes (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            challenge_id BIGINT NOT NULL REFERENCES weekly_challenges(id) ON DELETE CASCADE,
            option_id BIGINT NOT NULL REFERENCES challenge_options(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ,
            CONSTRAINT uq_challenge_votes_user_challenge UNIQUE (user_id, challenge_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_challenge_votes_option_id
        ON challenge_votes(option_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS challenge_votes CASCADE")
    op.execute("DROP TABLE IF EXISTS challenge_options CASCADE")
