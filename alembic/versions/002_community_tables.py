"""Community: pets, posts, barks, weekly challenges and votes.

Revision ID: 002_community_tables
Revises: 001_users_and_xp
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_community_tables"
down_revision: str | None = "001_users_and_xp"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Pets ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS pets (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name VARCHAR(64) NOT NULL,
            species VARCHAR(32) NOT NULL,
            breed VARCHAR(64),
            image_url TEXT,
            xp INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 1,
            love_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_pets_user_id ON pets(user_id)")
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_pets_love
        ON pets(love_count DESC, id)
    """)

    # --- Posts (feed) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS posts (
            id BIGSERIAL PRIMARY KEY,
            author_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            pet_id BIGINT REFERENCES pets(id) ON DELETE SET NULL,
            content TEXT NOT NULL,
            image_url TEXT,
            challenge_hashtag VARCHAR(64),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_posts_author_id ON posts(author_id)")

    # --- Barks (forum) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS barks (
            id BIGSERIAL PRIMARY KEY,
            author_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title VARCHAR(200) NOT NULL,
            content TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS bark_comments (
            id BIGSERIAL PRIMARY KEY,
            bark_id BIGINT NOT NULL REFERENCES barks(id) ON DELETE CASCADE,
            author_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            parent_id BIGINT REFERENCES bark_comments(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_bark_comments_bark_id ON bark_comments(bark_id)")

    # --- Weekly challenges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS weekly_challenges (
            id BIGSERIAL PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            hashtag VARCHAR(64) NOT NULL,
            start_date TIMESTAMPTZ NOT NULL,
            end_date TIMESTAMPTZ NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT false,
            created_by BIGINT REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS challenge_posts (
            id BIGSERIAL PRIMARY KEY,
            challenge_id BIGINT NOT NULL REFERENCES weekly_challenges(id) ON DELETE CASCADE,
            post_id BIGINT NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_challenge_posts_entry UNIQUE (challenge_id, post_id)
        )
    """)

    # --- Votes ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS votes (
            id BIGSERIAL PRIMARY KEY,
            voter_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            target_type VARCHAR(32) NOT NULL,
            target_id BIGINT NOT NULL,
            value SMALLINT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ,
            CONSTRAINT uq_votes_voter_target UNIQUE (voter_id, target_type, target_id),
            CONSTRAINT ck_votes_value CHECK (value IN (1, -1))
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_votes_target
        ON votes(target_type, target_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS votes CASCADE")
    op.execute("DROP TABLE IF EXISTS challenge_posts CASCADE")
    op.execute("DROP TABLE IF EXISTS weekly_challenges CASCADE")
    op.execute("DROP TABLE IF EXISTS bark_comments CASCADE")
    op.execute("DROP TABLE IF EXISTS barks CASCADE")
    op.execute("DROP TABLE IF EXISTS posts CASCADE")
    op.execute("DROP TABLE IF EXISTS pets CASCADE")
