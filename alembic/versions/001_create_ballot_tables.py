"""Create ballot tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

candidates, voters, settings and votes. A voter can record at most one vote
per position, so any second ballot from the same voter is rejected by the
unique index.
"""

from alembic import op


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Apply migration: create ballot tables."""
    op.execute("""
        -- 1. candidates
        CREATE TABLE candidates (
            id SERIAL PRIMARY KEY,
            name VARCHAR(200) NOT NULL,
            position VARCHAR(200) NOT NULL,
            photo_url TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        CREATE INDEX idx_candidates_created_at ON candidates(created_at, id);

        -- 2. voters
        CREATE TABLE voters (
            id SERIAL PRIMARY KEY,
            username VARCHAR(100) NOT NULL UNIQUE,
            has_voted BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
        );

        -- 3. settings (key/value, e.g. voting_deadline as ISO-8601)
        CREATE TABLE settings (
            key VARCHAR(100) PRIMARY KEY,
            value TEXT
        );

        -- 4. votes
        CREATE TABLE votes (
            id SERIAL PRIMARY KEY,
            voter_id INTEGER NOT NULL REFERENCES voters(id),
            candidate_id INTEGER NOT NULL REFERENCES candidates(id),
            position VARCHAR(200) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        CREATE UNIQUE INDEX idx_votes_voter_position
        ON votes(voter_id, position);
        CREATE INDEX idx_votes_candidate_id ON votes(candidate_id);

        COMMENT ON TABLE votes IS 'One row per voter and chosen candidate';
        COMMENT ON COLUMN voters.has_voted IS 'Set once the vote batch is recorded';
    """)


def downgrade() -> None:
    """Rollback migration: drop ballot tables."""
    op.execute("""
        DROP TABLE IF EXISTS votes CASCADE;
        DROP TABLE IF EXISTS settings CASCADE;
        DROP TABLE IF EXISTS voters CASCADE;
        DROP TABLE IF EXISTS candidates CASCADE;
    """)
