"""003: create bets table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bets (
            id              BIGSERIAL       PRIMARY KEY,
            bet_id          VARCHAR(64)     NOT NULL,
            account_id      VARCHAR(64)     NOT NULL REFERENCES accounts (account_id),
            game_type       VARCHAR(16)     NOT NULL,
            stake           BIGINT          NOT NULL,
            payout          BIGINT          NOT NULL,
            outcome         JSONB           NOT NULL,
            status          VARCHAR(16)     NOT NULL,
            round_id        VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_bets_bet_id       UNIQUE (bet_id),
            CONSTRAINT ck_bets_game_type    CHECK (game_type IN ('DICE', 'SLOTS', 'CRASH')),
            CONSTRAINT ck_bets_status       CHECK (status IN ('SETTLED', 'REFUNDED')),
            CONSTRAINT ck_bets_stake_gt_0   CHECK (stake > 0),
            CONSTRAINT ck_bets_payout_gte_0 CHECK (payout >= 0),
            CONSTRAINT ck_bets_refund_is_stake CHECK (status <> 'REFUNDED' OR payout = stake)
        );
    """)
    op.execute("CREATE INDEX idx_bets_account_id ON bets (account_id, id DESC);")
    op.execute("CREATE INDEX idx_bets_round ON bets (round_id) WHERE round_id IS NOT NULL;")
    op.execute("""
        CREATE TRIGGER trg_bets_append_only
            BEFORE UPDATE OR DELETE ON bets
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)
    op.execute("COMMENT ON TABLE bets IS 'Settled bets, append-only; bet_id is the settlement idempotency key';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bets CASCADE;")
