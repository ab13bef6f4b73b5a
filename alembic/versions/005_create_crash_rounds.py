"""005: create crash_rounds table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE crash_rounds (
            id                  BIGSERIAL   PRIMARY KEY,
            round_id            VARCHAR(64) NOT NULL,
            crash_point_x100    INTEGER     NOT NULL,
            bet_count           INTEGER     NOT NULL DEFAULT 0,
            total_stake         BIGINT      NOT NULL DEFAULT 0,
            total_payout        BIGINT      NOT NULL DEFAULT 0,
            started_at          TIMESTAMPTZ,
            crashed_at          TIMESTAMPTZ,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_crash_rounds_round_id UNIQUE (round_id),
            CONSTRAINT ck_crash_point_gte_100   CHECK (crash_point_x100 >= 100),
            CONSTRAINT ck_crash_totals_gte_0    CHECK (total_stake >= 0 AND total_payout >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_crash_rounds_append_only
            BEFORE UPDATE OR DELETE ON crash_rounds
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)
    op.execute("COMMENT ON TABLE crash_rounds IS 'Finished live crash rounds, one row per round';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS crash_rounds CASCADE;")
