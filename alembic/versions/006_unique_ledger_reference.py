"""006: one ledger entry per (entry_type, reference_id)

Makes the stake debit idempotent on the bet id: a retried debit whose first
attempt committed finds its BET_STAKE row instead of taking the stake twice.

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE UNIQUE INDEX uq_ledger_entry_reference
        ON ledger_entries (entry_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS uq_ledger_entry_reference;")
