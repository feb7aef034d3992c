"""Projects and transactions with ownership, cascade and change triggers."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy import inspect

from siteledger.config import get_settings

revision = "0001_create_ledger_tables"
down_revision = None
branch_labels = None
depends_on = None


def _has_table(bind, table_name: str) -> bool:
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def notify_function_sql(channel: str) -> str:
    """``notify_ledger_change()`` publishing to ``channel`` (the ``CHANGE_FEED_CHANNEL`` setting)."""

    return f"""
        CREATE OR REPLACE FUNCTION notify_ledger_change()
        RETURNS TRIGGER AS $$
        DECLARE
          row_data RECORD;
          project uuid;
        BEGIN
          IF TG_OP = 'DELETE' THEN
            row_data := OLD;
          ELSE
            row_data := NEW;
          END IF;
          IF TG_TABLE_NAME = 'projects' THEN
            project := row_data.id;
          ELSE
            project := row_data.project_id;
          END IF;
          PERFORM pg_notify(
            '{channel}',
            json_build_object('table', TG_TABLE_NAME, 'action', lower(TG_OP), 'project_id', project)::text
          );
          RETURN NULL;
        END;
        $$ LANGUAGE plpgsql
        """


def upgrade() -> None:
    bind = op.get_bind()

    if not _has_table(bind, "projects"):
        op.create_table(
            "projects",
            sa.Column("id", sa.Uuid, primary_key=True, server_default=sa.text("gen_random_uuid()")),
            sa.Column("user_id", sa.Uuid, nullable=False),
            sa.Column("name", sa.Text, nullable=False),
            sa.Column("location", sa.Text, nullable=False),
            sa.Column("project_type", sa.Text, nullable=False),
            sa.Column("base_contract_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
            sa.CheckConstraint("base_contract_amount >= 0", name="ck_projects_base_contract_amount"),
            sa.Index("idx_projects_user_id", "user_id"),
        )

    if not _has_table(bind, "transactions"):
        op.create_table(
            "transactions",
            sa.Column("id", sa.Uuid, primary_key=True, server_default=sa.text("gen_random_uuid()")),
            sa.Column(
                "project_id",
                sa.Uuid,
                sa.ForeignKey("projects.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("type", sa.String(length=6), nullable=False),
            sa.Column("amount", sa.Numeric(15, 2), nullable=False),
            sa.Column("description", sa.Text, nullable=False),
            sa.Column("transaction_date", sa.Date, nullable=False, server_default=sa.text("CURRENT_DATE")),
            sa.Column("category", sa.Text, server_default=""),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
            sa.CheckConstraint("type IN ('credit', 'debit')", name="ck_transactions_type"),
            sa.CheckConstraint("amount >= 0", name="ck_transactions_amount"),
            sa.Index("idx_transactions_project_id", "project_id"),
            sa.Index("idx_transactions_date", "transaction_date"),
        )

    op.execute(
        """
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
          NEW.updated_at = now();
          RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
        """
    )
    op.execute("DROP TRIGGER IF EXISTS update_projects_updated_at ON projects")
    op.execute(
        """
        CREATE TRIGGER update_projects_updated_at
          BEFORE UPDATE ON projects
          FOR EACH ROW
          EXECUTE FUNCTION update_updated_at_column()
        """
    )

    op.execute(notify_function_sql(get_settings().change_feed_channel))
    for table in ("projects", "transactions"):
        op.execute(f"DROP TRIGGER IF EXISTS notify_{table}_change ON {table}")
        op.execute(
            f"""
            CREATE TRIGGER notify_{table}_change
              AFTER INSERT OR UPDATE OR DELETE ON {table}
              FOR EACH ROW
              EXECUTE FUNCTION notify_ledger_change()
            """
        )


def downgrade() -> None:
    for table in ("transactions", "projects"):
        op.execute(f"DROP TRIGGER IF EXISTS notify_{table}_change ON {table}")
    op.execute("DROP TRIGGER IF EXISTS update_projects_updated_at ON projects")
    op.execute("DROP FUNCTION IF EXISTS notify_ledger_change()")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")
    op.drop_table("transactions")
    op.drop_table("projects")
