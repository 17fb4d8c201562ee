"""initial schema

Revision ID: 4c1e9a2f7b30
Revises:
Create Date: 2026-10-16 09:12:41.508113

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "4c1e9a2f7b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create purchase progress, domain and activity log tables."""
    op.create_table(
        "purchase_progress",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("session_id", sa.Text, nullable=False, unique=True),
        sa.Column("step", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False),
        sa.Column("message", sa.Text, nullable=False, server_default=""),
        sa.Column("domain_name", sa.Text, nullable=True),
        sa.Column("platform", sa.Text, nullable=False, server_default=""),
        sa.Column("cancel_requested", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("updated_at", sa.Text, nullable=False),
        sa.CheckConstraint(
            "status IN ('in_progress', 'completed', 'error', 'canceled')",
            name="ck_purchase_progress_status",
        ),
    )

    op.create_table(
        "domains",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("domain_name", sa.Text, nullable=False),
        sa.Column("user_id", sa.Text, nullable=False, server_default=""),
        sa.Column("registrar", sa.Text, nullable=False, server_default="namecheap"),
        sa.Column("status", sa.Text, nullable=False, server_default="active"),
        sa.Column("platform", sa.Text, nullable=False, server_default=""),
        sa.Column("traffic_source", sa.Text, nullable=True),
        sa.Column("registered_at", sa.Text, nullable=False),
        sa.Column("expires_at", sa.Text, nullable=True),
        sa.Column("dns_configured", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("nameservers_json", sa.Text, nullable=False, server_default="[]"),
        sa.Column("zone_id", sa.Text, nullable=True),
        sa.Column("auto_renew", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("whois_guard", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "manually_deactivated", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("deactivated_at", sa.Text, nullable=True),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("updated_at", sa.Text, nullable=False),
        sa.CheckConstraint(
            "status IN ('active', 'deactivated', 'expired')",
            name="ck_domains_status",
        ),
        sa.UniqueConstraint("domain_name", "user_id", name="uq_domains_name_user"),
    )
    op.create_index("idx_domains_status", "domains", ["status"])

    op.create_table(
        "domain_activity_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("domain_id", sa.Integer, sa.ForeignKey("domains.id"), nullable=False),
        sa.Column("user_id", sa.Text, nullable=False, server_default=""),
        sa.Column("action", sa.Text, nullable=False),
        sa.Column("old_value", sa.Text, nullable=True),
        sa.Column("new_value", sa.Text, nullable=True),
        sa.Column("created_at", sa.Text, nullable=False),
    )
    op.create_index("idx_domain_activity_domain", "domain_activity_logs", ["domain_id"])


def downgrade() -> None:
    """Drop all DomainHub tables."""
    op.drop_index("idx_domain_activity_domain", table_name="domain_activity_logs")
    op.drop_table("domain_activity_logs")
    op.drop_index("idx_domains_status", table_name="domains")
    op.drop_table("domains")
    op.drop_table("purchase_progress")
