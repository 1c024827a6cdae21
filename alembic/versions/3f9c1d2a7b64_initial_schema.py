"""initial_schema

Revision ID: 3f9c1d2a7b64
Revises:
Create Date: 2025-11-08 00:15:15.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9c1d2a7b64"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema.

    Creates the three durable tables:
    - applications: token-identified tenants with a reconciled chats_count
    - chats: numbered per application, reconciled messages_count
    - messages: numbered per chat
    """
    op.create_table(
        "applications",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("token", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("chats_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("name <> ''", name="ck_applications_name_not_empty"),
        sa.CheckConstraint("chats_count >= 0", name="ck_applications_chats_count_non_negative"),
    )
    op.create_index("index_applications_on_token", "applications", ["token"], unique=True)

    op.create_table(
        "chats",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.BigInteger(), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("messages_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
        sa.CheckConstraint("messages_count >= 0", name="ck_chats_messages_count_non_negative"),
    )
    op.create_index(
        "index_chats_on_application_id_and_number",
        "chats",
        ["application_id", "number"],
        unique=True,
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("chat_id", sa.BigInteger(), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["chat_id"], ["chats.id"], ondelete="CASCADE"),
        sa.CheckConstraint("body <> ''", name="ck_messages_body_not_empty"),
    )
    op.create_index(
        "index_messages_on_chat_id_and_number", "messages", ["chat_id", "number"], unique=True
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("index_messages_on_chat_id_and_number", table_name="messages")
    op.drop_table("messages")
    op.drop_index("index_chats_on_application_id_and_number", table_name="chats")
    op.drop_table("chats")
    op.drop_index("index_applications_on_token", table_name="applications")
    op.drop_table("applications")
