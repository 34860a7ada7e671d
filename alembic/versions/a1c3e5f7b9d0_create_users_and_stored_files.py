"""Create users and stored_files.

Revision ID: a1c3e5f7b9d0
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "a1c3e5f7b9d0"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    role_enum = postgresql.ENUM("ADMIN", "EDITOR", "USER", name="user_role")
    role_enum.create(op.get_bind(), checkfirst=True)
    role_enum = postgresql.ENUM(
        "ADMIN", "EDITOR", "USER", name="user_role", create_type=False
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(120), nullable=True),
        sa.Column("role", role_enum, nullable=False, server_default="USER"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("key", sa.String(64), nullable=False, unique=True),
        sa.Column("avatar_url", sa.String(1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "stored_files",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(64),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("folder_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("file_type", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("public_id", sa.String(1024), nullable=False),
        sa.Column("storage_folder", sa.String(512), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_stored_files_user_folder", "stored_files", ["user_id", "folder_name"]
    )
    op.create_index(
        "ix_stored_files_user_uploaded", "stored_files", ["user_id", "uploaded_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_stored_files_user_uploaded", table_name="stored_files")
    op.drop_index("ix_stored_files_user_folder", table_name="stored_files")
    op.drop_table("stored_files")
    op.drop_table("users")
    postgresql.ENUM(name="user_role").drop(op.get_bind(), checkfirst=True)
