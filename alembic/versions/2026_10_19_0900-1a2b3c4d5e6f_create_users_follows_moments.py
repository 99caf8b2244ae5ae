"""create_users_follows_moments

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "1a2b3c4d5e6f"
down_revision = None
branch_labels = None
depends_on = None

role_enum = sa.Enum("USER", "ADMIN", name="role")
visibility_enum = sa.Enum("PUBLIC", "DRAFT", "FOLLOWERS_ONLY", name="visibility")


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("bio", sa.String(length=500), nullable=True),
        sa.Column("picture", sa.String(length=500), nullable=True),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_user_username", "user", ["username"], unique=True)
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "userfollow",
        sa.Column("follower_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("followed_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), primary_key=True),
        sa.CheckConstraint("follower_id <> followed_id", name="ck_userfollow_no_self_follow"),
    )
    op.create_index("ix_userfollow_follower_id", "userfollow", ["follower_id"])
    op.create_index("ix_userfollow_followed_id", "userfollow", ["followed_id"])

    op.create_table(
        "moment",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("text", sa.String(length=500), nullable=False),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("visibility", visibility_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_moment_author_id", "moment", ["author_id"])
    op.create_index("ix_moment_visibility", "moment", ["visibility"])
    op.create_index("ix_moment_created_at", "moment", ["created_at"])


def downgrade() -> None:
    op.drop_table("moment")
    op.drop_table("userfollow")
    op.drop_table("user")
    visibility_enum.drop(op.get_bind(), checkfirst=True)
    role_enum.drop(op.get_bind(), checkfirst=True)
