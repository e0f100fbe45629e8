"""create_article_retention_tables

Creates users, feeds, articles, engagement, comments, per-user retention
settings and the cleanup run log.

Revision ID: 4c1e2b7f9a10
Revises:
Create Date: 2026-01-21 09:12:44.102938
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic
revision = "4c1e2b7f9a10"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    ]


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("display_name", sa.String(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "feeds",
        _id(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_feeds_user_id", "feeds", ["user_id"])

    op.create_table(
        "articles",
        _id(),
        sa.Column(
            "feed_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("feeds.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("published_at", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_articles_feed_id", "articles", ["feed_id"])
    # Ranking key for both eviction strategies
    op.execute(
        "CREATE INDEX idx_articles_feed_effective_date "
        "ON articles (feed_id, COALESCE(published_at, created_at) DESC)"
    )

    op.create_table(
        "user_articles",
        _id(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "article_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("articles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("is_read", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("is_starred", sa.Boolean(), server_default="false", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "article_id", name="uq_user_articles_user_article"),
    )
    op.create_index("ix_user_articles_article_id", "user_articles", ["article_id"])
    op.create_index(
        "idx_user_articles_protected",
        "user_articles",
        ["article_id"],
        postgresql_where=sa.text("is_read = true OR is_starred = true"),
    )

    op.create_table(
        "article_comments",
        _id(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "article_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("articles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_article_comments_article_id", "article_comments", ["article_id"])

    op.create_table(
        "user_settings",
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("articles_per_feed", sa.Integer(), server_default="100", nullable=False),
        sa.Column(
            "unread_article_age_days", sa.Integer(), server_default="30", nullable=False
        ),
        sa.Column("enable_auto_cleanup", sa.Boolean(), server_default="true", nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "articles_per_feed >= 50 AND articles_per_feed <= 500",
            name="user_settings_articles_per_feed_range",
        ),
        sa.CheckConstraint(
            "unread_article_age_days >= 7 AND unread_article_age_days <= 90",
            name="user_settings_unread_age_range",
        ),
    )

    op.create_table(
        "cleanup_log",
        _id(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "feed_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("feeds.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("trigger_type", sa.Text(), nullable=False),
        sa.Column("articles_deleted", sa.Integer(), server_default="0", nullable=False),
        sa.Column("duration_ms", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "trigger_type IN ('sync', 'scheduled', 'manual')",
            name="cleanup_log_trigger_type_valid",
        ),
        sa.CheckConstraint(
            "articles_deleted >= 0",
            name="cleanup_log_articles_deleted_non_negative",
        ),
    )
    op.create_index("ix_cleanup_log_user_id", "cleanup_log", ["user_id"])
    op.create_index("ix_cleanup_log_feed_id", "cleanup_log", ["feed_id"])
    op.create_index("ix_cleanup_log_trigger_type", "cleanup_log", ["trigger_type"])
    op.execute(
        "CREATE INDEX idx_cleanup_log_user_created ON cleanup_log (user_id, created_at DESC)"
    )
    op.execute(
        "CREATE INDEX idx_cleanup_log_errors ON cleanup_log (created_at DESC) "
        "WHERE error_message IS NOT NULL"
    )


def downgrade() -> None:
    op.drop_table("cleanup_log")
    op.drop_table("user_settings")
    op.drop_table("article_comments")
    op.drop_table("user_articles")
    op.drop_table("articles")
    op.drop_table("feeds")
    op.drop_table("users")
