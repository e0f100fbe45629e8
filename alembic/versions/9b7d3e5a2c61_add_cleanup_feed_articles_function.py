"""add_cleanup_feed_articles_function

Adds the database-side feed cleanup used as the fast path of article
retention. It must select exactly what the client-side path selects:

- protected articles (read or starred by any user, or commented) are never
  deleted and do not count toward the per-feed limit;
- unprotected articles are ranked by COALESCE(published_at, created_at)
  descending, and everything past p_max_articles is selected;
- unprotected articles whose effective date is strictly before
  NOW() - p_max_age_days are selected;
- the union is deleted in batches of 500 and the deleted count returned.

Revision ID: 9b7d3e5a2c61
Revises: 4c1e2b7f9a10
Create Date: 2026-02-01 14:03:27.550811
"""

from alembic import op


# revision identifiers, used by Alembic
revision = "9b7d3e5a2c61"
down_revision = "4c1e2b7f9a10"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION cleanup_feed_articles(
            p_feed_id UUID,
            p_max_articles INTEGER DEFAULT 100,
            p_max_age_days INTEGER DEFAULT 30
        )
        RETURNS INTEGER AS $$
        DECLARE
            v_ids UUID[];
            v_total INTEGER;
            v_offset INTEGER := 1;
            v_batch_size CONSTANT INTEGER := 500;
            v_batch_deleted INTEGER;
            v_deleted INTEGER := 0;
        BEGIN
            WITH unprotected AS (
                SELECT a.id, COALESCE(a.published_at, a.created_at) AS effective_date
                FROM articles a
                WHERE a.feed_id = p_feed_id
                  AND NOT EXISTS (
                      SELECT 1 FROM user_articles ua
                      WHERE ua.article_id = a.id
                        AND (ua.is_read = true OR ua.is_starred = true)
                  )
                  AND NOT EXISTS (
                      SELECT 1 FROM article_comments ac
                      WHERE ac.article_id = a.id
                  )
            ),
            ranked AS (
                SELECT
                    id,
                    effective_date,
                    ROW_NUMBER() OVER (ORDER BY effective_date DESC, id) AS position
                FROM unprotected
            )
            SELECT COALESCE(array_agg(id), '{}') INTO v_ids
            FROM ranked
            WHERE position > p_max_articles
               OR effective_date < NOW() - make_interval(days => p_max_age_days);

            v_total := COALESCE(array_length(v_ids, 1), 0);

            WHILE v_offset <= v_total LOOP
                DELETE FROM articles
                WHERE id = ANY(v_ids[v_offset:v_offset + v_batch_size - 1]);
                GET DIAGNOSTICS v_batch_deleted = ROW_COUNT;
                v_deleted := v_deleted + v_batch_deleted;
                v_offset := v_offset + v_batch_size;
            END LOOP;

            RETURN v_deleted;
        END;
        $$ LANGUAGE plpgsql;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS cleanup_feed_articles(UUID, INTEGER, INTEGER);")
