"""Unit tests for retention settings and protection set resolution."""

from unittest.mock import patch
from uuid import uuid4

import pytest

from newsreel.article_cleanup.application.protection_resolver import ProtectionResolver
from newsreel.article_cleanup.application.settings_resolver import RetentionSettingsResolver
from newsreel.article_cleanup.domain.exceptions import ProtectionUnavailableError
from newsreel.article_cleanup.domain.retention_settings import (
    RetentionSettings,
    StoredRetentionSettings,
)
from tests.unit.article_cleanup_fakes import FakeArticleStore, FakeSettingsRepo, make_articles


@pytest.fixture
def settings_repo():
    return FakeSettingsRepo()


@pytest.fixture
def store():
    return FakeArticleStore()


class TestRetentionSettingsResolver:
    async def test_user_without_row_gets_defaults(self, settings_repo):
        resolver = RetentionSettingsResolver(settings_repo)

        settings = await resolver.resolve(uuid4())

        assert settings == RetentionSettings(
            articles_per_feed=100, unread_age_days=30, auto_cleanup_enabled=True
        )

    async def test_stored_values_win(self, settings_repo):
        user_id = uuid4()
        settings_repo.rows[user_id] = StoredRetentionSettings(
            user_id=user_id,
            articles_per_feed=250,
            unread_article_age_days=14,
            enable_auto_cleanup=False,
        )
        resolver = RetentionSettingsResolver(settings_repo)

        settings = await resolver.resolve(user_id)

        assert settings.articles_per_feed == 250
        assert settings.unread_age_days == 14
        assert settings.auto_cleanup_enabled is False

    async def test_null_columns_are_filled_from_defaults(self, settings_repo):
        user_id = uuid4()
        settings_repo.rows[user_id] = StoredRetentionSettings(
            user_id=user_id, articles_per_feed=75
        )
        defaults = RetentionSettings(articles_per_feed=120, unread_age_days=21)
        resolver = RetentionSettingsResolver(settings_repo, defaults=defaults)

        settings = await resolver.resolve(user_id)

        assert settings.articles_per_feed == 75
        assert settings.unread_age_days == 21
        assert settings.auto_cleanup_enabled is True

    async def test_store_failure_falls_back_to_defaults(self, settings_repo):
        settings_repo.error = ConnectionError("settings store down")
        resolver = RetentionSettingsResolver(settings_repo)

        with patch("newsreel.article_cleanup.application.settings_resolver.logger") as logger:
            settings = await resolver.resolve(uuid4())

        assert settings == RetentionSettings()
        logger.error.assert_called_once()


class TestProtectionResolver:
    async def test_union_of_engaged_and_commented(self, store):
        user_id = uuid4()
        articles = make_articles(uuid4(), 4)
        feed_id = store.add_feed(user_id, articles)
        store.engaged.add(articles[0].id)
        store.commented.add(articles[1].id)
        store.commented.add(articles[0].id)

        protected = await ProtectionResolver(store).resolve(user_id, feed_id)

        assert protected == frozenset({articles[0].id, articles[1].id})

    async def test_engagement_by_other_users_protects(self, store):
        """The resolver is not limited to the invoking user's engagement."""
        owner, reader = uuid4(), uuid4()
        articles = make_articles(uuid4(), 2)
        feed_id = store.add_feed(owner, articles)
        # FakeArticleStore keeps engagement without a user, as any-user flags
        store.engaged.add(articles[1].id)

        protected = await ProtectionResolver(store).resolve(reader, feed_id)

        assert articles[1].id in protected

    async def test_scoped_to_feed(self, store):
        user_id = uuid4()
        feed_a = make_articles(uuid4(), 2)
        feed_b = make_articles(uuid4(), 2)
        feed_a_id = store.add_feed(user_id, feed_a)
        store.add_feed(user_id, feed_b)
        store.engaged.update({feed_a[0].id, feed_b[0].id})

        protected = await ProtectionResolver(store).resolve(user_id, feed_a_id)

        assert protected == frozenset({feed_a[0].id})

    async def test_fail_open_returns_empty_set(self, store):
        store.protection_error = TimeoutError("engagement query timed out")

        with patch("newsreel.article_cleanup.application.protection_resolver.logger") as logger:
            protected = await ProtectionResolver(store).resolve(uuid4(), uuid4())

        assert protected == frozenset()
        logger.error.assert_called_once()
        assert logger.error.call_args.kwargs["extra"]["protection_fail_open"] is True

    async def test_fail_closed_raises(self, store):
        store.protection_error = TimeoutError("engagement query timed out")

        with pytest.raises(ProtectionUnavailableError):
            await ProtectionResolver(store, fail_closed=True).resolve(uuid4(), uuid4())
