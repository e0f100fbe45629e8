"""Constants for article retention."""

# System defaults when a user has no stored retention settings
DEFAULT_ARTICLES_PER_FEED = 100
DEFAULT_UNREAD_AGE_DAYS = 30
DEFAULT_AUTO_CLEANUP_ENABLED = True

# Accepted ranges for user retention settings
MIN_ARTICLES_PER_FEED = 50
MAX_ARTICLES_PER_FEED = 500
MIN_UNREAD_AGE_DAYS = 7
MAX_UNREAD_AGE_DAYS = 90

# Batch deletion
DEFAULT_DELETE_BATCH_SIZE = 500

# Run log
DEFAULT_LOG_RETENTION_DAYS = 90
DEFAULT_LOG_PAGE_SIZE = 50
MAX_LOG_PAGE_SIZE = 100

# Postgres SQLSTATE raised when cleanup_feed_articles() is not deployed
UNDEFINED_FUNCTION_SQLSTATE = "42883"
