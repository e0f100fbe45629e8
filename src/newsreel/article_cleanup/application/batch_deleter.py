from typing import TYPE_CHECKING, Sequence
from uuid import UUID

from newsreel.article_cleanup.constants import DEFAULT_DELETE_BATCH_SIZE
from newsreel.main.logging import get_logger

if TYPE_CHECKING:
    from newsreel.article_cleanup.domain.repositories import ArticleRetentionRepository

logger = get_logger(__name__)


def chunked(ids: Sequence[UUID], size: int) -> list[list[UUID]]:
    return [list(ids[i : i + size]) for i in range(0, len(ids), size)]


class BatchDeleter:
    """Deletes articles in bounded chunks, one store operation per chunk.

    A failed chunk is logged and counts as zero; the remaining chunks still
    run. Cleanup is re-runnable, so partial progress beats aborting.
    """

    def __init__(
        self,
        article_repo: "ArticleRetentionRepository",
        batch_size: int = DEFAULT_DELETE_BATCH_SIZE,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.article_repo = article_repo
        self.batch_size = batch_size

    async def delete(self, article_ids: Sequence[UUID]) -> int:
        if not article_ids:
            logger.debug("No articles to delete")
            return 0

        batches = chunked(article_ids, self.batch_size)
        total_deleted = 0
        failed_batches = 0

        logger.info(
            f"Deleting {len(article_ids)} articles in {len(batches)} batches",
            extra={"article_count": len(article_ids), "batch_size": self.batch_size},
        )

        for batch_number, batch in enumerate(batches, start=1):
            try:
                deleted = await self.article_repo.delete_articles(batch)
            except Exception as exc:
                failed_batches += 1
                logger.error(
                    f"Batch {batch_number}/{len(batches)} failed",
                    extra={"batch_number": batch_number, "batch_length": len(batch), "error": str(exc)},
                    exc_info=True,
                )
                continue

            total_deleted += deleted
            logger.debug(
                f"Batch {batch_number}/{len(batches)} deleted {deleted} articles",
                extra={"batch_number": batch_number, "deleted": deleted},
            )

        if failed_batches:
            logger.warning(
                f"Batch deletion finished with {failed_batches} failed batches: "
                f"{total_deleted}/{len(article_ids)} articles deleted"
            )
        else:
            logger.info(f"Batch deletion complete: {total_deleted}/{len(article_ids)} articles deleted")

        return total_deleted
