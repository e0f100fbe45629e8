from newsreel.article_cleanup.infrastructure.cleanup_worker import (
    worker as article_cleanup_worker,
)
from newsreel.worker.worker import Worker

worker = Worker()
worker.include_subworker(article_cleanup_worker)


class WorkerSettings:
    functions = worker.functions
    cron_jobs = worker.cron_jobs
    redis_settings = worker.redis_settings
    on_startup = worker.on_startup
    on_shutdown = worker.on_shutdown
    retry_jobs = worker.retry_jobs
    job_timeout = worker.job_timeout
    max_jobs = worker.max_jobs
    health_check_interval = worker.health_check_interval
