from __future__ import annotations

from functools import wraps

from arq.connections import RedisSettings
from arq.cron import cron

from newsreel.database.database import sessionmanager
from newsreel.main.config import get_settings
from newsreel.main.container.container import Container
from newsreel.main.logging import get_logger

logger = get_logger(__name__)


class Worker:
    """
    Worker class responsible for registering and executing functions and cron jobs.

    One Container is built per worker process at startup and shared by every
    job, so process-wide state such as the cleanup scheduler's run guard is
    seen by all of them.

    Attributes:
        functions (list): List of registered functions.
        cron_jobs (list): List of registered cron jobs.
        redis_settings (RedisSettings): Redis settings for the worker.
        on_startup (callable): Function to call on startup.
        on_shutdown (callable): Function to call on shutdown.
        retry_jobs (bool): Flag to indicate if jobs should be retried.
        job_timeout (int): Timeout for jobs in seconds.
        max_jobs (int): Maximum number of jobs.

    Methods:
        startup(ctx):
            Initializes the database engine and the shared container.

        shutdown(ctx):
            Releases the Redis client and the database engine.

        function():
            Decorator to register a queued function.

        cron_job(**decorator_kwargs):
            Decorator to register a cron job with additional arguments.

        include_subworker(sub_worker: Worker):
            Includes functions and cron jobs from a sub-worker.
    """

    def __init__(self):
        settings = get_settings()
        self.functions = []
        self.cron_jobs = []
        self.redis_settings = RedisSettings(
            host=settings.redis_host, port=settings.redis_port
        )
        self.on_startup = self.startup
        self.on_shutdown = self.shutdown
        self.retry_jobs = False
        self.job_timeout = settings.worker_job_timeout_seconds
        self.max_jobs = settings.worker_max_jobs
        self.health_check_interval = 60  # seconds

    @staticmethod
    def _get_container(ctx: dict) -> Container:
        container = ctx.get("container")
        if container is None:
            container = Container()
            ctx["container"] = container
        return container

    async def startup(self, ctx):
        settings = get_settings()
        sessionmanager.init(settings.database_url)

        ctx["container"] = Container()
        logger.info("Worker started")

    async def shutdown(self, ctx):
        container: Container | None = ctx.get("container")
        if container is not None and container.redis_client.initialized:
            await container.redis_client().aclose()

        await sessionmanager.close()
        logger.info("Worker stopped")

    def function(self):
        def decorator(func):
            @wraps(func)
            async def wrapper(*args):
                ctx, params = args[0], args[1]
                logger.debug(
                    f"Executing {func.__name__} with job {ctx.get('job_id')} and params {params}"
                )

                container = self._get_container(ctx)
                return await func(ctx.get("job_id"), params, container=container)

            self.functions.append(wrapper)
            return wrapper

        return decorator

    def cron_job(self, **decorator_kwargs):
        def decorator(func):
            @wraps(func)
            async def wrapper(*args):
                logger.debug(f"Executing {func.__name__}")

                ctx = args[0] if args else {}
                container = self._get_container(ctx)
                return await func(container=container)

            self.cron_jobs.append(cron(wrapper, **decorator_kwargs))
            return wrapper

        return decorator

    def include_subworker(self, sub_worker: Worker):
        self.functions.extend(sub_worker.functions)
        self.cron_jobs.extend(sub_worker.cron_jobs)

        logger.debug(
            "Including functions from subworker: %s",
            [func.__name__ for func in sub_worker.functions],
        )
        logger.debug(
            "Including cron jobs from subworker: %s",
            sub_worker.cron_jobs,
        )
