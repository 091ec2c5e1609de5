"""Worker pool lifespan event."""

from concurrent.futures import ThreadPoolExecutor

from minihttpd.core.lifespan import BaseEvent


def create_worker_pool(max_workers: int) -> ThreadPoolExecutor:
    """Create the fixed-size thread pool that runs connection handlers."""
    return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="minihttpd-worker")


class WorkerPoolEvent(BaseEvent[ThreadPoolExecutor]):
    """Manages ThreadPoolExecutor lifecycle."""

    name = "worker_pool"

    def startup(self) -> ThreadPoolExecutor:
        return create_worker_pool(max_workers=self.settings.MAX_WORKERS)

    def shutdown(self, instance: ThreadPoolExecutor) -> None:
        """Drain in-flight connections, then stop the workers."""
        instance.shutdown(wait=True)
