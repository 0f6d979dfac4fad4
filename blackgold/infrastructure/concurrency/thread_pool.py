# blackgold/infrastructure/concurrency/thread_pool.py
import concurrent.futures
import logging
from typing import Callable, List, Optional, TypeVar

T = TypeVar("T")


class ThreadPool:
    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers
        self.logger = logging.getLogger("infrastructure.thread_pool")

    def execute_tasks(self, tasks: List[Callable[[], T]]) -> List[T]:
        """Run tasks on worker threads; results come back in submission order."""
        self.logger.debug(f"Executing {len(tasks)} tasks with {self.max_workers} workers")
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(task) for task in tasks]
            return [future.result() for future in futures]
