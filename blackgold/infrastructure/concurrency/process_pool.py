# blackgold/infrastructure/concurrency/process_pool.py
import concurrent.futures
import logging
import multiprocessing
from typing import List, Callable, Optional, TypeVar

T = TypeVar('T')


class ProcessPool:
    """
    Manages a pool of worker processes for CPU-bound tasks.
    Tasks must be picklable (module-level functions or functools.partial of them).
    """
    def __init__(self, max_workers: Optional[int] = None):
        """
        Args:
            max_workers: Maximum number of worker processes (defaults to CPU count - 1)
        """
        self.logger = logging.getLogger("infrastructure.process_pool")
        cpu_count = multiprocessing.cpu_count()
        self.max_workers = max_workers or max(1, cpu_count - 1)
        self.logger.info(f"Initialized process pool with {self.max_workers} workers")

    def execute_tasks(self, tasks: List[Callable[[], T]]) -> List[T]:
        """
        Execute tasks across multiple processes.

        Returns:
            List of results in the order tasks were submitted
        """
        self.logger.debug(f"Executing {len(tasks)} tasks with {self.max_workers} processes")

        with concurrent.futures.ProcessPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(task) for task in tasks]

            results = []
            for future in futures:
                try:
                    results.append(future.result())
                except Exception as e:
                    self.logger.error(f"Task failed: {str(e)}")
                    raise

        return results
