# blackgold/infrastructure/concurrency/task_executor.py
import logging
from enum import Enum, auto
from typing import List, Callable, TypeVar, Any, Optional

from blackgold.infrastructure.concurrency.process_pool import ProcessPool
from blackgold.infrastructure.concurrency.thread_pool import ThreadPool

T = TypeVar("T")


class ExecutionMode(Enum):
    SEQUENTIAL = auto()
    MULTITHREAD = auto()
    MULTIPROCESS = auto()

    @classmethod
    def from_name(cls, name: str) -> 'ExecutionMode':
        """Map a config/CLI name ('sequential', 'thread', 'process') to a mode."""
        aliases = {
            "sequential": cls.SEQUENTIAL,
            "thread": cls.MULTITHREAD,
            "multithread": cls.MULTITHREAD,
            "process": cls.MULTIPROCESS,
            "multiprocess": cls.MULTIPROCESS
        }
        try:
            return aliases[name.lower()]
        except KeyError:
            raise ValueError(f"Unknown execution mode: {name}") from None


class TaskExecutor:
    def __init__(self, mode: ExecutionMode = ExecutionMode.SEQUENTIAL, max_workers: Optional[int] = None):
        self.mode = mode
        self.max_workers = max_workers
        self.logger = logging.getLogger("infrastructure.task_executor")

        if self.mode == ExecutionMode.MULTITHREAD:
            self.pool = ThreadPool(max_workers)
        elif self.mode == ExecutionMode.MULTIPROCESS:
            self.pool = ProcessPool(max_workers)
        else:
            self.pool = None

    def execute(self, tasks: List[Callable[[], T]]) -> List[T]:
        """Run every task and return the results in task order."""
        self.logger.debug(f"Executing {len(tasks)} tasks in {self.mode.name} mode")

        if self.mode == ExecutionMode.SEQUENTIAL:
            return [task() for task in tasks]
        return self.pool.execute_tasks(tasks)

