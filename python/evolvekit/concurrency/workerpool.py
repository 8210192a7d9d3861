###############################################################################
# Copyright (C) 2023 Oliver Michael Kamperis
# Email: olliekampo@gmail.com
#
# This program is free software: you can redistribute it and/or modify it under
# the terms of the GNU General Public License as published by the Free Software
# Foundation, either version 3 of the License, or any later version.
#
# This program is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS
# FOR A PARTICULAR PURPOSE. See the GNU General Public License for details.
#
# You should have received a copy of the GNU General Public License along with
# this program. If not, see <https://www.gnu.org/licenses/>.

"""Module containing a bounded-concurrency worker pool."""

from abc import ABCMeta, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
import logging
import os
import time
from typing import Any, Callable, Generic, Iterable, ParamSpec, TypeVar, final

from evolvekit.concurrency.atomic import AtomicNumber

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "Worker",
    "FunctionWorker",
    "work_with",
    "WorkerPool"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


SP = ParamSpec("SP")
ST = TypeVar("ST")


class Worker(Generic[ST], metaclass=ABCMeta):
    """A unit of work that can be submitted to a worker pool."""

    __slots__ = ()

    @property
    def name(self) -> str:
        """Get a name for the worker, used when logging."""
        return self.__class__.__name__

    @abstractmethod
    def work(self) -> ST:
        """Perform the work and return its result."""


@final
class FunctionWorker(Worker[ST]):
    """A worker that calls a function with fixed arguments."""

    __slots__ = {
        "__func": "The function to call.",
        "__args": "The positional arguments to pass to the function.",
        "__kwargs": "The keyword arguments to pass to the function."
    }

    def __init__(
        self,
        func: Callable[SP, ST],
        *args: SP.args,
        **kwargs: SP.kwargs
    ) -> None:
        """Create a worker that calls `func(*args, **kwargs)`."""
        self.__func: Callable[..., ST] = func
        self.__args: tuple[Any, ...] = args
        self.__kwargs: dict[str, Any] = kwargs

    @property
    def name(self) -> str:
        return getattr(self.__func, "__name__", repr(self.__func))

    def work(self) -> ST:
        return self.__func(*self.__args, **self.__kwargs)


def work_with(
    func: Callable[SP, ST],
    *args: SP.args,
    **kwargs: SP.kwargs
) -> FunctionWorker[ST]:
    """
    Adapt a function into a worker.

    The returned worker calls `func(*args, **kwargs)` when it is run.
    """
    return FunctionWorker(func, *args, **kwargs)


@final
class WorkerPool:
    """
    A pool that runs batches of workers concurrently, with at most a fixed
    number of workers running at any one time.

    The pool holds no state between submissions, each call to `submit` runs
    its batch on a fresh thread pool executor that is shut down before the
    call returns.
    """

    __POOLS: AtomicNumber[int] = AtomicNumber(0)

    __slots__ = {
        "__name": "The name of the worker pool.",
        "__logger": "The logger used to log jobs.",
        "__log": "Whether to log jobs.",
        "__max_concurrency": "The maximum number of workers run at once."
    }

    @classmethod
    def __get_pool_name(cls) -> str:
        """Returns a unique name for a worker pool."""
        with cls.__POOLS:
            cls.__POOLS += 1
            return f"{cls.__name__} [{cls.__POOLS.get_obj()}]"

    def __init__(
        self,
        max_concurrency: int | None = None,
        pool_name: str | None = None,
        log: bool = False
    ) -> None:
        """
        Create a new worker pool.

        Parameters
        ----------
        `max_concurrency: int | None = None` - The maximum number of workers
        allowed to run at the same time. If not given or None, the number of
        CPUs on the system is used.

        `pool_name: str | None = None` - The name of the pool. If not given or
        None, a unique name is generated.

        `log: bool = False` - Whether to log jobs submitted to the pool.

        Raises
        ------
        `ValueError` - If `max_concurrency` is less than or equal to 0.
        """
        if max_concurrency is None:
            max_concurrency = os.cpu_count()
        if max_concurrency is None:
            max_concurrency = 1
        if max_concurrency <= 0:
            raise ValueError(
                "Maximum concurrency must be greater than 0. "
                f"Got; {max_concurrency} of type {type(max_concurrency)}."
            )
        if pool_name is None:
            pool_name = self.__get_pool_name()
        self.__name: str = pool_name
        self.__logger = logging.getLogger("WorkerPool")
        self.__logger.setLevel(logging.DEBUG)
        self.__log: bool = log
        self.__max_concurrency: int = max_concurrency

    @property
    def name(self) -> str:
        """Get the name of the worker pool."""
        return self.__name

    @property
    def max_concurrency(self) -> int:
        """Get the maximum number of workers run at the same time."""
        return self.__max_concurrency

    def submit(self, tasks: Iterable[Worker[ST]]) -> list[ST]:
        """
        Run the given workers concurrently and block until all of them have
        finished.

        Results are returned in the same order as the workers were given,
        regardless of the order in which they completed. If any worker raises
        an exception, the exception of the first such worker (by position) is
        re-raised once all workers have finished.
        """
        tasks = list(tasks)
        if not tasks:
            return []
        max_workers = min(self.__max_concurrency, len(tasks))
        if self.__log:
            self.__logger.debug(
                "%s: Submitting %s jobs on %s workers",
                self.__name, len(tasks), max_workers
            )
        futures: list[Future[ST]]
        with ThreadPoolExecutor(
            max_workers,
            thread_name_prefix=self.__name
        ) as executor:
            futures = [
                executor.submit(self.__run, index, task)
                for index, task in enumerate(tasks)
            ]
        return [future.result() for future in futures]

    def __run(self, index: int, task: Worker[ST]) -> ST:
        """Run a single worker, logging its start and finish."""
        if not self.__log:
            return task.work()
        self.__logger.debug(
            "%s: Starting job %s -> %s", self.__name, index, task.name
        )
        start_time: float = time.perf_counter()
        try:
            return task.work()
        finally:
            self.__logger.debug(
                "%s: Job %s -> %s finished in %.6fs",
                self.__name, index, task.name,
                time.perf_counter() - start_time
            )
