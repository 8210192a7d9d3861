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

"""Module containing fitness evaluators and population evaluation."""

from abc import ABCMeta, abstractmethod
import threading
from typing import Any, Callable, Generic, Hashable, Sequence, TypeVar, final

from typing_extensions import override

from evolvekit.concurrency.workerpool import WorkerPool, work_with
from evolvekit.evolution.candidates import EvaluatedCandidate, Population

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "FitnessEvaluator",
    "FunctionEvaluator",
    "ZeroEvaluator",
    "FitnessCache",
    "evaluate_population"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


CT = TypeVar("CT")


class FitnessEvaluator(Generic[CT], metaclass=ABCMeta):
    """
    Base class for fitness evaluators.

    A fitness evaluator assigns a non-negative score to a candidate. Whether
    higher or lower scores are better is given by the `is_natural` property.

    The whole population of candidates is passed alongside the candidate being
    scored, to allow co-evolutionary fitness functions. Most evaluators simply
    ignore it, and are then said to be isolated.

    Evaluators may be called concurrently from multiple threads and so must
    not hold unsynchronised mutable state.
    """

    __slots__ = ()

    @abstractmethod
    def fitness(self, candidate: CT, population: Sequence[CT]) -> float:
        """Return the non-negative fitness score of the given candidate."""

    @property
    @abstractmethod
    def is_natural(self) -> bool:
        """
        Whether the fitness scores are natural, if True higher scores are
        better, otherwise lower scores are better.
        """


@final
class FunctionEvaluator(FitnessEvaluator[CT]):
    """A fitness evaluator that calls a function."""

    __slots__ = {
        "__function": "The fitness function.",
        "__natural": "Whether the fitness scores are natural."
    }

    def __init__(
        self,
        function: Callable[[CT, Sequence[CT]], float],
        natural: bool = True
    ) -> None:
        """
        Create a fitness evaluator from a function.

        Parameters
        ----------
        `function: (candidate: CT, population: Sequence[CT]) -> float` - The
        fitness function.

        `natural: bool = True` - Whether higher scores are better.
        """
        self.__function = function
        self.__natural: bool = natural

    @override
    def fitness(self, candidate: CT, population: Sequence[CT]) -> float:
        return self.__function(candidate, population)

    @property
    @override
    def is_natural(self) -> bool:
        return self.__natural


@final
class ZeroEvaluator(FitnessEvaluator[Any]):
    """An evaluator that scores every candidate zero."""

    __slots__ = {
        "__natural": "Whether the fitness scores are natural."
    }

    def __init__(self, natural: bool = True) -> None:
        self.__natural: bool = natural

    @override
    def fitness(self, candidate: Any, population: Sequence[Any]) -> float:
        return 0.0

    @property
    @override
    def is_natural(self) -> bool:
        return self.__natural


@final
class FitnessCache(FitnessEvaluator[CT]):
    """
    A memoizing wrapper around another fitness evaluator.

    The first time a candidate is scored the wrapped evaluator is called and
    its score stored, any later request for the same candidate returns the
    stored score without calling the wrapped evaluator again.

    Caching is only correct for isolated evaluators, whose scores do not
    depend on the rest of the population. The cache is safe to use from
    multiple threads at once.
    """

    __slots__ = {
        "__evaluator": "The wrapped fitness evaluator.",
        "__key": "Function mapping a candidate to its cache key.",
        "__cache": "Mapping of cache keys to fitness scores.",
        "__lock": "Lock guarding the cache mapping."
    }

    def __init__(
        self,
        evaluator: FitnessEvaluator[CT],
        key: Callable[[CT], Hashable] | None = None
    ) -> None:
        """
        Create a fitness cache.

        Parameters
        ----------
        `evaluator: FitnessEvaluator[CT]` - The evaluator to wrap.

        `key: ((candidate: CT) -> Hashable) | None = None` - A function that
        maps a candidate to a hashable cache key. Must be given for
        unhashable candidate types, such as lists or bit strings (for example
        `key=tuple` or `key=str`). If not given or None the candidate itself
        is used as the key.
        """
        self.__evaluator: FitnessEvaluator[CT] = evaluator
        self.__key: Callable[[CT], Hashable] | None = key
        self.__cache: dict[Hashable, float] = {}
        self.__lock = threading.Lock()

    def __len__(self) -> int:
        """Return the number of cached fitness scores."""
        with self.__lock:
            return len(self.__cache)

    @property
    def evaluator(self) -> FitnessEvaluator[CT]:
        """Get the wrapped fitness evaluator."""
        return self.__evaluator

    @override
    def fitness(self, candidate: CT, population: Sequence[CT]) -> float:
        key = candidate if self.__key is None else self.__key(candidate)
        with self.__lock:
            if key in self.__cache:
                return self.__cache[key]
        score = self.__evaluator.fitness(candidate, population)
        with self.__lock:
            return self.__cache.setdefault(key, score)

    @property
    @override
    def is_natural(self) -> bool:
        return self.__evaluator.is_natural

    def clear(self) -> None:
        """Remove all cached fitness scores."""
        with self.__lock:
            self.__cache.clear()


def evaluate_population(
    candidates: Sequence[CT],
    evaluator: FitnessEvaluator[CT],
    concurrency: int = 1,
    log: bool = False
) -> Population:
    """
    Score every candidate of a population.

    Parameters
    ----------
    `candidates: Sequence[CT]` - The candidates to evaluate.

    `evaluator: FitnessEvaluator[CT]` - The fitness evaluator, it is passed
    the whole sequence of candidates alongside each candidate it scores.

    `concurrency: int = 1` - The maximum number of concurrent evaluations.
    If less than or equal to one, candidates are evaluated one at a time on
    the calling thread.

    `log: bool = False` - Whether the worker pool should log its jobs.

    Returns
    -------
    `Population` - The evaluated candidates, in the same order as the
    candidates were given (not sorted by fitness).
    """
    scores: list[float]
    if concurrency <= 1:
        scores = [
            evaluator.fitness(candidate, candidates)
            for candidate in candidates
        ]
    else:
        pool = WorkerPool(concurrency, log=log)
        scores = pool.submit(
            work_with(evaluator.fitness, candidate, candidates)
            for candidate in candidates
        )
    return [
        EvaluatedCandidate(candidate, score)
        for candidate, score in zip(candidates, scores)
    ]
