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

"""
Module containing termination conditions for evolution engines.

An engine checks its termination conditions once per generation, after the
population has been evaluated and observers notified, and stops as soon as any
of them is satisfied.
"""

from abc import ABCMeta, abstractmethod
from typing import final

from typing_extensions import override

from evolvekit.concurrency.atomic import AtomicBool
from evolvekit.errors import ConfigurationError
from evolvekit.evolution.candidates import PopulationStats

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "TerminationCondition",
    "ElapsedTime",
    "GenerationCount",
    "TargetFitness",
    "UserAbort"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class TerminationCondition(metaclass=ABCMeta):
    """Base class for termination conditions."""

    __slots__ = ()

    @abstractmethod
    def is_satisfied(self, stats: PopulationStats) -> bool:
        """
        Determine whether evolution should stop, given the statistics of the
        population of the current generation.
        """

    @abstractmethod
    def __str__(self) -> str:
        """Get a human readable description of the condition."""


@final
class ElapsedTime(TerminationCondition):
    """
    Satisfied once a given wall-clock time has passed since evolution
    started.
    """

    __slots__ = {
        "__seconds": "The maximum duration of the evolution in seconds."
    }

    def __init__(self, seconds: float) -> None:
        if seconds < 0.0:
            raise ConfigurationError(
                "Elapsed time must be non-negative. "
                f"Got; {seconds} of type {type(seconds)}."
            )
        self.__seconds: float = seconds

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.__seconds!r})"

    @override
    def __str__(self) -> str:
        return f"Elapsed Time ({self.__seconds}s)"

    @property
    def seconds(self) -> float:
        """Get the duration in seconds."""
        return self.__seconds

    @override
    def is_satisfied(self, stats: PopulationStats) -> bool:
        return stats.elapsed >= self.__seconds


@final
class GenerationCount(TerminationCondition):
    """
    Satisfied once a given number of generations have run.

    The initial population is the first generation, so with a count of `k`
    evolution stops at the generation with index `k - 1`.
    """

    __slots__ = {
        "__count": "The number of generations to run."
    }

    def __init__(self, count: int) -> None:
        """
        Create a new generation count condition.

        Raises
        ------
        `ConfigurationError` - If the count is less than one.
        """
        if count < 1:
            raise ConfigurationError(
                "Generation count must be at least one. "
                f"Got; {count} of type {type(count)}."
            )
        self.__count: int = count

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.__count!r})"

    @override
    def __str__(self) -> str:
        return f"Reached {self.__count} generations"

    @property
    def count(self) -> int:
        """Get the number of generations."""
        return self.__count

    @override
    def is_satisfied(self, stats: PopulationStats) -> bool:
        return stats.generation + 1 >= self.__count


@final
class TargetFitness(TerminationCondition):
    """
    Satisfied once the fittest candidate of a population reaches a target
    fitness, at or above the target for natural fitness, and at or below it
    otherwise.
    """

    __slots__ = {
        "__fitness": "The target fitness.",
        "__natural": "Whether higher fitness scores are better."
    }

    def __init__(self, fitness: float, natural: bool) -> None:
        self.__fitness: float = fitness
        self.__natural: bool = natural

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}"
                f"({self.__fitness!r}, natural={self.__natural!r})")

    @override
    def __str__(self) -> str:
        return f"Reached target fitness of {self.__fitness:f}"

    @property
    def fitness(self) -> float:
        """Get the target fitness."""
        return self.__fitness

    @property
    def natural(self) -> bool:
        """Get whether higher fitness scores are better."""
        return self.__natural

    @override
    def is_satisfied(self, stats: PopulationStats) -> bool:
        if self.__natural:
            return stats.best_fitness >= self.__fitness
        return stats.best_fitness <= self.__fitness


@final
class UserAbort(TerminationCondition):
    """
    Satisfied once `abort` has been called.

    The condition may be aborted from any thread. It stays aborted, and will
    stop any further evolution it is passed to, until it is `reset`.
    """

    __slots__ = {
        "__aborted": "Atomic flag set when abort is called."
    }

    def __init__(self) -> None:
        self.__aborted = AtomicBool(False)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(aborted={self.aborted!r})"

    @override
    def __str__(self) -> str:
        return "Abort called"

    @property
    def aborted(self) -> bool:
        """Get whether abort has been called since the last reset."""
        return bool(self.__aborted)

    def abort(self) -> None:
        """Abort the evolution."""
        with self.__aborted:
            self.__aborted.set_obj(True)

    def reset(self) -> None:
        """Clear the abort flag so that the condition may be used again."""
        with self.__aborted:
            self.__aborted.set_obj(False)

    @override
    def is_satisfied(self, stats: PopulationStats) -> bool:
        return bool(self.__aborted)
