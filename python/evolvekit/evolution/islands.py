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
Module containing the island model of evolution.

In the island model, several populations (the islands) evolve independently
for a number of generations (an epoch), after which some individuals migrate
between the islands. Islands evolve concurrently, one worker per island, and
migration happens on the calling thread once every island has finished its
epoch. Termination conditions are checked, once per epoch, against the
combined population of all islands.
"""

from abc import ABCMeta, abstractmethod
import logging
import time
from typing import Any, Generic, Iterable, Sequence, TypeVar, final

from numpy.random import Generator, default_rng
from typing_extensions import override

from evolvekit.concurrency.workerpool import WorkerPool, work_with
from evolvekit.errors import IllegalStateError, PreconditionError
from evolvekit.evolution.candidates import (Population, PopulationStats,
                                            candidates_of,
                                            compute_population_stats,
                                            shuffle_population,
                                            sort_population)
from evolvekit.evolution.engine import EvolutionEngine
from evolvekit.evolution.evaluation import FitnessEvaluator
from evolvekit.evolution.factories import CandidateFactory
from evolvekit.evolution.observers import EvolutionObserver
from evolvekit.evolution.operators.base import EvolutionaryOperator
from evolvekit.evolution.selection import SelectionStrategy
from evolvekit.evolution.termination import (GenerationCount,
                                             TerminationCondition)

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "Migration",
    "RingMigration",
    "RandomMigration",
    "IslandEvolutionObserver",
    "IslandEvolution"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


CT = TypeVar("CT")


class Migration(metaclass=ABCMeta):
    """
    Base class for migration strategies, which move individuals between the
    populations of islands.
    """

    __slots__ = ()

    @staticmethod
    def validate(islands: Sequence[Population], migrant_count: int) -> None:
        """
        Check that the given number of migrants can leave every island.

        Raises
        ------
        `PreconditionError` - If the migrant count is negative or greater
        than the size of any island's population.
        """
        if migrant_count < 0:
            raise PreconditionError(
                "Migrant count must be non-negative. "
                f"Got; {migrant_count} of type {type(migrant_count)}."
            )
        for index, island in enumerate(islands):
            if migrant_count > len(island):
                raise PreconditionError(
                    f"Cannot migrate {migrant_count} individuals from island "
                    f"{index} of population size {len(island)}."
                )

    @abstractmethod
    def migrate(
        self,
        islands: list[Population],
        migrant_count: int,
        rng: Generator
    ) -> None:
        """
        Migrate individuals between islands, modifying their populations in
        place.

        Parameters
        ----------
        `islands: list[Population]` - The populations of the islands.

        `migrant_count: int` - The number of individuals that leave each
        island.

        `rng: Generator` - The random source, it must not be retained.
        """


@final
class RingMigration(Migration):
    """
    Migration strategy in which the islands form a ring, and a random
    selection of individuals from each island moves to the next island in the
    ring (the last island's migrants moving to the first). Immigrants replace
    the emigrants of the receiving island.
    """

    __slots__ = ()

    @override
    def migrate(
        self,
        islands: list[Population],
        migrant_count: int,
        rng: Generator
    ) -> None:
        self.validate(islands, migrant_count)
        if migrant_count == 0 or not islands:
            return
        last_index = len(islands) - 1
        shuffle_population(islands[last_index], rng)
        migrants = islands[last_index][-migrant_count:]
        for index, island in enumerate(islands):
            immigrants = list(migrants)
            if index != last_index:
                shuffle_population(island, rng)
                migrants = island[-migrant_count:]
            island[-migrant_count:] = immigrants


@final
class RandomMigration(Migration):
    """
    Migration strategy in which a random selection of individuals leaves each
    island, and the emigrants of all islands are shuffled and redistributed
    between the islands. Migrants may return to the island they left, and
    migrants from one island may be split between different destinations.
    """

    __slots__ = ()

    @override
    def migrate(
        self,
        islands: list[Population],
        migrant_count: int,
        rng: Generator
    ) -> None:
        self.validate(islands, migrant_count)
        if migrant_count == 0:
            return
        pool: Population = []
        for island in islands:
            shuffle_population(island, rng)
            pool.extend(island[-migrant_count:])
            del island[-migrant_count:]
        shuffle_population(pool, rng)
        for index, island in enumerate(islands):
            start = index * migrant_count
            island.extend(pool[start:start + migrant_count])


class IslandEvolutionObserver(EvolutionObserver):
    """
    Base class for observers of the progress of an island evolution.

    The combined population of all islands is reported once per epoch through
    `population_update`, on the thread that called `evolve`. The population
    of each island is reported once per generation of that island through
    `island_population_update`, on the worker thread running the island, so
    implementations must be safe to call concurrently.
    """

    __slots__ = ()

    @abstractmethod
    def island_population_update(
        self,
        island_index: int,
        stats: PopulationStats
    ) -> None:
        """Called once per island generation with the island's statistics."""


@final
class _IslandUpdateForwarder(EvolutionObserver):
    """Forwards the updates of one island to the observers of an evolution."""

    __slots__ = {
        "__observers": "The list of observers of the island evolution.",
        "__index": "The index of the island."
    }

    def __init__(
        self,
        observers: list[IslandEvolutionObserver],
        index: int
    ) -> None:
        self.__observers = observers
        self.__index = index

    @override
    def population_update(self, stats: PopulationStats) -> None:
        for observer in tuple(self.__observers):
            observer.island_population_update(self.__index, stats)


class IslandEvolution(Generic[CT]):
    """
    An island model evolution, which evolves a number of islands, each with
    its own evolution engine, with periodic migration between them.
    """

    __slots__ = {
        "__islands": "The evolution engines of the islands.",
        "__migration": "The migration strategy.",
        "__natural": "Whether higher fitness scores are better.",
        "__rng": "The random source used for migration.",
        "__observers": "The observers of the island evolution.",
        "__satisfied": "The conditions satisfied by the last run.",
        "__logger": "The logger of the island evolution.",
        "__log": "Whether to log the progress of the evolution."
    }

    def __init__(
        self,
        islands: Iterable[EvolutionEngine[CT]],
        migration: Migration,
        natural: bool,
        rng: Generator | int | None = None,
        log: bool = False
    ) -> None:
        """
        Create a new island evolution from pre-configured islands.

        Parameters
        ----------
        `islands: Iterable[EvolutionEngine[CT]]` - The evolution engines of
        the islands. Each island is run on its own worker thread, so islands
        must not share random sources or other mutable state.

        `migration: Migration` - The migration strategy.

        `natural: bool` - Whether higher fitness scores are better, this
        must agree with the evaluators of the islands.

        `rng: Generator | int | None = None` - The random source used for
        migration, or a seed for a new one.

        `log: bool = False` - Whether to log the progress of the evolution
        to the "IslandEvolution" logger at debug level.

        Raises
        ------
        `PreconditionError` - If no islands are given.
        """
        self.__islands: tuple[EvolutionEngine[CT], ...] = tuple(islands)
        if not self.__islands:
            raise PreconditionError(
                "An island evolution must have at least one island."
            )
        self.__migration: Migration = migration
        self.__natural: bool = natural
        self.__rng: Generator = default_rng(rng)
        self.__observers: list[IslandEvolutionObserver] = []
        self.__satisfied: list[TerminationCondition] | None = None
        self.__logger = logging.getLogger("IslandEvolution")
        self.__logger.setLevel(logging.DEBUG)
        self.__log: bool = log
        for index, island in enumerate(self.__islands):
            island.add_observer(
                _IslandUpdateForwarder(self.__observers, index))

    @classmethod
    def create(
        cls,
        island_count: int,
        factory: CandidateFactory[CT],
        operator: EvolutionaryOperator[CT],
        evaluator: FitnessEvaluator[CT],
        selection: SelectionStrategy,
        migration: Migration,
        rng: Generator | int | None = None,
        log: bool = False
    ) -> "IslandEvolution[CT]":
        """
        Create a new island evolution with identically configured islands,
        each using a generational evolution strategy.

        Each island is given its own random generator, spawned from the
        given random source, and evaluates its candidates on its own worker
        thread.

        The operator and the selection strategy are shared by all islands,
        which evolve concurrently. The provided operators, selection
        strategies and number generators may be shared this way. A custom
        operator or strategy which keeps state between applications must
        guard that state itself.

        Raises
        ------
        `PreconditionError` - If the island count is less than one.
        """
        if island_count < 1:
            raise PreconditionError(
                "Island count must be at least one. "
                f"Got; {island_count} of type {type(island_count)}."
            )
        master = default_rng(rng)
        islands = [
            EvolutionEngine.generational(
                factory, operator, evaluator, selection,
                rng=island_rng, concurrency=1
            )
            for island_rng in master.spawn(island_count)
        ]
        return cls(islands, migration, evaluator.is_natural, master, log)

    @property
    def islands(self) -> tuple[EvolutionEngine[CT], ...]:
        """Get the evolution engines of the islands."""
        return self.__islands

    @property
    def migration(self) -> Migration:
        """Get the migration strategy."""
        return self.__migration

    @property
    def natural(self) -> bool:
        """Get whether higher fitness scores are better."""
        return self.__natural

    def add_observer(self, observer: IslandEvolutionObserver) -> None:
        """Add an observer of the island evolution."""
        if observer not in self.__observers:
            self.__observers.append(observer)

    def remove_observer(self, observer: IslandEvolutionObserver) -> None:
        """Remove an observer, if it was added."""
        if observer in self.__observers:
            self.__observers.remove(observer)

    @property
    def satisfied_conditions(self) -> list[TerminationCondition]:
        """
        Get the termination conditions that were satisfied when the last run
        finished, in the order they were given.

        Raises
        ------
        `IllegalStateError` - If the island evolution has not yet finished a
        run.
        """
        if self.__satisfied is None:
            raise IllegalStateError(
                "Island evolution has not terminated."
            )
        return list(self.__satisfied)

    def evolve(
        self,
        population_size: int,
        *,
        epoch_length: int,
        elites: int = 0,
        migrant_count: int = 0,
        end_on: TerminationCondition | Iterable[TerminationCondition] = ()
    ) -> tuple[Population, list[TerminationCondition]]:
        """
        Run the island evolution until a termination condition is satisfied.

        Parameters
        ----------
        `population_size: int` - The population size of each island.

        `epoch_length: int` - The number of generations each island runs for
        between migrations. The first generation of each epoch is the seeded
        population, so an epoch length of one only evaluates the islands and
        migrates between them, without selection or variation.

        `elites: int = 0` - The number of elites of each island.

        `migrant_count: int = 0` - The number of individuals that leave each
        island at each migration, must not exceed the population size.

        `end_on: TerminationCondition | Iterable[TerminationCondition] = ()` -
        The conditions that stop the evolution, checked after each migration
        against the combined population of all islands.

        Returns
        -------
        `tuple[Population, list[TerminationCondition]]` - The combined final
        population of all islands sorted fittest first, and the conditions
        satisfied by it.

        Raises
        ------
        `PreconditionError` - If any of the parameters are invalid.
        """
        conditions: list[TerminationCondition]
        if isinstance(end_on, TerminationCondition):
            conditions = [end_on]
        else:
            conditions = list(end_on)
        if population_size < 1:
            raise PreconditionError(
                "Population size must be at least one. "
                f"Got; {population_size} of type {type(population_size)}."
            )
        if not 0 <= elites < population_size:
            raise PreconditionError(
                "Elite count must be non-negative and less than the "
                f"population size ({population_size}). "
                f"Got; {elites} of type {type(elites)}."
            )
        if epoch_length < 1:
            raise PreconditionError(
                "Epoch length must be at least one generation. "
                f"Got; {epoch_length} of type {type(epoch_length)}."
            )
        if not 0 <= migrant_count <= population_size:
            raise PreconditionError(
                "Migrant count must be non-negative and not exceed the "
                f"population size ({population_size}). "
                f"Got; {migrant_count} of type {type(migrant_count)}."
            )
        if not conditions:
            raise PreconditionError(
                "At least one termination condition must be specified."
            )
        self.__satisfied = None

        start_time: float = time.perf_counter()
        epoch: int = 0
        seeds: list[list[Any]] = [[] for _ in self.__islands]
        pool = WorkerPool(len(self.__islands), log=self.__log)

        while True:
            results = pool.submit(
                work_with(
                    island.evolve,
                    population_size,
                    elites=elites,
                    seeds=island_seeds,
                    end_on=GenerationCount(epoch_length)
                )
                for island, island_seeds in zip(self.__islands, seeds)
            )
            populations: list[Population] = [
                population for population, _ in results
            ]

            self.__migration.migrate(populations, migrant_count, self.__rng)
            if self.__log:
                self.__logger.debug(
                    "Epoch %s: migrated %s individuals per island",
                    epoch, migrant_count
                )

            combined: Population = [
                member for population in populations for member in population
            ]
            sort_population(combined, self.__natural)
            stats = compute_population_stats(
                combined, self.__natural, elites, epoch, start_time)
            if self.__log:
                self.__logger.debug(
                    "Epoch %s: best fitness = %s, mean fitness = %s",
                    epoch, stats.best_fitness, stats.mean_fitness
                )
            for observer in tuple(self.__observers):
                observer.population_update(stats)

            satisfied = [condition for condition in conditions
                         if condition.is_satisfied(stats)]
            if satisfied:
                self.__satisfied = satisfied
                return combined, list(satisfied)

            seeds = [candidates_of(population) for population in populations]
            epoch += 1

    def evolve_best(
        self,
        population_size: int,
        *,
        epoch_length: int,
        elites: int = 0,
        migrant_count: int = 0,
        end_on: TerminationCondition | Iterable[TerminationCondition] = ()
    ) -> CT:
        """
        Run the island evolution and return only the fittest candidate of
        the final combined population.

        See `evolve` for a description of the parameters.
        """
        population, _ = self.evolve(
            population_size, elites=elites, epoch_length=epoch_length,
            migrant_count=migrant_count, end_on=end_on)
        return population[0].candidate
