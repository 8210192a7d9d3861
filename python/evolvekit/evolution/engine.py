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
Module containing the evolution engine.

The engine owns the main loop of an evolutionary algorithm. It creates and
evaluates an initial population, and then repeatedly; sorts the population,
computes its statistics, notifies observers, checks the termination
conditions, and (if none are satisfied) asks its epocher to produce the
candidates of the next generation, which are then evaluated.

The engine owns the random source, and passes it to every stochastic
operation it performs. Given the same seed, and operators and evaluators that
use only the random source they are given, two runs of an engine produce the
same sequence of populations.

Example usage:
```
engine = EvolutionEngine.generational(
    BitStringFactory(20),
    Pipeline([Crossover(BitStringMater()), Mutation(BitStringMutater(0.02))]),
    FunctionEvaluator(lambda bits, _: bits.ones_count()),
    RouletteWheelSelection(),
    rng=42
)
population, satisfied = engine.evolve(
    100, elites=2, end_on=TargetFitness(20, natural=True))
```
"""

from abc import ABCMeta, abstractmethod
import logging
import time
from typing import Any, Generic, Iterable, TypeVar, final

from numpy.random import Generator, default_rng
from typing_extensions import override

from evolvekit.errors import IllegalStateError, PreconditionError
from evolvekit.evolution.candidates import (Population, PopulationStats,
                                            compute_population_stats,
                                            sort_population)
from evolvekit.evolution.evaluation import (FitnessEvaluator,
                                            evaluate_population)
from evolvekit.evolution.factories import CandidateFactory
from evolvekit.evolution.observers import EvolutionObserver
from evolvekit.evolution.operators.base import EvolutionaryOperator
from evolvekit.evolution.selection import SelectionStrategy
from evolvekit.evolution.termination import TerminationCondition

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "Epocher",
    "GenerationalEpocher",
    "EvolutionEngine"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


CT = TypeVar("CT")


class Epocher(Generic[CT], metaclass=ABCMeta):
    """
    Base class for epochers.

    An epocher implements one generation of an evolution strategy, producing
    the candidates of the next generation from the evaluated population of
    the current one.
    """

    __slots__ = ()

    @abstractmethod
    def epoch(
        self,
        population: Population,
        natural: bool,
        elite_count: int,
        rng: Generator
    ) -> list[CT]:
        """
        Produce the candidates of the next generation.

        Parameters
        ----------
        `population: Population` - The evaluated population of the current
        generation, sorted fittest first.

        `natural: bool` - Whether higher fitness scores are better.

        `elite_count: int` - The number of the fittest candidates to carry
        into the next generation unchanged.

        `rng: Generator` - The random source, it must not be retained.

        Returns
        -------
        `list[CT]` - The unevaluated candidates of the next generation, of
        the same size as the given population.
        """


@final
class GenerationalEpocher(Epocher[CT]):
    """
    Epocher implementing a generational evolution strategy.

    Every generation; the elite candidates are carried over unchanged, the
    selection strategy chooses parents for the remainder of the population,
    and the evolutionary operator is applied to the parents to create their
    offspring. The next generation is the offspring followed by the elites.
    """

    __slots__ = {
        "__operator": "The operator applied to the selected candidates.",
        "__selection": "The strategy selecting candidates for breeding."
    }

    def __init__(
        self,
        operator: EvolutionaryOperator[CT],
        selection: SelectionStrategy
    ) -> None:
        self.__operator: EvolutionaryOperator[CT] = operator
        self.__selection: SelectionStrategy = selection

    @property
    def operator(self) -> EvolutionaryOperator[CT]:
        """Get the evolutionary operator."""
        return self.__operator

    @property
    def selection(self) -> SelectionStrategy:
        """Get the selection strategy."""
        return self.__selection

    @override
    def epoch(
        self,
        population: Population,
        natural: bool,
        elite_count: int,
        rng: Generator
    ) -> list[CT]:
        elites = [member.candidate for member in population[:elite_count]]
        selected = self.__selection.select(
            population, natural, len(population) - elite_count, rng)
        offspring = self.__operator.apply(selected, rng)
        return list(offspring) + elites


class EvolutionEngine(Generic[CT]):
    """
    An evolution engine, which runs a single population evolutionary
    algorithm to completion.

    An engine may be run any number of times. Each run starts from a new
    initial population, and continues until at least one of the termination
    conditions given to that run is satisfied.
    """

    __slots__ = {
        "__factory": "The factory creating initial candidates.",
        "__evaluator": "The fitness evaluator.",
        "__epocher": "The epocher producing each new generation.",
        "__rng": "The random source.",
        "__concurrency": "The maximum number of concurrent evaluations.",
        "__observers": "The observers notified every generation.",
        "__satisfied": "The conditions satisfied by the last run.",
        "__logger": "The logger of the engine.",
        "__log": "Whether to log the progress of the evolution."
    }

    def __init__(
        self,
        factory: CandidateFactory[CT],
        evaluator: FitnessEvaluator[CT],
        epocher: Epocher[CT],
        *,
        rng: Generator | int | None = None,
        concurrency: int = 1,
        observers: Iterable[EvolutionObserver] = (),
        log: bool = False
    ) -> None:
        """
        Create a new evolution engine.

        Parameters
        ----------
        `factory: CandidateFactory[CT]` - The factory used to create the
        candidates of the initial population.

        `evaluator: FitnessEvaluator[CT]` - The fitness evaluator, it also
        decides whether fitness is natural.

        `epocher: Epocher[CT]` - The epocher that creates each new generation
        from the previous one.

        `rng: Generator | int | None = None` - The random source, or a seed
        for a new one. If None, a randomly seeded generator is used.

        `concurrency: int = 1` - The maximum number of candidates evaluated
        concurrently. Candidates are evaluated one at a time on the thread
        that called `evolve` if less than or equal to one.

        `observers: Iterable[EvolutionObserver] = ()` - Observers to notify
        at the end of every generation.

        `log: bool = False` - Whether to log the progress of the evolution
        to the "EvolutionEngine" logger at debug level.
        """
        self.__factory: CandidateFactory[CT] = factory
        self.__evaluator: FitnessEvaluator[CT] = evaluator
        self.__epocher: Epocher[CT] = epocher
        self.__rng: Generator = default_rng(rng)
        self.__concurrency: int = concurrency
        self.__observers: list[EvolutionObserver] = list(observers)
        self.__satisfied: list[TerminationCondition] | None = None
        self.__logger = logging.getLogger("EvolutionEngine")
        self.__logger.setLevel(logging.DEBUG)
        self.__log: bool = log

    @classmethod
    def generational(
        cls,
        factory: CandidateFactory[CT],
        operator: EvolutionaryOperator[CT],
        evaluator: FitnessEvaluator[CT],
        selection: SelectionStrategy,
        **kwargs: Any
    ) -> "EvolutionEngine[CT]":
        """
        Create a new evolution engine using a generational evolution strategy.

        Keyword arguments are passed to the engine's constructor.
        """
        return cls(factory, evaluator,
                   GenerationalEpocher(operator, selection), **kwargs)

    @property
    def factory(self) -> CandidateFactory[CT]:
        """Get the candidate factory."""
        return self.__factory

    @property
    def evaluator(self) -> FitnessEvaluator[CT]:
        """Get the fitness evaluator."""
        return self.__evaluator

    @property
    def epocher(self) -> Epocher[CT]:
        """Get the epocher."""
        return self.__epocher

    @property
    def natural(self) -> bool:
        """Get whether higher fitness scores are better."""
        return self.__evaluator.is_natural

    @property
    def rng(self) -> Generator:
        """Get the random source of the engine."""
        return self.__rng

    @property
    def concurrency(self) -> int:
        """Get the maximum number of concurrent evaluations."""
        return self.__concurrency

    @concurrency.setter
    def concurrency(self, concurrency: int) -> None:
        """Set the maximum number of concurrent evaluations."""
        self.__concurrency = concurrency

    @property
    def observers(self) -> tuple[EvolutionObserver, ...]:
        """Get the observers of the engine."""
        return tuple(self.__observers)

    def add_observer(self, observer: EvolutionObserver) -> None:
        """
        Add an observer to be notified at the end of every generation.

        Observers must not be added while the engine is running.
        """
        if observer not in self.__observers:
            self.__observers.append(observer)

    def remove_observer(self, observer: EvolutionObserver) -> None:
        """Remove an observer, if it was added."""
        if observer in self.__observers:
            self.__observers.remove(observer)

    @property
    def satisfied_conditions(self) -> list[TerminationCondition]:
        """
        Get the termination conditions that were satisfied when the last run
        of the engine finished, in the order they were given.

        Raises
        ------
        `IllegalStateError` - If the engine has not yet finished a run.
        """
        if self.__satisfied is None:
            raise IllegalStateError(
                "Evolution engine has not terminated."
            )
        return list(self.__satisfied)

    def evolve(
        self,
        population_size: int,
        *,
        elites: int = 0,
        seeds: Iterable[CT] = (),
        end_on: TerminationCondition | Iterable[TerminationCondition] = (),
        rng: Generator | int | None = None
    ) -> tuple[Population, list[TerminationCondition]]:
        """
        Run the evolution until a termination condition is satisfied.

        Parameters
        ----------
        `population_size: int` - The number of candidates in each generation,
        must be at least one.

        `elites: int = 0` - The number of the fittest candidates to carry into
        each next generation unchanged, must be less than the population size.

        `seeds: Iterable[CT] = ()` - Candidates to include in the initial
        population, seeds beyond the population size are discarded.

        `end_on: TerminationCondition | Iterable[TerminationCondition] = ()` -
        The conditions that stop the evolution, at least one is required.

        `rng: Generator | int | None = None` - If given, replaces the random
        source of the engine, for this run and all later runs.

        Returns
        -------
        `tuple[Population, list[TerminationCondition]]` - The final
        population sorted fittest first, and the conditions satisfied by it.

        Raises
        ------
        `PreconditionError` - If the population size, elite count, or
        termination conditions are invalid.

        Exceptions raised by the evaluator, operators, selection strategy or
        observers are propagated unchanged.
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
        if not conditions:
            raise PreconditionError(
                "At least one termination condition must be specified."
            )
        if rng is not None:
            self.__rng = default_rng(rng)
        self.__satisfied = None

        start_time: float = time.perf_counter()
        natural: bool = self.__evaluator.is_natural
        generation: int = 0

        candidates = self.__factory.seed(population_size, seeds, self.__rng)
        population = evaluate_population(
            candidates, self.__evaluator, self.__concurrency, self.__log)

        while True:
            sort_population(population, natural)
            stats = compute_population_stats(
                population, natural, elites, generation, start_time)
            if self.__log:
                self.__logger.debug(
                    "Generation %s: best fitness = %s, mean fitness = %s",
                    generation, stats.best_fitness, stats.mean_fitness
                )
            self.__notify(stats)

            satisfied = [condition for condition in conditions
                         if condition.is_satisfied(stats)]
            if satisfied:
                if self.__log:
                    self.__logger.debug(
                        "Terminated after %s generations on: %s",
                        generation + 1,
                        ", ".join(str(condition) for condition in satisfied)
                    )
                self.__satisfied = satisfied
                return population, list(satisfied)

            generation += 1
            candidates = self.__epocher.epoch(
                population, natural, elites, self.__rng)
            population = evaluate_population(
                candidates, self.__evaluator, self.__concurrency, self.__log)

    def evolve_best(
        self,
        population_size: int,
        *,
        elites: int = 0,
        seeds: Iterable[CT] = (),
        end_on: TerminationCondition | Iterable[TerminationCondition] = (),
        rng: Generator | int | None = None
    ) -> CT:
        """
        Run the evolution until a termination condition is satisfied, and
        return only the fittest candidate of the final population.

        See `evolve` for a description of the parameters.
        """
        population, _ = self.evolve(population_size, elites=elites,
                                    seeds=seeds, end_on=end_on, rng=rng)
        return population[0].candidate

    def __notify(self, stats: PopulationStats) -> None:
        """Notify all observers of the statistics of a generation."""
        for observer in self.__observers:
            observer.population_update(stats)
