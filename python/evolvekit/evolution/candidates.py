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
Module defining the population data model of an evolution.

A candidate is any object chosen by the user to represent a solution. Once
scored by a fitness evaluator it is wrapped in an `EvaluatedCandidate`, and a
population is simply a list of evaluated candidates. After sorting, the fittest
candidate of a population is always at index zero, where "fittest" means the
largest score for natural fitness and the smallest score for non-natural
fitness.
"""

import dataclasses
import time
from typing import Generic, Iterable, TypeAlias, TypeVar

from numpy.random import Generator

from evolvekit.datahandling.dataset import Dataset
from evolvekit.errors import NegativeFitnessError, PreconditionError

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "EvaluatedCandidate",
    "Population",
    "PopulationStats",
    "candidates_of",
    "compute_population_stats",
    "fittest",
    "shuffle_population",
    "sort_population"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


# Generic candidate type.
CT = TypeVar("CT")


@dataclasses.dataclass(frozen=True, order=True)
class EvaluatedCandidate(Generic[CT]):
    """
    A candidate paired with its fitness score.

    Equality, hashing and ordering consider only the fitness score, so that
    two different candidates with equal fitness compare equal. The natural
    ordering is ascending fitness, regardless of whether fitness is natural.

    Fields
    ------
    `candidate: CT` - The candidate solution.

    `fitness: float` - The non-negative fitness score of the candidate.

    Raises
    ------
    `NegativeFitnessError` - If the fitness score is negative.
    """

    candidate: CT = dataclasses.field(compare=False)
    fitness: float

    def __post_init__(self) -> None:
        if not self.fitness >= 0.0:
            raise NegativeFitnessError(
                "Fitness must be a non-negative number. "
                f"Got; {self.fitness} of type {type(self.fitness)}."
            )


Population: TypeAlias = list[EvaluatedCandidate]


def sort_population(population: Population, natural: bool) -> None:
    """
    Sort a population in place such that the fittest candidate is first.

    For natural fitness the population is sorted by descending score, for
    non-natural fitness by ascending score. The sort is stable, candidates
    with equal scores keep their relative order.
    """
    population.sort(key=lambda item: item.fitness, reverse=natural)


def shuffle_population(population: Population, rng: Generator) -> None:
    """Shuffle a population in place."""
    order = rng.permutation(len(population))
    population[:] = [population[index] for index in order]


def fittest(
    first: EvaluatedCandidate[CT],
    second: EvaluatedCandidate[CT],
    natural: bool
) -> EvaluatedCandidate[CT]:
    """
    Return the fitter of two evaluated candidates, or the first if their
    fitness is equal.
    """
    if natural:
        return second if second.fitness > first.fitness else first
    return second if second.fitness < first.fitness else first


def candidates_of(population: Iterable[EvaluatedCandidate[CT]]) -> list[CT]:
    """Strip the fitness scores from a population, keeping order."""
    return [item.candidate for item in population]


@dataclasses.dataclass(frozen=True)
class PopulationStats(Generic[CT]):
    """
    A snapshot of the state of a population at the end of a generation.

    Fields
    ------
    `best_candidate: CT` - The fittest candidate of the generation.

    `best_fitness: float` - The fitness of the fittest candidate.

    `mean_fitness: float` - The arithmetic mean of the fitness scores.

    `fitness_std_dev: float` - The population standard deviation of the
    fitness scores.

    `natural: bool` - Whether higher fitness scores are better.

    `population_size: int` - The number of candidates in the population.

    `elite_count: int` - The number of elite candidates preserved between
    generations.

    `generation: int` - The zero-based index of the generation.

    `elapsed: float` - The wall-clock time in seconds since the evolution
    started.
    """

    best_candidate: CT
    best_fitness: float
    mean_fitness: float
    fitness_std_dev: float
    natural: bool
    population_size: int
    elite_count: int
    generation: int
    elapsed: float


def compute_population_stats(
    population: Population,
    natural: bool,
    elite_count: int,
    generation: int,
    start_time: float
) -> PopulationStats:
    """
    Compute the statistics of a sorted population.

    Parameters
    ----------
    `population: Population` - The population, sorted fittest first.

    `natural: bool` - Whether higher fitness scores are better.

    `elite_count: int` - The number of elites preserved per generation.

    `generation: int` - The zero-based index of the generation.

    `start_time: float` - The value of `time.perf_counter()` when the
    evolution started.

    Raises
    ------
    `PreconditionError` - If the population is empty.
    """
    if not population:
        raise PreconditionError(
            "Cannot compute the statistics of an empty population."
        )
    dataset = Dataset(item.fitness for item in population)
    return PopulationStats(
        best_candidate=population[0].candidate,
        best_fitness=population[0].fitness,
        mean_fitness=dataset.arithmetic_mean,
        fitness_std_dev=dataset.standard_deviation,
        natural=natural,
        population_size=len(dataset),
        elite_count=elite_count,
        generation=generation,
        elapsed=time.perf_counter() - start_time
    )
