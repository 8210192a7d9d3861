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
Module containing selection strategies for genetic algorithms.

A selection strategy chooses the candidates of a population that will be used
to breed the next generation. Every strategy assumes that the population it is
given is sorted fittest first, and may select the same candidate many times.
Strategies hold no per-call state, so a single strategy may be used to select
from disjoint populations concurrently.
"""

from abc import ABCMeta, abstractmethod
import math
import sys
from typing import Any, Iterable, final

import numpy as np
from numpy.random import Generator
from typing_extensions import override

from evolvekit.datahandling.dataset import Dataset
from evolvekit.errors import PreconditionError
from evolvekit.evolution.candidates import (EvaluatedCandidate, Population,
                                            fittest)
from evolvekit.evolution.numbergenerators import (Interval, NumberGenerator,
                                                  as_generator, draw)

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "SelectionStrategy",
    "RouletteWheelSelection",
    "StochasticUniversalSampling",
    "RankSelection",
    "SigmaScaling",
    "TournamentSelection",
    "TruncationSelection",
    "IdentitySelection",
    "adjusted_fitness"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


# Tournament probabilities of one half or less give no selection pressure.
TOURNAMENT_PROBABILITY_RANGE = Interval(0.5, 1.0, low_open=True)

# Range of valid truncation ratios.
TRUNCATION_RATIO_RANGE = Interval(0.0, 1.0, low_open=True)


def adjusted_fitness(fitness: float, natural: bool) -> float:
    """
    Adjust a raw fitness score such that higher values are always better.

    Natural fitness scores are returned unchanged. Non-natural scores are
    inverted, except for a perfect score of zero, which is given the largest
    representable float.
    """
    if natural:
        return fitness
    if fitness == 0.0:
        return sys.float_info.max
    return 1.0 / fitness


def _proportionate_weights(
    population: Population,
    natural: bool
) -> np.ndarray:
    """
    Get the adjusted fitness of every candidate of a population, scaled such
    that the largest weight is one.
    """
    weights = np.fromiter(
        (adjusted_fitness(member.fitness, natural) for member in population),
        dtype=np.float64,
        count=len(population)
    )
    if (largest := weights.max()) > 0.0:
        weights /= largest
    return weights


class SelectionStrategy(metaclass=ABCMeta):
    """Base class for selection strategies."""

    __slots__ = ()

    @staticmethod
    def validate(population: Population, quantity: int) -> None:
        """
        Check that the given quantity of candidates can be selected from the
        given population.

        Raises
        ------
        `PreconditionError` - If the population is empty or the quantity is
        negative.
        """
        if not population:
            raise PreconditionError(
                "Cannot select candidates from an empty population."
            )
        if quantity < 0:
            raise PreconditionError(
                "Selection quantity must be non-negative. "
                f"Got; {quantity} of type {type(quantity)}."
            )

    @abstractmethod
    def select(
        self,
        population: Population,
        natural: bool,
        quantity: int,
        rng: Generator
    ) -> list[Any]:
        """
        Select a number of candidates from the population.

        Parameters
        ----------
        `population: Population` - The evaluated population, sorted such that
        the fittest candidate is first.

        `natural: bool` - Whether higher fitness scores are better.

        `quantity: int` - The number of selections to make, the same
        candidate may be selected more than once.

        `rng: Generator` - The random source, it must not be retained.

        Returns
        -------
        `list[Any]` - The selected candidates, without their fitness scores.
        """

    def __str__(self) -> str:
        return self.__class__.__name__


@final
class RouletteWheelSelection(SelectionStrategy):
    """
    Fitness-proportionate selection.

    Each candidate is given a slice of a roulette wheel proportionate to its
    (adjusted) fitness, and the wheel is spun once per selection.
    """

    __slots__ = ()

    @override
    def select(
        self,
        population: Population,
        natural: bool,
        quantity: int,
        rng: Generator
    ) -> list[Any]:
        self.validate(population, quantity)
        cumulative = np.cumsum(_proportionate_weights(population, natural))
        total = cumulative[-1]
        if total <= 0.0:
            indices = rng.integers(len(population), size=quantity)
        else:
            spins = rng.random(quantity) * total
            indices = np.searchsorted(cumulative, spins, side="left")
        return [population[index].candidate for index in indices]

    def __str__(self) -> str:
        return "Roulette Wheel Selection"


@final
class StochasticUniversalSampling(SelectionStrategy):
    """
    Stochastic universal sampling (SUS) selection.

    A fitness-proportionate strategy that spins a roulette wheel once, with
    one equally spaced pointer per selection. A candidate with an expected
    selection frequency of `e` is selected at least `floor(e)` and at most
    `ceil(e)` times, so the variance of plain roulette wheel selection is
    avoided.
    """

    __slots__ = ()

    @override
    def select(
        self,
        population: Population,
        natural: bool,
        quantity: int,
        rng: Generator
    ) -> list[Any]:
        self.validate(population, quantity)
        weights = _proportionate_weights(population, natural)
        total = weights.sum()
        if total <= 0.0:
            weights = np.ones(len(population))
            total = float(len(population))
        expectations = np.cumsum(weights) * (quantity / total)
        expectations[-1] = quantity
        offset = rng.random()
        selected: list[Any] = []
        for member, expectation in zip(population, expectations):
            while expectation > offset + len(selected):
                selected.append(member.candidate)
        return selected

    def __str__(self) -> str:
        return "Stochastic Universal Sampling"


def _rescored(
    population: Population,
    scores: Iterable[float]
) -> list[EvaluatedCandidate]:
    """Pair each candidate of a population with a replacement score."""
    return [
        EvaluatedCandidate(member.candidate, float(score))
        for member, score in zip(population, scores)
    ]


@final
class RankSelection(SelectionStrategy):
    """
    Rank-based selection.

    The fitness of each candidate is replaced by a score derived only from its
    rank in the population, the fittest of `n` candidates scores `n - 1` and
    the least fit scores zero. Selection is then delegated to a
    fitness-proportionate strategy with natural scores. This makes selection
    insensitive to the magnitude of differences in fitness.
    """

    __slots__ = {
        "__delegate": "The proportionate strategy selection is delegated to."
    }

    def __init__(self, delegate: SelectionStrategy | None = None) -> None:
        """
        Create a new rank selection strategy.

        Parameters
        ----------
        `delegate: SelectionStrategy | None = None` - The fitness-proportionate
        strategy to select with after ranking. If not given or None, defaults
        to stochastic universal sampling.
        """
        if delegate is None:
            delegate = StochasticUniversalSampling()
        self.__delegate: SelectionStrategy = delegate

    @property
    def delegate(self) -> SelectionStrategy:
        """Get the strategy selection is delegated to."""
        return self.__delegate

    @override
    def select(
        self,
        population: Population,
        natural: bool,
        quantity: int,
        rng: Generator
    ) -> list[Any]:
        self.validate(population, quantity)
        size = len(population)
        ranked = _rescored(population, (size - (index + 1)
                                        for index in range(size)))
        return self.__delegate.select(ranked, True, quantity, rng)

    def __str__(self) -> str:
        return "Rank Selection"


@final
class SigmaScaling(SelectionStrategy):
    """
    Sigma-scaled fitness-proportionate selection.

    Fitness scores are scaled by the mean and standard deviation of the
    population's fitness before selection is delegated to a
    fitness-proportionate strategy. Early on this keeps one or two relatively
    fit candidates from dominating a mostly unfit population, and in a mature
    population it amplifies small differences in fitness.
    """

    __slots__ = {
        "__delegate": "The proportionate strategy selection is delegated to."
    }

    def __init__(self, delegate: SelectionStrategy | None = None) -> None:
        if delegate is None:
            delegate = StochasticUniversalSampling()
        self.__delegate: SelectionStrategy = delegate

    @property
    def delegate(self) -> SelectionStrategy:
        """Get the strategy selection is delegated to."""
        return self.__delegate

    @staticmethod
    def scaled_fitness(
        fitness: float,
        mean: float,
        std_dev: float
    ) -> float:
        """
        Get the sigma-scaled fitness of a candidate.

        Scores are never less than 0.1, so very unfit candidates still have a
        small chance of selection. If the standard deviation is zero then
        every candidate scores one.
        """
        if std_dev == 0.0:
            return 1.0
        return max(0.1, 1.0 + ((fitness - mean) / (2.0 * std_dev)))

    @override
    def select(
        self,
        population: Population,
        natural: bool,
        quantity: int,
        rng: Generator
    ) -> list[Any]:
        self.validate(population, quantity)
        dataset = Dataset(member.fitness for member in population)
        mean = dataset.arithmetic_mean
        std_dev = dataset.standard_deviation
        scaled = _rescored(
            population,
            (self.scaled_fitness(member.fitness, mean, std_dev)
             for member in population)
        )
        return self.__delegate.select(scaled, natural, quantity, rng)

    def __str__(self) -> str:
        return "Sigma Scaling"


@final
class TournamentSelection(SelectionStrategy):
    """
    Tournament selection.

    For each selection two candidates are drawn uniformly at random, and the
    fitter of the two wins the tournament with the selection probability.
    Otherwise, the weaker candidate wins. Higher probabilities give stronger
    selection pressure.
    """

    __slots__ = {
        "__probability": "Generator of the selection probability."
    }

    def __init__(
        self,
        probability: float | NumberGenerator[float] = 0.7
    ) -> None:
        """
        Create a new tournament selection strategy.

        Parameters
        ----------
        `probability: float | NumberGenerator[float] = 0.7` - The probability
        that the fitter candidate wins a tournament, must be in the range
        (0.5, 1.0]. A generator is drawn from once per selection call.

        Raises
        ------
        `ConfigurationError` - If the probability is not in (0.5, 1.0].
        """
        self.__probability: NumberGenerator[float]
        self.probability = probability

    @property
    def probability(self) -> NumberGenerator[float]:
        """Get the generator of the selection probability."""
        return self.__probability

    @probability.setter
    def probability(self, probability: float | NumberGenerator[float]) -> None:
        self.__probability = as_generator(
            probability, TOURNAMENT_PROBABILITY_RANGE,
            "Tournament selection probability")

    @override
    def select(
        self,
        population: Population,
        natural: bool,
        quantity: int,
        rng: Generator
    ) -> list[Any]:
        self.validate(population, quantity)
        probability = draw(self.__probability, TOURNAMENT_PROBABILITY_RANGE,
                           "Tournament selection probability")
        selected: list[Any] = []
        for _ in range(quantity):
            first, second = rng.integers(len(population), size=2)
            candidate_1 = population[first]
            candidate_2 = population[second]
            winner = fittest(candidate_1, candidate_2, natural)
            if rng.random() >= probability:
                winner = candidate_2 if winner is candidate_1 else candidate_1
            selected.append(winner.candidate)
        return selected

    def __str__(self) -> str:
        return "Tournament Selection"


@final
class TruncationSelection(SelectionStrategy):
    """
    Truncation selection.

    Only the fittest fraction of the population (the selection ratio) is
    eligible for selection, the remainder is discarded. Eligible candidates
    are selected in order of fitness, repeatedly if more selections are
    needed than there are eligible candidates. Truncation selection is
    deterministic.
    """

    __slots__ = {
        "__ratio": "Generator of the selection ratio."
    }

    def __init__(
        self,
        ratio: float | NumberGenerator[float] = 0.5
    ) -> None:
        """
        Create a new truncation selection strategy.

        Parameters
        ----------
        `ratio: float | NumberGenerator[float] = 0.5` - The fraction of the
        population eligible for selection, must be in the range (0.0, 1.0].

        Raises
        ------
        `ConfigurationError` - If the ratio is not in (0.0, 1.0].
        """
        self.__ratio: NumberGenerator[float]
        self.ratio = ratio

    @property
    def ratio(self) -> NumberGenerator[float]:
        """Get the generator of the selection ratio."""
        return self.__ratio

    @ratio.setter
    def ratio(self, ratio: float | NumberGenerator[float]) -> None:
        self.__ratio = as_generator(
            ratio, TRUNCATION_RATIO_RANGE, "Truncation selection ratio")

    @override
    def select(
        self,
        population: Population,
        natural: bool,
        quantity: int,
        rng: Generator
    ) -> list[Any]:
        self.validate(population, quantity)
        ratio = draw(self.__ratio, TRUNCATION_RATIO_RANGE,
                     "Truncation selection ratio")
        # Halves round up.
        eligible = math.floor(ratio * len(population) + 0.5)
        eligible = max(1, min(eligible, quantity))
        selected: list[Any] = []
        while len(selected) < quantity:
            count = min(eligible, quantity - len(selected))
            selected.extend(member.candidate for member in population[:count])
        return selected

    def __str__(self) -> str:
        return "Truncation Selection"


@final
class IdentitySelection(SelectionStrategy):
    """
    Selection strategy that selects the fittest candidates, in order, without
    any randomness.
    """

    __slots__ = ()

    @override
    def select(
        self,
        population: Population,
        natural: bool,
        quantity: int,
        rng: Generator
    ) -> list[Any]:
        self.validate(population, quantity)
        if quantity > len(population):
            raise PreconditionError(
                "Identity selection cannot select more candidates than the "
                f"population holds. Got; {quantity} from {len(population)}."
            )
        return [member.candidate for member in population[:quantity]]

    def __str__(self) -> str:
        return "Identity Selection"
