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
Module containing the crossover operator and the maters it delegates to.

Crossover (or recombination) generates two offspring from two parents, each
of which is some combination of the parents' genes. The `Crossover` operator
pairs up the selected candidates and decides whether each pair is mated, and
with how many crossover points, while a `Mater` does the actual mating for a
specific candidate representation.
"""

from abc import ABCMeta, abstractmethod
from typing import Any, Generic, Sequence, TypeVar, final

import numpy as np
from numpy.random import Generator
from typing_extensions import override

from evolvekit.errors import PreconditionError
from evolvekit.evolution.bitstring import BitString
from evolvekit.evolution.numbergenerators import (Interval, NumberGenerator,
                                                  as_generator, draw)
from evolvekit.evolution.operators.base import (EvolutionaryOperator,
                                                copy_sequence,
                                                rebuild_sequence)

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "Mater",
    "Crossover",
    "BitStringMater",
    "SequenceMater",
    "StringMater",
    "PMXMater",
    "CycleMater"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


CT = TypeVar("CT")
ST = TypeVar("ST", bound=Sequence[Any])

# Range of valid crossover probabilities.
PROBABILITY_RANGE = Interval(0.0, 1.0)

# Range of valid numbers of crossover points.
POINTS_RANGE = Interval(0, 2 ** 31 - 1)


def _check_lengths(parent_1: Sequence[Any], parent_2: Sequence[Any]) -> None:
    """Raise an error if two parents are of different lengths."""
    if len(parent_1) != len(parent_2):
        raise PreconditionError(
            "Cannot mate parents of different lengths. "
            f"Got; {len(parent_1)} and {len(parent_2)}."
        )


class Mater(Generic[CT], metaclass=ABCMeta):
    """
    Base class for maters.

    A mater generates two offspring from two parents, using a given number of
    crossover points. The parents must not be modified.
    """

    __slots__ = ()

    @abstractmethod
    def mate(
        self,
        parent_1: CT,
        parent_2: CT,
        points: int,
        rng: Generator
    ) -> tuple[CT, CT]:
        """
        Mate two parents and return two offspring.

        Parameters
        ----------
        `parent_1: CT` - The first parent.

        `parent_2: CT` - The second parent.

        `points: int` - The number of crossover points to use.

        `rng: Generator` - The random number generator.
        """


@final
class Crossover(EvolutionaryOperator[CT]):
    """
    Operator that mates pairs of selected candidates.

    The selected candidates are shuffled (to remove any bias from the order
    in which they were selected) and then taken in consecutive pairs. Each
    pair is mated with the configured crossover probability, otherwise both
    parents pass through unchanged. If there is an odd number of candidates,
    the last one passes through unchanged.

    Both the crossover probability and the number of crossover points may be
    given as constants or as number generators, in which case a new value is
    drawn for each pair.
    """

    __slots__ = {
        "__mater": "The mater used to mate pairs of candidates.",
        "__probability": "Generator of the crossover probability.",
        "__points": "Generator of the number of crossover points."
    }

    def __init__(
        self,
        mater: Mater[CT],
        probability: float | NumberGenerator[float] = 1.0,
        points: int | NumberGenerator[int] = 1
    ) -> None:
        """
        Create a new crossover operator.

        Parameters
        ----------
        `mater: Mater[CT]` - The mater for the candidate representation.

        `probability: float | NumberGenerator[float] = 1.0` - The probability
        that a pair of candidates is mated, in the range [0, 1].

        `points: int | NumberGenerator[int] = 1` - The number of crossover
        points, in the range [0, 2^31 - 1].

        Raises
        ------
        `ConfigurationError` - If the probability or number of points is out
        of range.
        """
        self.__mater: Mater[CT] = mater
        self.__probability: NumberGenerator[float]
        self.__points: NumberGenerator[int]
        self.probability = probability
        self.points = points

    @property
    def mater(self) -> Mater[CT]:
        """Get the mater of the operator."""
        return self.__mater

    @property
    def probability(self) -> NumberGenerator[float]:
        """Get the generator of the crossover probability."""
        return self.__probability

    @probability.setter
    def probability(self, probability: float | NumberGenerator[float]) -> None:
        """Set the crossover probability, a constant or a generator."""
        self.__probability = as_generator(
            probability, PROBABILITY_RANGE, "Crossover probability")

    @property
    def points(self) -> NumberGenerator[int]:
        """Get the generator of the number of crossover points."""
        return self.__points

    @points.setter
    def points(self, points: int | NumberGenerator[int]) -> None:
        """Set the number of crossover points, a constant or a generator."""
        self.__points = as_generator(
            points, POINTS_RANGE, "Number of crossover points")

    @override
    def apply(self, selected: list[CT], rng: Generator) -> list[CT]:
        shuffled = [selected[index]
                    for index in rng.permutation(len(selected))]
        offspring: list[CT] = []
        for index in range(0, len(shuffled) - 1, 2):
            parent_1, parent_2 = shuffled[index], shuffled[index + 1]
            probability = draw(self.__probability, PROBABILITY_RANGE,
                               "Crossover probability")
            if rng.random() >= probability:
                offspring.extend((parent_1, parent_2))
                continue
            points = int(draw(self.__points, POINTS_RANGE,
                              "Number of crossover points"))
            offspring.extend(
                self.__mater.mate(parent_1, parent_2, points, rng))
        if len(shuffled) % 2 == 1:
            offspring.append(shuffled[-1])
        return offspring


@final
class BitStringMater(Mater[BitString]):
    """
    Mater for bit strings.

    For each crossover point a position in `[1, length - 1]` is chosen and the
    bits below that position are swapped between the offspring.
    """

    __slots__ = ()

    @override
    def mate(
        self,
        parent_1: BitString,
        parent_2: BitString,
        points: int,
        rng: Generator
    ) -> tuple[BitString, BitString]:
        _check_lengths(parent_1, parent_2)
        offspring_1, offspring_2 = parent_1.copy(), parent_2.copy()
        if len(parent_1) < 2:
            return offspring_1, offspring_2
        for _ in range(points):
            cross = int(rng.integers(1, len(parent_1)))
            offspring_1.swap_range(offspring_2, 0, cross)
        return offspring_1, offspring_2


def _swap_prefix(first: ST, second: ST, index: int) -> tuple[ST, ST]:
    """Swap the items before the given index between two sequences."""
    if isinstance(first, np.ndarray):
        first, second = first.copy(), second.copy()
        first[:index], second[:index] = second[:index].copy(), \
            first[:index].copy()
        return first, second
    return (second[:index] + first[index:],  # type: ignore[return-value]
            first[:index] + second[index:])


@final
class SequenceMater(Mater[ST]):
    """
    Mater for fixed-length sequences, such as lists, tuples, bytes or numpy
    arrays.

    The offspring are copies of the parents, for each crossover point a
    position in `[1, length - 1]` is chosen and the items before that position
    are swapped between the offspring. The multiset of items in each pair is
    therefore preserved.
    """

    __slots__ = ()

    @override
    def mate(
        self,
        parent_1: ST,
        parent_2: ST,
        points: int,
        rng: Generator
    ) -> tuple[ST, ST]:
        _check_lengths(parent_1, parent_2)
        offspring_1 = copy_sequence(parent_1)
        offspring_2 = copy_sequence(parent_2)
        if len(parent_1) < 2:
            return offspring_1, offspring_2
        for _ in range(points):
            cross = int(rng.integers(1, len(parent_1)))
            offspring_1, offspring_2 = _swap_prefix(
                offspring_1, offspring_2, cross)
        return offspring_1, offspring_2


@final
class StringMater(Mater[str]):
    """
    Mater for strings, crossing over in the same manner as `SequenceMater`.
    """

    __slots__ = ()

    @override
    def mate(
        self,
        parent_1: str,
        parent_2: str,
        points: int,
        rng: Generator
    ) -> tuple[str, str]:
        if not isinstance(parent_1, str) or not isinstance(parent_2, str):
            raise TypeError(
                "String mater can only mate strings. "
                f"Got; {type(parent_1)} and {type(parent_2)}."
            )
        _check_lengths(parent_1, parent_2)
        if len(parent_1) < 2:
            return parent_1, parent_2
        for _ in range(points):
            cross = int(rng.integers(1, len(parent_1)))
            parent_1, parent_2 = (parent_2[:cross] + parent_1[cross:],
                                  parent_1[:cross] + parent_2[cross:])
        return parent_1, parent_2


@final
class PMXMater(Mater[Sequence[Any]]):
    """
    Mater for permutations, implementing partially mapped crossover (PMX).

    Two cut points are chosen at random, and the section between them
    (wrapping around the end of the sequence if the second cut precedes the
    first) is exchanged between the offspring. Items outside of the section
    that would then be duplicated are replaced by following the mapping
    established by the exchange, so both offspring remain permutations.

    PMX is only defined for exactly two crossover points.
    """

    __slots__ = ()

    @override
    def mate(
        self,
        parent_1: Sequence[Any],
        parent_2: Sequence[Any],
        points: int,
        rng: Generator
    ) -> tuple[Sequence[Any], Sequence[Any]]:
        if points != 2:
            raise PreconditionError(
                "PMX crossover is only defined for 2 crossover points. "
                f"Got; {points} of type {type(points)}."
            )
        _check_lengths(parent_1, parent_2)
        size = len(parent_1)
        offspring_1, offspring_2 = list(parent_1), list(parent_2)
        if size == 0:
            return (rebuild_sequence(parent_1, offspring_1),
                    rebuild_sequence(parent_2, offspring_2))
        start, end = int(rng.integers(size)), int(rng.integers(size))
        mapping_1: dict[Any, Any] = {}
        mapping_2: dict[Any, Any] = {}
        for offset in range((end - start) % size):
            index = (start + offset) % size
            item_1, item_2 = offspring_1[index], offspring_2[index]
            offspring_1[index], offspring_2[index] = item_2, item_1
            mapping_1[item_1] = item_2
            mapping_2[item_2] = item_1
        self.__repair(offspring_1, mapping_2, start, end)
        self.__repair(offspring_2, mapping_1, start, end)
        return (rebuild_sequence(parent_1, offspring_1),
                rebuild_sequence(parent_2, offspring_2))

    @staticmethod
    def __repair(
        offspring: list[Any],
        mapping: dict[Any, Any],
        start: int,
        end: int
    ) -> None:
        """Replace duplicated items outside of the exchanged section."""
        for index, item in enumerate(offspring):
            inside = start <= index < end
            wrapped = start > end and (index >= start or index < end)
            if inside or wrapped:
                continue
            while item in mapping:
                item = mapping[item]
            offspring[index] = item


@final
class CycleMater(Mater[Sequence[Any]]):
    """
    Mater for permutations, implementing cycle crossover (CX).

    The cycle of positions starting at index zero is copied from each parent
    to the offspring of the same rank, all remaining positions are taken from
    the other parent. The number of crossover points is ignored.
    """

    __slots__ = ()

    @override
    def mate(
        self,
        parent_1: Sequence[Any],
        parent_2: Sequence[Any],
        points: int,
        rng: Generator
    ) -> tuple[Sequence[Any], Sequence[Any]]:
        _check_lengths(parent_1, parent_2)
        size = len(parent_1)
        if size == 0:
            return copy_sequence(parent_1), copy_sequence(parent_2)
        positions = {item: index for index, item in enumerate(parent_1)}
        cycle = {0}
        index = positions[parent_2[0]]
        while index != 0:
            cycle.add(index)
            index = positions[parent_2[index]]
        offspring_1 = [parent_1[i] if i in cycle else parent_2[i]
                       for i in range(size)]
        offspring_2 = [parent_2[i] if i in cycle else parent_1[i]
                       for i in range(size)]
        return (rebuild_sequence(parent_1, offspring_1),
                rebuild_sequence(parent_2, offspring_2))
