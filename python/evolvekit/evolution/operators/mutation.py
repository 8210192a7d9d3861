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
Module containing the mutation operator and the mutaters it delegates to.

Mutation promotes diversity in a population by randomly modifying candidates,
encouraging exploration of the search space around the existing candidates.
The `Mutation` operator applies a `Mutater` to every selected candidate, the
mutater decides whether, and how, each candidate is modified. Mutaters never
modify their input, a mutated candidate is always a new object.
"""

from abc import ABCMeta, abstractmethod
from typing import Any, Generic, Sequence, TypeVar, final

from numpy.random import Generator
from typing_extensions import override

from evolvekit.errors import PreconditionError
from evolvekit.evolution.bitstring import BitString
from evolvekit.evolution.factories import check_alphabet
from evolvekit.evolution.numbergenerators import (Interval, NumberGenerator,
                                                  as_generator, draw)
from evolvekit.evolution.operators.base import (EvolutionaryOperator,
                                                copy_sequence,
                                                rebuild_sequence)

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "Mutater",
    "Mutation",
    "BitStringMutater",
    "StringMutater",
    "SliceOrderMutater",
    "SwapReverseSectionsMutater",
    "CenterInverseMutater"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


CT = TypeVar("CT")

# Range of valid mutation probabilities.
PROBABILITY_RANGE = Interval(0.0, 1.0)

# Range of valid mutation counts.
COUNT_RANGE = Interval(0, 2 ** 31 - 1)

# Range of valid mutation amounts (displacements may be negative).
AMOUNT_RANGE = Interval(-(2 ** 31), 2 ** 31 - 1)


class Mutater(Generic[CT], metaclass=ABCMeta):
    """Base class for mutaters, which mutate a single candidate."""

    __slots__ = ()

    @abstractmethod
    def mutate(self, candidate: CT, rng: Generator) -> CT:
        """
        Return a mutant of the given candidate.

        The candidate must not be modified, if the mutater decides to leave
        it unchanged it may be returned as it is.
        """


@final
class Mutation(EvolutionaryOperator[CT]):
    """Operator that applies a mutater to every selected candidate."""

    __slots__ = {
        "__mutater": "The mutater applied to each candidate."
    }

    def __init__(self, mutater: Mutater[CT]) -> None:
        self.__mutater: Mutater[CT] = mutater

    @property
    def mutater(self) -> Mutater[CT]:
        """Get the mutater of the operator."""
        return self.__mutater

    @override
    def apply(self, selected: list[CT], rng: Generator) -> list[CT]:
        return [self.__mutater.mutate(candidate, rng)
                for candidate in selected]


class _ProbabilisticMutater(Mutater[CT]):
    """
    Base class for mutaters that mutate with some (possibly variable)
    probability.
    """

    __slots__ = {
        "__probability": "Generator of the mutation probability."
    }

    def __init__(self, probability: float | NumberGenerator[float]) -> None:
        self.__probability: NumberGenerator[float]
        self.probability = probability

    @property
    def probability(self) -> NumberGenerator[float]:
        """Get the generator of the mutation probability."""
        return self.__probability

    @probability.setter
    def probability(self, probability: float | NumberGenerator[float]) -> None:
        """
        Set the mutation probability, a constant or a generator of values in
        the range [0, 1].
        """
        self.__probability = as_generator(
            probability, PROBABILITY_RANGE, "Mutation probability")

    def _draw_probability(self) -> float:
        """Draw the mutation probability for one candidate."""
        return draw(self.__probability, PROBABILITY_RANGE,
                    "Mutation probability")

    def _should_mutate(self, rng: Generator) -> bool:
        """Decide whether to mutate one candidate."""
        return rng.random() < self._draw_probability()


@final
class BitStringMutater(_ProbabilisticMutater[BitString]):
    """
    Mutater for bit strings.

    With the mutation probability, a bit string is mutated by flipping a
    number of randomly chosen bits (chosen with replacement, so the same bit
    may be flipped more than once).
    """

    __slots__ = {
        "__mutations": "Generator of the number of bits flipped."
    }

    def __init__(
        self,
        probability: float | NumberGenerator[float] = 1.0,
        mutations: int | NumberGenerator[int] = 1
    ) -> None:
        """
        Create a new bit string mutater.

        Parameters
        ----------
        `probability: float | NumberGenerator[float] = 1.0` - The probability
        that a bit string is mutated at all.

        `mutations: int | NumberGenerator[int] = 1` - The number of bits
        flipped in a mutated bit string.

        Raises
        ------
        `ConfigurationError` - If either value is out of range.
        """
        super().__init__(probability)
        self.__mutations: NumberGenerator[int]
        self.mutations = mutations

    @property
    def mutations(self) -> NumberGenerator[int]:
        """Get the generator of the number of bits flipped."""
        return self.__mutations

    @mutations.setter
    def mutations(self, mutations: int | NumberGenerator[int]) -> None:
        self.__mutations = as_generator(
            mutations, COUNT_RANGE, "Mutation count")

    @override
    def mutate(self, candidate: BitString, rng: Generator) -> BitString:
        if not self._should_mutate(rng) or len(candidate) == 0:
            return candidate
        mutant = candidate.copy()
        count = int(draw(self.__mutations, COUNT_RANGE, "Mutation count"))
        for index in rng.integers(len(mutant), size=count):
            mutant.flip_bit(int(index))
        return mutant


@final
class StringMutater(_ProbabilisticMutater[str]):
    """
    Mutater for strings.

    Each character is independently replaced, with the mutation probability,
    by a character chosen uniformly from the alphabet (which may be the same
    as the character it replaces).
    """

    __slots__ = {
        "__alphabet": "The characters mutations are drawn from."
    }

    def __init__(
        self,
        alphabet: str,
        probability: float | NumberGenerator[float]
    ) -> None:
        """
        Create a new string mutater.

        Parameters
        ----------
        `alphabet: str` - The characters to draw replacements from, must be
        non-empty and only contain ASCII characters.

        `probability: float | NumberGenerator[float]` - The probability that
        each character is replaced. One value is drawn per string.

        Raises
        ------
        `ConfigurationError` - If the alphabet or probability is invalid.
        """
        super().__init__(probability)
        self.__alphabet: str = check_alphabet(alphabet)

    @property
    def alphabet(self) -> str:
        """Get the alphabet of the mutater."""
        return self.__alphabet

    @override
    def mutate(self, candidate: str, rng: Generator) -> str:
        probability = self._draw_probability()
        mutate = rng.random(len(candidate)) < probability
        replacements = rng.integers(len(self.__alphabet), size=len(candidate))
        return "".join(
            self.__alphabet[replacement] if flag else char
            for char, flag, replacement in zip(candidate, mutate, replacements)
        )


@final
class SliceOrderMutater(_ProbabilisticMutater[Sequence[Any]]):
    """
    Mutater that re-orders items of a sequence.

    With the mutation probability, a number of items (the mutation count) are
    chosen at random, and each is swapped with the item a number of positions
    further along (the mutation amount), wrapping around the end of the
    sequence. The items of the sequence are never changed, only their order.
    """

    __slots__ = {
        "__count": "Generator of the number of swaps.",
        "__amount": "Generator of the swap displacement."
    }

    def __init__(
        self,
        count: int | NumberGenerator[int] = 1,
        amount: int | NumberGenerator[int] = 1,
        probability: float | NumberGenerator[float] = 1.0
    ) -> None:
        super().__init__(probability)
        self.__count: NumberGenerator[int] = as_generator(
            count, COUNT_RANGE, "Mutation count")
        self.__amount: NumberGenerator[int] = as_generator(
            amount, AMOUNT_RANGE, "Mutation amount")

    @override
    def mutate(self, candidate: Sequence[Any], rng: Generator) -> Any:
        if not self._should_mutate(rng) or len(candidate) == 0:
            return candidate
        items = list(candidate)
        count = int(draw(self.__count, COUNT_RANGE, "Mutation count"))
        for _ in range(count):
            start = int(rng.integers(len(items)))
            amount = int(draw(self.__amount, AMOUNT_RANGE, "Mutation amount"))
            end = (start + amount) % len(items)
            items[start], items[end] = items[end], items[start]
        return rebuild_sequence(candidate, items)


@final
class SwapReverseSectionsMutater(_ProbabilisticMutater[Sequence[Any]]):
    """
    Mutater implementing swap and reverse sections (SRS) mutation.

    Two distinct cut points in `[1, length - 1]` divide a sequence into left,
    middle and right sections. The mutant is the right section, followed by
    the middle section, followed by the reversed left section. For example,
    with cut points 2 and 4:
    ```
    [1, 2 | 3, 4 | 5, 6, 7] -> [5, 6, 7, 3, 4, 2, 1]
    ```
    Only defined for sequences of at least 3 items.
    """

    __slots__ = ()

    def __init__(
        self,
        probability: float | NumberGenerator[float] = 1.0
    ) -> None:
        super().__init__(probability)

    @override
    def mutate(self, candidate: Sequence[Any], rng: Generator) -> Any:
        if len(candidate) < 3:
            raise PreconditionError(
                "Swap and reverse sections mutation requires at least 3 "
                f"items. Got; {len(candidate)} items."
            )
        if not self._should_mutate(rng):
            return candidate
        first, second = sorted(
            int(point) + 1
            for point in rng.choice(len(candidate) - 1, size=2, replace=False)
        )
        items = list(candidate)
        mutant = items[second:] + items[first:second] + items[first - 1::-1]
        return rebuild_sequence(candidate, mutant)


@final
class CenterInverseMutater(_ProbabilisticMutater[Sequence[Any]]):
    """
    Mutater implementing center inverse mutation (CIM).

    A cut point in `[0, length - 2]` divides a sequence in two, and the
    order of the items in each part is reversed. For example, with cut
    point 4:
    ```
    [1, 2, 3, 4 | 5, 6] -> [4, 3, 2, 1, 6, 5]
    ```
    """

    __slots__ = ()

    def __init__(
        self,
        probability: float | NumberGenerator[float] = 1.0
    ) -> None:
        super().__init__(probability)

    @override
    def mutate(self, candidate: Sequence[Any], rng: Generator) -> Any:
        if len(candidate) < 2 or not self._should_mutate(rng):
            return copy_sequence(candidate)
        cut = int(rng.integers(len(candidate) - 1))
        items = list(candidate)
        mutant = items[:cut][::-1] + items[cut:][::-1]
        return rebuild_sequence(candidate, mutant)
