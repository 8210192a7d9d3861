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

"""Module containing candidate factories, which create initial populations."""

from abc import ABCMeta, abstractmethod
from typing import Any, Generic, Iterable, Sequence, TypeVar, final

from numpy.random import Generator
from typing_extensions import override

from evolvekit.errors import ConfigurationError, PreconditionError
from evolvekit.evolution.bitstring import BitString

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "CandidateFactory",
    "BitStringFactory",
    "StringFactory",
    "PermutationFactory",
    "check_alphabet"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


CT = TypeVar("CT")


class CandidateFactory(Generic[CT], metaclass=ABCMeta):
    """
    Base class for candidate factories.

    Sub-classes need only implement `new`, which creates a single random
    candidate. Whole populations are then made with `generate` or `seed`.
    """

    __slots__ = ()

    @abstractmethod
    def new(self, rng: Generator) -> CT:
        """Create a new random candidate."""

    def generate(self, size: int, rng: Generator) -> list[CT]:
        """Create a population of the given size of new random candidates."""
        if size < 0:
            raise PreconditionError(
                "Population size must be non-negative. "
                f"Got; {size} of type {type(size)}."
            )
        return [self.new(rng) for _ in range(size)]

    def seed(
        self,
        size: int,
        seeds: Iterable[CT],
        rng: Generator
    ) -> list[CT]:
        """
        Create a population of the given size that starts with the given seed
        candidates.

        The first `min(size, len(seeds))` candidates are the seeds in order,
        the remainder are new random candidates. Seeds beyond the population
        size are discarded.
        """
        population = list(seeds)[:size]
        population.extend(self.generate(size - len(population), rng))
        return population


def check_alphabet(alphabet: str) -> str:
    """
    Check that an alphabet is a non-empty string of ASCII characters.

    Raises
    ------
    `ConfigurationError` - If the alphabet is empty or contains any non-ASCII
    character.
    """
    if not isinstance(alphabet, str) or not alphabet:
        raise ConfigurationError(
            "Alphabet must be a non-empty string. "
            f"Got; {alphabet!r} of type {type(alphabet)}."
        )
    if not alphabet.isascii():
        raise ConfigurationError(
            f"Alphabet must contain only ASCII characters. Got; {alphabet!r}."
        )
    return alphabet


@final
class BitStringFactory(CandidateFactory[BitString]):
    """Creates random bit strings of a fixed length."""

    __slots__ = {
        "__length": "The length of the bit strings."
    }

    def __init__(self, length: int) -> None:
        if length < 0:
            raise ConfigurationError(
                "Bit string length must be non-negative. "
                f"Got; {length} of type {type(length)}."
            )
        self.__length: int = length

    @override
    def new(self, rng: Generator) -> BitString:
        return BitString.random(self.__length, rng)


@final
class StringFactory(CandidateFactory[str]):
    """Creates random strings of a fixed length over an ASCII alphabet."""

    __slots__ = {
        "__alphabet": "The characters the strings are made from.",
        "__length": "The length of the strings."
    }

    def __init__(self, alphabet: str, length: int) -> None:
        """
        Create a new string factory.

        Parameters
        ----------
        `alphabet: str` - The characters to pick from, must be non-empty and
        only contain ASCII characters.

        `length: int` - The length of the created strings.

        Raises
        ------
        `ConfigurationError` - If the alphabet is invalid or the length is
        negative.
        """
        self.__alphabet: str = check_alphabet(alphabet)
        if length < 0:
            raise ConfigurationError(
                "String length must be non-negative. "
                f"Got; {length} of type {type(length)}."
            )
        self.__length: int = length

    @property
    def alphabet(self) -> str:
        """Get the alphabet of the factory."""
        return self.__alphabet

    @override
    def new(self, rng: Generator) -> str:
        indices = rng.integers(len(self.__alphabet), size=self.__length)
        return "".join(self.__alphabet[index] for index in indices)


@final
class PermutationFactory(CandidateFactory[list[Any]]):
    """Creates random permutations of a fixed list of elements."""

    __slots__ = {
        "__elements": "The elements to permute."
    }

    def __init__(self, elements: Sequence[Any]) -> None:
        self.__elements: tuple[Any, ...] = tuple(elements)

    @override
    def new(self, rng: Generator) -> list[Any]:
        return [self.__elements[index]
                for index in rng.permutation(len(self.__elements))]
