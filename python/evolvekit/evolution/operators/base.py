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
Module defining the base class of evolutionary operators, and the operators
that compose other operators.
"""

from abc import ABCMeta, abstractmethod
import threading
from typing import Any, Generic, Iterable, Sequence, TypeVar, final

import numpy as np
from numpy.random import Generator
from typing_extensions import override

from evolvekit.errors import PreconditionError

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "EvolutionaryOperator",
    "Pipeline",
    "Switch",
    "copy_sequence",
    "rebuild_sequence"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


CT = TypeVar("CT")
ST = TypeVar("ST", bound=Sequence[Any])


def copy_sequence(sequence: ST) -> ST:
    """Return a shallow copy of a sequence, including numpy arrays."""
    if isinstance(sequence, np.ndarray):
        return sequence.copy()  # type: ignore[return-value]
    return sequence[:]  # type: ignore[return-value]


def rebuild_sequence(template: ST, items: list[Any]) -> ST:
    """Convert a list of items to the sequence type of the template."""
    if isinstance(template, list):
        return items  # type: ignore[return-value]
    if isinstance(template, str):
        return "".join(items)  # type: ignore[return-value]
    if isinstance(template, np.ndarray):
        return np.asarray(items, dtype=template.dtype)  # type: ignore
    return type(template)(items)  # type: ignore[call-arg]


class EvolutionaryOperator(Generic[CT], metaclass=ABCMeta):
    """
    Base class for evolutionary operators.

    An evolutionary operator transforms the candidates selected for breeding
    into the candidates of the next generation. The list of selected
    candidates is owned by the caller, operators that need to re-order it
    must work on a copy, and candidates themselves must never be modified in
    place, modified candidates must be new objects.

    The random number generator is passed to each call of `apply` and must not
    be retained between calls.
    """

    __slots__ = ()

    @abstractmethod
    def apply(self, selected: list[CT], rng: Generator) -> list[CT]:
        """
        Apply the operator to the selected candidates, returning a new list of
        candidates of the same length.
        """


@final
class Pipeline(EvolutionaryOperator[CT]):
    """
    An operator that applies a sequence of operators in order, the output of
    each operator being the input of the next.
    """

    __slots__ = {
        "__operators": "The operators applied in order."
    }

    def __init__(self, operators: Iterable[EvolutionaryOperator[CT]]) -> None:
        """
        Create a new pipeline.

        Raises
        ------
        `PreconditionError` - If no operators are given.
        """
        self.__operators: tuple[EvolutionaryOperator[CT], ...] = \
            tuple(operators)
        if not self.__operators:
            raise PreconditionError(
                "A pipeline must contain at least one operator."
            )

    @property
    def operators(self) -> tuple[EvolutionaryOperator[CT], ...]:
        """Get the operators of the pipeline."""
        return self.__operators

    @override
    def apply(self, selected: list[CT], rng: Generator) -> list[CT]:
        for operator in self.__operators:
            selected = operator.apply(selected, rng)
        return selected


@final
class Switch(EvolutionaryOperator[CT]):
    """
    An operator that holds several operators and applies exactly one of them
    each time it is applied, cycling through them in order.

    The cursor is advanced under a lock, so a switch may be shared by
    islands evolving concurrently.
    """

    __slots__ = {
        "__operators": "The operators cycled through.",
        "__cursor": "The index of the operator applied next.",
        "__lock": "Lock guarding the cursor."
    }

    def __init__(self, operators: Iterable[EvolutionaryOperator[CT]]) -> None:
        """
        Create a new switch.

        Raises
        ------
        `PreconditionError` - If no operators are given.
        """
        self.__operators: tuple[EvolutionaryOperator[CT], ...] = \
            tuple(operators)
        if not self.__operators:
            raise PreconditionError(
                "A switch must contain at least one operator."
            )
        self.__cursor: int = 0
        self.__lock = threading.Lock()

    @property
    def cursor(self) -> int:
        """Get the index of the operator that will be applied next."""
        return self.__cursor

    @override
    def apply(self, selected: list[CT], rng: Generator) -> list[CT]:
        with self.__lock:
            operator = self.__operators[self.__cursor]
            self.__cursor = (self.__cursor + 1) % len(self.__operators)
        return operator.apply(selected, rng)
