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
Module containing number generators.

Many parameters of evolutionary operators, such as a crossover probability or
a number of mutations, may either be fixed or vary each time the operator is
applied. Number generators represent both cases uniformly, a generator is an
infinite iterator and `next(generator)` draws the value to use for one
application of the operator. Fixed values are represented by `Constant`.

Example Usage
-------------
>>> from evolvekit.evolution.numbergenerators import Constant, UniformFloat
>>> next(Constant(0.5))
0.5
>>> probability = UniformFloat(0.25, 0.75, rng=1)
>>> 0.25 <= next(probability) < 0.75
True
"""

from abc import ABCMeta, abstractmethod
import dataclasses
import math
from numbers import Real
import threading
from typing import Iterator, TypeVar, final

from numpy.random import Generator, default_rng
from typing_extensions import override

from evolvekit.concurrency.atomic import AtomicNumber, AtomicObject
from evolvekit.errors import ConfigurationError

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "Interval",
    "NumberGenerator",
    "Constant",
    "UniformInt",
    "UniformFloat",
    "Gaussian",
    "Poisson",
    "Binomial",
    "Exponential",
    "Adjustable",
    "Swappable",
    "as_generator",
    "draw"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


NT = TypeVar("NT", int, float)


@dataclasses.dataclass(frozen=True)
class Interval:
    """
    An interval of the real line used to validate configured values.

    Fields
    ------
    `low: float` - The lower bound.

    `high: float` - The upper bound.

    `low_open: bool = False` - Whether the lower bound is excluded.

    `high_open: bool = False` - Whether the upper bound is excluded.
    """

    low: float
    high: float
    low_open: bool = False
    high_open: bool = False

    def __str__(self) -> str:
        return (f"{'(' if self.low_open else '['}{self.low}, "
                f"{self.high}{')' if self.high_open else ']'}")

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, Real) or math.isnan(value):
            return False
        if self.low_open:
            above = value > self.low
        else:
            above = value >= self.low
        if self.high_open:
            below = value < self.high
        else:
            below = value <= self.high
        return above and below


class NumberGenerator(Iterator[NT], metaclass=ABCMeta):
    """
    Base class for number generators.

    Sub-classing
    ------------
    Sub-classes must implement `__next__`. Generators whose values are known
    to lie within a fixed range should also override `bounds`, so that an
    out-of-range configuration can be rejected when it is set rather than when
    the first value is drawn.
    """

    __slots__ = ()

    def __iter__(self) -> "NumberGenerator[NT]":
        return self

    @abstractmethod
    def __next__(self) -> NT:
        """Draw the next value."""

    @property
    def bounds(self) -> tuple[NT, NT] | None:
        """
        Get the inclusive range of values the generator can produce, or None
        if the range is not known in advance.
        """
        return None


class _RandomGenerator(NumberGenerator[NT]):
    """
    Base class for generators that draw from a random number generator.

    Sub-classes implement `_draw` instead of `__next__`. Draws are serialised
    by a lock, since numpy generators are not thread-safe and one parameter
    may be shared by operators running on several threads.
    """

    __slots__ = {
        "__generator": "The random number generator.",
        "__lock": "Lock serialising draws from the generator."
    }

    def __init__(self, rng: Generator | int | None = None) -> None:
        """
        Super constructor for random number generators.

        Parameters
        ----------
        `rng: Generator | int | None` - Either an random number generator
        instance, or a seed for the generator to create its own, None
        generates a random seed.
        """
        self.__generator: Generator = default_rng(rng)
        self.__lock = threading.RLock()

    @property
    def generator(self) -> Generator:
        """Get the random number generator."""
        return self.__generator

    @final
    @override
    def __next__(self) -> NT:
        with self.__lock:
            return self._draw()

    @abstractmethod
    def _draw(self) -> NT:
        """Draw the next value, called with the lock held."""


@final
class Constant(NumberGenerator[NT]):
    """A generator that always yields the same value."""

    __slots__ = {
        "__value": "The value yielded."
    }

    def __init__(self, value: NT) -> None:
        self.__value: NT = value

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.__value!r})"

    @override
    def __next__(self) -> NT:
        return self.__value

    @property
    @override
    def bounds(self) -> tuple[NT, NT]:
        return (self.__value, self.__value)


@final
class UniformInt(_RandomGenerator[int]):
    """A generator of integers drawn uniformly from `[low, high)`."""

    __slots__ = {
        "__low": "The inclusive lower bound.",
        "__high": "The exclusive upper bound."
    }

    def __init__(
        self,
        low: int,
        high: int,
        rng: Generator | int | None = None
    ) -> None:
        if high <= low:
            raise ConfigurationError(
                "Upper bound must be greater than lower bound. "
                f"Got; {low=}, {high=}."
            )
        super().__init__(rng)
        self.__low: int = low
        self.__high: int = high

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.__low}, {self.__high})"

    @override
    def _draw(self) -> int:
        return int(self.generator.integers(self.__low, self.__high))

    @property
    @override
    def bounds(self) -> tuple[int, int]:
        return (self.__low, self.__high - 1)


@final
class UniformFloat(_RandomGenerator[float]):
    """A generator of floats drawn uniformly from `[low, high)`."""

    __slots__ = {
        "__low": "The inclusive lower bound.",
        "__high": "The exclusive upper bound."
    }

    def __init__(
        self,
        low: float,
        high: float,
        rng: Generator | int | None = None
    ) -> None:
        if high < low:
            raise ConfigurationError(
                "Upper bound must not be less than lower bound. "
                f"Got; {low=}, {high=}."
            )
        super().__init__(rng)
        self.__low: float = low
        self.__high: float = high

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.__low}, {self.__high})"

    @override
    def _draw(self) -> float:
        return float(self.generator.uniform(self.__low, self.__high))

    @property
    @override
    def bounds(self) -> tuple[float, float]:
        return (self.__low, self.__high)


@final
class Gaussian(_RandomGenerator[float]):
    """
    A generator of normally distributed floats.

    Both the mean and the standard deviation may themselves be generators,
    and are drawn anew for each value.
    """

    __slots__ = {
        "__mean": "Generator of the mean.",
        "__std_dev": "Generator of the standard deviation."
    }

    def __init__(
        self,
        mean: "float | NumberGenerator[float]",
        std_dev: "float | NumberGenerator[float]",
        rng: Generator | int | None = None
    ) -> None:
        super().__init__(rng)
        self.__mean: NumberGenerator[float] = as_generator(mean)
        self.__std_dev: NumberGenerator[float] = as_generator(
            std_dev, Interval(0.0, math.inf), "Standard deviation")

    @override
    def _draw(self) -> float:
        return float(self.generator.normal(
            next(self.__mean),
            draw(self.__std_dev, Interval(0.0, math.inf),
                 "Standard deviation")
        ))


@final
class Poisson(_RandomGenerator[int]):
    """A generator of Poisson distributed non-negative integers."""

    __slots__ = {
        "__mean": "Generator of the mean."
    }

    def __init__(
        self,
        mean: "float | NumberGenerator[float]",
        rng: Generator | int | None = None
    ) -> None:
        super().__init__(rng)
        self.__mean: NumberGenerator[float] = as_generator(
            mean, Interval(0.0, math.inf, low_open=True), "Mean")

    @override
    def _draw(self) -> int:
        return int(self.generator.poisson(
            draw(self.__mean, Interval(0.0, math.inf, low_open=True), "Mean")
        ))


@final
class Binomial(_RandomGenerator[int]):
    """
    A generator of binomially distributed integers, the number of successes
    in a number of trials each succeeding with a given probability.
    """

    __slots__ = {
        "__trials": "Generator of the number of trials.",
        "__probability": "Generator of the success probability."
    }

    def __init__(
        self,
        trials: "int | NumberGenerator[int]",
        probability: "float | NumberGenerator[float]",
        rng: Generator | int | None = None
    ) -> None:
        super().__init__(rng)
        self.__trials: NumberGenerator[int] = as_generator(
            trials, Interval(0, math.inf), "Number of trials")
        self.__probability: NumberGenerator[float] = as_generator(
            probability, Interval(0.0, 1.0), "Probability")

    @override
    def _draw(self) -> int:
        return int(self.generator.binomial(
            draw(self.__trials, Interval(0, math.inf), "Number of trials"),
            draw(self.__probability, Interval(0.0, 1.0), "Probability")
        ))


@final
class Exponential(_RandomGenerator[float]):
    """A generator of exponentially distributed floats with a given rate."""

    __slots__ = {
        "__rate": "Generator of the rate (the inverse of the mean)."
    }

    def __init__(
        self,
        rate: "float | NumberGenerator[float]",
        rng: Generator | int | None = None
    ) -> None:
        super().__init__(rng)
        self.__rate: NumberGenerator[float] = as_generator(
            rate, Interval(0.0, math.inf, low_open=True), "Rate")

    @override
    def _draw(self) -> float:
        rate = draw(self.__rate, Interval(0.0, math.inf, low_open=True),
                    "Rate")
        return float(self.generator.exponential(1.0 / rate))


@final
class Adjustable(NumberGenerator[NT]):
    """
    A generator yielding a single value that can be changed at any time,
    including from another thread while an evolution is running.
    """

    __slots__ = {
        "__value": "The atomic value yielded."
    }

    def __init__(self, value: NT) -> None:
        self.__value: AtomicNumber[NT] = AtomicNumber(value)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.__value.get_obj()!r})"

    def set(self, value: NT) -> None:
        """Set the value yielded by the generator."""
        with self.__value:
            self.__value.set_obj(value)

    @override
    def __next__(self) -> NT:
        return self.__value.get_obj()

    @property
    @override
    def bounds(self) -> tuple[NT, NT]:
        value = self.__value.get_obj()
        return (value, value)


@final
class Swappable(NumberGenerator[NT]):
    """
    A generator that delegates to another generator, which can be swapped for
    a different one at any time, including from another thread while an
    evolution is running.
    """

    __slots__ = {
        "__generator": "The atomic reference to the delegate generator."
    }

    def __init__(self, generator: NumberGenerator[NT]) -> None:
        self.__generator: AtomicObject[NumberGenerator[NT]] = \
            AtomicObject(generator)

    def swap(self, generator: NumberGenerator[NT]) -> NumberGenerator[NT]:
        """Swap the delegate generator, returning the previous one."""
        with self.__generator:
            previous = self.__generator.get_obj()
            self.__generator.set_obj(generator)
            return previous

    @override
    def __next__(self) -> NT:
        return next(self.__generator.get_obj())


def as_generator(
    value: "NT | NumberGenerator[NT]",
    interval: Interval | None = None,
    name: str = "Value"
) -> NumberGenerator[NT]:
    """
    Convert a value to a number generator, checking it against an interval.

    Plain numbers are wrapped in a `Constant`. If an interval is given, and
    the range of values the generator can produce is known, the range must
    lie within the interval.

    Raises
    ------
    `ConfigurationError` - If the generator's known range does not lie within
    the given interval.

    `TypeError` - If the value is neither a real number nor a generator.
    """
    generator: NumberGenerator[NT]
    if isinstance(value, NumberGenerator):
        generator = value
    elif isinstance(value, Real) and not isinstance(value, bool):
        generator = Constant(value)
    else:
        raise TypeError(
            f"{name} must be a real number or a number generator. "
            f"Got; {value!r} of type {type(value)}."
        )
    if interval is not None and (bounds := generator.bounds) is not None:
        low, high = bounds
        if low not in interval or high not in interval:
            raise ConfigurationError(
                f"{name} must be in the range {interval}. "
                f"Got; {generator!r} with range [{low}, {high}]."
            )
    return generator


def draw(
    generator: NumberGenerator[NT],
    interval: Interval,
    name: str = "Value"
) -> NT:
    """
    Draw the next value from a generator, checking it against an interval.

    Raises
    ------
    `ConfigurationError` - If the drawn value is not within the interval.
    """
    value = next(generator)
    if value not in interval:
        raise ConfigurationError(
            f"{name} must be in the range {interval}. "
            f"Got; {value} of type {type(value)}."
        )
    return value
