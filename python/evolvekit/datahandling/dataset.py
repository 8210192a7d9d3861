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

"""Module containing a dataset class for computing descriptive statistics."""

import functools
import math
from typing import Callable, Concatenate, Iterable, ParamSpec, TypeVar, final

import numpy as np

from evolvekit.errors import IllegalStateError

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "Dataset",
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


_SP = ParamSpec("_SP")
_ST = TypeVar("_ST")


def _require_data(
    func: Callable[Concatenate["Dataset", _SP], _ST]
) -> Callable[Concatenate["Dataset", _SP], _ST]:
    """Decorator that raises an error if the dataset is empty."""
    @functools.wraps(func)
    def wrapper(self: "Dataset", *args: _SP.args, **kwargs: _SP.kwargs) -> _ST:
        if len(self) == 0:
            raise IllegalStateError(
                f"Cannot compute {func.__name__} of an empty dataset."
            )
        return func(self, *args, **kwargs)
    return wrapper


@final
class Dataset:
    """
    An append-only collection of floats with descriptive statistics.

    The sum, product, reciprocal sum, minimum and maximum are maintained as
    values are added, other statistics are computed on demand. Querying any
    statistic of an empty dataset raises an `IllegalStateError`.
    """

    __slots__ = {
        "__values": "The values in the dataset.",
        "__total": "The running sum of the values.",
        "__product": "The running product of the values.",
        "__reciprocal_sum": "The running sum of the value reciprocals.",
        "__minimum": "The smallest value in the dataset.",
        "__maximum": "The largest value in the dataset."
    }

    def __init__(self, values: Iterable[float] = ()) -> None:
        """
        Create a new dataset.

        Parameters
        ----------
        `values: Iterable[float] = ()` - Initial values to add.
        """
        self.__values: list[float] = []
        self.__total: float = 0.0
        self.__product: float = 1.0
        self.__reciprocal_sum: float = 0.0
        self.__minimum: float = math.inf
        self.__maximum: float = -math.inf
        self.extend(values)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.__values!r})"

    def __len__(self) -> int:
        return len(self.__values)

    def append(self, value: float) -> None:
        """Add a single value to the dataset."""
        value = float(value)
        self.__values.append(value)
        self.__total += value
        self.__product *= value
        if value != 0.0:
            self.__reciprocal_sum += 1.0 / value
        else:
            self.__reciprocal_sum = math.inf
        self.__minimum = min(self.__minimum, value)
        self.__maximum = max(self.__maximum, value)

    def extend(self, values: Iterable[float]) -> None:
        """Add all the given values to the dataset."""
        for value in values:
            self.append(value)

    @property
    def values(self) -> tuple[float, ...]:
        """Get the values in the order they were added."""
        return tuple(self.__values)

    @property
    @_require_data
    def sum(self) -> float:
        """Get the sum of all values."""
        return self.__total

    @property
    @_require_data
    def product(self) -> float:
        """Get the product of all values."""
        return self.__product

    @property
    @_require_data
    def reciprocal_sum(self) -> float:
        """
        Get the sum of the reciprocals of all values.

        If any value is zero the reciprocal sum is infinite.
        """
        return self.__reciprocal_sum

    @property
    @_require_data
    def minimum(self) -> float:
        """Get the smallest value."""
        return self.__minimum

    @property
    @_require_data
    def maximum(self) -> float:
        """Get the largest value."""
        return self.__maximum

    @property
    @_require_data
    def median(self) -> float:
        """Get the median value, computed over a sorted copy of the data."""
        return float(np.median(self.__values))

    @property
    @_require_data
    def arithmetic_mean(self) -> float:
        """Get the arithmetic mean of the values."""
        return self.__total / len(self.__values)

    @property
    @_require_data
    def geometric_mean(self) -> float:
        """
        Get the geometric mean of the values.

        Computed as the n-th root of the product, so is only meaningful for
        non-negative data.
        """
        return math.pow(self.__product, 1.0 / len(self.__values))

    @property
    @_require_data
    def harmonic_mean(self) -> float:
        """
        Get the harmonic mean of the values.

        The harmonic mean of data containing a zero is zero.
        """
        return len(self.__values) / self.__reciprocal_sum

    @property
    @_require_data
    def mean_deviation(self) -> float:
        """Get the mean absolute deviation from the arithmetic mean."""
        values = np.asarray(self.__values)
        return float(np.mean(np.abs(values - self.arithmetic_mean)))

    @property
    @_require_data
    def variance(self) -> float:
        """Get the population variance of the values."""
        return float(np.var(self.__values))

    @property
    @_require_data
    def sample_variance(self) -> float:
        """
        Get the sample variance of the values (using Bessel's correction).

        The sample variance of a single value is zero.
        """
        if len(self.__values) == 1:
            return 0.0
        return float(np.var(self.__values, ddof=1))

    @property
    @_require_data
    def standard_deviation(self) -> float:
        """Get the population standard deviation of the values."""
        return math.sqrt(self.variance)

    @property
    @_require_data
    def sample_standard_deviation(self) -> float:
        """Get the sample standard deviation of the values."""
        return math.sqrt(self.sample_variance)
