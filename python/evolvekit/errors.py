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
Module defining the exceptions raised by evolvekit.

All errors raised by the library are fatal, they are never recovered from
internally and always propagate to the caller of the operation that failed.
"""

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "EvolveKitError",
    "PreconditionError",
    "NegativeFitnessError",
    "IllegalStateError",
    "ConfigurationError"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class EvolveKitError(Exception):
    """Base class for all exceptions raised by evolvekit."""


class PreconditionError(EvolveKitError, ValueError):
    """
    Raised when an operation is called with arguments that violate its
    preconditions, such as an invalid population size or elite count, or
    parents of differing lengths given to a crossover.
    """


class NegativeFitnessError(PreconditionError):
    """Raised when a candidate is given a negative fitness score."""


class IllegalStateError(EvolveKitError, RuntimeError):
    """
    Raised when an object is queried in a state where the query has no
    meaningful answer, such as requesting the satisfied termination conditions
    of an engine that has not terminated, or the mean of an empty dataset.
    """


class ConfigurationError(EvolveKitError, ValueError):
    """
    Raised when an operator or strategy is configured with an out-of-range
    value, either when it is set, or when a value drawn from a number
    generator falls outside of the permitted range.
    """
