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

"""Module containing helper classes for gathering data into pandas tables."""

from typing import Any, Iterable

import pandas as pd

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "Historian",
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class Historian:
    """
    A historian stores rows of data to be built into a dataframe.

    Rows are added either as tuples, in field order, or as dictionaries
    mapping field names to values. Fields missing from a dictionary are filled
    from the historian's defaults.
    """

    __slots__ = {
        "__fields": "The names of the fields of each row.",
        "__defaults": "Default values of fields missing from added rows.",
        "__data": "The rows added to the historian."
    }

    def __init__(
        self,
        fields: Iterable[str],
        defaults: dict[str, Any] | None = None
    ) -> None:
        """
        Create a new historian.

        Parameters
        ----------
        `fields: Iterable[str]` - The names of the fields (the columns) of the
        data, in order.

        `defaults: dict[str, Any] | None = None` - Default values for fields
        that are missing from rows added as dictionaries.
        """
        self.__fields: tuple[str, ...] = tuple(fields)
        self.__defaults: dict[str, Any] = dict(defaults or {})
        self.__data: list[tuple[Any, ...]] = []

    def __len__(self) -> int:
        return len(self.__data)

    @property
    def fields(self) -> tuple[str, ...]:
        """Get the names of the fields of the data."""
        return self.__fields

    def append_tuple(self, data: tuple[Any, ...]) -> None:
        """Add a row of data given in field order."""
        if len(data) != len(self.__fields):
            raise ValueError(f"Expected {len(self.__fields)} fields, "
                             f"but got {len(data)}.")
        self.__data.append(tuple(data))

    def append_dict(self, data: dict[str, Any]) -> None:
        """Add a row of data given as a mapping of field names to values."""
        self.append_tuple(
            tuple(
                self.__get_field(data, field)
                for field in self.__fields
            )
        )

    def __get_field(self, data: dict[str, Any], field: str) -> Any:
        """Get a field from the data."""
        if field in data:
            return data[field]
        elif field in self.__defaults:
            return self.__defaults[field]
        else:
            raise ValueError(f"Field {field} not found in data or defaults.")

    def clear(self) -> None:
        """Remove all rows from the historian."""
        self.__data.clear()

    def build_pandas(self) -> pd.DataFrame:
        """Build a dataframe from the data stored in the historian."""
        return pd.DataFrame(self.__data, columns=list(self.__fields))
