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
Module containing evolution observers.

Observers are notified by an evolution engine once per generation, on the
thread that called `evolve`, with the statistics of the generation's
population. Exceptions raised by observers are not caught by the engine, so
observers must be fast and must not fail.
"""

from abc import ABCMeta, abstractmethod
import os
import types
from typing import Callable, final

import pandas as pd
from typing_extensions import override

from evolvekit.auxiliary.progressbars import ResourceProgressBar
from evolvekit.datahandling.makedata import Historian
from evolvekit.errors import ConfigurationError
from evolvekit.evolution.candidates import PopulationStats

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "EvolutionObserver",
    "FunctionObserver",
    "StatsHistoryObserver",
    "CsvStatsObserver",
    "ProgressBarObserver"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class EvolutionObserver(metaclass=ABCMeta):
    """Base class for observers of the progress of an evolution."""

    __slots__ = ()

    @abstractmethod
    def population_update(self, stats: PopulationStats) -> None:
        """Called once per generation with the population's statistics."""


@final
class FunctionObserver(EvolutionObserver):
    """Observer that calls a function with each generation's statistics."""

    __slots__ = {
        "__function": "The function called on each update."
    }

    def __init__(self, function: Callable[[PopulationStats], None]) -> None:
        self.__function = function

    @override
    def population_update(self, stats: PopulationStats) -> None:
        self.__function(stats)


@final
class StatsHistoryObserver(EvolutionObserver):
    """
    Observer that records the statistics of every generation.

    The history may be converted to a pandas dataframe, with one row per
    generation, for analysis or plotting.
    """

    __slots__ = {
        "__history": "Historian storing one row per generation.",
        "__best_candidates": "The best candidate of each generation."
    }

    FIELDS: tuple[str, ...] = (
        "generation",
        "best_fitness",
        "mean_fitness",
        "fitness_std_dev",
        "population_size",
        "elite_count",
        "elapsed"
    )

    def __init__(self) -> None:
        self.__history = Historian(self.FIELDS)
        self.__best_candidates: list[object] = []

    def __len__(self) -> int:
        return len(self.__history)

    @property
    def best_candidates(self) -> list[object]:
        """Get the best candidate of each recorded generation, in order."""
        return list(self.__best_candidates)

    @override
    def population_update(self, stats: PopulationStats) -> None:
        self.__history.append_tuple(
            tuple(getattr(stats, field) for field in self.FIELDS)
        )
        self.__best_candidates.append(stats.best_candidate)

    def to_dataframe(self) -> pd.DataFrame:
        """Get the recorded statistics as a dataframe."""
        return self.__history.build_pandas()

    def clear(self) -> None:
        """Discard the recorded statistics."""
        self.__history.clear()
        self.__best_candidates.clear()


@final
class CsvStatsObserver(EvolutionObserver):
    """
    Observer that writes the statistics of every n-th generation to a CSV
    file.

    Each row holds the generation index, best fitness, mean fitness, standard
    deviation of fitness, and elapsed time in whole milliseconds. Fitness
    values are written with three decimal places. Rows are buffered, and
    written to the file when the observer is flushed or closed, which happens
    automatically if the observer is used as a context manager:
    ```
    with CsvStatsObserver("stats.csv", every=5) as observer:
        engine.add_observer(observer)
        engine.evolve(100, end_on=GenerationCount(50))
    ```
    """

    __slots__ = {
        "__path": "The path of the CSV file.",
        "__every": "The interval in generations between recorded rows.",
        "__rows": "Historian buffering rows not yet written.",
        "__header_written": "Whether the file has been created."
    }

    FIELDS: tuple[str, ...] = (
        "generation",
        "best fitness",
        "mean",
        "standard deviation",
        "elapsed (ms)"
    )

    def __init__(
        self,
        path: str | os.PathLike[str],
        every: int = 10
    ) -> None:
        """
        Create a new CSV statistics observer.

        Parameters
        ----------
        `path: str | os.PathLike[str]` - The path of the file to write, it is
        overwritten on the first flush.

        `every: int = 10` - Generations whose index is a multiple of this
        number are recorded.

        Raises
        ------
        `ConfigurationError` - If `every` is less than one.
        """
        if every < 1:
            raise ConfigurationError(
                "Recording interval must be at least one generation. "
                f"Got; {every} of type {type(every)}."
            )
        self.__path: str | os.PathLike[str] = path
        self.__every: int = every
        self.__rows = Historian(self.FIELDS)
        self.__header_written: bool = False

    def __enter__(self) -> "CsvStatsObserver":
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None
    ) -> None:
        self.close()

    @property
    def path(self) -> str | os.PathLike[str]:
        """Get the path of the CSV file."""
        return self.__path

    @override
    def population_update(self, stats: PopulationStats) -> None:
        if stats.generation % self.__every != 0:
            return
        self.__rows.append_tuple((
            stats.generation,
            float(stats.best_fitness),
            stats.mean_fitness,
            stats.fitness_std_dev,
            int(stats.elapsed * 1000)
        ))

    def flush(self) -> None:
        """Write all buffered rows to the file."""
        mode = "a" if self.__header_written else "w"
        with open(self.__path, mode, newline="", encoding="utf-8") as file:
            if not self.__header_written:
                file.write(",".join(f'"{field}"' for field in self.FIELDS))
                file.write("\n")
                self.__header_written = True
            if len(self.__rows) > 0:
                self.__rows.build_pandas().to_csv(
                    file,
                    header=False,
                    index=False,
                    float_format="%.3f",
                    lineterminator="\n"
                )
        self.__rows.clear()

    def close(self) -> None:
        """Write all buffered rows to the file."""
        self.flush()


@final
class ProgressBarObserver(EvolutionObserver):
    """
    Observer that displays a progress bar in the terminal, one step per
    generation, showing the best and mean fitness of the population alongside
    the memory and CPU usage of the process.

    The bar is created on the first update and must be closed when evolution
    finishes, either explicitly or by using the observer as a context manager.
    """

    __slots__ = {
        "__total": "The expected number of generations, if known.",
        "__desc": "The description shown before the bar.",
        "__progress_bar": "The progress bar, once created."
    }

    def __init__(
        self,
        total: int | None = None,
        desc: str = "Evolving"
    ) -> None:
        self.__total: int | None = total
        self.__desc: str = desc
        self.__progress_bar: ResourceProgressBar | None = None

    def __enter__(self) -> "ProgressBarObserver":
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None
    ) -> None:
        self.close()

    @property
    def progress_bar(self) -> ResourceProgressBar | None:
        """Get the progress bar, or None if it has not been created."""
        return self.__progress_bar

    @override
    def population_update(self, stats: PopulationStats) -> None:
        if self.__progress_bar is None:
            self.__progress_bar = ResourceProgressBar(
                total=self.__total, desc=self.__desc)
        self.__progress_bar.update(
            {
                "Best": format(stats.best_fitness, "0.3f"),
                "Mean": format(stats.mean_fitness, "0.3f")
            }
        )

    def close(self) -> None:
        """Close the progress bar, if it has been created."""
        if self.__progress_bar is not None:
            self.__progress_bar.close()
            self.__progress_bar = None
