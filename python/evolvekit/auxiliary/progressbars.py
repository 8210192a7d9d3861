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

"""Module defining a generation progress bar which shows resource usage."""

import threading

import psutil
from tqdm import tqdm

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "ResourceProgressBar",
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class ResourceProgressBar:
    """
    A tqdm progress bar over generations, whose postfix shows the memory and
    CPU usage of this process next to the statistics of the last generation.

    A daemon thread samples the resource usage every `poll_interval` seconds
    until the bar is closed.
    """

    __slots__ = {
        "__process": "The process whose resource usage is shown.",
        "__usage": "The most recent resource usage sample.",
        "__bar": "The underlying tqdm progress bar.",
        "__closed": "Event set when the bar is closed.",
        "__sampler": "Daemon thread sampling resource usage."
    }

    def __init__(
        self,
        total: int | None = None,
        desc: str | None = None,
        poll_interval: float = 0.1
    ) -> None:
        """
        Create and display a new progress bar.

        Parameters
        ----------
        `total: int | None = None` - The expected number of generations,
        or None if unknown.

        `desc: str | None = None` - The description shown before the bar.

        `poll_interval: float = 0.1` - Seconds between resource samples.
        """
        self.__process = psutil.Process()
        self.__usage: dict[str, str] = self.__sample()
        self.__bar = tqdm(
            total=total,
            desc=desc,
            unit="gen",
            leave=False,
            miniters=1,
            colour="cyan",
            postfix=self.__usage
        )
        self.__closed = threading.Event()
        self.__sampler = threading.Thread(
            target=self.__poll,
            args=(poll_interval,),
            name="ResourceSampler",
            daemon=True
        )
        self.__sampler.start()

    def __sample(self) -> dict[str, str]:
        with self.__process.oneshot():
            memory = self.__process.memory_info().rss / (1024 ** 2)
            cpu = self.__process.cpu_percent()
        return {
            "Mem(Mb)": str(int(memory)).zfill(5),
            "CPU(%)": format(cpu, "0.2f").zfill(6)
        }

    def __poll(self, interval: float) -> None:
        while not self.__closed.wait(interval):
            self.__usage = self.__sample()

    @property
    def n(self) -> int | float:
        """Get the number of generations counted so far."""
        return self.__bar.n

    def update(self, data: dict[str, str] | None = None) -> None:
        """
        Count one generation, showing the given statistics and the latest
        resource usage in the bar's postfix.
        """
        postfix = dict(data) if data is not None else {}
        postfix.update(self.__usage)
        self.__bar.set_postfix(postfix, refresh=False)
        self.__bar.update(1)

    def close(self) -> None:
        """Close the bar and stop sampling resource usage."""
        self.__closed.set()
        self.__bar.close()
        self.__sampler.join()
