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

"""Module defining a fixed-length bit string candidate type."""

from typing import final

from numpy.random import Generator, default_rng

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.1.0"

__all__ = (
    "BitString",
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


@final
class BitString:
    """
    A fixed-length string of bits.

    Bits are indexed from zero, starting at the least significant bit, so the
    string form (which is written most significant bit first, like a binary
    number) lists bit zero last. The bits are stored as a Python integer.

    Bit strings are mutable, and therefore not hashable, operators that modify
    a bit string always do so on a copy.
    """

    __slots__ = {
        "__length": "The number of bits in the string.",
        "__bits": "The integer value of the bits."
    }

    def __init__(self, length: int, value: int = 0) -> None:
        """
        Create a new bit string.

        Parameters
        ----------
        `length: int` - The number of bits, must be non-negative.

        `value: int = 0` - The initial integer value of the bits, must be
        non-negative and fit in the given number of bits.
        """
        if not isinstance(length, int) or length < 0:
            raise ValueError(
                "Length must be a non-negative integer. "
                f"Got; {length} of type {type(length)}."
            )
        if value < 0 or value.bit_length() > length:
            raise ValueError(
                f"Value must be a non-negative integer of at most {length} "
                f"bits. Got; {value} of type {type(value)}."
            )
        self.__length: int = length
        self.__bits: int = value

    @classmethod
    def from_string(cls, string: str) -> "BitString":
        """
        Create a bit string from a string of '0' and '1' characters, most
        significant bit first.
        """
        if any(char not in "01" for char in string):
            raise ValueError(
                "Bit string must contain only '0' and '1' characters. "
                f"Got; {string!r}."
            )
        return cls(len(string), int(string, 2) if string else 0)

    @classmethod
    def random(
        cls,
        length: int,
        rng: Generator | int | None = None
    ) -> "BitString":
        """Create a bit string of the given length with random bits."""
        generator = default_rng(rng)
        bits = generator.integers(0, 2, size=length)
        value = 0
        for index, bit in enumerate(bits):
            if bit:
                value |= 1 << index
        return cls(length, value)

    def __str__(self) -> str:
        if self.__length == 0:
            return ""
        return format(self.__bits, f"0{self.__length}b")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self)!r})"

    def __len__(self) -> int:
        return self.__length

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitString):
            return NotImplemented
        return self.__length == len(other) and self.__bits == other.to_number()

    __hash__ = None  # type: ignore[assignment]

    def __getitem__(self, index: int) -> bool:
        return self.get_bit(index)

    def __check_index(self, index: int) -> None:
        if not 0 <= index < self.__length:
            raise IndexError(
                f"Bit index must be in the range [0, {self.__length}). "
                f"Got; {index}."
            )

    def get_bit(self, index: int) -> bool:
        """Get the value of the bit at the given index."""
        self.__check_index(index)
        return bool((self.__bits >> index) & 1)

    def set_bit(self, index: int, value: bool = True) -> None:
        """Set the bit at the given index to the given value."""
        self.__check_index(index)
        if value:
            self.__bits |= 1 << index
        else:
            self.__bits &= ~(1 << index)

    def clear_bit(self, index: int) -> None:
        """Set the bit at the given index to zero."""
        self.set_bit(index, False)

    def flip_bit(self, index: int) -> None:
        """Invert the bit at the given index."""
        self.__check_index(index)
        self.__bits ^= 1 << index

    def ones_count(self) -> int:
        """Return the number of bits set to one."""
        return self.__bits.bit_count()

    def zeros_count(self) -> int:
        """Return the number of bits set to zero."""
        return self.__length - self.ones_count()

    def to_number(self) -> int:
        """Return the integer value of the bits."""
        return self.__bits

    def swap_range(self, other: "BitString", start: int, length: int) -> None:
        """
        Swap a range of bits in place between this and another bit string of
        the same length.

        Parameters
        ----------
        `other: BitString` - The other bit string.

        `start: int` - The index of the first bit to swap.

        `length: int` - The number of bits to swap.
        """
        if len(other) != self.__length:
            raise ValueError(
                "Cannot swap bits between strings of different lengths. "
                f"Got; {self.__length} and {len(other)}."
            )
        if start < 0 or length < 0 or start + length > self.__length:
            raise IndexError(
                f"Range [{start}, {start + length}) is not within the "
                f"bit string of length {self.__length}."
            )
        mask = ((1 << length) - 1) << start
        mine = self.__bits & mask
        theirs = other.to_number() & mask
        self.__bits = (self.__bits & ~mask) | theirs
        other.__bits = (other.to_number() & ~mask) | mine

    def copy(self) -> "BitString":
        """Return an independent copy of the bit string."""
        return BitString(self.__length, self.__bits)
