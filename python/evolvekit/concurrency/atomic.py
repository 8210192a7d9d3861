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
Module containing atomic wrappers used to share small pieces of state between
the threads of an evolution.

Reads may happen at any time and block only while another thread holds the
object. Updates are only allowed inside the object's context manager, so that
a read-modify-write sequence is never interleaved with another thread's.

Example Usage
-------------
>>> counter = AtomicNumber(0)
>>> with counter:
...     counter += 1
>>> counter.get_obj()
1
"""

from abc import ABCMeta, abstractmethod
import threading
import types
from typing import (Any, Callable, Concatenate, Generic, ParamSpec, TypeVar,
                    final)

__copyright__ = "Copyright (C) 2023 Oliver Michael Kamperis"
__license__ = "GPL-3.0"
__version__ = "0.2.0"

__all__ = (
    "AtomicObjectError",
    "AtomicObject",
    "AtomicNumber",
    "AtomicBool"
)


def __dir__() -> tuple[str, ...]:
    """Get the names of module attributes."""
    return __all__


class AtomicObjectError(RuntimeError):
    """An exception raised when an atomic object is misused."""


_AT = TypeVar("_AT")
_SP = ParamSpec("_SP")
_ST = TypeVar("_ST")


def _atomic_require_lock(
    func: Callable[Concatenate[Any, _SP], _ST]
) -> Callable[Concatenate[Any, _SP], _ST]:
    """
    Decorator that acquires the object's lock for the duration of the call,
    so that a read never observes a half-finished update.
    """
    def wrapper(self: Any, *args: _SP.args, **kwargs: _SP.kwargs) -> _ST:
        with self:
            return func(self, *args, **kwargs)
    return wrapper


def _atomic_require_context(
    func: Callable[Concatenate[Any, _SP], _ST]
) -> Callable[Concatenate[Any, _SP], _ST]:
    """
    Decorator that checks the calling thread is inside the object's context
    manager before allowing an update.
    """
    def wrapper(self: Any, *args: _SP.args, **kwargs: _SP.kwargs) -> _ST:
        self._check_context()  # pylint: disable=protected-access
        return func(self, *args, **kwargs)
    return wrapper


class _Atomic(Generic[_AT], metaclass=ABCMeta):
    """Base class for atomic objects."""

    __slots__ = {
        "__lock": "The re-entrant lock guarding the wrapped value.",
        "__owner": "The thread currently holding the lock, if any.",
        "__depth": "The number of times the owner has entered the lock."
    }

    def __init__(self) -> None:
        """Create a new atomic object."""
        self.__lock = threading.RLock()
        self.__owner: threading.Thread | None = None
        self.__depth: int = 0

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.get_obj()!s}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.get_obj()!r})"

    @abstractmethod
    def get_obj(self) -> _AT:
        """Returns the wrapped object."""

    @abstractmethod
    def set_obj(self, value: _AT, /) -> None:
        """Sets the wrapped object."""

    def __enter__(self) -> "_Atomic[_AT]":
        self.__lock.acquire()
        self.__owner = threading.current_thread()
        self.__depth += 1
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None
    ) -> None:
        self.__depth -= 1
        if self.__depth == 0:
            self.__owner = None
        self.__lock.release()

    def _check_context(self) -> None:  # pylint: disable=unused-private-member
        """Check that the object is currently being updated."""
        if self.__owner is None:
            raise AtomicObjectError(
                "Cannot update atomic object outside of a context manager."
            )
        if self.__owner is not threading.current_thread():
            raise AtomicObjectError(
                "Attempted to update atomic object from a non-owner thread."
            )


_OT = TypeVar("_OT")


@final
class AtomicObject(_Atomic[_OT]):
    """
    A thread-safe wrapper around an arbitrary object reference.

    Only the reference is atomic, accesses to the wrapped object itself are
    not made thread-safe by the wrapper.
    """

    __slots__ = {
        "__object": "The object being wrapped."
    }

    def __init__(self, object_: _OT, /) -> None:
        """Create a new atomic object."""
        super().__init__()
        self.__object: _OT = object_

    @_atomic_require_lock
    def get_obj(self) -> _OT:
        """Returns the wrapped object."""
        return self.__object

    @_atomic_require_context
    def set_obj(self, object_: _OT, /) -> None:
        """Sets the wrapped object."""
        self.__object = object_


_NT = TypeVar("_NT", int, float)


@final
class AtomicNumber(_Atomic[_NT]):
    """
    A thread-safe number whose updates are atomic.

    Updates to the number are only allowed within a context manager.
    """

    __slots__ = {
        "__value": "The current value of the number."
    }

    def __init__(self, value: _NT = 0) -> None:
        """Create a new atomic number with given initial value."""
        super().__init__()
        self.__value: _NT = value

    @_atomic_require_lock
    def get_obj(self) -> _NT:
        """Returns the current value of the number."""
        return self.__value

    @_atomic_require_context
    def set_obj(self, value: _NT, /) -> None:
        """Sets the number to the given value."""
        self.__value = value

    @_atomic_require_context
    def __iadd__(self, value: _NT) -> "AtomicNumber[_NT]":
        self.__value = type(self.__value)(self.__value + value)
        return self


@final
class AtomicBool(_Atomic[bool]):
    """A thread-safe boolean whose updates are atomic."""

    __slots__ = {
        "__value": "The current value of the boolean."
    }

    def __init__(self, value: bool = False) -> None:
        """Create a new atomic boolean with given initial value."""
        super().__init__()
        self.__value = bool(value)

    @_atomic_require_lock
    def get_obj(self) -> bool:
        """Returns the current value of the boolean."""
        return self.__value

    @_atomic_require_context
    def set_obj(self, value: bool, /) -> None:
        """Sets the boolean to the given value."""
        self.__value = bool(value)

    @_atomic_require_lock
    def __bool__(self) -> bool:
        return self.__value
